from __future__ import annotations

from dataclasses import dataclass


# ==================================================
# Builder Usage Errors
# ==================================================


@dataclass(slots=True)
class ErrorDetails:
    """
    Structured metadata for builder usage errors.
    """

    operation: str
    message: str
    state: str | None = None


class FluentSqlError(Exception):
    """
    Base type for errors raised by the builder itself, always before any I/O.
    Driver errors are never wrapped in this type.
    """

    def __init__(self, details: ErrorDetails) -> None:
        self.details = details
        location = details.operation if details.state is None else f"{details.operation}@{details.state}"
        super().__init__(f"[{location}] {self.__class__.__name__}: {details.message}")


class ArgumentError(FluentSqlError, ValueError):
    """
    Raised for invalid caller arguments (empty VALUES/SET maps, empty column lists, ...).
    """


class StatementStateError(FluentSqlError, RuntimeError):
    """
    Raised when a clause or terminal method is not legal from the current builder state.
    """


def argument_error(operation: str, message: str, state: str | None = None) -> ArgumentError:
    return ArgumentError(ErrorDetails(operation=operation, message=message, state=state))


def state_error(operation: str, message: str, state: str | None = None) -> StatementStateError:
    return StatementStateError(ErrorDetails(operation=operation, message=message, state=state))
