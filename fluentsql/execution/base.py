from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, TypeVar

from fluentsql.execution.mapping import map_row, map_rows
from fluentsql.execution.parameters import CommandParameters

T = TypeVar("T")

# ==================================================
# Collaborator Contract
# ==================================================


class CommandKind(Enum):
    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"


class ConnectionState(Enum):
    CLOSED = "closed"
    OPEN = "open"


class Transaction(ABC):
    """
    A transaction bound to one open connection.
    """

    @property
    @abstractmethod
    def connection(self) -> "Connection":
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass

    @abstractmethod
    def dispose(self) -> None:
        """
        Releases the transaction. An uncompleted transaction is rolled back.
        """
        pass


class Connection(ABC):
    """
    A database connection handle. Created closed by `DataAccess.connect`.
    """

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        pass

    @abstractmethod
    def open(self) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def begin_transaction(self) -> Transaction:
        pass

    def dispose(self) -> None:
        """
        Releases the connection. Safe to call more than once.
        """
        if self.state is ConnectionState.OPEN:
            self.close()


class DataAccess(ABC):
    """
    Abstract data-access layer the builder executes statements through.

    Implementations own driver specifics: placeholder style, command timeouts,
    result-set decoding and output-parameter read-back.
    """

    @abstractmethod
    def connect(self, connection_string: str) -> Connection:
        """
        Returns a new, not yet opened, connection handle.
        """
        pass

    @abstractmethod
    def execute(
        self,
        connection: Connection,
        sql: str,
        parameters: CommandParameters,
        transaction: Transaction | None = None,
        timeout: int | None = None,
        command_kind: CommandKind = CommandKind.TEXT,
    ) -> int:
        """
        Executes a command and returns the affected-row count.
        """
        pass

    @abstractmethod
    def query(
        self,
        connection: Connection,
        sql: str,
        parameters: CommandParameters,
        transaction: Transaction | None = None,
        timeout: int | None = None,
        command_kind: CommandKind = CommandKind.TEXT,
    ) -> list[dict[str, Any]]:
        """
        Executes a command and returns its rows as column-keyed dictionaries.
        """
        pass

    def query_first_or_default(
        self,
        connection: Connection,
        sql: str,
        parameters: CommandParameters,
        transaction: Transaction | None = None,
        timeout: int | None = None,
        command_kind: CommandKind = CommandKind.TEXT,
    ) -> dict[str, Any] | None:
        rows = self.query(connection, sql, parameters, transaction, timeout, command_kind)
        return rows[0] if rows else None

    def query_mapped(
        self,
        cls: type[T],
        connection: Connection,
        sql: str,
        parameters: CommandParameters,
        transaction: Transaction | None = None,
        timeout: int | None = None,
        command_kind: CommandKind = CommandKind.TEXT,
    ) -> list[T]:
        rows = self.query(connection, sql, parameters, transaction, timeout, command_kind)
        return map_rows(rows, cls)

    def query_first_or_default_mapped(
        self,
        cls: type[T],
        connection: Connection,
        sql: str,
        parameters: CommandParameters,
        transaction: Transaction | None = None,
        timeout: int | None = None,
        command_kind: CommandKind = CommandKind.TEXT,
    ) -> T | None:
        row = self.query_first_or_default(connection, sql, parameters, transaction, timeout, command_kind)
        return None if row is None else map_row(row, cls)
