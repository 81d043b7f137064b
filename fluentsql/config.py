import os
from dataclasses import dataclass

from dotenv import load_dotenv

from fluentsql.errors import argument_error

# ==================================================
# Process-wide Settings
# ==================================================

COMMAND_TIMEOUT_ENV = "FLUENTSQL_COMMAND_TIMEOUT"


@dataclass
class GlobalSettings:
    """
    Defaults shared by every builder in the process.

    Plain module state: the last writer wins and there is no synchronization,
    so configure it once at startup.
    """

    default_timeout: int | None = None


_settings = GlobalSettings()


def get_global_settings() -> GlobalSettings:
    return _settings


def get_global_timeout() -> int | None:
    return _settings.default_timeout


def set_global_timeout(seconds: int | None) -> None:
    """
    Sets the command timeout used by builders that have no timeout of their own.
    """
    if seconds is not None:
        validate_timeout("set_global_timeout", seconds)
    _settings.default_timeout = seconds


def reset_global_settings() -> None:
    _settings.default_timeout = None


def validate_timeout(operation: str, seconds: int) -> None:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise argument_error(operation, f"Timeout must be an integer number of seconds, got {seconds!r}.")
    if seconds < 0:
        raise argument_error(operation, "Timeout must be >= 0.")


def load_settings_from_env(env_file: str | None = None) -> GlobalSettings:
    """
    Loads process-wide defaults from the environment (and a .env file, when present).

    Args:
        env_file: Optional path to a .env file. When omitted, python-dotenv searches for one.
    """
    load_dotenv(env_file)
    raw = os.getenv(COMMAND_TIMEOUT_ENV)
    if raw is None or not raw.strip():
        return _settings

    try:
        seconds = int(raw.strip())
    except ValueError:
        raise argument_error(
            "load_settings_from_env",
            f"{COMMAND_TIMEOUT_ENV} must be an integer number of seconds, got {raw!r}.",
        ) from None
    set_global_timeout(seconds)
    return _settings
