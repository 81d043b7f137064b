from dataclasses import dataclass
from typing import Any, Callable

# ==================================================
# Connection Management Types
# ==================================================

# Hooks receive/return raw driver connections, letting a caller-owned pool
# stand in for opening a fresh connection per statement.
ConnectionAcquireHook = Callable[[str], Any]
ConnectionReleaseHook = Callable[[Any], None]


@dataclass(frozen=True)
class ConnectionSettings:
    """
    Driver connection settings for a data-access layer.
    """

    connect_timeout_seconds: int | None = None
    acquire_connection: ConnectionAcquireHook | None = None
    release_connection: ConnectionReleaseHook | None = None
