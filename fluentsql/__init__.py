from fluentsql.builder import FluentSqlBuilder
from fluentsql.config import (
    GlobalSettings,
    get_global_timeout,
    load_settings_from_env,
    reset_global_settings,
    set_global_timeout,
)
from fluentsql.entities.models import DbType, JoinType, OutputParameter, StoredProcedureWithOutputResult
from fluentsql.errors import ArgumentError, ErrorDetails, FluentSqlError, StatementStateError
from fluentsql.execution.base import CommandKind, Connection, ConnectionState, DataAccess, Transaction
from fluentsql.execution.mssql import MsSqlDataAccess
from fluentsql.execution.observability import (
    ExecutionEvent,
    InMemoryMetricsAdapter,
    ObservabilitySettings,
    QueryObservation,
    compose_event_observers,
    make_json_event_logger,
)
from fluentsql.execution.parameters import CommandParameters
from fluentsql.statements.interfaces import FluentSql
from fluentsql.statements.state_machine import StatementState

__version__ = "0.1.0"

__all__ = [
    "FluentSqlBuilder",
    "FluentSql",
    "StatementState",
    "JoinType",
    "DbType",
    "OutputParameter",
    "StoredProcedureWithOutputResult",
    "CommandParameters",
    "CommandKind",
    "Connection",
    "ConnectionState",
    "DataAccess",
    "Transaction",
    "MsSqlDataAccess",
    "FluentSqlError",
    "ArgumentError",
    "StatementStateError",
    "ErrorDetails",
    "GlobalSettings",
    "get_global_timeout",
    "set_global_timeout",
    "reset_global_settings",
    "load_settings_from_env",
    "ObservabilitySettings",
    "QueryObservation",
    "ExecutionEvent",
    "InMemoryMetricsAdapter",
    "compose_event_observers",
    "make_json_event_logger",
]
