from fluentsql.execution.base import CommandKind, Connection, ConnectionState, DataAccess, Transaction
from fluentsql.execution.connection import ConnectionSettings
from fluentsql.execution.mapping import map_row, map_rows
from fluentsql.execution.mssql import MsSqlConnection, MsSqlDataAccess, MsSqlTransaction
from fluentsql.execution.observability import (
    ExecutionEvent,
    InMemoryMetricsAdapter,
    MetricPoint,
    ObservabilitySettings,
    QueryObservation,
    compose_event_observers,
    execution_event_to_dict,
    make_json_event_logger,
)
from fluentsql.execution.parameters import CommandParameters

__all__ = [
    "CommandKind",
    "CommandParameters",
    "Connection",
    "ConnectionSettings",
    "ConnectionState",
    "DataAccess",
    "Transaction",
    "MsSqlConnection",
    "MsSqlDataAccess",
    "MsSqlTransaction",
    "map_row",
    "map_rows",
    "ObservabilitySettings",
    "QueryObservation",
    "ExecutionEvent",
    "MetricPoint",
    "InMemoryMetricsAdapter",
    "compose_event_observers",
    "execution_event_to_dict",
    "make_json_event_logger",
]
