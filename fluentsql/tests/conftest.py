from dataclasses import dataclass, field
from typing import Any

import pytest

from fluentsql.builder import FluentSqlBuilder
from fluentsql.config import reset_global_settings
from fluentsql.execution.base import CommandKind, Connection, ConnectionState, DataAccess, Transaction
from fluentsql.execution.parameters import CommandParameters


# ==================================================
# In-memory collaborator
# ==================================================


@dataclass
class RecordedCall:
    method: str
    connection: "FakeConnection"
    sql: str
    parameters: CommandParameters
    transaction: Transaction | None
    timeout: int | None
    command_kind: CommandKind
    inputs: dict[str, Any] = field(default_factory=dict)


class FakeTransaction(Transaction):
    def __init__(self, connection: "FakeConnection", commit_error: Exception | None, rollback_error: Exception | None):
        self._connection = connection
        self.commit_error = commit_error
        self.rollback_error = rollback_error
        self.commits = 0
        self.rollbacks = 0
        self.disposals = 0

    @property
    def connection(self) -> "FakeConnection":
        return self._connection

    def commit(self) -> None:
        self.commits += 1
        if self.commit_error is not None:
            raise self.commit_error

    def rollback(self) -> None:
        self.rollbacks += 1
        if self.rollback_error is not None:
            raise self.rollback_error

    def dispose(self) -> None:
        self.disposals += 1
        if self._connection.data_access.dispose_error is not None:
            raise self._connection.data_access.dispose_error


class FakeConnection(Connection):
    def __init__(self, data_access: "FakeDataAccess", connection_string: str) -> None:
        self.data_access = data_access
        self.connection_string = connection_string
        self._state = ConnectionState.CLOSED
        self.opens = 0
        self.closes = 0
        self.transactions: list[FakeTransaction] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    def open(self) -> None:
        self.opens += 1
        self._state = ConnectionState.OPEN

    def close(self) -> None:
        self.closes += 1
        self._state = ConnectionState.CLOSED

    def begin_transaction(self) -> FakeTransaction:
        if self.data_access.begin_error is not None:
            raise self.data_access.begin_error
        transaction = FakeTransaction(self, self.data_access.commit_error, self.data_access.rollback_error)
        self.transactions.append(transaction)
        return transaction


class FakeDataAccess(DataAccess):
    """
    Records every call. Output bindings named in `outputs` are resolved,
    every other output binding is dropped, like a procedure that never binds it.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        affected: int = 0,
        outputs: dict[str, Any] | None = None,
        error: Exception | None = None,
        commit_error: Exception | None = None,
        rollback_error: Exception | None = None,
        begin_error: Exception | None = None,
        dispose_error: Exception | None = None,
    ) -> None:
        self.rows = rows or []
        self.affected = affected
        self.outputs = outputs or {}
        self.error = error
        self.commit_error = commit_error
        self.rollback_error = rollback_error
        self.begin_error = begin_error
        self.dispose_error = dispose_error
        self.connections: list[FakeConnection] = []
        self.calls: list[RecordedCall] = []

    def connect(self, connection_string: str) -> FakeConnection:
        connection = FakeConnection(self, connection_string)
        self.connections.append(connection)
        return connection

    def _record(self, method: str, connection: Connection, sql: str, parameters: CommandParameters,
                transaction: Transaction | None, timeout: int | None, command_kind: CommandKind) -> None:
        assert isinstance(connection, FakeConnection)
        assert connection.state is ConnectionState.OPEN
        self.calls.append(
            RecordedCall(
                method=method,
                connection=connection,
                sql=sql,
                parameters=parameters,
                transaction=transaction,
                timeout=timeout,
                command_kind=command_kind,
                inputs=parameters.input_values(),
            )
        )
        if self.error is not None:
            raise self.error
        for binding in parameters.outputs:
            if binding.bare_name in self.outputs:
                parameters.set_output(binding.name, self.outputs[binding.bare_name])
            else:
                parameters.discard(binding.name)

    def execute(self, connection, sql, parameters, transaction=None, timeout=None, command_kind=CommandKind.TEXT):
        self._record("execute", connection, sql, parameters, transaction, timeout, command_kind)
        return self.affected

    def query(self, connection, sql, parameters, transaction=None, timeout=None, command_kind=CommandKind.TEXT):
        self._record("query", connection, sql, parameters, transaction, timeout, command_kind)
        return [dict(row) for row in self.rows]


# ==================================================
# Fixtures
# ==================================================


@pytest.fixture(autouse=True)
def _reset_global_settings():
    reset_global_settings()
    yield
    reset_global_settings()


@pytest.fixture
def fake_access() -> FakeDataAccess:
    return FakeDataAccess()


@pytest.fixture
def builder(fake_access: FakeDataAccess) -> FluentSqlBuilder:
    return FluentSqlBuilder("Server=test;Database=app", data_access=fake_access)
