import asyncio
import dataclasses
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, TypeVar, cast
from uuid import uuid4

from fluentsql.config import get_global_timeout, set_global_timeout, validate_timeout
from fluentsql.entities.models import (
    DbType,
    JoinType,
    OutputParameter,
    StoredProcedureWithOutputResult,
    normalize_parameter_name,
    strip_parameter_marker,
)
from fluentsql.errors import argument_error, state_error
from fluentsql.execution.base import CommandKind, Connection, ConnectionState, DataAccess, Transaction
from fluentsql.execution.mssql import MsSqlDataAccess
from fluentsql.execution.observability import ExecutionEvent, ObservabilitySettings, QueryObservation
from fluentsql.execution.parameters import CommandParameters
from fluentsql.statements.interfaces import FluentSql
from fluentsql.statements.state_machine import (
    CAPABILITIES,
    NON_QUERY_END,
    QUERY_END,
    STORED_PROCEDURE_END,
    STORED_PROCEDURE_OUTPUT_END,
    StatementState,
    next_state,
    require_capability,
)

T = TypeVar("T")
R = TypeVar("R")

# ==================================================
# Fluent Statement Builder
# ==================================================


class FluentSqlBuilder:
    """
    A mutable, single-session SQL statement builder.

    Clause methods append fragments to the query text in call order and return
    the builder typed as the next capability interface. Every method checks the
    current StatementState first, so illegal sequences fail before any I/O.

    A builder is not safe for concurrent use: chained calls from several threads
    on one instance interleave on the shared text buffer.
    """

    def __init__(
        self,
        connection_string: str,
        data_access: DataAccess | None = None,
        observability_settings: ObservabilitySettings | None = None,
    ) -> None:
        """
        Args:
            connection_string: Passed unchanged to `data_access.connect`.
            data_access: The collaborator statements run through. Defaults to MsSqlDataAccess.
            observability_settings: Optional query/event observers.
        """
        if not isinstance(connection_string, str) or not connection_string.strip():
            raise argument_error("connect", "A connection string is required.")
        self._connection_string = connection_string
        self.data_access = data_access if data_access is not None else MsSqlDataAccess()
        self.observability_settings = observability_settings
        self._builder_id = uuid4().hex

        self._state = StatementState.START
        self._query: str | None = None
        self._query_parameters: dict[str, Any] = {}
        self._sp_name: str | None = None
        self._sp_parameters: dict[str, Any] = {}
        self._sp_output_parameters: list[OutputParameter] = []

        self._connection: Connection | None = None
        self._transaction: Transaction | None = None
        self._transaction_id: str | None = None
        self._transaction_started: float | None = None
        self._in_transaction = False
        self._timeout_override: int | None = None
        self._disposed = False

    @classmethod
    def connect(
        cls,
        connection_string: str,
        data_access: DataAccess | None = None,
        observability_settings: ObservabilitySettings | None = None,
    ) -> FluentSql:
        """
        Creates a builder bound to `connection_string`. No connection is opened yet.
        """
        return cast(FluentSql, cls(connection_string, data_access, observability_settings))

    @classmethod
    def set_global_timeout(cls, seconds: int | None) -> None:
        """
        Sets the process-wide default command timeout (last writer wins).
        """
        set_global_timeout(seconds)

    # ==================================================
    # Session Properties
    # ==================================================

    @property
    def query(self) -> str | None:
        return self._query

    @property
    def name(self) -> str | None:
        return self._sp_name

    @property
    def timeout(self) -> int | None:
        if self._timeout_override is not None:
            return self._timeout_override
        return get_global_timeout()

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @property
    def parameters(self) -> dict[str, Any]:
        if self._sp_name is not None:
            return dict(self._sp_parameters)
        return dict(self._query_parameters)

    @property
    def state(self) -> StatementState:
        return self._state

    def set_timeout(self, seconds: int | None) -> "FluentSqlBuilder":
        self._ensure_active("set_timeout")
        if seconds is not None:
            validate_timeout("set_timeout", seconds)
        self._timeout_override = seconds
        return self

    # ==================================================
    # Entry Methods
    # ==================================================

    def select(self, *columns: str) -> "FluentSqlBuilder":
        if len(columns) == 1 and isinstance(columns[0], (list, tuple)):
            columns = tuple(columns[0])
        if not columns:
            raise argument_error("select", "At least one column is required.")
        return self._start("select", f"SELECT {', '.join(columns)}")

    def select_all(self) -> "FluentSqlBuilder":
        return self._start("select_all", "SELECT *")

    def insert_into(self, table: str) -> "FluentSqlBuilder":
        return self._start("insert_into", f"INSERT INTO {table}")

    def update(self, table: str) -> "FluentSqlBuilder":
        return self._start("update", f"UPDATE {table}")

    def delete_from(self, table: str) -> "FluentSqlBuilder":
        return self._start("delete_from", f"DELETE FROM {table}")

    def store_procedure(self, name: str) -> "FluentSqlBuilder":
        self._ensure_active("store_procedure")
        if not isinstance(name, str) or not name.strip():
            raise argument_error("store_procedure", "A stored procedure name is required.")
        self._state = next_state(self._state, "store_procedure")
        self._query = None
        self._query_parameters = {}
        self._sp_name = name
        self._sp_parameters = {}
        self._sp_output_parameters = []
        return self

    # ==================================================
    # SELECT Clauses
    # ==================================================

    def top(self, n: int) -> "FluentSqlBuilder":
        target = self._transition("top")
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise argument_error("top", f"TOP requires a non-negative integer, got {n!r}.", self._state.value)
        text = self._require_query("top")
        if self._state is StatementState.DISTINCT:
            self._query = text.replace("SELECT DISTINCT", f"SELECT DISTINCT TOP {n}", 1)
        else:
            self._query = text.replace("SELECT", f"SELECT TOP {n}", 1)
        self._state = target
        return self

    def distinct(self) -> "FluentSqlBuilder":
        target = self._transition("distinct")
        self._query = self._require_query("distinct").replace("SELECT", "SELECT DISTINCT", 1)
        self._state = target
        return self

    def from_(self, table: str, alias: str | None = None) -> "FluentSqlBuilder":
        return self._append("from_", f" FROM {table}{self._alias(alias)}")

    def with_no_lock(self) -> "FluentSqlBuilder":
        return self._append("with_no_lock", " WITH (NOLOCK)")

    def join(
        self,
        table: str,
        join_type: JoinType | str = JoinType.INNER,
        alias: str | None = None,
    ) -> "FluentSqlBuilder":
        keyword = JoinType.keyword_for(join_type)
        return self._append("join", f" {keyword} JOIN {table}{self._alias(alias)}")

    def on(self, condition: str, parameters: Any = None) -> "FluentSqlBuilder":
        return self._append("on", f" ON {condition}", parameters)

    def where(self, condition: str, parameters: Any = None) -> "FluentSqlBuilder":
        return self._append("where", f" WHERE {condition}", parameters)

    def group_by(self, *columns: str) -> "FluentSqlBuilder":
        return self._append("group_by", f" GROUP BY {', '.join(self._columns('group_by', columns))}")

    def having(self, condition: str, parameters: Any = None) -> "FluentSqlBuilder":
        return self._append("having", f" HAVING {condition}", parameters)

    def order_by(self, *columns: str) -> "FluentSqlBuilder":
        return self._append("order_by", f" ORDER BY {', '.join(self._columns('order_by', columns))}")

    def ascending(self) -> "FluentSqlBuilder":
        return self._append("ascending", " ASC")

    def descending(self) -> "FluentSqlBuilder":
        return self._append("descending", " DESC")

    # ==================================================
    # INSERT / UPDATE Clauses
    # ==================================================

    def values(self, values: Mapping[str, Any]) -> "FluentSqlBuilder":
        target = self._transition("values")
        self._require_values("values", values)
        columns = ", ".join(strip_parameter_marker(key) for key in values)
        placeholders = ", ".join(normalize_parameter_name(key) for key in values)
        self._query = f"{self._require_query('values')} ({columns}) "
        self._query += f" VALUES ({placeholders})"
        self._bind(values)
        self._state = target
        return self

    def set(self, values: Mapping[str, Any]) -> "FluentSqlBuilder":
        target = self._transition("set")
        self._require_values("set", values)
        assignments = ", ".join(
            f"{strip_parameter_marker(key)} = {normalize_parameter_name(key)}" for key in values
        )
        self._query = f"{self._require_query('set')} SET {assignments}"
        self._bind(values)
        self._state = target
        return self

    # ==================================================
    # Stored Procedure Parameters
    # ==================================================

    def with_parameter(self, name: str, value: Any) -> "FluentSqlBuilder":
        return self.with_parameters({name: value})

    def with_parameters(self, parameters: Any) -> "FluentSqlBuilder":
        operation = "with_parameters"
        target = self._transition(operation)
        incoming: dict[str, Any] = {}
        for name, value in self._parameter_items(operation, parameters).items():
            placeholder = normalize_parameter_name(name)
            if placeholder in self._sp_parameters or placeholder in incoming:
                raise argument_error(operation, f"Parameter {placeholder} was already added.", self._state.value)
            incoming[placeholder] = value
        self._sp_parameters.update(incoming)
        self._state = target
        return self

    def with_output_parameter(
        self,
        parameter: OutputParameter | str,
        db_type: DbType | None = None,
        size: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
    ) -> "FluentSqlBuilder":
        self._transition("with_output_parameter")
        if not isinstance(parameter, OutputParameter):
            parameter = OutputParameter(
                name=parameter,
                db_type=db_type if db_type is not None else DbType.STRING,
                size=size,
                precision=precision,
                scale=scale,
            )
        return self.with_output_parameters([parameter])

    def with_output_parameters(self, parameters: Iterable[OutputParameter]) -> "FluentSqlBuilder":
        operation = "with_output_parameters"
        target = self._transition(operation)
        incoming = list(parameters)
        taken = {parameter.name.lower() for parameter in self._sp_output_parameters}
        taken.update(strip_parameter_marker(name).lower() for name in self._sp_parameters)
        for parameter in incoming:
            if not isinstance(parameter, OutputParameter):
                raise argument_error(operation, f"Expected OutputParameter, got {parameter!r}.", self._state.value)
            key = parameter.name.lower()
            if key in taken:
                raise argument_error(operation, f"Parameter @{parameter.name} was already added.", self._state.value)
            taken.add(key)
        self._sp_output_parameters.extend(incoming)
        self._state = target
        return self

    # ==================================================
    # Query Terminals
    # ==================================================

    def to_dynamic(self) -> list[dict[str, Any]]:
        return self._run_statement("to_dynamic", QUERY_END, self.data_access.query)

    def to_dynamic_single(self) -> dict[str, Any] | None:
        return self._run_statement("to_dynamic_single", QUERY_END, self.data_access.query_first_or_default)

    def to_mapped_object(self, cls: type[T]) -> list[T]:
        return self._run_statement(
            "to_mapped_object",
            QUERY_END,
            lambda *args: self.data_access.query_mapped(cls, *args),
        )

    def to_mapped_object_single(self, cls: type[T]) -> T | None:
        return self._run_statement(
            "to_mapped_object_single",
            QUERY_END,
            lambda *args: self.data_access.query_first_or_default_mapped(cls, *args),
        )

    def execute(self) -> int:
        return self._run_statement("execute", NON_QUERY_END, self.data_access.execute)

    async def to_dynamic_async(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self.to_dynamic)

    async def to_dynamic_single_async(self) -> dict[str, Any] | None:
        return await asyncio.to_thread(self.to_dynamic_single)

    async def to_mapped_object_async(self, cls: type[T]) -> list[T]:
        return await asyncio.to_thread(self.to_mapped_object, cls)

    async def to_mapped_object_single_async(self, cls: type[T]) -> T | None:
        return await asyncio.to_thread(self.to_mapped_object_single, cls)

    async def execute_async(self) -> int:
        return await asyncio.to_thread(self.execute)

    # ==================================================
    # Stored Procedure Terminals
    # ==================================================
    # Without output parameters these return bare values; once an output
    # parameter is declared they return StoredProcedureWithOutputResult.

    def execute_non_query(self) -> Any:
        return self._run_procedure("execute_non_query", self.data_access.execute)

    def execute_to_dynamic(self) -> Any:
        return self._run_procedure("execute_to_dynamic", self.data_access.query)

    def execute_to_dynamic_single(self) -> Any:
        return self._run_procedure("execute_to_dynamic_single", self.data_access.query_first_or_default)

    def execute_to_mapped_object(self, cls: type[T]) -> Any:
        return self._run_procedure(
            "execute_to_mapped_object",
            lambda *args: self.data_access.query_mapped(cls, *args),
        )

    def execute_to_mapped_object_single(self, cls: type[T]) -> Any:
        return self._run_procedure(
            "execute_to_mapped_object_single",
            lambda *args: self.data_access.query_first_or_default_mapped(cls, *args),
        )

    async def execute_non_query_async(self) -> Any:
        return await asyncio.to_thread(self.execute_non_query)

    async def execute_to_dynamic_async(self) -> Any:
        return await asyncio.to_thread(self.execute_to_dynamic)

    async def execute_to_dynamic_single_async(self) -> Any:
        return await asyncio.to_thread(self.execute_to_dynamic_single)

    async def execute_to_mapped_object_async(self, cls: type[T]) -> Any:
        return await asyncio.to_thread(self.execute_to_mapped_object, cls)

    async def execute_to_mapped_object_single_async(self, cls: type[T]) -> Any:
        return await asyncio.to_thread(self.execute_to_mapped_object_single, cls)

    # ==================================================
    # Custom Queries
    # ==================================================
    # Legal from any state; they leave the builder's own query text alone.

    def execute_custom_query(self, sql: str, parameters: Any = None, cls: type[T] | None = None) -> list[Any]:
        if cls is None:
            return self._run_custom("execute_custom_query", sql, parameters, self.data_access.query)
        return self._run_custom(
            "execute_custom_query",
            sql,
            parameters,
            lambda *args: self.data_access.query_mapped(cls, *args),
        )

    def execute_custom_query_single(self, sql: str, parameters: Any = None, cls: type[T] | None = None) -> Any:
        if cls is None:
            return self._run_custom(
                "execute_custom_query_single", sql, parameters, self.data_access.query_first_or_default
            )
        return self._run_custom(
            "execute_custom_query_single",
            sql,
            parameters,
            lambda *args: self.data_access.query_first_or_default_mapped(cls, *args),
        )

    def execute_custom_non_query(self, sql: str, parameters: Any = None) -> int:
        return self._run_custom("execute_custom_non_query", sql, parameters, self.data_access.execute)

    async def execute_custom_query_async(
        self, sql: str, parameters: Any = None, cls: type[T] | None = None
    ) -> list[Any]:
        return await asyncio.to_thread(self.execute_custom_query, sql, parameters, cls)

    async def execute_custom_query_single_async(
        self, sql: str, parameters: Any = None, cls: type[T] | None = None
    ) -> Any:
        return await asyncio.to_thread(self.execute_custom_query_single, sql, parameters, cls)

    async def execute_custom_non_query_async(self, sql: str, parameters: Any = None) -> int:
        return await asyncio.to_thread(self.execute_custom_non_query, sql, parameters)

    # ==================================================
    # Transactions
    # ==================================================

    def begin_transaction(self) -> None:
        """
        Opens a connection if needed and starts a transaction shared by every
        statement until commit or rollback. Calling it again while a transaction
        is active is a no-op.
        """
        self._ensure_active("begin_transaction")
        if self._transaction is None:
            connection = self.data_access.connect(self._connection_string)
            try:
                self._open(connection)
                transaction = connection.begin_transaction()
            except Exception:
                self._close(connection)
                raise
            self._connection, self._transaction = connection, transaction
            self._transaction_id = uuid4().hex
            self._transaction_started = time.perf_counter()
            self._emit_event("txn.begin", success=True, transaction_id=self._transaction_id)
        elif self._connection is not None and self._connection.state is ConnectionState.CLOSED:
            self._open(self._connection)
        self._in_transaction = True

    def commit_transaction(self) -> None:
        """
        Commits the active transaction. If the commit fails, a rollback is attempted
        before the original error is re-raised. The transaction and its connection
        are released either way.
        """
        transaction = self._require_transaction("commit_transaction")
        try:
            transaction.commit()
        except Exception as exc:
            self._emit_transaction_event("txn.commit", error=exc)
            self._rollback_after_failed_commit(transaction)
            self._release_after_failed_commit()
            raise
        try:
            self._emit_transaction_event("txn.commit")
        finally:
            self._release_transaction()

    def rollback_transaction(self) -> None:
        transaction = self._require_transaction("rollback_transaction")
        try:
            transaction.rollback()
        except Exception as exc:
            self._emit_transaction_event("txn.rollback", error=exc)
            raise
        else:
            self._emit_transaction_event("txn.rollback")
        finally:
            self._release_transaction()

    # ==================================================
    # Disposal
    # ==================================================

    def dispose(self) -> None:
        """
        Rolls back an active transaction, then releases the transaction and
        connection. Safe to call more than once.
        """
        if self._disposed:
            return
        self._disposed = True
        try:
            if self._in_transaction and self._transaction is not None:
                self._transaction.rollback()
                self._emit_transaction_event("txn.rollback")
        finally:
            self._release_transaction()

    def __enter__(self) -> "FluentSqlBuilder":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.dispose()

    # ==================================================
    # Internal: State and Text Assembly
    # ==================================================

    def _ensure_active(self, operation: str) -> None:
        if self._disposed:
            raise state_error(operation, "The builder is disposed.")

    def _transition(self, operation: str) -> StatementState:
        self._ensure_active(operation)
        return next_state(self._state, operation)

    def _start(self, operation: str, text: str) -> "FluentSqlBuilder":
        self._state = self._transition(operation)
        self._query = text
        self._query_parameters = {}
        self._sp_name = None
        self._sp_parameters = {}
        self._sp_output_parameters = []
        return self

    def _append(self, operation: str, fragment: str, parameters: Any = None) -> "FluentSqlBuilder":
        target = self._transition(operation)
        items = self._parameter_items(operation, parameters)
        query = self._require_query(operation)
        for key, value in items.items():
            placeholder = normalize_parameter_name(key)
            if placeholder in self._query_parameters and self._query_parameters[placeholder] != value:
                raise argument_error(
                    operation,
                    f"Parameter {placeholder} is already bound to a different value.",
                    self._state.value,
                )
        self._query = query + fragment
        self._bind(items)
        self._state = target
        return self

    def _require_query(self, operation: str) -> str:
        if self._query is None:
            raise state_error(operation, "No statement has been started.", self._state.value)
        return self._query

    def _bind(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self._query_parameters[normalize_parameter_name(key)] = value

    def _require_values(self, operation: str, values: Any) -> None:
        if not isinstance(values, Mapping) or not values:
            raise argument_error(operation, "A non-empty column/value mapping is required.", self._state.value)

    def _columns(self, operation: str, columns: tuple[Any, ...]) -> tuple[str, ...]:
        if len(columns) == 1 and isinstance(columns[0], (list, tuple)):
            columns = tuple(columns[0])
        if not columns:
            raise argument_error(operation, "At least one column is required.", self._state.value)
        return columns

    @staticmethod
    def _alias(alias: str | None) -> str:
        return f" {alias}" if alias else ""

    def _parameter_items(self, operation: str, parameters: Any) -> dict[str, Any]:
        """
        Flattens a mapping, dataclass instance or plain object into name/value pairs.
        """
        if parameters is None:
            return {}
        if isinstance(parameters, Mapping):
            return dict(parameters)
        if dataclasses.is_dataclass(parameters) and not isinstance(parameters, type):
            return {field.name: getattr(parameters, field.name) for field in dataclasses.fields(parameters)}
        if hasattr(parameters, "__dict__") and not isinstance(parameters, type):
            return {key: value for key, value in vars(parameters).items() if not key.startswith("_")}
        raise argument_error(
            operation,
            f"Parameters must be a mapping or an object with attributes, got {type(parameters).__name__}.",
            self._state.value,
        )

    # ==================================================
    # Internal: Execution
    # ==================================================

    def _run_statement(self, operation: str, capability: str, fetch: Callable[..., R]) -> R:
        self._ensure_active(operation)
        require_capability(self._state, capability, operation)
        sql = self._require_query(operation)
        parameters = CommandParameters(self._query_parameters)
        timeout = self.timeout
        return self._run(
            operation,
            sql,
            parameters,
            CommandKind.TEXT,
            lambda connection, transaction: fetch(
                connection, sql, parameters, transaction, timeout, CommandKind.TEXT
            ),
        )

    def _run_procedure(self, operation: str, fetch: Callable[..., Any]) -> Any:
        self._ensure_active(operation)
        with_outputs = self._state in CAPABILITIES[STORED_PROCEDURE_OUTPUT_END]
        if not with_outputs:
            require_capability(self._state, STORED_PROCEDURE_END, operation)
        name = cast(str, self._sp_name)
        parameters = CommandParameters()
        for key, value in self._sp_parameters.items():
            parameters.add(key, value)
        for output in self._sp_output_parameters:
            parameters.add_output(output)
        timeout = self.timeout

        value = self._run(
            operation,
            name,
            parameters,
            CommandKind.STORED_PROCEDURE,
            lambda connection, transaction: fetch(
                connection, name, parameters, transaction, timeout, CommandKind.STORED_PROCEDURE
            ),
        )
        if not with_outputs:
            return value

        bound = set(parameters.parameter_names)
        outputs = {
            output.name: parameters.get(output.name)
            for output in self._sp_output_parameters
            if output.name in bound
        }
        return StoredProcedureWithOutputResult(return_value=value, output_parameters=outputs)

    def _run_custom(self, operation: str, sql: str, parameters: Any, fetch: Callable[..., R]) -> R:
        self._ensure_active(operation)
        if not isinstance(sql, str) or not sql.strip():
            raise argument_error(operation, "SQL text is required.")
        command_parameters = CommandParameters(self._parameter_items(operation, parameters))
        timeout = self.timeout
        return self._run(
            operation,
            sql,
            command_parameters,
            CommandKind.TEXT,
            lambda connection, transaction: fetch(
                connection, sql, command_parameters, transaction, timeout, CommandKind.TEXT
            ),
        )

    def _run(
        self,
        operation: str,
        sql: str,
        parameters: CommandParameters,
        command_kind: CommandKind,
        call: Callable[[Connection, Transaction | None], R],
    ) -> R:
        """
        Runs `call` on the transaction's connection when one is active, otherwise on
        a connection opened for this call alone and always released afterwards.
        """

        def _execute() -> R:
            if self._in_transaction and self._connection is not None:
                if self._connection.state is ConnectionState.CLOSED:
                    self._open(self._connection)
                return call(self._connection, self._transaction)

            connection = self.data_access.connect(self._connection_string)
            try:
                self._open(connection)
                return call(connection, None)
            finally:
                self._close(connection)

        return self._observe_query(
            operation=operation,
            sql=sql,
            parameters=parameters,
            command_kind=command_kind,
            run=_execute,
        )

    def _open(self, connection: Connection) -> None:
        connection.open()
        self._emit_event("connection.open", success=True)

    def _close(self, connection: Connection) -> None:
        connection.dispose()
        self._emit_event("connection.close", success=True)

    def _require_transaction(self, operation: str) -> Transaction:
        self._ensure_active(operation)
        if not self._in_transaction or self._transaction is None:
            raise state_error(operation, "No transaction is active.")
        return self._transaction

    def _rollback_after_failed_commit(self, transaction: Transaction) -> None:
        # The commit error is the one callers see; a failed rollback is only reported.
        try:
            transaction.rollback()
        except Exception as exc:
            self._emit_transaction_event("txn.rollback", error=exc)
        else:
            self._emit_transaction_event("txn.rollback")

    def _release_after_failed_commit(self) -> None:
        # A release failure is reported, the commit error still surfaces.
        try:
            self._release_transaction()
        except Exception as exc:
            self._emit_event(
                "txn.release",
                success=False,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )

    def _release_transaction(self) -> None:
        transaction, connection = self._transaction, self._connection
        self._transaction = None
        self._connection = None
        self._transaction_id = None
        self._transaction_started = None
        self._in_transaction = False
        try:
            if transaction is not None:
                transaction.dispose()
        finally:
            if connection is not None:
                self._close(connection)

    # ==================================================
    # Internal: Observability
    # ==================================================

    def _metadata(self) -> dict[str, Any]:
        settings = self.observability_settings
        return dict(settings.metadata) if settings is not None else {}

    def _emit_event(self, event: str, *, success: bool, **kwargs: Any) -> None:
        settings = self.observability_settings
        if settings is None or settings.event_observer is None:
            return

        kwargs.setdefault("transaction_id", self._transaction_id)
        settings.event_observer(
            ExecutionEvent(
                timestamp=datetime.now(timezone.utc).isoformat(),
                event=event,
                builder=self._builder_id,
                success=success,
                metadata=self._metadata(),
                **kwargs,
            )
        )

    def _emit_transaction_event(self, event: str, error: Exception | None = None) -> None:
        duration_ms = None
        if self._transaction_started is not None:
            duration_ms = (time.perf_counter() - self._transaction_started) * 1000
        self._emit_event(
            event,
            success=error is None,
            duration_ms=duration_ms,
            error_type=type(error).__name__ if error is not None else None,
            error_message=str(error) if error is not None else None,
        )

    def _observe_query(
        self,
        *,
        operation: str,
        sql: str,
        parameters: CommandParameters,
        command_kind: CommandKind,
        run: Callable[[], R],
    ) -> R:
        settings = self.observability_settings
        if settings is None:
            return run()

        query_id = uuid4().hex
        self._emit_event(
            "query.start",
            success=True,
            operation=operation,
            command_kind=command_kind.value,
            query_id=query_id,
        )

        in_transaction = self._in_transaction
        started = time.perf_counter()
        error: Exception | None = None
        try:
            return run()
        except Exception as exc:
            error = exc
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            if settings.query_observer is not None:
                settings.query_observer(
                    QueryObservation(
                        operation=operation,
                        command_kind=command_kind.value,
                        sql=sql,
                        param_count=len(parameters),
                        duration_ms=duration_ms,
                        succeeded=error is None,
                        in_transaction=in_transaction,
                        metadata=self._metadata(),
                        error_type=type(error).__name__ if error is not None else None,
                        error_message=str(error) if error is not None else None,
                    )
                )
            self._emit_event(
                "query.end",
                success=error is None,
                operation=operation,
                command_kind=command_kind.value,
                query_id=query_id,
                duration_ms=duration_ms,
                error_type=type(error).__name__ if error is not None else None,
                error_message=str(error) if error is not None else None,
            )
