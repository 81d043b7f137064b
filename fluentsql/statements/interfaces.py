from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, TypeVar

from fluentsql.entities.models import (
    DbType,
    JoinType,
    OutputParameter,
    StoredProcedureWithOutputResult,
)

T = TypeVar("T")

# ==================================================
# Capability Interfaces
# ==================================================
# Each clause method on FluentSqlBuilder is typed to return one of these
# protocols, so a type checker only offers the clauses legal at that point.
# The runtime state machine enforces the same graph for untyped callers.

ParameterSource = Mapping[str, Any] | object


# --------------------------------------------------
# Terminals
# --------------------------------------------------


class QueryEnd(Protocol):
    def to_dynamic(self) -> list[dict[str, Any]]: ...

    def to_dynamic_single(self) -> dict[str, Any] | None: ...

    def to_mapped_object(self, cls: type[T]) -> list[T]: ...

    def to_mapped_object_single(self, cls: type[T]) -> T | None: ...

    async def to_dynamic_async(self) -> list[dict[str, Any]]: ...

    async def to_dynamic_single_async(self) -> dict[str, Any] | None: ...

    async def to_mapped_object_async(self, cls: type[T]) -> list[T]: ...

    async def to_mapped_object_single_async(self, cls: type[T]) -> T | None: ...


class NonQueryEnd(Protocol):
    def execute(self) -> int: ...

    async def execute_async(self) -> int: ...


class StoredProcedureEnd(Protocol):
    def execute_non_query(self) -> int: ...

    def execute_to_dynamic(self) -> list[dict[str, Any]]: ...

    def execute_to_dynamic_single(self) -> dict[str, Any] | None: ...

    def execute_to_mapped_object(self, cls: type[T]) -> list[T]: ...

    def execute_to_mapped_object_single(self, cls: type[T]) -> T | None: ...

    async def execute_non_query_async(self) -> int: ...

    async def execute_to_dynamic_async(self) -> list[dict[str, Any]]: ...

    async def execute_to_dynamic_single_async(self) -> dict[str, Any] | None: ...

    async def execute_to_mapped_object_async(self, cls: type[T]) -> list[T]: ...

    async def execute_to_mapped_object_single_async(self, cls: type[T]) -> T | None: ...


class StoredProcedureOutputEnd(Protocol):
    def execute_non_query(self) -> StoredProcedureWithOutputResult[int]: ...

    def execute_to_dynamic(self) -> StoredProcedureWithOutputResult[list[dict[str, Any]]]: ...

    def execute_to_dynamic_single(self) -> StoredProcedureWithOutputResult[dict[str, Any] | None]: ...

    def execute_to_mapped_object(self, cls: type[T]) -> StoredProcedureWithOutputResult[list[T]]: ...

    def execute_to_mapped_object_single(self, cls: type[T]) -> StoredProcedureWithOutputResult[T | None]: ...

    async def execute_non_query_async(self) -> StoredProcedureWithOutputResult[int]: ...

    async def execute_to_dynamic_async(self) -> StoredProcedureWithOutputResult[list[dict[str, Any]]]: ...

    async def execute_to_dynamic_single_async(
        self,
    ) -> StoredProcedureWithOutputResult[dict[str, Any] | None]: ...

    async def execute_to_mapped_object_async(self, cls: type[T]) -> StoredProcedureWithOutputResult[list[T]]: ...

    async def execute_to_mapped_object_single_async(
        self, cls: type[T]
    ) -> StoredProcedureWithOutputResult[T | None]: ...


# --------------------------------------------------
# SELECT lineage
# --------------------------------------------------


class AscendingDescendingStatement(QueryEnd, Protocol):
    pass


class OrderByStatement(QueryEnd, Protocol):
    def ascending(self) -> AscendingDescendingStatement: ...

    def descending(self) -> AscendingDescendingStatement: ...


class _Orderable(Protocol):
    def order_by(self, *columns: str) -> OrderByStatement: ...


class HavingStatement(_Orderable, QueryEnd, Protocol):
    pass


class GroupByStatement(_Orderable, QueryEnd, Protocol):
    def having(self, condition: str, parameters: ParameterSource | None = None) -> HavingStatement: ...


class _Groupable(_Orderable, Protocol):
    def group_by(self, *columns: str) -> GroupByStatement: ...


class WhereStatement(_Groupable, QueryEnd, Protocol):
    pass


class _Filterable(_Groupable, Protocol):
    def where(self, condition: str, parameters: ParameterSource | None = None) -> WhereStatement: ...


class JoinOnWithNoLockStatement(_Filterable, QueryEnd, Protocol):
    pass


class JoinOnStatement(_Filterable, QueryEnd, Protocol):
    def with_no_lock(self) -> JoinOnWithNoLockStatement: ...


class JoinStatement(Protocol):
    def on(self, condition: str, parameters: ParameterSource | None = None) -> JoinOnStatement: ...


class _Joinable(_Filterable, Protocol):
    def join(
        self,
        table: str,
        join_type: JoinType | str = JoinType.INNER,
        alias: str | None = None,
    ) -> JoinStatement: ...


class FromWithNoLockStatement(_Joinable, QueryEnd, Protocol):
    pass


class FromStatement(_Joinable, QueryEnd, Protocol):
    def with_no_lock(self) -> FromWithNoLockStatement: ...


class _Sourceable(Protocol):
    def from_(self, table: str, alias: str | None = None) -> FromStatement: ...


class TopStatement(_Sourceable, QueryEnd, Protocol):
    pass


class DistinctStatement(_Sourceable, QueryEnd, Protocol):
    def top(self, n: int) -> TopStatement: ...


class SelectStatement(_Sourceable, QueryEnd, Protocol):
    def top(self, n: int) -> TopStatement: ...

    def distinct(self) -> DistinctStatement: ...


# --------------------------------------------------
# INSERT / UPDATE / DELETE lineage
# --------------------------------------------------


class InsertValuesStatement(NonQueryEnd, Protocol):
    pass


class InsertStatement(Protocol):
    def values(self, values: Mapping[str, Any]) -> InsertValuesStatement: ...


class NonQueryWhereStatement(NonQueryEnd, Protocol):
    pass


class UpdateSetStatement(NonQueryEnd, Protocol):
    def where(self, condition: str, parameters: ParameterSource | None = None) -> NonQueryWhereStatement: ...


class UpdateStatement(Protocol):
    def set(self, values: Mapping[str, Any]) -> UpdateSetStatement: ...


class DeleteStatement(NonQueryEnd, Protocol):
    def where(self, condition: str, parameters: ParameterSource | None = None) -> NonQueryWhereStatement: ...


# --------------------------------------------------
# Stored procedures
# --------------------------------------------------


class StoredProcedureOutputParameterStatement(StoredProcedureOutputEnd, Protocol):
    def with_output_parameter(
        self,
        parameter: OutputParameter | str,
        db_type: DbType | None = None,
        size: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
    ) -> StoredProcedureOutputParameterStatement: ...

    def with_output_parameters(
        self, parameters: Iterable[OutputParameter]
    ) -> StoredProcedureOutputParameterStatement: ...


class StoredProcedureParameterStatement(StoredProcedureEnd, Protocol):
    def with_parameter(self, name: str, value: Any) -> StoredProcedureParameterStatement: ...

    def with_parameters(self, parameters: ParameterSource) -> StoredProcedureParameterStatement: ...

    def with_output_parameter(
        self,
        parameter: OutputParameter | str,
        db_type: DbType | None = None,
        size: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
    ) -> StoredProcedureOutputParameterStatement: ...

    def with_output_parameters(
        self, parameters: Iterable[OutputParameter]
    ) -> StoredProcedureOutputParameterStatement: ...


class StoredProcedureStatement(StoredProcedureParameterStatement, Protocol):
    pass


# --------------------------------------------------
# Session entry point
# --------------------------------------------------


class FluentSql(Protocol):
    """
    What a freshly connected builder offers: entry methods, custom queries and session control.
    """

    @property
    def query(self) -> str | None: ...

    @property
    def name(self) -> str | None: ...

    @property
    def timeout(self) -> int | None: ...

    @property
    def in_transaction(self) -> bool: ...

    @property
    def parameters(self) -> dict[str, Any]: ...

    def select(self, *columns: str) -> SelectStatement: ...

    def select_all(self) -> SelectStatement: ...

    def insert_into(self, table: str) -> InsertStatement: ...

    def update(self, table: str) -> UpdateStatement: ...

    def delete_from(self, table: str) -> DeleteStatement: ...

    def store_procedure(self, name: str) -> StoredProcedureStatement: ...

    def execute_custom_query(
        self, sql: str, parameters: ParameterSource | None = None, cls: type[T] | None = None
    ) -> list[Any]: ...

    def execute_custom_query_single(
        self, sql: str, parameters: ParameterSource | None = None, cls: type[T] | None = None
    ) -> Any: ...

    def execute_custom_non_query(self, sql: str, parameters: ParameterSource | None = None) -> int: ...

    async def execute_custom_query_async(
        self, sql: str, parameters: ParameterSource | None = None, cls: type[T] | None = None
    ) -> list[Any]: ...

    async def execute_custom_query_single_async(
        self, sql: str, parameters: ParameterSource | None = None, cls: type[T] | None = None
    ) -> Any: ...

    async def execute_custom_non_query_async(self, sql: str, parameters: ParameterSource | None = None) -> int: ...

    def set_timeout(self, seconds: int | None) -> FluentSql: ...

    def begin_transaction(self) -> None: ...

    def commit_transaction(self) -> None: ...

    def rollback_transaction(self) -> None: ...

    def dispose(self) -> None: ...

    def __enter__(self) -> FluentSql: ...

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None: ...
