from fluentsql.statements.interfaces import (
    AscendingDescendingStatement,
    DeleteStatement,
    DistinctStatement,
    FluentSql,
    FromStatement,
    FromWithNoLockStatement,
    GroupByStatement,
    HavingStatement,
    InsertStatement,
    InsertValuesStatement,
    JoinOnStatement,
    JoinOnWithNoLockStatement,
    JoinStatement,
    NonQueryEnd,
    NonQueryWhereStatement,
    OrderByStatement,
    QueryEnd,
    SelectStatement,
    StoredProcedureEnd,
    StoredProcedureOutputEnd,
    StoredProcedureOutputParameterStatement,
    StoredProcedureParameterStatement,
    StoredProcedureStatement,
    TopStatement,
    UpdateSetStatement,
    UpdateStatement,
    WhereStatement,
)
from fluentsql.statements.state_machine import (
    CAPABILITIES,
    ENTRY_TRANSITIONS,
    NON_QUERY_END,
    QUERY_END,
    STORED_PROCEDURE_END,
    STORED_PROCEDURE_OUTPUT_END,
    TRANSITIONS,
    StatementState,
    allowed_operations,
    next_state,
    require_capability,
)

__all__ = [
    "StatementState",
    "ENTRY_TRANSITIONS",
    "TRANSITIONS",
    "CAPABILITIES",
    "QUERY_END",
    "NON_QUERY_END",
    "STORED_PROCEDURE_END",
    "STORED_PROCEDURE_OUTPUT_END",
    "allowed_operations",
    "next_state",
    "require_capability",
    "FluentSql",
    "SelectStatement",
    "DistinctStatement",
    "TopStatement",
    "FromStatement",
    "FromWithNoLockStatement",
    "JoinStatement",
    "JoinOnStatement",
    "JoinOnWithNoLockStatement",
    "WhereStatement",
    "GroupByStatement",
    "HavingStatement",
    "OrderByStatement",
    "AscendingDescendingStatement",
    "QueryEnd",
    "InsertStatement",
    "InsertValuesStatement",
    "UpdateStatement",
    "UpdateSetStatement",
    "DeleteStatement",
    "NonQueryWhereStatement",
    "NonQueryEnd",
    "StoredProcedureStatement",
    "StoredProcedureParameterStatement",
    "StoredProcedureOutputParameterStatement",
    "StoredProcedureEnd",
    "StoredProcedureOutputEnd",
]
