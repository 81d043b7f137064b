from enum import Enum

from fluentsql.errors import state_error

# ==================================================
# Statement States
# ==================================================


class StatementState(Enum):
    START = "start"
    SELECT = "select"
    DISTINCT = "distinct"
    TOP = "top"
    FROM = "from"
    FROM_WITH_NO_LOCK = "from_with_no_lock"
    JOIN = "join"
    JOIN_ON = "join_on"
    JOIN_ON_WITH_NO_LOCK = "join_on_with_no_lock"
    WHERE = "where"
    GROUP_BY = "group_by"
    HAVING = "having"
    ORDER_BY = "order_by"
    ORDER_DIRECTION = "order_direction"
    INSERT = "insert"
    INSERT_VALUES = "insert_values"
    UPDATE = "update"
    UPDATE_SET = "update_set"
    DELETE = "delete"
    NON_QUERY_WHERE = "non_query_where"
    STORED_PROCEDURE = "stored_procedure"
    STORED_PROCEDURE_PARAMETERS = "stored_procedure_parameters"
    STORED_PROCEDURE_OUTPUT_PARAMETERS = "stored_procedure_output_parameters"


S = StatementState

# Entry methods are legal from every state and start a new statement.
ENTRY_TRANSITIONS: dict[str, StatementState] = {
    "select": S.SELECT,
    "select_all": S.SELECT,
    "insert_into": S.INSERT,
    "update": S.UPDATE,
    "delete_from": S.DELETE,
    "store_procedure": S.STORED_PROCEDURE,
}

_SP_PARAMETER_STEPS = {
    "with_parameter": S.STORED_PROCEDURE_PARAMETERS,
    "with_parameters": S.STORED_PROCEDURE_PARAMETERS,
    "with_output_parameter": S.STORED_PROCEDURE_OUTPUT_PARAMETERS,
    "with_output_parameters": S.STORED_PROCEDURE_OUTPUT_PARAMETERS,
}

TRANSITIONS: dict[StatementState, dict[str, StatementState]] = {
    S.START: {},
    S.SELECT: {"top": S.TOP, "distinct": S.DISTINCT, "from_": S.FROM},
    S.DISTINCT: {"top": S.TOP, "from_": S.FROM},
    S.TOP: {"from_": S.FROM},
    S.FROM: {
        "with_no_lock": S.FROM_WITH_NO_LOCK,
        "join": S.JOIN,
        "where": S.WHERE,
        "group_by": S.GROUP_BY,
        "order_by": S.ORDER_BY,
    },
    S.FROM_WITH_NO_LOCK: {
        "join": S.JOIN,
        "where": S.WHERE,
        "group_by": S.GROUP_BY,
        "order_by": S.ORDER_BY,
    },
    S.JOIN: {"on": S.JOIN_ON},
    S.JOIN_ON: {
        "with_no_lock": S.JOIN_ON_WITH_NO_LOCK,
        "where": S.WHERE,
        "group_by": S.GROUP_BY,
        "order_by": S.ORDER_BY,
    },
    S.JOIN_ON_WITH_NO_LOCK: {"where": S.WHERE, "group_by": S.GROUP_BY, "order_by": S.ORDER_BY},
    S.WHERE: {"group_by": S.GROUP_BY, "order_by": S.ORDER_BY},
    S.GROUP_BY: {"having": S.HAVING, "order_by": S.ORDER_BY},
    S.HAVING: {"order_by": S.ORDER_BY},
    S.ORDER_BY: {"ascending": S.ORDER_DIRECTION, "descending": S.ORDER_DIRECTION},
    S.ORDER_DIRECTION: {},
    S.INSERT: {"values": S.INSERT_VALUES},
    S.INSERT_VALUES: {},
    S.UPDATE: {"set": S.UPDATE_SET},
    S.UPDATE_SET: {"where": S.NON_QUERY_WHERE},
    S.DELETE: {"where": S.NON_QUERY_WHERE},
    S.NON_QUERY_WHERE: {},
    S.STORED_PROCEDURE: dict(_SP_PARAMETER_STEPS),
    S.STORED_PROCEDURE_PARAMETERS: dict(_SP_PARAMETER_STEPS),
    S.STORED_PROCEDURE_OUTPUT_PARAMETERS: {
        "with_output_parameter": S.STORED_PROCEDURE_OUTPUT_PARAMETERS,
        "with_output_parameters": S.STORED_PROCEDURE_OUTPUT_PARAMETERS,
    },
}

# ==================================================
# Terminal Capabilities
# ==================================================

QUERY_END = "query_end"
NON_QUERY_END = "non_query_end"
STORED_PROCEDURE_END = "stored_procedure_end"
STORED_PROCEDURE_OUTPUT_END = "stored_procedure_output_end"

# JOIN is absent: a join without ON is incomplete.
CAPABILITIES: dict[str, frozenset[StatementState]] = {
    QUERY_END: frozenset(
        {
            S.SELECT,
            S.DISTINCT,
            S.TOP,
            S.FROM,
            S.FROM_WITH_NO_LOCK,
            S.JOIN_ON,
            S.JOIN_ON_WITH_NO_LOCK,
            S.WHERE,
            S.GROUP_BY,
            S.HAVING,
            S.ORDER_BY,
            S.ORDER_DIRECTION,
        }
    ),
    NON_QUERY_END: frozenset({S.INSERT_VALUES, S.UPDATE_SET, S.NON_QUERY_WHERE, S.DELETE}),
    STORED_PROCEDURE_END: frozenset({S.STORED_PROCEDURE, S.STORED_PROCEDURE_PARAMETERS}),
    STORED_PROCEDURE_OUTPUT_END: frozenset({S.STORED_PROCEDURE_OUTPUT_PARAMETERS}),
}


def next_state(current: StatementState, method: str) -> StatementState:
    """
    Returns the state reached by calling `method` from `current`.

    Raises:
        StatementStateError: If `method` is not legal from `current`.
    """
    if method in ENTRY_TRANSITIONS:
        return ENTRY_TRANSITIONS[method]
    target = TRANSITIONS[current].get(method)
    if target is None:
        allowed = ", ".join(allowed_operations(current)) or "none"
        raise state_error(
            method,
            f"'{method}' is not legal here. Allowed: {allowed}.",
            state=current.value,
        )
    return target


def require_capability(current: StatementState, capability: str, operation: str) -> None:
    """
    Raises StatementStateError unless `current` offers the given terminal capability.
    """
    if current not in CAPABILITIES[capability]:
        raise state_error(
            operation,
            f"'{operation}' cannot run a statement in state '{current.value}'.",
            state=current.value,
        )


def allowed_operations(current: StatementState) -> list[str]:
    operations = list(TRANSITIONS[current])
    operations.extend(capability for capability, states in CAPABILITIES.items() if current in states)
    return operations
