from fluentsql.entities.models import (
    DbType,
    JoinType,
    OutputParameter,
    ParameterBinding,
    ParameterDirection,
    StoredProcedureWithOutputResult,
    normalize_parameter_name,
    strip_parameter_marker,
)

__all__ = [
    "DbType",
    "JoinType",
    "OutputParameter",
    "ParameterBinding",
    "ParameterDirection",
    "StoredProcedureWithOutputResult",
    "normalize_parameter_name",
    "strip_parameter_marker",
]
