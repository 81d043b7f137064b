from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Mapping, TypeVar

from fluentsql.errors import argument_error

T = TypeVar("T")

PARAMETER_MARKER = "@"

# ==================================================
# Enums
# ==================================================


class JoinType(Enum):
    """
    The supported join kinds, valued by their SQL keyword.
    """

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL_OUTER = "FULL OUTER"

    @classmethod
    def keyword_for(cls, join_type: Any) -> str:
        """
        Resolves the JOIN keyword. Unrecognized values fall back to INNER.
        """
        if isinstance(join_type, JoinType):
            return join_type.value
        if isinstance(join_type, str):
            candidate = join_type.strip().upper().replace("_", " ")
            for member in cls:
                if candidate in (member.value, member.name.replace("_", " ")):
                    return member.value
        return cls.INNER.value


class DbType(Enum):
    """
    Semantic database types for stored-procedure output parameters, valued by their T-SQL type.
    """

    ANSI_STRING = "VARCHAR"
    ANSI_STRING_FIXED_LENGTH = "CHAR"
    STRING = "NVARCHAR"
    STRING_FIXED_LENGTH = "NCHAR"
    BINARY = "VARBINARY"
    BOOLEAN = "BIT"
    BYTE = "TINYINT"
    INT16 = "SMALLINT"
    INT32 = "INT"
    INT64 = "BIGINT"
    DECIMAL = "DECIMAL"
    CURRENCY = "MONEY"
    SINGLE = "REAL"
    DOUBLE = "FLOAT"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    DATETIME2 = "DATETIME2"
    DATETIME_OFFSET = "DATETIMEOFFSET"
    GUID = "UNIQUEIDENTIFIER"
    XML = "XML"

    def declaration(self, size: int | None = None, precision: int | None = None, scale: int | None = None) -> str:
        """
        Renders the T-SQL type used to DECLARE a variable of this type.
        """
        if self in _VARIABLE_LENGTH_TYPES:
            return f"{self.value}({size if size is not None and size > 0 else 'MAX'})"
        if self in _FIXED_LENGTH_TYPES:
            return f"{self.value}({size})" if size else self.value
        if self is DbType.DECIMAL:
            return f"{self.value}({precision if precision else 18}, {scale if scale is not None else 0})"
        if self in _FRACTIONAL_SECONDS_TYPES and scale is not None:
            return f"{self.value}({scale})"
        return self.value


_VARIABLE_LENGTH_TYPES = frozenset({DbType.ANSI_STRING, DbType.STRING, DbType.BINARY})
_FIXED_LENGTH_TYPES = frozenset({DbType.ANSI_STRING_FIXED_LENGTH, DbType.STRING_FIXED_LENGTH})
_FRACTIONAL_SECONDS_TYPES = frozenset({DbType.TIME, DbType.DATETIME2, DbType.DATETIME_OFFSET})


class ParameterDirection(Enum):
    INPUT = "input"
    OUTPUT = "output"


# ==================================================
# Parameter Naming
# ==================================================


def normalize_parameter_name(name: str) -> str:
    """
    Returns the placeholder form of a parameter name (always prefixed with '@').
    """
    return name if name.startswith(PARAMETER_MARKER) else f"{PARAMETER_MARKER}{name}"


def strip_parameter_marker(name: str) -> str:
    """
    Returns the bare form of a parameter name (a single leading '@' removed).
    """
    return name[len(PARAMETER_MARKER):] if name.startswith(PARAMETER_MARKER) else name


# ==================================================
# Value Objects
# ==================================================


@dataclass(frozen=True)
class OutputParameter:
    """
    Declares a stored-procedure output parameter. The name is always stored bare.
    """

    name: str
    db_type: DbType
    size: int | None = None
    precision: int | None = None
    scale: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not strip_parameter_marker(self.name).strip():
            raise argument_error("OutputParameter", "Output parameter name must be a non-empty string.")
        if not isinstance(self.db_type, DbType):
            raise argument_error("OutputParameter", f"db_type must be a DbType, got {self.db_type!r}.")
        if self.size is not None and self.size < 0:
            raise argument_error("OutputParameter", "size must be >= 0.")
        for label, value in (("precision", self.precision), ("scale", self.scale)):
            if value is not None and not 0 <= value <= 255:
                raise argument_error("OutputParameter", f"{label} must be between 0 and 255.")
        object.__setattr__(self, "name", strip_parameter_marker(self.name))

    @property
    def placeholder(self) -> str:
        return normalize_parameter_name(self.name)

    @property
    def sql_type(self) -> str:
        return self.db_type.declaration(self.size, self.precision, self.scale)


@dataclass(slots=True)
class ParameterBinding:
    """
    A single named binding handed to the data-access layer.
    """

    name: str
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    db_type: DbType | None = None
    size: int | None = None
    precision: int | None = None
    scale: int | None = None

    @property
    def bare_name(self) -> str:
        return strip_parameter_marker(self.name)

    @property
    def sql_type(self) -> str:
        if self.db_type is None:
            raise argument_error("ParameterBinding", f"Binding {self.name} has no declared type.")
        return self.db_type.declaration(self.size, self.precision, self.scale)


@dataclass(frozen=True)
class StoredProcedureWithOutputResult(Generic[T]):
    """
    The value produced by a stored procedure paired with its resolved output parameters.
    """

    return_value: T
    output_parameters: Mapping[str, Any] = field(default_factory=dict)
