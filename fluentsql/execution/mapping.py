import dataclasses
from typing import Any, Mapping, TypeVar

T = TypeVar("T")

# ==================================================
# Row Mapping
# ==================================================

_SCALAR_TYPES = (int, float, str, bool, bytes)


def map_row(row: Mapping[str, Any], cls: type[T]) -> T:
    """
    Maps one column-keyed row onto `cls`.

    - scalar types take the first column's value
    - dataclasses bind columns to init fields case-insensitively, ignoring extra columns
    - classes exposing `model_validate` (pydantic models) validate the row
    - any other class is called with the columns as keyword arguments
    """
    if cls in _SCALAR_TYPES:
        value = next(iter(row.values()), None)
        if value is None or isinstance(value, cls):
            return value  # type: ignore[return-value]
        return cls(value)  # type: ignore[call-arg]

    if dataclasses.is_dataclass(cls):
        fields = {f.name.lower(): f.name for f in dataclasses.fields(cls) if f.init}
        kwargs = {fields[column.lower()]: value for column, value in row.items() if column.lower() in fields}
        return cls(**kwargs)

    if cls is dict:
        return dict(row)  # type: ignore[return-value]

    validate = getattr(cls, "model_validate", None)
    if callable(validate):
        return validate(dict(row))  # type: ignore[no-any-return]

    return cls(**row)


def map_rows(rows: list[dict[str, Any]], cls: type[T]) -> list[T]:
    return [map_row(row, cls) for row in rows]
