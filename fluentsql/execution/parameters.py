from typing import Any, Iterator, Mapping

from fluentsql.entities.models import (
    OutputParameter,
    ParameterBinding,
    ParameterDirection,
    normalize_parameter_name,
    strip_parameter_marker,
)

# ==================================================
# Command Parameters
# ==================================================


class CommandParameters:
    """
    The named binding set for one command.

    Input and output bindings share one namespace keyed by the '@'-prefixed name.
    The data-access layer writes resolved output values back into this object,
    and drops output bindings it could not bind.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._bindings: dict[str, ParameterBinding] = {}
        for name, value in (values or {}).items():
            self.add(name, value)

    def add(self, name: str, value: Any) -> None:
        placeholder = normalize_parameter_name(name)
        self._bindings[placeholder] = ParameterBinding(name=placeholder, value=value)

    def add_output(self, parameter: OutputParameter) -> None:
        placeholder = parameter.placeholder
        self._bindings[placeholder] = ParameterBinding(
            name=placeholder,
            value=None,
            direction=ParameterDirection.OUTPUT,
            db_type=parameter.db_type,
            size=parameter.size,
            precision=parameter.precision,
            scale=parameter.scale,
        )

    def get(self, name: str) -> Any:
        return self._bindings[normalize_parameter_name(name)].value

    def set_output(self, name: str, value: Any) -> None:
        binding = self._bindings[normalize_parameter_name(name)]
        if binding.direction is not ParameterDirection.OUTPUT:
            raise KeyError(f"{binding.name} is not an output parameter.")
        binding.value = value

    def discard(self, name: str) -> None:
        self._bindings.pop(normalize_parameter_name(name), None)

    @property
    def parameter_names(self) -> list[str]:
        """
        Bare names of every binding currently held.
        """
        return [strip_parameter_marker(name) for name in self._bindings]

    @property
    def inputs(self) -> list[ParameterBinding]:
        return [b for b in self._bindings.values() if b.direction is ParameterDirection.INPUT]

    @property
    def outputs(self) -> list[ParameterBinding]:
        return [b for b in self._bindings.values() if b.direction is ParameterDirection.OUTPUT]

    def input_values(self) -> dict[str, Any]:
        return {binding.name: binding.value for binding in self.inputs}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_parameter_name(name) in self._bindings

    def __iter__(self) -> Iterator[ParameterBinding]:
        return iter(list(self._bindings.values()))

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"CommandParameters({list(self._bindings.values())!r})"
