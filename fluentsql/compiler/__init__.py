from fluentsql.compiler.compiled_query import CompiledQuery
from fluentsql.compiler.parameters import compile_named_parameters, compile_stored_procedure
from fluentsql.entities.models import normalize_parameter_name, strip_parameter_marker

__all__ = [
    "CompiledQuery",
    "compile_named_parameters",
    "compile_stored_procedure",
    "normalize_parameter_name",
    "strip_parameter_marker",
]
