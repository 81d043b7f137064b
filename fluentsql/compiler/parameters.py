import re
from typing import Any, Mapping, Sequence

from fluentsql.compiler.compiled_query import CompiledQuery
from fluentsql.entities.models import ParameterBinding, normalize_parameter_name, strip_parameter_marker

# ==================================================
# Named Parameter Compilation
# ==================================================

# Literals, quoted identifiers and comments are matched first so that
# '@name' sequences inside them are never treated as placeholders.
_TOKEN_PATTERN = re.compile(
    r"""
    (?P<string>N?'(?:[^']|'')*')
    |(?P<bracketed>\[(?:[^\]]|\]\])*\])
    |(?P<quoted>"(?:[^"]|"")*")
    |(?P<line_comment>--[^\n]*)
    |(?P<block_comment>/\*.*?\*/)
    |(?P<system_variable>@@[\w$#]+)
    |(?P<parameter>@[\w$#]+)
    """,
    re.VERBOSE | re.DOTALL,
)


def compile_named_parameters(sql: str, parameters: Mapping[str, Any]) -> CompiledQuery:
    """
    Rewrites '@name' placeholders into '?' markers and collects the positional values.

    Names match case-insensitively. Placeholders with no bound value are kept as-is
    so batches can still reference their own local variables.
    """
    lookup: dict[str, tuple[str, Any]] = {}
    for name, value in parameters.items():
        placeholder = normalize_parameter_name(name)
        lookup[strip_parameter_marker(placeholder).lower()] = (placeholder, value)

    params: list[Any] = []
    names: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        token = match.group("parameter")
        if token is None:
            return match.group(0)
        bound = lookup.get(token[1:].lower())
        if bound is None:
            return token
        names.append(bound[0])
        params.append(bound[1])
        return "?"

    compiled_sql = _TOKEN_PATTERN.sub(_replace, sql)
    return CompiledQuery(sql=compiled_sql, params=params, parameter_names=names)


def compile_stored_procedure(
    name: str,
    inputs: Sequence[ParameterBinding],
    outputs: Sequence[ParameterBinding] = (),
) -> CompiledQuery:
    """
    Builds the T-SQL batch that runs a procedure with named bindings.

    Output bindings are declared as local variables, passed with OUTPUT and read
    back by a trailing SELECT whose columns carry the bare parameter names.
    """
    lines: list[str] = []
    for binding in outputs:
        lines.append(f"DECLARE {binding.name} {binding.sql_type} = NULL;")

    arguments = [f"{binding.name} = ?" for binding in inputs]
    arguments.extend(f"{binding.name} = {binding.name} OUTPUT" for binding in outputs)
    lines.append(f"EXEC {name} {', '.join(arguments)};" if arguments else f"EXEC {name};")

    if outputs:
        columns = ", ".join(f"{binding.name} AS [{binding.bare_name}]" for binding in outputs)
        lines.append(f"SELECT {columns};")

    return CompiledQuery(
        sql="\n".join(lines),
        params=[binding.value for binding in inputs],
        parameter_names=[binding.name for binding in inputs],
    )
