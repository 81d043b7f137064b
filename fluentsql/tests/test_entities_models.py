import pytest

from fluentsql.entities.models import (
    DbType,
    JoinType,
    OutputParameter,
    StoredProcedureWithOutputResult,
    normalize_parameter_name,
    strip_parameter_marker,
)
from fluentsql.errors import ArgumentError, ErrorDetails, FluentSqlError
from fluentsql.execution.parameters import CommandParameters


def test_parameter_name_normalization() -> None:
    assert normalize_parameter_name("id") == "@id"
    assert normalize_parameter_name("@id") == "@id"
    assert strip_parameter_marker("@id") == "id"
    assert strip_parameter_marker("id") == "id"


def test_output_parameter_strips_marker() -> None:
    parameter = OutputParameter("@total", DbType.INT32)
    assert parameter.name == "total"
    assert parameter.placeholder == "@total"


@pytest.mark.parametrize(
    "parameter,expected",
    [
        (OutputParameter("a", DbType.STRING), "NVARCHAR(MAX)"),
        (OutputParameter("a", DbType.ANSI_STRING, size=20), "VARCHAR(20)"),
        (OutputParameter("a", DbType.STRING_FIXED_LENGTH, size=3), "NCHAR(3)"),
        (OutputParameter("a", DbType.DECIMAL), "DECIMAL(18, 0)"),
        (OutputParameter("a", DbType.DECIMAL, precision=10, scale=2), "DECIMAL(10, 2)"),
        (OutputParameter("a", DbType.DATETIME2, scale=3), "DATETIME2(3)"),
        (OutputParameter("a", DbType.GUID), "UNIQUEIDENTIFIER"),
        (OutputParameter("a", DbType.BOOLEAN), "BIT"),
    ],
)
def test_output_parameter_sql_type(parameter: OutputParameter, expected: str) -> None:
    assert parameter.sql_type == expected


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "", "db_type": DbType.INT32},
        {"name": "@", "db_type": DbType.INT32},
        {"name": "a", "db_type": "INT"},
        {"name": "a", "db_type": DbType.STRING, "size": -1},
        {"name": "a", "db_type": DbType.DECIMAL, "precision": 300},
    ],
)
def test_output_parameter_validation(kwargs) -> None:
    with pytest.raises(ArgumentError):
        OutputParameter(**kwargs)


def test_output_parameter_is_immutable() -> None:
    parameter = OutputParameter("a", DbType.INT32)
    with pytest.raises(AttributeError):
        parameter.name = "b"


def test_join_type_keywords() -> None:
    assert JoinType.keyword_for(JoinType.LEFT) == "LEFT"
    assert JoinType.keyword_for("full outer") == "FULL OUTER"
    assert JoinType.keyword_for(None) == "INNER"


def test_stored_procedure_result_pairs_value_and_outputs() -> None:
    result = StoredProcedureWithOutputResult(return_value=[{"id": 1}], output_parameters={"total": 1})
    assert result.return_value == [{"id": 1}]
    assert result.output_parameters["total"] == 1


def test_command_parameters_share_one_namespace() -> None:
    parameters = CommandParameters({"id": 1})
    parameters.add("@name", "Ada")
    parameters.add_output(OutputParameter("total", DbType.INT32))

    assert "@id" in parameters and "name" in parameters
    assert parameters.parameter_names == ["id", "name", "total"]
    assert parameters.input_values() == {"@id": 1, "@name": "Ada"}
    assert [binding.name for binding in parameters.outputs] == ["@total"]
    assert len(parameters) == 3

    parameters.set_output("total", 5)
    assert parameters.get("@total") == 5

    with pytest.raises(KeyError):
        parameters.set_output("id", 2)

    parameters.discard("total")
    parameters.discard("missing")
    assert parameters.parameter_names == ["id", "name"]


def test_error_messages_carry_operation_and_state() -> None:
    error = ArgumentError(ErrorDetails(operation="values", message="empty", state="insert"))
    assert isinstance(error, FluentSqlError)
    assert isinstance(error, ValueError)
    assert str(error) == "[values@insert] ArgumentError: empty"
