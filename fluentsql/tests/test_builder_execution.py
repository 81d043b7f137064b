from dataclasses import dataclass

import pytest

from fluentsql.builder import FluentSqlBuilder
from fluentsql.config import set_global_timeout
from fluentsql.entities.models import DbType, OutputParameter, StoredProcedureWithOutputResult
from fluentsql.errors import ArgumentError, StatementStateError
from fluentsql.execution.base import CommandKind, ConnectionState


@dataclass
class User:
    id: int
    name: str


def test_to_dynamic_opens_and_closes_a_connection(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}]

    rows = builder.select("id", "name").from_("Users").to_dynamic()

    assert rows == [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}]
    assert len(fake_access.connections) == 1
    connection = fake_access.connections[0]
    assert connection.connection_string == "Server=test;Database=app"
    assert connection.opens == 1
    assert connection.state is ConnectionState.CLOSED
    call = fake_access.calls[0]
    assert call.sql == "SELECT id, name FROM Users"
    assert call.transaction is None
    assert call.command_kind is CommandKind.TEXT


def test_single_terminals_return_first_row_or_none(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}]
    assert builder.select_all().from_("Users").to_dynamic_single() == {"id": 1, "name": "Ada"}
    assert builder.to_mapped_object_single(User) == User(id=1, name="Ada")

    fake_access.rows = []
    assert builder.to_dynamic_single() is None
    assert builder.to_mapped_object_single(User) is None
    assert builder.to_dynamic() == []


def test_to_mapped_object(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"ID": 1, "Name": "Ada", "extra": True}]
    users = builder.select_all().from_("Users").where("id = @id", {"id": 1}).to_mapped_object(User)
    assert users == [User(id=1, name="Ada")]
    assert fake_access.calls[0].inputs == {"@id": 1}


def test_update_execute_returns_affected_rows(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.affected = 3
    affected = builder.update("Users").set({"age": 31}).where("id = @id", {"id": 7}).execute()
    assert affected == 3
    assert fake_access.calls[0].inputs == {"@age": 31, "@id": 7}
    assert fake_access.calls[0].method == "execute"


def test_delete_without_where_still_executes(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.affected = 12
    assert builder.delete_from("Users").execute() == 12
    assert fake_access.calls[0].sql == "DELETE FROM Users"


def test_insert_execute(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.affected = 1
    assert builder.insert_into("Users").values({"name": "Ada", "age": 30}).execute() == 1
    assert fake_access.calls[0].inputs == {"@name": "Ada", "@age": 30}


@pytest.mark.parametrize(
    "chain,terminal",
    [
        (lambda b: b.insert_into("Users"), "execute"),
        (lambda b: b.update("Users"), "execute"),
        (lambda b: b.select_all().from_("A").join("B"), "to_dynamic"),
    ],
)
def test_incomplete_statements_cannot_execute(builder: FluentSqlBuilder, fake_access, chain, terminal) -> None:
    statement = chain(builder)
    with pytest.raises(StatementStateError):
        getattr(statement, terminal)()
    assert fake_access.connections == []


def test_query_terminal_rejected_on_non_query(builder: FluentSqlBuilder) -> None:
    with pytest.raises(StatementStateError):
        builder.delete_from("Users").to_dynamic()
    with pytest.raises(StatementStateError):
        builder.select_all().from_("Users").execute()


def test_execution_errors_propagate_and_connection_is_released(builder: FluentSqlBuilder, fake_access) -> None:
    failure = RuntimeError("deadlock victim")
    fake_access.error = failure

    with pytest.raises(RuntimeError) as excinfo:
        builder.select_all().from_("Users").to_dynamic()

    assert excinfo.value is failure
    assert fake_access.connections[0].state is ConnectionState.CLOSED
    assert fake_access.connections[0].closes == 1


def test_terminal_does_not_change_state(builder: FluentSqlBuilder, fake_access) -> None:
    builder.select_all().from_("Users").where("id = @id", {"id": 1})
    builder.to_dynamic()
    builder.to_dynamic()
    assert builder.query == "SELECT * FROM Users WHERE id = @id"
    assert len(fake_access.calls) == 2


# ==================================================
# Timeouts
# ==================================================


def test_timeout_defaults_to_none(builder: FluentSqlBuilder, fake_access) -> None:
    assert builder.timeout is None
    builder.select_all().from_("T").to_dynamic()
    assert fake_access.calls[0].timeout is None


def test_global_timeout_applies_when_no_override(builder: FluentSqlBuilder, fake_access) -> None:
    FluentSqlBuilder.set_global_timeout(45)
    assert builder.timeout == 45
    builder.select_all().from_("T").to_dynamic()
    assert fake_access.calls[0].timeout == 45


def test_override_wins_over_global_timeout(builder: FluentSqlBuilder, fake_access) -> None:
    set_global_timeout(45)
    builder.set_timeout(5).select_all().from_("T").to_dynamic()
    assert builder.timeout == 5
    assert fake_access.calls[0].timeout == 5

    builder.set_timeout(None)
    assert builder.timeout == 45


@pytest.mark.parametrize("value", [-1, "10", 1.5])
def test_set_timeout_validates(builder: FluentSqlBuilder, value) -> None:
    with pytest.raises(ArgumentError):
        builder.set_timeout(value)


# ==================================================
# Stored procedures
# ==================================================


def test_stored_procedure_without_outputs_returns_bare_value(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.affected = 2
    result = builder.store_procedure("dbo.Touch").with_parameter("id", 5).execute_non_query()

    assert result == 2
    call = fake_access.calls[0]
    assert call.sql == "dbo.Touch"
    assert call.command_kind is CommandKind.STORED_PROCEDURE
    assert call.inputs == {"@id": 5}


def test_stored_procedure_with_parameters_from_mapping(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"id": 1, "name": "Ada"}]
    rows = builder.store_procedure("dbo.Find").with_parameters({"name": "Ada", "@active": True}).execute_to_dynamic()
    assert rows == [{"id": 1, "name": "Ada"}]
    assert fake_access.calls[0].inputs == {"@name": "Ada", "@active": True}
    assert builder.parameters == {"@name": "Ada", "@active": True}


def test_stored_procedure_mapped_terminals(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"id": 1, "name": "Ada"}]
    builder.store_procedure("dbo.Find")
    assert builder.execute_to_mapped_object(User) == [User(id=1, name="Ada")]
    assert builder.execute_to_mapped_object_single(User) == User(id=1, name="Ada")
    assert builder.execute_to_dynamic_single() == {"id": 1, "name": "Ada"}


def test_duplicate_stored_procedure_parameter_is_rejected(builder: FluentSqlBuilder) -> None:
    builder.store_procedure("dbo.Touch").with_parameter("id", 5)
    with pytest.raises(ArgumentError):
        builder.with_parameter("@id", 6)
    assert builder.parameters == {"@id": 5}


def test_output_parameters_are_returned_with_value(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.affected = 1
    fake_access.outputs = {"total": 42, "label": "ok"}

    result = (
        builder.store_procedure("dbo.Summarize")
        .with_parameter("id", 9)
        .with_output_parameter("@total", DbType.INT32)
        .with_output_parameter(OutputParameter("label", DbType.STRING, size=50))
        .execute_non_query()
    )

    assert isinstance(result, StoredProcedureWithOutputResult)
    assert result.return_value == 1
    assert result.output_parameters == {"total": 42, "label": "ok"}
    outputs = fake_access.calls[0].parameters
    assert [binding.name for binding in fake_access.calls[0].parameters.inputs] == ["@id"]
    assert outputs.get("total") == 42


def test_unbound_output_parameters_are_omitted(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"x": 1}]
    fake_access.outputs = {"p1": "first"}

    result = (
        builder.store_procedure("dbo.Partial")
        .with_output_parameters(
            [OutputParameter("p1", DbType.STRING, size=10), OutputParameter("p2", DbType.INT32)]
        )
        .execute_to_dynamic()
    )

    assert result.return_value == [{"x": 1}]
    assert result.output_parameters == {"p1": "first"}


def test_input_parameters_are_closed_after_outputs(builder: FluentSqlBuilder) -> None:
    builder.store_procedure("dbo.P").with_output_parameter("out", DbType.INT32)
    with pytest.raises(StatementStateError):
        builder.with_parameter("id", 1)


def test_output_parameter_name_clash_is_rejected(builder: FluentSqlBuilder) -> None:
    builder.store_procedure("dbo.P").with_parameter("id", 1)
    with pytest.raises(ArgumentError):
        builder.with_output_parameter("ID", DbType.INT32)
    with pytest.raises(ArgumentError):
        builder.with_output_parameters([OutputParameter("a", DbType.INT32), OutputParameter("@a", DbType.INT32)])


def test_store_procedure_requires_a_name(builder: FluentSqlBuilder) -> None:
    with pytest.raises(ArgumentError):
        builder.store_procedure(" ")


def test_stored_procedure_terminal_rejected_in_statement_mode(builder: FluentSqlBuilder) -> None:
    with pytest.raises(StatementStateError):
        builder.select_all().from_("T").execute_non_query()


# ==================================================
# Custom queries
# ==================================================


def test_custom_query_leaves_builder_text_alone(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"id": 1, "name": "Ada"}]
    builder.select("id").from_("Users")

    rows = builder.execute_custom_query("SELECT id, name FROM Users WHERE id = @id", {"id": 1})
    mapped = builder.execute_custom_query("SELECT id, name FROM Users", cls=User)

    assert rows == [{"id": 1, "name": "Ada"}]
    assert mapped == [User(id=1, name="Ada")]
    assert builder.query == "SELECT id FROM Users"
    assert fake_access.calls[0].inputs == {"@id": 1}


def test_custom_query_single_and_non_query(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = []
    fake_access.affected = 4
    assert builder.execute_custom_query_single("SELECT 1") is None
    assert builder.execute_custom_query_single("SELECT 1", cls=User) is None
    assert builder.execute_custom_non_query("DELETE FROM Logs WHERE at < @cutoff", {"cutoff": 1}) == 4


def test_custom_query_requires_sql(builder: FluentSqlBuilder) -> None:
    with pytest.raises(ArgumentError):
        builder.execute_custom_query("")


def test_connect_returns_a_builder(fake_access) -> None:
    sql = FluentSqlBuilder.connect("Server=x", data_access=fake_access)
    assert isinstance(sql, FluentSqlBuilder)
    assert sql.query is None
    assert sql.in_transaction is False
    assert fake_access.connections == []


def test_connect_requires_a_connection_string(fake_access) -> None:
    with pytest.raises(ArgumentError):
        FluentSqlBuilder.connect("", data_access=fake_access)
