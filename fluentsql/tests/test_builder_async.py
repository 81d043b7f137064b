from dataclasses import dataclass

import pytest

from fluentsql.builder import FluentSqlBuilder
from fluentsql.entities.models import DbType
from fluentsql.errors import StatementStateError


@dataclass
class Product:
    id: int
    title: str


@pytest.mark.asyncio
async def test_query_terminals_async(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"id": 1, "title": "Lamp"}]
    builder.select_all().from_("Products")

    assert await builder.to_dynamic_async() == [{"id": 1, "title": "Lamp"}]
    assert await builder.to_dynamic_single_async() == {"id": 1, "title": "Lamp"}
    assert await builder.to_mapped_object_async(Product) == [Product(id=1, title="Lamp")]
    assert await builder.to_mapped_object_single_async(Product) == Product(id=1, title="Lamp")


@pytest.mark.asyncio
async def test_execute_async(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.affected = 5
    assert await builder.update("Products").set({"title": "Desk"}).execute_async() == 5


@pytest.mark.asyncio
async def test_stored_procedure_async(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.affected = 1
    fake_access.outputs = {"new_id": 10}

    builder.store_procedure("dbo.CreateProduct").with_parameter("title", "Lamp")
    assert await builder.execute_non_query_async() == 1

    builder.with_output_parameter("new_id", DbType.INT64)
    result = await builder.execute_non_query_async()
    assert result.output_parameters == {"new_id": 10}


@pytest.mark.asyncio
async def test_custom_queries_async(builder: FluentSqlBuilder, fake_access) -> None:
    fake_access.rows = [{"id": 2, "title": "Desk"}]
    fake_access.affected = 7

    assert await builder.execute_custom_query_async("SELECT * FROM Products") == [{"id": 2, "title": "Desk"}]
    assert await builder.execute_custom_query_single_async("SELECT * FROM Products", cls=Product) == Product(
        id=2, title="Desk"
    )
    assert await builder.execute_custom_non_query_async("DELETE FROM Products WHERE id = @id", {"id": 2}) == 7


@pytest.mark.asyncio
async def test_async_terminal_state_errors_surface_on_await(builder: FluentSqlBuilder) -> None:
    builder.insert_into("Products")
    with pytest.raises(StatementStateError):
        await builder.execute_async()
