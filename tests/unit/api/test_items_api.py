"""Tests for the items endpoints."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest
from opentelemetry.trace import SpanKind, StatusCode

from cloudnative.db.errors import ConnectionError
from cloudnative.items.models import Item
from cloudnative.items.store import ItemStore
from cloudnative.items.stores.inmemory import InMemoryItemStore
from cloudnative.items.stores.postgres import PostgresItemStore


class UnavailableItemStore(ItemStore):
    """Every operation fails as if the database were down."""

    async def list_items(self) -> list[Item]:
        raise ConnectionError("connection refused")

    async def create_item(self, name: str | None, description: str | None) -> Item:
        raise ConnectionError("connection refused")

    async def delete_item(self, item_id: str) -> int:
        raise ConnectionError("connection refused")


class FlakyItemStore(InMemoryItemStore):
    """Fails the first insert, then behaves normally."""

    def __init__(self) -> None:
        super().__init__()
        self.failures_left = 1

    async def create_item(self, name: str | None, description: str | None) -> Item:
        if self.failures_left:
            self.failures_left -= 1
            raise ConnectionError("connection reset by peer")
        return await super().create_item(name, description)


class OneConnectionPool:
    """Hands out a single mocked asyncpg connection."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[Any]:
        yield self.connection


def request_count(telemetry, method: str, route: str, status: int) -> float | None:
    return telemetry.metrics.registry.get_sample_value(
        "api_requests_total",
        {"method": method, "route": route, "status_code": str(status)},
    )


class TestCreateAndList:
    """Creating and listing items."""

    def test_created_item_listed_first(self, client):
        """A new item gets an id and is listed ahead of older ones."""
        client.post("/api/items", json={"name": "older"})

        response = client.post("/api/items", json={"name": "foo", "description": "bar"})

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "foo"
        assert created["description"] == "bar"
        assert isinstance(created["id"], int)
        assert created["created_at"] is not None

        listed = client.get("/api/items").json()
        assert [item["id"] for item in listed] == [created["id"], created["id"] - 1]
        assert listed[0]["name"] == "foo"

    def test_list_empty(self, client):
        response = client.get("/api/items")

        assert response.status_code == 200
        assert response.json() == []

    def test_list_updates_item_gauge(self, client, telemetry):
        """Listing sets db_items_total to the number of rows returned."""
        client.post("/api/items", json={"name": "a"})
        client.post("/api/items", json={"name": "b"})

        client.get("/api/items")

        assert telemetry.metrics.registry.get_sample_value("db_items_total") == 2

    def test_gauge_unchanged_by_create(self, client, telemetry):
        """Only a list observes the row count."""
        client.post("/api/items", json={"name": "a"})

        assert telemetry.metrics.registry.get_sample_value("db_items_total") == 0

    def test_name_longer_than_column_fails_at_store(self, client, spans_named):
        """Over-long names reach the store and fail there like any insert error."""
        response = client.post("/api/items", json={"name": "x" * 256})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create item"}
        [span] = spans_named("db.items.create")
        assert span.status.status_code == StatusCode.ERROR
        assert client.get("/api/items").json() == []

    def test_missing_body_fails_at_store(self, client, spans_named):
        """A POST without a body is treated as one with no fields."""
        response = client.post("/api/items")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create item"}
        [span] = spans_named("db.items.create")
        assert span.attributes["item.name"] == ""
        assert span.status.status_code == StatusCode.ERROR

    def test_missing_name_fails_at_store(self, client, spans_named):
        """The store rejects a missing name; the span records an empty name."""
        response = client.post("/api/items", json={"description": "no name"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create item"}
        [span] = spans_named("db.items.create")
        assert span.attributes["item.name"] == ""
        assert span.status.status_code == StatusCode.ERROR


class TestDelete:
    """Deleting items."""

    def test_delete_existing(self, client, spans_named):
        item_id = client.post("/api/items", json={"name": "doomed"}).json()["id"]

        response = client.delete(f"/api/items/{item_id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Item deleted successfully"}
        assert client.get("/api/items").json() == []
        [span] = spans_named("db.items.delete")
        assert span.attributes["item.id"] == str(item_id)
        assert span.attributes["db.rows_affected"] == 1

    def test_delete_missing_id_succeeds(self, client, spans_named):
        """Deleting an id that does not exist still reports success."""
        response = client.delete("/api/items/999")

        assert response.status_code == 200
        assert response.json() == {"message": "Item deleted successfully"}
        [span] = spans_named("db.items.delete")
        assert span.attributes["db.rows_affected"] == 0
        assert span.status.status_code == StatusCode.OK

    def test_delete_non_integer_id(self, client, spans_named):
        response = client.delete("/api/items/abc")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete item"}
        [span] = spans_named("db.items.delete")
        assert span.status.status_code == StatusCode.ERROR

    def test_delete_metrics_use_route_template(self, client, telemetry):
        client.delete("/api/items/1")
        client.delete("/api/items/2")

        assert request_count(telemetry, "DELETE", "/api/items/{item_id}", 200) == 2


class TestOperationSpans:
    """Database spans emitted by the items endpoints."""

    def test_list_span_attributes(self, client, spans_named):
        client.post("/api/items", json={"name": "a"})

        client.get("/api/items")

        [span] = spans_named("db.items.list")
        assert span.kind == SpanKind.CLIENT
        assert span.status.status_code == StatusCode.OK
        assert span.attributes["db.system"] == "postgresql"
        assert span.attributes["db.name"] == "items_db"
        assert span.attributes["db.sql.table"] == "items"
        assert span.attributes["db.operation"] == "SELECT"
        assert span.attributes["net.peer.name"] == "db.test"
        assert span.attributes["net.peer.port"] == 5432
        assert span.attributes["http.method"] == "GET"
        assert span.attributes["http.route"] == "/api/items"
        assert span.attributes["db.rows_returned"] == 1

    def test_create_span_attributes(self, client, spans_named):
        created = client.post("/api/items", json={"name": "foo"}).json()

        [span] = spans_named("db.items.create")
        assert span.attributes["db.operation"] == "INSERT"
        assert span.attributes["item.name"] == "foo"
        assert span.attributes["item.id"] == created["id"]

    def test_db_span_nested_in_server_span(self, client, span_exporter, spans_named):
        """Each database span is a child of its request's server span."""
        client.get("/api/items")

        server_spans = [
            span for span in span_exporter.get_finished_spans() if span.kind == SpanKind.SERVER
        ]
        [db_span] = spans_named("db.items.list")
        assert len(server_spans) == 1
        assert db_span.parent is not None
        assert db_span.parent.span_id == server_spans[0].context.span_id
        assert db_span.context.trace_id == server_spans[0].context.trace_id

    def test_one_db_span_per_request(self, client, spans_named):
        for _ in range(3):
            client.get("/api/items")

        assert len(spans_named("db.items.list")) == 3


class TestDatabaseUnavailable:
    """Endpoints when every store call fails."""

    @pytest.fixture
    def item_store(self) -> ItemStore:
        return UnavailableItemStore()

    @pytest.mark.parametrize(
        ("method", "path", "span_name", "message"),
        [
            ("GET", "/api/items", "db.items.list", "Failed to fetch items"),
            ("POST", "/api/items", "db.items.create", "Failed to create item"),
            ("DELETE", "/api/items/1", "db.items.delete", "Failed to delete item"),
        ],
    )
    def test_failure_returns_fixed_message(
        self, client, spans_named, method, path, span_name, message
    ):
        """Store errors become a 500 with a fixed body and an ERROR span."""
        response = client.request(method, path, json={"name": "x"} if method == "POST" else None)

        assert response.status_code == 500
        assert response.json() == {"error": message}
        [span] = spans_named(span_name)
        assert span.status.status_code == StatusCode.ERROR
        assert span.status.description == "connection refused"
        assert len([e for e in span.events if e.name == "exception"]) == 1

    def test_failure_counted_as_500(self, client, telemetry):
        client.get("/api/items")

        assert request_count(telemetry, "GET", "/api/items", 500) == 1

    def test_gauge_untouched_on_failure(self, client, telemetry):
        client.get("/api/items")

        assert telemetry.metrics.registry.get_sample_value("db_items_total") == 0



class TestDriverErrors:
    """Driver errors raised by asyncpg surface as the fixed 500 body."""

    @pytest.fixture
    def item_store(self) -> ItemStore:
        connection = MagicMock()
        connection.execute = AsyncMock(
            side_effect=asyncpg.exceptions.DataError("value out of int32 range")
        )
        return PostgresItemStore(OneConnectionPool(connection))  # type: ignore[arg-type]

    def test_delete_out_of_range_id(self, client, spans_named):
        response = client.delete("/api/items/99999999999")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to delete item"}
        [span] = spans_named("db.items.delete")
        assert span.status.status_code == StatusCode.ERROR
        assert len([e for e in span.events if e.name == "exception"]) == 1


class TestRecoveryAfterFailure:
    """A failed create does not affect later requests."""

    @pytest.fixture
    def item_store(self) -> ItemStore:
        return FlakyItemStore()

    def test_create_failure_then_success(self, client, spans_named):
        failed = client.post("/api/items", json={"name": "foo", "description": "bar"})

        assert failed.status_code == 500
        assert failed.json() == {"error": "Failed to create item"}

        succeeded = client.post("/api/items", json={"name": "foo", "description": "bar"})

        assert succeeded.status_code == 201
        assert client.get("/health").status_code == 200
        assert [item["name"] for item in client.get("/api/items").json()] == ["foo"]

        first, second = spans_named("db.items.create")
        assert first.status.status_code == StatusCode.ERROR
        assert "exception" in [event.name for event in first.events]
        assert second.status.status_code == StatusCode.OK
