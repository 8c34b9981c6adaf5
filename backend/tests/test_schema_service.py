# backend/tests/test_schema_service.py

from typing import Any, Dict, List

import pytest

from app.notion.cache import InMemoryCacheService
from app.notion.client import NotionNotFoundError, NotionRateLimitError
from app.notion.schema_service import CACHE_TTL_SECONDS, NotionSchemaService, map_database_response

RAW_DATABASE: Dict[str, Any] = {
    "object": "database",
    "id": "db-1",
    "title": [{"plain_text": "Team "}, {"plain_text": "Tasks"}],
    "properties": {
        "Name": {"id": "title", "name": "Name", "type": "title", "title": {}},
        "Status": {
            "id": "st",
            "name": "Status",
            "type": "status",
            "status": {"options": [{"id": "s1", "name": "Done", "color": "green"}]},
        },
        "Tags": {
            "id": "tg",
            "name": "Tags",
            "type": "multi_select",
            "multi_select": {"options": [{"id": "m1", "name": "a"}, {"id": "m2", "name": "b"}]},
        },
        "Points": {"id": "pt", "name": "Points", "type": "number", "number": {"format": "number"}},
    },
}


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class FakeNotionClient:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response if response is not None else RAW_DATABASE
        self.error = error
        self.calls: List[tuple] = []

    async def retrieve_database(self, database_id: str, token: str) -> Dict[str, Any]:
        self.calls.append((database_id, token))
        if self.error is not None:
            raise self.error
        return self.response


def test_map_database_response() -> None:
    schema = map_database_response(RAW_DATABASE)

    assert schema is not None
    assert schema.title == "Team Tasks"
    assert schema.properties["Status"].options[0].name == "Done"
    assert [o.name for o in schema.properties["Tags"].options] == ["a", "b"]
    assert schema.properties["Points"].options is None


def test_map_database_response_untitled_and_invalid() -> None:
    untitled = dict(RAW_DATABASE, title=[])
    assert map_database_response(untitled).title == "Untitled Database"
    assert map_database_response({"object": "page", "id": "x"}) is None


@pytest.mark.asyncio
async def test_same_database_fetched_once_within_ttl() -> None:
    client = FakeNotionClient()
    clock = FakeClock()
    service = NotionSchemaService(client, InMemoryCacheService(clock=clock))

    first = await service.get_database_schema("db-1", "token-a")
    clock.now += CACHE_TTL_SECONDS - 1
    second = await service.get_database_schema("db-1", "token-b")

    assert first == second
    assert client.calls == [("db-1", "token-a")]


@pytest.mark.asyncio
async def test_schema_refetched_after_ttl() -> None:
    client = FakeNotionClient()
    clock = FakeClock()
    service = NotionSchemaService(client, InMemoryCacheService(clock=clock))

    await service.get_database_schema("db-1", "token")
    clock.now += CACHE_TTL_SECONDS + 1
    await service.get_database_schema("db-1", "token")

    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_not_found_returns_none_and_is_not_cached() -> None:
    client = FakeNotionClient(error=NotionNotFoundError("missing"))
    service = NotionSchemaService(client, InMemoryCacheService())

    assert await service.get_database_schema("db-1", "token") is None
    assert await service.get_database_schema("db-1", "token") is None
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_other_errors_propagate() -> None:
    client = FakeNotionClient(error=NotionRateLimitError("slow down"))
    service = NotionSchemaService(client, InMemoryCacheService())

    with pytest.raises(NotionRateLimitError):
        await service.get_database_schema("db-1", "token")


def test_cache_delete_and_clear() -> None:
    cache = InMemoryCacheService()
    cache.set("a", 1)
    cache.set("b", 2, ttl_seconds=60)

    cache.delete("a")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert cache.get("b") is None
