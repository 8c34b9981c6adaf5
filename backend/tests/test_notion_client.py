# backend/tests/test_notion_client.py

import httpx
import pytest

from app.notion.client import (
    NotionAPIError,
    NotionAuthError,
    NotionClient,
    NotionClientError,
    NotionConnectionError,
    NotionNotFoundError,
    NotionRateLimitError,
)
from app.notion.config import NotionConfig

CONFIG = NotionConfig(api_base_url="https://notion.test/v1", api_version="2022-06-28")


def _client(handler) -> NotionClient:
    return NotionClient(CONFIG, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_retrieve_database_success() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["version"] = request.headers["Notion-Version"]
        return httpx.Response(200, json={"object": "database", "id": "db-1", "title": [], "properties": {}})

    data = await _client(handler).retrieve_database("db-1", "secret-token")

    assert data["id"] == "db-1"
    assert seen["url"] == "https://notion.test/v1/databases/db-1"
    assert seen["auth"] == "Bearer secret-token"
    assert seen["version"] == "2022-06-28"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, body, expected",
    [
        (404, {"object": "error", "code": "object_not_found"}, NotionNotFoundError),
        (400, {"object": "error", "code": "object_not_found"}, NotionNotFoundError),
        (401, {"object": "error", "code": "unauthorized"}, NotionAuthError),
        (403, {"object": "error", "code": "restricted_resource"}, NotionAuthError),
        (429, {"object": "error", "code": "rate_limited"}, NotionRateLimitError),
        (500, {"object": "error", "code": "internal_server_error"}, NotionAPIError),
    ],
)
async def test_retrieve_database_error_mapping(status_code, body, expected) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=body)

    with pytest.raises(expected):
        await _client(handler).retrieve_database("db-1", "token")


@pytest.mark.asyncio
async def test_retrieve_database_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network error", request=request)

    with pytest.raises(NotionConnectionError) as excinfo:
        await _client(handler).retrieve_database("db-1", "token")

    assert isinstance(excinfo.value, NotionClientError)
