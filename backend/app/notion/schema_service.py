# backend/app/notion/schema_service.py

"""
Notion クライアントとキャッシュをつなぐサービス層。

- データベーススキーマの取得（キャッシュ優先、TTL 30 分）
- Notion API レスポンス -> DatabaseSchema への変換
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .cache import InMemoryCacheService
from .client import NotionClient, NotionNotFoundError
from .schemas import DatabaseSchema, PropertyOption, PropertySchema, PropertyType

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 1800

_OPTION_TYPES = (
    PropertyType.SELECT.value,
    PropertyType.MULTI_SELECT.value,
    PropertyType.STATUS.value,
)


def _cache_key(database_id: str) -> str:
    return f"notion_db_schema_{database_id}"


def _extract_title(raw_title: Any) -> str:
    """
    データベースタイトル（rich text の配列）をプレーンテキストにする。
    """
    if isinstance(raw_title, list) and raw_title:
        return "".join(
            run.get("plain_text") or ""
            for run in raw_title
            if isinstance(run, dict)
        )
    return "Untitled Database"


def _extract_options(prop_data: Dict[str, Any], kind: str) -> Optional[List[PropertyOption]]:
    if kind not in _OPTION_TYPES:
        return None
    config = prop_data.get(kind)
    if not isinstance(config, dict):
        return None
    options = config.get("options")
    if not isinstance(options, list):
        return None
    return [
        PropertyOption(id=str(opt.get("id", "")), name=str(opt.get("name", "")), color=opt.get("color"))
        for opt in options
        if isinstance(opt, dict)
    ]


def map_database_response(response: Dict[str, Any]) -> Optional[DatabaseSchema]:
    """
    databases.retrieve のレスポンスを DatabaseSchema に変換する。

    完全なデータベースオブジェクトでない場合は None。
    """
    if (
        response.get("object") != "database"
        or "title" not in response
        or not isinstance(response.get("properties"), dict)
    ):
        return None

    properties: Dict[str, PropertySchema] = {}
    for property_name, prop_data in response["properties"].items():
        if not isinstance(prop_data, dict):
            continue
        kind = str(prop_data.get("type", ""))
        properties[property_name] = PropertySchema(
            id=str(prop_data.get("id", property_name)),
            name=str(prop_data.get("name", property_name)),
            type=kind,
            options=_extract_options(prop_data, kind),
        )

    return DatabaseSchema(
        id=str(response.get("id", "")),
        title=_extract_title(response.get("title")),
        properties=properties,
    )


class NotionSchemaService:
    """
    データベース ID をキーにスキーマをキャッシュするゲートウェイ。

    NOTE:
      - キャッシュキーはデータベース ID のみ。トークン（所有者）はキーに含めない。
    """

    def __init__(
        self,
        client: Optional[NotionClient] = None,
        cache: Optional[InMemoryCacheService] = None,
        *,
        ttl_seconds: float = CACHE_TTL_SECONDS,
    ) -> None:
        self.client = client or NotionClient()
        self.cache = cache or InMemoryCacheService()
        self._ttl_seconds = ttl_seconds

    async def get_database_schema(self, database_id: str, token: str) -> Optional[DatabaseSchema]:
        """
        データベーススキーマを返す。

        - キャッシュヒット時は API を呼ばない
        - 404 / object_not_found は None を返す（例外にしない）
        - それ以外の失敗（認証・レート制限・ネットワーク）はそのまま送出する
        """
        key = _cache_key(database_id)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for database schema %s.", database_id)
            return cached

        logger.info("Cache miss for database schema %s. Fetching from Notion API.", database_id)

        try:
            response = await self.client.retrieve_database(database_id, token)
        except NotionNotFoundError:
            logger.warning("Database %s not found or not shared with the integration.", database_id)
            return None

        schema = map_database_response(response)
        if schema is None:
            logger.error("Response for %s is not a full database object.", database_id)
            return None

        self.cache.set(key, schema, self._ttl_seconds)
        return schema
