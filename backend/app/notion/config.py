# backend/app/notion/config.py

"""
Notion 連携に必要な設定値をまとめるモジュール。

API トークンはテンプレート所有者ごとの認証情報から都度復号して渡すため、
ここには含めない。
"""

from dataclasses import dataclass
from functools import lru_cache

from app.utils.config import get_env, get_env_int


@dataclass(frozen=True)
class NotionConfig:
    """Notion API 用の設定値コンテナ。"""

    api_base_url: str
    api_version: str
    timeout_seconds: int = 10


@lru_cache()
def get_notion_config() -> NotionConfig:
    """
    環境変数から Notion 設定を読み込む。

    任意:
      - NOTION_API_BASE_URL    (デフォルト: https://api.notion.com/v1)
      - NOTION_API_VERSION     (デフォルト: 2022-06-28)
      - NOTION_TIMEOUT_SECONDS (デフォルト: 10)
    """
    api_base_url = get_env(
        "NOTION_API_BASE_URL",
        default="https://api.notion.com/v1",
        required=False,
    )
    api_version = get_env(
        "NOTION_API_VERSION",
        default="2022-06-28",
        required=False,
    )

    return NotionConfig(
        api_base_url=api_base_url.rstrip("/"),
        api_version=api_version,
        timeout_seconds=get_env_int("NOTION_TIMEOUT_SECONDS", default=10),
    )
