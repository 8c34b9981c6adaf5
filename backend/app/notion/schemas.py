# backend/app/notion/schemas.py

"""
Notion データベースのスキーマを内部で扱うためのモデル定義。
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class PropertyType(str, Enum):
    """
    デコードに対応しているプロパティ種別。

    ここにない種別（formula / relation / rollup など）も PropertySchema.type には
    文字列のまま入り、デコーダ側で Unsupported として扱われる。
    """

    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    STATUS = "status"
    CHECKBOX = "checkbox"
    DATE = "date"
    PEOPLE = "people"
    FILES = "files"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"


class PropertyOption(BaseModel):
    """select / multi_select / status の選択肢 1 件。"""

    id: str
    name: str
    color: Optional[str] = None


class PropertySchema(BaseModel):
    """データベースの列 1 つ分の定義。"""

    id: str = Field(..., description="Notion プロパティ ID")
    name: str = Field(..., description="プロパティ名（プレースホルダ名にもなる）")
    type: str = Field(..., description="プロパティ種別（title / select / date など）")
    options: Optional[List[PropertyOption]] = Field(
        None,
        description="select / multi_select / status の場合のみ設定される選択肢一覧",
    )


class DatabaseSchema(BaseModel):
    """
    データベース全体のスキーマ。キャッシュの単位でもある。

    properties のキーはプロパティ名。
    """

    id: str
    title: str
    properties: Dict[str, PropertySchema] = Field(default_factory=dict)

    def find_property(self, ref: str) -> Optional[PropertySchema]:
        """
        プロパティ ID またはプロパティ名で定義を探す。見つからなければ None。
        """
        for prop in self.properties.values():
            if prop.id == ref or prop.name == ref:
                return prop
        return None
