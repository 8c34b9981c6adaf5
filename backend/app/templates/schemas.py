# backend/app/templates/schemas.py

"""
通知テンプレート・送信先・認証情報のモデル定義。

これらの作成・更新・削除は外部の CRUD 層が担当し、Webhook 処理は読むだけ。
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConditionOperator(str, Enum):
    """条件の比較演算子。"""

    EQUALS = "="
    NOT_EQUALS = "!="
    IN = "in"
    LESS_THAN = "<"
    GREATER_THAN = ">"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"


ConditionValue = Union[None, str, int, float, bool, List[Any]]


class TemplateCondition(BaseModel):
    """
    テンプレートの条件 1 件。

    同じテンプレート内の条件はすべて AND で結合される。
    """

    property_id: str = Field(
        ...,
        description="Notion のプロパティ ID またはプロパティ名",
    )
    operator: ConditionOperator
    value: ConditionValue = Field(
        None,
        description="比較値。in の場合はリストであること。",
    )


class Template(BaseModel):
    """
    条件に一致したページをどの送信先へ、どんな本文で通知するかのルール。
    """

    id: str
    name: str
    database_id: str = Field(..., description="Notion データベース ID")
    body: str = Field(..., description="{プロパティ名} などのプレースホルダを含む本文")
    conditions: List[TemplateCondition] = Field(default_factory=list)
    destination_id: str
    owner_id: str = Field(..., description="テンプレートを所有するユーザー ID")
    credential_id: Optional[str] = Field(
        None,
        description="スキーマ取得に使う Notion 認証情報の ID",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Destination(BaseModel):
    """通知先の Webhook エンドポイント。"""

    id: str
    webhook_url: str
    owner_id: str
    name: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class NotionCredential(BaseModel):
    """
    ユーザーごとの Notion インテグレーショントークン（暗号化済み）。

    暗号文の形式は ivHex:authTagHex:cipherHex。ストアは中身を解釈しない。
    """

    id: str
    owner_id: str
    encrypted_token: str
    integration_name: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
