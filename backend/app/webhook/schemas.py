# backend/app/webhook/schemas.py

"""
Notion Webhook の受信ペイロードと、処理結果のスキーマ定義。
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotionParent(BaseModel):
    """ページの親。データベース配下のページなら type == "database_id"。"""

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    database_id: Optional[str] = None
    page_id: Optional[str] = None
    workspace: Optional[bool] = None


class NotionPageEvent(BaseModel):
    """
    Webhook の data 部分（変更されたページ）。

    properties は「プロパティ名 -> Notion のプロパティ値オブジェクト」。
    """

    model_config = ConfigDict(extra="allow")

    object: Optional[str] = None
    id: Optional[str] = None
    parent: Optional[NotionParent] = None
    properties: Optional[Dict[str, Any]] = None
    url: Optional[str] = None

    @property
    def database_id(self) -> Optional[str]:
        if self.parent is not None and self.parent.type == "database_id":
            return self.parent.database_id or None
        return None


class NotionWebhookPayload(BaseModel):
    """Webhook リクエストボディ全体。"""

    model_config = ConfigDict(extra="allow")

    source: Optional[Dict[str, Any]] = None
    data: Optional[NotionPageEvent] = None


class PipelineStage(str, Enum):
    """
    Webhook 処理の段階。処理結果の stage には「どこで終わったか」が入る。
    """

    RECEIVE_EVENT = "receive_event"
    EXTRACT_DATABASE_ID = "extract_database_id"
    LOAD_TEMPLATES = "load_templates"
    RESOLVE_CREDENTIAL = "resolve_credential"
    FETCH_SCHEMA = "fetch_schema"
    MATCH_TEMPLATES = "match_templates"
    RENDER_MESSAGES = "render_messages"
    DISPATCH_NOTIFICATIONS = "dispatch_notifications"
    DONE = "done"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class DeliveryDetail(BaseModel):
    """
    テンプレート 1 件ごとの整形・送信結果。
    """

    template_id: str
    destination_id: str
    status: DeliveryStatus
    message: Optional[str] = Field(
        None,
        description="エラー内容やスキップ理由（正常時は None）",
    )


class WebhookProcessResult(BaseModel):
    """
    Webhook 1 件の処理結果サマリ。呼び出し元（Notion）には返さず、ログとテストで使う。
    """

    stage: PipelineStage
    database_id: Optional[str] = None
    template_count: int = Field(0, ge=0)
    matched_count: int = Field(0, ge=0)
    rendered_count: int = Field(0, ge=0)
    sent_count: int = Field(0, ge=0)
    skipped_count: int = Field(0, ge=0)
    failed_count: int = Field(0, ge=0)
    details: List[DeliveryDetail] = Field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.stage == PipelineStage.DONE


class WebhookAcceptedResponse(BaseModel):
    message: str = "Webhook received"
