# backend/app/webhook/router.py

import logging
from functools import lru_cache

from fastapi import APIRouter

from app.notion.schema_service import NotionSchemaService
from app.notifications.factory import get_notification_sender
from app.security.credentials import CredentialResolver
from app.security.encryption import get_encryption_service
from app.templates.formatter import MessageFormatter
from app.templates.state import (
    get_credential_repository,
    get_destination_repository,
    get_template_repository,
)

from .schemas import NotionWebhookPayload, WebhookAcceptedResponse
from .service import NotionWebhookProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notion", tags=["notion"])


@lru_cache()
def get_schema_service() -> NotionSchemaService:
    """
    スキーマキャッシュはプロセス内で共有するため、シングルトンで持つ。
    """
    return NotionSchemaService()


def get_webhook_processor() -> NotionWebhookProcessor:
    """
    共有ストア・共有キャッシュを使って NotionWebhookProcessor を組み立てる。

    NOTE:
      - ENCRYPTION_KEY が未設定の場合は ConfigurationError になる。
    """
    credential_resolver = CredentialResolver(
        credentials=get_credential_repository(),
        decryptor=get_encryption_service(),
    )
    return NotionWebhookProcessor(
        templates=get_template_repository(),
        destinations=get_destination_repository(),
        credential_resolver=credential_resolver,
        schema_service=get_schema_service(),
        formatter=MessageFormatter(),
        sender=get_notification_sender(),
    )


@router.post(
    "/webhook",
    response_model=WebhookAcceptedResponse,
    summary="Notion のページ更新 Webhook を受信",
    description="一致したテンプレートの本文を整形し、各送信先へ通知する。",
)
async def receive_notion_webhook(payload: NotionWebhookPayload) -> WebhookAcceptedResponse:
    """
    Notion からの Webhook を受け取るエンドポイント。

    - 処理結果にかかわらず 200 を返す（Notion 側に詳細なエラーは伝えない）
    - 想定外の例外はログにだけ残す
    """
    try:
        processor = get_webhook_processor()
        result = await processor.process(payload)
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error while processing Notion webhook.")
    else:
        logger.info("Webhook processed: stage=%s database=%s", result.stage.value, result.database_id)

    return WebhookAcceptedResponse()
