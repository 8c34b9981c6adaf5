# backend/app/webhook/service.py

"""
Notion Webhook 1 件を通知に変換して送信するパイプライン。

処理の流れ:
  1. data.parent からデータベース ID を取り出す
  2. そのデータベースのテンプレートを全件取得する（所有者を問わない）
  3. テンプレートの認証情報から Notion トークンを解決する
  4. トークンでデータベーススキーマを取得する（キャッシュ経由）
  5. ページのプロパティに一致するテンプレートを絞り込む
  6. 一致したテンプレートごとに本文を整形する
  7. テンプレートの送信先へ順番に送信する

1〜4 で先に進めない場合はログを残して静かに終了する（例外は投げない）。
6・7 の失敗はそのテンプレートだけをスキップし、残りは続行する。
リトライはしない。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.errors import RelayError
from app.notion.schema_service import NotionSchemaService
from app.notion.schemas import DatabaseSchema
from app.notifications.schemas import NotificationPayload
from app.notifications.service import NotificationSender, redact_url
from app.security.credentials import CredentialResolver
from app.templates.formatter import MessageFormatter
from app.templates.matcher import find_matching_templates
from app.templates.repository import DestinationRepository, TemplateRepository
from app.templates.schemas import Template

from .schemas import (
    DeliveryDetail,
    DeliveryStatus,
    NotionWebhookPayload,
    PipelineStage,
    WebhookProcessResult,
)

logger = logging.getLogger(__name__)


@dataclass
class _RenderedMessage:
    template: Template
    body: str


class NotionWebhookProcessor:
    """
    Webhook 処理のオーケストレータ。

    依存はすべてコンストラクタで受け取る（テストではスタブを差し込む）。
    """

    def __init__(
        self,
        *,
        templates: TemplateRepository,
        destinations: DestinationRepository,
        credential_resolver: CredentialResolver,
        schema_service: NotionSchemaService,
        formatter: MessageFormatter,
        sender: NotificationSender,
    ) -> None:
        self._templates = templates
        self._destinations = destinations
        self._credential_resolver = credential_resolver
        self._schema_service = schema_service
        self._formatter = formatter
        self._sender = sender

    # ------------------------------------------------------------------
    # 内部ユーティリティ
    # ------------------------------------------------------------------
    @staticmethod
    def _stop(result: WebhookProcessResult, stage: PipelineStage) -> WebhookProcessResult:
        result.stage = stage
        return result

    async def _fetch_schema(self, database_id: str, token: str) -> Optional[DatabaseSchema]:
        try:
            return await self._schema_service.get_database_schema(database_id, token)
        except Exception:  # noqa: BLE001 - スキーマ取得の失敗は FETCH_SCHEMA で静かに終了
            logger.exception("Error while fetching database schema for %s.", database_id)
            return None

    def _render(
        self,
        matched: List[Template],
        page_properties: Dict[str, Any],
        schema: DatabaseSchema,
        page_url: Optional[str],
        result: WebhookProcessResult,
    ) -> List[_RenderedMessage]:
        rendered: List[_RenderedMessage] = []
        for template in matched:
            try:
                body = self._formatter.format(template.body, page_properties, schema, page_url)
            except Exception as exc:  # noqa: BLE001 - 1 テンプレートの失敗で他を止めない
                logger.exception("Error formatting message for template %s.", template.id)
                result.failed_count += 1
                result.details.append(
                    DeliveryDetail(
                        template_id=template.id,
                        destination_id=template.destination_id,
                        status=DeliveryStatus.FAILED,
                        message=f"format error: {exc}",
                    )
                )
                continue
            rendered.append(_RenderedMessage(template=template, body=body))
        return rendered

    async def _dispatch(self, message: _RenderedMessage) -> DeliveryDetail:
        template = message.template
        detail = DeliveryDetail(
            template_id=template.id,
            destination_id=template.destination_id,
            status=DeliveryStatus.SENT,
        )

        try:
            destination = await self._destinations.find_by_id(template.destination_id, template.owner_id)
        except Exception as exc:  # noqa: BLE001 - 送信先の取得失敗もこのテンプレートだけスキップ
            logger.warning(
                "Destination %s is not accessible: %s",
                template.destination_id,
                exc,
                exc_info=not isinstance(exc, RelayError),
            )
            detail.status = DeliveryStatus.SKIPPED
            detail.message = str(exc)
            return detail

        if destination is None or not destination.webhook_url:
            logger.error(
                "Destination or webhook URL not found for destination %s (template %s). Skipping.",
                template.destination_id,
                template.id,
            )
            detail.status = DeliveryStatus.SKIPPED
            detail.message = "destination not found"
            return detail

        try:
            await self._sender.send(destination.webhook_url, NotificationPayload(content=message.body))
        except Exception as exc:  # noqa: BLE001 - 送信失敗は記録して次へ
            logger.exception(
                "Error sending notification for template %s to %s.",
                template.id,
                redact_url(destination.webhook_url),
            )
            detail.status = DeliveryStatus.FAILED
            detail.message = str(exc)
            return detail

        logger.info(
            "Sent notification for template %s to destination %s.",
            template.id,
            destination.name or destination.id,
        )
        return detail

    # ------------------------------------------------------------------
    # 公開 API
    # ------------------------------------------------------------------
    async def process(self, payload: NotionWebhookPayload) -> WebhookProcessResult:
        """
        Webhook 1 件を処理し、どの段階まで進んだかを返す。
        """
        result = WebhookProcessResult(stage=PipelineStage.RECEIVE_EVENT)

        event = payload.data
        if event is None:
            logger.error("'data' field is missing in webhook input.")
            return self._stop(result, PipelineStage.EXTRACT_DATABASE_ID)

        database_id = event.database_id
        if not database_id:
            logger.error(
                "Failed to extract database id from webhook payload (parent=%s).",
                event.parent.model_dump() if event.parent else None,
            )
            return self._stop(result, PipelineStage.EXTRACT_DATABASE_ID)
        result.database_id = database_id

        page_properties: Dict[str, Any] = event.properties or {}
        if not page_properties:
            logger.warning("Page properties are missing or empty for database %s.", database_id)

        try:
            templates = await self._templates.list_by_database(database_id)
        except Exception:  # noqa: BLE001
            logger.exception("Error loading templates for database %s.", database_id)
            return self._stop(result, PipelineStage.LOAD_TEMPLATES)
        result.template_count = len(templates)
        if not templates:
            logger.info("No templates found for database %s. Skipping.", database_id)
            return self._stop(result, PipelineStage.LOAD_TEMPLATES)

        resolved = await self._credential_resolver.resolve(templates)
        if resolved is None:
            logger.error("No usable Notion token for database %s. Aborting.", database_id)
            return self._stop(result, PipelineStage.RESOLVE_CREDENTIAL)

        schema = await self._fetch_schema(database_id, resolved.token)
        if schema is None:
            logger.error("Database schema unavailable for %s. Aborting.", database_id)
            return self._stop(result, PipelineStage.FETCH_SCHEMA)

        matched = find_matching_templates(page_properties, templates, schema)
        result.matched_count = len(matched)
        if not matched:
            logger.info("No templates matched the conditions for database %s.", database_id)
            return self._stop(result, PipelineStage.DONE)

        messages = self._render(matched, page_properties, schema, event.url, result)
        result.rendered_count = len(messages)

        for message in messages:
            detail = await self._dispatch(message)
            result.details.append(detail)
            if detail.status == DeliveryStatus.SENT:
                result.sent_count += 1
            elif detail.status == DeliveryStatus.SKIPPED:
                result.skipped_count += 1
            else:
                result.failed_count += 1

        logger.info(
            "Finished database %s: matched=%d sent=%d skipped=%d failed=%d.",
            database_id,
            result.matched_count,
            result.sent_count,
            result.skipped_count,
            result.failed_count,
        )
        return self._stop(result, PipelineStage.DONE)
