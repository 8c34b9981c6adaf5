# backend/app/notifications/service.py

"""
通知送信インターフェースと実装。

- NotificationSender: send(webhook_url, payload) のインターフェース
- HttpNotificationSender: Webhook URL へ JSON を POST する
- LoggingNotificationSender: ログ出力のみ行う（ドライラン用）

送信に失敗した場合は NotificationDeliveryError を投げる。レスポンス本文は使わない。
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol
from urllib.parse import urlsplit

import httpx

from app.errors import TransientExternalError

from .schemas import NotificationPayload

logger = logging.getLogger(__name__)


class NotificationDeliveryError(TransientExternalError):
    """通知先が 2xx 以外を返した、または接続できなかった場合の例外。"""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def redact_url(url: str) -> str:
    """
    ログ用に Webhook URL をホスト部分だけにする（パスにトークンが含まれるため）。
    """
    parts = urlsplit(url)
    if not parts.netloc:
        return "<invalid url>"
    return f"{parts.scheme}://{parts.netloc}/..."


class NotificationSender(Protocol):
    """
    通知送信の最小インターフェース。
    """

    async def send(self, webhook_url: str, payload: NotificationPayload) -> None:  # pragma: no cover - Protocol
        ...


class HttpNotificationSender:
    """
    Webhook URL へ通知を POST する Sender。
    """

    def __init__(
        self,
        timeout: float = 10.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def send(self, webhook_url: str, payload: NotificationPayload) -> None:
        """
        :raises NotificationDeliveryError: 2xx 以外の応答、または接続エラー時。
        """
        target = redact_url(webhook_url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(webhook_url, json=payload.to_json())
        except httpx.RequestError as exc:
            raise NotificationDeliveryError(f"Failed to send notification to {target}: {exc}") from exc

        if response.status_code // 100 != 2:
            raise NotificationDeliveryError(
                f"Notification to {target} failed with status {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Notification sent to %s (status=%s).", target, response.status_code)


class LoggingNotificationSender:
    """
    通知内容を logger に記録するだけの Sender。

    - NOTIFICATION_DRY_RUN=true のときに使う
    - 実際の外部サービスへの送信は行わない
    """

    def __init__(self, logger_: logging.Logger | None = None) -> None:
        self._logger = logger_ or logger

    async def send(self, webhook_url: str, payload: NotificationPayload) -> None:
        body = payload.content if payload.content is not None else payload.text
        self._logger.info("[dry-run] %s %s", redact_url(webhook_url), body)
