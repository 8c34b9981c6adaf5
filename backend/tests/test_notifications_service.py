# backend/tests/test_notifications_service.py

import json
import logging

import httpx
import pytest

from app.notifications import factory
from app.notifications.schemas import NotificationPayload
from app.notifications.service import (
    HttpNotificationSender,
    LoggingNotificationSender,
    NotificationDeliveryError,
    redact_url,
)

WEBHOOK_URL = "https://discord.test/api/webhooks/123/secret-token"


@pytest.mark.asyncio
async def test_http_sender_posts_content_json() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    sender = HttpNotificationSender(transport=httpx.MockTransport(handler))
    await sender.send(WEBHOOK_URL, NotificationPayload(content="hello"))

    assert seen == {"method": "POST", "url": WEBHOOK_URL, "body": {"content": "hello"}}


@pytest.mark.asyncio
async def test_http_sender_raises_on_error_status() -> None:
    sender = HttpNotificationSender(transport=httpx.MockTransport(lambda request: httpx.Response(400, text="bad")))

    with pytest.raises(NotificationDeliveryError) as excinfo:
        await sender.send(WEBHOOK_URL, NotificationPayload(content="hello"))

    assert excinfo.value.status_code == 400
    assert "secret-token" not in str(excinfo.value)


@pytest.mark.asyncio
async def test_http_sender_wraps_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timeout", request=request)

    sender = HttpNotificationSender(transport=httpx.MockTransport(handler))

    with pytest.raises(NotificationDeliveryError):
        await sender.send(WEBHOOK_URL, NotificationPayload(content="hello"))


@pytest.mark.asyncio
async def test_logging_sender_logs_body(caplog) -> None:
    logger = logging.getLogger("test_logger_notifications")
    sender = LoggingNotificationSender(logger_=logger)

    with caplog.at_level(logging.INFO, logger="test_logger_notifications"):
        await sender.send(WEBHOOK_URL, NotificationPayload(content="dry-run-body"))

    records = [r for r in caplog.records if "dry-run-body" in r.getMessage()]
    assert records, "INFO log should contain the message body"
    assert "secret-token" not in records[0].getMessage()


def test_payload_json_omits_unset_keys() -> None:
    assert NotificationPayload(content="x").to_json() == {"content": "x"}
    assert NotificationPayload(text="y").to_json() == {"text": "y"}


def test_redact_url_keeps_host_only() -> None:
    assert redact_url(WEBHOOK_URL) == "https://discord.test/..."
    assert redact_url("not a url") == "<invalid url>"


def test_factory_uses_dry_run_flag(monkeypatch) -> None:
    factory.reset_notification_sender()
    monkeypatch.setenv("NOTIFICATION_DRY_RUN", "true")
    assert isinstance(factory.get_notification_sender(), LoggingNotificationSender)

    factory.reset_notification_sender()
    monkeypatch.setenv("NOTIFICATION_DRY_RUN", "false")
    sender = factory.get_notification_sender()
    assert isinstance(sender, HttpNotificationSender)
    assert factory.get_notification_sender() is sender

    factory.reset_notification_sender()
