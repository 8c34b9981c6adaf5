# backend/app/notifications/factory.py

"""
通知 Sender の簡易ファクトリ。

- 通常は HttpNotificationSender
- NOTIFICATION_DRY_RUN=true の場合は LoggingNotificationSender
"""

from __future__ import annotations

from typing import Optional

from app.utils.config import get_env_bool, get_env_int

from .service import HttpNotificationSender, LoggingNotificationSender, NotificationSender

_notification_sender: Optional[NotificationSender] = None


def get_notification_sender() -> NotificationSender:
    """
    アプリ全体で共有する NotificationSender を返す。

    初回呼び出し時にのみ生成し、それ以降は同じインスタンスを返す。
    """
    global _notification_sender
    if _notification_sender is None:
        if get_env_bool("NOTIFICATION_DRY_RUN", default=False):
            _notification_sender = LoggingNotificationSender()
        else:
            timeout = get_env_int("NOTIFICATION_TIMEOUT_SECONDS", default=10)
            _notification_sender = HttpNotificationSender(timeout=timeout)
    return _notification_sender


def reset_notification_sender() -> None:
    """テスト用に共有 Sender をリセットする。"""
    global _notification_sender
    _notification_sender = None
