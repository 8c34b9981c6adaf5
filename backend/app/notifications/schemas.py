# backend/app/notifications/schemas.py

"""
通知ペイロードの共通スキーマ定義。

送信先サービスによってキーが異なる:
- Discord: content
- Microsoft Teams: text

現状の Webhook 処理は Discord 形式（content）で送る。
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class NotificationPayload(BaseModel):
    """
    Webhook に POST する本文。

    機密情報（Notion トークンなど）は含めないこと。
    """

    content: Optional[str] = Field(
        None,
        description="Discord 向けの本文。",
    )
    text: Optional[str] = Field(
        None,
        description="Microsoft Teams 向けの本文。",
    )

    def to_json(self) -> Dict[str, Any]:
        """未設定のキーを除いた JSON 用 dict を返す。"""
        return self.model_dump(exclude_none=True)
