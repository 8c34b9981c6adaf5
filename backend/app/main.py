# backend/app/main.py

"""
バックエンドアプリケーションのエントリーポイント。

- /notion/webhook エンドポイントを公開する
- /health ヘルスチェック
"""

import logging

from fastapi import FastAPI

from app.utils.config import get_env
from app.webhook.router import router as webhook_router


def _configure_logging() -> None:
    level_name = get_env("LOG_LEVEL", default="INFO", required=False).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """
    FastAPI アプリケーションファクトリ。

    - Notion Webhook 受信エンドポイント (/notion/webhook)
    - ヘルスチェックエンドポイント (/health)
    """
    _configure_logging()
    app = FastAPI(title="Notion Notify Relay")

    # ルーター登録
    app.include_router(webhook_router)

    @app.get("/health", tags=["health"])
    def health_check() -> dict:
        """
        簡易ヘルスチェックエンドポイント。
        モニタリングや動作確認用。
        """
        return {"status": "ok"}

    return app


# uvicorn 実行時のエントリーポイント
app = create_app()
