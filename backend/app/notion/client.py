# backend/app/notion/client.py

"""
Notion API との通信を担当するクライアントモジュール。

Webhook 処理ではデータベースのスキーマ取得（databases.retrieve）だけを使う。
トークンは呼び出しごとに渡す（テンプレート所有者ごとに異なるため）。
"""

from typing import Any, Dict, Optional

import httpx

from app.errors import AccessError, NotFoundError, RelayError, TransientExternalError

from .config import NotionConfig, get_notion_config


class NotionClientError(RelayError):
    """Notion クライアント全般の例外。"""


class NotionAuthError(NotionClientError, AccessError):
    """認証・権限関連のエラー。"""


class NotionNotFoundError(NotionClientError, NotFoundError):
    """対象オブジェクトが存在しない、またはインテグレーションから見えない場合のエラー。"""


class NotionRateLimitError(NotionClientError, TransientExternalError):
    """レート制限（429）に達した場合のエラー。"""


class NotionConnectionError(NotionClientError, TransientExternalError):
    """接続エラー・タイムアウト時のエラー。"""


class NotionAPIError(NotionClientError):
    """その他 Notion API 呼び出し時のエラー。"""

    def __init__(self, status_code: int, body: Any | None = None) -> None:
        super().__init__(f"Notion API error: status_code={status_code}")
        self.status_code = status_code
        self.body = body


class NotionClient:
    """
    Notion API の薄い非同期ラッパークライアント。

    - データベースの retrieve（プロパティ定義の取得）
    """

    def __init__(
        self,
        config: Optional[NotionConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or get_notion_config()
        # テストでは httpx.MockTransport を差し込む
        self._transport = transport

    def _build_headers(self, token: str) -> Dict[str, str]:
        """
        Notion API 呼び出しに必要なヘッダーを構築。
        """
        return {
            "Authorization": f"Bearer {token}",
            "Notion-Version": self.config.api_version,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_code(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            code = body.get("code")
            if isinstance(code, str):
                return code
        return None

    def _raise_for_status(self, response: httpx.Response) -> None:
        """
        HTTP レスポンスコードに応じて適切な例外を投げる。
        """
        status = response.status_code
        if status < 400:
            return

        code = self._error_code(response)
        if status == 404 or code == "object_not_found":
            raise NotionNotFoundError("Notion object not found or not shared with the integration.")
        if status == 401:
            raise NotionAuthError("Unauthorized. Check the Notion integration token.")
        if status == 403:
            raise NotionAuthError("Forbidden. Check Notion integration permissions.")
        if status == 429:
            raise NotionRateLimitError("Rate limited by Notion API.")
        raise NotionAPIError(status_code=status, body=response.text)

    async def retrieve_database(self, database_id: str, token: str) -> Dict[str, Any]:
        """
        データベースオブジェクト（タイトル・プロパティ定義を含む）を取得する。

        返り値は Notion API の生の JSON。内部モデルへの変換は schema_service.py で行う。

        :raises NotionNotFoundError: 404 / object_not_found の場合。
        :raises NotionAuthError: 401 / 403 の場合。
        :raises NotionRateLimitError: 429 の場合。
        :raises NotionConnectionError: 接続エラーやタイムアウト時。
        """
        url = f"{self.config.api_base_url}/databases/{database_id}"

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=self._build_headers(token))
        except httpx.RequestError as exc:
            raise NotionConnectionError(f"Failed to call Notion API: {exc}") from exc

        self._raise_for_status(response)

        try:
            data = response.json()
        except ValueError as exc:
            raise NotionAPIError(status_code=response.status_code, body=response.text) from exc

        if not isinstance(data, dict):
            raise NotionAPIError(status_code=response.status_code, body=data)

        return data
