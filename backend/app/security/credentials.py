# backend/app/security/credentials.py

"""
テンプレートに紐づく Notion 認証情報から、使えるトークンを 1 つ探す。

同じデータベースを複数ユーザーのテンプレートが参照していることがあるため、
テンプレートを順に見ていき、最初に復号できたトークンを採用する。
取得・復号に失敗したテンプレートは飛ばして次を試す。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from app.errors import AccessError, DecryptionError, NotFoundError
from app.templates.repository import CredentialRepository
from app.templates.schemas import Template

logger = logging.getLogger(__name__)


class Decryptor(Protocol):
    def decrypt(self, encrypted_text: str) -> str:  # pragma: no cover - Protocol
        ...


@dataclass(frozen=True)
class ResolvedToken:
    """解決できたトークンと、その出どころ。"""

    token: str
    template_id: str
    credential_id: str


class CredentialResolver:
    """
    候補テンプレートの並び順で認証情報を探索するリゾルバ。
    """

    def __init__(self, credentials: CredentialRepository, decryptor: Decryptor) -> None:
        self._credentials = credentials
        self._decryptor = decryptor

    async def _try_template(self, template: Template) -> Optional[ResolvedToken]:
        """
        テンプレート 1 件分の認証情報を取得・復号する。使えなければ None。
        """
        if not template.credential_id:
            logger.debug("Template %s has no credential. Trying next.", template.id)
            return None

        try:
            credential = await self._credentials.find_by_id(template.credential_id, template.owner_id)
        except Exception as exc:  # noqa: BLE001 - ストアの失敗はこのテンプレートだけ飛ばす
            logger.warning(
                "Credential %s is not accessible for template %s: %s. Trying next.",
                template.credential_id,
                template.id,
                exc,
                exc_info=not isinstance(exc, (AccessError, NotFoundError)),
            )
            return None

        if credential is None:
            logger.warning(
                "Credential %s not found for owner %s (template %s). Trying next.",
                template.credential_id,
                template.owner_id,
                template.id,
            )
            return None

        try:
            token = self._decryptor.decrypt(credential.encrypted_token)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to decrypt credential %s for template %s. Trying next.",
                credential.id,
                template.id,
                exc_info=not isinstance(exc, DecryptionError),
            )
            return None

        return ResolvedToken(token=token, template_id=template.id, credential_id=credential.id)

    async def resolve(self, templates: Sequence[Template]) -> Optional[ResolvedToken]:
        """
        最初に復号できた認証情報を返す。すべて失敗した場合は None。
        """
        for template in templates:
            resolved = await self._try_template(template)
            if resolved is not None:
                logger.info(
                    "Using credential %s from template %s.",
                    resolved.credential_id,
                    resolved.template_id,
                )
                return resolved

        logger.error("No usable Notion credential among %d templates.", len(templates))
        return None

    async def resolve_token(self, templates: Sequence[Template]) -> Optional[str]:
        resolved = await self.resolve(templates)
        return resolved.token if resolved else None
