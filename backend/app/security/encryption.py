# backend/app/security/encryption.py

"""
Notion トークンの暗号化・復号（AES-256-GCM）。

暗号文の形式: "<iv hex>:<authTag hex>:<暗号文 hex>"
  - iv: 16 バイト
  - authTag: 16 バイト
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.errors import ConfigurationError, DecryptionError
from app.utils.config import get_env

logger = logging.getLogger(__name__)

IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
KEY_HEX_LENGTH = 64


class AesGcmEncryptionService:
    """
    16 進 64 文字（32 バイト）の鍵で AES-256-GCM を行うサービス。
    """

    def __init__(self, encryption_key: str) -> None:
        if not encryption_key:
            raise ConfigurationError("Encryption key is required and was not provided.")
        if len(encryption_key) != KEY_HEX_LENGTH:
            raise ConfigurationError("Encryption key must be a 64-character hex string (32 bytes).")
        try:
            key = bytes.fromhex(encryption_key)
        except ValueError as exc:
            raise ConfigurationError("Encryption key must be a hex string.") from exc
        self._aesgcm = AESGCM(key)

    def encrypt(self, text: str) -> str:
        iv = os.urandom(IV_LENGTH)
        sealed = self._aesgcm.encrypt(iv, text.encode("utf-8"), None)
        # cryptography は「暗号文 + authTag」を連結して返す
        encrypted, auth_tag = sealed[:-AUTH_TAG_LENGTH], sealed[-AUTH_TAG_LENGTH:]
        return f"{iv.hex()}:{auth_tag.hex()}:{encrypted.hex()}"

    def decrypt(self, encrypted_text: str) -> str:
        """
        暗号文を復号する。

        :raises DecryptionError: 形式不正・改ざん・鍵違いの場合。
        """
        parts = encrypted_text.split(":")
        if len(parts) != 3:
            raise DecryptionError("Invalid encrypted text format. Expected iv:authTag:encryptedText")

        try:
            iv = bytes.fromhex(parts[0])
            auth_tag = bytes.fromhex(parts[1])
            encrypted = bytes.fromhex(parts[2])
        except ValueError as exc:
            raise DecryptionError("Encrypted text is not valid hex.") from exc

        if len(iv) != IV_LENGTH:
            raise DecryptionError(f"Invalid IV length. Expected {IV_LENGTH} bytes.")
        if len(auth_tag) != AUTH_TAG_LENGTH:
            raise DecryptionError(f"Invalid authTag length. Expected {AUTH_TAG_LENGTH} bytes.")

        try:
            plain = self._aesgcm.decrypt(iv, encrypted + auth_tag, None)
        except InvalidTag as exc:
            raise DecryptionError("Failed to decrypt data.") from exc

        try:
            return plain.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError("Decrypted data is not valid UTF-8.") from exc


@lru_cache()
def get_encryption_service() -> AesGcmEncryptionService:
    """
    環境変数 ENCRYPTION_KEY（必須）から暗号化サービスを生成する。
    """
    return AesGcmEncryptionService(get_env("ENCRYPTION_KEY"))
