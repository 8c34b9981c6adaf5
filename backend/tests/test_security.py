# backend/tests/test_security.py

from typing import Optional

import pytest

from app.errors import ConfigurationError, DecryptionError, TransientExternalError
from app.security.credentials import CredentialResolver
from app.security.encryption import AesGcmEncryptionService
from app.templates.repository import InMemoryCredentialRepository
from app.templates.schemas import NotionCredential, Template


def _template(template_id: str, owner_id: str, credential_id: Optional[str]) -> Template:
    return Template(
        id=template_id,
        name=template_id,
        database_id="db-1",
        body="",
        destination_id="dest",
        owner_id=owner_id,
        credential_id=credential_id,
    )


def test_encrypt_then_decrypt(encryption_service) -> None:
    encrypted = encryption_service.encrypt("secret_notion_token")

    assert encrypted.count(":") == 2
    assert encryption_service.decrypt(encrypted) == "secret_notion_token"


@pytest.mark.parametrize(
    "ciphertext",
    [
        "not-three-parts",
        "zz:zz:zz",
        "00" * 8 + ":" + "00" * 16 + ":" + "00",
    ],
)
def test_decrypt_rejects_malformed_input(encryption_service, ciphertext) -> None:
    with pytest.raises(DecryptionError):
        encryption_service.decrypt(ciphertext)


def test_decrypt_rejects_tampered_ciphertext(encryption_service) -> None:
    iv, tag, data = encryption_service.encrypt("secret").split(":")
    tampered = f"{iv}:{tag}:{'00' if data[:2] != '00' else 'ff'}{data[2:]}"

    with pytest.raises(DecryptionError):
        encryption_service.decrypt(tampered)


def test_decrypt_with_other_key_fails(encryption_service) -> None:
    other = AesGcmEncryptionService("ff" * 32)

    with pytest.raises(DecryptionError):
        other.decrypt(encryption_service.encrypt("secret"))


def test_invalid_key_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        AesGcmEncryptionService("too-short")
    with pytest.raises(ConfigurationError):
        AesGcmEncryptionService("g" * 64)


@pytest.mark.asyncio
async def test_resolver_skips_undecryptable_credential(encryption_service) -> None:
    repo = InMemoryCredentialRepository(
        [
            NotionCredential(id="c1", owner_id="u1", encrypted_token="broken"),
            NotionCredential(id="c2", owner_id="u2", encrypted_token=encryption_service.encrypt("token-2")),
        ]
    )
    resolver = CredentialResolver(repo, encryption_service)

    resolved = await resolver.resolve([_template("t1", "u1", "c1"), _template("t2", "u2", "c2")])

    assert resolved is not None
    assert resolved.token == "token-2"
    assert resolved.template_id == "t2"


@pytest.mark.asyncio
async def test_resolver_requires_matching_owner(encryption_service) -> None:
    repo = InMemoryCredentialRepository(
        [NotionCredential(id="c1", owner_id="u1", encrypted_token=encryption_service.encrypt("token-1"))]
    )
    resolver = CredentialResolver(repo, encryption_service)

    # 別ユーザーのテンプレートから他人の認証情報は使えない
    assert await resolver.resolve_token([_template("t1", "intruder", "c1")]) is None
    assert await resolver.resolve_token([_template("t2", "u1", "c1")]) == "token-1"


@pytest.mark.asyncio
async def test_resolver_returns_first_success_in_order(encryption_service) -> None:
    repo = InMemoryCredentialRepository(
        [
            NotionCredential(id="c1", owner_id="u1", encrypted_token=encryption_service.encrypt("token-1")),
            NotionCredential(id="c2", owner_id="u2", encrypted_token=encryption_service.encrypt("token-2")),
        ]
    )
    resolver = CredentialResolver(repo, encryption_service)

    token = await resolver.resolve_token(
        [_template("t0", "u0", None), _template("t1", "u1", "c1"), _template("t2", "u2", "c2")]
    )

    assert token == "token-1"


@pytest.mark.asyncio
async def test_resolver_exhaustion_returns_none(encryption_service) -> None:
    resolver = CredentialResolver(InMemoryCredentialRepository(), encryption_service)

    assert await resolver.resolve([_template("t1", "u1", "missing"), _template("t2", "u2", None)]) is None


class TimingOutCredentialRepository(InMemoryCredentialRepository):
    """特定の認証情報の取得でタイムアウトするストア。"""

    async def find_by_id(self, credential_id: str, owner_id: str):
        if credential_id == "c1":
            raise TransientExternalError("store timeout")
        return await super().find_by_id(credential_id, owner_id)


@pytest.mark.asyncio
async def test_resolver_skips_store_failures(encryption_service) -> None:
    repo = TimingOutCredentialRepository(
        [NotionCredential(id="c2", owner_id="u2", encrypted_token=encryption_service.encrypt("token-2"))]
    )
    resolver = CredentialResolver(repo, encryption_service)

    resolved = await resolver.resolve([_template("t1", "u1", "c1"), _template("t2", "u2", "c2")])

    assert resolved is not None
    assert resolved.token == "token-2"
    assert resolved.template_id == "t2"


class ExplodingDecryptor:
    def decrypt(self, encrypted_text: str) -> str:
        raise ValueError("unexpected decryptor failure")


@pytest.mark.asyncio
async def test_resolver_treats_any_decrypt_failure_as_skip() -> None:
    repo = InMemoryCredentialRepository([NotionCredential(id="c1", owner_id="u1", encrypted_token="x:y:z")])

    assert await CredentialResolver(repo, ExplodingDecryptor()).resolve_token([_template("t1", "u1", "c1")]) is None
