# backend/app/templates/state.py

"""
アプリ全体で共有するインメモリストアの状態管理モジュール。

- 外部の CRUD 層が未接続の環境（ローカル開発・テスト）でも Webhook 処理を動かせるようにする
- テスト時にリセットできるようにする
"""

from __future__ import annotations

from typing import Optional

from .repository import (
    InMemoryCredentialRepository,
    InMemoryDestinationRepository,
    InMemoryTemplateRepository,
)

_template_repository: Optional[InMemoryTemplateRepository] = None
_destination_repository: Optional[InMemoryDestinationRepository] = None
_credential_repository: Optional[InMemoryCredentialRepository] = None


def get_template_repository() -> InMemoryTemplateRepository:
    """
    共有のテンプレートストアを返す。初回呼び出し時にのみ生成する。
    """
    global _template_repository
    if _template_repository is None:
        _template_repository = InMemoryTemplateRepository()
    return _template_repository


def get_destination_repository() -> InMemoryDestinationRepository:
    global _destination_repository
    if _destination_repository is None:
        _destination_repository = InMemoryDestinationRepository()
    return _destination_repository


def get_credential_repository() -> InMemoryCredentialRepository:
    global _credential_repository
    if _credential_repository is None:
        _credential_repository = InMemoryCredentialRepository()
    return _credential_repository


def reset_state() -> None:
    """
    テスト用にストアのシングルトン状態をリセットする。
    """
    global _template_repository, _destination_repository, _credential_repository
    _template_repository = None
    _destination_repository = None
    _credential_repository = None
