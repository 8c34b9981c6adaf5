# backend/app/templates/repository.py

"""
テンプレート・送信先・認証情報ストアのインターフェースと、インメモリ実装。

永続化の本体（Firestore など）は外部の CRUD 層が持つ。Webhook 処理は
ここで定義した読み取り系のメソッドだけを使う。
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol

from .schemas import Destination, NotionCredential, Template


class TemplateRepository(Protocol):
    async def list_by_database(self, database_id: str) -> List[Template]:  # pragma: no cover - Protocol
        """所有者を問わず、指定データベースのテンプレートを全件返す。"""
        ...


class DestinationRepository(Protocol):
    async def find_by_id(self, destination_id: str, owner_id: str) -> Optional[Destination]:  # pragma: no cover - Protocol
        ...


class CredentialRepository(Protocol):
    async def find_by_id(self, credential_id: str, owner_id: str) -> Optional[NotionCredential]:  # pragma: no cover - Protocol
        ...


class InMemoryTemplateRepository:
    """登録順を保持するインメモリのテンプレートストア。"""

    def __init__(self, templates: Iterable[Template] = ()) -> None:
        self._templates: Dict[str, Template] = {}
        for template in templates:
            self.save(template)

    def save(self, template: Template) -> None:
        self._templates[template.id] = template

    def delete(self, template_id: str) -> None:
        self._templates.pop(template_id, None)

    async def list_by_database(self, database_id: str) -> List[Template]:
        return [t for t in self._templates.values() if t.database_id == database_id]


class InMemoryDestinationRepository:
    """インメモリの送信先ストア。所有者が一致しない場合は見つからない扱い。"""

    def __init__(self, destinations: Iterable[Destination] = ()) -> None:
        self._destinations: Dict[str, Destination] = {}
        for destination in destinations:
            self.save(destination)

    def save(self, destination: Destination) -> None:
        self._destinations[destination.id] = destination

    async def find_by_id(self, destination_id: str, owner_id: str) -> Optional[Destination]:
        destination = self._destinations.get(destination_id)
        if destination is None or destination.owner_id != owner_id:
            return None
        return destination


class InMemoryCredentialRepository:
    """インメモリの認証情報ストア。所有者が一致しない場合は見つからない扱い。"""

    def __init__(self, credentials: Iterable[NotionCredential] = ()) -> None:
        self._credentials: Dict[str, NotionCredential] = {}
        for credential in credentials:
            self.save(credential)

    def save(self, credential: NotionCredential) -> None:
        self._credentials[credential.id] = credential

    async def find_by_id(self, credential_id: str, owner_id: str) -> Optional[NotionCredential]:
        credential = self._credentials.get(credential_id)
        if credential is None or credential.owner_id != owner_id:
            return None
        return credential
