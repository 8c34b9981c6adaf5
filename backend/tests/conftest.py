# backend/tests/conftest.py
"""
Pytest configuration for Notion notify relay backend tests.

- Ensures that the project root (backend/) is added to sys.path
  so that `import app.*` works correctly in tests.
- Ensures required environment variables for tests are set
  with safe dummy values (e.g., ENCRYPTION_KEY).
- Provides small builders for schemas, templates and page properties.
"""

import os
import sys
from pathlib import Path

import pytest

TEST_ENCRYPTION_KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"


def _ensure_project_root_in_sys_path() -> None:
    # This file is located at: backend/tests/conftest.py
    # parents[1] -> backend/
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)

    if project_root_str not in sys.path:
        # Insert at the beginning so it has priority over site-packages, etc.
        sys.path.insert(0, project_root_str)


def _ensure_test_env_vars() -> None:
    """
    Set dummy environment variables required for tests.

    These values are only for local testing and do NOT contain real secrets.
    """
    os.environ.setdefault("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
    os.environ.setdefault("NOTION_API_BASE_URL", "https://notion.test/v1")


_ensure_project_root_in_sys_path()
_ensure_test_env_vars()


from app.notion.schemas import DatabaseSchema, PropertyOption, PropertySchema  # noqa: E402
from app.security.encryption import AesGcmEncryptionService  # noqa: E402


@pytest.fixture
def encryption_service() -> AesGcmEncryptionService:
    return AesGcmEncryptionService(TEST_ENCRYPTION_KEY)


@pytest.fixture
def task_schema() -> DatabaseSchema:
    """
    タスク管理データベースを想定したスキーマ。
    """
    return DatabaseSchema(
        id="db-1",
        title="Tasks",
        properties={
            "Name": PropertySchema(id="title", name="Name", type="title"),
            "Status": PropertySchema(
                id="st%3A",
                name="Status",
                type="select",
                options=[
                    PropertyOption(id="o1", name="Doing", color="blue"),
                    PropertyOption(id="o2", name="Done", color="green"),
                ],
            ),
            "Tags": PropertySchema(id="tg", name="Tags", type="multi_select", options=[]),
            "Points": PropertySchema(id="pt", name="Points", type="number"),
            "Due Date": PropertySchema(id="dd", name="Due Date", type="date"),
            "Reviewed": PropertySchema(id="cb", name="Reviewed", type="checkbox"),
            "Owner": PropertySchema(id="pp", name="Owner", type="people"),
            "Score": PropertySchema(id="fx", name="Score", type="formula"),
        },
    )


@pytest.fixture
def task_page() -> dict:
    """
    task_schema に対応するページプロパティ（Webhook の properties 部分）。
    """
    return {
        "Name": {"id": "title", "type": "title", "title": [{"plain_text": "Ship "}, {"plain_text": "it"}]},
        "Status": {"id": "st%3A", "type": "select", "select": {"name": "Done"}},
        "Tags": {"id": "tg", "type": "multi_select", "multi_select": [{"name": "backend"}, {"name": "urgent"}]},
        "Points": {"id": "pt", "type": "number", "number": 5},
        "Due Date": {"id": "dd", "type": "date", "date": {"start": "2024-01-01", "end": None}},
        "Reviewed": {"id": "cb", "type": "checkbox", "checkbox": True},
        "Owner": {"id": "pp", "type": "people", "people": [{"id": "u1", "name": "Aki"}, {"id": "u2"}]},
        "Score": {"id": "fx", "type": "formula", "formula": {"type": "number", "number": 42}},
    }
