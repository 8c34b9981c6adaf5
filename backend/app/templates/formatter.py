# backend/app/templates/formatter.py

"""
テンプレート本文のプレースホルダを、ページの値で置き換えるフォーマッタ。

対応するプレースホルダ:
  - {_pageUrl}        ページ URL（Webhook に URL が含まれる場合のみ置換）
  - {_databaseTitle}  データベースタイトル
  - {_now}            現在時刻（yyyy/MM/dd HH:mm:ss）
  - {<プロパティ名>}   スキーマに存在するプロパティの値

1 フィールドの整形に失敗しても空文字に置き換えるだけで、全体の整形は止めない。
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from app.errors import FormattingDegradation
from app.notion.properties import DateValue, Unsupported, decode
from app.notion.schemas import DatabaseSchema, PropertySchema, PropertyType

logger = logging.getLogger(__name__)

NOW_FORMAT = "%Y/%m/%d %H:%M:%S"
DATE_FORMAT = "%Y/%m/%d %H:%M"
LIST_SEPARATOR = ", "
CHECKBOX_CHECKED = "✅"
CHECKBOX_UNCHECKED = "⬜"


def format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_date(value: DateValue) -> str:
    """
    日付を yyyy/MM/dd HH:mm で表示する。期間の場合は "開始 ~ 終了"。
    """
    if value.start is None:
        raise FormattingDegradation("date", f"unparseable start {value.start_raw!r}")

    text = value.start.strftime(DATE_FORMAT)
    if value.end_raw:
        if value.end is None:
            raise FormattingDegradation("date", f"unparseable end {value.end_raw!r}")
        text += f" ~ {value.end.strftime(DATE_FORMAT)}"
    return text


def dump_unsupported(value: Unsupported) -> str:
    """未対応の種別は生の値を JSON 文字列化して表示する。"""
    try:
        return json.dumps(value.raw, ensure_ascii=False)
    except (TypeError, ValueError):
        return f"[Unhandled type: {value.kind}]"


class MessageFormatter:
    """
    テンプレート本文の整形を行うサービス。

    now はテスト用に差し替え可能（デフォルトはローカル時刻）。
    """

    def __init__(self, now: Callable[[], datetime] = datetime.now) -> None:
        self._now = now

    def _render_value(self, prop_schema: PropertySchema, raw: Any) -> str:
        decoded = decode(raw, prop_schema)

        # チェックボックスはページに値があれば、キーが欠けていても未チェック扱い
        if prop_schema.type == PropertyType.CHECKBOX.value and isinstance(raw, dict):
            return CHECKBOX_CHECKED if decoded else CHECKBOX_UNCHECKED
        if decoded is None:
            return ""
        if isinstance(decoded, Unsupported):
            logger.warning(
                "Unhandled property type %r for placeholder {%s}. Rendering raw value.",
                prop_schema.type,
                prop_schema.name,
            )
            return dump_unsupported(decoded)
        if isinstance(decoded, DateValue):
            try:
                return format_date(decoded)
            except FormattingDegradation:
                logger.warning("Failed to format date for property %r.", prop_schema.name)
                return decoded.start_raw
        if isinstance(decoded, list):
            return LIST_SEPARATOR.join(decoded)
        if prop_schema.type == PropertyType.NUMBER.value:
            return format_number(decoded)
        return str(decoded)

    def _render_property(self, prop_schema: PropertySchema, page_properties: Dict[str, Any]) -> str:
        try:
            return self._render_value(prop_schema, page_properties.get(prop_schema.name))
        except Exception:  # noqa: BLE001 - 1 フィールドの失敗で全体を止めない
            logger.warning(
                "Failed to render property %r. Using empty string.",
                prop_schema.name,
                exc_info=True,
            )
            return ""

    def _special_tokens(
        self,
        schema: DatabaseSchema,
        page_url: Optional[str],
    ) -> Dict[str, Callable[[], str]]:
        tokens: Dict[str, Callable[[], str]] = {
            "{_databaseTitle}": lambda: schema.title or "",
            "{_now}": lambda: self._now().strftime(NOW_FORMAT),
        }
        if page_url:
            tokens["{_pageUrl}"] = lambda: page_url
        return tokens

    def format(
        self,
        body: str,
        page_properties: Dict[str, Any],
        schema: DatabaseSchema,
        page_url: Optional[str] = None,
    ) -> str:
        """
        本文中のプレースホルダを置き換えた文字列を返す。例外は投げない。

        置換は本文を 1 回走査するだけで、差し込んだ値の中の "{...}" は再置換しない。
        """
        renderers: Dict[str, Callable[[], str]] = {}
        for prop_schema in schema.properties.values():
            renderers["{" + prop_schema.name + "}"] = (
                lambda prop_schema=prop_schema: self._render_property(prop_schema, page_properties)
            )
        # 同名のプロパティより特殊トークンを優先する
        renderers.update(self._special_tokens(schema, page_url))

        present = [placeholder for placeholder in renderers if placeholder in body]
        if not present:
            return body

        # 名前はリテラルとして扱う（正規表現の特殊文字を含んでもよい）。長い方を先に試す
        pattern = re.compile("|".join(re.escape(p) for p in sorted(present, key=len, reverse=True)))
        rendered: Dict[str, str] = {}

        def substitute(match: re.Match) -> str:
            placeholder = match.group(0)
            if placeholder not in rendered:
                try:
                    rendered[placeholder] = renderers[placeholder]()
                except Exception:  # noqa: BLE001
                    logger.warning("Failed to render placeholder %s.", placeholder, exc_info=True)
                    # {_now} などの特殊トークンは失敗時そのまま残す
                    rendered[placeholder] = placeholder
            return rendered[placeholder]

        return pattern.sub(substitute, body)
