# backend/app/notion/properties.py

"""
Notion ページプロパティのデコーダ。

Webhook で届くプロパティ値は種別ごとに形が違う（title は rich text の配列、
select は {"name": ...} など）。ここで種別ごとのデコード関数に振り分けて、
条件判定とメッセージ整形の両方で使う「正規化済みの値」に変換する。

デコード結果:
  - title / rich_text / url / email / phone_number / select / status -> str または None
  - number       -> int / float または None
  - multi_select -> 選択肢名のリスト
  - checkbox     -> bool
  - date         -> DateValue（end は表示用にだけ保持）
  - people       -> 表示名（なければ ID）のリスト
  - files        -> ファイル名（なければ URL）のリスト
  - 未対応の種別 -> Unsupported
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from .schemas import PropertySchema, PropertyType


@dataclass(frozen=True)
class DateValue:
    """date プロパティのデコード結果。"""

    start_raw: str
    start: Optional[datetime]
    end_raw: Optional[str] = None
    end: Optional[datetime] = None

    def __str__(self) -> str:
        # 文字列比較（= / !=）では Notion が返した開始日の表記をそのまま使う
        return self.start_raw


@dataclass(frozen=True)
class Unsupported:
    """
    デコードに対応していない種別の値。

    条件判定では常に不成立、メッセージ整形では生の値を JSON 文字列化して表示する。
    """

    kind: str
    raw: Any


DecodedValue = Union[None, str, int, float, bool, List[str], DateValue]


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    ISO8601 文字列を datetime に変換する。変換できなければ None。
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        # Notion は "2024-01-01" や "2024-01-01T09:00:00.000Z" の形で返す
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def as_utc(value: datetime) -> datetime:
    """
    比較用に tz 付き datetime に揃える。tzinfo がない場合は UTC とみなす。
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _plain_text(runs: Any) -> Optional[str]:
    if not isinstance(runs, list):
        return None
    return "".join(
        run.get("plain_text") or ""
        for run in runs
        if isinstance(run, dict)
    )


def _decode_text(raw: Dict[str, Any], kind: str) -> Optional[str]:
    return _plain_text(raw.get(kind))


def _decode_number(raw: Dict[str, Any], kind: str) -> Union[int, float, None]:
    value = raw.get("number")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _decode_option_name(raw: Dict[str, Any], kind: str) -> Optional[str]:
    option = raw.get(kind)
    if isinstance(option, dict):
        name = option.get("name")
        if isinstance(name, str):
            return name
    return None


def _decode_multi_select(raw: Dict[str, Any], kind: str) -> List[str]:
    options = raw.get("multi_select")
    if not isinstance(options, list):
        return []
    return [
        opt["name"]
        for opt in options
        if isinstance(opt, dict) and isinstance(opt.get("name"), str)
    ]


def _decode_checkbox(raw: Dict[str, Any], kind: str) -> Optional[bool]:
    if "checkbox" not in raw:
        return None
    return bool(raw["checkbox"])


def _decode_date(raw: Dict[str, Any], kind: str) -> Optional[DateValue]:
    date = raw.get("date")
    if not isinstance(date, dict):
        return None

    start = date.get("start")
    if not isinstance(start, str) or not start:
        return None

    end = date.get("end")
    if not isinstance(end, str) or not end:
        end = None

    return DateValue(
        start_raw=start,
        start=parse_datetime(start),
        end_raw=end,
        end=parse_datetime(end),
    )


def _decode_people(raw: Dict[str, Any], kind: str) -> List[str]:
    people = raw.get("people")
    if not isinstance(people, list):
        return []
    names: List[str] = []
    for person in people:
        if not isinstance(person, dict):
            continue
        label = person.get("name") or person.get("id")
        if label:
            names.append(str(label))
    return names


def _file_label(file_obj: Dict[str, Any]) -> Optional[str]:
    if file_obj.get("name"):
        return str(file_obj["name"])
    if file_obj.get("url"):
        return str(file_obj["url"])
    # {"type": "external", "external": {"url": ...}} 形式
    nested = file_obj.get(file_obj.get("type") or "")
    if isinstance(nested, dict) and nested.get("url"):
        return str(nested["url"])
    return None


def _decode_files(raw: Dict[str, Any], kind: str) -> List[str]:
    files = raw.get("files")
    if not isinstance(files, list):
        return []
    labels = [_file_label(f) for f in files if isinstance(f, dict)]
    return [label for label in labels if label]


def _decode_plain(raw: Dict[str, Any], kind: str) -> Optional[str]:
    value = raw.get(kind)
    if isinstance(value, str):
        return value
    return None


_DECODERS: Dict[str, Callable[[Dict[str, Any], str], DecodedValue]] = {
    PropertyType.TITLE.value: _decode_text,
    PropertyType.RICH_TEXT.value: _decode_text,
    PropertyType.NUMBER.value: _decode_number,
    PropertyType.SELECT.value: _decode_option_name,
    PropertyType.STATUS.value: _decode_option_name,
    PropertyType.MULTI_SELECT.value: _decode_multi_select,
    PropertyType.CHECKBOX.value: _decode_checkbox,
    PropertyType.DATE.value: _decode_date,
    PropertyType.PEOPLE.value: _decode_people,
    PropertyType.FILES.value: _decode_files,
    PropertyType.URL.value: _decode_plain,
    PropertyType.EMAIL.value: _decode_plain,
    PropertyType.PHONE_NUMBER.value: _decode_plain,
}


def decode(raw: Any, prop_schema: PropertySchema) -> Union[DecodedValue, Unsupported]:
    """
    ページプロパティの生の値を、スキーマの種別に従ってデコードする。

    :param raw: Webhook ペイロードの properties[<name>] の値
    :param prop_schema: 対応するプロパティ定義
    :return: デコード済みの値。未対応の種別や想定外の形なら Unsupported。
    """
    if raw is None:
        return None

    decoder = _DECODERS.get(prop_schema.type)
    if decoder is None or not isinstance(raw, dict):
        return Unsupported(kind=prop_schema.type, raw=raw)

    return decoder(raw, prop_schema.type)
