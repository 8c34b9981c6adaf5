# backend/app/templates/conditions.py

"""
テンプレート条件の評価ロジック。

デコード済みのプロパティ値 1 つと、条件の演算子・比較値から真偽を返す。

- "=" / "!=" はリスト値なら「含まれるか」、それ以外は文字列表現同士で比較する
  （数値 5 と文字列 "5" は等しい扱い）
- "in" は比較値がリストのときだけ評価し、それ以外は常に False
- "<" / ">" は数値同士、または日付と日付として解釈できる比較値のときだけ評価する
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from app.notion.properties import DateValue, Unsupported, as_utc, parse_datetime

from .schemas import ConditionOperator

logger = logging.getLogger(__name__)


def is_empty_value(value: Any) -> bool:
    """None / 空文字 / 空リストを「空」とみなす。"""
    if value is None:
        return True
    if isinstance(value, str) and value == "":
        return True
    if isinstance(value, list) and len(value) == 0:
        return True
    return False


def to_comparable_string(value: Any) -> str:
    """
    "=" / "!=" の比較に使う文字列表現。

    checkbox の True と条件値 "true" が等しくなるように、真偽値は小文字にする。
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(to_comparable_string(item) for item in value)
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    return parse_datetime(value)


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, list):
        return expected in actual
    return to_comparable_string(actual) == to_comparable_string(expected)


def _contained_in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, list):
        logger.warning("'in' operator requires a list condition value, got %r.", expected)
        return False
    if isinstance(actual, list):
        return any(item in expected for item in actual)
    return actual in expected


def _compare(actual: Any, expected: Any, operator: ConditionOperator) -> bool:
    if _is_number(actual) and _is_number(expected):
        left, right = actual, expected
    elif isinstance(actual, DateValue) and actual.start is not None:
        expected_dt = _as_datetime(expected)
        if expected_dt is None:
            return False
        left, right = as_utc(actual.start), as_utc(expected_dt)
    else:
        return False

    if operator == ConditionOperator.LESS_THAN:
        return left < right
    return left > right


def evaluate(actual: Any, operator: ConditionOperator, expected: Any) -> bool:
    """
    デコード済みの値 actual に対して条件を評価する。

    :param actual: app.notion.properties.decode の戻り値
    :param operator: 比較演算子
    :param expected: 条件に設定された比較値
    """
    operator = ConditionOperator(operator)

    if operator == ConditionOperator.IS_EMPTY:
        return is_empty_value(actual)
    if operator == ConditionOperator.IS_NOT_EMPTY:
        return not is_empty_value(actual)

    if isinstance(actual, Unsupported):
        return False

    if operator == ConditionOperator.EQUALS:
        return _equals(actual, expected)
    if operator == ConditionOperator.NOT_EQUALS:
        return not _equals(actual, expected)
    if operator == ConditionOperator.IN:
        return _contained_in(actual, expected)
    return _compare(actual, expected, operator)
