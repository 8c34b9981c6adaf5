# backend/app/templates/matcher.py

"""
ページのプロパティに一致するテンプレートを絞り込む。
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from app.notion.properties import Unsupported, decode
from app.notion.schemas import DatabaseSchema

from .conditions import evaluate
from .schemas import ConditionOperator, Template, TemplateCondition

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _condition_holds_for_missing_property(condition: TemplateCondition) -> bool:
    """
    ページデータにプロパティ自体が無い場合の判定。

    - is_empty は成立
    - != と空の比較値（None / ""）は成立
    - それ以外（is_not_empty を含む）は不成立
    """
    if condition.operator == ConditionOperator.IS_EMPTY:
        return True
    if condition.operator == ConditionOperator.NOT_EQUALS and _is_blank(condition.value):
        return True
    return False


def _condition_holds(
    condition: TemplateCondition,
    page_properties: Dict[str, Any],
    schema: DatabaseSchema,
    template: Template,
) -> bool:
    prop_schema = schema.find_property(condition.property_id)
    if prop_schema is None:
        # スキーマに無いプロパティを参照する条件は判定しない（満たしたものとして扱う）
        logger.warning(
            "Condition property %r not found in schema %s for template %s. Skipping this condition.",
            condition.property_id,
            schema.id,
            template.id,
        )
        return True

    if prop_schema.name not in page_properties:
        logger.debug(
            "Property %r not found in page data for template %s.",
            prop_schema.name,
            template.id,
        )
        return _condition_holds_for_missing_property(condition)

    actual = decode(page_properties[prop_schema.name], prop_schema)
    if isinstance(actual, Unsupported):
        logger.warning(
            "Property %r has unsupported type %r. Condition fails for template %s.",
            prop_schema.name,
            prop_schema.type,
            template.id,
        )
        return False

    return evaluate(actual, condition.operator, condition.value)


def template_matches(
    template: Template,
    page_properties: Dict[str, Any],
    schema: DatabaseSchema,
) -> bool:
    """
    テンプレートの条件をすべて満たすか。条件が無ければ常に True。
    最初に不成立だった条件で打ち切る。
    """
    return all(
        _condition_holds(condition, page_properties, schema, template)
        for condition in template.conditions
    )


def find_matching_templates(
    page_properties: Dict[str, Any],
    templates: Sequence[Template],
    schema: DatabaseSchema,
) -> List[Template]:
    """
    条件に一致するテンプレートを、入力の順序を保ったまま返す。
    """
    matched: List[Template] = []
    for template in templates:
        if template_matches(template, page_properties, schema):
            logger.info("Template %s (%s) matched all conditions.", template.id, template.name)
            matched.append(template)
        else:
            logger.debug("Template %s did not match.", template.id)
    return matched
