"""
One-line human summaries of condition trees, for list views and tooltips.
"""

from typing import Union

from .condition_tree import ConditionGroup, ConditionItem, ConditionRoot, SimpleCondition
from .operators import get_operator_info

ALWAYS = "(always)"


def summarize_condition(cond: SimpleCondition) -> str:
    """Render ``left <symbol-or-label> right``."""
    if cond.is_unparsed:
        return cond.left

    info = get_operator_info(cond.operator)
    if info is None:
        return f"{cond.left} {cond.operator} {cond.right or ''}".rstrip()

    op_text = info.symbol or info.label
    left = cond.left or "?"
    if not info.right_required:
        return f"{left} {op_text}"
    right = cond.right if cond.right else '""'
    if info.right_type == "array":
        right = f"[{right}]"
    elif info.right_type == "regex":
        right = f"/{right}/"
    return f"{left} {op_text} {right}"


def _summarize_item(item: ConditionItem) -> str:
    if isinstance(item, ConditionGroup):
        inner = summarize_tree(item)
        return inner if inner == ALWAYS or len(item.conditions) == 1 else f"({inner})"
    return summarize_condition(item)


def summarize_tree(root: Union[ConditionRoot, ConditionGroup]) -> str:
    """
    Summarize a tree, e.g. ``order.total > 100 AND (user.role = admin OR ...)``.

    An empty tree renders as "(always)".
    """
    if not root.conditions:
        return ALWAYS
    joiner = f" {root.logic.upper()} "
    return joiner.join(_summarize_item(item) for item in root.conditions)
