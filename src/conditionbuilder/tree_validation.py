"""
Condition tree validation utilities.

Checks the structural invariants of a tree without any UI dependencies.
Operand values (including regex sources for ``matches``) are not checked;
that belongs to the consumer's field validation.
"""

from typing import Any, Set, Tuple

from .condition_tree import LOGIC_VALUES, ConditionGroup, ConditionRoot, SimpleCondition
from .operators import get_operator_info


def validate_condition_tree(root: Any) -> Tuple[bool, str]:
    """
    Validate a condition tree.

    Args:
        root: Tree to validate

    Returns:
        (is_valid, error_message) tuple
    """
    if not isinstance(root, ConditionRoot):
        return False, "Tree root must be a ConditionRoot"
    if root.logic not in LOGIC_VALUES:
        return False, f"Root logic must be 'and' or 'or', got '{root.logic}'"
    return _validate_items(root.conditions, "conditions", set())


def _validate_items(items: Any, path: str, seen_ids: Set[str]) -> Tuple[bool, str]:
    for index, item in enumerate(items):
        where = f"{path}[{index}]"

        if not isinstance(item, (SimpleCondition, ConditionGroup)):
            return False, f"{where}: item must be a condition or a group"

        if not isinstance(item.id, str) or not item.id.strip():
            return False, f"{where}: id cannot be empty"
        if item.id in seen_ids:
            return False, f"{where}: duplicate id '{item.id}'"
        seen_ids.add(item.id)

        if isinstance(item, ConditionGroup):
            if item.logic not in LOGIC_VALUES:
                return False, f"{where}: group logic must be 'and' or 'or', got '{item.logic}'"
            is_valid, error = _validate_items(item.conditions, f"{where}.conditions", seen_ids)
            if not is_valid:
                return is_valid, error
            continue

        if item.is_unparsed:
            continue

        info = get_operator_info(item.operator)
        if info is None:
            return False, f"{where}: unknown operator '{item.operator}'"
        if info.right_required and item.right is None:
            return False, f"{where}: operator '{info.value}' requires a right-hand value"
        if not info.right_required and item.right is not None:
            return False, f"{where}: operator '{info.value}' takes no right-hand value"

    return True, ""
