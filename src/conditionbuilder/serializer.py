"""
Serializer: condition tree -> JSONLogic.

Lowers a `ConditionRoot` into a JSONLogic value.  Empty roots and groups
become the literal ``true``; every other group becomes ``{logic: [...]}``,
even when it holds a single item, so consumers always see the same shape.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple, Union

from . import package_logger
from .condition_tree import LOGIC_VALUES, ConditionGroup, ConditionRoot, SimpleCondition
from .config import ConversionOptions, resolve_options
from .operators import ComparisonOperator, coerce_value, get_operator_info

logger = package_logger(__name__)

JsonLogic = Union[Dict[str, Any], bool]


def to_json_logic(
    root: Union[ConditionRoot, ConditionGroup],
    options: Optional[ConversionOptions] = None,
    *,
    use_template_syntax: Optional[bool] = None,
) -> JsonLogic:
    """
    Convert a condition tree to JSONLogic.

    Args:
        root: Tree (or group) to lower
        options: Conversion options (defaults from `Config`)
        use_template_syntax: Overrides ``options.use_template_syntax``

    Returns:
        ``True`` for an empty tree, otherwise a ``{"and"|"or": [...]}`` dict
    """
    opts = resolve_options(options, use_template_syntax)
    return _group_to_json_logic(root, opts)


def _group_to_json_logic(group: Union[ConditionRoot, ConditionGroup], opts: ConversionOptions) -> JsonLogic:
    """Lower *group* with an explicit stack so nesting depth is not bound by recursion."""
    if not group.conditions:
        return True
    result, args = _group_shell(group)
    stack = [(iter(group.conditions), args)]
    while stack:
        items, out = stack[-1]
        item = next(items, None)
        if item is None:
            stack.pop()
        elif isinstance(item, ConditionGroup):
            if not item.conditions:
                out.append(True)
                continue
            nested, nested_args = _group_shell(item)
            out.append(nested)
            stack.append((iter(item.conditions), nested_args))
        else:
            out.append(condition_to_json_logic(item, opts))
    return result


def _group_shell(group: Union[ConditionRoot, ConditionGroup]) -> Tuple[Dict[str, List[Any]], List[Any]]:
    logic = group.logic if group.logic in LOGIC_VALUES else "and"
    args: List[Any] = []
    return {logic: args}, args


def _left_operand(left: str, opts: ConversionOptions) -> Any:
    if opts.use_template_syntax and left:
        return left
    return {"var": left}


def _split_list(text: str) -> List[Any]:
    return [coerce_value(part.strip()) for part in text.split(",")]


def condition_to_json_logic(cond: SimpleCondition, opts: Optional[ConversionOptions] = None) -> Any:
    """
    Lower a single row to its operator-specific JSONLogic shape.

    The outer operator key always comes from the registry's ``json_logic_op``;
    only the operand layout is chosen here.
    """
    if cond.unparsed is not None:
        return copy.deepcopy(cond.unparsed.value)

    opts = opts or ConversionOptions()
    info = get_operator_info(cond.operator)
    if info is None:
        logger.warning(f"Unknown operator '{cond.operator}', serializing as '=='")
        info = get_operator_info(ComparisonOperator.EQ)
    op = info.value
    key = info.json_logic_op

    left = _left_operand(cond.left, opts)
    right_text = cond.right if cond.right is not None else ""

    if op in (ComparisonOperator.IS_TRUE, ComparisonOperator.IS_FALSE):
        return {key: [left]}
    if op in (ComparisonOperator.IS_EMPTY, ComparisonOperator.IS_NOT_EMPTY):
        return {key: _empty_clauses(op, cond.left, opts)}
    if op is ComparisonOperator.IN:
        return {key: [left, _split_list(right_text)]}
    if op is ComparisonOperator.CONTAINS:
        # JSONLogic "in" with a string haystack is a substring search
        return {key: [coerce_value(right_text), left]}
    if op is ComparisonOperator.MATCHES:
        return {key: [left, right_text]}
    return {key: [left, coerce_value(right_text)]}


def _empty_clauses(op: ComparisonOperator, left_text: str, opts: ConversionOptions) -> List[Dict[str, Any]]:
    """Clauses of the null/empty-string test; each gets its own operand copy."""
    if op is ComparisonOperator.IS_EMPTY:
        return [
            {"==": [_left_operand(left_text, opts), ""]},
            {"==": [_left_operand(left_text, opts), None]},
            {"!": [_left_operand(left_text, opts)]},
        ]
    return [
        {"!=": [_left_operand(left_text, opts), ""]},
        {"!=": [_left_operand(left_text, opts), None]},
        {"!!": [_left_operand(left_text, opts)]},
    ]
