"""
Parser: JSONLogic -> condition tree.

Lifts an arbitrary JSON value into a `ConditionRoot`.  Recognises:
- ``and``/``or`` groups, nested to any depth
- Every operator shape the serializer emits
- Legacy shapes written by earlier editor versions (``===``, ``== true``,
  ``substr``-based prefix/suffix tests)

Anything else becomes an opaque row that carries the original fragment, so
re-serializing an untouched tree gives back the input.  Parsing never raises
for JSON input.
"""

from __future__ import annotations

import copy
import math
from typing import Any, List, Optional, Sequence, Tuple

from . import package_logger
from .condition_tree import (
    ConditionGroup,
    ConditionItem,
    ConditionRoot,
    IdSource,
    SimpleCondition,
    create_empty_group,
    create_empty_root,
    create_unparsed_condition,
    new_id,
)
from .config import ConversionOptions, resolve_options
from .operators import ComparisonOperator, coerce_value, format_number, is_number
from .template_syntax import to_display_string

logger = package_logger(__name__)

_COMPARISONS = {
    "==": ComparisonOperator.EQ,
    "===": ComparisonOperator.EQ,
    "!=": ComparisonOperator.NE,
    "!==": ComparisonOperator.NE,
    ">": ComparisonOperator.GT,
    ">=": ComparisonOperator.GTE,
    "<": ComparisonOperator.LT,
    "<=": ComparisonOperator.LTE,
}

_STRING_TESTS = {
    "startsWith": ComparisonOperator.STARTS_WITH,
    "endsWith": ComparisonOperator.ENDS_WITH,
}


def from_json_logic(
    value: Any,
    options: Optional[ConversionOptions] = None,
    *,
    use_template_syntax: Optional[bool] = None,
    id_source: Optional[IdSource] = None,
) -> ConditionRoot:
    """
    Convert a JSONLogic value to a condition tree.

    Args:
        value: Parsed JSON (typically a dict or ``True``)
        options: Conversion options (defaults from `Config`)
        use_template_syntax: Overrides ``options.use_template_syntax``
        id_source: Callable minting node ids (default: process-wide counter)

    Returns:
        A new tree; ``true``, ``null`` and non-object values give an empty root
    """
    opts = resolve_options(options, use_template_syntax)
    return JsonLogicParser(opts, id_source).parse(value)


def _single_operator(node: Any) -> Optional[Tuple[str, Any]]:
    """Return ``(key, args)`` for a one-key dict, else None."""
    if isinstance(node, dict) and len(node) == 1:
        return next(iter(node.items()))
    return None


def _operator_args(node: Any, key: str, arity: int) -> Optional[List[Any]]:
    """Return the operand list of ``{key: [...]}`` if it has *arity* operands."""
    pair = _single_operator(node)
    if pair is None or pair[0] != key:
        return None
    args = pair[1]
    if isinstance(args, list) and len(args) == arity:
        return args
    return None


def _group_parts(node: Any) -> Optional[Tuple[str, List[Any]]]:
    pair = _single_operator(node)
    if pair is None:
        return None
    key, args = pair
    if key in ("and", "or") and isinstance(args, list):
        return key, args
    return None


def _var_path(value: Any) -> Optional[str]:
    """Unwrap ``{"var": "path"}`` (or ``{"var": ["path"]}``)."""
    pair = _single_operator(value)
    if pair is None or pair[0] != "var":
        return None
    path = pair[1]
    if isinstance(path, list) and len(path) == 1:
        path = path[0]
    if isinstance(path, str):
        return path
    return None


class JsonLogicParser:
    """
    Recursive parser for one conversion.

    Every ``_match_*`` helper returns None when the node is not exactly the
    shape it looks for; the caller then tries the next shape or falls back
    to an opaque row.
    """

    def __init__(self, options: ConversionOptions, id_source: Optional[IdSource] = None) -> None:
        self.options = options
        self.id_source = id_source
        self.template = options.use_template_syntax

    def parse(self, value: Any) -> ConditionRoot:
        if value is True or not isinstance(value, dict):
            return create_empty_root()

        condition = self.match_condition(value)
        if condition is not None:
            return ConditionRoot(logic="and", conditions=(condition,))

        parts = _group_parts(value)
        if parts is not None:
            logic, items = parts
            conditions = []
            for item in items:
                conditions.append(self.parse_item(item, depth=1))
            return ConditionRoot(logic=logic, conditions=conditions)

        return ConditionRoot(logic="and", conditions=(self._fallback(value),))

    def parse_item(self, node: Any, depth: int) -> ConditionItem:
        """Parse one element of a group's operand array."""
        if node is True:
            # An empty group serializes to a bare ``true``
            return create_empty_group(id_source=self.id_source)

        condition = self.match_condition(node)
        if condition is not None:
            return condition

        parts = _group_parts(node)
        if parts is not None:
            max_depth = self.options.max_depth
            if max_depth is not None and depth > max_depth:
                logger.debug(f"Group nested deeper than {max_depth}, keeping it opaque")
                return self._fallback(node)
            logic, items = parts
            group_id = new_id(self.id_source)
            # Plain loop: one frame per nesting level
            conditions = []
            for item in items:
                conditions.append(self.parse_item(item, depth + 1))
            return ConditionGroup(id=group_id, logic=logic, conditions=conditions)

        return self._fallback(node)

    def match_condition(self, node: Any) -> Optional[SimpleCondition]:
        """Return the row *node* encodes, or None if no operator shape matches."""
        pair = _single_operator(node)
        if pair is None:
            return None
        key, args = pair

        if key in ("and", "or"):
            return self._match_empty_test(key, args)
        if key in ("!", "!!"):
            return self._match_truthiness(key, args)
        if key in _COMPARISONS:
            return self._match_comparison(key, args)
        if key == "in":
            return self._match_in(args)
        if key in _STRING_TESTS:
            return self._match_string_test(_STRING_TESTS[key], args)
        if key == "matches":
            return self._match_regex(args)
        return None

    # ------------------------------------------------------------------
    # Shape matchers
    # ------------------------------------------------------------------

    def _match_truthiness(self, key: str, args: Any) -> Optional[SimpleCondition]:
        if isinstance(args, list):
            if len(args) != 1:
                return None
            operand = args[0]
        else:
            operand = args
        left = self._left(operand)
        if left is None:
            return None
        op = ComparisonOperator.IS_FALSE if key == "!" else ComparisonOperator.IS_TRUE
        return self._condition(left, op, None)

    def _match_comparison(self, key: str, args: Any) -> Optional[SimpleCondition]:
        if not isinstance(args, list) or len(args) != 2:
            return None
        op = _COMPARISONS[key]

        if op is ComparisonOperator.EQ:
            affix = self._match_legacy_affix(args)
            if affix is not None:
                return affix

        left = self._left(args[0])
        if left is None:
            return None

        if op is ComparisonOperator.EQ and isinstance(args[1], bool):
            op = ComparisonOperator.IS_TRUE if args[1] else ComparisonOperator.IS_FALSE
            return self._condition(left, op, None)

        right = self._right_scalar(args[1])
        if right is None:
            return None
        return self._condition(left, op, right)

    def _match_in(self, args: Any) -> Optional[SimpleCondition]:
        if not isinstance(args, list) or len(args) != 2:
            return None
        needle, haystack = args

        if isinstance(haystack, list):
            left = self._left(needle)
            right = self._right_list(haystack)
            if left is None or right is None:
                return None
            return self._condition(left, ComparisonOperator.IN, right)

        # {"in": [substring, left]} is a substring search
        left = self._left(haystack)
        right = self._right_scalar(needle)
        if left is None or right is None:
            return None
        return self._condition(left, ComparisonOperator.CONTAINS, right)

    def _match_string_test(self, op: ComparisonOperator, args: Any) -> Optional[SimpleCondition]:
        if not isinstance(args, list) or len(args) != 2:
            return None
        left = self._left(args[0])
        right = self._right_scalar(args[1])
        if left is None or right is None:
            return None
        return self._condition(left, op, right)

    def _match_regex(self, args: Any) -> Optional[SimpleCondition]:
        if not isinstance(args, list) or len(args) != 2:
            return None
        left = self._left(args[0])
        pattern = args[1]
        if left is None or not isinstance(pattern, str):
            return None
        return self._condition(left, ComparisonOperator.MATCHES, pattern)

    def _match_empty_test(self, key: str, args: Any) -> Optional[SimpleCondition]:
        """
        Match the compound null/empty-string tests.

        isEmpty:    {"or":  [{"==": [L, ""]}, {"==": [L, null]}, {"!": [L]}]}
        isNotEmpty: {"and": [{"!=": [L, ""]}, {"!=": [L, null]}, {"!!": [L]}]}
        """
        if not isinstance(args, list) or len(args) != 3:
            return None
        compare, unary = ("==", "!") if key == "or" else ("!=", "!!")

        blank = _operator_args(args[0], compare, 2)
        null = _operator_args(args[1], compare, 2)
        truthy = _single_operator(args[2])
        if blank is None or null is None or truthy is None or truthy[0] != unary:
            return None
        if not (isinstance(blank[1], str) and blank[1] == "") or null[1] is not None:
            return None

        operand = truthy[1]
        if isinstance(operand, list):
            if len(operand) != 1:
                return None
            operand = operand[0]
        if not (blank[0] == null[0] == operand):
            return None

        left = self._left(operand)
        if left is None:
            return None
        op = ComparisonOperator.IS_EMPTY if key == "or" else ComparisonOperator.IS_NOT_EMPTY
        return self._condition(left, op, None)

    def _match_legacy_affix(self, args: Sequence[Any]) -> Optional[SimpleCondition]:
        """
        Match the ``substr``/``strlen`` prefix and suffix tests.

        startsWith: {"==": [{"substr": [L, 0, {"strlen": R}]}, R]}
        endsWith:   {"==": [{"substr": [L, {"*": [{"strlen": R}, -1]}]}, R]}
        """
        substr = _single_operator(args[0])
        if substr is None or substr[0] != "substr" or not isinstance(substr[1], list):
            return None
        expected = args[1]
        operands = substr[1]

        if len(operands) == 3 and operands[1] == 0 and not isinstance(operands[1], bool):
            op = ComparisonOperator.STARTS_WITH
            length = operands[2]
        elif len(operands) == 2:
            op = ComparisonOperator.ENDS_WITH
            negated = _operator_args(operands[1], "*", 2)
            if negated is None or negated[1] != -1 or isinstance(negated[1], bool):
                return None
            length = negated[0]
        else:
            return None

        strlen = _single_operator(length)
        if strlen is None or strlen[0] != "strlen" or strlen[1] != expected:
            return None

        left = self._left(operands[0])
        right = self._right_scalar(expected)
        if left is None or right is None:
            return None
        return self._condition(left, op, right)

    # ------------------------------------------------------------------
    # Operands
    # ------------------------------------------------------------------

    def _left(self, value: Any) -> Optional[str]:
        """
        Left-hand text for *value*, or None if the editor cannot show it.

        ``{"var": path}`` always unwraps; in template mode it becomes
        ``{{path}}``.  In template mode a non-empty raw string is taken as
        typed, whether or not `from_display_string` recognises it as
        ``{{path}}``, because the serializer writes every non-empty
        template-mode left side verbatim.  Whitespace inside ``{{ path }}``
        is kept so the string re-serializes unchanged.
        """
        path = _var_path(value)
        if path is not None:
            if self.template and path:
                return to_display_string(path)
            return path
        if self.template and isinstance(value, str) and value:
            return value
        return None

    def _right_scalar(self, value: Any) -> Optional[str]:
        """
        Right-hand text for *value*.

        Strings that would come back as numbers are rejected so that
        re-serializing never changes an operand's type.
        """
        if is_number(value):
            if isinstance(value, float) and not math.isfinite(value):
                return None
            return format_number(value)
        if isinstance(value, str):
            if isinstance(coerce_value(value), str):
                return value
            return None
        if self.template:
            path = _var_path(value)
            if path:
                return to_display_string(path)
        return None

    def _right_list(self, values: List[Any]) -> Optional[str]:
        if not values:
            return None
        parts = []
        for value in values:
            text = self._right_scalar(value)
            if text is None or "," in text or text != text.strip():
                return None
            parts.append(text)
        return ", ".join(parts)

    # ------------------------------------------------------------------
    # Node construction
    # ------------------------------------------------------------------

    def _condition(self, left: str, op: ComparisonOperator, right: Optional[str]) -> SimpleCondition:
        return SimpleCondition(id=new_id(self.id_source), left=left, operator=op, right=right)

    def _fallback(self, node: Any) -> SimpleCondition:
        logger.debug(f"Unrecognized JSONLogic shape, keeping it opaque: {node!r}")
        return create_unparsed_condition(copy.deepcopy(node), id_source=self.id_source)
