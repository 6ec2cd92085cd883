"""
Operator registry for condition rows.

Defines the fixed, ordered catalogue of comparison operators the editor
offers, together with:
- The JSONLogic operator keyword each one lowers to
- Whether a right-hand value is required
- A coercion hint for the right-hand text
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union


class ComparisonOperator(str, Enum):
    """Operator ids used by condition rows."""
    EQ = "=="
    NE = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IN = "in"
    MATCHES = "matches"
    IS_TRUE = "isTrue"
    IS_FALSE = "isFalse"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OperatorInfo:
    """Display and serialization metadata for one operator."""
    value: ComparisonOperator
    label: str
    json_logic_op: str
    right_required: bool
    symbol: Optional[str] = None
    right_type: Optional[str] = None
    description: Optional[str] = None


# Display order matters: the UI lists operators in this order.
OPERATORS: List[OperatorInfo] = [
    OperatorInfo(ComparisonOperator.EQ, "equals", "==", True, symbol="=", right_type="text"),
    OperatorInfo(ComparisonOperator.NE, "not equals", "!=", True, symbol="≠", right_type="text"),
    OperatorInfo(ComparisonOperator.GT, "greater than", ">", True, symbol=">", right_type="number"),
    OperatorInfo(ComparisonOperator.GTE, "greater or equal", ">=", True, symbol="≥", right_type="number"),
    OperatorInfo(ComparisonOperator.LT, "less than", "<", True, symbol="<", right_type="number"),
    OperatorInfo(ComparisonOperator.LTE, "less or equal", "<=", True, symbol="≤", right_type="number"),
    OperatorInfo(
        ComparisonOperator.CONTAINS, "contains", "in", True,
        right_type="text", description="String contains substring",
    ),
    OperatorInfo(ComparisonOperator.STARTS_WITH, "starts with", "startsWith", True, right_type="text"),
    OperatorInfo(ComparisonOperator.ENDS_WITH, "ends with", "endsWith", True, right_type="text"),
    OperatorInfo(
        ComparisonOperator.IN, "in list", "in", True,
        right_type="array", description="Value is in a comma-separated list",
    ),
    OperatorInfo(ComparisonOperator.MATCHES, "matches regex", "matches", True, right_type="regex"),
    OperatorInfo(ComparisonOperator.IS_TRUE, "is true", "!!", False),
    OperatorInfo(ComparisonOperator.IS_FALSE, "is false", "!", False),
    OperatorInfo(
        ComparisonOperator.IS_EMPTY, "is empty", "or", False,
        description="Empty string, null, or undefined",
    ),
    OperatorInfo(ComparisonOperator.IS_NOT_EMPTY, "is not empty", "and", False),
]

_OPERATORS_BY_VALUE = {info.value.value: info for info in OPERATORS}


def list_operators() -> List[OperatorInfo]:
    """Return the operator catalogue in display order."""
    return list(OPERATORS)


def get_operator_info(op: Union[ComparisonOperator, str, None]) -> Optional[OperatorInfo]:
    """Look up operator metadata by id; unknown ids return None."""
    if isinstance(op, ComparisonOperator):
        return _OPERATORS_BY_VALUE.get(op.value)
    if isinstance(op, str):
        return _OPERATORS_BY_VALUE.get(op)
    return None


# JSON number grammar (no leading zeros, no bare "." forms).
_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")


def coerce_value(text: str) -> Any:
    """
    Turn right-hand text into the JSON value it stands for.

    Text becomes a number only when its canonical rendering is the text
    itself, so "18" -> 18 but "007" and "1.50" stay strings.  Template
    expressions are never coerced.
    """
    if "{{" in text and "}}" in text:
        return text
    trimmed = text.strip()
    if not _NUMBER_RE.fullmatch(trimmed):
        return text
    if "." in trimmed or "e" in trimmed or "E" in trimmed:
        number: Union[int, float] = float(trimmed)
        if not math.isfinite(number):
            return text
    else:
        number = int(trimmed)
    if format_number(number) != trimmed:
        return text
    return number


def format_number(number: Union[int, float]) -> str:
    """Render a number without locale formatting."""
    if isinstance(number, float):
        return repr(number)
    return str(number)


def is_number(value: Any) -> bool:
    # bool is an int subclass but is not a JSON number
    return isinstance(value, (int, float)) and not isinstance(value, bool)
