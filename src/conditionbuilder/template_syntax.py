"""
Template syntax helpers.

In template mode variable references are written as ``{{path}}`` string
literals instead of JSONLogic ``{"var": path}`` nodes, and substitution is
left to the consumer's template engine.
"""

import re
from typing import Optional

_TEMPLATE_RE = re.compile(r"^\{\{\s*(.+?)\s*\}\}$")


def to_display_string(var_path: str) -> str:
    """Wrap a variable path as ``{{path}}``."""
    return "{{" + var_path + "}}"


def from_display_string(text: str) -> Optional[str]:
    """Return the path inside a ``{{path}}`` string, or None if *text* is not one."""
    if not isinstance(text, str):
        return None
    match = _TEMPLATE_RE.fullmatch(text)
    if match is None:
        return None
    return match.group(1)
