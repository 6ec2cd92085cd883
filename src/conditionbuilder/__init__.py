"""
Condition Builder - convert between visual condition trees and JSONLogic.

The editor manipulates rows of ``left operator right`` grouped under AND/OR;
downstream systems persist and evaluate JSONLogic.  `to_json_logic` lowers a
tree into JSONLogic and `from_json_logic` lifts arbitrary JSONLogic back into
a tree, keeping anything it cannot represent as an opaque leaf.
"""

import logging
import sys

from .version import __version__

__author__ = "Condition Builder Contributors"
__license__ = "MIT"

# Central logger name for the package.  Hosts embedding the builder can
# re-parent it under their own hierarchy with set_package_logger_name().
_PACKAGE_LOGGER_NAME: str = "conditionbuilder"


def set_package_logger_name(name: str) -> None:
    """Override the package logger name (e.g. "myapp.conditionbuilder")."""
    global _PACKAGE_LOGGER_NAME
    _PACKAGE_LOGGER_NAME = name

    # Rebind module-level logger objects in already-imported submodules.
    _submodule_names = ("config", "parser", "serializer")
    for suffix in _submodule_names:
        module = sys.modules.get(f"conditionbuilder.{suffix}")
        if module is not None and hasattr(module, "logger"):
            module.logger = package_logger(module.__name__)


def package_logger(module: str) -> logging.Logger:
    """Return a child logger under the package hierarchy.

    Usage in submodules::

        from conditionbuilder import package_logger
        logger = package_logger(__name__)

    By default this yields e.g. ``conditionbuilder.parser``.
    """
    base = _PACKAGE_LOGGER_NAME
    prefix = "conditionbuilder."
    if module.startswith(prefix):
        return logging.getLogger(f"{base}.{module[len(prefix):]}")
    return logging.getLogger(base)


from .operators import OPERATORS, ComparisonOperator, OperatorInfo, get_operator_info, list_operators
from .condition_tree import (
    ConditionGroup,
    ConditionPathError,
    ConditionRoot,
    ConditionTreeError,
    IdGenerator,
    SimpleCondition,
    Unparsed,
    create_empty_condition,
    create_empty_group,
    create_empty_root,
    find_path,
    get_item,
    insert_item,
    remove_item,
    replace_item,
    set_logic,
    shared_id_source,
    tree_from_dict,
    tree_to_dict,
    update_condition,
)
from .template_syntax import from_display_string, to_display_string
from .config import Config, ConversionOptions
from .serializer import to_json_logic
from .parser import from_json_logic
from .summary import summarize_tree
from .tree_validation import validate_condition_tree

__all__ = [
    "OPERATORS",
    "ComparisonOperator",
    "OperatorInfo",
    "get_operator_info",
    "list_operators",
    "ConditionGroup",
    "ConditionPathError",
    "ConditionRoot",
    "ConditionTreeError",
    "IdGenerator",
    "SimpleCondition",
    "Unparsed",
    "create_empty_condition",
    "create_empty_group",
    "create_empty_root",
    "find_path",
    "get_item",
    "insert_item",
    "remove_item",
    "replace_item",
    "set_logic",
    "shared_id_source",
    "tree_from_dict",
    "tree_to_dict",
    "update_condition",
    "from_display_string",
    "to_display_string",
    "Config",
    "ConversionOptions",
    "to_json_logic",
    "from_json_logic",
    "summarize_tree",
    "validate_condition_tree",
]
