"""
Condition tree model for the visual editor.

A tree is a `ConditionRoot` holding `SimpleCondition` rows and nested
`ConditionGroup`s.  Nodes are immutable; every edit goes through the pure
path-based helpers in this module and returns a new root, leaving the input
untouched.  A path is a tuple of indices into successive ``conditions``
sequences; the empty path addresses the root itself.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple, Union

from .operators import ComparisonOperator, get_operator_info

LOGIC_VALUES = ("and", "or")

# Left-hand text shown for rows that hold JSONLogic the editor cannot represent.
UNPARSED_PLACEHOLDER = "(unsupported expression)"

Path = Tuple[int, ...]
IdSource = Callable[[], str]


class ConditionTreeError(Exception):
    """Raised when a dict cannot be read as a condition tree."""
    pass


class ConditionPathError(Exception):
    """Raised when a path does not address a node of the expected kind."""
    pass


class IdGenerator:
    """
    Mints ids of the form ``<prefix>-<n>`` from a monotonic counter.

    Ids are never reused for the lifetime of the generator.  Pass an
    instance as ``id_source`` to get deterministic ids in tests.
    """

    def __init__(self, prefix: str = "cond", start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


_shared_id_sources: Dict[str, IdGenerator] = {}


def shared_id_source(prefix: str = "cond") -> IdGenerator:
    """
    Return the process-wide generator for *prefix*, creating it on first use.

    Every caller asking for the same prefix draws from one counter, so ids
    minted through different entry points never collide.
    """
    source = _shared_id_sources.get(prefix)
    if source is None:
        source = _shared_id_sources.setdefault(prefix, IdGenerator(prefix))
    return source


_default_id_source = shared_id_source("cond")


def new_id(id_source: Optional[IdSource] = None) -> str:
    """Mint an id from *id_source*, or from the process-wide generator."""
    return (id_source or _default_id_source)()


@dataclass(frozen=True)
class Unparsed:
    """A JSONLogic fragment kept verbatim because no operator shape matched."""
    value: Any


@dataclass(frozen=True)
class SimpleCondition:
    """One ``left operator right`` row."""
    id: str
    left: str = ""
    operator: Union[ComparisonOperator, str] = ComparisonOperator.EQ
    right: Optional[str] = ""
    unparsed: Optional[Unparsed] = None
    type: str = field(default="condition", init=False)

    @property
    def is_unparsed(self) -> bool:
        return self.unparsed is not None


@dataclass(frozen=True)
class ConditionGroup:
    """A nested AND/OR group of rows and groups."""
    id: str
    logic: str = "and"
    conditions: Sequence["ConditionItem"] = ()
    type: str = field(default="group", init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))


@dataclass(frozen=True)
class ConditionRoot:
    """Entry point of a tree; a group without an id."""
    logic: str = "and"
    conditions: Sequence["ConditionItem"] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", tuple(self.conditions))


ConditionItem = Union[SimpleCondition, ConditionGroup]
GroupLike = Union[ConditionRoot, ConditionGroup]


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def create_empty_condition(id_source: Optional[IdSource] = None) -> SimpleCondition:
    """Return a fresh ``== ""`` row with an empty left side."""
    return SimpleCondition(id=new_id(id_source), left="", operator=ComparisonOperator.EQ, right="")


def create_empty_group(logic: str = "and", id_source: Optional[IdSource] = None) -> ConditionGroup:
    """Return a fresh group with no conditions."""
    return ConditionGroup(id=new_id(id_source), logic=logic, conditions=())


def create_empty_root() -> ConditionRoot:
    return ConditionRoot(logic="and", conditions=())


def create_unparsed_condition(value: Any, id_source: Optional[IdSource] = None) -> SimpleCondition:
    """Return an inert row preserving a JSONLogic fragment verbatim."""
    return SimpleCondition(
        id=new_id(id_source),
        left=UNPARSED_PLACEHOLDER,
        operator=ComparisonOperator.EQ,
        right="",
        unparsed=Unparsed(value),
    )


# ---------------------------------------------------------------------------
# Path-based updates
# ---------------------------------------------------------------------------

def get_item(root: ConditionRoot, path: Sequence[int]) -> Union[ConditionRoot, ConditionItem]:
    """Return the node addressed by *path*."""
    node: Union[ConditionRoot, ConditionItem] = root
    for depth, index in enumerate(path):
        if isinstance(node, SimpleCondition):
            raise ConditionPathError(
                f"Path {tuple(path)} descends into condition at depth {depth}"
            )
        if not 0 <= index < len(node.conditions):
            raise ConditionPathError(
                f"Path {tuple(path)}: index {index} out of range at depth {depth}"
            )
        node = node.conditions[index]
    return node


def _rebuild(node: GroupLike, path: Sequence[int], fn: Callable[[Any], Any]) -> GroupLike:
    """Apply *fn* to the node at *path* below *node*, copying every ancestor."""
    if not path:
        return fn(node)
    index = path[0]
    if not 0 <= index < len(node.conditions):
        raise ConditionPathError(f"Index {index} out of range")
    child = node.conditions[index]
    if len(path) > 1:
        if isinstance(child, SimpleCondition):
            raise ConditionPathError(f"Index {index} addresses a condition, not a group")
        new_child = _rebuild(child, path[1:], fn)
    else:
        new_child = fn(child)
    conditions = list(node.conditions)
    conditions[index] = new_child
    return replace(node, conditions=tuple(conditions))


def replace_item(root: ConditionRoot, path: Sequence[int], item: ConditionItem) -> ConditionRoot:
    """Return a new root with the node at *path* replaced by *item*."""
    if not path:
        raise ConditionPathError("The root cannot be replaced by an item")
    return _rebuild(root, path, lambda _old: item)


def insert_item(
    root: ConditionRoot,
    parent_path: Sequence[int],
    item: ConditionItem,
    index: Optional[int] = None,
) -> ConditionRoot:
    """
    Insert *item* into the group at *parent_path*.

    Args:
        root: Tree to copy
        parent_path: Path of the root or group receiving the item
        item: Condition or group to insert
        index: Position in the parent's conditions (default: append)
    """
    def _insert(parent: Any) -> Any:
        if isinstance(parent, SimpleCondition):
            raise ConditionPathError(f"Path {tuple(parent_path)} addresses a condition, not a group")
        conditions = list(parent.conditions)
        if index is None:
            conditions.append(item)
        else:
            conditions.insert(index, item)
        return replace(parent, conditions=tuple(conditions))

    return _rebuild(root, parent_path, _insert)


def remove_item(root: ConditionRoot, path: Sequence[int]) -> ConditionRoot:
    """Return a new root without the node at *path* (and its subtree)."""
    if not path:
        raise ConditionPathError("The root cannot be removed")
    get_item(root, path)

    def _remove(parent: Any) -> Any:
        conditions = list(parent.conditions)
        del conditions[path[-1]]
        return replace(parent, conditions=tuple(conditions))

    return _rebuild(root, path[:-1], _remove)


def set_logic(root: ConditionRoot, path: Sequence[int], logic: str) -> ConditionRoot:
    """Switch the root or group at *path* between "and" and "or"."""
    if logic not in LOGIC_VALUES:
        raise ConditionPathError(f"Invalid logic '{logic}', expected one of {LOGIC_VALUES}")

    def _set(node: Any) -> Any:
        if isinstance(node, SimpleCondition):
            raise ConditionPathError(f"Path {tuple(path)} addresses a condition, not a group")
        return replace(node, logic=logic)

    return _rebuild(root, path, _set)


def edit_condition(condition: SimpleCondition, **changes: Any) -> SimpleCondition:
    """
    Return *condition* with ``left``, ``operator`` and/or ``right`` changed.

    Any preserved JSONLogic fragment is dropped, since the row no longer
    reflects it.  Changing the operator keeps ``right`` consistent with
    whether the new operator needs one.
    """
    unknown = set(changes) - {"left", "operator", "right"}
    if unknown:
        raise TypeError(f"Unknown condition fields: {sorted(unknown)}")

    updated = replace(condition, unparsed=None, **changes)
    if condition.is_unparsed and "left" not in changes:
        updated = replace(updated, left="")

    info = get_operator_info(updated.operator)
    if info is not None:
        if not info.right_required:
            updated = replace(updated, right=None)
        elif updated.right is None:
            updated = replace(updated, right="")
    return updated


def update_condition(root: ConditionRoot, path: Sequence[int], **changes: Any) -> ConditionRoot:
    """Apply `edit_condition` to the row at *path*."""
    def _edit(node: Any) -> Any:
        if not isinstance(node, SimpleCondition):
            raise ConditionPathError(f"Path {tuple(path)} does not address a condition")
        return edit_condition(node, **changes)

    if not path:
        raise ConditionPathError("The root is not a condition")
    return _rebuild(root, path, _edit)


def iter_items(node: GroupLike, prefix: Path = ()) -> Iterator[Tuple[Path, ConditionItem]]:
    """Yield ``(path, item)`` for every node below *node*, depth first."""
    for index, item in enumerate(node.conditions):
        path = prefix + (index,)
        yield path, item
        if isinstance(item, ConditionGroup):
            yield from iter_items(item, path)


def find_path(root: ConditionRoot, item_id: str) -> Optional[Path]:
    """Return the path of the node with *item_id*, or None."""
    for path, item in iter_items(root):
        if item.id == item_id:
            return path
    return None


# ---------------------------------------------------------------------------
# Plain-dict form
# ---------------------------------------------------------------------------

def item_to_dict(item: ConditionItem) -> Dict[str, Any]:
    if isinstance(item, ConditionGroup):
        return {
            "id": item.id,
            "type": "group",
            "logic": item.logic,
            "conditions": [item_to_dict(child) for child in item.conditions],
        }
    data: Dict[str, Any] = {
        "id": item.id,
        "type": "condition",
        "left": item.left,
        "operator": str(item.operator),
    }
    if item.right is not None:
        data["right"] = item.right
    if item.unparsed is not None:
        data["unparsed"] = item.unparsed.value
    return data


def tree_to_dict(root: ConditionRoot) -> Dict[str, Any]:
    """Convert a tree into JSON-compatible dicts using the model field names."""
    return {
        "logic": root.logic,
        "conditions": [item_to_dict(item) for item in root.conditions],
    }


def _item_from_dict(data: Any, where: str, id_source: Optional[IdSource]) -> ConditionItem:
    if not isinstance(data, dict):
        raise ConditionTreeError(f"{where}: expected an object, got {type(data).__name__}")

    item_id = data.get("id") or new_id(id_source)
    item_type = data.get("type")

    if item_type == "group":
        logic = data.get("logic", "and")
        if logic not in LOGIC_VALUES:
            raise ConditionTreeError(f"{where}: invalid logic '{logic}'")
        children = data.get("conditions", [])
        if not isinstance(children, list):
            raise ConditionTreeError(f"{where}: 'conditions' must be a list")
        return ConditionGroup(
            id=item_id,
            logic=logic,
            conditions=tuple(
                _item_from_dict(child, f"{where}.conditions[{i}]", id_source)
                for i, child in enumerate(children)
            ),
        )

    if item_type == "condition":
        operator = data.get("operator", ComparisonOperator.EQ.value)
        info = get_operator_info(operator)
        if info is None:
            raise ConditionTreeError(f"{where}: unknown operator '{operator}'")
        right = data.get("right")
        if info.right_required and right is None:
            right = ""
        elif not info.right_required:
            right = None
        return SimpleCondition(
            id=item_id,
            left=str(data.get("left", "")),
            operator=info.value,
            right=right if right is None else str(right),
            unparsed=Unparsed(data["unparsed"]) if "unparsed" in data else None,
        )

    raise ConditionTreeError(f"{where}: unknown item type '{item_type}'")


def tree_from_dict(data: Any, id_source: Optional[IdSource] = None) -> ConditionRoot:
    """
    Build a tree from its plain-dict form.

    Missing ids are minted from *id_source*.

    Raises:
        ConditionTreeError: If *data* does not describe a tree
    """
    if not isinstance(data, dict):
        raise ConditionTreeError(f"Tree must be an object, got {type(data).__name__}")
    logic = data.get("logic", "and")
    if logic not in LOGIC_VALUES:
        raise ConditionTreeError(f"Invalid root logic '{logic}'")
    items = data.get("conditions", [])
    if not isinstance(items, list):
        raise ConditionTreeError("Root 'conditions' must be a list")
    return ConditionRoot(
        logic=logic,
        conditions=tuple(
            _item_from_dict(item, f"conditions[{i}]", id_source)
            for i, item in enumerate(items)
        ),
    )


def strip_ids(node: Union[GroupLike, ConditionItem]) -> Any:
    """Return the id-free dict form of a node, for structural comparison."""
    if isinstance(node, ConditionRoot):
        data = tree_to_dict(node)
    else:
        data = item_to_dict(node)
    return _drop_ids(data)


def _drop_ids(data: Any) -> Any:
    if isinstance(data, dict):
        return {
            k: v if k == "unparsed" else _drop_ids(v)
            for k, v in data.items()
            if k != "id"
        }
    if isinstance(data, list):
        return [_drop_ids(v) for v in data]
    return data
