"""
Test condition tree validation.
"""

from conditionbuilder.condition_tree import (
    ConditionGroup,
    ConditionRoot,
    SimpleCondition,
    create_empty_root,
    create_unparsed_condition,
)
from conditionbuilder.operators import ComparisonOperator
from conditionbuilder.parser import from_json_logic
from conditionbuilder.tree_validation import validate_condition_tree


def test_valid_tree():
    """Test that a valid tree passes validation."""
    root = ConditionRoot(logic="or", conditions=[
        SimpleCondition(id="a", left="x", operator=ComparisonOperator.EQ, right="1"),
        ConditionGroup(id="b", logic="and", conditions=[
            SimpleCondition(id="c", left="y", operator=ComparisonOperator.IS_TRUE, right=None),
        ]),
    ])
    is_valid, error = validate_condition_tree(root)
    assert is_valid, f"Valid tree failed validation: {error}"
    assert error == ""


def test_empty_root_is_valid():
    assert validate_condition_tree(create_empty_root()) == (True, "")


def test_parsed_trees_are_valid():
    root = from_json_logic({"and": [{"x": 1}, {"or": [{"!!": [{"var": "a"}]}, True]}]})
    assert validate_condition_tree(root) == (True, "")


def test_not_a_root():
    is_valid, error = validate_condition_tree({"logic": "and", "conditions": []})
    assert not is_valid
    assert "ConditionRoot" in error


def test_invalid_logic():
    is_valid, error = validate_condition_tree(ConditionRoot(logic="xor"))
    assert not is_valid
    assert "Root logic" in error

    nested = ConditionRoot(conditions=[ConditionGroup(id="g", logic="nor")])
    is_valid, error = validate_condition_tree(nested)
    assert not is_valid
    assert "conditions[0]" in error


def test_duplicate_ids():
    root = ConditionRoot(conditions=[
        SimpleCondition(id="dup", left="a"),
        ConditionGroup(id="g", conditions=[SimpleCondition(id="dup", left="b")]),
    ])
    is_valid, error = validate_condition_tree(root)
    assert not is_valid
    assert "duplicate id 'dup'" in error
    assert "conditions[1].conditions[0]" in error


def test_empty_id():
    is_valid, error = validate_condition_tree(ConditionRoot(conditions=[SimpleCondition(id=" ")]))
    assert not is_valid
    assert "id cannot be empty" in error


def test_unknown_operator():
    root = ConditionRoot(conditions=[SimpleCondition(id="a", left="x", operator="between", right="1")])
    is_valid, error = validate_condition_tree(root)
    assert not is_valid
    assert "unknown operator 'between'" in error


def test_right_presence_invariant():
    missing = ConditionRoot(conditions=[SimpleCondition(id="a", left="x", operator=">", right=None)])
    is_valid, error = validate_condition_tree(missing)
    assert not is_valid
    assert "requires a right-hand value" in error

    extra = ConditionRoot(conditions=[SimpleCondition(id="a", left="x", operator="isEmpty", right="")])
    is_valid, error = validate_condition_tree(extra)
    assert not is_valid
    assert "takes no right-hand value" in error


def test_regex_source_is_not_checked():
    root = ConditionRoot(conditions=[SimpleCondition(id="a", left="x", operator="matches", right="([")])
    assert validate_condition_tree(root) == (True, "")


def test_unparsed_rows_are_accepted():
    root = ConditionRoot(conditions=[create_unparsed_condition({"custom": []})])
    assert validate_condition_tree(root) == (True, "")
