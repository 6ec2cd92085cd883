"""
Tests for JSONLogic -> tree parsing.
"""

import pytest

from conditionbuilder.condition_tree import UNPARSED_PLACEHOLDER, ConditionGroup, SimpleCondition
from conditionbuilder.config import ConversionOptions
from conditionbuilder.operators import ComparisonOperator
from conditionbuilder.parser import from_json_logic
from conditionbuilder.serializer import to_json_logic
from conditionbuilder.template_syntax import from_display_string


def only(root):
    """Return the single row of a parsed root."""
    assert len(root.conditions) == 1
    return root.conditions[0]


def row(item):
    assert isinstance(item, SimpleCondition)
    assert not item.is_unparsed, f"unexpected fallback for {item.unparsed}"
    return item.left, item.operator, item.right


class TestTopLevel:
    """Test handling of the top-level value."""

    @pytest.mark.parametrize("value", [True, None, False, 0, "text", [1, 2]])
    def test_non_objects_give_empty_root(self, value, plain):
        root = from_json_logic(value, plain)
        assert root.logic == "and"
        assert root.conditions == ()

    def test_and_root(self, plain, ids):
        root = from_json_logic({"and": [{"==": [{"var": "a"}, 1]}]}, plain, id_source=ids)
        assert root.logic == "and"
        assert row(only(root)) == ("a", ComparisonOperator.EQ, "1")
        assert only(root).id == "t-1"

    def test_or_root(self, plain):
        root = from_json_logic({"or": [{"!!": [{"var": "a"}]}, {"!": [{"var": "b"}]}]}, plain)
        assert root.logic == "or"
        assert [row(item) for item in root.conditions] == [
            ("a", ComparisonOperator.IS_TRUE, None),
            ("b", ComparisonOperator.IS_FALSE, None),
        ]

    def test_empty_and_root(self, plain):
        assert from_json_logic({"and": []}, plain).conditions == ()

    def test_bare_leaf_is_wrapped(self, plain):
        root = from_json_logic({">=": [{"var": "age"}, 21]}, plain)
        assert root.logic == "and"
        assert row(only(root)) == ("age", ComparisonOperator.GTE, "21")

    def test_unrecognized_shape_gives_one_fallback_leaf(self, plain):
        root = from_json_logic({"some_custom_op": [1, 2, 3]}, plain)
        leaf = only(root)
        assert leaf.is_unparsed
        assert leaf.left == UNPARSED_PLACEHOLDER
        assert leaf.operator is ComparisonOperator.EQ
        assert leaf.unparsed.value == {"some_custom_op": [1, 2, 3]}

    def test_input_is_not_aliased(self, plain):
        value = {"custom": [[1]]}
        leaf = only(from_json_logic(value, plain))
        value["custom"][0].append(2)
        assert leaf.unparsed.value == {"custom": [[1]]}


class TestGroups:
    """Test nested group parsing."""

    def test_nested_groups(self, plain):
        root = from_json_logic({"and": [
            {">": [{"var": "order.total"}, 100]},
            {"or": [
                {"==": [{"var": "user.role"}, "admin"]},
                {"==": [{"var": "user.role"}, "manager"]},
            ]},
        ]}, plain)
        assert row(root.conditions[0]) == ("order.total", ComparisonOperator.GT, "100")
        group = root.conditions[1]
        assert isinstance(group, ConditionGroup)
        assert group.logic == "or"
        assert [item.right for item in group.conditions] == ["admin", "manager"]

    def test_true_item_is_empty_group(self, plain):
        root = from_json_logic({"and": [True]}, plain)
        group = only(root)
        assert isinstance(group, ConditionGroup)
        assert group.conditions == ()

    @pytest.mark.parametrize("item", [False, None, 3, "x", [1], {}, {"and": "x"}, {"and": [], "or": []}])
    def test_odd_items_are_preserved(self, item, plain):
        leaf = only(from_json_logic({"or": [item]}, plain))
        assert leaf.is_unparsed
        assert leaf.unparsed.value == item

    def test_max_depth_keeps_deep_groups_opaque(self):
        value = {"and": [{"or": [{"and": [{"!!": [{"var": "x"}]}]}]}]}
        root = from_json_logic(value, ConversionOptions(max_depth=1))
        outer = only(root)
        assert isinstance(outer, ConditionGroup)
        inner = only(outer)
        assert inner.is_unparsed
        assert inner.unparsed.value == {"and": [{"!!": [{"var": "x"}]}]}

    def test_ids_are_unique(self, plain, ids):
        root = from_json_logic({"and": [
            {"!!": [{"var": "a"}]},
            {"or": [{"!!": [{"var": "b"}]}, {"custom": []}]},
        ]}, plain, id_source=ids)
        minted = [root.conditions[0].id, root.conditions[1].id]
        minted += [item.id for item in root.conditions[1].conditions]
        assert len(set(minted)) == 4


class TestOperatorShapes:
    """Test recognition of each operator shape."""

    @pytest.mark.parametrize("key, op", [
        ("==", ComparisonOperator.EQ),
        ("!=", ComparisonOperator.NE),
        (">", ComparisonOperator.GT),
        (">=", ComparisonOperator.GTE),
        ("<", ComparisonOperator.LT),
        ("<=", ComparisonOperator.LTE),
        ("===", ComparisonOperator.EQ),
        ("!==", ComparisonOperator.NE),
    ])
    def test_comparisons(self, key, op, plain):
        assert row(only(from_json_logic({key: [{"var": "n"}, 2.5]}, plain))) == ("n", op, "2.5")

    def test_in_list_is_joined(self, plain):
        root = from_json_logic({"in": [{"var": "tier"}, ["a", "b", "c"]]}, plain)
        assert row(only(root)) == ("tier", ComparisonOperator.IN, "a, b, c")

    def test_in_list_with_numbers(self, plain):
        root = from_json_logic({"in": [{"var": "n"}, [1, 2.5, "x"]]}, plain)
        assert row(only(root)) == ("n", ComparisonOperator.IN, "1, 2.5, x")

    def test_contains(self, plain):
        root = from_json_logic({"in": ["smith", {"var": "name"}]}, plain)
        assert row(only(root)) == ("name", ComparisonOperator.CONTAINS, "smith")

    def test_string_tests(self, plain):
        assert row(only(from_json_logic({"startsWith": [{"var": "s"}, "AB"]}, plain))) == (
            "s", ComparisonOperator.STARTS_WITH, "AB"
        )
        assert row(only(from_json_logic({"endsWith": [{"var": "s"}, "YZ"]}, plain))) == (
            "s", ComparisonOperator.ENDS_WITH, "YZ"
        )

    def test_matches(self, plain):
        root = from_json_logic({"matches": [{"var": "email"}, "^a+$"]}, plain)
        assert row(only(root)) == ("email", ComparisonOperator.MATCHES, "^a+$")

    def test_truthiness_non_array_operand(self, plain):
        assert row(only(from_json_logic({"!": {"var": "a"}}, plain))) == ("a", ComparisonOperator.IS_FALSE, None)

    def test_empty_tests(self, plain):
        is_empty = {"or": [
            {"==": [{"var": "n"}, ""]}, {"==": [{"var": "n"}, None]}, {"!": [{"var": "n"}]},
        ]}
        is_not_empty = {"and": [
            {"!=": [{"var": "n"}, ""]}, {"!=": [{"var": "n"}, None]}, {"!!": [{"var": "n"}]},
        ]}
        assert row(only(from_json_logic(is_empty, plain))) == ("n", ComparisonOperator.IS_EMPTY, None)
        root = from_json_logic({"or": [is_not_empty]}, plain)
        assert root.logic == "or"
        assert row(only(root)) == ("n", ComparisonOperator.IS_NOT_EMPTY, None)

    def test_empty_test_with_mixed_operands_is_a_group(self, plain):
        value = {"or": [
            {"==": [{"var": "a"}, ""]}, {"==": [{"var": "b"}, None]}, {"!": [{"var": "a"}]},
        ]}
        root = from_json_logic(value, plain)
        assert root.logic == "or"
        assert len(root.conditions) == 3

    def test_var_list_form(self, plain):
        assert row(only(from_json_logic({"==": [{"var": ["a.b"]}, "x"]}, plain))) == (
            "a.b", ComparisonOperator.EQ, "x"
        )


class TestLegacyShapes:
    """Test shapes written by earlier editor versions."""

    def test_equals_true_and_false(self, plain):
        assert row(only(from_json_logic({"==": [{"var": "f"}, True]}, plain))) == (
            "f", ComparisonOperator.IS_TRUE, None
        )
        assert row(only(from_json_logic({"==": [{"var": "f"}, False]}, plain))) == (
            "f", ComparisonOperator.IS_FALSE, None
        )

    def test_substr_prefix(self, plain):
        value = {"==": [{"substr": [{"var": "sku"}, 0, {"strlen": "AB"}]}, "AB"]}
        assert row(only(from_json_logic(value, plain))) == ("sku", ComparisonOperator.STARTS_WITH, "AB")

    def test_substr_suffix(self, plain):
        value = {"==": [{"substr": [{"var": "file"}, {"*": [{"strlen": ".csv"}, -1]}]}, ".csv"]}
        assert row(only(from_json_logic(value, plain))) == ("file", ComparisonOperator.ENDS_WITH, ".csv")

    def test_substr_with_mismatched_length_is_opaque(self, plain):
        value = {"==": [{"substr": [{"var": "sku"}, 0, {"strlen": "ABC"}]}, "AB"]}
        assert only(from_json_logic(value, plain)).is_unparsed


class TestUnrepresentable:
    """Shapes the editor cannot show exactly are kept opaque."""

    @pytest.mark.parametrize("value", [
        {"==": [{"var": "a"}, "18"]},             # would come back as a number
        {"==": [{"var": "a"}, None]},
        {"!=": [{"var": "a"}, True]},
        {"==": [5, {"var": "a"}]},                 # literal left outside template mode
        {"==": [{"var": "a"}, {"var": "b"}]},
        {"==": [{"var": ["a", "default"]}, 1]},
        {"in": [{"var": "a"}, []]},
        {"in": [{"var": "a"}, ["x,y"]]},
        {"in": [{"var": "a"}, [" padded"]]},
        {"in": ["a", "abc"]},
        {"matches": [{"var": "a"}, 5]},
        {">": [{"var": "a"}]},
        {"!": [{"var": "a"}, 1]},
        {"==": [{"var": "a"}, 1], "!=": [{"var": "b"}, 2]},
    ])
    def test_kept_opaque(self, value, plain):
        leaf = only(from_json_logic(value, plain))
        assert leaf.is_unparsed
        assert leaf.unparsed.value == value


class TestTemplateSyntax:
    """Test parsing with template syntax enabled."""

    def test_var_becomes_display_string(self, template):
        root = from_json_logic({"==": [{"var": "user.status"}, "active"]}, template)
        assert row(only(root)) == ("{{user.status}}", ComparisonOperator.EQ, "active")

    def test_raw_template_string_left(self, template):
        root = from_json_logic({"==": ["{{user.status}}", "active"]}, template)
        assert row(only(root)) == ("{{user.status}}", ComparisonOperator.EQ, "active")

    def test_padded_display_string_is_kept_as_typed(self, template):
        value = {"==": ["{{ user.status }}", "active"]}
        root = from_json_logic(value, template)
        assert row(only(root)) == ("{{ user.status }}", ComparisonOperator.EQ, "active")
        assert from_display_string(only(root).left) == "user.status"
        assert to_json_logic(root, template) == {"and": [value]}

    def test_plain_string_left(self, template):
        root = from_json_logic({"!!": ["status"]}, template)
        assert row(only(root)) == ("status", ComparisonOperator.IS_TRUE, None)

    def test_var_right_becomes_display_string(self, template):
        root = from_json_logic({">": [{"var": "a"}, {"var": "b"}]}, template)
        assert row(only(root)) == ("{{a}}", ComparisonOperator.GT, "{{b}}")

    def test_empty_var_path_stays_empty(self, template):
        root = from_json_logic({"!!": [{"var": ""}]}, template)
        assert row(only(root)) == ("", ComparisonOperator.IS_TRUE, None)

    def test_contains_with_template_left(self, template):
        root = from_json_logic({"in": ["foo", "{{name}}"]}, template)
        assert row(only(root)) == ("{{name}}", ComparisonOperator.CONTAINS, "foo")

    def test_keyword_override(self, plain):
        root = from_json_logic({"!!": [{"var": "a"}]}, plain, use_template_syntax=True)
        assert only(root).left == "{{a}}"
