"""Tests for condition tree structural edits."""

from __future__ import annotations

from dataclasses import replace

import pytest

from rulecore.conditions import (
    ConditionGroup,
    ConditionLeaf,
    ConditionOperator,
    LogicalOperator,
    add_child,
    condition_from_dict,
    condition_to_dict,
    create_empty_group,
    create_empty_leaf,
    extract_field_codes,
    find_node,
    iter_nodes,
    remove_node,
    update_node,
)
from rulecore.errors import RootRemovalError


def _ids(tree) -> list[str]:
    return [node.id for node in iter_nodes(tree)]


def _subtree_ids(tree, node_id: str) -> set[str]:
    return set(_ids(find_node(tree, node_id)))


class TestUpdateNode:
    """Test update_node."""

    def test_updates_nested_leaf(self, sample_tree: ConditionGroup):
        """Test that a nested leaf is replaced by the updater's result."""
        updated = update_node(sample_tree, "l2", lambda n: replace(n, value=("TX",)))

        assert find_node(updated, "l2").value == ("TX",)
        assert find_node(sample_tree, "l2").value == ("CA", "NY")

    def test_shares_untouched_siblings(self, sample_tree: ConditionGroup):
        """Test that only ancestors of the edited node are copied."""
        updated = update_node(sample_tree, "l2", lambda n: replace(n, value=("TX",)))

        assert updated is not sample_tree
        assert updated.conditions[0] is sample_tree.conditions[0]
        assert updated.conditions[2] is sample_tree.conditions[2]
        assert updated.conditions[1] is not sample_tree.conditions[1]
        assert updated.conditions[1].conditions[1] is sample_tree.conditions[1].conditions[1]

    def test_missing_id_returns_input(self, sample_tree: ConditionGroup):
        """Test that an unknown id leaves the tree unchanged."""
        assert update_node(sample_tree, "nope", lambda n: create_empty_leaf()) is sample_tree

    def test_updates_root(self, sample_tree: ConditionGroup):
        updated = update_node(sample_tree, "root", lambda n: replace(n, operator=LogicalOperator.OR))

        assert updated.operator == LogicalOperator.OR
        assert updated.conditions == sample_tree.conditions


class TestRemoveNode:
    """Test remove_node."""

    def test_removes_leaf_only(self, sample_tree: ConditionGroup):
        """Test that removing a leaf keeps its siblings."""
        pruned = remove_node(sample_tree, "l2")

        assert _ids(pruned) == ["root", "l1", "g1", "l3", "l4"]

    def test_removes_group_with_children(self, sample_tree: ConditionGroup):
        pruned = remove_node(sample_tree, "g1")

        assert _ids(pruned) == ["root", "l1", "l4"]

    def test_root_removal_rejected(self, sample_tree: ConditionGroup):
        """Test that removing the root raises instead of corrupting the tree."""
        with pytest.raises(RootRemovalError) as exc_info:
            remove_node(sample_tree, "root")

        assert exc_info.value.node_id == "root"

    def test_missing_id_is_noop(self, sample_tree: ConditionGroup):
        assert remove_node(sample_tree, "nope") is sample_tree

    def test_does_not_mutate_input(self, sample_tree: ConditionGroup):
        before = _ids(sample_tree)
        remove_node(sample_tree, "l3")

        assert _ids(sample_tree) == before

    @pytest.mark.parametrize("node_id", ["l1", "g1", "l2", "l3", "l4"])
    def test_remove_after_update_removes_exactly_that_node(
        self, sample_tree: ConditionGroup, node_id: str
    ):
        """Test that remove(update(T, x), x) drops x's subtree and nothing else."""

        def relabel(node):
            if isinstance(node, ConditionLeaf):
                return replace(node, field_code="changed")
            return replace(node, operator=LogicalOperator.AND)

        updated = update_node(sample_tree, node_id, relabel)
        pruned = remove_node(updated, node_id)

        expected = [i for i in _ids(sample_tree) if i not in _subtree_ids(sample_tree, node_id)]
        assert _ids(pruned) == expected


class TestAddChild:
    """Test add_child."""

    def test_appends_to_group(self, sample_tree: ConditionGroup):
        child = create_empty_leaf()
        updated = add_child(sample_tree, "g1", child)

        group = find_node(updated, "g1")
        assert [c.id for c in group.conditions] == ["l2", "l3", child.id]

    def test_add_to_leaf_is_noop(self, sample_tree: ConditionGroup):
        """Test that leaves cannot receive children."""
        updated = add_child(sample_tree, "l1", create_empty_leaf())

        assert updated is sample_tree
        assert updated == sample_tree

    def test_add_to_missing_parent_is_noop(self, sample_tree: ConditionGroup):
        assert add_child(sample_tree, "nope", create_empty_leaf()) is sample_tree

    def test_add_group_to_root(self, sample_tree: ConditionGroup):
        group = create_empty_group("OR")
        updated = add_child(sample_tree, "root", group)

        assert updated.conditions[-1] is group
        assert len(sample_tree.conditions) == 3

    def test_duplicate_child_id_is_noop(self, sample_tree: ConditionGroup):
        """Test that a child reusing an id from the tree is not appended."""
        duplicate = ConditionLeaf(id="l2", field_code="age", operator=ConditionOperator.LT, value=5)

        assert add_child(sample_tree, "g1", duplicate) is sample_tree

    def test_duplicate_descendant_id_is_noop(self, sample_tree: ConditionGroup):
        nested = ConditionGroup(
            id="g-new",
            operator=LogicalOperator.AND,
            conditions=(create_empty_leaf(), ConditionLeaf(id="l4", field_code="hasClaims")),
        )

        updated = add_child(sample_tree, "root", nested)

        assert updated is sample_tree
        ids = [node.id for node in iter_nodes(updated)]
        assert len(ids) == len(set(ids))

    def test_unique_subtree_is_appended(self, sample_tree: ConditionGroup):
        group = create_empty_group(LogicalOperator.AND)
        updated = add_child(sample_tree, "g1", group)

        ids = [node.id for node in iter_nodes(updated)]
        assert group.id in ids
        assert len(ids) == len(set(ids))


class TestConstruction:
    """Test node factories and identifiers."""

    def test_fresh_ids_are_unique(self):
        ids = {create_empty_leaf().id for _ in range(100)}

        assert len(ids) == 100
        assert all(i.startswith("cond_") for i in ids)

    def test_empty_group_seeded_with_leaf(self):
        group = create_empty_group(LogicalOperator.OR)

        assert group.operator == LogicalOperator.OR
        assert len(group.conditions) == 1
        assert isinstance(group.conditions[0], ConditionLeaf)
        assert group.conditions[0].id != group.id

    def test_extract_field_codes_preorder(self, sample_tree: ConditionGroup):
        assert extract_field_codes(sample_tree) == ["age", "state", "buildingAge", "hasClaims"]

    def test_extract_skips_unset_fields(self):
        group = create_empty_group()

        assert extract_field_codes(group) == []


class TestWireFormat:
    """Test conversion to and from the console's tree shape."""

    def test_round_trip_preserves_structure(self, sample_tree: ConditionGroup):
        assert condition_from_dict(condition_to_dict(sample_tree)) == sample_tree

    def test_to_dict_uses_console_keys(self, sample_tree: ConditionGroup):
        data = condition_to_dict(sample_tree)

        assert data["kind"] == "group"
        leaf = data["conditions"][1]["conditions"][1]
        assert leaf == {
            "kind": "leaf",
            "id": "l3",
            "fieldCode": "buildingAge",
            "operator": "between",
            "value": 0,
            "valueEnd": 30,
        }
        assert data["conditions"][1]["conditions"][0]["value"] == ["CA", "NY"]

    def test_from_dict_assigns_missing_ids(self):
        node = condition_from_dict(
            {"operator": "OR", "conditions": [{"fieldCode": "age", "operator": "gte", "value": 21}]}
        )

        assert isinstance(node, ConditionGroup)
        assert node.id.startswith("cond_")
        assert node.conditions[0].operator == ConditionOperator.GTE
        assert node.conditions[0].id.startswith("cond_")

    def test_from_dict_rejects_unknown_operator(self):
        with pytest.raises(ValueError):
            condition_from_dict({"kind": "leaf", "id": "x", "operator": "approx"})
