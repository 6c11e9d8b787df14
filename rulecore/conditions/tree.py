"""Structural edits over condition trees.

Every operation is pure: the input tree is never mutated and a new tree is
returned. Ancestors of an edited node are copied, untouched subtrees are
shared with the input.

Edits that reference an id that is not in the tree return the input
unchanged, as does an ``add_child`` onto a leaf or one whose subtree reuses
an id already in the tree. The rule builder dispatches edits from an
interactive session where a node can disappear between two dispatches, so a
stale id is not an error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import replace

from ..errors import RootRemovalError
from .models import ConditionGroup, ConditionNode

logger = logging.getLogger(__name__)

NodeUpdater = Callable[[ConditionNode], ConditionNode]


def iter_nodes(root: ConditionNode) -> Iterator[ConditionNode]:
    """Yield every node of the tree in pre-order."""
    yield root
    if isinstance(root, ConditionGroup):
        for child in root.conditions:
            yield from iter_nodes(child)


def find_node(root: ConditionNode, node_id: str) -> ConditionNode | None:
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    return None


def extract_field_codes(root: ConditionNode) -> list[str]:
    """Return the field codes referenced by the tree's leaves, in pre-order."""
    return [
        node.field_code
        for node in iter_nodes(root)
        if not isinstance(node, ConditionGroup) and node.field_code
    ]


def update_node(
    root: ConditionNode, target_id: str, updater: NodeUpdater
) -> ConditionNode:
    """Replace the node with ``target_id`` by ``updater(node)``.

    The first match in pre-order wins. Returns ``root`` itself when no node
    matches.
    """
    if root.id == target_id:
        return updater(root)
    if not isinstance(root, ConditionGroup):
        return root

    children = list(root.conditions)
    for idx, child in enumerate(children):
        updated = update_node(child, target_id, updater)
        if updated is not child:
            children[idx] = updated
            return replace(root, conditions=tuple(children))
    return root


def remove_node(root: ConditionGroup, target_id: str) -> ConditionGroup:
    """Remove the node with ``target_id`` from its parent's children.

    Raises:
        RootRemovalError: if ``target_id`` names the root itself
    """
    if root.id == target_id:
        raise RootRemovalError(target_id)
    return _remove_from_group(root, target_id)


def _remove_from_group(group: ConditionGroup, target_id: str) -> ConditionGroup:
    children = list(group.conditions)
    for idx, child in enumerate(children):
        if child.id == target_id:
            del children[idx]
            return replace(group, conditions=tuple(children))
        if isinstance(child, ConditionGroup):
            pruned = _remove_from_group(child, target_id)
            if pruned is not child:
                children[idx] = pruned
                return replace(group, conditions=tuple(children))
    return group


def add_child(
    root: ConditionGroup, parent_id: str, child: ConditionNode
) -> ConditionGroup:
    """Append ``child`` to the conditions of the group with ``parent_id``.

    Leaves cannot have children: a ``parent_id`` naming a leaf is a no-op.
    So is a ``child`` whose subtree carries an id already in the tree.
    """
    parent = find_node(root, parent_id)
    if not isinstance(parent, ConditionGroup):
        logger.debug(f"add_child ignored: {parent_id!r} is not a group in the tree")
        return root

    existing = {node.id for node in iter_nodes(root)}
    clashes = sorted(existing.intersection(node.id for node in iter_nodes(child)))
    if clashes:
        logger.debug(f"add_child ignored: ids already in the tree: {clashes}")
        return root

    def _append(node: ConditionNode) -> ConditionNode:
        return replace(node, conditions=(*node.conditions, child))

    return update_node(root, parent_id, _append)
