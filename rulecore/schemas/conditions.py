"""Pydantic schemas for condition tree endpoints."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator

from ..conditions import ConditionGroup, condition_from_dict
from .base import CamelModel

MAX_TREE_NODES = 1000


def _count_nodes(data: Any) -> int:
    if not isinstance(data, dict):
        return 1
    return 1 + sum(_count_nodes(child) for child in data.get("conditions") or [])


class ConditionTreeRequest(CamelModel):
    """A condition tree in the console's wire shape."""

    tree: dict[str, Any]

    @field_validator("tree")
    @classmethod
    def validate_tree_size(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Reject trees too large to edit interactively."""
        if _count_nodes(v) > MAX_TREE_NODES:
            raise ValueError(f"Too many conditions. Maximum {MAX_TREE_NODES} per tree.")
        return v

    def to_root(self) -> ConditionGroup:
        node = condition_from_dict(self.tree)
        if not isinstance(node, ConditionGroup):
            raise ValueError("The root of a condition tree must be a group")
        return node


class UpdateConditionRequest(ConditionTreeRequest):
    target_id: str
    updates: dict[str, Any] = Field(default_factory=dict)


class RemoveConditionRequest(ConditionTreeRequest):
    target_id: str


class AddChildRequest(ConditionTreeRequest):
    parent_id: str
    kind: Literal["leaf", "group"] = "leaf"
    # Explicit child in wire shape; when omitted an empty leaf/group is created
    child: dict[str, Any] | None = None
    group_operator: Literal["AND", "OR"] = "AND"


class ValidateConditionsRequest(ConditionTreeRequest):
    available_field_codes: list[str] | None = None
