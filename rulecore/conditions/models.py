"""Data models for condition trees, rule outcomes and rule scopes."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ConditionOperator(str, Enum):
    """Comparison operators for leaf conditions."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"  # inclusive range [value, value_end]
    IN = "in"
    NOT_IN = "notIn"
    CONTAINS = "contains"
    IS_TRUE = "isTrue"
    IS_FALSE = "isFalse"


class LogicalOperator(str, Enum):
    """Combinator applied uniformly to all direct children of a group."""

    AND = "AND"
    OR = "OR"


class RuleAction(str, Enum):
    """Action taken when a rule fires, ordered from least to most restrictive."""

    ACCEPT = "accept"
    FLAG = "flag"
    REQUIRE_DOCS = "require_docs"
    REFER = "refer"
    DECLINE = "decline"


class RuleSeverity(str, Enum):
    """Severity of a rule outcome, ordered from least to most severe."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    BLOCK = "block"


LIST_OPERATORS = frozenset({ConditionOperator.IN, ConditionOperator.NOT_IN})
BOOLEAN_OPERATORS = frozenset({ConditionOperator.IS_TRUE, ConditionOperator.IS_FALSE})


@dataclass(frozen=True)
class ConditionLeaf:
    """A single comparison against a named field."""

    id: str
    field_code: str = ""
    operator: ConditionOperator = ConditionOperator.EQ
    value: Any = ""
    value_end: Any = None


@dataclass(frozen=True)
class ConditionGroup:
    """A group of conditions joined by AND / OR."""

    id: str
    operator: LogicalOperator = LogicalOperator.AND
    conditions: tuple[ConditionNode, ...] = ()


ConditionNode = Union[ConditionLeaf, ConditionGroup]


@dataclass(frozen=True)
class RuleOutcome:
    """What happens when the rule's condition group evaluates true."""

    action: RuleAction = RuleAction.FLAG
    severity: RuleSeverity = RuleSeverity.WARNING
    message: str = ""
    required_docs: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleScope:
    """Binds a rule to a product version, and optionally a state or coverage."""

    product_version_id: str = ""
    state_code: str | None = None  # None = all states
    coverage_version_id: str | None = None  # None = product-wide


def new_condition_id() -> str:
    return f"cond_{uuid.uuid4().hex}"


def create_empty_leaf() -> ConditionLeaf:
    return ConditionLeaf(id=new_condition_id())


def create_empty_group(
    operator: LogicalOperator | str = LogicalOperator.AND,
) -> ConditionGroup:
    """Create a group seeded with one empty leaf, as the builder shows it."""
    return ConditionGroup(
        id=new_condition_id(),
        operator=LogicalOperator(operator),
        conditions=(create_empty_leaf(),),
    )


def create_default_outcome() -> RuleOutcome:
    return RuleOutcome()


def create_default_scope(product_version_id: str = "") -> RuleScope:
    return RuleScope(product_version_id=product_version_id)


# --- Wire conversion ---
#
# Trees travel in the console's camelCase shape:
#   {"kind": "group", "id": ..., "operator": "AND", "conditions": [...]}
#   {"kind": "leaf", "id": ..., "fieldCode": ..., "operator": "eq", "value": ..., "valueEnd": ...}


def condition_from_dict(data: dict[str, Any]) -> ConditionNode:
    """Build a condition node from its wire representation.

    Nodes without an id receive a fresh one. Nodes without a ``kind`` are
    treated as groups when they carry a ``conditions`` list.
    """
    kind = data.get("kind") or ("group" if "conditions" in data else "leaf")
    node_id = data.get("id") or new_condition_id()

    if kind == "group":
        return ConditionGroup(
            id=node_id,
            operator=LogicalOperator(data.get("operator", "AND")),
            conditions=tuple(
                condition_from_dict(child) for child in data.get("conditions", [])
            ),
        )

    value = data.get("value", "")
    if isinstance(value, list):
        value = tuple(value)
    return ConditionLeaf(
        id=node_id,
        field_code=data.get("fieldCode") or data.get("field_code") or "",
        operator=ConditionOperator(data.get("operator", "eq")),
        value=value,
        value_end=data.get("valueEnd", data.get("value_end")),
    )


def condition_to_dict(node: ConditionNode) -> dict[str, Any]:
    if isinstance(node, ConditionGroup):
        return {
            "kind": "group",
            "id": node.id,
            "operator": node.operator.value,
            "conditions": [condition_to_dict(child) for child in node.conditions],
        }

    result: dict[str, Any] = {
        "kind": "leaf",
        "id": node.id,
        "fieldCode": node.field_code,
        "operator": node.operator.value,
        "value": list(node.value) if isinstance(node.value, tuple) else node.value,
    }
    if node.value_end is not None:
        result["valueEnd"] = node.value_end
    return result


def outcome_from_dict(data: dict[str, Any] | None) -> RuleOutcome:
    data = data or {}
    return RuleOutcome(
        action=RuleAction(data.get("action", RuleAction.FLAG.value)),
        severity=RuleSeverity(data.get("severity", RuleSeverity.WARNING.value)),
        message=data.get("message", ""),
        required_docs=tuple(data.get("requiredDocs") or data.get("required_docs") or ()),
    )


def scope_from_dict(data: dict[str, Any] | None) -> RuleScope:
    data = data or {}
    return RuleScope(
        product_version_id=data.get("productVersionId") or data.get("product_version_id") or "",
        state_code=data.get("stateCode", data.get("state_code")),
        coverage_version_id=data.get("coverageVersionId", data.get("coverage_version_id")),
    )


@dataclass(frozen=True)
class ConditionTraceEntry:
    """Trace entry for a single condition leaf evaluation."""

    condition_id: str
    field_code: str
    operator: ConditionOperator
    expected_value: Any
    actual_value: Any
    result: bool
