"""Authoring-time validation of condition trees and rule versions."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .models import (
    BOOLEAN_OPERATORS,
    LIST_OPERATORS,
    ConditionGroup,
    ConditionNode,
    ConditionOperator,
)
from .tree import extract_field_codes

if TYPE_CHECKING:
    from ..rules.versions import RuleVersion


@dataclass(frozen=True)
class ValidationIssue:
    """Single problem found while validating a rule.

    ``path`` locates the node inside the tree, e.g.
    ``conditions.conditions[0].conditions[1]``.
    """

    type: str  # "error" | "warning"
    message: str
    path: str | None = None
    field_code: str | None = None


@dataclass
class ValidationResult:
    issues: list[ValidationIssue] = field(default_factory=list)
    referenced_field_codes: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(issue.type == "error" for issue in self.issues)


def validate_condition_tree(
    root: ConditionNode,
    available_field_codes: Iterable[str] | None = None,
    path: str = "conditions",
) -> list[ValidationIssue]:
    """Walk the tree and report structural and authoring issues.

    When ``available_field_codes`` is given, leaves referencing a field outside
    it are reported as errors.
    """
    known = set(available_field_codes) if available_field_codes is not None else None
    issues: list[ValidationIssue] = []
    seen_ids: set[str] = set()

    def walk(node: ConditionNode, node_path: str) -> None:
        if node.id in seen_ids:
            issues.append(
                ValidationIssue("error", f"Duplicate condition id {node.id!r}", node_path)
            )
        seen_ids.add(node.id)

        if isinstance(node, ConditionGroup):
            if not node.conditions:
                issues.append(ValidationIssue("warning", "Empty condition group", node_path))
            for idx, child in enumerate(node.conditions):
                walk(child, f"{node_path}.conditions[{idx}]")
            return

        if not node.field_code:
            issues.append(
                ValidationIssue("error", "Condition has no field selected", node_path)
            )
        elif known is not None and node.field_code not in known:
            issues.append(
                ValidationIssue(
                    "error",
                    f'Field "{node.field_code}" is not in the data dictionary',
                    node_path,
                    node.field_code,
                )
            )

        if node.operator == ConditionOperator.BETWEEN and node.value_end is None:
            issues.append(
                ValidationIssue("error", '"between" operator requires an end value', node_path)
            )
        if node.operator in LIST_OPERATORS and not isinstance(node.value, (list, tuple)):
            issues.append(
                ValidationIssue(
                    "error",
                    f'"{node.operator.value}" operator requires an array value',
                    node_path,
                )
            )
        if node.value == "" and node.operator not in BOOLEAN_OPERATORS:
            issues.append(ValidationIssue("warning", "Condition value is empty", node_path))

    walk(root, path)
    return issues


def validate_rule_version(
    version: RuleVersion, available_field_codes: Iterable[str]
) -> ValidationResult:
    """Validate a rule version for correctness before publishing."""
    issues = validate_condition_tree(version.conditions, available_field_codes)

    if not version.outcome.message:
        issues.append(ValidationIssue("warning", "Outcome message is empty"))
    if not version.scope.product_version_id:
        issues.append(
            ValidationIssue("error", "Rule must be scoped to a product version")
        )

    return ValidationResult(
        issues=issues,
        referenced_field_codes=list(dict.fromkeys(extract_field_codes(version.conditions))),
    )
