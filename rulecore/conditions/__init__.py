"""Condition tree model used by the rule builder."""

from .models import (
    ConditionGroup,
    ConditionLeaf,
    ConditionNode,
    ConditionOperator,
    ConditionTraceEntry,
    LogicalOperator,
    RuleAction,
    RuleOutcome,
    RuleScope,
    RuleSeverity,
    condition_from_dict,
    condition_to_dict,
    create_default_outcome,
    create_default_scope,
    create_empty_group,
    create_empty_leaf,
    new_condition_id,
)
from .tree import add_child, extract_field_codes, find_node, iter_nodes, remove_node, update_node
from .validation import ValidationIssue, ValidationResult, validate_condition_tree

__all__ = [
    "ConditionGroup",
    "ConditionLeaf",
    "ConditionNode",
    "ConditionOperator",
    "ConditionTraceEntry",
    "LogicalOperator",
    "RuleAction",
    "RuleOutcome",
    "RuleScope",
    "RuleSeverity",
    "condition_from_dict",
    "condition_to_dict",
    "create_default_outcome",
    "create_default_scope",
    "create_empty_group",
    "create_empty_leaf",
    "new_condition_id",
    "add_child",
    "extract_field_codes",
    "find_node",
    "iter_nodes",
    "remove_node",
    "update_node",
    "ValidationIssue",
    "ValidationResult",
    "validate_condition_tree",
]
