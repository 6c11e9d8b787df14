"""Rule evaluation and static analysis."""

from .conflicts import OverlapPolicy, detect_conflicts
from .evaluator import (
    RuleEvaluator,
    apply_operator,
    evaluate_group,
    evaluate_leaf,
    evaluate_node,
    evaluate_rule_set,
)
from .models import (
    Conflict,
    ConflictDetectionResult,
    ConflictSeverity,
    ConflictType,
    Rule,
    RuleSetEvaluation,
    RuleStatus,
    RuleType,
    TraceEntry,
    TraceType,
)
from .trace import TraceRecorder
from .versions import (
    EvaluationContext,
    RuleVersion,
    check_rule_readiness,
    evaluate_rule_versions,
    is_in_scope,
)

__all__ = [
    "OverlapPolicy",
    "detect_conflicts",
    "RuleEvaluator",
    "apply_operator",
    "evaluate_group",
    "evaluate_leaf",
    "evaluate_node",
    "evaluate_rule_set",
    "Conflict",
    "ConflictDetectionResult",
    "ConflictSeverity",
    "ConflictType",
    "Rule",
    "RuleSetEvaluation",
    "RuleStatus",
    "RuleType",
    "TraceEntry",
    "TraceType",
    "TraceRecorder",
    "EvaluationContext",
    "RuleVersion",
    "check_rule_readiness",
    "evaluate_rule_versions",
    "is_in_scope",
]
