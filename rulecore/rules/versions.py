"""Scoped evaluation of versioned underwriting rules.

A rule version carries a typed condition tree, an outcome and a scope.
Evaluating a batch against a context:

1. skips versions outside the context's scope (product version, state,
   coverage, effective window) with a recorded reason,
2. evaluates each remaining condition tree with full leaf tracing,
3. rolls up the most restrictive action and the highest severity among the
   rules that fired,
4. hashes inputs, rule definitions and fired ids so identical inputs give
   an identical ``result_hash``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from ..conditions.models import (
    ConditionGroup,
    ConditionTraceEntry,
    RuleAction,
    RuleOutcome,
    RuleScope,
    RuleSeverity,
)
from ..conditions.validation import validate_rule_version
from .evaluator import evaluate_node
from .trace import elapsed_ms

logger = logging.getLogger(__name__)

SEVERITY_ORDER = [
    RuleSeverity.INFO,
    RuleSeverity.WARNING,
    RuleSeverity.ERROR,
    RuleSeverity.BLOCK,
]
ACTION_ORDER = [
    RuleAction.ACCEPT,
    RuleAction.FLAG,
    RuleAction.REQUIRE_DOCS,
    RuleAction.REFER,
    RuleAction.DECLINE,
]


class UnderwritingRuleType(str, Enum):
    ELIGIBILITY = "eligibility"
    REFERRAL = "referral"
    VALIDATION = "validation"


class RuleVersionStatus(str, Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    PUBLISHED = "published"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class RuleVersion:
    id: str
    rule_id: str
    rule_name: str
    conditions: ConditionGroup
    outcome: RuleOutcome
    scope: RuleScope
    rule_type: UnderwritingRuleType = UnderwritingRuleType.ELIGIBILITY
    status: RuleVersionStatus = RuleVersionStatus.DRAFT
    version_number: int = 1
    effective_start: date | None = None
    effective_end: date | None = None


@dataclass(frozen=True)
class EvaluationContext:
    """Inputs for a single evaluation pass, keyed by field code."""

    inputs: Mapping[str, Any]
    product_version_id: str
    effective_date: date
    state: str | None = None
    coverage_version_id: str | None = None


@dataclass(frozen=True)
class RuleTraceEntry:
    rule_id: str
    rule_version_id: str
    rule_name: str
    rule_type: UnderwritingRuleType
    fired: bool
    outcome: RuleOutcome | None
    condition_trace: tuple[ConditionTraceEntry, ...]
    execution_time_ms: float
    skip_reason: str | None = None


@dataclass(frozen=True)
class RuleEvaluationResult:
    success: bool
    fired_rules: list[RuleTraceEntry]
    passed_rules: list[RuleTraceEntry]
    trace: list[RuleTraceEntry]
    aggregate_action: RuleAction | None
    aggregate_severity: RuleSeverity | None
    errors: list[str]
    execution_time_ms: float
    result_hash: str


def is_in_scope(version: RuleVersion, ctx: EvaluationContext) -> tuple[bool, str | None]:
    """Check whether ``version`` applies to ``ctx``; return a skip reason if not.

    State and coverage only filter when both the rule and the context set
    them. Effective bounds are inclusive.
    """
    scope = version.scope
    if scope.product_version_id != ctx.product_version_id:
        return False, (
            f"Product version mismatch (rule: {scope.product_version_id}, "
            f"context: {ctx.product_version_id})"
        )
    if scope.state_code and ctx.state and scope.state_code != ctx.state:
        return False, f"State mismatch (rule: {scope.state_code}, context: {ctx.state})"
    if (
        scope.coverage_version_id
        and ctx.coverage_version_id
        and scope.coverage_version_id != ctx.coverage_version_id
    ):
        return False, "Coverage version mismatch"
    if version.effective_start and ctx.effective_date < version.effective_start:
        return False, f"Not yet effective (starts {version.effective_start.isoformat()})"
    if version.effective_end and ctx.effective_date > version.effective_end:
        return False, f"Expired (ended {version.effective_end.isoformat()})"
    return True, None


def _stable_hash(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _rank(value: Any, order: list) -> int:
    return order.index(value)


def evaluate_rule_versions(
    versions: Iterable[RuleVersion], ctx: EvaluationContext
) -> RuleEvaluationResult:
    """Evaluate a batch of rule versions against ``ctx`` in input order."""
    start = time.perf_counter()
    version_list = list(versions)
    trace: list[RuleTraceEntry] = []
    fired_rules: list[RuleTraceEntry] = []
    passed_rules: list[RuleTraceEntry] = []
    errors: list[str] = []
    highest_action: RuleAction | None = None
    highest_severity: RuleSeverity | None = None

    for version in version_list:
        step_start = time.perf_counter()
        in_scope, skip_reason = is_in_scope(version, ctx)
        if not in_scope:
            entry = RuleTraceEntry(
                rule_id=version.rule_id,
                rule_version_id=version.id,
                rule_name=version.rule_name,
                rule_type=version.rule_type,
                fired=False,
                outcome=None,
                condition_trace=(),
                execution_time_ms=elapsed_ms(step_start),
                skip_reason=skip_reason,
            )
            trace.append(entry)
            passed_rules.append(entry)
            continue

        condition_trace: list[ConditionTraceEntry] = []
        fired = False
        try:
            fired = evaluate_node(version.conditions, ctx.inputs, condition_trace)
        except Exception as e:
            logger.warning(f"Rule {version.rule_name!r} failed to evaluate: {e}")
            errors.append(f'Rule "{version.rule_name}": {e}')

        outcome = version.outcome if fired else None
        if outcome is not None:
            if highest_severity is None or _rank(outcome.severity, SEVERITY_ORDER) > _rank(
                highest_severity, SEVERITY_ORDER
            ):
                highest_severity = outcome.severity
            if highest_action is None or _rank(outcome.action, ACTION_ORDER) > _rank(
                highest_action, ACTION_ORDER
            ):
                highest_action = outcome.action

        entry = RuleTraceEntry(
            rule_id=version.rule_id,
            rule_version_id=version.id,
            rule_name=version.rule_name,
            rule_type=version.rule_type,
            fired=fired,
            outcome=outcome,
            condition_trace=tuple(condition_trace),
            execution_time_ms=elapsed_ms(step_start),
        )
        trace.append(entry)
        (fired_rules if fired else passed_rules).append(entry)

    inputs_hash = _stable_hash(dict(ctx.inputs))
    rules_hash = _stable_hash(
        [
            {
                "id": v.id,
                "conditions": asdict(v.conditions),
                "outcome": asdict(v.outcome),
            }
            for v in version_list
        ]
    )
    outcomes_hash = _stable_hash([{"rule_id": r.rule_id, "fired": r.fired} for r in fired_rules])
    result_hash = hashlib.sha256(
        "|".join((inputs_hash, rules_hash, outcomes_hash)).encode("utf-8")
    ).hexdigest()

    return RuleEvaluationResult(
        success=not errors,
        fired_rules=fired_rules,
        passed_rules=passed_rules,
        trace=trace,
        aggregate_action=highest_action,
        aggregate_severity=highest_severity,
        errors=errors,
        execution_time_ms=elapsed_ms(start),
        result_hash=result_hash,
    )


# ---------------------------------------------------------------------------
# Readiness
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReadinessIssue:
    type: str  # missing_rule | conflicting_rules | draft_only | expired_rule | invalid_field_ref
    severity: RuleSeverity
    message: str
    rule_ids: tuple[str, ...] = ()
    rule_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleReadinessCheck:
    total_rules: int
    published_rules: int
    draft_rules: int
    issues: list[ReadinessIssue] = field(default_factory=list)


def check_rule_readiness(
    versions: Iterable[RuleVersion],
    product_version_id: str,
    available_field_codes: Iterable[str],
    today: date | None = None,
) -> RuleReadinessCheck:
    """Summarize whether a product version's rules are ready to ship."""
    today = today or date.today()
    field_codes = set(available_field_codes)
    scoped = [v for v in versions if v.scope.product_version_id == product_version_id]
    published = [v for v in scoped if v.status == RuleVersionStatus.PUBLISHED]
    drafts = [v for v in scoped if v.status == RuleVersionStatus.DRAFT]
    published_rule_ids = {v.rule_id for v in published}
    issues: list[ReadinessIssue] = []

    for version in published:
        if version.effective_end and version.effective_end < today:
            issues.append(
                ReadinessIssue(
                    type="expired_rule",
                    severity=RuleSeverity.WARNING,
                    message=f'Rule "{version.rule_name}" expired on {version.effective_end.isoformat()}',
                    rule_ids=(version.rule_id,),
                    rule_names=(version.rule_name,),
                )
            )

    for draft in drafts:
        if draft.rule_id not in published_rule_ids:
            issues.append(
                ReadinessIssue(
                    type="draft_only",
                    severity=RuleSeverity.WARNING,
                    message=f'Rule "{draft.rule_name}" exists only as a draft',
                    rule_ids=(draft.rule_id,),
                    rule_names=(draft.rule_name,),
                )
            )

    for version in published:
        validation = validate_rule_version(version, field_codes)
        for issue in validation.issues:
            if issue.type == "error" and issue.field_code and issue.field_code not in field_codes:
                issues.append(
                    ReadinessIssue(
                        type="invalid_field_ref",
                        severity=RuleSeverity.ERROR,
                        message=f'Rule "{version.rule_name}" references unknown field "{issue.field_code}"',
                        rule_ids=(version.rule_id,),
                        rule_names=(version.rule_name,),
                    )
                )

    # Same type and scope with contradictory outcomes
    by_type_and_scope: dict[tuple[str, str, str], list[RuleVersion]] = defaultdict(list)
    for version in published:
        key = (
            version.rule_type.value,
            version.scope.state_code or "ALL",
            version.scope.coverage_version_id or "ALL",
        )
        by_type_and_scope[key].append(version)

    for group in by_type_and_scope.values():
        if len(group) < 2:
            continue
        actions = {v.outcome.action for v in group}
        if RuleAction.ACCEPT in actions and (
            RuleAction.DECLINE in actions or RuleAction.REFER in actions
        ):
            issues.append(
                ReadinessIssue(
                    type="conflicting_rules",
                    severity=RuleSeverity.ERROR,
                    message="Conflicting rules: "
                    + ", ".join(f'"{v.rule_name}"' for v in group)
                    + " have contradictory outcomes",
                    rule_ids=tuple(v.rule_id for v in group),
                    rule_names=tuple(v.rule_name for v in group),
                )
            )

    has_eligibility = any(v.rule_type == UnderwritingRuleType.ELIGIBILITY for v in published)
    if scoped and not has_eligibility:
        issues.append(
            ReadinessIssue(
                type="missing_rule",
                severity=RuleSeverity.INFO,
                message="No published eligibility rules found for this product version",
            )
        )

    return RuleReadinessCheck(
        total_rules=len(scoped),
        published_rules=len(published),
        draft_rules=len(drafts),
        issues=issues,
    )
