"""Data models for flat rules, evaluation traces and conflict reports."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class RuleStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    DRAFT = "Draft"
    UNDER_REVIEW = "Under Review"
    ARCHIVED = "Archived"


class RuleType(str, Enum):
    """Rule classes understood by the simulation engine."""

    ELIGIBILITY = "eligibility"
    RATING = "rating"
    VALIDATION = "validation"
    CALCULATION = "calculation"


class TraceType(str, Enum):
    RULE = "rule"
    CALCULATION = "calculation"
    LOOKUP = "lookup"
    CONDITION = "condition"
    RESULT = "result"


@dataclass(frozen=True)
class Rule:
    """Flat view of a rule used by evaluation and conflict detection.

    ``priority`` orders evaluation (lower first). ``condition`` is an optional
    boolean expression; a rule without one always applies. The effective
    window is ``[effective_date, expiration_date]``, an absent expiration
    meaning open-ended.
    """

    id: str
    name: str
    target_id: str | None = None
    priority: int | None = None
    status: RuleStatus = RuleStatus.DRAFT
    effective_date: date | None = None
    expiration_date: date | None = None
    depends_on_rule_id: tuple[str, ...] = ()
    rule_type: RuleType | None = None
    condition: str | None = None
    action: str = ""

    @property
    def is_active(self) -> bool:
        return self.status == RuleStatus.ACTIVE


@dataclass(frozen=True)
class TraceEntry:
    """One audit record of an evaluation or calculation step."""

    id: str
    timestamp: float  # epoch milliseconds, non-decreasing within a trace
    type: TraceType
    name: str
    input: dict[str, Any]
    output: Any
    duration: float  # milliseconds
    passed: bool | None = None
    message: str | None = None


@dataclass(frozen=True)
class RuleSetEvaluation:
    applicable_rules: list[Rule]
    trace: list[TraceEntry]


class ConflictType(str, Enum):
    OVERLAPPING_DATES = "overlapping_dates"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    PRIORITY_TIE = "priority_tie"
    ANALYSIS_TRUNCATED = "analysis_truncated"


class ConflictSeverity(str, Enum):
    WARNING = "warning"  # should be reviewed
    ERROR = "error"  # structurally invalid


@dataclass(frozen=True)
class Conflict:
    type: ConflictType
    severity: ConflictSeverity
    message: str
    rule_ids: tuple[str, ...]
    cycle_path: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConflictDetectionResult:
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(c.severity == ConflictSeverity.ERROR for c in self.conflicts)

    @property
    def has_warnings(self) -> bool:
        return any(c.severity == ConflictSeverity.WARNING for c in self.conflicts)
