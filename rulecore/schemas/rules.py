"""Pydantic schemas for rule evaluation and conflict endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import Field, field_validator

from ..conditions import ConditionGroup, condition_from_dict
from ..conditions.models import outcome_from_dict, scope_from_dict
from ..rules import EvaluationContext, Rule, RuleStatus, RuleType, RuleVersion
from ..rules.conflicts import OverlapPolicy
from ..rules.versions import RuleVersionStatus, UnderwritingRuleType
from .base import CamelModel, coerce_date

MAX_RULES_PER_REQUEST = 5000


class RuleSchema(CamelModel):
    id: str
    name: str
    target_id: str | None = None
    priority: int | None = None
    status: RuleStatus = RuleStatus.DRAFT
    effective_date: date | None = None
    expiration_date: date | None = None
    depends_on_rule_id: list[str] = Field(default_factory=list)
    rule_type: RuleType | None = None
    condition: str | None = None
    action: str = ""

    @field_validator("effective_date", "expiration_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> date | None:
        return coerce_date(v)

    @field_validator("depends_on_rule_id", mode="before")
    @classmethod
    def normalize_dependencies(cls, v: Any) -> Any:
        """Accept a single id as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v else []
        return v

    def to_rule(self) -> Rule:
        return Rule(
            id=self.id,
            name=self.name,
            target_id=self.target_id,
            priority=self.priority,
            status=self.status,
            effective_date=self.effective_date,
            expiration_date=self.expiration_date,
            depends_on_rule_id=tuple(self.depends_on_rule_id),
            rule_type=self.rule_type,
            condition=self.condition,
            action=self.action,
        )


class RuleSetRequest(CamelModel):
    rules: list[RuleSchema]

    @field_validator("rules")
    @classmethod
    def validate_rules_length(cls, v: list[RuleSchema]) -> list[RuleSchema]:
        """Validate that rules doesn't exceed maximum length."""
        if len(v) > MAX_RULES_PER_REQUEST:
            raise ValueError(f"Too many rules. Maximum {MAX_RULES_PER_REQUEST} per request.")
        return v

    def to_rules(self) -> list[Rule]:
        return [r.to_rule() for r in self.rules]


class EvaluateRulesRequest(RuleSetRequest):
    variables: dict[str, Any] = Field(default_factory=dict)


class DetectConflictsRequest(RuleSetRequest):
    overlap_policy: OverlapPolicy | None = None


class RuleVersionSchema(CamelModel):
    id: str
    rule_id: str
    rule_name: str
    conditions: dict[str, Any]
    outcome: dict[str, Any] = Field(default_factory=dict)
    scope: dict[str, Any] = Field(default_factory=dict)
    rule_type: UnderwritingRuleType = UnderwritingRuleType.ELIGIBILITY
    status: RuleVersionStatus = RuleVersionStatus.DRAFT
    version_number: int = 1
    effective_start: date | None = None
    effective_end: date | None = None

    @field_validator("effective_start", "effective_end", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> date | None:
        return coerce_date(v)

    def to_version(self) -> RuleVersion:
        conditions = condition_from_dict(self.conditions)
        if not isinstance(conditions, ConditionGroup):
            raise ValueError(f"Rule version {self.id}: conditions must be a group")
        return RuleVersion(
            id=self.id,
            rule_id=self.rule_id,
            rule_name=self.rule_name,
            conditions=conditions,
            outcome=outcome_from_dict(self.outcome),
            scope=scope_from_dict(self.scope),
            rule_type=self.rule_type,
            status=self.status,
            version_number=self.version_number,
            effective_start=self.effective_start,
            effective_end=self.effective_end,
        )


class EvaluationContextSchema(CamelModel):
    inputs: dict[str, Any] = Field(default_factory=dict)
    product_version_id: str
    effective_date: date
    state: str | None = None
    coverage_version_id: str | None = None

    @field_validator("effective_date", mode="before")
    @classmethod
    def parse_effective_date(cls, v: Any) -> date | None:
        return coerce_date(v)

    def to_context(self) -> EvaluationContext:
        return EvaluationContext(
            inputs=dict(self.inputs),
            product_version_id=self.product_version_id,
            effective_date=self.effective_date,
            state=self.state,
            coverage_version_id=self.coverage_version_id,
        )


class EvaluateVersionsRequest(CamelModel):
    versions: list[RuleVersionSchema]
    context: EvaluationContextSchema


class ReadinessRequest(CamelModel):
    versions: list[RuleVersionSchema]
    product_version_id: str
    available_field_codes: list[str] = Field(default_factory=list)
    today: date | None = None

    @field_validator("today", mode="before")
    @classmethod
    def parse_today(cls, v: Any) -> date | None:
        return coerce_date(v)
