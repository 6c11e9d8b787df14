"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from datetime import date

import pytest

# Keep tests independent of any pricing file configured on the host
os.environ.pop("RULECORE_PRICING_CONFIG", None)

from rulecore.conditions import (  # noqa: E402
    ConditionGroup,
    ConditionLeaf,
    ConditionOperator,
    LogicalOperator,
)
from rulecore.rules import Rule, RuleStatus, RuleType  # noqa: E402
from rulecore.simulation import (  # noqa: E402
    CoverageSelection,
    PricingConfig,
    SimulationContext,
)


@pytest.fixture
def sample_tree() -> ConditionGroup:
    """AND(age > 18, OR(state in [CA, NY], buildingAge between 0 and 30), hasClaims isFalse)."""
    return ConditionGroup(
        id="root",
        operator=LogicalOperator.AND,
        conditions=(
            ConditionLeaf(id="l1", field_code="age", operator=ConditionOperator.GT, value=18),
            ConditionGroup(
                id="g1",
                operator=LogicalOperator.OR,
                conditions=(
                    ConditionLeaf(
                        id="l2",
                        field_code="state",
                        operator=ConditionOperator.IN,
                        value=("CA", "NY"),
                    ),
                    ConditionLeaf(
                        id="l3",
                        field_code="buildingAge",
                        operator=ConditionOperator.BETWEEN,
                        value=0,
                        value_end=30,
                    ),
                ),
            ),
            ConditionLeaf(
                id="l4", field_code="hasClaims", operator=ConditionOperator.IS_FALSE
            ),
        ),
    )


@pytest.fixture
def make_rule():
    """Factory for flat rules with sensible defaults."""

    def _make(rule_id: str, **kwargs) -> Rule:
        kwargs.setdefault("name", f"Rule {rule_id}")
        kwargs.setdefault("status", RuleStatus.ACTIVE)
        return Rule(id=rule_id, **kwargs)

    return _make


@pytest.fixture
def dated_rule(make_rule):
    """Factory for Active rules on a target with an effective window."""

    def _make(rule_id: str, start: date | None, end: date | None, target_id: str = "cov-1", **kwargs) -> Rule:
        return make_rule(
            rule_id,
            target_id=target_id,
            effective_date=start,
            expiration_date=end,
            **kwargs,
        )

    return _make


@pytest.fixture
def pricing() -> PricingConfig:
    """Pricing with the standard fees and tax, independent of the environment."""
    return PricingConfig()


@pytest.fixture
def simulation_context() -> SimulationContext:
    """One selected coverage with two rating factors."""
    return SimulationContext(
        product_id="prod-1",
        product_name="Homeowners",
        state="CA",
        effective_date="2025-01-01",
        coverages=(
            CoverageSelection(id="cov1", name="Dwelling", selected=True, limit=300000),
            CoverageSelection(id="cov2", name="Flood", selected=False),
        ),
        exposures={"age": 16, "buildingAge": 12},
        rating_factors={"territory": 1.1, "claimsFree": 0.9},
    )


@pytest.fixture
def eligibility_rule(make_rule):
    def _make(rule_id: str, condition: str | None, **kwargs) -> Rule:
        return make_rule(rule_id, rule_type=RuleType.ELIGIBILITY, condition=condition, **kwargs)

    return _make


@pytest.fixture
def client():
    """FastAPI test client."""
    from fastapi.testclient import TestClient

    from rulecore.app import app

    with TestClient(app) as test_client:
        yield test_client
