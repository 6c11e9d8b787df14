"""Shared Pydantic schemas for the rules core API.

This module centralizes request models used across routers to prevent drift
between duplicate definitions.
"""

from .conditions import (
    AddChildRequest,
    RemoveConditionRequest,
    UpdateConditionRequest,
    ValidateConditionsRequest,
)
from .rules import (
    DetectConflictsRequest,
    EvaluateRulesRequest,
    EvaluateVersionsRequest,
    ReadinessRequest,
    RuleSchema,
    RuleVersionSchema,
)
from .simulations import RunSimulationRequest

__all__ = [
    "AddChildRequest",
    "RemoveConditionRequest",
    "UpdateConditionRequest",
    "ValidateConditionsRequest",
    "DetectConflictsRequest",
    "EvaluateRulesRequest",
    "EvaluateVersionsRequest",
    "ReadinessRequest",
    "RuleSchema",
    "RuleVersionSchema",
    "RunSimulationRequest",
]
