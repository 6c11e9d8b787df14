"""Rule evaluation, versioned rule evaluation and conflict detection routes."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from ..errors import RuleCoreError
from ..rules import check_rule_readiness, detect_conflicts, evaluate_rule_set, evaluate_rule_versions
from ..schemas import (
    DetectConflictsRequest,
    EvaluateRulesRequest,
    EvaluateVersionsRequest,
    ReadinessRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rules", tags=["rules"])


@router.post("/evaluate")
async def evaluate_rules(request: EvaluateRulesRequest):
    """Evaluate flat rules against a variable binding.

    Returns the applicable rules in priority order and the evaluation trace.
    """
    try:
        evaluation = evaluate_rule_set(request.to_rules(), request.variables)
        return asdict(evaluation)
    except RuleCoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to evaluate rules: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to evaluate rules: {str(e)[:200]}"
        )


@router.post("/conflicts")
async def find_conflicts(request: DetectConflictsRequest):
    """Statically analyze a rule set for overlaps, cycles and priority ties."""
    try:
        result = detect_conflicts(request.to_rules(), overlap_policy=request.overlap_policy)
        return {
            "has_errors": result.has_errors,
            "has_warnings": result.has_warnings,
            **asdict(result),
        }
    except RuleCoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to detect conflicts: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to detect conflicts: {str(e)[:200]}"
        )


@router.post("/versions/evaluate")
async def evaluate_versions(request: EvaluateVersionsRequest):
    """Evaluate scoped rule versions and roll up the outcome."""
    try:
        versions = [v.to_version() for v in request.versions]
        result = evaluate_rule_versions(versions, request.context.to_context())
        return asdict(result)
    except (RuleCoreError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to evaluate rule versions: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to evaluate rule versions: {str(e)[:200]}"
        )


@router.post("/versions/readiness")
async def rule_readiness(request: ReadinessRequest):
    """Check whether a product version's rules are ready to publish."""
    try:
        versions = [v.to_version() for v in request.versions]
        check = check_rule_readiness(
            versions,
            request.product_version_id,
            request.available_field_codes,
            today=request.today,
        )
        return asdict(check)
    except (RuleCoreError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to check rule readiness: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to check rule readiness: {str(e)[:200]}"
        )
