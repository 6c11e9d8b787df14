"""Pricing simulation routes."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from ..errors import RuleCoreError
from ..schemas import RunSimulationRequest
from ..simulation import default_pricing_config, run_pricing_simulation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/simulations", tags=["simulations"])


@router.post("/run")
async def run_simulation(request: RunSimulationRequest):
    """Price a quote context and return the breakdown with its full trace.

    Eligibility failures come back in ``errors`` with ``success`` false; the
    premium is still computed so the console can show both.
    """
    try:
        pricing = default_pricing_config()
        if request.pricing is not None:
            pricing = request.pricing.to_pricing(pricing)
        result = run_pricing_simulation(
            request.context.to_context(),
            request.to_rules(),
            request.base_rates,
            pricing=pricing,
        )
        return asdict(result)
    except RuleCoreError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to run simulation: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to run simulation: {str(e)[:200]}"
        )
