"""API route modules for the rules core.

Routers:
- conditions: condition tree edits and validation
- rules: rule evaluation, rule versions, readiness and conflict detection
- simulations: pricing simulation with trace
"""

from .conditions import router as conditions_router
from .rules import router as rules_router
from .simulations import router as simulations_router

__all__ = ["conditions_router", "rules_router", "simulations_router"]
