"""Pricing simulation."""

from .engine import SimulationEngine, run_pricing_simulation
from .models import (
    Adjustment,
    CoveragePremium,
    CoveragePremiumAmounts,
    CoverageSelection,
    FeeLine,
    PremiumBreakdown,
    SimulationContext,
    SimulationResult,
    TaxLine,
)
from .pricing import (
    FeeSchedule,
    PricingConfig,
    TaxRate,
    default_pricing_config,
    load_pricing_config,
)

__all__ = [
    "SimulationEngine",
    "run_pricing_simulation",
    "Adjustment",
    "CoveragePremium",
    "CoveragePremiumAmounts",
    "CoverageSelection",
    "FeeLine",
    "PremiumBreakdown",
    "SimulationContext",
    "SimulationResult",
    "TaxLine",
    "FeeSchedule",
    "PricingConfig",
    "TaxRate",
    "default_pricing_config",
    "load_pricing_config",
]
