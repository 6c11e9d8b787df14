"""Data models for pricing simulations."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from ..rules.models import TraceEntry


@dataclass(frozen=True)
class CoverageSelection:
    id: str
    name: str
    selected: bool = True
    limit: float | None = None
    deductible: float | None = None


@dataclass(frozen=True)
class SimulationContext:
    """Read-only input to one simulation run."""

    product_id: str
    product_name: str
    state: str
    effective_date: str
    coverages: tuple[CoverageSelection, ...] = ()
    exposures: Mapping[str, Any] = field(default_factory=dict)
    rating_factors: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the mappings so a run cannot alter its own inputs
        object.__setattr__(self, "coverages", tuple(self.coverages))
        object.__setattr__(self, "exposures", MappingProxyType(dict(self.exposures)))
        object.__setattr__(self, "rating_factors", MappingProxyType(dict(self.rating_factors)))

    def variables(self) -> dict[str, Any]:
        """Flat variable binding; rating factors win key collisions with exposures."""
        return {
            "state": self.state,
            "effectiveDate": self.effective_date,
            **self.exposures,
            **self.rating_factors,
        }


@dataclass(frozen=True)
class CoveragePremiumAmounts:
    base_premium: float
    adjusted_premium: float


@dataclass(frozen=True)
class Adjustment:
    name: str
    amount: float
    factor: float | None = None


@dataclass(frozen=True)
class FeeLine:
    name: str
    amount: float


@dataclass(frozen=True)
class TaxLine:
    name: str
    amount: float
    rate: float


@dataclass(frozen=True)
class PremiumBreakdown:
    base: float = 0.0
    adjustments: list[Adjustment] = field(default_factory=list)
    fees: list[FeeLine] = field(default_factory=list)
    taxes: list[TaxLine] = field(default_factory=list)
    total: float = 0.0


@dataclass(frozen=True)
class CoveragePremium:
    coverage_id: str
    coverage_name: str
    base_premium: float
    adjusted_premium: float


@dataclass(frozen=True)
class SimulationResult:
    success: bool
    premium: PremiumBreakdown
    coverage_premiums: list[CoveragePremium]
    trace: list[TraceEntry]
    errors: list[str]
    warnings: list[str]
    execution_time: float  # milliseconds
