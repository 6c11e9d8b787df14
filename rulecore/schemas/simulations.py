"""Pydantic schemas for the pricing simulation endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from ..simulation import (
    CoverageSelection,
    FeeSchedule,
    PricingConfig,
    SimulationContext,
    TaxRate,
)
from .base import CamelModel
from .rules import RuleSchema, RuleSetRequest


class CoverageSelectionSchema(CamelModel):
    id: str
    name: str
    selected: bool = True
    limit: float | None = None
    deductible: float | None = None


class SimulationContextSchema(CamelModel):
    product_id: str
    product_name: str = ""
    state: str = ""
    effective_date: str = ""
    coverages: list[CoverageSelectionSchema] = Field(default_factory=list)
    exposures: dict[str, Any] = Field(default_factory=dict)
    rating_factors: dict[str, float] = Field(default_factory=dict)

    def to_context(self) -> SimulationContext:
        return SimulationContext(
            product_id=self.product_id,
            product_name=self.product_name,
            state=self.state,
            effective_date=self.effective_date,
            coverages=tuple(
                CoverageSelection(**c.model_dump()) for c in self.coverages
            ),
            exposures=self.exposures,
            rating_factors=self.rating_factors,
        )


class FeeSchema(CamelModel):
    name: str
    amount: float = Field(ge=0)


class TaxSchema(CamelModel):
    name: str
    rate: float = Field(ge=0, le=1)


class PricingSchema(CamelModel):
    fees: list[FeeSchema] | None = None
    taxes: list[TaxSchema] | None = None
    default_base_rate: float | None = None

    def to_pricing(self, fallback: PricingConfig) -> PricingConfig:
        """Override only the parts of ``fallback`` this request sets."""
        return PricingConfig(
            fees=tuple(FeeSchedule(f.name, f.amount) for f in self.fees)
            if self.fees is not None
            else fallback.fees,
            taxes=tuple(TaxRate(t.name, t.rate) for t in self.taxes)
            if self.taxes is not None
            else fallback.taxes,
            default_base_rate=self.default_base_rate
            if self.default_base_rate is not None
            else fallback.default_base_rate,
        )


class RunSimulationRequest(RuleSetRequest):
    context: SimulationContextSchema
    rules: list[RuleSchema] = Field(default_factory=list)
    base_rates: dict[str, float] = Field(default_factory=dict)
    pricing: PricingSchema | None = None

    @field_validator("base_rates")
    @classmethod
    def validate_base_rates(cls, v: dict[str, float]) -> dict[str, float]:
        if any(rate < 0 for rate in v.values()):
            raise ValueError("Base rates must not be negative")
        return v
