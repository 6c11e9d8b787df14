"""Deterministic pricing simulation with a step-by-step trace."""
from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping

from ..rules.evaluator import RuleEvaluator
from ..rules.models import Rule, RuleType, TraceEntry, TraceType
from ..rules.trace import TraceRecorder, elapsed_ms
from .models import (
    Adjustment,
    CoveragePremium,
    CoveragePremiumAmounts,
    FeeLine,
    PremiumBreakdown,
    SimulationContext,
    SimulationResult,
    TaxLine,
)
from .pricing import PricingConfig, default_pricing_config

logger = logging.getLogger(__name__)


class SimulationEngine:
    """Runs one pricing simulation for a context.

    The trace accumulates across calls on the same instance. Create one
    engine per run (or call ``clear_trace``) to keep traces isolated.
    """

    def __init__(
        self, context: SimulationContext, pricing: PricingConfig | None = None
    ) -> None:
        self.context = context
        self.pricing = pricing or default_pricing_config()
        self._recorder = TraceRecorder()
        self._evaluator = RuleEvaluator(self._recorder)

    def evaluate_condition(self, condition: str, variables: Mapping[str, object]) -> bool:
        return self._evaluator.evaluate_condition(condition, variables)

    def evaluate_rules(self, rules: Iterable[Rule], variables: Mapping[str, object]) -> list[Rule]:
        return self._evaluator.evaluate_rules(rules, variables)

    def calculate_coverage_premium(
        self,
        coverage_id: str,
        coverage_name: str,
        base_rate: float,
        factors: Mapping[str, float],
    ) -> CoveragePremiumAmounts:
        """Chain every rating factor onto the base rate.

        Factors are applied in mapping order; the order only changes the
        trace narrative, not the product.
        """
        start = time.perf_counter()
        base_premium = base_rate
        adjusted_premium = base_premium

        for factor_name, factor_value in factors.items():
            before = adjusted_premium
            adjusted_premium = before * factor_value
            self._recorder.add(
                TraceType.CALCULATION,
                f"{coverage_name} - {factor_name}",
                {"premium": before, "factor": factor_value},
                adjusted_premium,
                0,
            )

        self._recorder.add(
            TraceType.RESULT,
            f"{coverage_name} Premium",
            {"coverageId": coverage_id, "baseRate": base_rate, "factors": dict(factors)},
            {"basePremium": base_premium, "adjustedPremium": adjusted_premium},
            elapsed_ms(start),
        )
        return CoveragePremiumAmounts(base_premium=base_premium, adjusted_premium=adjusted_premium)

    def run_simulation(
        self, rules: Iterable[Rule], base_rates: Mapping[str, float]
    ) -> SimulationResult:
        """Evaluate eligibility, price selected coverages and add fees and taxes.

        Failed eligibility rules are reported in ``errors`` but pricing still
        runs. Any unexpected exception produces a ``success=False`` result
        carrying the trace recorded so far; this method never raises.
        """
        start = time.perf_counter()
        errors: list[str] = []
        warnings: list[str] = []

        try:
            variables = self.context.variables()

            eligibility_rules = [r for r in rules if r.rule_type == RuleType.ELIGIBILITY]
            passed = self.evaluate_rules(eligibility_rules, variables)
            passed_ids = {id(rule) for rule in passed}
            for rule in eligibility_rules:
                if id(rule) not in passed_ids:
                    errors.append(f"Eligibility failed: {rule.name}")

            coverage_premiums: list[CoveragePremium] = []
            total_base = 0.0
            total_adjusted = 0.0
            factor_deltas: dict[str, float] = {name: 0.0 for name in self.context.rating_factors}

            selected = [c for c in self.context.coverages if c.selected]
            if not selected:
                warnings.append("No coverages selected")

            for coverage in selected:
                base_rate = base_rates.get(coverage.id)
                if base_rate is None:
                    base_rate = self.pricing.default_base_rate
                    warnings.append(
                        f"No base rate for coverage {coverage.name}; using default {base_rate:g}"
                    )
                    self._recorder.add(
                        TraceType.LOOKUP,
                        f"{coverage.name} Base Rate",
                        {"coverageId": coverage.id},
                        base_rate,
                        0,
                        message="default base rate",
                    )

                amounts = self.calculate_coverage_premium(
                    coverage.id, coverage.name, base_rate, self.context.rating_factors
                )
                coverage_premiums.append(
                    CoveragePremium(
                        coverage_id=coverage.id,
                        coverage_name=coverage.name,
                        base_premium=amounts.base_premium,
                        adjusted_premium=amounts.adjusted_premium,
                    )
                )
                total_base += amounts.base_premium
                total_adjusted += amounts.adjusted_premium

                running = amounts.base_premium
                for factor_name, factor_value in self.context.rating_factors.items():
                    factor_deltas[factor_name] += running * factor_value - running
                    running *= factor_value

            adjustments = [
                Adjustment(name=name, amount=factor_deltas[name], factor=factor)
                for name, factor in self.context.rating_factors.items()
            ]
            fees = [FeeLine(name=f.name, amount=f.amount) for f in self.pricing.fees]
            taxes = [
                TaxLine(name=t.name, amount=total_adjusted * t.rate, rate=t.rate)
                for t in self.pricing.taxes
            ]
            fees_total = sum(f.amount for f in fees)
            taxes_total = sum(t.amount for t in taxes)
            total = total_adjusted + fees_total + taxes_total

            self._recorder.add(
                TraceType.RESULT,
                "Policy Premium",
                {
                    "totalBase": total_base,
                    "totalAdjusted": total_adjusted,
                    "fees": fees_total,
                    "taxes": taxes_total,
                },
                total,
                0,
            )

            result = SimulationResult(
                success=not errors,
                premium=PremiumBreakdown(
                    base=total_base,
                    adjustments=adjustments,
                    fees=fees,
                    taxes=taxes,
                    total=total,
                ),
                coverage_premiums=coverage_premiums,
                trace=self._recorder.entries,
                errors=errors,
                warnings=warnings,
                execution_time=elapsed_ms(start),
            )

            logger.info(
                f"Simulation completed for product {self.context.product_id}: "
                f"total={result.premium.total:.2f} "
                f"time={result.execution_time:.2f}ms trace_entries={len(self._recorder)}"
            )
            return result

        except Exception as e:
            logger.error(
                f"Simulation failed for product {self.context.product_id}: {e}",
                exc_info=True,
            )
            return SimulationResult(
                success=False,
                premium=PremiumBreakdown(),
                coverage_premiums=[],
                trace=self._recorder.entries,
                errors=[*errors, str(e)],
                warnings=warnings,
                execution_time=elapsed_ms(start),
            )

    def get_trace(self) -> list[TraceEntry]:
        return self._recorder.entries

    def clear_trace(self) -> None:
        self._recorder.clear()


def run_pricing_simulation(
    context: SimulationContext,
    rules: Iterable[Rule],
    base_rates: Mapping[str, float],
    pricing: PricingConfig | None = None,
) -> SimulationResult:
    """Create a fresh engine and run one simulation."""
    engine = SimulationEngine(context, pricing)
    return engine.run_simulation(rules, base_rates)
