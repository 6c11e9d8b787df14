"""Pricing configuration: fixed fees, tax rates and the default base rate.

Defaults come from :mod:`rulecore.config`. A deployment can also describe its
fees and taxes in a YAML or JSON file::

    default_base_rate: 100
    fees:
      - name: Policy Fee
        amount: 25
      - name: Inspection Fee
        amount: 15
    taxes:
      - name: State Premium Tax
        rate: 0.03
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .. import config
from ..errors import ConfigValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeSchedule:
    name: str
    amount: float


@dataclass(frozen=True)
class TaxRate:
    name: str
    rate: float  # fraction of the adjusted premium, e.g. 0.03


def _default_fees() -> tuple[FeeSchedule, ...]:
    return (
        FeeSchedule("Policy Fee", config.POLICY_FEE),
        FeeSchedule("Inspection Fee", config.INSPECTION_FEE),
    )


def _default_taxes() -> tuple[TaxRate, ...]:
    return (TaxRate("State Premium Tax", config.TAX_RATE),)


@dataclass(frozen=True)
class PricingConfig:
    fees: tuple[FeeSchedule, ...] = field(default_factory=_default_fees)
    taxes: tuple[TaxRate, ...] = field(default_factory=_default_taxes)
    default_base_rate: float = config.DEFAULT_BASE_RATE

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "<dict>") -> PricingConfig:
        """Build a config from parsed YAML/JSON data.

        Raises:
            ConfigValidationError: listing every invalid fee or tax entry
        """
        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Invalid pricing config format in {source}",
                errors=[{"file": source, "error": "Expected a mapping"}],
            )

        errors: list[dict[str, Any]] = []
        fees: list[FeeSchedule] = []
        taxes: list[TaxRate] = []

        for idx, item in enumerate(data.get("fees", [])):
            try:
                amount = float(item["amount"])
                if amount < 0:
                    raise ValueError("amount must not be negative")
                fees.append(FeeSchedule(str(item["name"]), amount))
            except (KeyError, TypeError, ValueError) as e:
                errors.append({"file": source, "index": idx, "section": "fees", "error": str(e)})

        for idx, item in enumerate(data.get("taxes", [])):
            try:
                rate = float(item["rate"])
                if not 0 <= rate <= 1:
                    raise ValueError("rate must be between 0 and 1")
                taxes.append(TaxRate(str(item["name"]), rate))
            except (KeyError, TypeError, ValueError) as e:
                errors.append({"file": source, "index": idx, "section": "taxes", "error": str(e)})

        try:
            default_base_rate = float(data.get("default_base_rate", config.DEFAULT_BASE_RATE))
        except (TypeError, ValueError) as e:
            errors.append({"file": source, "section": "default_base_rate", "error": str(e)})
            default_base_rate = config.DEFAULT_BASE_RATE

        if errors:
            raise ConfigValidationError(
                f"Validation failed for {len(errors)} item(s)", errors=errors
            )

        return cls(
            fees=tuple(fees) if "fees" in data else _default_fees(),
            taxes=tuple(taxes) if "taxes" in data else _default_taxes(),
            default_base_rate=default_base_rate,
        )


def load_pricing_config(file_path: str | Path) -> PricingConfig:
    """Load a pricing configuration from a YAML or JSON file.

    Raises:
        ConfigValidationError: If validation fails
        FileNotFoundError: If file doesn't exist
        ValueError: If the file extension is not supported
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Pricing config file not found: {path}")

    suffix = path.suffix.lower()
    with open(path) as f:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported config format: {suffix}")

    pricing = PricingConfig.from_dict(data or {}, str(path))
    logger.info(
        f"Loaded pricing config from {path.name}: "
        f"{len(pricing.fees)} fee(s), {len(pricing.taxes)} tax(es)"
    )
    return pricing


def default_pricing_config() -> PricingConfig:
    """Pricing config from ``RULECORE_PRICING_CONFIG`` if set, else built-in defaults."""
    if config.PRICING_CONFIG_PATH:
        try:
            return load_pricing_config(config.PRICING_CONFIG_PATH)
        except (ConfigValidationError, OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Falling back to default pricing config: {e}")
    return PricingConfig()
