"""Shared configuration for the rules core.

This module centralizes environment variable access and default values
to prevent drift between modules.
"""

import os

# Pricing defaults (illustrative constants, overridable per deployment)
POLICY_FEE = float(os.getenv("RULECORE_POLICY_FEE", "25"))
INSPECTION_FEE = float(os.getenv("RULECORE_INSPECTION_FEE", "15"))
TAX_RATE = float(os.getenv("RULECORE_TAX_RATE", "0.03"))
DEFAULT_BASE_RATE = float(os.getenv("RULECORE_DEFAULT_BASE_RATE", "100"))

# Optional YAML/JSON file describing fees and taxes
PRICING_CONFIG_PATH = os.getenv("RULECORE_PRICING_CONFIG")

# Conflict detection
# "skip_open_ended" keeps rules without both dates out of the overlap check,
# "open_ended_forever" treats a missing expiration as never expiring.
OVERLAP_POLICY = os.getenv("RULECORE_OVERLAP_POLICY", "skip_open_ended")
MAX_WALK_STEPS = int(os.getenv("RULECORE_MAX_WALK_STEPS", "10000"))

# API
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "RULECORE_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]
RATE_LIMIT = os.getenv("RULECORE_RATE_LIMIT", "100/minute")
