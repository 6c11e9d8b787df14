"""FastAPI app exposing the rules core to the product console."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from . import __version__, config
from .routes import conditions_router, rules_router, simulations_router
from .simulation import default_pricing_config

# Configure logging
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective pricing and analysis settings at startup."""
    pricing = default_pricing_config()
    logger.info(
        f"Rules core {__version__} starting: "
        f"{len(pricing.fees)} fee(s), {len(pricing.taxes)} tax(es), "
        f"overlap_policy={config.OVERLAP_POLICY}, max_walk_steps={config.MAX_WALK_STEPS}"
    )
    yield


app = FastAPI(
    title="Product Rules Core",
    description="Condition trees, rule evaluation, conflict detection and pricing simulation",
    version=__version__,
    lifespan=lifespan,
)

# Rate limiting configuration
# Every endpoint shares the default limit (RULECORE_RATE_LIMIT)
limiter = Limiter(key_func=get_remote_address, default_limits=[config.RATE_LIMIT])
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(conditions_router)
app.include_router(rules_router)
app.include_router(simulations_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
