"""
FILE: src/api/main.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.observability import setup_observability
from src.api.routers.allocation import router as allocation_router
from src.api.routers.allocation_config import get_engine_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _app_lifespan(_app: FastAPI):
    config = get_engine_config()
    logger.info(
        "Allocation engine configured. risk_profiles=%d protocol_profiles=%d",
        len(config.risk_policies),
        len(config.market_defaults.protocol_profiles),
    )
    yield


app = FastAPI(
    title="Cross-Chain Yield Allocation API",
    version="0.1.0",
    description=(
        "Deterministic allocation engine for stablecoin treasuries.\n\n"
        "Turns a balance, a risk profile and a snapshot of yield quotes into an "
        "allocation plan with ordered bridge and protocol actions, and diffs plans "
        "when the market moves."
    ),
    openapi_tags=[
        {
            "name": "Yield Allocation",
            "description": "Plan generation, rebalancing and action rendering endpoints.",
        },
        {
            "name": "Health",
            "description": "Liveness and readiness probes.",
        },
    ],
    lifespan=_app_lifespan,
)

setup_observability(app)
app.include_router(allocation_router)


@app.exception_handler(Exception)
async def unhandled_exception_to_problem_details(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception while serving request", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/problem+json",
        content={
            "type": "about:blank",
            "title": "Internal Server Error",
            "status": 500,
            "detail": "An unexpected error occurred.",
            "instance": str(request.url.path),
        },
    )


@app.get("/health", tags=["Health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health/live", tags=["Health"])
def health_live() -> dict[str, str]:
    return {"status": "live"}


@app.get("/health/ready", tags=["Health"])
def health_ready() -> dict[str, str]:
    get_engine_config()
    return {"status": "ready"}
