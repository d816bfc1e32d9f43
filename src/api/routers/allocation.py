import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, status

from src.api.allocation_examples import (
    ENGINE_ERROR_EXAMPLE,
    PLAN_CONSERVATIVE_EXAMPLE,
    PLAN_MODERATE_EXAMPLE,
    PLAN_VAULT_DERIVED_EXAMPLE,
    REBALANCE_CHAIN_SHIFT_EXAMPLE,
)
from src.api.request_models import (
    RebalanceRequest,
    RenderActionsRequest,
    RenderActionsResponse,
    RiskProfileCatalogResponse,
    StrategyRequest,
)
from src.api.routers.allocation_config import get_engine_config
from src.api.routers.allocation_http_errors import HTTP_422_UNPROCESSABLE
from src.api.routers.runtime_utils import assert_feature_enabled
from src.api.services.allocation_service import (
    build_rebalance_response,
    build_strategy_response,
    render_actions,
    risk_profile_catalog,
)
from src.core.models import EngineConfig, RebalanceResult, StrategyResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/allocation", tags=["Yield Allocation"])

_ENGINE_ERROR_RESPONSE = {
    "description": (
        "Invalid payload, or engine rejection with error_kind UNKNOWN_RISK_PROFILE, "
        "INVALID_BALANCE, INVALID_APY or NO_CANDIDATES."
    ),
    "content": {"application/json": {"examples": {"no_candidates": ENGINE_ERROR_EXAMPLE}}},
}


@router.post(
    "/plan",
    response_model=StrategyResult,
    status_code=status.HTTP_200_OK,
    summary="Generate an Allocation Plan",
    description=(
        "Scores the quoted yield opportunities for the caller's risk profile, allocates "
        "the balance under per-protocol and per-chain caps while holding a reserve, and "
        "returns the plan with its ordered deployment actions.\n\n"
        "Optional header: `X-Correlation-Id`."
    ),
    responses={
        200: {
            "description": "Plan generated.",
            "content": {
                "application/json": {
                    "examples": {
                        "moderate": PLAN_MODERATE_EXAMPLE,
                        "conservative": PLAN_CONSERVATIVE_EXAMPLE,
                        "vault_derived": PLAN_VAULT_DERIVED_EXAMPLE,
                    }
                }
            },
        },
        HTTP_422_UNPROCESSABLE: _ENGINE_ERROR_RESPONSE,
    },
)
def generate_allocation_plan(
    request: StrategyRequest,
    config: Annotated[EngineConfig, Depends(get_engine_config)],
    correlation_id: Annotated[
        Optional[str],
        Header(
            alias="X-Correlation-Id",
            description="Optional trace/correlation identifier propagated to logs.",
            examples=["corr-1234-abcd"],
        ),
    ] = None,
) -> StrategyResult:
    logger.info(
        "Generating allocation plan. correlation_id=%s quotes=%d",
        correlation_id,
        len(request.market_data_snapshot.quotes),
    )
    return build_strategy_response(request=request, config=config)


@router.post(
    "/rebalance",
    response_model=RebalanceResult,
    status_code=status.HTTP_200_OK,
    summary="Rebalance an Existing Plan",
    description=(
        "Re-plans against fresh quotes and returns the actions that move the current plan "
        "to the proposed one. Positions the proposed plan drops or shrinks are returned as "
        "exit requests rather than actions."
    ),
    responses={
        200: {
            "description": "Rebalance computed.",
            "content": {
                "application/json": {"examples": {"chain_shift": REBALANCE_CHAIN_SHIFT_EXAMPLE}}
            },
        },
        HTTP_422_UNPROCESSABLE: _ENGINE_ERROR_RESPONSE,
    },
)
def rebalance_allocation_plan(
    request: RebalanceRequest,
    config: Annotated[EngineConfig, Depends(get_engine_config)],
    correlation_id: Annotated[
        Optional[str],
        Header(
            alias="X-Correlation-Id",
            description="Optional trace/correlation identifier propagated to logs.",
            examples=["corr-1234-abcd"],
        ),
    ] = None,
) -> RebalanceResult:
    logger.info(
        "Rebalancing allocation plan. correlation_id=%s current_plan_id=%s",
        correlation_id,
        request.current_plan.plan_id,
    )
    return build_rebalance_response(request=request, config=config)


@router.post(
    "/actions/render",
    response_model=RenderActionsResponse,
    status_code=status.HTTP_200_OK,
    summary="Render Actions to Strings",
    description="Serializes typed actions into the string form consumed by the executor.",
)
def render_allocation_actions(request: RenderActionsRequest) -> RenderActionsResponse:
    return render_actions(request)


@router.get(
    "/risk-profiles",
    response_model=RiskProfileCatalogResponse,
    status_code=status.HTTP_200_OK,
    summary="List Risk Profile Policies",
    description=(
        "Returns the active risk policy table, including environment overrides.\n\n"
        "Returns 404 when `ALLOCATION_RISK_PROFILE_CATALOG_ENABLED` is false."
    ),
    responses={404: {"description": "Risk profile catalog is disabled."}},
)
def list_risk_profiles(
    config: Annotated[EngineConfig, Depends(get_engine_config)],
) -> RiskProfileCatalogResponse:
    assert_feature_enabled(
        name="ALLOCATION_RISK_PROFILE_CATALOG_ENABLED",
        default=True,
        detail="ALLOCATION_RISK_PROFILE_CATALOG_DISABLED",
    )
    return risk_profile_catalog(config)
