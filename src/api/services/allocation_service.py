import logging

from src.api.request_models import (
    RebalanceRequest,
    RenderActionsRequest,
    RenderActionsResponse,
    RiskProfileCatalogResponse,
    StrategyRequest,
)
from src.api.routers.allocation_http_errors import raise_allocation_http_exception
from src.core.allocation.actions import serialize
from src.core.allocation.engine import generate_strategy, rebalance_strategy
from src.core.allocation.errors import AllocationEngineError
from src.core.models import EngineConfig, RebalanceResult, RiskProfile, StrategyResult

logger = logging.getLogger(__name__)


def build_strategy_response(*, request: StrategyRequest, config: EngineConfig) -> StrategyResult:
    try:
        return generate_strategy(
            market_data=request.market_data_snapshot,
            config=config,
            balance=request.balance,
            risk_profile=request.risk_profile,
            vault_balances=request.vault_balances,
            home_chain=request.home_chain,
            options=request.options,
        )
    except AllocationEngineError as exc:
        logger.info("Rejected allocation plan request. error_kind=%s", exc.error_kind)
        raise_allocation_http_exception(exc)


def build_rebalance_response(
    *, request: RebalanceRequest, config: EngineConfig
) -> RebalanceResult:
    try:
        return rebalance_strategy(
            current_plan=request.current_plan,
            market_data=request.market_data_snapshot,
            config=config,
            balance=request.balance,
            risk_profile=request.risk_profile,
            options=request.options,
        )
    except AllocationEngineError as exc:
        logger.info(
            "Rejected rebalance request. current_plan_id=%s error_kind=%s",
            request.current_plan.plan_id,
            exc.error_kind,
        )
        raise_allocation_http_exception(exc)


def render_actions(request: RenderActionsRequest) -> RenderActionsResponse:
    return RenderActionsResponse(action_log=serialize(request.actions))


def risk_profile_catalog(config: EngineConfig) -> RiskProfileCatalogResponse:
    return RiskProfileCatalogResponse(
        policies=[
            config.risk_policies[profile]
            for profile in RiskProfile
            if profile in config.risk_policies
        ]
    )
