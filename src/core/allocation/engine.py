"""Allocation engine orchestration."""

import logging
from decimal import Decimal
from typing import Any, Optional, Sequence

from src.core.allocation.actions import describe_plan, serialize
from src.core.allocation.errors import InvalidBalanceError, UnknownRiskProfileError
from src.core.allocation.market import DEFAULT_MARKET_DEFAULTS, build_candidates
from src.core.allocation.planner import chain_breakdown, plan
from src.core.allocation.policy import (
    DEFAULT_RISK_POLICIES,
    derive_risk_profile,
    parse_risk_profile,
)
from src.core.allocation.rebalance import deployment_actions, diff, exit_requests
from src.core.common.canonical import hash_canonical_payload
from src.core.models import (
    EngineConfig,
    EngineOptions,
    LineageData,
    MarketDataSnapshot,
    Plan,
    RebalanceResult,
    RiskProfile,
    StrategyResult,
    VaultBalance,
)

logger = logging.getLogger(__name__)


def default_engine_config() -> EngineConfig:
    return EngineConfig(
        risk_policies=dict(DEFAULT_RISK_POLICIES),
        market_defaults=DEFAULT_MARKET_DEFAULTS,
        options=EngineOptions(),
    )


def _lineage(payload: dict[str, Any], market_data: MarketDataSnapshot) -> LineageData:
    return LineageData(
        request_hash=hash_canonical_payload(payload),
        market_data_snapshot_id=market_data.snapshot_id or "md",
    )


def _resolve_risk_profile(
    risk_profile: Optional[RiskProfile | str],
    vault_balances: Sequence[VaultBalance],
) -> RiskProfile:
    if risk_profile is not None:
        return parse_risk_profile(risk_profile)
    if vault_balances:
        return derive_risk_profile(vault_balances)
    raise UnknownRiskProfileError("risk profile is required when no vault balances are given")


def _resolve_balance(balance: Optional[Decimal], vault_balances: Sequence[VaultBalance]) -> Decimal:
    if balance is not None:
        return balance
    if vault_balances:
        return sum((b.amount for b in vault_balances), Decimal("0"))
    raise InvalidBalanceError("balance is required when no vault balances are given")


def generate_strategy(
    *,
    market_data: MarketDataSnapshot,
    config: EngineConfig,
    balance: Optional[Decimal] = None,
    risk_profile: Optional[RiskProfile | str] = None,
    vault_balances: Sequence[VaultBalance] = (),
    home_chain: Optional[str] = None,
    options: Optional[EngineOptions] = None,
) -> StrategyResult:
    effective_options = options or config.options
    profile = _resolve_risk_profile(risk_profile, vault_balances)
    resolved_balance = _resolve_balance(balance, vault_balances)

    candidates = build_candidates(market_data, config.market_defaults)
    new_plan = plan(
        resolved_balance,
        profile,
        candidates,
        policies=config.risk_policies,
        options=effective_options,
        home_chain=home_chain,
    )
    actions = deployment_actions(
        new_plan, defaults=config.market_defaults, options=effective_options
    )
    logger.info(
        "Generated allocation plan. plan_id=%s profile=%s allocations=%d candidates=%d",
        new_plan.plan_id,
        profile.value,
        len(new_plan.allocations),
        len(candidates),
    )
    return StrategyResult(
        plan=new_plan,
        chain_breakdown=chain_breakdown(new_plan),
        actions=actions,
        action_log=serialize(actions),
        reasoning=describe_plan(new_plan),
        lineage=_lineage(
            {
                "balance": str(resolved_balance),
                "risk_profile": profile.value,
                "home_chain": home_chain,
                "market_data": market_data.model_dump(mode="json"),
                "options": effective_options.model_dump(mode="json"),
            },
            market_data,
        ),
    )


def rebalance_strategy(
    *,
    current_plan: Plan,
    market_data: MarketDataSnapshot,
    config: EngineConfig,
    balance: Optional[Decimal] = None,
    risk_profile: Optional[RiskProfile | str] = None,
    options: Optional[EngineOptions] = None,
) -> RebalanceResult:
    """
    Re-plan against a fresh snapshot and diff against the held plan.
    Balance and risk profile default to those of ``current_plan``.
    """
    effective_options = options or config.options
    profile = parse_risk_profile(
        current_plan.risk_profile if risk_profile is None else risk_profile
    )
    resolved_balance = current_plan.total_balance if balance is None else balance

    proposed = plan(
        resolved_balance,
        profile,
        build_candidates(market_data, config.market_defaults),
        policies=config.risk_policies,
        options=effective_options,
        home_chain=current_plan.home_chain,
    )
    actions = diff(
        current_plan, proposed, defaults=config.market_defaults, options=effective_options
    )
    exits = exit_requests(current_plan, proposed, options=effective_options)
    logger.info(
        "Computed rebalance. current_plan_id=%s proposed_plan_id=%s actions=%d exits=%d",
        current_plan.plan_id,
        proposed.plan_id,
        len(actions),
        len(exits),
    )
    return RebalanceResult(
        current_plan_id=current_plan.plan_id,
        proposed_plan=proposed,
        actions=actions,
        action_log=serialize(actions),
        exit_requests=exits,
        reasoning=describe_plan(proposed),
        lineage=_lineage(
            {
                "current_plan": current_plan.model_dump(mode="json"),
                "balance": str(resolved_balance),
                "risk_profile": profile.value,
                "market_data": market_data.model_dump(mode="json"),
                "options": effective_options.model_dump(mode="json"),
            },
            market_data,
        ),
    )
