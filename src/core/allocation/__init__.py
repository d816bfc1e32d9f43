"""Cross-chain yield allocation package."""

from src.core.allocation.actions import describe_plan, render_plan_summary, serialize
from src.core.allocation.engine import (
    default_engine_config,
    generate_strategy,
    rebalance_strategy,
)
from src.core.allocation.errors import (
    AllocationEngineError,
    InvalidApyError,
    InvalidBalanceError,
    NoCandidatesError,
    UnknownRiskProfileError,
)
from src.core.allocation.market import build_candidates, filter_candidates
from src.core.allocation.planner import chain_breakdown, plan
from src.core.allocation.policy import (
    DEFAULT_RISK_POLICIES,
    derive_risk_profile,
    lookup,
    parse_risk_policy_catalog,
    parse_risk_profile,
)
from src.core.allocation.rebalance import deployment_actions, diff, exit_requests
from src.core.allocation.scoring import rank_candidates, score
from src.core.allocation.tiers import tier

__all__ = [
    "AllocationEngineError",
    "DEFAULT_RISK_POLICIES",
    "InvalidApyError",
    "InvalidBalanceError",
    "NoCandidatesError",
    "UnknownRiskProfileError",
    "build_candidates",
    "chain_breakdown",
    "default_engine_config",
    "deployment_actions",
    "derive_risk_profile",
    "describe_plan",
    "diff",
    "exit_requests",
    "filter_candidates",
    "generate_strategy",
    "lookup",
    "parse_risk_policy_catalog",
    "parse_risk_profile",
    "plan",
    "rank_candidates",
    "rebalance_strategy",
    "render_plan_summary",
    "score",
    "serialize",
    "tier",
]
