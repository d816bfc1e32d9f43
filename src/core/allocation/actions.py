"""
String rendering of engine actions and plans.

The action strings are consumed verbatim by the agent chat transcript and the
execution layer, so their wording is a contract. Nothing in the engine parses
them back.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from src.core.models import (
    Action,
    BridgeAction,
    MonitorAction,
    Plan,
    ProtocolOpAction,
    RiskProfile,
)

BRIDGE_TEMPLATE = "bridge {amount} to {chain}"
PROTOCOL_OP_TEMPLATE = "{op_kind} into protocol {protocol}"

_RISK_PROFILE_LABELS = {
    RiskProfile.CONSERVATIVE: "conservative",
    RiskProfile.MODERATE: "moderate",
    RiskProfile.AGGRESSIVE: "aggressive",
}


def format_amount(value: Decimal) -> str:
    return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _format_grouped(value: Decimal) -> str:
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"


def _format_pct(value: Decimal, places: str = "0.01") -> str:
    return format(value.quantize(Decimal(places), rounding=ROUND_HALF_UP).normalize(), "f")


def render_action(action: Action) -> str:
    if isinstance(action, BridgeAction):
        return BRIDGE_TEMPLATE.format(amount=format_amount(action.amount), chain=action.to_chain)
    if isinstance(action, ProtocolOpAction):
        return PROTOCOL_OP_TEMPLATE.format(
            op_kind=action.op_kind.value, protocol=action.protocol
        )
    if isinstance(action, MonitorAction):
        return action.note
    raise TypeError(f"unsupported action type {type(action).__name__}")


def serialize(actions: Sequence[Action]) -> list[str]:
    return [render_action(action) for action in actions]


def describe_plan(plan: Plan) -> str:
    """One-paragraph rationale in the agent's voice."""
    protocols = ", ".join(a.protocol for a in plan.allocations)
    chains = ", ".join(dict.fromkeys(a.chain for a in plan.allocations))
    return (
        f"Based on your {_format_grouped(plan.total_balance)} USDC balance and "
        f"{_RISK_PROFILE_LABELS[plan.risk_profile]} profile, I recommend diversifying across "
        f"{chains} using {protocols}. This strategy targets "
        f"{_format_pct(plan.blended_apy, '0.1')}% APY while keeping "
        f"{format_amount(plan.reserve)} USDC in reserve."
    )


def render_plan_summary(plan: Plan) -> str:
    lines = [
        "## Investment Strategy Recommendation",
        "",
        f"**Your Balance:** {_format_grouped(plan.total_balance)} USDC",
        f"**Risk Profile:** {_RISK_PROFILE_LABELS[plan.risk_profile]}",
        f"**Expected APY:** {_format_pct(plan.blended_apy)}%",
        f"**Reserve:** {format_amount(plan.reserve)} USDC",
        "",
        "### Recommended Allocation:",
        "",
    ]
    by_chain: dict[str, list] = {}
    for allocation in plan.allocations:
        by_chain.setdefault(allocation.chain, []).append(allocation)
    for chain, members in by_chain.items():
        chain_total = sum((a.percentage for a in members), Decimal("0"))
        lines.append(f"**{chain}** ({_format_pct(chain_total)}%):")
        for allocation in members:
            lines.append(
                f"  • {allocation.protocol} {allocation.asset}: "
                f"{_format_pct(allocation.percentage)}% "
                f"({_format_pct(allocation.expected_apy)}% APY)"
            )
        lines.append("")
    lines.append("### Strategy Reasoning:")
    lines.append(describe_plan(plan))
    return "\n".join(lines)
