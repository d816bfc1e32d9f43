from decimal import Decimal

from src.core.allocation.market import DEFAULT_MARKET_DEFAULTS, category_for
from src.core.models import (
    Action,
    Allocation,
    BridgeAction,
    EngineOptions,
    ExitRequest,
    MarketDefaults,
    MonitorAction,
    OpKind,
    Plan,
    ProtocolCategory,
    ProtocolOpAction,
)

OP_KIND_BY_CATEGORY: dict[ProtocolCategory, OpKind] = {
    ProtocolCategory.STAKING: OpKind.STAKE,
    ProtocolCategory.LENDING: OpKind.LEND,
    ProtocolCategory.LIQUIDITY: OpKind.PROVIDE,
}


def op_kind_for(allocation: Allocation, defaults: MarketDefaults) -> OpKind:
    return OP_KIND_BY_CATEGORY[category_for(allocation.protocol, defaults, allocation.category)]


def diff(
    current: Plan,
    proposed: Plan,
    *,
    defaults: MarketDefaults = DEFAULT_MARKET_DEFAULTS,
    options: EngineOptions | None = None,
) -> list[Action]:
    """
    Actions moving ``current`` to ``proposed``, in proposed-plan order.

    Each allocation the proposed plan grows (or adds) yields a bridge from the
    current home chain when it lives elsewhere, immediately followed by the
    protocol operation that consumes it. Shrinking or dropped positions are not
    unwound here; see ``exit_requests``. A monitor action always closes the list.
    """
    if options is None:
        options = EngineOptions()
    current_amounts = current.amounts_by_key()

    actions: list[Action] = []
    for allocation in proposed.allocations:
        delta = allocation.target_amount - current_amounts.get(allocation.key, Decimal("0"))
        if delta <= options.rebalance_amount_tolerance:
            continue
        if allocation.chain != current.home_chain:
            actions.append(
                BridgeAction(
                    amount=delta,
                    from_chain=current.home_chain,
                    to_chain=allocation.chain,
                    asset=allocation.asset,
                )
            )
        actions.append(
            ProtocolOpAction(
                op_kind=op_kind_for(allocation, defaults),
                chain=allocation.chain,
                protocol=allocation.protocol,
                asset=allocation.asset,
                amount=delta,
            )
        )
    actions.append(MonitorAction(note=options.monitor_note))
    return actions


def exit_requests(
    current: Plan,
    proposed: Plan,
    *,
    options: EngineOptions | None = None,
) -> list[ExitRequest]:
    if options is None:
        options = EngineOptions()
    proposed_amounts = proposed.amounts_by_key()

    requests: list[ExitRequest] = []
    for allocation in current.allocations:
        target = proposed_amounts.get(allocation.key)
        if target is None:
            requests.append(
                ExitRequest(
                    chain=allocation.chain,
                    protocol=allocation.protocol,
                    asset=allocation.asset,
                    amount=allocation.target_amount,
                    reason="DROPPED",
                )
            )
            continue
        released = allocation.target_amount - target
        if released > options.rebalance_amount_tolerance:
            requests.append(
                ExitRequest(
                    chain=allocation.chain,
                    protocol=allocation.protocol,
                    asset=allocation.asset,
                    amount=released,
                    reason="REDUCED",
                )
            )
    return requests


def empty_plan_like(plan: Plan) -> Plan:
    return Plan(
        risk_profile=plan.risk_profile,
        total_balance=plan.total_balance,
        home_chain=plan.home_chain,
        allocations=[],
        reserve=plan.total_balance,
    )


def deployment_actions(
    plan: Plan,
    *,
    defaults: MarketDefaults = DEFAULT_MARKET_DEFAULTS,
    options: EngineOptions | None = None,
) -> list[Action]:
    """Actions deploying a fresh plan from funds sitting on its home chain."""
    return diff(empty_plan_like(plan), plan, defaults=defaults, options=options)
