from decimal import Decimal
from typing import Sequence

from src.core.allocation.scoring import ScoredCandidate
from src.core.models import EngineOptions, TierPlan


def tier(balance: Decimal, options: EngineOptions | None = None) -> TierPlan:
    """
    Small balances stay on one chain since bridging gas would eat the yield.
    Larger balances may spread over as many chains as there are slot ceilings.
    """
    if options is None:
        options = EngineOptions()
    if balance < options.multi_chain_balance_threshold:
        return TierPlan(max_chains=1, slot_ceilings=(options.single_chain_slot_ceiling,))
    ceilings = tuple(options.multi_chain_slot_ceilings)
    return TierPlan(max_chains=len(ceilings), slot_ceilings=ceilings)


def assign_chain_slots(
    ranked: Sequence[ScoredCandidate], tier_plan: TierPlan
) -> dict[str, Decimal]:
    """Give the best-ranked chains a slot ceiling each; unlisted chains get no slot."""
    slots: dict[str, Decimal] = {}
    for item in ranked:
        chain = item.candidate.chain
        if chain in slots:
            continue
        if len(slots) >= tier_plan.max_chains:
            break
        slots[chain] = tier_plan.slot_ceilings[len(slots)]
    return slots
