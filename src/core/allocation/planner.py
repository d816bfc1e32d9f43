from decimal import Decimal
from typing import Mapping, Optional, Sequence

from src.core.allocation.errors import InvalidBalanceError, NoCandidatesError
from src.core.allocation.market import dedupe_candidates, filter_candidates
from src.core.allocation.policy import DEFAULT_RISK_POLICIES, lookup, parse_risk_profile
from src.core.allocation.scoring import rank_candidates
from src.core.allocation.tiers import assign_chain_slots, tier
from src.core.common.canonical import content_id
from src.core.models import (
    Allocation,
    Candidate,
    ChainAllocationGroup,
    EngineOptions,
    Plan,
    RiskPolicy,
    RiskProfile,
    normalize_chain_id,
)

HUNDRED = Decimal("100")


def _select(
    balance: Decimal,
    policy: RiskPolicy,
    candidates: Sequence[Candidate],
    options: EngineOptions,
) -> list[tuple[Candidate, Decimal]]:
    """Greedy pass in rank order; returns (candidate, fraction of balance) picks."""
    ranked = rank_candidates(candidates, policy, options.scoring)
    slots = assign_chain_slots(ranked, tier(balance, options))
    invest_cap = Decimal("1") - options.reserve_floor

    picks: list[tuple[Candidate, Decimal]] = []
    cumulative = Decimal("0")
    chain_used: dict[str, Decimal] = {}
    for item in ranked:
        if len(picks) >= options.max_selected_candidates or cumulative >= invest_cap:
            break
        candidate = item.candidate
        slot_ceiling = slots.get(candidate.chain)
        if slot_ceiling is None:
            continue

        chain_cap = min(slot_ceiling, policy.max_allocation_per_chain)
        raw = min(
            policy.max_allocation_per_protocol,
            chain_cap - chain_used.get(candidate.chain, Decimal("0")),
            invest_cap - cumulative,
        )
        if candidate.apy < options.low_yield_threshold_apy:
            raw *= options.low_yield_penalty
        if (raw * HUNDRED).quantize(options.percentage_quantum) <= Decimal("0"):
            continue

        picks.append((candidate, raw))
        cumulative += raw
        chain_used[candidate.chain] = chain_used.get(candidate.chain, Decimal("0")) + raw
    return picks


def _normalize_percentages(
    picks: Sequence[tuple[Candidate, Decimal]], quantum: Decimal
) -> list[Decimal]:
    percentages = [(fraction * HUNDRED).quantize(quantum) for _, fraction in picks]
    invested = sum((fraction for _, fraction in picks), Decimal("0"))
    target_total = (invested * HUNDRED).quantize(quantum)
    remainder = target_total - sum(percentages, Decimal("0"))
    if remainder != Decimal("0"):
        largest = max(range(len(percentages)), key=lambda i: (percentages[i], -i))
        percentages[largest] += remainder
    return percentages


def plan(
    balance: Decimal,
    risk_profile: RiskProfile | str,
    candidates: Sequence[Candidate],
    *,
    policies: Mapping[RiskProfile, RiskPolicy] = DEFAULT_RISK_POLICIES,
    options: EngineOptions | None = None,
    home_chain: Optional[str] = None,
) -> Plan:
    """
    Build an allocation plan for ``balance``.

    Candidates are scored, ranked and picked greedily under the tier's
    protocol/chain caps until the invested share reaches ``1 - reserve_floor``.
    Whatever is not invested is returned as ``Plan.reserve`` (absolute amount).

    Raises UnknownRiskProfileError, InvalidBalanceError, InvalidApyError or
    NoCandidatesError; no partial plan is produced.
    """
    if options is None:
        options = EngineOptions()
    profile = parse_risk_profile(risk_profile)
    policy = lookup(profile, policies)
    balance = Decimal(balance)
    if balance <= Decimal("0"):
        raise InvalidBalanceError(f"balance must be positive, got {balance}")
    if not candidates:
        raise NoCandidatesError("candidate list is empty")
    eligible = filter_candidates(dedupe_candidates(candidates), policy)
    if not eligible:
        raise NoCandidatesError(
            f"no candidate matches asset classes {list(policy.preferred_asset_classes)}"
        )

    picks = _select(balance, policy, eligible, options)
    if not picks:
        raise NoCandidatesError("no candidate could be allocated under policy limits")

    percentages = _normalize_percentages(picks, options.percentage_quantum)
    allocations = [
        Allocation(
            chain=candidate.chain,
            protocol=candidate.protocol,
            asset=candidate.asset,
            percentage=percentage,
            target_amount=balance * percentage / HUNDRED,
            expected_apy=candidate.apy,
            category=candidate.category,
        )
        for (candidate, _), percentage in zip(picks, percentages)
    ]
    allocated_pct = sum(percentages, Decimal("0"))
    blended_apy = sum(
        (a.expected_apy * a.percentage for a in allocations), Decimal("0")
    ) / HUNDRED

    draft = Plan(
        risk_profile=profile,
        total_balance=balance,
        home_chain=normalize_chain_id(home_chain) if home_chain else allocations[0].chain,
        allocations=allocations,
        reserve=balance * (HUNDRED - allocated_pct) / HUNDRED,
        blended_apy=blended_apy,
    )
    return draft.model_copy(
        update={
            "plan_id": content_id("plan", draft.model_dump(mode="json"), exclude={"plan_id"})
        }
    )


def chain_breakdown(allocation_plan: Plan) -> list[ChainAllocationGroup]:
    groups: dict[str, list[Allocation]] = {}
    for allocation in allocation_plan.allocations:
        groups.setdefault(allocation.chain, []).append(allocation)
    return [
        ChainAllocationGroup(
            chain=chain,
            total_percentage=sum((a.percentage for a in members), Decimal("0")),
            allocations=members,
        )
        for chain, members in groups.items()
    ]
