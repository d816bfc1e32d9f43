from decimal import Decimal

import pytest

from src.core.allocation.policy import DEFAULT_RISK_POLICIES
from src.core.allocation.scoring import rank_candidates
from src.core.allocation.tiers import assign_chain_slots, tier
from src.core.models import EngineOptions, RiskProfile, TierPlan


@pytest.mark.parametrize("balance", ["0.01", "5", "9.99"])
def test_small_balances_stay_on_one_chain(balance):
    plan = tier(Decimal(balance))
    assert plan.max_chains == 1
    assert plan.slot_ceilings == (Decimal("1"),)


@pytest.mark.parametrize("balance", ["10", "1000", "1000000"])
def test_larger_balances_spread_over_weighted_slots(balance):
    plan = tier(Decimal(balance))
    assert plan.max_chains == 3
    assert plan.slot_ceilings == (Decimal("0.5"), Decimal("0.3"), Decimal("0.2"))


def test_tier_follows_configured_threshold_and_slots():
    options = EngineOptions(
        multi_chain_balance_threshold=Decimal("500"),
        multi_chain_slot_ceilings=[Decimal("0.6"), Decimal("0.4")],
    )
    assert tier(Decimal("100"), options).max_chains == 1
    assert tier(Decimal("500"), options).slot_ceilings == (Decimal("0.6"), Decimal("0.4"))


def test_tier_plan_requires_one_ceiling_per_slot():
    with pytest.raises(ValueError):
        TierPlan(max_chains=2, slot_ceilings=(Decimal("1"),))
    with pytest.raises(ValueError):
        TierPlan(max_chains=1, slot_ceilings=(Decimal("1.5"),))


def test_engine_options_reject_empty_or_out_of_range_slots():
    with pytest.raises(ValueError):
        EngineOptions(multi_chain_slot_ceilings=[])
    with pytest.raises(ValueError):
        EngineOptions(multi_chain_slot_ceilings=[Decimal("0")])


def test_assign_chain_slots_in_rank_order(multi_chain_candidates):
    ranked = rank_candidates(
        multi_chain_candidates, DEFAULT_RISK_POLICIES[RiskProfile.MODERATE]
    )
    assert assign_chain_slots(ranked, tier(Decimal("1000"))) == {
        "POLYGON": Decimal("0.5"),
        "ARBITRUM": Decimal("0.3"),
        "ETHEREUM": Decimal("0.2"),
    }
    assert assign_chain_slots(ranked, tier(Decimal("5"))) == {"POLYGON": Decimal("1")}
