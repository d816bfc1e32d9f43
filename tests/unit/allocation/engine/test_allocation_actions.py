from decimal import Decimal

import pytest
from pydantic import TypeAdapter

from src.core.allocation.actions import (
    describe_plan,
    format_amount,
    render_action,
    render_plan_summary,
    serialize,
)
from src.core.allocation.planner import plan
from src.core.models import (
    Action,
    BridgeAction,
    MonitorAction,
    OpKind,
    ProtocolOpAction,
    RiskProfile,
)


@pytest.mark.parametrize(
    "amount, expected",
    [("400", "400.00"), ("0.005", "0.01"), ("1234.567", "1234.57"), ("0", "0.00")],
)
def test_format_amount_uses_two_places_half_up(amount, expected):
    assert format_amount(Decimal(amount)) == expected


def test_render_each_action_variant():
    assert (
        render_action(
            BridgeAction(
                amount=Decimal("250.5"), from_chain="ETHEREUM", to_chain="BASE", asset="USDC"
            )
        )
        == "bridge 250.50 to BASE"
    )
    assert (
        render_action(
            ProtocolOpAction(
                op_kind=OpKind.LEND,
                chain="BASE",
                protocol="AAVE",
                asset="USDC",
                amount=Decimal("250.5"),
            )
        )
        == "lend into protocol AAVE"
    )
    assert render_action(MonitorAction(note="track APRs daily")) == "track APRs daily"


def test_render_action_rejects_unknown_types():
    with pytest.raises(TypeError):
        render_action("bridge 1 to ETHEREUM")


def test_serialize_preserves_order():
    actions = TypeAdapter(list[Action]).validate_python(
        [
            {"action_type": "MONITOR", "note": "first"},
            {
                "action_type": "BRIDGE",
                "amount": "1",
                "from_chain": "ETHEREUM",
                "to_chain": "OPTIMISM",
                "asset": "USDC",
            },
            {"action_type": "MONITOR", "note": "last"},
        ]
    )
    assert serialize(actions) == ["first", "bridge 1.00 to OPTIMISM", "last"]
    assert serialize([]) == []


def test_describe_plan_and_summary(multi_chain_candidates):
    result = plan(Decimal("1000"), RiskProfile.MODERATE, multi_chain_candidates)

    assert describe_plan(result) == (
        "Based on your 1,000.00 USDC balance and moderate profile, I recommend "
        "diversifying across POLYGON, ARBITRUM using QUICKSWAP, GMX. This strategy "
        "targets 10.5% APY while keeping 200.00 USDC in reserve."
    )

    summary = render_plan_summary(result)
    assert summary.startswith("## Investment Strategy Recommendation")
    assert "**Expected APY:** 10.5%" in summary
    assert "**POLYGON** (50%):" in summary
    assert "  • GMX GLP: 30% (15% APY)" in summary
    assert summary.endswith(describe_plan(result))
