from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.allocation.market import (
    DEFAULT_MARKET_DEFAULTS,
    build_candidates,
    category_for,
    dedupe_candidates,
    filter_candidates,
    gas_efficiency_for,
)
from src.core.allocation.policy import DEFAULT_RISK_POLICIES
from src.core.models import (
    Candidate,
    MarketDefaults,
    MarketQuote,
    ProtocolCategory,
    RiskProfile,
    normalize_chain_id,
)
from tests.shared.factories import candidate, market_data_snapshot, quote


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("eth", "ETHEREUM"),
        ("Mainnet", "ETHEREUM"),
        ("AVAX", "AVALANCHE"),
        ("poly", "POLYGON"),
        ("matic", "POLYGON"),
        ("arb", "ARBITRUM"),
        ("op", "OPTIMISM"),
        ("bsc", "BNB"),
        (" base ", "BASE"),
        ("zk-sync era", "ZK_SYNC_ERA"),
    ],
)
def test_normalize_chain_id_applies_aliases(raw, expected):
    assert normalize_chain_id(raw) == expected


def test_normalize_chain_id_rejects_blank():
    with pytest.raises(ValueError):
        normalize_chain_id("  ")


def test_gas_efficiency_uses_chain_table_and_default_for_unknown_chain():
    assert gas_efficiency_for("ETH", DEFAULT_MARKET_DEFAULTS) == Decimal("3")
    assert gas_efficiency_for("polygon", DEFAULT_MARKET_DEFAULTS) == Decimal("9")
    assert gas_efficiency_for("SOLANA", DEFAULT_MARKET_DEFAULTS) == Decimal("5")


@pytest.mark.parametrize(
    "protocol, expected",
    [
        ("aave", ProtocolCategory.LENDING),
        ("QuickSwap", ProtocolCategory.LIQUIDITY),
        ("gmx", ProtocolCategory.STAKING),
        ("liquidity", ProtocolCategory.LIQUIDITY),
        ("unknown-protocol", ProtocolCategory.STAKING),
    ],
)
def test_category_for_known_and_unknown_protocols(protocol, expected):
    assert category_for(protocol, DEFAULT_MARKET_DEFAULTS) is expected


def test_category_for_prefers_declared_category():
    assert (
        category_for("AAVE", DEFAULT_MARKET_DEFAULTS, ProtocolCategory.LIQUIDITY)
        is ProtocolCategory.LIQUIDITY
    )


def test_build_candidates_fills_defaults_and_treats_missing_apy_as_zero():
    candidates = build_candidates(
        market_data_snapshot(
            [
                quote("eth", "staking", "ETH"),
                quote("avax", "TraderJoe", "AVAX-USDC", "18.5", asset_class="MidCap"),
                quote("solana", "mystery", "SOL", "7", risk_score=Decimal("9")),
            ]
        )
    )

    eth, avax, sol = candidates
    assert eth.key == ("ETHEREUM", "staking", "ETH")
    assert eth.apy == Decimal("0")
    assert eth.risk_score == Decimal("3")
    assert eth.gas_efficiency == Decimal("3")
    assert eth.category is ProtocolCategory.STAKING

    assert avax.chain == "AVALANCHE"
    assert avax.risk_score == Decimal("6")
    assert avax.gas_efficiency == Decimal("8")
    assert avax.asset_class == "midcap"
    assert avax.category is ProtocolCategory.LIQUIDITY

    assert sol.risk_score == Decimal("9")
    assert sol.gas_efficiency == Decimal("5")
    assert sol.category is ProtocolCategory.STAKING


def test_build_candidates_keeps_last_quote_for_repeated_key_at_first_position():
    candidates = build_candidates(
        market_data_snapshot(
            [
                quote("ETH", "AAVE", "USDC", "3"),
                quote("POLY", "AAVE", "USDC", "5"),
                quote("ethereum", "AAVE", "USDC", "3.5"),
            ]
        )
    )
    assert [c.key for c in candidates] == [
        ("ETHEREUM", "AAVE", "USDC"),
        ("POLYGON", "AAVE", "USDC"),
    ]
    assert candidates[0].apy == Decimal("3.5")


def test_build_candidates_honours_custom_market_defaults():
    defaults = MarketDefaults(
        chain_gas_efficiency={"eth": "6"},
        protocol_profiles={"aave": {"risk_score": "2", "category": "LENDING"}},
        default_gas_efficiency=Decimal("4"),
    )
    eth, base = build_candidates(
        market_data_snapshot([quote("ETH", "Aave", "USDC", "3"), quote("BASE", "x", "y", "1")]),
        defaults,
    )
    assert eth.gas_efficiency == Decimal("6")
    assert eth.risk_score == Decimal("2")
    assert base.gas_efficiency == Decimal("4")


def test_build_candidates_on_empty_snapshot():
    assert build_candidates(market_data_snapshot([])) == []


def test_filter_candidates_by_preferred_asset_class():
    policy = DEFAULT_RISK_POLICIES[RiskProfile.CONSERVATIVE]
    untagged = candidate("ETH", "AAVE", "USDC")
    stable = candidate("ETH", "COMPOUND", "USDC", asset_class="stablecoins")
    small = candidate("ARB", "CAMELOT", "GRAIL", asset_class="smallcap")

    assert filter_candidates([untagged, stable, small], policy) == [untagged, stable]


def test_candidate_rejects_out_of_range_scores():
    with pytest.raises(ValueError):
        Candidate(chain="ETH", protocol="AAVE", asset="USDC", risk_score=Decimal("11"))
    with pytest.raises(ValueError):
        Candidate(chain="ETH", protocol="AAVE", asset="USDC", gas_efficiency=Decimal("0"))


def test_dedupe_candidates_keeps_last_candidate_at_first_position():
    deduped = dedupe_candidates(
        [
            candidate("ETH", "AAVE", "USDC", apy="3"),
            candidate("ARB", "GMX", "GLP", apy="15"),
            candidate("ETHEREUM", "AAVE", "USDC", apy="5"),
        ]
    )
    assert [(c.chain, c.protocol, c.apy) for c in deduped] == [
        ("ETHEREUM", "AAVE", Decimal("5")),
        ("ARBITRUM", "GMX", Decimal("15")),
    ]


@pytest.mark.parametrize("field, value", [("chain", " "), ("protocol", ""), ("asset", "   ")])
def test_market_quote_rejects_blank_identifiers(field, value):
    payload = {"chain": "ETH", "protocol": "AAVE", "asset": "USDC", field: value}
    with pytest.raises(ValidationError):
        MarketQuote(**payload)


def test_market_quote_normalizes_chain_alias():
    assert MarketQuote(chain=" poly ", protocol="AAVE", asset="USDC").chain == "POLYGON"
