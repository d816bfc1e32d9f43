from decimal import Decimal
from typing import Iterable, Optional

from src.core.models import (
    AllocationKey,
    Candidate,
    MarketDataSnapshot,
    MarketDefaults,
    ProtocolCategory,
    ProtocolProfile,
    RiskPolicy,
    normalize_chain_id,
)

DEFAULT_CHAIN_GAS_EFFICIENCY: dict[str, Decimal] = {
    "ETHEREUM": Decimal("3"),
    "OPTIMISM": Decimal("8"),
    "BNB": Decimal("7"),
    "POLYGON": Decimal("9"),
    "ARBITRUM": Decimal("8"),
    "AVALANCHE": Decimal("8"),
    "BASE": Decimal("8"),
}

DEFAULT_PROTOCOL_PROFILES: dict[str, ProtocolProfile] = {
    "AAVE": ProtocolProfile(risk_score=Decimal("3"), category=ProtocolCategory.LENDING),
    "COMPOUND": ProtocolProfile(risk_score=Decimal("3"), category=ProtocolCategory.LENDING),
    "UNISWAP": ProtocolProfile(risk_score=Decimal("6"), category=ProtocolCategory.LIQUIDITY),
    "QUICKSWAP": ProtocolProfile(risk_score=Decimal("7"), category=ProtocolCategory.LIQUIDITY),
    "TRADERJOE": ProtocolProfile(risk_score=Decimal("6"), category=ProtocolCategory.LIQUIDITY),
    "GMX": ProtocolProfile(risk_score=Decimal("8"), category=ProtocolCategory.STAKING),
    "CAMELOT": ProtocolProfile(risk_score=Decimal("7"), category=ProtocolCategory.LIQUIDITY),
    "USDC": ProtocolProfile(risk_score=Decimal("1"), category=ProtocolCategory.LENDING),
    "STAKING": ProtocolProfile(risk_score=Decimal("3"), category=ProtocolCategory.STAKING),
    "LENDING": ProtocolProfile(risk_score=Decimal("3"), category=ProtocolCategory.LENDING),
    "LIQUIDITY": ProtocolProfile(risk_score=Decimal("6"), category=ProtocolCategory.LIQUIDITY),
}

DEFAULT_MARKET_DEFAULTS = MarketDefaults(
    chain_gas_efficiency=DEFAULT_CHAIN_GAS_EFFICIENCY,
    protocol_profiles=DEFAULT_PROTOCOL_PROFILES,
)


def gas_efficiency_for(chain: str, defaults: MarketDefaults) -> Decimal:
    try:
        chain_id = normalize_chain_id(chain)
    except ValueError:
        return defaults.default_gas_efficiency
    return defaults.chain_gas_efficiency.get(chain_id, defaults.default_gas_efficiency)


def protocol_profile_for(protocol: str, defaults: MarketDefaults) -> Optional[ProtocolProfile]:
    return defaults.protocol_profiles.get(protocol.strip().upper())


def category_for(
    protocol: str,
    defaults: MarketDefaults,
    declared: Optional[ProtocolCategory] = None,
) -> ProtocolCategory:
    if declared is not None:
        return declared
    profile = protocol_profile_for(protocol, defaults)
    if profile is None:
        return defaults.default_category
    return profile.category


def build_candidates(
    snapshot: MarketDataSnapshot,
    defaults: MarketDefaults = DEFAULT_MARKET_DEFAULTS,
) -> list[Candidate]:
    """
    Turn a market snapshot into candidates keyed by (chain, protocol, asset).
    A repeated key keeps the last quote at the position of its first occurrence.
    """
    candidates: list[Candidate] = []
    for quote in snapshot.quotes:
        profile = protocol_profile_for(quote.protocol, defaults)
        risk_score = quote.risk_score
        if risk_score is None:
            risk_score = profile.risk_score if profile else defaults.default_risk_score
        gas_efficiency = quote.gas_efficiency
        if gas_efficiency is None:
            gas_efficiency = gas_efficiency_for(quote.chain, defaults)

        candidate = Candidate(
            chain=quote.chain,
            protocol=quote.protocol,
            asset=quote.asset,
            apy=quote.apy if quote.apy is not None else Decimal("0"),
            risk_score=risk_score,
            gas_efficiency=gas_efficiency,
            asset_class=quote.asset_class,
            category=category_for(quote.protocol, defaults, quote.category),
        )
        candidates.append(candidate)
    return dedupe_candidates(candidates)


def dedupe_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """A repeated (chain, protocol, asset) key keeps the last candidate at its first position."""
    by_key: dict[AllocationKey, Candidate] = {}
    for candidate in candidates:
        by_key[candidate.key] = candidate
    return list(by_key.values())


def filter_candidates(candidates: Iterable[Candidate], policy: RiskPolicy) -> list[Candidate]:
    allowed = set(policy.preferred_asset_classes)
    return [
        candidate
        for candidate in candidates
        if candidate.asset_class is None or candidate.asset_class in allowed
    ]
