import json
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from src.core.allocation.errors import UnknownRiskProfileError
from src.core.models import RiskPolicy, RiskProfile, VaultBalance

CONSERVATIVE_MAX_AVG_VAULT_RISK = Decimal("0.7")
AGGRESSIVE_MIN_AVG_VAULT_RISK = Decimal("1.3")

DEFAULT_RISK_POLICIES: dict[RiskProfile, RiskPolicy] = {
    RiskProfile.CONSERVATIVE: RiskPolicy(
        risk_profile=RiskProfile.CONSERVATIVE,
        max_allocation_per_protocol=Decimal("0.3"),
        max_allocation_per_chain=Decimal("0.5"),
        preferred_asset_classes=("stablecoins", "bluechip"),
        target_risk_score=Decimal("2"),
    ),
    RiskProfile.MODERATE: RiskPolicy(
        risk_profile=RiskProfile.MODERATE,
        max_allocation_per_protocol=Decimal("0.5"),
        max_allocation_per_chain=Decimal("0.7"),
        preferred_asset_classes=("stablecoins", "bluechip", "midcap"),
        target_risk_score=Decimal("5"),
    ),
    RiskProfile.AGGRESSIVE: RiskPolicy(
        risk_profile=RiskProfile.AGGRESSIVE,
        max_allocation_per_protocol=Decimal("0.7"),
        max_allocation_per_chain=Decimal("0.9"),
        preferred_asset_classes=("stablecoins", "bluechip", "midcap", "smallcap"),
        target_risk_score=Decimal("8"),
    ),
}


def parse_risk_profile(value: str) -> RiskProfile:
    """Normalize caller input (any case, surrounding blanks) to a tier."""
    if isinstance(value, RiskProfile):
        return value
    normalized = str(value or "").strip().upper()
    try:
        return RiskProfile(normalized)
    except ValueError as exc:
        raise UnknownRiskProfileError(f"unrecognized risk profile '{value}'") from exc


def lookup(
    profile: RiskProfile,
    policies: Mapping[RiskProfile, RiskPolicy] = DEFAULT_RISK_POLICIES,
) -> RiskPolicy:
    if not isinstance(profile, RiskProfile):
        raise UnknownRiskProfileError(f"unrecognized risk profile '{profile}'")
    policy = policies.get(profile)
    if policy is None:
        raise UnknownRiskProfileError(f"no policy configured for risk profile '{profile.value}'")
    return policy


def parse_risk_policy_catalog(
    catalog_json: Optional[str],
    *,
    base: Mapping[RiskProfile, RiskPolicy] = DEFAULT_RISK_POLICIES,
) -> dict[RiskProfile, RiskPolicy]:
    """
    Overlay JSON overrides onto the built-in table.
    Rows with unknown tiers or invalid values are skipped.
    """
    catalog = dict(base)
    normalized_json = (catalog_json or "").strip()
    if not normalized_json:
        return catalog
    try:
        raw = json.loads(normalized_json)
    except json.JSONDecodeError:
        return catalog
    if not isinstance(raw, dict):
        return catalog

    for profile_name, overrides in raw.items():
        if not isinstance(profile_name, str) or not isinstance(overrides, dict):
            continue
        try:
            profile = parse_risk_profile(profile_name)
        except UnknownRiskProfileError:
            continue
        payload = catalog[profile].model_dump()
        payload.update({k: v for k, v in overrides.items() if k != "risk_profile"})
        try:
            catalog[profile] = RiskPolicy.model_validate(payload)
        except ValueError:
            continue
    return catalog


def derive_risk_profile(balances: Iterable[VaultBalance]) -> RiskProfile:
    levels = [Decimal(balance.risk.value) for balance in balances]
    if not levels:
        return RiskProfile.MODERATE
    average = sum(levels, Decimal("0")) / len(levels)
    if average < CONSERVATIVE_MAX_AVG_VAULT_RISK:
        return RiskProfile.CONSERVATIVE
    if average > AGGRESSIVE_MIN_AVG_VAULT_RISK:
        return RiskProfile.AGGRESSIVE
    return RiskProfile.MODERATE
