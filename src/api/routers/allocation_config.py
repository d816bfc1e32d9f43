import json
import logging
import os
from typing import Any, Optional

from pydantic import ValidationError

from src.core.allocation.engine import default_engine_config
from src.core.allocation.market import DEFAULT_MARKET_DEFAULTS
from src.core.allocation.policy import parse_risk_policy_catalog
from src.core.models import EngineConfig, EngineOptions, MarketDefaults

logger = logging.getLogger(__name__)

_ENGINE_CONFIG: EngineConfig | None = None


def _load_json_object(name: str) -> Optional[dict[str, Any]]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring %s: not valid JSON", name)
        return None
    if not isinstance(parsed, dict):
        logger.warning("Ignoring %s: expected a JSON object", name)
        return None
    return parsed


def engine_options_from_env() -> EngineOptions:
    overrides = _load_json_object("ALLOCATION_ENGINE_OPTIONS_JSON")
    if overrides is None:
        return EngineOptions()
    try:
        return EngineOptions.model_validate(overrides)
    except ValidationError:
        logger.warning("Ignoring ALLOCATION_ENGINE_OPTIONS_JSON: invalid engine options")
        return EngineOptions()


def market_defaults_from_env() -> MarketDefaults:
    overrides = _load_json_object("ALLOCATION_MARKET_DEFAULTS_JSON")
    if overrides is None:
        return DEFAULT_MARKET_DEFAULTS
    payload = DEFAULT_MARKET_DEFAULTS.model_dump()
    gas = overrides.get("chain_gas_efficiency")
    if isinstance(gas, dict):
        payload["chain_gas_efficiency"] = {**payload["chain_gas_efficiency"], **gas}
    profiles = overrides.get("protocol_profiles")
    if isinstance(profiles, dict):
        merged = dict(payload["protocol_profiles"])
        for protocol, profile in profiles.items():
            key = str(protocol).strip().upper()
            if isinstance(profile, dict) and key in merged:
                merged[key] = {**merged[key], **profile}
            else:
                merged[key] = profile
        payload["protocol_profiles"] = merged
    for key, value in overrides.items():
        if key not in {"chain_gas_efficiency", "protocol_profiles"}:
            payload[key] = value
    try:
        return MarketDefaults.model_validate(payload)
    except ValidationError:
        logger.warning("Ignoring ALLOCATION_MARKET_DEFAULTS_JSON: invalid market defaults")
        return DEFAULT_MARKET_DEFAULTS


def build_engine_config() -> EngineConfig:
    base = default_engine_config()
    return EngineConfig(
        risk_policies=parse_risk_policy_catalog(
            os.getenv("ALLOCATION_RISK_POLICY_CATALOG_JSON"), base=base.risk_policies
        ),
        market_defaults=market_defaults_from_env(),
        options=engine_options_from_env(),
    )


def get_engine_config() -> EngineConfig:
    global _ENGINE_CONFIG
    if _ENGINE_CONFIG is None:
        _ENGINE_CONFIG = build_engine_config()
    return _ENGINE_CONFIG


def reset_engine_config_for_tests() -> None:
    global _ENGINE_CONFIG
    _ENGINE_CONFIG = None
