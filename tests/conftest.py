"""
FILE: tests/conftest.py
Shared fixtures for allocation engine tests.
"""

from pathlib import Path

import pytest

from src.api.routers.allocation_config import reset_engine_config_for_tests
from src.core.allocation.engine import default_engine_config
from tests.shared.factories import candidate

_ALLOCATION_ENV_VARS = (
    "ALLOCATION_RISK_POLICY_CATALOG_JSON",
    "ALLOCATION_ENGINE_OPTIONS_JSON",
    "ALLOCATION_MARKET_DEFAULTS_JSON",
    "ALLOCATION_RISK_PROFILE_CATALOG_ENABLED",
)


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if (
            _has_marker(item, "unit")
            or _has_marker(item, "integration")
            or _has_marker(item, "e2e")
        ):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/integration/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        if "/tests/e2e/" in path:
            item.add_marker(pytest.mark.e2e)
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_engine_config(monkeypatch: pytest.MonkeyPatch):
    """Every test starts from built-in tables with no environment overrides."""
    for name in _ALLOCATION_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_engine_config_for_tests()
    yield
    reset_engine_config_for_tests()


@pytest.fixture
def engine_config():
    return default_engine_config()


@pytest.fixture
def multi_chain_candidates():
    """Five candidates over three chains; APYs 12, 9, 15, 4, 6."""
    return [
        candidate("POLYGON", "QUICKSWAP", "MATIC-USDC", apy="12", risk_score="5", gas="9"),
        candidate("ARBITRUM", "AAVE", "USDC", apy="9", risk_score="3", gas="8"),
        candidate("ARBITRUM", "GMX", "GLP", apy="15", risk_score="8", gas="8"),
        candidate("ETHEREUM", "AAVE", "USDC", apy="4", risk_score="3", gas="3"),
        candidate("POLYGON", "AAVE", "USDC", apy="6", risk_score="3", gas="9"),
    ]

