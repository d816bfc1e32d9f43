from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.core.models import (
    Action,
    EngineOptions,
    MarketDataSnapshot,
    Plan,
    RiskPolicy,
    VaultBalance,
)


class StrategyRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "balance": "1000",
                "risk_profile": "moderate",
                "market_data_snapshot": {
                    "snapshot_id": "md_2026_10_18",
                    "quotes": [
                        {"chain": "ETH", "protocol": "staking", "asset": "ETH", "apy": "4"},
                        {
                            "chain": "POLY",
                            "protocol": "QUICKSWAP",
                            "asset": "MATIC-USDC",
                            "apy": "12.3",
                        },
                        {"chain": "AVAX", "protocol": "AAVE", "asset": "USDC", "apy": "5.2"},
                    ],
                },
            }
        }
    }

    balance: Optional[Decimal] = Field(
        default=None,
        description="Balance to allocate. Defaults to the sum of vault_balances.",
        examples=["1000"],
    )
    risk_profile: Optional[str] = Field(
        default=None,
        description=(
            "CONSERVATIVE, MODERATE or AGGRESSIVE (any case). "
            "Derived from vault_balances when omitted."
        ),
        examples=["moderate"],
    )
    vault_balances: List[VaultBalance] = Field(
        default_factory=list,
        description="Vault deposits used to derive the balance and risk profile.",
    )
    home_chain: Optional[str] = Field(
        default=None,
        description="Chain the funds currently sit on. Defaults to the top pick's chain.",
        examples=["AVALANCHE"],
    )
    market_data_snapshot: MarketDataSnapshot = Field(
        description="Yield quotes the candidate set is built from."
    )
    options: Optional[EngineOptions] = Field(
        default=None, description="Request-level engine options overriding server defaults."
    )


class RebalanceRequest(BaseModel):
    current_plan: Plan = Field(description="Plan currently deployed.")
    market_data_snapshot: MarketDataSnapshot = Field(description="Fresh yield quotes.")
    balance: Optional[Decimal] = Field(
        default=None, description="Balance to re-plan. Defaults to current_plan.total_balance."
    )
    risk_profile: Optional[str] = Field(
        default=None, description="Risk profile to re-plan with. Defaults to the current plan's."
    )
    options: Optional[EngineOptions] = Field(
        default=None, description="Request-level engine options overriding server defaults."
    )


class RenderActionsRequest(BaseModel):
    actions: List[Action] = Field(description="Actions to serialize, in execution order.")


class RenderActionsResponse(BaseModel):
    action_log: List[str] = Field(description="One string per action, same order.")


class RiskProfileCatalogResponse(BaseModel):
    policies: List[RiskPolicy] = Field(description="Active risk policy rows, tier order.")
