"""
FILE: src/core/models.py
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Tuple, TypeAlias, Union

from pydantic import BaseModel, Field, field_validator, model_validator

AllocationKey: TypeAlias = Tuple[str, str, str]

CHAIN_ALIASES: Dict[str, str] = {
    "ETH": "ETHEREUM",
    "MAINNET": "ETHEREUM",
    "AVAX": "AVALANCHE",
    "POLY": "POLYGON",
    "MATIC": "POLYGON",
    "ARB": "ARBITRUM",
    "OP": "OPTIMISM",
    "BSC": "BNB",
}


def normalize_chain_id(value: str) -> str:
    normalized = value.strip().upper().replace(" ", "_").replace("-", "_")
    if not normalized:
        raise ValueError("chain must be a non-empty identifier")
    return CHAIN_ALIASES.get(normalized, normalized)


def _normalize_tag(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    return normalized or None


class RiskProfile(str, Enum):
    CONSERVATIVE = "CONSERVATIVE"
    MODERATE = "MODERATE"
    AGGRESSIVE = "AGGRESSIVE"


class ProtocolCategory(str, Enum):
    STAKING = "STAKING"
    LENDING = "LENDING"
    LIQUIDITY = "LIQUIDITY"


class OpKind(str, Enum):
    STAKE = "stake"
    LEND = "lend"
    PROVIDE = "provide"


class VaultRiskLevel(int, Enum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2


class RiskPolicy(BaseModel):
    model_config = {"frozen": True}

    risk_profile: RiskProfile = Field(description="Tier this policy row belongs to.")
    max_allocation_per_protocol: Decimal = Field(
        gt=0,
        le=1,
        description="Maximum fraction of balance a single protocol line may hold.",
        examples=["0.5"],
    )
    max_allocation_per_chain: Decimal = Field(
        gt=0,
        le=1,
        description="Maximum fraction of balance held on one chain.",
        examples=["0.7"],
    )
    preferred_asset_classes: Tuple[str, ...] = Field(
        default=(),
        description="Ordered asset-class tags allowed for this tier.",
        examples=[["stablecoins", "bluechip", "midcap"]],
    )
    target_risk_score: Decimal = Field(
        ge=1,
        le=10,
        description="Risk score (1-10) the scorer treats as a perfect fit.",
        examples=["5"],
    )

    @field_validator("preferred_asset_classes", mode="before")
    @classmethod
    def normalize_asset_classes(cls, value):
        ordered: list[str] = []
        for tag in value or ():
            normalized = _normalize_tag(tag)
            if normalized is not None and normalized not in ordered:
                ordered.append(normalized)
        return tuple(ordered)


class Candidate(BaseModel):
    model_config = {"frozen": True}

    chain: str = Field(description="Chain identifier (aliases normalized).", examples=["POLYGON"])
    protocol: str = Field(min_length=1, description="Protocol name.", examples=["AAVE"])
    asset: str = Field(min_length=1, description="Asset symbol or pair.", examples=["USDC"])
    apy: Decimal = Field(
        default=Decimal("0"),
        description="Current yield in percent. Negative values are rejected by the scorer.",
        examples=["5.2"],
    )
    risk_score: Decimal = Field(
        default=Decimal("5"),
        ge=1,
        le=10,
        description="Protocol risk on a 1-10 scale, higher is riskier.",
        examples=["3"],
    )
    gas_efficiency: Decimal = Field(
        default=Decimal("5"),
        ge=1,
        le=10,
        description="Chain operating cost score on a 1-10 scale, higher is cheaper.",
        examples=["9"],
    )
    asset_class: Optional[str] = Field(
        default=None,
        description="Optional asset-class tag checked against the tier's preferred classes.",
        examples=["stablecoins"],
    )
    category: Optional[ProtocolCategory] = Field(
        default=None,
        description="Protocol category used to infer the deployment operation.",
        examples=["LENDING"],
    )

    @field_validator("chain")
    @classmethod
    def normalize_chain(cls, value: str) -> str:
        return normalize_chain_id(value)

    @field_validator("asset_class")
    @classmethod
    def normalize_asset_class(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_tag(value)

    @property
    def key(self) -> AllocationKey:
        return (self.chain, self.protocol, self.asset)


class Allocation(BaseModel):
    model_config = {"frozen": True}

    chain: str = Field(description="Chain identifier.", examples=["POLYGON"])
    protocol: str = Field(description="Protocol name.", examples=["QUICKSWAP"])
    asset: str = Field(description="Asset symbol or pair.", examples=["MATIC-USDC"])
    percentage: Decimal = Field(
        gt=0,
        le=100,
        description="Share of the total balance in percent.",
        examples=["40"],
    )
    target_amount: Decimal = Field(
        ge=0,
        description="percentage / 100 * total balance.",
        examples=["400"],
    )
    expected_apy: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Yield observed at planning time.",
        examples=["12.3"],
    )
    category: Optional[ProtocolCategory] = Field(
        default=None, description="Protocol category carried from the candidate."
    )

    @field_validator("chain")
    @classmethod
    def normalize_chain(cls, value: str) -> str:
        return normalize_chain_id(value)

    @property
    def key(self) -> AllocationKey:
        return (self.chain, self.protocol, self.asset)


class Plan(BaseModel):
    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "plan_id": "plan_3f1c0a9b2d4e",
                "risk_profile": "MODERATE",
                "total_balance": "1000",
                "home_chain": "AVALANCHE",
                "allocations": [
                    {
                        "chain": "AVALANCHE",
                        "protocol": "staking",
                        "asset": "AVAX",
                        "percentage": "40",
                        "target_amount": "400",
                        "expected_apy": "8.1",
                    }
                ],
                "reserve": "600",
                "blended_apy": "3.24",
            }
        },
    }

    plan_id: Optional[str] = Field(default=None, description="Deterministic plan digest.")
    risk_profile: RiskProfile = Field(description="Tier the plan was built for.")
    total_balance: Decimal = Field(gt=0, description="Balance the percentages refer to.")
    home_chain: str = Field(description="Chain the funds are held on before deployment.")
    allocations: List[Allocation] = Field(
        default_factory=list, description="Ordered allocation lines."
    )
    reserve: Decimal = Field(ge=0, description="Unallocated remainder as an absolute amount.")
    blended_apy: Decimal = Field(
        default=Decimal("0"),
        description="Balance-weighted expected APY, reserve counted at zero yield.",
    )

    @field_validator("home_chain")
    @classmethod
    def normalize_home_chain(cls, value: str) -> str:
        return normalize_chain_id(value)

    @model_validator(mode="after")
    def validate_allocation_keys(self) -> "Plan":
        seen: set[AllocationKey] = set()
        for allocation in self.allocations:
            if allocation.key in seen:
                raise ValueError(f"duplicate allocation key {allocation.key}")
            seen.add(allocation.key)
        total = sum((a.percentage for a in self.allocations), Decimal("0"))
        if total > Decimal("100.0001"):
            raise ValueError("sum(allocation.percentage) must not exceed 100")
        return self

    @property
    def allocated_percentage(self) -> Decimal:
        return sum((a.percentage for a in self.allocations), Decimal("0"))

    @property
    def reserve_percentage(self) -> Decimal:
        return Decimal("100") - self.allocated_percentage

    def amounts_by_key(self) -> Dict[AllocationKey, Decimal]:
        return {a.key: a.target_amount for a in self.allocations}


class ChainAllocationGroup(BaseModel):
    chain: str = Field(description="Chain identifier.")
    total_percentage: Decimal = Field(description="Sum of allocation percentages on the chain.")
    allocations: List[Allocation] = Field(description="Allocations on the chain, plan order.")


class TierPlan(BaseModel):
    model_config = {"frozen": True}

    max_chains: int = Field(ge=1, description="Number of distinct chains candidates may use.")
    slot_ceilings: Tuple[Decimal, ...] = Field(
        description="Per-slot fraction ceilings in chain priority order."
    )

    @model_validator(mode="after")
    def validate_slots(self) -> "TierPlan":
        if len(self.slot_ceilings) != self.max_chains:
            raise ValueError("slot_ceilings must have one entry per chain slot")
        for ceiling in self.slot_ceilings:
            if ceiling <= Decimal("0") or ceiling > Decimal("1"):
                raise ValueError("slot ceilings must be in (0, 1]")
        return self


class BridgeAction(BaseModel):
    model_config = {"frozen": True}

    action_type: Literal["BRIDGE"] = Field(default="BRIDGE", description="Action discriminator.")
    amount: Decimal = Field(ge=0, description="Amount moved across chains.")
    from_chain: str = Field(description="Source chain.")
    to_chain: str = Field(description="Destination chain.")
    asset: str = Field(description="Asset the destination allocation holds.")


class ProtocolOpAction(BaseModel):
    model_config = {"frozen": True}

    action_type: Literal["PROTOCOL_OP"] = Field(
        default="PROTOCOL_OP", description="Action discriminator."
    )
    op_kind: OpKind = Field(description="Deployment operation inferred from protocol category.")
    chain: str = Field(description="Chain of the target protocol.")
    protocol: str = Field(description="Target protocol.")
    asset: str = Field(description="Asset deployed.")
    amount: Decimal = Field(ge=0, description="Amount deployed.")


class MonitorAction(BaseModel):
    model_config = {"frozen": True}

    action_type: Literal["MONITOR"] = Field(default="MONITOR", description="Action discriminator.")
    note: str = Field(description="Monitoring instruction.")


Action = Annotated[
    Union[BridgeAction, ProtocolOpAction, MonitorAction], Field(discriminator="action_type")
]


class ExitRequest(BaseModel):
    model_config = {"frozen": True}

    chain: str = Field(description="Chain of the position to unwind.")
    protocol: str = Field(description="Protocol of the position to unwind.")
    asset: str = Field(description="Asset of the position to unwind.")
    amount: Decimal = Field(ge=0, description="Amount to release from the position.")
    reason: Literal["DROPPED", "REDUCED"] = Field(
        description="DROPPED when the proposed plan no longer holds the key."
    )


class ScoringWeights(BaseModel):
    apy_weight: Decimal = Field(default=Decimal("0.4"), ge=0, examples=["0.4"])
    risk_fit_weight: Decimal = Field(default=Decimal("0.3"), ge=0, examples=["0.3"])
    gas_weight: Decimal = Field(default=Decimal("0.3"), ge=0, examples=["0.3"])
    apy_divisor: Decimal = Field(
        default=Decimal("2"),
        gt=0,
        description="APY is divided by this before weighting to bring it onto the 1-10 scale.",
        examples=["2"],
    )


class EngineOptions(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "reserve_floor": "0.2",
                "low_yield_threshold_apy": "10",
                "low_yield_penalty": "0.8",
                "max_selected_candidates": 4,
                "multi_chain_balance_threshold": "10",
                "multi_chain_slot_ceilings": ["0.5", "0.3", "0.2"],
            }
        }
    }

    scoring: ScoringWeights = Field(
        default_factory=ScoringWeights, description="Composite score weights."
    )
    reserve_floor: Decimal = Field(
        default=Decimal("0.2"),
        ge=0,
        lt=1,
        description="Fraction of balance always held back from allocation.",
    )
    low_yield_threshold_apy: Decimal = Field(
        default=Decimal("10"),
        ge=0,
        description="Candidates yielding below this APY get the low-yield penalty.",
    )
    low_yield_penalty: Decimal = Field(
        default=Decimal("0.8"),
        gt=0,
        le=1,
        description="Multiplier applied to a low-yield pick's raw allocation.",
    )
    max_selected_candidates: int = Field(
        default=4, ge=1, description="Upper bound on allocation lines per plan."
    )
    multi_chain_balance_threshold: Decimal = Field(
        default=Decimal("10"),
        gt=0,
        description="Balances below this stay on a single chain.",
    )
    single_chain_slot_ceiling: Decimal = Field(default=Decimal("1"), gt=0, le=1)
    multi_chain_slot_ceilings: List[Decimal] = Field(
        default_factory=lambda: [Decimal("0.5"), Decimal("0.3"), Decimal("0.2")],
        description="Chain slot ceilings, priority order, for balances at or above threshold.",
    )
    percentage_quantum: Decimal = Field(
        default=Decimal("0.0001"), gt=0, description="Rounding step for plan percentages."
    )
    rebalance_amount_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Amount deltas at or below this are treated as converged.",
    )
    monitor_note: str = Field(default="track APRs daily", min_length=1)

    @field_validator("multi_chain_slot_ceilings")
    @classmethod
    def validate_slot_ceilings(cls, value: List[Decimal]) -> List[Decimal]:
        if not value:
            raise ValueError("multi_chain_slot_ceilings must not be empty")
        for ceiling in value:
            if ceiling <= Decimal("0") or ceiling > Decimal("1"):
                raise ValueError("multi_chain_slot_ceilings entries must be in (0, 1]")
        return value


class ProtocolProfile(BaseModel):
    model_config = {"frozen": True}

    risk_score: Decimal = Field(ge=1, le=10, description="Default risk score.")
    category: ProtocolCategory = Field(description="Protocol category.")


class MarketDefaults(BaseModel):
    model_config = {"frozen": True}

    chain_gas_efficiency: Dict[str, Decimal] = Field(
        default_factory=dict, description="Gas efficiency per canonical chain id."
    )
    protocol_profiles: Dict[str, ProtocolProfile] = Field(
        default_factory=dict, description="Default risk and category per upper-cased protocol."
    )
    default_gas_efficiency: Decimal = Field(default=Decimal("5"), ge=1, le=10)
    default_risk_score: Decimal = Field(default=Decimal("5"), ge=1, le=10)
    default_category: ProtocolCategory = Field(default=ProtocolCategory.STAKING)

    @field_validator("chain_gas_efficiency", mode="before")
    @classmethod
    def normalize_chain_keys(cls, value):
        return {normalize_chain_id(str(k)): v for k, v in (value or {}).items()}

    @field_validator("protocol_profiles", mode="before")
    @classmethod
    def normalize_protocol_keys(cls, value):
        return {str(k).strip().upper(): v for k, v in (value or {}).items()}


class MarketQuote(BaseModel):
    chain: str = Field(description="Chain identifier (aliases normalized).", examples=["ETH"])
    protocol: str = Field(description="Protocol name.", examples=["staking"])
    asset: str = Field(description="Asset symbol or pair.", examples=["ETH"])
    apy: Optional[Decimal] = Field(
        default=None, description="Current APY in percent; missing is read as 0."
    )
    risk_score: Optional[Decimal] = Field(default=None, ge=1, le=10)
    gas_efficiency: Optional[Decimal] = Field(default=None, ge=1, le=10)
    asset_class: Optional[str] = Field(default=None, examples=["bluechip"])
    category: Optional[ProtocolCategory] = Field(default=None)
    tvl: Optional[Decimal] = Field(default=None, ge=0, description="Informational only.")
    source: Optional[str] = Field(default=None, examples=["defillama"])

    @field_validator("chain")
    @classmethod
    def normalize_chain(cls, value: str) -> str:
        return normalize_chain_id(value)

    @field_validator("protocol", "asset")
    @classmethod
    def require_identifier(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must be a non-empty identifier")
        return stripped


class MarketDataSnapshot(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "snapshot_id": "md_2026_10_18",
                "quotes": [
                    {"chain": "ETH", "protocol": "staking", "asset": "ETH", "apy": "4"},
                    {
                        "chain": "POLY",
                        "protocol": "QUICKSWAP",
                        "asset": "MATIC-USDC",
                        "apy": "12.3",
                    },
                ],
            }
        }
    }

    snapshot_id: Optional[str] = Field(default=None, description="Snapshot identifier.")
    quotes: List[MarketQuote] = Field(default_factory=list, description="Yield quotes.")


class VaultBalance(BaseModel):
    amount: Decimal = Field(ge=0, description="Deposited amount.")
    risk: VaultRiskLevel = Field(description="Risk bucket chosen at deposit.")
    locked: bool = Field(
        default=False,
        description=(
            "Whether the deposit is locked. Accepted for wallet payload compatibility; "
            "locked deposits still count toward the planning balance."
        ),
    )


class EngineConfig(BaseModel):
    model_config = {"frozen": True}

    risk_policies: Dict[RiskProfile, RiskPolicy] = Field(description="Risk policy table.")
    market_defaults: MarketDefaults = Field(default_factory=MarketDefaults)
    options: EngineOptions = Field(default_factory=EngineOptions)


class LineageData(BaseModel):
    request_hash: str = Field(description="sha256 of the canonical request payload.")
    market_data_snapshot_id: str = Field(description="Market snapshot identifier or 'md'.")


class StrategyResult(BaseModel):
    plan: Plan = Field(description="Allocation plan.")
    chain_breakdown: List[ChainAllocationGroup] = Field(
        default_factory=list, description="Allocations grouped per chain."
    )
    actions: List[Action] = Field(description="Ordered deployment actions.")
    action_log: List[str] = Field(description="Serialized form of actions.")
    reasoning: str = Field(description="Human-readable strategy rationale.")
    lineage: LineageData


class RebalanceResult(BaseModel):
    current_plan_id: Optional[str] = Field(default=None)
    proposed_plan: Plan = Field(description="Freshly computed plan.")
    actions: List[Action] = Field(description="Ordered actions converging on proposed plan.")
    action_log: List[str] = Field(description="Serialized form of actions.")
    exit_requests: List[ExitRequest] = Field(
        default_factory=list, description="Positions to unwind via the exit call."
    )
    reasoning: str = Field(description="Human-readable rationale for the proposed plan.")
    lineage: LineageData
