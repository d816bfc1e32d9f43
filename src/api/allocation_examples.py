PLAN_MODERATE_EXAMPLE = {
    "summary": "Moderate multi-chain plan",
    "value": {
        "plan": {
            "plan_id": "plan_9a1f3c7e2b40",
            "risk_profile": "MODERATE",
            "total_balance": "1000",
            "home_chain": "POLYGON",
            "allocations": [
                {
                    "chain": "POLYGON",
                    "protocol": "QUICKSWAP",
                    "asset": "MATIC-USDC",
                    "percentage": "50",
                    "target_amount": "500",
                    "expected_apy": "12.3",
                    "category": "LIQUIDITY",
                },
                {
                    "chain": "AVALANCHE",
                    "protocol": "AAVE",
                    "asset": "USDC",
                    "percentage": "24",
                    "target_amount": "240",
                    "expected_apy": "5.2",
                    "category": "LENDING",
                },
            ],
            "reserve": "260",
            "blended_apy": "7.398",
        },
        "action_log": [
            "provide into protocol QUICKSWAP",
            "bridge 240.00 to AVALANCHE",
            "lend into protocol AAVE",
            "track APRs daily",
        ],
    },
}
PLAN_CONSERVATIVE_EXAMPLE = {
    "summary": "Conservative single-chain plan",
    "value": {
        "plan": {
            "risk_profile": "CONSERVATIVE",
            "total_balance": "5",
            "home_chain": "ETHEREUM",
            "allocations": [
                {
                    "chain": "ETHEREUM",
                    "protocol": "staking",
                    "asset": "ETH",
                    "percentage": "24",
                    "target_amount": "1.2",
                    "expected_apy": "4",
                    "category": "STAKING",
                }
            ],
            "reserve": "3.8",
        },
        "action_log": ["stake into protocol staking", "track APRs daily"],
    },
}
PLAN_VAULT_DERIVED_EXAMPLE = {
    "summary": "Risk profile derived from vault balances",
    "value": {
        "plan": {"risk_profile": "AGGRESSIVE", "total_balance": "300"},
        "reasoning": (
            "Based on your 300.00 USDC balance and aggressive profile, I recommend "
            "diversifying across ARBITRUM using GMX. This strategy targets 15.4% APY "
            "while keeping 90.00 USDC in reserve."
        ),
    },
}
REBALANCE_CHAIN_SHIFT_EXAMPLE = {
    "summary": "Position moved to a new chain",
    "value": {
        "current_plan_id": "plan_1c2d3e4f5a6b",
        "action_log": [
            "bridge 400.00 to POLYGON",
            "provide into protocol QUICKSWAP",
            "track APRs daily",
        ],
        "exit_requests": [
            {
                "chain": "AVALANCHE",
                "protocol": "staking",
                "asset": "AVAX",
                "amount": "400",
                "reason": "DROPPED",
            }
        ],
    },
}
ENGINE_ERROR_EXAMPLE = {
    "summary": "No eligible candidates",
    "value": {"detail": {"error_kind": "NO_CANDIDATES", "message": "candidate list is empty"}},
}
