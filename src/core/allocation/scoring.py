from decimal import Decimal
from typing import Iterable, NamedTuple

from src.core.allocation.errors import InvalidApyError
from src.core.models import Candidate, RiskPolicy, ScoringWeights

RISK_FIT_CEILING = Decimal("10")


class ScoredCandidate(NamedTuple):
    candidate: Candidate
    score: Decimal


def risk_fit_score(candidate: Candidate, policy: RiskPolicy) -> Decimal:
    return RISK_FIT_CEILING - abs(candidate.risk_score - policy.target_risk_score)


def score(
    candidate: Candidate,
    policy: RiskPolicy,
    weights: ScoringWeights | None = None,
) -> Decimal:
    """Composite desirability of a candidate: weighted yield, risk fit and gas efficiency."""
    if weights is None:
        weights = ScoringWeights()
    if candidate.apy < Decimal("0"):
        raise InvalidApyError(
            f"negative apy {candidate.apy} for {candidate.chain}/{candidate.protocol}/"
            f"{candidate.asset}"
        )
    return (
        weights.apy_weight * (candidate.apy / weights.apy_divisor)
        + weights.risk_fit_weight * risk_fit_score(candidate, policy)
        + weights.gas_weight * candidate.gas_efficiency
    )


def rank_candidates(
    candidates: Iterable[Candidate],
    policy: RiskPolicy,
    weights: ScoringWeights | None = None,
) -> list[ScoredCandidate]:
    scored = [ScoredCandidate(c, score(c, policy, weights)) for c in candidates]
    return sorted(
        scored,
        key=lambda item: (
            -item.score,
            -item.candidate.apy,
            item.candidate.chain,
            item.candidate.protocol,
            item.candidate.asset,
        ),
    )
