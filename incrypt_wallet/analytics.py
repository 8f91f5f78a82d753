"""Pure analytics over user positions and safety data (no I/O)."""
from __future__ import annotations

from typing import Iterable, Mapping

from .models import PositionSide, SafetyLevel, UserPosition

DEFAULT_LIQUIDATION_THRESHOLD = 85.0

SAFETY_WEIGHTS: dict[str, float] = {
    "honeypot": 0.25,
    "liquidity": 0.20,
    "contract": 0.15,
    "social": 0.10,
    "volume": 0.10,
    "developer": 0.10,
    "community": 0.10,
}


def total_value(
    positions: Iterable[UserPosition], side: PositionSide | None = None
) -> float:
    """Sum position values, optionally restricted to one side."""
    return sum(p.value for p in positions if side is None or p.side == side)


def net_apy(positions: Iterable[UserPosition]) -> float:
    """Value-weighted average APY across positions.

    Example:
        values 100 @ 5% and 300 @ 10% → 0.25 * 0.05 + 0.75 * 0.10 = 0.0875
    """
    positions = list(positions)
    value = total_value(positions)
    if value <= 0:
        return 0.0
    return sum((p.value / value) * p.apy for p in positions)


def calc_ltv(total_collateral_usd: float, total_borrowed_usd: float) -> float:
    """Calculate Loan-to-Value ratio as a percentage."""
    if total_collateral_usd <= 0:
        return 0.0
    return (total_borrowed_usd / total_collateral_usd) * 100


def calc_health_factor(
    total_collateral_usd: float,
    total_borrowed_usd: float,
    liquidation_threshold: float = DEFAULT_LIQUIDATION_THRESHOLD,
) -> float:
    """Calculate health factor.

    health_factor = (collateral * liquidation_threshold%) / borrowed
    """
    if total_borrowed_usd <= 0:
        return float("inf")
    return (total_collateral_usd * liquidation_threshold / 100) / total_borrowed_usd


def health_factor(
    positions: Iterable[UserPosition],
    liquidation_threshold: float = DEFAULT_LIQUIDATION_THRESHOLD,
) -> float:
    """Health factor of a set of supply and borrow positions."""
    positions = list(positions)
    return calc_health_factor(
        total_value(positions, PositionSide.SUPPLY),
        total_value(positions, PositionSide.BORROW),
        liquidation_threshold,
    )


def overall_safety_score(components: Mapping[str, float]) -> float:
    """Weighted mean of the component scores that are present.

    Weights of missing components are left out of the denominator, so a token
    with only a honeypot and liquidity check is scored on those two alone.
    """
    total = 0.0
    weight_sum = 0.0
    for name, weight in SAFETY_WEIGHTS.items():
        score = components.get(name)
        if score is None:
            continue
        total += score * weight
        weight_sum += weight
    return total / weight_sum if weight_sum > 0 else 0.0


def safety_level(score: float) -> SafetyLevel:
    if score >= 80:
        return SafetyLevel.SAFE
    if score >= 60:
        return SafetyLevel.MODERATE
    if score >= 40:
        return SafetyLevel.RISKY
    return SafetyLevel.DANGEROUS
