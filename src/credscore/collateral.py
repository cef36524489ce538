"""credscore.collateral — Tiered mapping from score to collateral factor.

The factor is a percentage of the borrowed value that must be posted as
collateral: 50 means half, 150 means one and a half times. It is a step
function with inclusive lower bounds, evaluated from the highest tier down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .scoring import MAX_SCORE, MIN_SCORE


@dataclass(frozen=True)
class CollateralTier:
    min_score: int
    factor: int
    name: str

    @property
    def factor_bps(self) -> int:
        """Factor in basis points of borrowed value (10000 = 100%)."""
        return self.factor * 100

    def to_dict(self) -> dict:
        return {
            "min_score": self.min_score,
            "factor": self.factor,
            "factor_bps": self.factor_bps,
            "name": self.name,
        }


DEFAULT_TIERS = (
    CollateralTier(900, 50, "Exceptional"),
    CollateralTier(800, 60, "Excellent"),
    CollateralTier(700, 75, "Good"),
    CollateralTier(500, 100, "Average"),
    CollateralTier(0, 150, "Poor"),
)


def _check_score(score: int) -> None:
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValueError(f"Score must be an integer, got {score!r}")
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise ValueError(f"Score {score} outside {MIN_SCORE}-{MAX_SCORE}")


class CollateralPolicy:
    """Pure, deterministic score → risk parameter mapping."""

    def __init__(self, tiers: Optional[tuple[CollateralTier, ...]] = None):
        tiers = tuple(sorted(tiers or DEFAULT_TIERS, key=lambda t: t.min_score, reverse=True))
        if not tiers or tiers[-1].min_score != MIN_SCORE:
            raise ValueError("Tiers must cover a score of 0")
        if len({t.min_score for t in tiers}) != len(tiers):
            raise ValueError("Tier thresholds must be distinct")
        if any(t.factor <= 0 for t in tiers):
            raise ValueError("Collateral factors must be positive")
        self.tiers = tiers

    def tier_for_score(self, score: int) -> CollateralTier:
        _check_score(score)
        for tier in self.tiers:
            if score >= tier.min_score:
                return tier
        return self.tiers[-1]

    def collateral_factor(self, score: int) -> int:
        return self.tier_for_score(score).factor

    def collateral_factor_bps(self, score: int) -> int:
        return self.tier_for_score(score).factor_bps

    def borrow_limit(self, collateral_value: int, score: int) -> int:
        """Largest loan the posted collateral supports at this score."""
        if collateral_value < 0:
            raise ValueError("Collateral value must not be negative")
        return collateral_value * 100 // self.collateral_factor(score)

    def to_dict(self) -> list[dict]:
        return [t.to_dict() for t in self.tiers]


_DEFAULT_POLICY = CollateralPolicy()


def collateral_factor(score: int) -> int:
    """Collateral factor under the default tiers."""
    return _DEFAULT_POLICY.collateral_factor(score)


def tier_for_score(score: int) -> CollateralTier:
    return _DEFAULT_POLICY.tier_for_score(score)
