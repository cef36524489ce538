"""credscore.scoring — Aggregate a subject's valid credentials into a bounded score.

Score = clamp(BASE + Σ contributions, 0, 1000), rounded half-up, where:

    contribution = weight × decay_factor

``decay_factor`` falls linearly from 1.0 at issuance to 0.0 at the end of
the type's decay horizon (or at expiry, whichever comes first). Types
without a decay horizon always contribute their full weight.

Within one family (a group of mutually exclusive buckets such as the bank
balance tiers) only the single strongest credential counts. Ties go to the
later issuance.

The store is treated as untrusted input: records with an unknown type or
malformed fields are skipped, never raised.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from .catalog import CredentialCatalog, CredentialTypeSpec, default_catalog
from .errors import InvalidSubjectError
from .identity import is_valid_subject
from .issuers import IssuerRegistry
from .store import Credential, CredentialStatus, CredentialStore, status_of

logger = logging.getLogger(__name__)

BASE_SCORE = 500
MIN_SCORE = 0
MAX_SCORE = 1000


def decay_factor(credential: Credential, spec: CredentialTypeSpec, now: float) -> float:
    """Fraction of the weight still in force at ``now`` (0.0–1.0)."""
    horizon = spec.decay_seconds
    if horizon is None:
        return 1.0
    end = min(credential.issued_at + horizon, credential.expires_at)
    span = end - credential.issued_at
    elapsed = now - credential.issued_at
    if elapsed <= 0:
        return 1.0
    if span <= 0 or elapsed >= span:
        return 0.0
    return 1.0 - elapsed / span


def bounded_score(total_contribution: float, base: int = BASE_SCORE) -> int:
    """Clamp ``base + total_contribution`` into [0, 1000], rounding half-up."""
    raw = base + total_contribution
    clamped = min(max(raw, MIN_SCORE), MAX_SCORE)
    return int(math.floor(clamped + 0.5))


@dataclass
class Contribution:
    """One credential selected as its family's representative."""
    credential_id: str
    type: str
    family: str
    weight: int
    decay_factor: float
    value: float
    issued_at: int

    def to_dict(self) -> dict:
        return {
            "credential_id": self.credential_id,
            "type": self.type,
            "family": self.family,
            "weight": self.weight,
            "decay_factor": round(self.decay_factor, 6),
            "contribution": round(self.value, 6),
            "issued_at": self.issued_at,
        }


@dataclass
class SubjectScoreView:
    """Derived score for one subject. Never persisted."""
    subject: str
    score: int = BASE_SCORE
    credential_count: int = 0
    last_updated: Optional[int] = None
    computed_at: float = 0.0
    contributions: list[Contribution] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "subject": self.subject,
            "score": self.score,
            "credential_count": self.credential_count,
            "last_updated": self.last_updated,
            "computed_at": self.computed_at,
            "contributions": [c.to_dict() for c in self.contributions],
        }


def _beats(candidate: Contribution, current: Contribution) -> bool:
    if candidate.value != current.value:
        return candidate.value > current.value
    if candidate.issued_at != current.issued_at:
        return candidate.issued_at > current.issued_at
    return candidate.credential_id > current.credential_id


class ScoreAggregator:
    """Pure reader over a CredentialStore.

    Each computation reads the subject's credential set once and works on
    that snapshot only. No locking of its own.
    """

    def __init__(self, store: CredentialStore, catalog: Optional[CredentialCatalog] = None,
                 issuers: Optional[IssuerRegistry] = None):
        self.store = store
        self.catalog = catalog if catalog is not None else default_catalog()
        self.issuers = issuers

    def _now(self, now: Optional[float]) -> float:
        return self.store.clock() if now is None else now

    def _contribution(self, credential: Credential, now: float) -> Optional[Contribution]:
        """Contribution of one record, or None if it does not count."""
        spec = self.catalog.get(credential.type)
        if spec is None:
            logger.debug("Skipping credential %s with unknown type %r", credential.id, credential.type)
            return None
        if status_of(credential, now) != CredentialStatus.ACTIVE:
            return None
        if self.issuers is not None and not self.issuers.is_active(credential.issuer):
            return None
        weight = int(credential.weight)
        if weight <= 0:
            raise ValueError(f"non-positive weight {credential.weight!r}")
        factor = decay_factor(credential, spec, now)
        return Contribution(
            credential_id=credential.id,
            type=spec.code,
            family=spec.family,
            weight=weight,
            decay_factor=factor,
            value=weight * factor,
            issued_at=int(credential.issued_at),
        )

    def select(self, credentials: list[Credential], now: float) -> tuple[list[Contribution], int]:
        """Pick the strongest credential per family.

        Returns (selected contributions, number of currently valid records).
        """
        best: dict[str, Contribution] = {}
        valid = 0
        for credential in credentials:
            try:
                contribution = self._contribution(credential, now)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed credential %r: %s",
                               getattr(credential, "id", None), e)
                continue
            if contribution is None:
                continue
            valid += 1
            current = best.get(contribution.family)
            if current is None or _beats(contribution, current):
                best[contribution.family] = contribution
        selected = sorted(best.values(), key=lambda c: c.family)
        return selected, valid

    def score_details(self, subject: str, now: Optional[float] = None) -> SubjectScoreView:
        if not is_valid_subject(subject):
            raise InvalidSubjectError(f"Invalid subject address: {subject!r}")
        now = self._now(now)
        credentials = self.store.credentials_for(subject)
        selected, valid = self.select(credentials, now)
        total = sum(c.value for c in selected)
        return SubjectScoreView(
            subject=subject,
            score=bounded_score(total),
            credential_count=valid,
            last_updated=max((c.issued_at for c in selected), default=None),
            computed_at=now,
            contributions=selected,
        )

    def score(self, subject: str, now: Optional[float] = None) -> int:
        return self.score_details(subject, now).score

    def meets_threshold(self, subject: str, min_score: int, now: Optional[float] = None) -> bool:
        return self.score(subject, now) >= min_score
