"""credscore.engine — Wiring of catalog, registry, store, scoring and policy.

There is no global store: every engine owns (or is handed) its own
collaborators, so separate engines never share state.
"""

from __future__ import annotations

import json
import time
from enum import Enum
from typing import Callable, Optional, Union

from .catalog import CredentialCatalog, default_catalog
from .collateral import CollateralPolicy
from .issuance import IssuanceRequest, IssuanceRequestHandler, IssuanceResult, Signer
from .issuers import IssuerRegistry
from .scoring import ScoreAggregator, SubjectScoreView
from .store import (
    DEFAULT_REVOCATION_REASON, Credential, CredentialStore, RevocationReason, StoreStats,
)


class TrustScoreEngine:
    """Entry point for issuers, ledger sync and the lending facility."""

    def __init__(self, catalog: Optional[CredentialCatalog] = None,
                 issuers: Optional[IssuerRegistry] = None,
                 store: Optional[CredentialStore] = None,
                 policy: Optional[CollateralPolicy] = None,
                 clock: Callable[[], float] = time.time,
                 id_factory: Optional[Callable[[], str]] = None):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.issuers = issuers if issuers is not None else IssuerRegistry()
        self.store = store if store is not None else CredentialStore(clock=clock)
        self.policy = policy if policy is not None else CollateralPolicy()
        self.aggregator = ScoreAggregator(self.store, self.catalog, self.issuers)
        handler_kwargs = {"id_factory": id_factory} if id_factory else {}
        self.handler = IssuanceRequestHandler(self.store, self.issuers, self.catalog, **handler_kwargs)

    # ─── Inbound: issuers ─────────────────────────────────────────

    def request_credential(self, subject: str, credential_type: Union[str, Enum],
                           issuer: Optional[str] = None) -> IssuanceRequest:
        return self.handler.request_credential(subject, credential_type, issuer=issuer)

    def submit_credential(self, request: IssuanceRequest, signature: bytes) -> IssuanceResult:
        return self.handler.submit(request, signature)

    async def issue(self, subject: str, credential_type: Union[str, Enum], signer: Signer,
                    issuer: Optional[str] = None) -> IssuanceResult:
        return await self.handler.issue(subject, credential_type, signer, issuer=issuer)

    # ─── Inbound: ledger sync ─────────────────────────────────────

    def track(self, credential: Credential) -> Credential:
        return self.store.track(credential)

    def revoke(self, credential_id: str,
               reason: Union[str, RevocationReason] = DEFAULT_REVOCATION_REASON) -> Credential:
        return self.store.revoke(credential_id, reason)

    # ─── Outbound: lending facility ───────────────────────────────

    def get_score_details(self, subject: str) -> SubjectScoreView:
        return self.aggregator.score_details(subject)

    def score(self, subject: str) -> int:
        return self.aggregator.score(subject)

    def collateral_factor(self, score: int) -> int:
        return self.policy.collateral_factor(score)

    def stats(self) -> StoreStats:
        return self.store.stats()

    # ─── Persistence ──────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "issuers": self.issuers.to_dict(),
            "store": self.store.to_dict(),
        }

    def save(self, filepath: str):
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str, clock: Callable[[], float] = time.time) -> "TrustScoreEngine":
        with open(filepath) as f:
            data = json.load(f)
        return cls(
            issuers=IssuerRegistry.from_dict(data.get("issuers", [])),
            store=CredentialStore.from_dict(data.get("store", {}), clock=clock),
            clock=clock,
        )
