"""credscore.store — Lifecycle ledger for issued credentials.

Records are keyed by credential id and indexed by subject. Nothing is ever
deleted: expired and revoked credentials stay retrievable for audit.

Expiry is never written. ``status_of`` derives it from the current time on
every read, so no background sweep is needed. Revocation is the only
stored transition and it is one-way.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Union

from .errors import AlreadyRevokedError, CredentialLimitError, DuplicateIdError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_REVOCATION_REASON = "Admin revocation"
MAX_CREDENTIALS_PER_SUBJECT = 20


class CredentialStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class RevocationReason(str, Enum):
    """Standard reasons for revoking a credential."""
    KEY_COMPROMISE = "key_compromise"
    SUPERSEDED = "superseded"
    CEASED_OPERATION = "ceased_operation"
    PRIVILEGE_WITHDRAWN = "privilege_withdrawn"
    ADMIN = "admin"


@dataclass
class Credential:
    """An issued attestation about a subject."""
    id: str
    type: str
    issuer: str
    subject: str
    issued_at: int
    expires_at: int
    weight: int
    status: CredentialStatus = CredentialStatus.ACTIVE
    revoked_at: Optional[int] = None
    revocation_reason: Optional[str] = None
    signature: Optional[str] = None  # hex, kept for audit/replay

    @property
    def is_revoked(self) -> bool:
        return self.status == CredentialStatus.REVOKED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "issuer": self.issuer,
            "subject": self.subject,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
            "weight": self.weight,
            "status": self.status.value,
            "revoked_at": self.revoked_at,
            "revocation_reason": self.revocation_reason,
            "signature": self.signature,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Credential":
        return cls(
            id=data["id"],
            type=data["type"],
            issuer=data["issuer"],
            subject=data["subject"],
            issued_at=data["issued_at"],
            expires_at=data["expires_at"],
            weight=data["weight"],
            status=CredentialStatus(data.get("status", "active")),
            revoked_at=data.get("revoked_at"),
            revocation_reason=data.get("revocation_reason"),
            signature=data.get("signature"),
        )

    def __repr__(self):
        return f"Credential({self.id} {self.type} → {self.subject}, {self.status.value})"


def status_of(credential: Credential, now: Optional[float] = None) -> CredentialStatus:
    """Current status. Revoked wins over expired, expired over active."""
    if credential.status == CredentialStatus.REVOKED:
        return CredentialStatus.REVOKED
    now = time.time() if now is None else now
    if credential.expires_at < now:
        return CredentialStatus.EXPIRED
    return CredentialStatus.ACTIVE


@dataclass
class StoreStats:
    total: int = 0
    active: int = 0
    expired: int = 0
    revoked: int = 0
    distinct_subjects: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "active": self.active,
            "expired": self.expired,
            "revoked": self.revoked,
            "distinct_subjects": self.distinct_subjects,
        }


class CredentialStore:
    """Owns the canonical set of Credential records.

    All reads hand out copies taken under the store lock, so callers
    always see a consistent snapshot and can never mutate stored state.
    """

    def __init__(self, clock: Callable[[], float] = time.time,
                 max_per_subject: int = MAX_CREDENTIALS_PER_SUBJECT):
        self._by_id: dict[str, Credential] = {}
        self._by_subject: dict[str, list[str]] = {}
        self._lock = threading.RLock()
        self.clock = clock
        self.max_per_subject = max_per_subject

    def track(self, credential: Credential) -> Credential:
        """Insert a new record.

        Raises DuplicateIdError if the id exists, CredentialLimitError if the
        subject already holds ``max_per_subject`` records (of any status).
        """
        with self._lock:
            if credential.id in self._by_id:
                raise DuplicateIdError(credential.id)
            if len(self._by_subject.get(credential.subject, ())) >= self.max_per_subject:
                raise CredentialLimitError(credential.subject, self.max_per_subject)
            record = replace(credential)
            self._by_id[record.id] = record
            self._by_subject.setdefault(record.subject, []).append(record.id)
        logger.info("Tracked credential %s (%s) for %s", record.id, record.type, record.subject)
        return replace(record)

    def status_of(self, credential: Credential, now: Optional[float] = None) -> CredentialStatus:
        return status_of(credential, self.clock() if now is None else now)

    def status(self, credential_id: str, now: Optional[float] = None) -> CredentialStatus:
        """Status by id. Raises NotFoundError for unknown ids."""
        with self._lock:
            record = self._by_id.get(credential_id)
            if record is None:
                raise NotFoundError(credential_id)
            return self.status_of(record, now)

    def is_valid(self, credential_id: str, now: Optional[float] = None) -> bool:
        try:
            return self.status(credential_id, now) == CredentialStatus.ACTIVE
        except NotFoundError:
            return False

    def revoke(self, credential_id: str,
               reason: Union[str, RevocationReason] = DEFAULT_REVOCATION_REASON,
               now: Optional[float] = None) -> Credential:
        """Revoke a credential (one-way)."""
        if isinstance(reason, RevocationReason):
            reason = reason.value
        with self._lock:
            record = self._by_id.get(credential_id)
            if record is None:
                raise NotFoundError(credential_id)
            if record.status == CredentialStatus.REVOKED:
                raise AlreadyRevokedError(credential_id)
            record.revoked_at = int(self.clock() if now is None else now)
            record.revocation_reason = reason
            record.status = CredentialStatus.REVOKED
            snapshot = replace(record)
        logger.info("Revoked credential %s: %s", credential_id, reason)
        return snapshot

    def get(self, credential_id: str) -> Optional[Credential]:
        with self._lock:
            record = self._by_id.get(credential_id)
            return replace(record) if record else None

    def credentials_for(self, subject: str) -> list[Credential]:
        """Every record for a subject, whatever its status."""
        with self._lock:
            return [replace(self._by_id[cid]) for cid in self._by_subject.get(subject, [])]

    def subjects(self) -> list[str]:
        with self._lock:
            return list(self._by_subject)

    def stats(self, now: Optional[float] = None) -> StoreStats:
        """Aggregate counts, with statuses computed at call time."""
        now = self.clock() if now is None else now
        result = StoreStats()
        with self._lock:
            for record in self._by_id.values():
                status = status_of(record, now)
                if status == CredentialStatus.ACTIVE:
                    result.active += 1
                elif status == CredentialStatus.EXPIRED:
                    result.expired += 1
                else:
                    result.revoked += 1
            result.total = len(self._by_id)
            result.distinct_subjects = len(self._by_subject)
        return result

    def __len__(self):
        return len(self._by_id)

    def __contains__(self, credential_id: str) -> bool:
        return credential_id in self._by_id

    # ─── Persistence ──────────────────────────────────────────────

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "credentials": {cid: c.to_dict() for cid, c in self._by_id.items()},
                "subjects": {s: list(ids) for s, ids in self._by_subject.items()},
            }

    @classmethod
    def from_dict(cls, data: dict, clock: Callable[[], float] = time.time) -> "CredentialStore":
        """Rebuild a store. The per-subject cap applies to new records only."""
        store = cls(clock=clock)
        for cid, item in data.get("credentials", {}).items():
            store._by_id[cid] = Credential.from_dict(item)
        for subject, ids in data.get("subjects", {}).items():
            store._by_subject[subject] = [cid for cid in ids if cid in store._by_id]
        return store

    def save(self, filepath: str):
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str, clock: Callable[[], float] = time.time) -> "CredentialStore":
        with open(filepath) as f:
            return cls.from_dict(json.load(f), clock=clock)

    def __repr__(self):
        return f"CredentialStore({len(self)} credentials)"
