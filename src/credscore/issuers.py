"""credscore.issuers — Issuer authorization registry.

An issuer may only have credentials accepted while it is active and
authorized for the credential's type. ``trust_score`` is kept on every
record but does not take part in scoring.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .identity import address_for_public_key

logger = logging.getLogger(__name__)


def _code(code) -> str:
    return code.value if isinstance(code, Enum) else str(code)


@dataclass
class IssuerRecord:
    """Registration entry for one issuer."""
    address: str
    public_key: str
    trust_score: int = 100
    active: bool = True
    display_name: str = ""
    authorized_types: set[str] = field(default_factory=set)
    registered_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "public_key": self.public_key,
            "trust_score": self.trust_score,
            "active": self.active,
            "display_name": self.display_name,
            "authorized_types": sorted(self.authorized_types),
            "registered_at": self.registered_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IssuerRecord":
        return cls(
            address=data["address"],
            public_key=data["public_key"],
            trust_score=data.get("trust_score", 100),
            active=data.get("active", True),
            display_name=data.get("display_name", ""),
            authorized_types=set(data.get("authorized_types", [])),
            registered_at=data.get("registered_at", time.time()),
        )


def _check_trust_score(trust_score: int) -> None:
    if isinstance(trust_score, bool) or not isinstance(trust_score, int) or not 0 <= trust_score <= 100:
        raise ValueError("Trust score must be an integer between 0 and 100")


class IssuerRegistry:
    """Issuers keyed by address, in registration order."""

    def __init__(self):
        self._issuers: dict[str, IssuerRecord] = {}
        self._lock = threading.RLock()

    def register(self, public_key: str, trust_score: int = 100, display_name: str = "",
                 authorized_types: Iterable = ()) -> IssuerRecord:
        """Register an issuer by public key. Raises ValueError if already known."""
        _check_trust_score(trust_score)
        address = address_for_public_key(public_key)
        with self._lock:
            if address in self._issuers:
                raise ValueError(f"Issuer {address} already registered")
            record = IssuerRecord(
                address=address,
                public_key=public_key,
                trust_score=trust_score,
                display_name=display_name,
                authorized_types={_code(c) for c in authorized_types},
            )
            self._issuers[address] = record
        logger.info("Registered issuer %s (%s) for %s", address, display_name or "unnamed",
                    ", ".join(sorted(record.authorized_types)) or "no types")
        return record

    def _require(self, address: str) -> IssuerRecord:
        record = self._issuers.get(address)
        if record is None:
            raise ValueError(f"Issuer {address} not registered")
        return record

    def deactivate(self, address: str) -> IssuerRecord:
        with self._lock:
            record = self._require(address)
            if not record.active:
                raise ValueError("Issuer already inactive")
            record.active = False
        logger.info("Deactivated issuer %s", address)
        return record

    def update_trust(self, address: str, trust_score: int) -> IssuerRecord:
        _check_trust_score(trust_score)
        with self._lock:
            record = self._require(address)
            if not record.active:
                raise ValueError("Issuer not active")
            record.trust_score = trust_score
        return record

    def authorize(self, address: str, codes: Iterable) -> IssuerRecord:
        with self._lock:
            record = self._require(address)
            record.authorized_types.update(_code(c) for c in codes)
        return record

    def revoke_authorization(self, address: str, code) -> IssuerRecord:
        with self._lock:
            record = self._require(address)
            record.authorized_types.discard(_code(code))
        return record

    def get(self, address: str) -> Optional[IssuerRecord]:
        return self._issuers.get(address)

    def is_active(self, address: str) -> bool:
        record = self._issuers.get(address)
        return bool(record and record.active)

    def is_authorized(self, address: str, code) -> bool:
        """True if the issuer is active AND allowed to sign ``code``."""
        with self._lock:
            record = self._issuers.get(address)
            return bool(record and record.active and _code(code) in record.authorized_types)

    def issuer_for(self, code) -> Optional[IssuerRecord]:
        """First active issuer (by registration order) authorized for ``code``."""
        with self._lock:
            for record in self._issuers.values():
                if record.active and _code(code) in record.authorized_types:
                    return record
        return None

    @property
    def all_records(self) -> list[IssuerRecord]:
        return list(self._issuers.values())

    def __len__(self):
        return len(self._issuers)

    def __contains__(self, address: str) -> bool:
        return address in self._issuers

    def to_dict(self) -> list[dict]:
        return [r.to_dict() for r in self._issuers.values()]

    @classmethod
    def from_dict(cls, data: list[dict]) -> "IssuerRegistry":
        registry = cls()
        for item in data:
            record = IssuerRecord.from_dict(item)
            _check_trust_score(record.trust_score)
            registry._issuers[record.address] = record
        return registry

    def __repr__(self):
        return f"IssuerRegistry({len(self)} issuers)"
