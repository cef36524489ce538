"""credscore.catalog — Closed catalog of credential types.

Each type carries its scoring data (weight, decay horizon, default lifetime)
so that adding a type is a catalog edit rather than a change to the
aggregation logic. Types sharing a ``family`` are mutually exclusive
buckets: only the strongest one of a family counts toward a score.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterator, Optional


class CredentialType(str, Enum):
    """Codes of the built-in credential types."""
    BANK_BALANCE_HIGH = "BANK_BALANCE_HIGH"
    BANK_BALANCE_MEDIUM = "BANK_BALANCE_MEDIUM"
    BANK_BALANCE_LOW = "BANK_BALANCE_LOW"
    BANK_BALANCE_MINIMAL = "BANK_BALANCE_MINIMAL"
    INCOME_HIGH = "INCOME_HIGH"
    INCOME_MEDIUM = "INCOME_MEDIUM"
    INCOME_LOW = "INCOME_LOW"
    INCOME_MINIMAL = "INCOME_MINIMAL"
    CEX_HISTORY = "CEX_HISTORY"
    EMPLOYMENT = "EMPLOYMENT"


@dataclass(frozen=True)
class CredentialTypeSpec:
    """Scoring data for one credential type."""
    code: str
    family: str
    weight: int
    decay_days: Optional[int] = None  # None = contribution never fades
    validity_days: int = 365
    display_name: str = ""

    def validate(self) -> None:
        if not self.code:
            raise ValueError("Credential type code must not be empty")
        if isinstance(self.weight, bool) or not isinstance(self.weight, int) or self.weight <= 0:
            raise ValueError("Weight must be positive")
        if self.decay_days is not None and self.decay_days <= 0:
            raise ValueError("Decay days must be positive")
        if self.validity_days <= 0:
            raise ValueError("Validity days must be positive")

    @property
    def decay_seconds(self) -> Optional[int]:
        if self.decay_days is None:
            return None
        return self.decay_days * 86400

    @property
    def validity_seconds(self) -> int:
        return self.validity_days * 86400


def _code(code) -> str:
    return code.value if isinstance(code, Enum) else str(code)


class CredentialCatalog:
    """Registry of credential types keyed by code."""

    def __init__(self, specs: Optional[list[CredentialTypeSpec]] = None):
        self._specs: dict[str, CredentialTypeSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: CredentialTypeSpec) -> CredentialTypeSpec:
        """Add a new type. Raises ValueError for duplicates or bad data."""
        spec.validate()
        if spec.code in self._specs:
            raise ValueError(f"Credential type {spec.code} already registered")
        self._specs[spec.code] = spec
        return spec

    def update_weight(self, code, weight: int) -> CredentialTypeSpec:
        spec = self.get(code)
        if spec is None:
            raise ValueError(f"Unknown credential type {_code(code)}")
        updated = replace(spec, weight=weight)
        updated.validate()
        self._specs[updated.code] = updated
        return updated

    def get(self, code) -> Optional[CredentialTypeSpec]:
        return self._specs.get(_code(code))

    def family_of(self, code) -> Optional[str]:
        spec = self.get(code)
        return spec.family if spec else None

    def codes(self) -> list[str]:
        return list(self._specs)

    def __contains__(self, code) -> bool:
        return _code(code) in self._specs

    def __iter__(self) -> Iterator[CredentialTypeSpec]:
        return iter(list(self._specs.values()))

    def __len__(self) -> int:
        return len(self._specs)

    def copy(self) -> "CredentialCatalog":
        return CredentialCatalog(list(self._specs.values()))

    def to_dict(self) -> list[dict]:
        return [
            {
                "code": s.code,
                "family": s.family,
                "weight": s.weight,
                "decay_days": s.decay_days,
                "validity_days": s.validity_days,
                "display_name": s.display_name,
            }
            for s in self._specs.values()
        ]

    def __repr__(self):
        return f"CredentialCatalog({len(self)} types)"


DEFAULT_SPECS = [
    CredentialTypeSpec("BANK_BALANCE_HIGH", "BANK_BALANCE", 150, 90, 365, "Bank Balance - High"),
    CredentialTypeSpec("BANK_BALANCE_MEDIUM", "BANK_BALANCE", 120, 90, 365, "Bank Balance - Medium"),
    CredentialTypeSpec("BANK_BALANCE_LOW", "BANK_BALANCE", 80, 90, 365, "Bank Balance - Low"),
    CredentialTypeSpec("BANK_BALANCE_MINIMAL", "BANK_BALANCE", 40, 90, 365, "Bank Balance - Minimal"),
    CredentialTypeSpec("INCOME_HIGH", "INCOME", 180, 180, 365, "Income Range - High"),
    CredentialTypeSpec("INCOME_MEDIUM", "INCOME", 140, 180, 365, "Income Range - Medium"),
    CredentialTypeSpec("INCOME_LOW", "INCOME", 100, 180, 365, "Income Range - Low"),
    CredentialTypeSpec("INCOME_MINIMAL", "INCOME", 50, 180, 365, "Income Range - Minimal"),
    CredentialTypeSpec("CEX_HISTORY", "CEX_HISTORY", 80, 180, 365, "CEX Trading History"),
    CredentialTypeSpec("EMPLOYMENT", "EMPLOYMENT", 70, 180, 365, "Employment Verification"),
]


def default_catalog() -> CredentialCatalog:
    """Fresh catalog holding the built-in types."""
    return CredentialCatalog(DEFAULT_SPECS)
