"""Shared fixtures for the credscore test suite."""
import os
import sys

import pytest

# Ensure src is on path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from credscore.catalog import CredentialType, default_catalog
from credscore.identity import IssuerIdentity
from credscore.issuers import IssuerRegistry
from credscore.store import Credential, CredentialStore

NOW = 1_700_000_000
DAY = 86400

SUBJECT = "0x" + "ab" * 20
OTHER_SUBJECT = "0x" + "cd" * 20

BANK_TYPES = [
    CredentialType.BANK_BALANCE_HIGH,
    CredentialType.BANK_BALANCE_MEDIUM,
    CredentialType.BANK_BALANCE_LOW,
    CredentialType.BANK_BALANCE_MINIMAL,
]


class FakeClock:
    """Settable clock; call it to read the time."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_credential(id="cred-1", type="BANK_BALANCE_HIGH", subject=SUBJECT,
                    issuer="0x" + "11" * 20, issued_at=NOW, expires_at=NOW + 365 * DAY,
                    weight=None):
    if weight is None:
        weight = default_catalog().get(type).weight
    return Credential(id=id, type=type, issuer=issuer, subject=subject,
                      issued_at=issued_at, expires_at=expires_at, weight=weight)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return CredentialStore(clock=clock)


@pytest.fixture
def bank():
    return IssuerIdentity()


@pytest.fixture
def employer():
    return IssuerIdentity()


@pytest.fixture
def issuers(bank, employer):
    registry = IssuerRegistry()
    registry.register(bank.public_key_hex, trust_score=90, display_name="Mock Bank",
                      authorized_types=BANK_TYPES)
    registry.register(employer.public_key_hex, trust_score=80, display_name="Mock Employer",
                      authorized_types=[CredentialType.EMPLOYMENT, CredentialType.INCOME_HIGH])
    return registry
