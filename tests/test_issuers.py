"""Tests for credscore.issuers — IssuerRegistry, IssuerRecord."""

import pytest

from credscore.catalog import CredentialType
from credscore.identity import IssuerIdentity
from credscore.issuers import IssuerRecord, IssuerRegistry


@pytest.fixture
def registry():
    return IssuerRegistry()


class TestRegister:
    def test_register(self, registry, bank):
        record = registry.register(bank.public_key_hex, trust_score=90, display_name="Bank",
                                   authorized_types=[CredentialType.BANK_BALANCE_HIGH])
        assert record.address == bank.address
        assert record.active is True
        assert record.trust_score == 90
        assert record.authorized_types == {"BANK_BALANCE_HIGH"}
        assert bank.address in registry
        assert len(registry) == 1

    def test_duplicate_rejected(self, registry, bank):
        registry.register(bank.public_key_hex)
        with pytest.raises(ValueError, match="already registered"):
            registry.register(bank.public_key_hex)

    @pytest.mark.parametrize("score", [-1, 101, 50.5, True])
    def test_trust_score_bounds(self, registry, bank, score):
        with pytest.raises(ValueError):
            registry.register(bank.public_key_hex, trust_score=score)

    def test_trust_score_limits_inclusive(self, registry, bank, employer):
        assert registry.register(bank.public_key_hex, trust_score=0).trust_score == 0
        assert registry.register(employer.public_key_hex, trust_score=100).trust_score == 100


class TestLifecycle:
    def test_deactivate(self, registry, bank):
        registry.register(bank.public_key_hex, authorized_types=["EMPLOYMENT"])
        registry.deactivate(bank.address)
        assert not registry.is_active(bank.address)
        assert not registry.is_authorized(bank.address, "EMPLOYMENT")

    def test_deactivate_twice(self, registry, bank):
        registry.register(bank.public_key_hex)
        registry.deactivate(bank.address)
        with pytest.raises(ValueError, match="already inactive"):
            registry.deactivate(bank.address)

    def test_deactivate_unknown(self, registry):
        with pytest.raises(ValueError, match="not registered"):
            registry.deactivate("0x" + "00" * 20)

    def test_update_trust(self, registry, bank):
        registry.register(bank.public_key_hex, trust_score=100)
        assert registry.update_trust(bank.address, 80).trust_score == 80

    def test_update_trust_inactive(self, registry, bank):
        registry.register(bank.public_key_hex)
        registry.deactivate(bank.address)
        with pytest.raises(ValueError, match="not active"):
            registry.update_trust(bank.address, 80)

    def test_authorize_and_revoke(self, registry, bank):
        registry.register(bank.public_key_hex)
        assert not registry.is_authorized(bank.address, "CEX_HISTORY")
        registry.authorize(bank.address, [CredentialType.CEX_HISTORY])
        assert registry.is_authorized(bank.address, "CEX_HISTORY")
        registry.revoke_authorization(bank.address, "CEX_HISTORY")
        assert not registry.is_authorized(bank.address, "CEX_HISTORY")

    def test_unknown_issuer_not_authorized(self, registry):
        assert not registry.is_authorized("0xdead", "EMPLOYMENT")
        assert registry.get("0xdead") is None


class TestIssuerFor:
    def test_first_registered_wins(self, registry, bank, employer):
        registry.register(bank.public_key_hex, authorized_types=["EMPLOYMENT"])
        registry.register(employer.public_key_hex, authorized_types=["EMPLOYMENT"])
        assert registry.issuer_for("EMPLOYMENT").address == bank.address

    def test_skips_inactive(self, registry, bank, employer):
        registry.register(bank.public_key_hex, authorized_types=["EMPLOYMENT"])
        registry.register(employer.public_key_hex, authorized_types=["EMPLOYMENT"])
        registry.deactivate(bank.address)
        assert registry.issuer_for(CredentialType.EMPLOYMENT).address == employer.address

    def test_none_when_unauthorized(self, registry, bank):
        registry.register(bank.public_key_hex, authorized_types=["EMPLOYMENT"])
        assert registry.issuer_for("CEX_HISTORY") is None


class TestSerialization:
    def test_dict_roundtrip(self, registry, bank):
        registry.register(bank.public_key_hex, trust_score=70, display_name="Bank",
                          authorized_types=["BANK_BALANCE_LOW"])
        registry.deactivate(bank.address)
        restored = IssuerRegistry.from_dict(registry.to_dict())
        record = restored.get(bank.address)
        assert record.trust_score == 70
        assert record.active is False
        assert record.authorized_types == {"BANK_BALANCE_LOW"}

    @pytest.mark.parametrize("score", [-5, 101, 250])
    def test_from_dict_rejects_out_of_range_trust(self, registry, bank, score):
        registry.register(bank.public_key_hex, authorized_types=["BANK_BALANCE_LOW"])
        data = registry.to_dict()
        data[0]["trust_score"] = score
        with pytest.raises(ValueError, match="Trust score"):
            IssuerRegistry.from_dict(data)

    def test_record_defaults(self):
        identity = IssuerIdentity()
        record = IssuerRecord.from_dict({"address": identity.address,
                                         "public_key": identity.public_key_hex})
        assert record.active is True
        assert record.trust_score == 100
        assert record.authorized_types == set()
