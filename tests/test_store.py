"""Tests for credscore.store — CredentialStore lifecycle and status."""

import json
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from credscore.errors import (
    AlreadyRevokedError, CredentialLimitError, DuplicateIdError, NotFoundError,
)
from credscore.store import (
    MAX_CREDENTIALS_PER_SUBJECT, Credential, CredentialStatus, CredentialStore, RevocationReason,
    status_of,
)

from conftest import DAY, NOW, OTHER_SUBJECT, SUBJECT, make_credential


# ─── status_of ─────────────────────────────────────────────────────

class TestStatusOf:
    def test_active(self):
        assert status_of(make_credential(), now=NOW) == CredentialStatus.ACTIVE

    def test_active_at_exact_expiry(self):
        cred = make_credential(expires_at=NOW + 10)
        assert status_of(cred, now=NOW + 10) == CredentialStatus.ACTIVE

    def test_expired(self):
        cred = make_credential(expires_at=NOW + 10)
        assert status_of(cred, now=NOW + 11) == CredentialStatus.EXPIRED

    def test_revoked_wins_over_expired(self, store, clock):
        store.track(make_credential(expires_at=NOW + 10))
        store.revoke("cred-1")
        clock.advance(DAY)
        cred = store.get("cred-1")
        assert store.status_of(cred) == CredentialStatus.REVOKED
        assert store.status("cred-1") == CredentialStatus.REVOKED

    def test_expiry_is_not_written(self, store, clock):
        store.track(make_credential(expires_at=NOW + 10))
        clock.advance(100)
        assert store.status("cred-1") == CredentialStatus.EXPIRED
        assert store.get("cred-1").status == CredentialStatus.ACTIVE


# ─── track ─────────────────────────────────────────────────────────

class TestTrack:
    def test_track_and_get(self, store):
        stored = store.track(make_credential())
        assert stored.id == "cred-1"
        assert "cred-1" in store
        assert len(store) == 1
        assert store.get("cred-1").type == "BANK_BALANCE_HIGH"

    def test_duplicate_id_rejected(self, store):
        store.track(make_credential())
        with pytest.raises(DuplicateIdError):
            store.track(make_credential(type="EMPLOYMENT"))
        assert len(store) == 1
        assert len(store.credentials_for(SUBJECT)) == 1
        assert store.get("cred-1").type == "BANK_BALANCE_HIGH"

    def test_returned_records_are_copies(self, store):
        original = make_credential()
        store.track(original)
        original.weight = 1
        fetched = store.get("cred-1")
        fetched.subject = "0xevil"
        assert store.get("cred-1").weight == 150
        assert store.get("cred-1").subject == SUBJECT

    def test_concurrent_track_same_id_exactly_once(self, store):
        barrier = threading.Barrier(8)

        def attempt(_):
            barrier.wait()
            try:
                store.track(make_credential())
                return "ok"
            except DuplicateIdError:
                return "dup"

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(8)))
        assert results.count("ok") == 1
        assert results.count("dup") == 7
        assert len(store) == 1

    def test_concurrent_track_different_ids(self, store):
        subjects = ["0x" + f"{i:040x}" for i in range(1, 51)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda i: store.track(make_credential(id=f"c{i}", subject=subjects[i])),
                          range(50)))
        assert len(store) == 50


class TestSubjectLimit:
    def test_default_limit(self, store):
        assert store.max_per_subject == MAX_CREDENTIALS_PER_SUBJECT == 20

    def test_limit_rejects_next_record(self, store):
        for i in range(20):
            store.track(make_credential(id=f"c{i}"))
        with pytest.raises(CredentialLimitError) as exc:
            store.track(make_credential(id="c20"))
        assert exc.value.limit == 20
        assert len(store.credentials_for(SUBJECT)) == 20
        assert "c20" not in store

    def test_revoked_records_still_count(self, store):
        for i in range(20):
            store.track(make_credential(id=f"c{i}"))
        store.revoke("c0")
        with pytest.raises(CredentialLimitError):
            store.track(make_credential(id="c20"))

    def test_limit_is_per_subject(self):
        store = CredentialStore(max_per_subject=2)
        store.track(make_credential(id="a"))
        store.track(make_credential(id="b"))
        store.track(make_credential(id="c", subject=OTHER_SUBJECT))
        with pytest.raises(CredentialLimitError):
            store.track(make_credential(id="d"))
        assert len(store) == 3

    def test_concurrent_track_respects_limit(self, store):
        def attempt(i):
            try:
                store.track(make_credential(id=f"c{i}"))
                return "ok"
            except CredentialLimitError:
                return "full"

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(30)))
        assert results.count("ok") == 20
        assert results.count("full") == 10
        assert len(store.credentials_for(SUBJECT)) == 20


# ─── revoke ────────────────────────────────────────────────────────

class TestRevoke:
    def test_revoke(self, store, clock):
        store.track(make_credential())
        clock.advance(60)
        revoked = store.revoke("cred-1", "fraud")
        assert revoked.status == CredentialStatus.REVOKED
        assert revoked.revoked_at == NOW + 60
        assert revoked.revocation_reason == "fraud"

    def test_default_reason(self, store):
        store.track(make_credential())
        assert store.revoke("cred-1").revocation_reason == "Admin revocation"

    def test_enum_reason(self, store):
        store.track(make_credential())
        revoked = store.revoke("cred-1", RevocationReason.KEY_COMPROMISE)
        assert revoked.revocation_reason == "key_compromise"

    def test_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            store.revoke("missing")

    def test_second_revoke_fails_and_keeps_timestamp(self, store, clock):
        store.track(make_credential())
        first = store.revoke("cred-1", "first")
        clock.advance(3600)
        with pytest.raises(AlreadyRevokedError):
            store.revoke("cred-1", "second")
        record = store.get("cred-1")
        assert record.revoked_at == first.revoked_at
        assert record.revocation_reason == "first"

    def test_revoked_stays_retrievable(self, store):
        store.track(make_credential())
        store.revoke("cred-1")
        assert [c.id for c in store.credentials_for(SUBJECT)] == ["cred-1"]

    def test_revoke_visible_to_concurrent_readers(self, store):
        for i in range(20):
            store.track(make_credential(id=f"c{i}"))
        seen_revoked = set()

        def revoke_all():
            for i in range(20):
                store.revoke(f"c{i}")

        def read_all():
            for _ in range(50):
                for i in range(20):
                    if store.status(f"c{i}") == CredentialStatus.REVOKED:
                        seen_revoked.add(i)
                    else:
                        # once observed revoked, never observed active again
                        assert i not in seen_revoked

        writer = threading.Thread(target=revoke_all)
        reader = threading.Thread(target=read_all)
        writer.start()
        reader.start()
        writer.join()
        reader.join()
        assert all(store.status(f"c{i}") == CredentialStatus.REVOKED for i in range(20))


# ─── queries ───────────────────────────────────────────────────────

class TestQueries:
    def test_credentials_for_returns_all_statuses(self, store, clock):
        store.track(make_credential(id="a"))
        store.track(make_credential(id="b", expires_at=NOW + 1))
        store.track(make_credential(id="c"))
        store.revoke("c")
        clock.advance(10)
        creds = store.credentials_for(SUBJECT)
        assert [c.id for c in creds] == ["a", "b", "c"]
        assert [store.status_of(c).value for c in creds] == ["active", "expired", "revoked"]

    def test_credentials_for_unknown_subject(self, store):
        assert store.credentials_for("0x" + "00" * 20) == []

    def test_status_unknown_id(self, store):
        with pytest.raises(NotFoundError):
            store.status("missing")

    def test_is_valid(self, store, clock):
        store.track(make_credential(expires_at=NOW + 5))
        assert store.is_valid("cred-1")
        clock.advance(6)
        assert not store.is_valid("cred-1")
        assert not store.is_valid("missing")

    def test_subjects(self, store):
        store.track(make_credential(id="a"))
        store.track(make_credential(id="b", subject=OTHER_SUBJECT))
        assert sorted(store.subjects()) == sorted([SUBJECT, OTHER_SUBJECT])


class TestStats:
    def test_empty(self, store):
        assert store.stats().to_dict() == {
            "total": 0, "active": 0, "expired": 0, "revoked": 0, "distinct_subjects": 0,
        }

    def test_counts_follow_clock(self, store, clock):
        store.track(make_credential(id="a"))
        store.track(make_credential(id="b", expires_at=NOW + 100))
        store.track(make_credential(id="c", subject=OTHER_SUBJECT, expires_at=NOW + 50))
        store.revoke("c")
        stats = store.stats()
        assert (stats.total, stats.active, stats.expired, stats.revoked) == (3, 2, 0, 1)
        assert stats.distinct_subjects == 2

        clock.advance(101)
        stats = store.stats()
        assert (stats.active, stats.expired, stats.revoked) == (1, 1, 1)


class TestPersistence:
    def test_save_load(self, store, clock, tmp_path):
        store.track(make_credential(id="a"))
        store.track(make_credential(id="b", subject=OTHER_SUBJECT))
        store.revoke("b", "superseded")
        path = str(tmp_path / "store.json")
        store.save(path)

        with open(path) as f:
            raw = json.load(f)
        assert set(raw["credentials"]) == {"a", "b"}
        assert raw["subjects"][SUBJECT] == ["a"]

        loaded = CredentialStore.load(path, clock=clock)
        assert len(loaded) == 2
        assert loaded.status("b") == CredentialStatus.REVOKED
        assert loaded.get("b").revocation_reason == "superseded"
        assert [c.id for c in loaded.credentials_for(SUBJECT)] == ["a"]

    def test_credential_dict_roundtrip(self):
        cred = make_credential()
        cred.signature = "ab" * 64
        assert Credential.from_dict(cred.to_dict()) == cred
