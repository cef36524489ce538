"""credscore.identity — Issuer signing identities."""

import hashlib
import json
import os
import re
from datetime import datetime, timezone
from typing import Optional

from nacl.encoding import HexEncoder
from nacl.signing import SigningKey

from .signature import sign_digest

SUBJECT_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
ZERO_ADDRESS = "0x" + "0" * 40


def is_valid_subject(subject) -> bool:
    """A 0x-prefixed, 40-hex-char identity other than the zero address."""
    return (isinstance(subject, str) and bool(SUBJECT_PATTERN.match(subject))
            and subject.lower() != ZERO_ADDRESS)


def address_for_public_key(public_key_hex: str) -> str:
    """Derive a 0x-prefixed, 40-hex-char address from a public key."""
    raw = bytes.fromhex(public_key_hex)
    return "0x" + hashlib.sha256(raw).digest()[-20:].hex()


class IssuerIdentity:
    """Ed25519 keypair held by a credential issuer."""

    def __init__(self, signing_key: Optional[SigningKey] = None):
        self.signing_key = signing_key or SigningKey.generate()
        self.verify_key = self.signing_key.verify_key

    @property
    def public_key_hex(self) -> str:
        return self.verify_key.encode(encoder=HexEncoder).decode()

    @property
    def address(self) -> str:
        return address_for_public_key(self.public_key_hex)

    def sign_digest(self, digest: bytes) -> bytes:
        """Sign a credential digest (domain prefix applied)."""
        return sign_digest(self.signing_key, digest)

    async def async_signer(self, digest: bytes) -> bytes:
        """Awaitable signer, for use with the async issuance path."""
        return self.sign_digest(digest)

    def export_keys(self) -> dict:
        return {
            "address": self.address,
            "public_key": self.public_key_hex,
            "private_key": self.signing_key.encode(encoder=HexEncoder).decode(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    @classmethod
    def from_private_key(cls, hex_key: str) -> "IssuerIdentity":
        return cls(signing_key=SigningKey(hex_key.encode(), encoder=HexEncoder))

    @classmethod
    def load(cls, filepath: str) -> "IssuerIdentity":
        with open(filepath) as f:
            data = json.load(f)
        return cls.from_private_key(data["private_key"])

    def save(self, filepath: str):
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
        with open(filepath, "w") as f:
            json.dump(self.export_keys(), f, indent=2)
        os.chmod(filepath, 0o600)

    def __repr__(self):
        return f"IssuerIdentity({self.address})"
