"""credscore.codec — Canonical encoding of a credential's signable fields.

The encoding is write-only: it exists to be hashed and signed, never
decoded. Layout::

    b"CRED" | version (1 byte) | field*5

    field := tag (1 byte) | length (uint32 BE) | value

Fields appear in the fixed order type, issuer, subject, issued_at,
expires_at. Strings are UTF-8, timestamps are unsigned 64-bit big-endian,
so the bytes are identical on every platform.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .catalog import CredentialCatalog, default_catalog
from .errors import EncodingError, UnknownCredentialTypeError

MAGIC = b"CRED"
VERSION = 1

TAG_TYPE = 0x01
TAG_ISSUER = 0x02
TAG_SUBJECT = 0x03
TAG_ISSUED_AT = 0x04
TAG_EXPIRES_AT = 0x05

MAX_UINT64 = 2 ** 64 - 1

_DEFAULT_CATALOG = default_catalog()


@dataclass(frozen=True)
class CredentialFields:
    """The five fields bound by an issuer's signature."""
    type: str
    issuer: str
    subject: str
    issued_at: int
    expires_at: int


def _field(tag: int, value: bytes) -> bytes:
    return struct.pack(">BI", tag, len(value)) + value


def _text(name: str, value) -> bytes:
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str) or not value:
        raise EncodingError(f"{name} must be a non-empty string")
    return value.encode("utf-8")


def _timestamp(name: str, value) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{name} must be an integer timestamp, got {value!r}")
    if value < 0:
        raise EncodingError(f"{name} must not be negative")
    if value > MAX_UINT64:
        raise EncodingError(f"{name} exceeds 64-bit range")
    return struct.pack(">Q", value)


def encode(fields: CredentialFields, catalog: Optional[CredentialCatalog] = None) -> bytes:
    """Canonical bytes for signing. Raises EncodingError on bad input."""
    catalog = catalog if catalog is not None else _DEFAULT_CATALOG
    type_bytes = _text("type", fields.type)
    if fields.type not in catalog:
        raise UnknownCredentialTypeError(f"Unknown credential type: {fields.type}")
    issuer = _text("issuer", fields.issuer)
    subject = _text("subject", fields.subject)
    issued_at = _timestamp("issued_at", fields.issued_at)
    expires_at = _timestamp("expires_at", fields.expires_at)
    if fields.issued_at > fields.expires_at:
        raise EncodingError("Expiration must not precede issuance")

    return b"".join([
        MAGIC,
        bytes([VERSION]),
        _field(TAG_TYPE, type_bytes),
        _field(TAG_ISSUER, issuer),
        _field(TAG_SUBJECT, subject),
        _field(TAG_ISSUED_AT, issued_at),
        _field(TAG_EXPIRES_AT, expires_at),
    ])


def digest(data: bytes) -> bytes:
    """256-bit SHA-256 digest of encoded credential bytes."""
    return hashlib.sha256(data).digest()


def credential_hash(fields: CredentialFields, catalog: Optional[CredentialCatalog] = None) -> str:
    """Hex digest of the canonical encoding."""
    return digest(encode(fields, catalog)).hex()
