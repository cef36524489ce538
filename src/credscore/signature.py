"""credscore.signature — Domain-separated Ed25519 signatures over credential digests.

Issuers never sign a raw digest. The digest is prefixed with a fixed
domain tag first, so a signature produced here cannot be replayed as a
signature for another protocol that signs bare 32-byte messages.
"""

from typing import Union

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

SIGNED_MESSAGE_PREFIX = b"\x19Credential Signed Message:\n32"
DIGEST_SIZE = 32

BytesLike = Union[bytes, bytearray, str]


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        value = value[2:] if value.startswith("0x") else value
        return bytes.fromhex(value)
    return bytes(value)


def signed_message(digest: bytes) -> bytes:
    """Bytes actually covered by the signature."""
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"Digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
    return SIGNED_MESSAGE_PREFIX + digest


def sign_digest(signing_key: SigningKey, digest: bytes) -> bytes:
    """Sign a credential digest under the domain prefix."""
    return signing_key.sign(signed_message(digest)).signature


def verify(digest: BytesLike, signature: BytesLike, public_key: BytesLike) -> bool:
    """Check that ``signature`` over ``digest`` was made by ``public_key``.

    Accepts raw bytes or hex strings. Malformed input of any kind yields
    False instead of an exception.
    """
    try:
        message = signed_message(_as_bytes(digest))
        if isinstance(public_key, str):
            vk = VerifyKey(public_key.removeprefix("0x").encode(), encoder=HexEncoder)
        else:
            vk = VerifyKey(bytes(public_key))
        vk.verify(message, _as_bytes(signature))
        return True
    except (BadSignatureError, Exception):
        return False
