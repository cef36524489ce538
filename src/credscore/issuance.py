"""credscore.issuance — Turn an issuer's request into a stored credential.

Issuance is two-phase. ``request_credential`` validates the request and
returns the canonical payload to be signed by an external signer.
``submit`` verifies the returned signature and tracks the credential.
``issue`` chains both around an awaited async signer.

Nothing reaches the store until every check has passed.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from .catalog import CredentialCatalog, default_catalog
from .codec import CredentialFields, digest, encode
from .errors import (
    EncodingError,
    InvalidSignatureError,
    InvalidSubjectError,
    UnauthorizedIssuerError,
    UnknownCredentialTypeError,
)
from .identity import is_valid_subject
from .issuers import IssuerRegistry
from .signature import verify
from .store import Credential, CredentialStore

logger = logging.getLogger(__name__)

Signer = Callable[[bytes], Awaitable[bytes]]


def _raw_signature(signature) -> bytes:
    if isinstance(signature, str):
        return bytes.fromhex(signature.removeprefix("0x"))
    return bytes(signature)


@dataclass
class IssuanceRequest:
    """A validated, not yet signed credential."""
    credential: Credential
    signable_payload: bytes
    digest: bytes

    @property
    def fields(self) -> CredentialFields:
        c = self.credential
        return CredentialFields(c.type, c.issuer, c.subject, c.issued_at, c.expires_at)

    def to_dict(self) -> dict:
        return {
            "credential": self.credential.to_dict(),
            "signable_payload": self.signable_payload.hex(),
            "digest": self.digest.hex(),
        }


@dataclass
class IssuanceResult:
    """Stored credential plus the raw signature for external replay/audit."""
    credential: Credential
    signature: bytes

    def to_dict(self) -> dict:
        return {
            "credential": self.credential.to_dict(),
            "signature": self.signature.hex(),
        }


class IssuanceRequestHandler:
    """Validates issuance against the catalog and issuer registry."""

    def __init__(self, store: CredentialStore, issuers: IssuerRegistry,
                 catalog: Optional[CredentialCatalog] = None,
                 id_factory: Callable[[], str] = lambda: uuid.uuid4().hex):
        self.store = store
        self.issuers = issuers
        self.catalog = catalog if catalog is not None else default_catalog()
        self.id_factory = id_factory

    def request_credential(self, subject: str, credential_type: Union[str, Enum],
                           issuer: Optional[str] = None, now: Optional[int] = None,
                           credential_id: Optional[str] = None) -> IssuanceRequest:
        """Validate a request and build the payload to sign.

        Without an explicit ``issuer`` the registry picks the first active
        issuer authorized for the type.
        """
        code = credential_type.value if isinstance(credential_type, Enum) else credential_type
        spec = self.catalog.get(code)
        if spec is None:
            raise UnknownCredentialTypeError(f"Unknown credential type: {code}")
        if not is_valid_subject(subject):
            raise InvalidSubjectError(f"Malformed subject id: {subject!r}")

        if issuer is None:
            record = self.issuers.issuer_for(code)
            if record is None:
                raise UnauthorizedIssuerError(f"No active issuer authorized for {code}")
            issuer = record.address
        elif not self.issuers.is_authorized(issuer, code):
            raise UnauthorizedIssuerError(f"Issuer {issuer} is not authorized for {code}")

        issued_at = int(self.store.clock() if now is None else now)
        credential = Credential(
            id=credential_id or self.id_factory(),
            type=code,
            issuer=issuer,
            subject=subject,
            issued_at=issued_at,
            expires_at=issued_at + spec.validity_seconds,
            weight=spec.weight,
        )
        payload = encode(CredentialFields(code, issuer, subject, issued_at, credential.expires_at),
                         self.catalog)
        logger.debug("Prepared %s credential %s for %s", code, credential.id, subject)
        return IssuanceRequest(credential=credential, signable_payload=payload, digest=digest(payload))

    def accept(self, credential: Credential, signature: bytes) -> Credential:
        """Verify and track a signed credential. All-or-nothing.

        ``weight`` is not covered by the signature, so it must equal the
        catalog weight for the type.
        """
        spec = self.catalog.get(credential.type)
        if spec is None:
            raise UnknownCredentialTypeError(f"Unknown credential type: {credential.type}")
        if credential.weight != spec.weight:
            raise EncodingError(
                f"Weight {credential.weight!r} does not match catalog weight {spec.weight} "
                f"for {credential.type}")
        if not is_valid_subject(credential.subject):
            raise InvalidSubjectError(f"Malformed subject id: {credential.subject!r}")

        record = self.issuers.get(credential.issuer)
        if record is None or not self.issuers.is_authorized(credential.issuer, credential.type):
            raise UnauthorizedIssuerError(
                f"Issuer {credential.issuer} is not active or not authorized for {credential.type}")

        fields = CredentialFields(credential.type, credential.issuer, credential.subject,
                                  credential.issued_at, credential.expires_at)
        signed_digest = digest(encode(fields, self.catalog))
        if not verify(signed_digest, signature, record.public_key):
            logger.warning("Rejected credential %s: bad signature for issuer %s",
                           credential.id, credential.issuer)
            raise InvalidSignatureError(f"Signature does not match issuer {credential.issuer}")

        return self.store.track(replace(credential, signature=_raw_signature(signature).hex()))

    def submit(self, request: IssuanceRequest, signature: bytes) -> IssuanceResult:
        stored = self.accept(request.credential, signature)
        return IssuanceResult(credential=stored, signature=_raw_signature(signature))

    async def issue(self, subject: str, credential_type: Union[str, Enum], signer: Signer,
                    issuer: Optional[str] = None, now: Optional[int] = None) -> IssuanceResult:
        """Request, await the external signature, then submit.

        If the signer fails or is cancelled, nothing is tracked.
        """
        request = self.request_credential(subject, credential_type, issuer=issuer, now=now)
        started = time.monotonic()
        signature = await signer(request.digest)
        logger.debug("Signer returned for %s after %.3fs", request.credential.id,
                     time.monotonic() - started)
        return self.submit(request, signature)
