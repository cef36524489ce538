"""credscore — Identity-backed trust score from signed issuer credentials."""

from credscore.catalog import (
    CredentialCatalog, CredentialType, CredentialTypeSpec, default_catalog,
)
from credscore.codec import CredentialFields, encode, digest, credential_hash
from credscore.signature import verify, sign_digest
from credscore.identity import IssuerIdentity, is_valid_subject
from credscore.issuers import IssuerRecord, IssuerRegistry
from credscore.store import (
    Credential, CredentialStatus, CredentialStore, MAX_CREDENTIALS_PER_SUBJECT, RevocationReason,
    StoreStats, status_of,
)
from credscore.scoring import (
    BASE_SCORE, Contribution, ScoreAggregator, SubjectScoreView, bounded_score, decay_factor,
)
from credscore.collateral import CollateralPolicy, CollateralTier, collateral_factor, tier_for_score
from credscore.issuance import IssuanceRequest, IssuanceRequestHandler, IssuanceResult
from credscore.engine import TrustScoreEngine
from credscore.errors import (
    CredScoreError, EncodingError, UnknownCredentialTypeError, InvalidSubjectError,
    InvalidSignatureError, UnauthorizedIssuerError, DuplicateIdError,
    NotFoundError, AlreadyRevokedError, CredentialLimitError,
)

__all__ = [
    "CredentialCatalog",
    "CredentialType",
    "CredentialTypeSpec",
    "default_catalog",
    "CredentialFields",
    "encode",
    "digest",
    "credential_hash",
    "verify",
    "sign_digest",
    "IssuerIdentity",
    "is_valid_subject",
    "IssuerRecord",
    "IssuerRegistry",
    "Credential",
    "CredentialStatus",
    "CredentialStore",
    "MAX_CREDENTIALS_PER_SUBJECT",
    "RevocationReason",
    "StoreStats",
    "status_of",
    "BASE_SCORE",
    "Contribution",
    "ScoreAggregator",
    "SubjectScoreView",
    "bounded_score",
    "decay_factor",
    "CollateralPolicy",
    "CollateralTier",
    "collateral_factor",
    "tier_for_score",
    "IssuanceRequest",
    "IssuanceRequestHandler",
    "IssuanceResult",
    "TrustScoreEngine",
    "CredScoreError",
    "EncodingError",
    "UnknownCredentialTypeError",
    "InvalidSubjectError",
    "InvalidSignatureError",
    "UnauthorizedIssuerError",
    "DuplicateIdError",
    "NotFoundError",
    "AlreadyRevokedError",
    "CredentialLimitError",
]
