"""credscore.errors — Exception taxonomy for credential acceptance and lifecycle.

Every error raised by the engine derives from CredScoreError so callers can
catch the whole family in one place. None of these are retried internally.
"""


class CredScoreError(Exception):
    """Base class for all credscore errors."""


class EncodingError(CredScoreError):
    """A credential field is outside its declared domain."""


class UnknownCredentialTypeError(EncodingError):
    """The credential type is not in the catalog."""


class InvalidSubjectError(EncodingError):
    """The subject identity is not well-formed."""


class InvalidSignatureError(CredScoreError):
    """Signature verification failed for the claimed issuer."""


class UnauthorizedIssuerError(CredScoreError):
    """Issuer is unknown, inactive, or not authorized for the credential type."""


class DuplicateIdError(CredScoreError):
    """A credential with this id is already tracked."""

    def __init__(self, credential_id: str):
        super().__init__(f"Credential {credential_id} already exists")
        self.credential_id = credential_id


class NotFoundError(CredScoreError):
    """No credential with this id."""

    def __init__(self, credential_id: str):
        super().__init__(f"Credential {credential_id} not found")
        self.credential_id = credential_id


class AlreadyRevokedError(CredScoreError):
    """The credential was revoked before."""

    def __init__(self, credential_id: str):
        super().__init__(f"Credential {credential_id} already revoked")
        self.credential_id = credential_id


class CredentialLimitError(CredScoreError):
    """The subject already holds the maximum number of credentials."""

    def __init__(self, subject: str, limit: int):
        super().__init__(f"Subject {subject} already holds {limit} credentials")
        self.subject = subject
        self.limit = limit
