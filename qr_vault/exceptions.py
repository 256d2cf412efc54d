"""Custom exception hierarchy for qr-vault."""

NOT_ACCESSIBLE = "Not found"


class QrVaultError(Exception):
    """Base exception for all qr-vault errors."""


class EntityNotFoundError(QrVaultError):
    """Raised when a referenced entity does not exist or may not be disclosed."""


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class ForbiddenError(QrVaultError):
    """Raised when a non-owner attempts an owner-only operation."""


class ConflictError(QrVaultError):
    """Raised when an entity is in an invalid state for the operation."""

    def __init__(self, message: str, revoked: bool = False) -> None:
        super().__init__(message)
        self.revoked = revoked


class ValidationError(QrVaultError):
    """Raised when a request payload is malformed."""


class ConfigurationError(QrVaultError):
    """Raised when configuration is invalid or missing."""


class SinkError(QrVaultError):
    """Raised when an audit sink operation fails."""


class TransportError(QrVaultError):
    """Raised when the client cannot reach the identifier service."""
