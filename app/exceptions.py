"""
Exception hierarchy for the quote lead pipeline.

Services raise these; the quotes router maps them to HTTP responses.
"""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.services.enum_validator import EnumViolation


class QuoteLeadError(Exception):
    """Base exception for all quote lead errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class PersistenceError(QuoteLeadError):
    """Persistence backend failed or is unavailable."""


class DuplicateKeyError(PersistenceError):
    """A submission with the same idempotency key already exists."""

    def __init__(self, idempotency_key: str, original_error: Optional[Exception] = None):
        super().__init__(f"Duplicate idempotency key: {idempotency_key}", original_error)
        self.idempotency_key = idempotency_key


class CRMError(QuoteLeadError):
    """CRM request failed or was rejected."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error)
        self.status_code = status_code


class InvalidEnumError(QuoteLeadError):
    """Normalized answers violate the CRM picklist schema."""

    def __init__(self, submission_id: str, violations: List["EnumViolation"]):
        fields = ", ".join(v.field for v in violations)
        super().__init__(f"Invalid enum values: {fields}")
        self.submission_id = submission_id
        self.violations = violations


class CRMSyncError(QuoteLeadError):
    """Submission was stored but could not be synced to the CRM."""

    def __init__(self, submission_id: str, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, original_error)
        self.submission_id = submission_id
