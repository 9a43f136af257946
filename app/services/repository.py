"""
Persistence service for stored form submissions.
"""

from typing import Any, Optional
from datetime import datetime, timezone
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.exceptions import DuplicateKeyError, PersistenceError
from app.models import FormSubmission

logger = logging.getLogger("quote_leads")

UPDATABLE_FIELDS = {"status", "crm_contact_id", "crm_payload_json", "error_json"}


class SubmissionRepository:
    """Form submission storage backed by a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_idempotency_key(self, idempotency_key: str) -> Optional[FormSubmission]:
        """
        Look up a submission by idempotency key.

        Raises:
            PersistenceError: If the query fails
        """
        try:
            return self.session.query(FormSubmission).filter(
                FormSubmission.idempotency_key == idempotency_key
            ).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Submission lookup failed: {e}", e) from e

    def insert(self, submission: FormSubmission) -> FormSubmission:
        """
        Insert a new submission.

        The unique index on idempotency_key decides concurrent races: the
        losing insert is rolled back and reported as DuplicateKeyError.

        Raises:
            DuplicateKeyError: If the idempotency key already exists
            PersistenceError: If the insert fails for any other reason
        """
        try:
            self.session.add(submission)
            self.session.commit()
            self.session.refresh(submission)
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateKeyError(submission.idempotency_key, e) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Submission insert failed: {e}", e) from e
        return submission

    def update(self, submission_id: str, **fields: Any) -> None:
        """
        Update the sync fields of a submission.

        Only status, CRM contact id, CRM payload and error detail may change
        after insert.

        Raises:
            ValueError: If a non-updatable field is passed
            PersistenceError: If the submission is missing or the update fails
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {', '.join(sorted(unknown))}")

        try:
            submission = self.session.get(FormSubmission, submission_id)
            if submission is None:
                raise PersistenceError(f"Submission {submission_id} not found")

            for name, value in fields.items():
                setattr(submission, name, value)
            submission.updated_at = datetime.now(timezone.utc)

            self.session.add(submission)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Submission update failed: {e}", e) from e
