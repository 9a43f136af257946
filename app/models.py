"""
SQLModel database models for the quote lead API.
"""

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone
import uuid

STATUS_RECEIVED = "received"
STATUS_SYNCED = "synced"
STATUS_SYNC_FAILED = "sync_failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class FormSubmission(SQLModel, table=True):
    """One logical quote lead, unique per idempotency key."""
    __tablename__ = "form_submission"

    id: str = Field(default_factory=_new_id, primary_key=True)
    idempotency_key: str = Field(unique=True, index=True)
    schema_version: str

    # Marketing attribution
    page_url: Optional[str] = None
    referrer: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    gclid: Optional[str] = None
    fbclid: Optional[str] = None

    answers_json: str  # JSON string
    normalized_json: str  # JSON string
    derived_json: str  # JSON string

    status: str = Field(default=STATUS_RECEIVED, index=True)
    crm_contact_id: Optional[str] = None
    crm_payload_json: Optional[str] = None  # JSON string
    error_json: Optional[str] = None  # JSON string

    request_id: str
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
