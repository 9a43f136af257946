"""
Idempotency key generation for form submissions.
"""

from datetime import datetime, timezone
from typing import Optional
import hashlib

SCHEMA_VERSION = "v1"


def sha256(value: str) -> str:
    """Hex sha256 digest of a string."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def today_iso_date(now: Optional[datetime] = None) -> str:
    """UTC calendar day (YYYY-MM-DD) of the given instant, defaulting to now."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date().isoformat()


def build_idempotency_key(email: str, schema_version: str, day: str) -> str:
    """
    Build the deduplication key for a submission.

    Same email, schema version and day always yield the same key,
    whatever else differs between the submissions.
    """
    return sha256(f"{email.lower()}|{schema_version}|{day}")
