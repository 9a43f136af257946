"""
Dependencies for building the submission pipeline per request.
"""

from fastapi import Depends
from typing import Callable, Generator, Optional
from datetime import datetime
import logging

from sqlmodel import Session

from app.cache import config_cache
from app.db import get_session
from app.exceptions import CRMError
from app.services.crm import HubSpotClient
from app.services.pipeline import CRMClient, SubmissionPipeline, utc_now
from app.services.repository import SubmissionRepository

logger = logging.getLogger("quote_leads")


def get_clock() -> Callable[[], datetime]:
    """Clock used for the idempotency day and age calculations."""
    return utc_now


def get_crm_client() -> Generator[Optional[CRMClient], None, None]:
    """
    Build a HubSpot client from the environment.

    Yields None when credentials are missing; the pipeline then records
    the submission as sync_failed instead of failing the whole request.
    """
    try:
        client = HubSpotClient.from_env()
    except CRMError as e:
        logger.error(f"HubSpot client unavailable | error={e.message}")
        yield None
        return

    try:
        yield client
    finally:
        client.close()


def get_submission_pipeline(
    session: Session = Depends(get_session),
    crm_client: Optional[CRMClient] = Depends(get_crm_client),
    clock: Callable[[], datetime] = Depends(get_clock)
) -> SubmissionPipeline:
    """Assemble the pipeline with the cached enum schema and alias tables."""
    return SubmissionPipeline(
        repository=SubmissionRepository(session),
        crm_client=crm_client,
        enum_schema=config_cache.get_enum_schema(),
        aliases=config_cache.get_aliases(),
        clock=clock,
    )
