"""
Quotes router for handling web form quote lead submissions.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from app.schemas import QuoteRequest, QuoteAccepted, QuoteError, ErrorBody
from app.deps import get_submission_pipeline
from app.exceptions import CRMSyncError, InvalidEnumError, PersistenceError
from app.services.normalizer import mask_email, mask_phone
from app.services.pipeline import SubmissionPipeline

logger = logging.getLogger("quote_leads")

router = APIRouter()


def error_response(status_code: int, error, request_id: str) -> JSONResponse:
    """Build the {ok: false} error envelope."""
    body = QuoteError(error=error, request_id=request_id)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.post(
    "/quotes",
    response_model=QuoteAccepted,
    responses={400: {"model": QuoteError}, 500: {"model": QuoteError}, 502: {"model": QuoteError}},
)
def create_quote(
    request: QuoteRequest,
    request_obj: Request,
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline)
):
    """
    Submit a quote lead.

    This endpoint:
    1. Returns the stored submission for a same-day duplicate
    2. Normalizes answers and derives age bands and quote
    3. Validates picklist answers against the CRM schema
    4. Stores the submission
    5. Syncs the contact to HubSpot
    """
    request_id = getattr(request_obj.state, "request_id", "unknown")
    logger.info(
        f"Quote request received | request_id={request_id} | "
        f"email={mask_email(request.email)} | phone={mask_phone(request.phone)}"
    )

    try:
        result = pipeline.submit(request, request_id)
    except InvalidEnumError as e:
        return error_response(
            400,
            ErrorBody(code="invalid_enum", details=[v.to_dict() for v in e.violations]).model_dump(),
            request_id,
        )
    except PersistenceError as e:
        logger.error(f"Database error | request_id={request_id} | error={e.message}")
        return error_response(500, "database_error", request_id)
    except CRMSyncError:
        return error_response(502, "hubspot_error", request_id)

    return QuoteAccepted(
        quote_id=result.submission_id,
        hubspot_contact_id=result.crm_contact_id,
        derived=result.derived,
    )
