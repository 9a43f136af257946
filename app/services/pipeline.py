"""
Submission pipeline for quote leads.

Sequence per request:
1. Idempotency check (short-circuit on an existing submission)
2. Normalization, age/band/quote derivation, enum validation
3. Insert, guarded by the unique idempotency key
4. Stop on enum violations (record kept as sync_failed)
5. Upsert the CRM contact and record the sync outcome
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Protocol
import json
import logging

from app.exceptions import (
    CRMError,
    CRMSyncError,
    DuplicateKeyError,
    InvalidEnumError,
    PersistenceError,
    QuoteLeadError,
)
from app.models import FormSubmission, STATUS_RECEIVED, STATUS_SYNCED, STATUS_SYNC_FAILED
from app.schemas import DerivedFacts, NormalizedAnswers, QuoteRequest
from app.services.age import effective_age_band
from app.services.enum_validator import (
    ENUM_RULES,
    EnumSchema,
    EnumViolation,
    allowed_values,
    validate_enums,
)
from app.services.idempotency import SCHEMA_VERSION, build_idempotency_key, today_iso_date
from app.services.normalizer import normalize_email, normalize_submission
from app.services.pricing import calculate_household_quote, resolve_pricing_plan
from app.services.repository import SubmissionRepository

logger = logging.getLogger("quote_leads")

PAYMENT_PLAN_PROPERTY = "payment_plan__form"


class CRMClient(Protocol):
    """Contact operations the pipeline needs from the CRM."""

    def find_contact_by_email(self, email: str) -> Optional[str]: ...

    def create_contact(self, properties: Dict[str, Optional[str]]) -> str: ...

    def update_contact(self, contact_id: str, properties: Dict[str, Optional[str]]) -> str: ...


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of an accepted submission."""
    submission_id: str
    crm_contact_id: Optional[str]
    derived: DerivedFacts
    reused: bool = False


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_crm_properties(normalized: NormalizedAnswers) -> Dict[str, Optional[str]]:
    """Map normalized answers onto CRM contact property names."""
    values = normalized.model_dump(by_alias=True)
    properties: Dict[str, Optional[str]] = {
        "email": normalized.email,
        "phone": normalized.phone,
    }
    for rule in ENUM_RULES:
        properties[rule.crm_property] = values.get(rule.field)
    return properties


class SubmissionPipeline:
    """Request-scoped orchestrator for one quote lead submission."""

    def __init__(
        self,
        repository: SubmissionRepository,
        crm_client: Optional[CRMClient],
        enum_schema: EnumSchema,
        aliases: Mapping[str, Dict[str, str]],
        schema_version: str = SCHEMA_VERSION,
        clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.crm_client = crm_client
        self.enum_schema = enum_schema
        self.aliases = aliases
        self.schema_version = schema_version
        self.clock = clock

    def submit(self, request: QuoteRequest, request_id: str) -> SubmissionResult:
        """
        Process a submission end to end.

        Args:
            request: Raw submission
            request_id: Trace id stored with the submission

        Returns:
            SubmissionResult for new or previously stored submissions

        Raises:
            PersistenceError: Database unavailable
            InvalidEnumError: Answers violate the picklist schema
            CRMSyncError: Submission stored but CRM sync failed
        """
        day = today_iso_date(self.clock())
        idempotency_key = build_idempotency_key(
            normalize_email(request.email), self.schema_version, day
        )

        existing = self.repository.find_by_idempotency_key(idempotency_key)
        if existing is not None:
            logger.info(
                f"Returning stored submission | request_id={request_id} | "
                f"submission_id={existing.id} | status={existing.status}"
            )
            return self._result_from_record(existing)

        today = date.fromisoformat(day)
        effective_age, band_titular = effective_age_band(request.dob_titular, today)
        band_pareja = None
        if request.dob_pareja is not None:
            _, band_pareja = effective_age_band(request.dob_pareja, today)

        normalized = normalize_submission(request, band_titular, band_pareja, self.aliases)

        pricing_plan = resolve_pricing_plan(
            normalized.payment_plan,
            allowed_values(self.enum_schema, PAYMENT_PLAN_PROPERTY)
        )
        derived = DerivedFacts(
            effective_age=effective_age,
            age_band_titular=band_titular,
            age_band_pareja=band_pareja,
            quote=calculate_household_quote(band_titular, band_pareja, pricing_plan),
        )

        violations = validate_enums(normalized.model_dump(by_alias=True), self.enum_schema)
        crm_properties = build_crm_properties(normalized)

        record = self._build_record(
            request, request_id, idempotency_key, normalized, derived, crm_properties, violations
        )
        try:
            submission = self.repository.insert(record)
        except DuplicateKeyError:
            winner = self.repository.find_by_idempotency_key(idempotency_key)
            if winner is None:
                raise PersistenceError(
                    f"Duplicate key reported but no submission found for key {idempotency_key}"
                )
            logger.info(
                f"Concurrent duplicate resolved | request_id={request_id} | submission_id={winner.id}"
            )
            return self._result_from_record(winner)

        logger.info(
            f"Submission stored | request_id={request_id} | submission_id={submission.id} | "
            f"status={submission.status} | age_band={band_titular} | quote={derived.quote}"
        )

        if violations:
            logger.warning(
                f"Submission failed enum validation | request_id={request_id} | "
                f"fields={', '.join(v.field for v in violations)}"
            )
            raise InvalidEnumError(submission.id, violations)

        contact_id = self._sync_contact(submission.id, normalized.email, crm_properties, request_id)
        return SubmissionResult(
            submission_id=submission.id,
            crm_contact_id=contact_id,
            derived=derived,
        )

    def _build_record(
        self,
        request: QuoteRequest,
        request_id: str,
        idempotency_key: str,
        normalized: NormalizedAnswers,
        derived: DerivedFacts,
        crm_properties: Dict[str, Optional[str]],
        violations: List[EnumViolation]
    ) -> FormSubmission:
        answers = request.model_dump(mode="json", by_alias=True)
        error = None
        if violations:
            error = {"invalid_enums": [v.to_dict() for v in violations]}

        return FormSubmission(
            idempotency_key=idempotency_key,
            schema_version=self.schema_version,
            page_url=answers.get("pageUrl"),
            referrer=answers.get("referrer"),
            utm_source=request.utm_source,
            utm_medium=request.utm_medium,
            utm_campaign=request.utm_campaign,
            utm_term=request.utm_term,
            utm_content=request.utm_content,
            gclid=request.gclid,
            fbclid=request.fbclid,
            answers_json=json.dumps(answers),
            normalized_json=json.dumps(normalized.model_dump(by_alias=True)),
            derived_json=json.dumps(derived.model_dump(by_alias=True)),
            status=STATUS_SYNC_FAILED if violations else STATUS_RECEIVED,
            crm_payload_json=json.dumps(crm_properties),
            error_json=json.dumps(error) if error else None,
            request_id=request_id,
        )

    def _sync_contact(
        self,
        submission_id: str,
        email: str,
        properties: Dict[str, Optional[str]],
        request_id: str
    ) -> str:
        """Upsert the CRM contact and record the sync outcome on the submission."""
        try:
            if self.crm_client is None:
                raise CRMError("CRM client is not configured")

            contact_id = self.crm_client.find_contact_by_email(email)
            if contact_id:
                contact_id = self.crm_client.update_contact(contact_id, properties)
            else:
                contact_id = self.crm_client.create_contact(properties)

            self.repository.update(
                submission_id,
                status=STATUS_SYNCED,
                crm_contact_id=contact_id,
                error_json=None,
            )
        except Exception as e:
            message = e.message if isinstance(e, QuoteLeadError) else f"{type(e).__name__}: {e}"
            logger.error(
                f"CRM sync failed | request_id={request_id} | "
                f"submission_id={submission_id} | error={message}"
            )
            try:
                self.repository.update(
                    submission_id,
                    status=STATUS_SYNC_FAILED,
                    error_json=json.dumps({"message": message}),
                )
            except PersistenceError as update_error:
                logger.error(
                    f"Failed to record sync failure | request_id={request_id} | "
                    f"submission_id={submission_id} | error={update_error.message}"
                )
            raise CRMSyncError(submission_id, message, e) from e

        logger.info(
            f"Submission synced | request_id={request_id} | "
            f"submission_id={submission_id} | contact_id={contact_id}"
        )
        return contact_id

    @staticmethod
    def _result_from_record(record: FormSubmission) -> SubmissionResult:
        return SubmissionResult(
            submission_id=record.id,
            crm_contact_id=record.crm_contact_id,
            derived=DerivedFacts.model_validate(json.loads(record.derived_json)),
            reused=True,
        )
