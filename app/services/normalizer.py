"""
Normalization service for free-text form answers.
"""

from typing import Dict, Optional, Mapping
import re
import unicodedata

from app.schemas import QuoteRequest, NormalizedAnswers

_WHITESPACE = re.compile(r"\s+")
_PHONE_STRIP = re.compile(r"[\s()\-]")


def normalize_input(value: Optional[str]) -> Optional[str]:
    """Trim a value; missing and empty-after-trim both become None."""
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def normalize_alias_key(value: str) -> str:
    """
    Build the lookup key for alias tables.

    Accents are stripped, case is folded and whitespace collapsed, so
    "Para mí y  mi PAREJA" and "para mi y mi pareja" share a key.
    """
    decomposed = unicodedata.normalize("NFD", value)
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", without_marks.lower()).strip()


def apply_alias(value: Optional[str], aliases: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Resolve a value through an alias table.

    Unaliased values pass through with their original casing.
    """
    if not value:
        return None
    if not aliases:
        return value
    return aliases.get(normalize_alias_key(value), value)


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Strip formatting from a phone number.

    A leading international 00 prefix becomes +. Format is not validated.
    """
    if not phone:
        return None
    normalized = _PHONE_STRIP.sub("", phone.strip())
    if not normalized:
        return None
    if normalized.startswith("00"):
        return f"+{normalized[2:]}"
    return normalized


def normalize_email(email: str) -> str:
    """Canonical email: trimmed and lowercased."""
    return email.strip().lower()


def mask_email(email: str) -> str:
    """Mask an email for log output."""
    local, _, domain = email.partition("@")
    if not local or not domain:
        return "invalid-email"

    if len(local) <= 2:
        masked_local = f"{local[0]}***"
    else:
        masked_local = f"{local[0]}***{local[-1]}"

    domain_parts = domain.split(".")
    tld = ".".join(domain_parts[1:]) or "com"
    return f"{masked_local}@{domain_parts[0][:1]}***.{tld}"


def mask_phone(phone: Optional[str]) -> Optional[str]:
    """Mask a phone number for log output, keeping the last two digits."""
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    if len(digits) <= 2:
        return "***"
    return f"***{digits[-2:]}"


def normalize_submission(
    request: QuoteRequest,
    age_band_titular: str,
    age_band_pareja: Optional[str],
    aliases: Mapping[str, Dict[str, str]]
) -> NormalizedAnswers:
    """
    Normalize a raw submission into canonical answers.

    Args:
        request: Raw submission
        age_band_titular: Primary applicant age band
        age_band_pareja: Secondary applicant age band, None if not quoted
        aliases: Alias tables keyed by answer field name

    Returns:
        Normalized answers
    """
    wants_call = None
    if request.wants_call is not None:
        wants_call = "true" if request.wants_call else "false"

    return NormalizedAnswers(
        email=normalize_email(request.email),
        phone=normalize_phone(request.phone),
        para_quien=apply_alias(normalize_input(request.para_quien), aliases.get("paraQuien")),
        age_band_titular=age_band_titular,
        age_band_pareja=age_band_pareja,
        payment_plan=apply_alias(normalize_input(request.payment_plan), aliases.get("paymentPlan")),
        has_insurance=apply_alias(normalize_input(request.has_insurance), aliases.get("hasInsurance")),
        payment_method=normalize_input(request.payment_method),
        benefit_interest=normalize_input(request.benefit_interest),
        coverage_start=apply_alias(normalize_input(request.coverage_start), aliases.get("coverageStart")),
        discovery_source=request.discovery_source,
        wants_call=wants_call,
        insurer_name=normalize_input(request.insurer_name),
        insurance_expiry=normalize_input(request.insurance_expiry),
        group_size=request.group_size,
        group_ages_text=normalize_input(request.group_ages_text),
    )
