"""
Pydantic schemas for request/response validation.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl
from typing import Optional, List, Literal, Any
from datetime import date

DISCOVERY_SOURCES = ("facebook", "google", "referido", "otro")


class CamelModel(BaseModel):
    """Base model accepting both snake_case names and camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


# Request schemas - flat web form payload
class QuoteRequest(CamelModel):
    """Raw quote lead submission from the web form."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    # Contact
    email: EmailStr
    phone: Optional[str] = None

    # Answers
    para_quien: str = Field(alias="paraQuien", description="Who the membership is for")
    dob_titular: date = Field(alias="dobTitular", description="Primary applicant date of birth (YYYY-MM-DD)")
    dob_pareja: Optional[date] = Field(None, alias="dobPareja", description="Secondary applicant date of birth (YYYY-MM-DD)")
    payment_plan: str = Field(alias="paymentPlan")
    has_insurance: str = Field(alias="hasInsurance")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    benefit_interest: Optional[str] = Field(None, alias="benefitInterest")
    coverage_start: Optional[str] = Field(None, alias="coverageStart")
    discovery_source: Optional[Literal["facebook", "google", "referido", "otro"]] = Field(None, alias="discoverySource")
    wants_call: Optional[bool] = Field(None, alias="wantsCall")
    insurer_name: Optional[str] = Field(None, alias="insurerName")
    insurance_expiry: Optional[str] = Field(None, alias="insuranceExpiry")
    group_size: Optional[int] = Field(None, gt=0, alias="groupSize")
    group_ages_text: Optional[str] = Field(None, alias="groupAgesText")

    # Marketing attribution
    page_url: Optional[HttpUrl] = Field(None, alias="pageUrl")
    referrer: Optional[HttpUrl] = None
    utm_source: Optional[str] = Field(None, alias="utmSource")
    utm_medium: Optional[str] = Field(None, alias="utmMedium")
    utm_campaign: Optional[str] = Field(None, alias="utmCampaign")
    utm_term: Optional[str] = Field(None, alias="utmTerm")
    utm_content: Optional[str] = Field(None, alias="utmContent")
    gclid: Optional[str] = None
    fbclid: Optional[str] = None


class NormalizedAnswers(CamelModel):
    """Canonical form of the submitted answers."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    email: str
    phone: Optional[str] = None
    para_quien: Optional[str] = Field(None, alias="paraQuien")
    age_band_titular: str = Field(alias="ageBandTitular")
    age_band_pareja: Optional[str] = Field(None, alias="ageBandPareja")
    payment_plan: Optional[str] = Field(None, alias="paymentPlan")
    has_insurance: Optional[str] = Field(None, alias="hasInsurance")
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    benefit_interest: Optional[str] = Field(None, alias="benefitInterest")
    coverage_start: Optional[str] = Field(None, alias="coverageStart")
    discovery_source: Optional[str] = Field(None, alias="discoverySource")
    wants_call: Optional[str] = Field(None, alias="wantsCall", description="true/false as CRM picklist value")
    insurer_name: Optional[str] = Field(None, alias="insurerName")
    insurance_expiry: Optional[str] = Field(None, alias="insuranceExpiry")
    group_size: Optional[int] = Field(None, alias="groupSize")
    group_ages_text: Optional[str] = Field(None, alias="groupAgesText")


class DerivedFacts(CamelModel):
    """Facts computed once per submission."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    effective_age: int = Field(alias="effectiveAge")
    age_band_titular: str = Field(alias="ageBandTitular")
    age_band_pareja: Optional[str] = Field(None, alias="ageBandPareja")
    quote: Optional[int] = None


class EnumViolationDetail(BaseModel):
    """Single picklist violation."""
    field: str
    value: Optional[str]
    allowed: List[str]


# Response schemas
class QuoteAccepted(BaseModel):
    """Accepted submission response."""
    ok: Literal[True] = True
    quote_id: str
    hubspot_contact_id: Optional[str]
    derived: DerivedFacts


class ErrorBody(BaseModel):
    """Structured error payload."""
    code: str
    details: List[Any]


class QuoteError(BaseModel):
    """Failed submission response."""
    ok: Literal[False] = False
    error: Any = Field(description="Error code or structured error body")
    request_id: str
