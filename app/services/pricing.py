"""
Pricing service for calculating membership quotes by age band.
"""

from typing import Dict, Optional, Iterable

from app.services.age import OUT_OF_RANGE

MONTHLY = "monthly"
ANNUAL = "annual"

ANNUAL_DISCOUNT = 0.9

# Monthly base price per age band, whole currency units
MONTHLY_PRICE_TABLE: Dict[str, int] = {
    "50 - 54": 899,
    "55 - 59": 999,
    "60 - 64": 1199,
    "65 - 69": 1399,
    "70 - 74": 1599,
    "75 - 79": 1799,
    "80 - 84": 1999,
}

# CRM payment plan value -> pricing plan
PAYMENT_PLAN_MAP: Dict[str, str] = {
    "monthly": MONTHLY,
    "yearly": ANNUAL,
}


def get_quote_by_band(band: str, payment_plan: str) -> Optional[int]:
    """
    Calculate the quote for a single applicant.

    Formula:
    - monthly: base price
    - annual: round(base * 12 * 0.9)

    Args:
        band: Age band label
        payment_plan: monthly or annual

    Returns:
        Quote in whole currency units, or None if the band or plan is not priced
    """
    if band == OUT_OF_RANGE:
        return None

    monthly_price = MONTHLY_PRICE_TABLE.get(band)
    if monthly_price is None:
        return None

    if payment_plan == ANNUAL:
        return int(round(monthly_price * 12 * ANNUAL_DISCOUNT))
    if payment_plan == MONTHLY:
        return monthly_price
    return None


def resolve_pricing_plan(
    form_value: Optional[str],
    allowed_values: Iterable[str]
) -> Optional[str]:
    """
    Map the submitted payment plan to a pricing plan.

    Returns None when the value is absent, not an allowed CRM value,
    or has no pricing counterpart.
    """
    if not form_value or form_value not in allowed_values:
        return None
    return PAYMENT_PLAN_MAP.get(form_value)


def calculate_household_quote(
    primary_band: str,
    secondary_band: Optional[str],
    payment_plan: Optional[str]
) -> Optional[int]:
    """
    Calculate the combined quote for the primary and optional secondary applicant.

    The whole quote is None if the plan is missing or any required
    applicant cannot be priced. A partial price is never returned.

    Args:
        primary_band: Primary applicant age band
        secondary_band: Secondary applicant age band, None if not quoted
        payment_plan: Pricing plan from resolve_pricing_plan

    Returns:
        Total quote or None
    """
    if payment_plan is None:
        return None

    primary_quote = get_quote_by_band(primary_band, payment_plan)
    if primary_quote is None:
        return None

    secondary_quote = 0
    if secondary_band is not None:
        secondary_quote = get_quote_by_band(secondary_band, payment_plan)
        if secondary_quote is None:
            return None

    return primary_quote + secondary_quote
