"""
Age service for deterministic age and age-band derivation.
"""

from typing import Tuple
from datetime import date
import calendar

OUT_OF_RANGE = "out_of_range"

# Inclusive (min_age, max_age, label) buckets
AGE_BANDS = [
    (50, 54, "50 - 54"),
    (55, 59, "55 - 59"),
    (60, 64, "60 - 64"),
    (65, 69, "65 - 69"),
    (70, 74, "70 - 74"),
    (75, 79, "75 - 79"),
    (80, 84, "80 - 84"),
]

BAND_LABELS = [label for _, _, label in AGE_BANDS]

GRACE_PERIOD_DAYS = 30


def _anniversary(dob: date, year: int) -> date:
    """Birthday in the given year; 29 Feb rolls to 1 Mar in non-leap years."""
    if dob.month == 2 and dob.day == 29 and not calendar.isleap(year):
        return date(year, 3, 1)
    return date(year, dob.month, dob.day)


def calculate_age(dob: date, today: date) -> int:
    """
    Calculate age in whole years.

    One year is subtracted when today's month/day precedes the birth month/day.

    Args:
        dob: Date of birth
        today: Reference date (UTC calendar day)

    Returns:
        Age in years
    """
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def days_to_next_birthday(dob: date, today: date) -> int:
    """
    Calculate days until the next birthday on or after today.

    Args:
        dob: Date of birth
        today: Reference date (UTC calendar day)

    Returns:
        Non-negative day count, 0 when today is the birthday
    """
    next_birthday = _anniversary(dob, today.year)
    if next_birthday < today:
        next_birthday = _anniversary(dob, today.year + 1)
    return (next_birthday - today).days


def effective_age(dob: date, today: date) -> int:
    """
    Age used for pricing.

    Inside the grace window before a birthday the applicant is priced at the
    age they are about to reach.
    """
    base_age = calculate_age(dob, today)
    if days_to_next_birthday(dob, today) <= GRACE_PERIOD_DAYS:
        return base_age + 1
    return base_age


def age_band(age: int) -> str:
    """
    Map an age to its five-year band.

    Bands:
    - 50-54, 55-59, 60-64, 65-69, 70-74, 75-79, 80-84 (inclusive)
    - out_of_range otherwise

    Args:
        age: Age in years

    Returns:
        Band label
    """
    for min_age, max_age, label in AGE_BANDS:
        if min_age <= age <= max_age:
            return label
    return OUT_OF_RANGE


def effective_age_band(dob: date, today: date) -> Tuple[int, str]:
    """Return (effective_age, band) for a date of birth."""
    eff_age = effective_age(dob, today)
    return eff_age, age_band(eff_age)
