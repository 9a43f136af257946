"""
Enum validation service for CRM picklist fields.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

# CRM property name -> allowed picklist values
EnumSchema = Mapping[str, Tuple[str, ...]]


@dataclass(frozen=True)
class EnumRule:
    """Picklist constraint for one normalized answer field."""
    field: str
    crm_property: str
    required: bool


@dataclass(frozen=True)
class EnumViolation:
    """A field whose value is missing or not in the allowed set."""
    field: str
    value: Optional[str]
    allowed: Tuple[str, ...]

    def to_dict(self) -> Dict[str, object]:
        return {"field": self.field, "value": self.value, "allowed": list(self.allowed)}


ENUM_RULES: Tuple[EnumRule, ...] = (
    EnumRule("paraQuien", "para_quien_es_la_membresia__form", True),
    EnumRule("paymentPlan", "payment_plan__form", True),
    EnumRule("hasInsurance", "has_health_insurance__form", True),
    EnumRule("paymentMethod", "metodo_de_pago", False),
    EnumRule("benefitInterest", "beneficio_de_interes", False),
    EnumRule("coverageStart", "preferred_coverage_start__form", False),
    EnumRule("ageBandTitular", "cual_es_tu_edad__form", True),
    EnumRule("ageBandPareja", "cual_es_es_la_edad_del_segundo_cotizando_", False),
    EnumRule("wantsCall", "agendocalendario", False),
)


def allowed_values(schema: EnumSchema, crm_property: str) -> Tuple[str, ...]:
    """Allowed values for a CRM property; unknown properties allow nothing."""
    return tuple(schema.get(crm_property, ()))


def validate_enums(
    values: Mapping[str, Optional[str]],
    schema: EnumSchema,
    rules: Sequence[EnumRule] = ENUM_RULES
) -> List[EnumViolation]:
    """
    Validate normalized answers against the picklist schema.

    Every rule is evaluated; violations are collected rather than
    raised on the first failure.

    Rules:
    - required field: absent or disallowed value is a violation
    - optional field: only a present, disallowed value is a violation

    Args:
        values: Normalized answers keyed by field name
        schema: CRM property -> allowed values
        rules: Field constraints to apply

    Returns:
        List of violations, empty when the submission is valid
    """
    violations = []

    for rule in rules:
        value = values.get(rule.field)
        allowed = allowed_values(schema, rule.crm_property)

        if not value:
            if rule.required:
                violations.append(EnumViolation(rule.field, None, allowed))
            continue

        if value not in allowed:
            violations.append(EnumViolation(rule.field, value, allowed))

    return violations
