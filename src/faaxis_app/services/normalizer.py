from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ..errors import ProfileValidationError
from ..models.advisor import AdvisorInfo
from .formatting import parse_formatted_number

REQUIRED_NUMBERS = ("aum", "revenue", "fee_based_percentage")
OPTIONAL_NUMBERS = ("client_retention_rate", "current_payout", "target_annual_growth_rate")
INTEGER_FIELDS = {"households": 0, "team_size": 0, "years_in_industry": None}
FLAGS = (
    "deferred_comp",
    "on_a_deal",
    "banking",
    "international",
    "lending",
    "smas",
    "has_team",
    "include_independent",
)
TEXT_FIELDS = ("city", "state", "current_firm", "transition_preference", "retirement_timeline")

_TRUE = {"true", "yes", "on", "1", "y"}
_FALSE = {"false", "no", "off", "0", "n", ""}


def _lookup(raw: Mapping[str, Any], field: str) -> Any:
    if field in raw:
        return raw[field]
    return raw.get(to_camel(field))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_flag(value: Any) -> Optional[bool]:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return None


def _parse_countries(value: Any) -> List[str]:
    if _is_blank(value):
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return [str(item).strip() for item in items if str(item).strip()]


def _error_field(error: Mapping[str, Any]) -> str:
    location = [part for part in error.get("loc", ()) if isinstance(part, str)]
    if not location:
        return "advisor"
    return to_camel(location[0]) if "_" in location[0] else location[0]


def normalize_advisor_profile(raw: Mapping[str, Any]) -> AdvisorInfo:
    """Turn raw calculator form values into a validated AdvisorInfo.

    Numbers may arrive as strings with thousands separators, a leading ``$``
    or a trailing ``%``. Keys may be camelCase (as posted by the web form) or
    snake_case. Every problem found is reported at once through
    ``ProfileValidationError.errors``, keyed by the camelCase field name.
    """
    errors: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    for field in REQUIRED_NUMBERS:
        value = _lookup(raw, field)
        if _is_blank(value):
            errors[to_camel(field)] = "is required"
            continue
        number = parse_formatted_number(value)
        if number is None:
            errors[to_camel(field)] = f"is not a number: {value!r}"
            continue
        values[field] = number

    for field in OPTIONAL_NUMBERS:
        value = _lookup(raw, field)
        if _is_blank(value):
            continue
        number = parse_formatted_number(value)
        if number is None:
            errors[to_camel(field)] = f"is not a number: {value!r}"
            continue
        values[field] = number

    for field, default in INTEGER_FIELDS.items():
        value = _lookup(raw, field)
        if _is_blank(value):
            if default is not None:
                values[field] = default
            continue
        number = parse_formatted_number(value)
        if number is None:
            errors[to_camel(field)] = f"is not a number: {value!r}"
            continue
        values[field] = int(number)

    for field in FLAGS:
        flag = _parse_flag(_lookup(raw, field))
        if flag is None:
            errors[to_camel(field)] = "must be true or false"
            continue
        values[field] = flag

    for field in TEXT_FIELDS:
        value = _lookup(raw, field)
        if _is_blank(value):
            if field in ("city", "state"):
                errors[to_camel(field)] = "is required"
            continue
        values[field] = str(value).strip()

    countries = _parse_countries(_lookup(raw, "international_countries"))
    if countries:
        values["international_countries"] = countries

    if errors:
        raise ProfileValidationError(errors)

    try:
        return AdvisorInfo(**values)
    except ValidationError as e:
        raise ProfileValidationError(
            {_error_field(error): error["msg"] for error in e.errors()}
        ) from e
