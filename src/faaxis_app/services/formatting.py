"""Number parsing and display formatting shared by the form boundary and the web client."""
from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Union

from ..models.results import CalculatorResults, FormattedResults

Number = Union[int, float]

_LEADING_NUMBER = re.compile(r"^[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")
_STRIP = re.compile(r"[,\s$%]")


def round_half_up(value: float, places: int = 0) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_currency(value: float) -> float:
    """Whole dollars, halves rounded away from zero."""
    return round_half_up(value, 0) + 0.0


def parse_formatted_number(value: Any) -> Optional[float]:
    """Parse user input such as ``"1,200,000"``, ``"$450000"`` or ``"85%"``.

    Returns None when no number can be read, mirroring ``parseFloat`` giving NaN.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    text = _STRIP.sub("", str(value))
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def _number_text(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_number_with_commas(value: Union[Number, str]) -> str:
    if isinstance(value, str):
        parsed = parse_formatted_number(value.replace(",", ""))
        if parsed is None:
            return ""
        value = parsed
    text = _number_text(value)
    sign = ""
    if text.startswith("-"):
        sign, text = "-", text[1:]
    whole, dot, fraction = text.partition(".")
    return f"{sign}{int(whole):,}{dot}{fraction}"


def format_currency(value: Union[Number, str]) -> str:
    formatted = format_number_with_commas(value)
    if not formatted:
        return ""
    if formatted.startswith("-"):
        return f"-${formatted[1:]}"
    return f"${formatted}"


def format_percentage(value: Union[Number, str]) -> str:
    if isinstance(value, str):
        parsed = parse_formatted_number(value)
        if parsed is None:
            return ""
        value = parsed
    return f"{_number_text(value)}%"


def format_money(value: float) -> str:
    """``$X.XM`` from one million, ``$XXXK`` from 100K, otherwise whole dollars."""
    amount = round_currency(abs(value))
    sign = "-" if value < 0 and amount > 0 else ""
    if amount >= 1_000_000 or round_half_up(amount / 1000) >= 1000:
        return f"{sign}${round_half_up(amount / 1_000_000, 1):.1f}M"
    if amount >= 100_000:
        return f"{sign}${round_half_up(amount / 1000):.0f}K"
    return f"{sign}${amount:.0f}"


def format_results(results: CalculatorResults) -> FormattedResults:
    return FormattedResults(
        total_deal=format_money(results.metrics.total_deal.value),
        recruiting_revenue=format_money(results.metrics.recruiting_revenue.value),
        total_comp_delta=format_money(results.metrics.total_comp_delta.value),
        guaranteed_upfront={key: format_money(value) for key, value in results.guaranteed_upfront.items()},
    )
