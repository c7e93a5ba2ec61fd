from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from .models.common import CamelModel, TransitionPreference
from .models.results import CalculatorResults, FormattedResults


class CalculationRequest(CamelModel):
    advisor: Dict[str, Any] = Field(..., description="Raw calculator form values")
    selected_firms: List[str] = Field(default_factory=list, description="Firm names as typed or picked by the advisor")
    previous_total_deal: Optional[float] = Field(default=None, description="Total deal of the previous calculation, for the change indicator")


class CalculationResponse(CamelModel):
    result: CalculatorResults
    formatted: FormattedResults


class FirmNameResponse(CamelModel):
    name: str
    key: str
    display_name: str
    category: TransitionPreference
