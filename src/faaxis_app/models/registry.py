from __future__ import annotations

import re
from typing import List, Optional, Union

from pydantic import Field, field_validator, model_validator

from .common import CamelModel

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

GLOBAL_FIRM = "Global"


class FirmDeal(CamelModel):
    firm: str
    upfront_min: float = Field(..., description="Upfront cash, percent of trailing revenue")
    upfront_max: float
    backend_min: float = Field(..., description="Backend potential, percent of trailing revenue")
    backend_max: float
    total_deal_min: float
    total_deal_max: float
    notes: str = ""

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_default(cls, value):
        return value or ""

    @model_validator(mode="after")
    def _check_ranges(self) -> "FirmDeal":
        for low, high in (
            ("upfront_min", "upfront_max"),
            ("backend_min", "backend_max"),
            ("total_deal_min", "total_deal_max"),
        ):
            if getattr(self, low) > getattr(self, high):
                raise ValueError(f"{low} must not exceed {high} for {self.firm}")
        return self


class FirmParameter(CamelModel):
    firm: str
    param_name: str
    param_value: Union[float, str]
    notes: str = ""

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_default(cls, value):
        return value or ""

    def as_float(self) -> Optional[float]:
        """Numeric value of the parameter; range strings such as ``"45-50%"`` give their midpoint."""
        if isinstance(self.param_value, (int, float)):
            return float(self.param_value)
        numbers = [float(part) for part in _NUMBER.findall(self.param_value.replace(",", ""))]
        if not numbers:
            return None
        if len(numbers) >= 2 and "-" in self.param_value.strip().lstrip("-"):
            return (numbers[0] + abs(numbers[1])) / 2
        return numbers[0]


class RegistrySnapshot(CamelModel):
    deals: List[FirmDeal] = Field(default_factory=list)
    parameters: List[FirmParameter] = Field(default_factory=list)
