from __future__ import annotations

from typing import List, Optional

from pydantic import ConfigDict, Field, confloat, conint, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .common import CamelModel, RetirementTimeline, TransitionPreference


class AdvisorInfo(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, allow_inf_nan=False)

    aum: confloat(ge=0) = Field(..., description="Assets under management, dollars")
    revenue: confloat(ge=0) = Field(..., description="Trailing 12-month revenue, dollars")
    fee_based_percentage: confloat(ge=0, le=100) = Field(..., description="Share of revenue that is fee-based, percent")
    city: str
    state: str
    current_firm: Optional[str] = None
    households: conint(ge=0) = 0

    deferred_comp: bool = False
    on_a_deal: bool = False
    banking: bool = False
    international: bool = False
    international_countries: List[str] = Field(default_factory=list)
    lending: bool = False
    smas: bool = False

    # premium calculator
    years_in_industry: Optional[conint(ge=0)] = None
    client_retention_rate: Optional[confloat(ge=0, le=100)] = Field(None, description="Percent of revenue expected to follow the advisor")
    current_payout: Optional[confloat(ge=0, le=100)] = Field(None, description="Grid payout at the current firm, percent")
    transition_preference: Optional[TransitionPreference] = None
    retirement_timeline: Optional[RetirementTimeline] = None
    has_team: bool = False
    team_size: conint(ge=0) = 0
    target_annual_growth_rate: Optional[confloat(ge=0, le=100)] = Field(None, description="Expected annual revenue growth, percent")
    include_independent: bool = False

    @field_validator("city", "state")
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @model_validator(mode="after")
    def _check_flags(self) -> "AdvisorInfo":
        if self.international_countries and not self.international:
            raise ValueError("internationalCountries is only allowed when international is set")
        if self.has_team and self.team_size < 1:
            raise ValueError("teamSize must be at least 1 when hasTeam is set")
        return self

    @property
    def retention_factor(self) -> float:
        if self.client_retention_rate is None:
            return 1.0
        return self.client_retention_rate / 100
