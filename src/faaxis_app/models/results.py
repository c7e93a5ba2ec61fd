from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field

from .common import CamelModel


class MetricValue(CamelModel):
    value: float
    description: str
    change: Optional[float] = None
    is_up: Optional[bool] = None


class MetricData(CamelModel):
    total_deal: MetricValue
    recruiting_revenue: MetricValue
    total_comp_delta: MetricValue


class ComparisonPoint(CamelModel):
    year: int
    values: Dict[str, float] = Field(default_factory=dict, description="Cumulative compensation keyed by canonical firm key")

    def value_for(self, firm_key: str) -> float:
        return self.values.get(firm_key, 0.0)


class BackendBreakdown(CamelModel):
    growth: float
    assets: float
    length_of_service: float

    def total(self) -> float:
        return self.growth + self.assets + self.length_of_service


class FirmProjection(CamelModel):
    key: str
    display_name: str
    deal_firm: str = Field(..., description="Registry firm name the deal was read from")
    upfront_low: float
    upfront_high: float
    guaranteed_upfront: float
    backend_low: float
    backend_high: float
    backend_value: float
    grid_payout: float = Field(..., description="Payout as a fraction of transferred revenue")
    deal_length: int
    total_value: float


class CalculatorResults(CamelModel):
    metrics: MetricData
    comparison_data: List[ComparisonPoint]
    guaranteed_upfront: Dict[str, float]
    backend_breakdown: BackendBreakdown
    firms: List[FirmProjection] = Field(default_factory=list)
    projection_years: int
    baseline_total: float

    def upfront_for(self, firm_key: str) -> float:
        return self.guaranteed_upfront.get(firm_key, 0.0)

    def firm(self, firm_key: str) -> Optional[FirmProjection]:
        return next((item for item in self.firms if item.key == firm_key), None)


class FormattedResults(CamelModel):
    total_deal: str
    recruiting_revenue: str
    total_comp_delta: str
    guaranteed_upfront: Dict[str, str] = Field(default_factory=dict)
