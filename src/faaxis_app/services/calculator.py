from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import InvalidAdvisorInputError
from ..firms import DISPLAY_NAMES, display_name, firm_slug, firms_for_preference, match_firm_key
from ..models.advisor import AdvisorInfo
from ..models.common import RetirementTimeline
from ..models.registry import GLOBAL_FIRM, FirmDeal, FirmParameter, RegistrySnapshot
from ..models.results import (
    BackendBreakdown,
    CalculatorResults,
    ComparisonPoint,
    FirmProjection,
    MetricData,
    MetricValue,
)
from .formatting import round_currency, round_half_up
from .registry import find_deal, parameters_for

logger = logging.getLogger(__name__)

DEFAULT_PROJECTION_YEARS = 10
SHORT_RETIREMENT_YEARS = 5
DEFAULT_CURRENT_GRID_PAYOUT = 0.50
DEFAULT_NEW_GRID_PAYOUT = 0.52
DEFAULT_ANNUAL_GROWTH_RATE = 0.08
DEFAULT_BACKEND_WEIGHTS = (40.0, 25.0, 35.0)

# Percentage-point adjustments applied to a firm's upfront/backend band.
# Each can be overridden per firm or through the "Global" parameter set;
# the values below are provisional defaults.
DEFAULT_COEFFICIENTS: Dict[str, float] = {
    "feeBasedHighThreshold": 85.0,
    "feeBasedLowThreshold": 65.0,
    "feeBasedHighUpfrontAdj": 5.0,
    "feeBasedHighBackendAdj": 10.0,
    "feeBasedLowUpfrontAdj": -5.0,
    "feeBasedLowBackendAdj": -5.0,
    "bankingUpfrontAdj": 2.0,
    "internationalUpfrontAdj": 3.0,
    "internationalDiversityUpfrontAdj": 2.0,
    "multipleCountriesThreshold": 3.0,
    "multipleCountriesUpfrontAdj": 1.0,
    "lendingUpfrontAdj": 2.0,
    "smasUpfrontAdj": 2.0,
    "householdsThreshold": 100.0,
    "householdsBackendAdj": 3.0,
    "deferredCompUpfrontAdj": -3.0,
    "onADealUpfrontAdj": -5.0,
    "onADealBackendAdj": -5.0,
    "maxAdjustment": 10.0,
}

TOTAL_DEAL_DESCRIPTION = "Based on your current book size and business composition"
RECRUITING_REVENUE_DESCRIPTION = "Your trailing 12-month revenue used for recruiting calculations"


@dataclass
class Adjustments:
    upfront: float
    backend: float


@dataclass
class SelectedFirm:
    key: str
    deal: FirmDeal
    parameters: List[FirmParameter]


@dataclass
class ProjectionAssumptions:
    years: int
    growth_rate: float
    retention: float
    current_payout: float


class ParameterSet:
    """Firm-specific parameters layered over the Global ones."""

    def __init__(self, firm_parameters: Sequence[FirmParameter], global_parameters: Sequence[FirmParameter]):
        self.firm_parameters = list(firm_parameters)
        self.global_parameters = list(global_parameters)

    def value(self, name: str, default: Optional[float] = None) -> Optional[float]:
        for parameters in (self.firm_parameters, self.global_parameters):
            value = _first_value(parameters, name)
            if value is not None:
                return value
        return default

    def coefficient(self, name: str) -> float:
        return self.value(name, DEFAULT_COEFFICIENTS[name])


def _first_value(parameters: Iterable[FirmParameter], name: str) -> Optional[float]:
    wanted = name.lower()
    for param in parameters:
        if param.param_name.lower() == wanted:
            value = param.as_float()
            if value is not None:
                return value
    return None


def _as_fraction(value: float) -> float:
    return value / 100 if value > 1 else value


class CompensationCalculator:
    def run(
        self,
        advisor: AdvisorInfo,
        snapshot: RegistrySnapshot,
        selected_firms: Optional[Sequence[str]] = None,
        previous_total_deal: Optional[float] = None,
    ) -> CalculatorResults:
        self._validate(advisor)
        global_parameters = parameters_for(snapshot.parameters, GLOBAL_FIRM)
        globals_only = ParameterSet([], global_parameters)
        assumptions = self._compute_assumptions(advisor, globals_only)

        projections: List[FirmProjection] = []
        schedules: Dict[str, List[float]] = {}
        parameter_sets: Dict[str, ParameterSet] = {}
        for firm in self._select_firms(advisor, snapshot, selected_firms):
            parameters = ParameterSet(firm.parameters, global_parameters)
            parameter_sets[firm.key] = parameters
            projection, schedule = self._compute_firm(advisor, firm, parameters, assumptions)
            projections.append(projection)
            schedules[firm.key] = schedule

        comparison_data = [
            ComparisonPoint(
                year=year,
                values={key: round_currency(schedule[year - 1]) for key, schedule in schedules.items()},
            )
            for year in range(1, assumptions.years + 1)
        ]
        guaranteed_upfront = {item.key: item.guaranteed_upfront for item in projections}

        best = max(projections, key=lambda item: item.total_value, default=None)
        breakdown_parameters = parameter_sets[best.key] if best is not None else globals_only
        backend_breakdown = self._compute_backend_breakdown(breakdown_parameters)

        baseline = self._compute_baseline(advisor, assumptions)
        if not math.isfinite(baseline):
            raise InvalidAdvisorInputError("revenue", "is too large to project")
        baseline_total = round_currency(baseline)
        metrics = self._compute_metrics(advisor, best, baseline_total, assumptions, previous_total_deal)

        logger.debug(
            f"Projected {len(projections)} firms over {assumptions.years} years; "
            f"best={best.key if best else None} total={metrics.total_deal.value}"
        )
        return CalculatorResults(
            metrics=metrics,
            comparison_data=comparison_data,
            guaranteed_upfront=guaranteed_upfront,
            backend_breakdown=backend_breakdown,
            firms=projections,
            projection_years=assumptions.years,
            baseline_total=baseline_total,
        )

    def _validate(self, advisor: AdvisorInfo) -> None:
        numbers = {
            "aum": advisor.aum,
            "revenue": advisor.revenue,
            "feeBasedPercentage": advisor.fee_based_percentage,
        }
        for field, value in numbers.items():
            if value is None or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidAdvisorInputError(field, f"must be a finite number, got {value!r}")
            if value < 0:
                raise InvalidAdvisorInputError(field, "must not be negative")
        if advisor.fee_based_percentage > 100:
            raise InvalidAdvisorInputError("feeBasedPercentage", "must not exceed 100")

    def _select_firms(
        self,
        advisor: AdvisorInfo,
        snapshot: RegistrySnapshot,
        selected_firms: Optional[Sequence[str]],
    ) -> List[SelectedFirm]:
        if selected_firms:
            requested = [name for name in selected_firms if name and name.strip()]
        elif advisor.transition_preference is not None:
            requested = [display_name(key) for key in firms_for_preference(advisor.transition_preference)]
        else:
            requested = [deal.firm for deal in snapshot.deals]
        if advisor.include_independent:
            requested.append(display_name("independent"))

        selected: List[SelectedFirm] = []
        seen = set()
        for name in requested:
            deal = find_deal(snapshot.deals, name)
            if deal is None:
                logger.warning(f"No registry deal for firm {name!r}; leaving it out of the projection")
                continue
            # firms the alias table does not know keep a key of their own
            key = match_firm_key(name) or match_firm_key(deal.firm) or firm_slug(deal.firm)
            if key in seen:
                continue
            seen.add(key)
            selected.append(SelectedFirm(key=key, deal=deal, parameters=parameters_for(snapshot.parameters, deal.firm)))
        return selected

    def _compute_assumptions(self, advisor: AdvisorInfo, parameters: ParameterSet) -> ProjectionAssumptions:
        years = max(1, int(round(parameters.value("yearsToDisplay", DEFAULT_PROJECTION_YEARS))))
        if advisor.retirement_timeline == RetirementTimeline.WITHIN_FIVE:
            years = min(years, SHORT_RETIREMENT_YEARS)

        if advisor.target_annual_growth_rate is not None:
            growth_rate = advisor.target_annual_growth_rate / 100
        else:
            growth_rate = _as_fraction(parameters.value("annualGrowthRate", DEFAULT_ANNUAL_GROWTH_RATE))

        if advisor.current_payout is not None:
            current_payout = advisor.current_payout / 100
        else:
            current_payout = _as_fraction(parameters.value("currentGridPayout", DEFAULT_CURRENT_GRID_PAYOUT))

        return ProjectionAssumptions(
            years=years,
            growth_rate=growth_rate,
            retention=advisor.retention_factor,
            current_payout=current_payout,
        )

    def _compute_adjustments(self, advisor: AdvisorInfo, parameters: ParameterSet) -> Adjustments:
        c = parameters.coefficient
        upfront = 0.0
        backend = 0.0

        if advisor.fee_based_percentage >= c("feeBasedHighThreshold"):
            upfront += c("feeBasedHighUpfrontAdj")
            backend += c("feeBasedHighBackendAdj")
        elif advisor.fee_based_percentage < c("feeBasedLowThreshold"):
            upfront += c("feeBasedLowUpfrontAdj")
            backend += c("feeBasedLowBackendAdj")

        if advisor.banking:
            upfront += c("bankingUpfrontAdj")
        if advisor.international:
            upfront += c("internationalUpfrontAdj") + c("internationalDiversityUpfrontAdj")
            if len(advisor.international_countries) > c("multipleCountriesThreshold"):
                upfront += c("multipleCountriesUpfrontAdj")
        if advisor.lending:
            upfront += c("lendingUpfrontAdj")
        if advisor.smas:
            upfront += c("smasUpfrontAdj")
        if advisor.households > c("householdsThreshold"):
            backend += c("householdsBackendAdj")
        if advisor.deferred_comp:
            upfront += c("deferredCompUpfrontAdj")
        if advisor.on_a_deal:
            upfront += c("onADealUpfrontAdj")
            backend += c("onADealBackendAdj")

        limit = abs(c("maxAdjustment"))
        return Adjustments(
            upfront=max(-limit, min(limit, upfront)),
            backend=max(-limit, min(limit, backend)),
        )

    def _compute_band(self, revenue: float, low_pct: float, high_pct: float, adjustment: float) -> Tuple[float, float]:
        low = revenue * max(0.0, low_pct + adjustment) / 100
        high = revenue * max(0.0, high_pct + adjustment) / 100
        return low, high

    def _compute_firm(
        self,
        advisor: AdvisorInfo,
        firm: SelectedFirm,
        parameters: ParameterSet,
        assumptions: ProjectionAssumptions,
    ) -> Tuple[FirmProjection, List[float]]:
        deal = firm.deal
        adjustments = self._compute_adjustments(advisor, parameters)
        upfront_low, upfront_high = self._compute_band(advisor.revenue, deal.upfront_min, deal.upfront_max, adjustments.upfront)
        backend_low, backend_high = self._compute_band(advisor.revenue, deal.backend_min, deal.backend_max, adjustments.backend)
        upfront = (upfront_low + upfront_high) / 2
        backend = (backend_low + backend_high) / 2

        grid_payout = _as_fraction(parameters.value("grid", parameters.value("newGridPayout", DEFAULT_NEW_GRID_PAYOUT)))
        deal_length = int(round(_first_value(firm.parameters, "dealLength") or assumptions.years))
        deal_length = max(1, min(assumptions.years, deal_length))

        schedule = self._compute_schedule(advisor.revenue, assumptions, grid_payout, upfront, backend, deal_length)
        if not all(math.isfinite(value) for value in (upfront_high, backend_high, schedule[-1])):
            raise InvalidAdvisorInputError("revenue", f"is too large to project for {deal.firm}")
        projection = FirmProjection(
            key=firm.key,
            display_name=display_name(firm.key) if firm.key in DISPLAY_NAMES else deal.firm,
            deal_firm=deal.firm,
            upfront_low=round_currency(upfront_low),
            upfront_high=round_currency(upfront_high),
            guaranteed_upfront=round_currency(upfront),
            backend_low=round_currency(backend_low),
            backend_high=round_currency(backend_high),
            backend_value=round_currency(backend),
            grid_payout=round_half_up(grid_payout, 4),
            deal_length=deal_length,
            total_value=round_currency(schedule[-1]),
        )
        return projection, schedule

    def _compute_schedule(
        self,
        revenue: float,
        assumptions: ProjectionAssumptions,
        grid_payout: float,
        upfront: float,
        backend: float,
        deal_length: int,
    ) -> List[float]:
        """Cumulative compensation per year.

        Upfront cash lands in year 1; the backend vests in equal tranches over
        years 2..deal_length (all in year 1 for a one-year deal).
        """
        cumulative = 0.0
        schedule: List[float] = []
        for year in range(1, assumptions.years + 1):
            transferred_revenue = revenue * assumptions.retention * (1 + assumptions.growth_rate) ** (year - 1)
            value = transferred_revenue * grid_payout
            if year == 1:
                value += upfront
            if deal_length == 1:
                if year == 1:
                    value += backend
            elif 2 <= year <= deal_length:
                value += backend / (deal_length - 1)
            cumulative += value
            schedule.append(cumulative)
        return schedule

    def _compute_baseline(self, advisor: AdvisorInfo, assumptions: ProjectionAssumptions) -> float:
        return sum(
            advisor.revenue * (1 + assumptions.growth_rate) ** (year - 1) * assumptions.current_payout
            for year in range(1, assumptions.years + 1)
        )

    def _compute_backend_breakdown(self, parameters: ParameterSet) -> BackendBreakdown:
        weights = [
            max(0.0, parameters.value("backendGrowthPct", DEFAULT_BACKEND_WEIGHTS[0])),
            max(0.0, parameters.value("backendAssetsPct", DEFAULT_BACKEND_WEIGHTS[1])),
            max(0.0, parameters.value("backendServicePct", DEFAULT_BACKEND_WEIGHTS[2])),
        ]
        total = sum(weights)
        if total <= 0:
            weights = list(DEFAULT_BACKEND_WEIGHTS)
            total = sum(weights)
        shares = [round_half_up(weight / total * 100, 1) for weight in weights]
        # push the rounding residue onto the largest share so the three add up to 100
        largest = shares.index(max(shares))
        shares[largest] = round_half_up(shares[largest] + (100 - sum(shares)), 1)
        growth, assets, length_of_service = shares
        return BackendBreakdown(growth=growth, assets=assets, length_of_service=length_of_service)

    def _compute_metrics(
        self,
        advisor: AdvisorInfo,
        best: Optional[FirmProjection],
        baseline_total: float,
        assumptions: ProjectionAssumptions,
        previous_total_deal: Optional[float],
    ) -> MetricData:
        total_deal = best.total_value if best is not None else 0.0
        comp_delta = total_deal - baseline_total if best is not None else 0.0

        change = None
        is_up = None
        if previous_total_deal:
            change = float(round_half_up((total_deal - previous_total_deal) / previous_total_deal * 100))
            is_up = change >= 0

        return MetricData(
            total_deal=MetricValue(value=total_deal, description=TOTAL_DEAL_DESCRIPTION, change=change, is_up=is_up),
            recruiting_revenue=MetricValue(value=round_currency(advisor.revenue), description=RECRUITING_REVENUE_DESCRIPTION),
            total_comp_delta=MetricValue(
                value=round_currency(comp_delta),
                description=f"{assumptions.years}-year increased earnings from moving vs. staying at current firm",
                is_up=comp_delta >= 0,
            ),
        )


def compute(
    advisor: AdvisorInfo,
    deals: Sequence[FirmDeal],
    parameters: Sequence[FirmParameter],
    selected_firms: Optional[Sequence[str]] = None,
) -> CalculatorResults:
    snapshot = RegistrySnapshot(deals=list(deals), parameters=list(parameters))
    return CompensationCalculator().run(advisor, snapshot, selected_firms=selected_firms)
