from __future__ import annotations

from typing import List, Tuple

from .models.advisor import AdvisorInfo
from .models.registry import GLOBAL_FIRM, FirmDeal, FirmParameter, RegistrySnapshot

# firm, upfront, backend, total deal (percent of trailing revenue), grid payout, deal length
_SAMPLE_DEALS: List[Tuple[str, Tuple[float, float], Tuple[float, float], Tuple[float, float], str, int]] = [
    ("Morgan Stanley", (150, 200), (100, 150), (250, 350), "50-54%", 9),
    ("Merrill Lynch", (150, 190), (90, 130), (240, 320), "0.52", 9),
    ("UBS Wealth", (165, 205), (100, 140), (265, 345), "0.52", 9),
    ("Ameriprise", (100, 140), (20, 40), (120, 180), "0.75", 7),
    ("Finet", (30, 50), (0, 10), (30, 60), "85-90%", 5),
    ("LPL Financial", (20, 30), (0, 10), (20, 40), "88-92%", 5),
    ("Goldman Sachs", (170, 210), (100, 150), (270, 360), "0.50", 10),
    ("J.P. Morgan", (160, 200), (100, 140), (260, 340), "0.48", 10),
    ("RBC", (130, 170), (60, 100), (190, 270), "0.55", 9),
    ("Raymond James", (80, 120), (30, 60), (110, 180), "0.55", 7),
    ("Rockefeller", (140, 180), (60, 100), (200, 280), "0.50", 9),
    ("Sanctuary", (50, 70), (0, 20), (50, 90), "0.60", 5),
    ("Wells Fargo", (130, 170), (80, 120), (210, 290), "0.50", 9),
    ("Truist", (50, 70), (20, 40), (70, 110), "0.45", 7),
]

_GLOBAL_PARAMETERS = [
    ("yearsToDisplay", 10, "Years shown in the comparison chart"),
    ("currentGridPayout", 0.50, "Payout at the advisor's current firm"),
    ("newGridPayout", 0.52, "Payout after moving when a firm has no grid"),
    ("annualGrowthRate", 0.08, "Assumed annual revenue growth"),
    ("backendGrowthPct", 40, "Backend share tied to growth hurdles"),
    ("backendAssetsPct", 25, "Backend share tied to asset hurdles"),
    ("backendServicePct", 35, "Backend share tied to length of service"),
]


def build_sample_registry() -> RegistrySnapshot:
    deals: List[FirmDeal] = []
    parameters: List[FirmParameter] = []
    for firm, upfront, backend, total, grid, deal_length in _SAMPLE_DEALS:
        deals.append(
            FirmDeal(
                firm=firm,
                upfront_min=upfront[0],
                upfront_max=upfront[1],
                backend_min=backend[0],
                backend_max=backend[1],
                total_deal_min=total[0],
                total_deal_max=total[1],
                notes="Sample recruiting package",
            )
        )
        parameters.append(FirmParameter(firm=firm, param_name="grid", param_value=grid))
        parameters.append(FirmParameter(firm=firm, param_name="dealLength", param_value=deal_length))
        parameters.append(FirmParameter(firm=firm, param_name="upfrontMax", param_value=upfront[1]))
        parameters.append(FirmParameter(firm=firm, param_name="backendMax", param_value=backend[1]))
    for name, value, notes in _GLOBAL_PARAMETERS:
        parameters.append(FirmParameter(firm=GLOBAL_FIRM, param_name=name, param_value=value, notes=notes))
    return RegistrySnapshot(deals=deals, parameters=parameters)


def build_sample_advisor() -> AdvisorInfo:
    return AdvisorInfo(
        aum=150_000_000,
        revenue=1_200_000,
        fee_based_percentage=90,
        city="Boston",
        state="MA",
        current_firm="Merrill Lynch",
        households=120,
        smas=True,
        years_in_industry=18,
        client_retention_rate=90,
        current_payout=42,
    )
