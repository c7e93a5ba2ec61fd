"""Canonical firm keys and the alias table used to resolve user-typed firm names.

Every place that needs to turn a firm name into a result key (the calculator,
the registry lookups and the HTTP layer) goes through ``normalize_firm_name``.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Pattern, Tuple

from .models.common import TransitionPreference

ALIAS_TABLE_VERSION = 2

DEFAULT_FIRM_KEY = "independent"

FIRM_ALIASES: Dict[str, Tuple[str, ...]] = {
    "morganStanley": ("morgan stanley", "ms", "morgan stanley wealth management"),
    "merrillLynch": ("merrill lynch", "merrill", "ml", "merrill lynch wealth management", "bank of america merrill"),
    "ubsWealth": ("ubs", "ubs wealth", "ubs financial", "ubs wealth management"),
    "ameriprise": ("ameriprise", "ameriprise financial"),
    "finet": ("finet",),
    "independent": ("independent", "lpl", "lpl financial", "linsco"),
    "goldman": ("goldman", "goldman sachs", "goldman sachs - custody", "gs"),
    "jpm": ("jpm", "jpmorgan", "jp morgan", "j.p. morgan", "j p morgan"),
    "rbc": ("rbc", "rbc wealth", "rbc wealth management"),
    # Regional broker-dealers share one bucket.
    "raymondJames": ("raymond james", "rj", "edward jones", "ed jones", "stifel"),
    "rockefeller": ("rockefeller", "rock"),
    "sanctuary": ("sanctuary", "sanctuary wealth"),
    "wellsFargo": ("wells fargo", "wells", "wf", "wells fargo advisors"),
    "tru": ("tru", "truist"),
}

DISPLAY_NAMES: Dict[str, str] = {
    "morganStanley": "Morgan Stanley",
    "merrillLynch": "Merrill Lynch",
    "ubsWealth": "UBS",
    "ameriprise": "Ameriprise",
    "finet": "Finet",
    "independent": "LPL Financial",
    "goldman": "Goldman Sachs",
    "jpm": "J.P. Morgan",
    "rbc": "RBC",
    "raymondJames": "Raymond James",
    "rockefeller": "Rockefeller",
    "sanctuary": "Sanctuary",
    "wellsFargo": "Wells Fargo",
    "tru": "Truist",
}

FIRM_CATEGORIES: Dict[str, TransitionPreference] = {
    "morganStanley": TransitionPreference.WIREHOUSE,
    "merrillLynch": TransitionPreference.WIREHOUSE,
    "ubsWealth": TransitionPreference.WIREHOUSE,
    "wellsFargo": TransitionPreference.WIREHOUSE,
    "jpm": TransitionPreference.WIREHOUSE,
    "goldman": TransitionPreference.WIREHOUSE,
    "raymondJames": TransitionPreference.REGIONAL_BD,
    "rbc": TransitionPreference.REGIONAL_BD,
    "ameriprise": TransitionPreference.REGIONAL_BD,
    "tru": TransitionPreference.REGIONAL_BD,
    "independent": TransitionPreference.INDEPENDENT,
    "finet": TransitionPreference.INDEPENDENT,
    "sanctuary": TransitionPreference.RIA,
    "rockefeller": TransitionPreference.RIA,
}

FIRM_KEYS: Tuple[str, ...] = tuple(FIRM_ALIASES)

_WHITESPACE = re.compile(r"\s+")


def _clean(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return _WHITESPACE.sub(" ", str(raw)).strip().lower()


def _build_index() -> Tuple[Dict[str, str], List[Tuple[str, str, Pattern[str]]]]:
    exact: Dict[str, str] = {}
    patterns: List[Tuple[str, str, Pattern[str]]] = []
    for key, aliases in FIRM_ALIASES.items():
        for alias in aliases:
            if alias in exact:
                raise ValueError(f"Alias {alias!r} is mapped to both {exact[alias]} and {key}")
            exact[alias] = key
            patterns.append((alias, key, re.compile(rf"(?<!\w){re.escape(alias)}(?!\w)")))
    # longest alias first; ties broken alphabetically so lookups are deterministic
    patterns.sort(key=lambda item: (-len(item[0]), item[0]))
    return exact, patterns


_EXACT_ALIASES, _ALIAS_PATTERNS = _build_index()


def match_firm_key(raw: Optional[str]) -> Optional[str]:
    """Canonical key for ``raw``, or None when no alias matches."""
    cleaned = _clean(raw)
    if not cleaned:
        return None
    if cleaned in _EXACT_ALIASES:
        return _EXACT_ALIASES[cleaned]
    for _alias, key, pattern in _ALIAS_PATTERNS:
        if pattern.search(cleaned):
            return key
    return None


def normalize_firm_name(raw: Optional[str]) -> str:
    return match_firm_key(raw) or DEFAULT_FIRM_KEY


def firm_slug(raw: Optional[str]) -> str:
    """camelCase key built from the name itself, e.g. ``"Acme Wealth Partners"`` -> ``"acmeWealthPartners"``."""
    words = re.findall(r"[a-z0-9]+", _clean(raw))
    if not words:
        return ""
    return words[0] + "".join(word.capitalize() for word in words[1:])


def display_name(key: str) -> str:
    return DISPLAY_NAMES.get(key, key)


def firm_category(key: str) -> TransitionPreference:
    return FIRM_CATEGORIES.get(key, TransitionPreference.INDEPENDENT)


def firms_for_preference(preference: TransitionPreference) -> List[str]:
    return [key for key in FIRM_KEYS if FIRM_CATEGORIES[key] == preference]
