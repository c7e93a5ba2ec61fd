from __future__ import annotations

import pytest

from faaxis_app.firms import (
    DEFAULT_FIRM_KEY,
    DISPLAY_NAMES,
    FIRM_CATEGORIES,
    FIRM_KEYS,
    display_name,
    firm_category,
    firms_for_preference,
    firm_slug,
    match_firm_key,
    normalize_firm_name,
)
from faaxis_app.models.common import TransitionPreference


@pytest.mark.parametrize("raw", ["ms", "MS", "Morgan Stanley", "MORGAN STANLEY", "  morgan   stanley "])
def test_morgan_stanley_spellings_share_a_key(raw):
    assert normalize_firm_name(raw) == "morganStanley"


@pytest.mark.parametrize(
    "raw, key",
    [
        ("LPL", "independent"),
        ("LPL Financial", "independent"),
        ("Independent", "independent"),
        ("Linsco", "independent"),
        ("Merrill", "merrillLynch"),
        ("Bank of America Merrill Lynch", "merrillLynch"),
        ("JP Morgan", "jpm"),
        ("J.P. Morgan Securities", "jpm"),
        ("Goldman Sachs - Custody", "goldman"),
        ("Edward Jones", "raymondJames"),
        ("Stifel", "raymondJames"),
        ("Wells Fargo Advisors", "wellsFargo"),
        ("Truist", "tru"),
        ("Rockefeller Capital Management", "rockefeller"),
    ],
)
def test_aliases_resolve_to_canonical_keys(raw, key):
    assert normalize_firm_name(raw) == key


def test_longest_alias_wins():
    assert normalize_firm_name("UBS Wealth Management") == "ubsWealth"
    assert normalize_firm_name("Ameriprise / Merrill Lynch") == "merrillLynch"


def test_aliases_match_whole_words_only():
    assert match_firm_key("Williams Capital") is None
    assert match_firm_key("Rocket Advisors") is None
    assert normalize_firm_name("Williams Capital") == DEFAULT_FIRM_KEY


@pytest.mark.parametrize("raw", [None, "", "   ", "Acme Capital Partners"])
def test_unrecognized_names_fall_back_to_independent(raw):
    assert match_firm_key(raw) is None
    assert normalize_firm_name(raw) == "independent"


def test_display_names_map_back_to_their_key():
    for key in FIRM_KEYS:
        assert normalize_firm_name(display_name(key)) == key


def test_every_key_has_a_display_name_and_category():
    assert set(DISPLAY_NAMES) == set(FIRM_KEYS)
    assert set(FIRM_CATEGORIES) == set(FIRM_KEYS)


def test_unknown_key_display_name_and_category():
    assert display_name("acme") == "acme"
    assert firm_category("acme") == TransitionPreference.INDEPENDENT


def test_firms_for_preference():
    wirehouses = firms_for_preference(TransitionPreference.WIREHOUSE)
    assert "morganStanley" in wirehouses
    assert "independent" not in wirehouses
    assert firms_for_preference(TransitionPreference.RIA) == ["rockefeller", "sanctuary"]
    assert set(firms_for_preference(TransitionPreference.INDEPENDENT)) == {"independent", "finet"}


def test_firm_slug():
    assert firm_slug("Acme Wealth Partners") == "acmeWealthPartners"
    assert firm_slug("  ACME   wealth, LLC ") == "acmeWealthLlc"
    assert firm_slug("") == ""
