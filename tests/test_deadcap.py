from types import SimpleNamespace

import pytest

from ledger.deadcap import DEAD_CAP_PERCENTAGES, dead_cap, preview, retention_pct


def test_five_year_deal_cut_in_second_season():
    assert dead_cap(20, 5, 2026, 2027) == 10.0


@pytest.mark.parametrize("season", [2026, 2027, 2030, 2040])
def test_minimum_contract_keeps_full_salary(season):
    assert dead_cap(1, 5, 2026, season) == 1.0
    assert dead_cap(1, 1, 2026, season) == 1.0


def test_outside_contract_years_is_zero():
    assert dead_cap(40, 3, 2026, 2029) == 0.0
    assert dead_cap(40, 3, 2026, 2025) == 0.0


def test_retention_follows_table():
    for years, pcts in DEAD_CAP_PERCENTAGES.items():
        got = [retention_pct(years, 2026, 2026 + i) for i in range(years)]
        assert got == pcts


def test_same_inputs_same_amount():
    first = dead_cap(30, 4, 2026, 2028)
    assert first == 7.5
    assert all(dead_cap(30, 4, 2026, 2028) == first for _ in range(5))


def test_preview_reports_savings():
    c = SimpleNamespace(id=7, salary=20.0, years_total=5, start_season=2026)
    pv = preview(c, 2027)
    assert pv["contract_id"] == 7
    assert pv["years_into_contract"] == 1
    assert pv["dead_cap_pct"] == 50.0
    assert pv["dead_cap"] == 10.0
    assert pv["cap_savings"] == 10.0


def test_preview_minimum_contract_is_full_retention():
    c = SimpleNamespace(id=1, salary=1.0, years_total=2, start_season=2026)
    pv = preview(c, 2027)
    assert pv["dead_cap_pct"] == 100.0
    assert pv["cap_savings"] == 0.0
