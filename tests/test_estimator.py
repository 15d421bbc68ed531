import pytest

from helpers import add_stat, make_contract, make_league, make_player, make_team
from ledger.estimator import (
    Comparable,
    confidence_for,
    estimate_contract,
    find_comparables,
    quick_estimate,
    weighted_average,
)


@pytest.fixture
def wr_market(session_factory):
    """Three contracted WRs near 15 PPG plus an uncontracted WR at exactly 15."""
    with session_factory.begin() as s:
        league = make_league(s)
        team = make_team(s, league, 1)
        for sid, name, ppg, salary in [("1", "Near Low", 14.0, 30), ("2", "Dead On", 15.0, 40), ("3", "Near High", 16.5, 50)]:
            p = make_player(s, sid, name)
            add_stat(s, p, ppg)
            make_contract(s, team, p, salary)
        far = make_player(s, "4", "Far Away")
        add_stat(s, far, 25.0)
        make_contract(s, team, far, 65)

        target = make_player(s, "9", "Target Guy")
        add_stat(s, target, 15.0)
        return {"league": league.id, "target": target.id}


def test_comparables_within_window_closest_first(session, wr_market):
    comps = find_comparables(session, wr_market["league"], "WR", 15.0, 2025, exclude_player_id=wr_market["target"])
    assert [c.full_name for c in comps] == ["Dead On", "Near Low", "Near High"]


def test_weighted_average_favours_closest():
    comps = [
        Comparable(1, "a", "WR", None, None, salary=30, ppg=14.0, total_points=0, games_played=16, years_remaining=1),
        Comparable(2, "b", "WR", None, None, salary=40, ppg=15.0, total_points=0, games_played=16, years_remaining=1),
        Comparable(3, "c", "WR", None, None, salary=50, ppg=16.5, total_points=0, games_played=16, years_remaining=1),
    ]
    assert weighted_average(comps, 15.0) == pytest.approx(75 / 1.9)


def test_estimate_from_comparables(session, wr_market):
    est = estimate_contract(session, wr_market["league"], wr_market["target"], "WR", age=27)
    # 75 / 1.9 = 39.47
    assert est.estimated_salary == 39
    assert est.confidence == "high"
    assert est.salary_range == {"min": 34, "max": 44}
    assert len(est.comparable_players) == 3
    assert est.ppg == 15.0 and est.games_played == 16


def test_prior_salary_blends_thirty_percent(session, wr_market):
    est = estimate_contract(session, wr_market["league"], wr_market["target"], "WR", age=27, previous_salary=60)
    assert est.estimated_salary == 46
    assert any(a["reason"] == "Previous contract influence" for a in est.adjustments)


def test_small_prior_salary_delta_is_ignored(session, wr_market):
    est = estimate_contract(session, wr_market["league"], wr_market["target"], "WR", age=27, previous_salary=40)
    assert est.estimated_salary == 39
    assert not any(a["reason"] == "Previous contract influence" for a in est.adjustments)


def test_prime_age_bonus(session, wr_market):
    est = estimate_contract(session, wr_market["league"], wr_market["target"], "WR", age=25)
    assert est.estimated_salary == 42


@pytest.fixture
def qb_market(session_factory):
    with session_factory.begin() as s:
        league = make_league(s)
        team = make_team(s, league, 1)
        for sid, ppg, salary in [("1", 25.0, 60), ("2", 10.0, 40)]:
            p = make_player(s, sid, f"QB {sid}", position="QB")
            add_stat(s, p, ppg)
            make_contract(s, team, p, salary)
        hurt = make_player(s, "8", "Hurt QB", position="QB", age=30)
        add_stat(s, hurt, 17.0, games=8)
        barely = make_player(s, "9", "Barely Played", position="QB", age=30)
        add_stat(s, barely, 17.0, games=4)
        return {"league": league.id, "hurt": hurt.id, "barely": barely.id}


def test_qb_without_comparables_falls_back_to_position_average(session, qb_market):
    est = estimate_contract(session, qb_market["league"], qb_market["hurt"], "QB", age=30)
    # top-QB avg 50, PPG -1 * $3, age 30 -> -4, 6 missed games * 1.5 -> -9
    assert est.comparable_players == []
    assert est.estimated_salary == 34
    reasons = [a["reason"] for a in est.adjustments]
    assert "Below average PPG" in reasons
    assert "Age 30 (over 28)" in reasons
    assert any(r.startswith("Limited games") for r in reasons)


def test_no_comparables_with_six_games_is_medium(session, qb_market):
    est = estimate_contract(session, qb_market["league"], qb_market["hurt"], "QB", age=30)
    assert est.confidence == "medium"


def test_no_comparables_few_games_is_low(session, qb_market):
    est = estimate_contract(session, qb_market["league"], qb_market["barely"], "QB", age=30)
    assert est.confidence == "low"


def test_player_without_stats_still_gets_a_value(session, qb_market):
    with_no_stats = estimate_contract(session, qb_market["league"], 12345, "QB")
    assert with_no_stats.ppg is None
    assert with_no_stats.confidence == "low"
    assert 1 <= with_no_stats.estimated_salary <= 100


def test_confidence_tiers():
    assert confidence_for(3, 10) == "high"
    assert confidence_for(3, 9) == "medium"
    assert confidence_for(1, 0) == "medium"
    assert confidence_for(0, 5) == "low"


def test_quick_estimate():
    assert quick_estimate("QB", 40) == 100  # clamped
    assert quick_estimate("RB", 10, age=25) == 28
    assert quick_estimate("WR", 10, age=30, previous_salary=30) == 26
    assert quick_estimate("TE", 0, age=30) == 1  # floor
