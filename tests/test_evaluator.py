import pytest

import ledger.evaluator as evaluator
from helpers import add_stat, make_contract, make_league, make_player, make_team
from ledger import store
from ledger.errors import ValidationError
from ledger.evaluator import classify, evaluate_contract, evaluate_league, league_rankings, value_score


def test_value_score():
    assert value_score(40, 10) == 75.0
    assert value_score(20, 30) == -50.0
    assert value_score(0, 10) == 0.0


@pytest.mark.parametrize("score, rank, ppg, rating", [
    (80, 1, 12.0, "LEGENDARY"),
    (50, 10, 10.0, "LEGENDARY"),
    (80, 1, 9.9, "STEAL"),
    (80, 1, None, "STEAL"),
    (80, 11, 20.0, "STEAL"),
    (49.9, 1, 20.0, "STEAL"),
    (25, 30, 5.0, "STEAL"),
    (24.9, 30, 5.0, "GOOD"),
    (-25, 30, 5.0, "GOOD"),
    (-25.1, 30, 5.0, "BUST"),
])
def test_classify(score, rank, ppg, rating):
    assert classify(score, rank, ppg) == rating


@pytest.fixture
def wr_league(session_factory):
    """
    Cheap producer (Ace, 20 PPG @ $5), three market-rate WRs near 20 PPG,
    a $1 low-usage WR (8 PPG), a rookie with no stats and a $0 placeholder.
    """
    with session_factory.begin() as s:
        league = make_league(s)
        team = make_team(s, league, 1)
        ids = {"league": league.id}
        for key, ppg, salary in [("ace", 20.0, 5), ("b", 19.0, 50), ("c", 21.0, 55), ("d", 20.5, 60), ("cheap", 8.0, 1)]:
            p = make_player(s, key, key.title())
            add_stat(s, p, ppg)
            ids[key] = make_contract(s, team, p, salary).id
        rookie = make_player(s, "rookie", "Rookie")
        ids["rookie"] = make_contract(s, team, rookie, 10).id
        zero = make_player(s, "zero", "Zero")
        add_stat(s, zero, 12.0)
        ids["zero"] = make_contract(s, team, zero, 0).id
        return ids


def test_ranking_is_total_order_and_repeatable(session, wr_league):
    first = league_rankings(session, wr_league["league"])
    again = league_rankings(session, wr_league["league"])

    assert [e.rank for e in first.entries] == list(range(1, len(first) + 1))
    scores = [e.value_score for e in first.entries]
    assert scores == sorted(scores, reverse=True)
    assert [(e.contract_id, e.rank, e.value_score) for e in first.entries] == \
        [(e.contract_id, e.rank, e.value_score) for e in again.entries]


def test_rookies_and_zero_salary_left_out_of_ranking(session, wr_league):
    r = league_rankings(session, wr_league["league"])
    assert r.find(wr_league["rookie"]) is None
    assert wr_league["rookie"] in r.rookies
    assert r.find(wr_league["zero"]) is None
    assert len(r) == 5


def test_cheap_producer_is_legendary(session, wr_league):
    ev = evaluate_contract(session, wr_league["ace"])
    # comparables 50/55/60 weighted toward the 20.5 PPG deal -> $56
    assert ev.estimated_salary == 56
    assert ev.rating == "LEGENDARY"
    assert ev.league_rank <= 10
    assert ev.salary_difference == 51.0


def test_low_ppg_never_legendary(session, wr_league):
    ev = evaluate_contract(session, wr_league["cheap"])
    assert ev.value_score >= 50
    assert ev.league_rank == 1
    assert ev.rating == "STEAL"


def test_rookie_short_circuits(session, wr_league):
    ev = evaluate_contract(session, wr_league["rookie"])
    assert ev.rating == "ROOKIE"
    assert ev.league_rank is None
    assert ev.value_score == 0.0


def test_zero_salary_contract_rejected(session, wr_league):
    with pytest.raises(ValidationError):
        evaluate_contract(session, wr_league["zero"])


def test_released_contract_rejected(session_factory, wr_league):
    store.release_contract(session_factory, wr_league["b"], 2026)
    with session_factory() as s:
        with pytest.raises(ValidationError):
            evaluate_contract(s, wr_league["b"])


def _count_estimates(monkeypatch):
    calls = []
    real = evaluator.estimate_contract

    def counting(*args, **kw):
        calls.append(args[2])
        return real(*args, **kw)

    monkeypatch.setattr(evaluator, "estimate_contract", counting)
    return calls


def test_league_evaluation_estimates_each_contract_once(session, wr_league, monkeypatch):
    calls = _count_estimates(monkeypatch)
    evals = evaluate_league(session, wr_league["league"])

    assert len(calls) == 5
    assert len(evals) == 6  # the rookie is listed too, unranked
    assert evals[-1].rating == "ROOKIE"


def test_single_evaluation_reuses_given_ranking(session, wr_league, monkeypatch):
    ranking = league_rankings(session, wr_league["league"])
    calls = _count_estimates(monkeypatch)

    for key in ("ace", "b", "c", "d", "cheap"):
        evaluate_contract(session, wr_league[key], ranking)
    assert calls == []


def test_stale_ranking_without_contract_is_rebuilt(session_factory, wr_league):
    with session_factory() as s:
        ranking = league_rankings(s, wr_league["league"])
    with session_factory.begin() as s:
        team = store.league_teams(s, wr_league["league"])[0]
        p = make_player(s, "late", "Late Signing")
        add_stat(s, p, 19.5)
        late = make_contract(s, team, p, 45).id
    with session_factory() as s:
        ev = evaluate_contract(s, late, ranking)
    assert ev.rating != "ROOKIE"
    assert ev.total_contracts == 6
