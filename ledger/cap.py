# ledger/cap.py
"""Cap room per team and season.

    cap_room = salary_cap - committed_salary - dead_money_total
    dead_money_total = dead_money_releases + dead_money_trades

Everything is recomputed from the ledgers on each call; there is no running
balance, so any season (past or future) can be asked for.
"""

from __future__ import annotations
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ledger import store
from ledger.deadcap import dead_cap
from ledger.models import Team

PROJECTION_YEARS = 5


def cap_summary(session: Session, team_id: int, season: int | None = None) -> Dict[str, Any]:
    team = store.get_team(session, team_id)
    league = store.get_league(session, team.league_id)
    if season is None:
        season = league.current_season
    return _summary(session, team, league, season)


def _summary(session: Session, team: Team, league, season: int) -> Dict[str, Any]:
    salary_cap = float(league.salary_cap)
    contracts = store.active_contracts_for_season(session, team.id, season)

    committed = round(sum(float(c.salary) for c in contracts), 2)
    releases = round(store.dead_money_for_season(session, team.id, season), 2)
    trades = round(store.adjustments_for_season(session, team.id, season), 2)
    dead_total = round(releases + trades, 2)

    return {
        "team_id": team.id,
        "team_name": team.team_name,
        "owner_name": team.owner_name,
        "season": season,
        "salary_cap": round(salary_cap, 2),
        "committed_salary": committed,
        "dead_money_releases": releases,
        "dead_money_trades": trades,
        "dead_money_total": dead_total,
        "total_cap_used": round(committed + dead_total, 2),
        "cap_room": round(salary_cap - committed - dead_total, 2),
        "contract_count": len(contracts),
        "total_contract_years": sum(int(c.years_remaining or 0) for c in contracts),
    }


def cap_projection(session: Session, team_id: int, start_season: int | None = None,
                   years: int = PROJECTION_YEARS) -> Dict[str, Any]:
    """Summaries for `years` consecutive seasons, plus what cutting everyone would cost."""
    team = store.get_team(session, team_id)
    league = store.get_league(session, team.league_id)
    first = start_season if start_season is not None else league.current_season

    projections = []
    for season in range(first, first + years):
        s = _summary(session, team, league, season)
        guaranteed = sum(
            dead_cap(c.salary, c.years_total, c.start_season, season)
            for c in store.active_contracts_for_season(session, team.id, season)
        )
        s["guaranteed_salary"] = round(guaranteed + s["dead_money_total"], 2)
        projections.append(s)

    return {
        "team_id": team.id,
        "team_name": team.team_name,
        "salary_cap": float(league.salary_cap),
        "projections": projections,
    }


def contract_years_status(total_years: int, min_years: int, max_years: int) -> str:
    if total_years < min_years:
        return "below_minimum"
    if total_years > max_years:
        return "above_maximum"
    return "valid"


def league_cap_table(session: Session, league_id: int, season: int | None = None) -> List[Dict[str, Any]]:
    """Every team's summary for one season, most cap room first."""
    league = store.get_league(session, league_id)
    if season is None:
        season = league.current_season
    rows = []
    for team in store.league_teams(session, league_id):
        s = _summary(session, team, league, season)
        s["contract_years_status"] = contract_years_status(
            s["total_contract_years"], league.min_contract_years, league.max_contract_years
        )
        rows.append(s)
    rows.sort(key=lambda r: (-r["cap_room"], r["team_id"]))
    return rows


def cap_detail(session: Session, team_id: int, season: int | None = None, top_n: int = 8) -> Dict[str, Any]:
    """Summary plus the biggest salaries counted and the itemised dead money."""
    base = cap_summary(session, team_id, season)
    season = base["season"]

    counted = []
    for c in store.active_contracts_for_season(session, team_id, season):
        p = c.player
        counted.append({
            "contract_id": c.id,
            "name": p.full_name if p else "Unknown",
            "pos": p.position if p else "",
            "salary": float(c.salary),
            "end_season": c.end_season,
        })
    counted.sort(key=lambda x: (-x["salary"], x["contract_id"]))

    return {
        **base,
        "top": counted[:top_n],
        "total_counted": len(counted),
        "dead_money_items": store.dead_money_items(session, team_id, season),
    }
