# ledger/estimator.py
"""Fair-market salary estimate for a player in one league.

Base salary comes from contracted players at the same position with a similar
points-per-game (weighted toward the closest), or, when fewer than two of
those exist, from the position's top salaries adjusted for PPG. Age, missed
games and any prior salary then nudge the figure before it is clamped to the
position's range.

Nothing is cached: league contracts and stats change between calls.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger import store
from ledger.models import Contract, Player, PlayerSeasonStat

POSITION_RANGES: Dict[str, Dict[str, float]] = {
    "QB": {"min": 1, "max": 100, "avg": 55},
    "RB": {"min": 1, "max": 60, "avg": 25},
    "WR": {"min": 1, "max": 70, "avg": 30},
    "TE": {"min": 1, "max": 50, "avg": 22},
}
DEFAULT_RANGE = POSITION_RANGES["WR"]

# league-average PPG by position, and $ per PPG point away from it
PPG_BASELINE = {"QB": 18.0, "RB": 12.0, "WR": 12.0, "TE": 10.0}
PPG_DOLLARS = {"QB": 3.0}
DEFAULT_PPG_DOLLARS = 2.0

QUICK_PPG_MULTIPLIER = {"QB": 3.5, "RB": 2.5, "WR": 2.5, "TE": 2.5}

MIN_SALARY = 1
COMPARABLE_LIMIT = 5
TOP_N_POSITION_AVG = 10
FULL_SEASON_GAMES = 14
MISSED_GAME_PENALTY = 1.5
PRIOR_SALARY_WEIGHT = 0.3
PRIOR_SALARY_MIN_DELTA = 2.0
DEFAULT_AGE = 25


@dataclass
class Comparable:
    player_id: int
    full_name: str
    position: str
    nfl_team: Optional[str]
    age: Optional[int]
    salary: float
    ppg: float
    total_points: float
    games_played: int
    years_remaining: int


@dataclass
class Estimate:
    estimated_salary: int
    salary_range: Dict[str, int]
    confidence: str
    comparable_players: List[Comparable] = field(default_factory=list)
    adjustments: List[Dict[str, Any]] = field(default_factory=list)
    reasoning: str = ""
    ppg: Optional[float] = None
    games_played: int = 0


def _round(x: float) -> int:
    # half-up, so $12.5 -> $13 regardless of parity
    return int(math.floor(x + 0.5))


def ppg_window(position: str) -> float:
    return 3.0 if position == "QB" else 2.0


def find_comparables(session: Session, league_id: int, position: str, ppg: float, season: int,
                     exclude_player_id: int | None = None, limit: int = COMPARABLE_LIMIT) -> List[Comparable]:
    window = ppg_window(position)
    stmt = (
        select(Contract, Player, PlayerSeasonStat)
        .join(Player, Contract.player_id == Player.id)
        .join(
            PlayerSeasonStat,
            (PlayerSeasonStat.player_id == Player.id) & (PlayerSeasonStat.season == season),
        )
        .where(
            Contract.league_id == league_id,
            Contract.status == "active",
            Player.position == position,
            PlayerSeasonStat.avg_points_per_game.is_not(None),
            PlayerSeasonStat.avg_points_per_game.between(ppg - window, ppg + window),
        )
    )
    if exclude_player_id is not None:
        stmt = stmt.where(Contract.player_id != exclude_player_id)

    rows = session.execute(stmt).all()
    rows.sort(key=lambda r: (abs(float(r[2].avg_points_per_game) - ppg), r[0].id))
    return [
        Comparable(
            player_id=p.id,
            full_name=p.full_name,
            position=p.position,
            nfl_team=p.nfl_team,
            age=p.age,
            salary=float(c.salary),
            ppg=float(s.avg_points_per_game),
            total_points=float(s.total_fantasy_points or 0.0),
            games_played=int(s.games_played or 0),
            years_remaining=int(c.years_remaining or 0),
        )
        for c, p, s in rows[:limit]
    ]


def position_top_average(session: Session, league_id: int, position: str, top_n: int = TOP_N_POSITION_AVG) -> float:
    salaries = list(session.scalars(
        select(Contract.salary)
        .join(Player, Contract.player_id == Player.id)
        .where(Contract.league_id == league_id, Contract.status == "active", Player.position == position)
        .order_by(Contract.salary.desc())
        .limit(top_n)
    ))
    if salaries:
        avg = sum(float(s) for s in salaries) / len(salaries)
        if avg > 0:
            return avg
    return POSITION_RANGES.get(position, {}).get("avg", 20.0)


def weighted_average(comparables: List[Comparable], target_ppg: float) -> float:
    total_weight = 0.0
    weighted = 0.0
    for c in comparables:
        w = 1.0 / (1.0 + abs(c.ppg - target_ppg))
        weighted += c.salary * w
        total_weight += w
    return weighted / total_weight if total_weight > 0 else 0.0


def confidence_for(n_comparables: int, games_played: int) -> str:
    if n_comparables >= 3 and games_played >= 10:
        return "high"
    if n_comparables >= 1 or games_played >= 6:
        return "medium"
    return "low"


def _reasoning(position: str, comparables: List[Comparable], adjustments: List[Dict[str, Any]]) -> str:
    parts = []
    if len(comparables) >= 3:
        avg_ppg = sum(c.ppg for c in comparables) / len(comparables)
        parts.append(f"Based on {len(comparables)} {position}s with similar PPG ({avg_ppg:.1f} avg)")
    elif comparables:
        parts.append(f"Limited comparables found ({len(comparables)} {position}s)")
    else:
        parts.append("No direct comparables - using position averages")
    for adj in adjustments:
        if adj["amount"]:
            sign = "+" if adj["amount"] > 0 else "-"
            parts.append(f"{adj['reason']}: {sign}${abs(adj['amount']):.0f}")
    return ". ".join(parts)


def estimate_contract(session: Session, league_id: int, player_id: int, position: str,
                      age: int | None = None, previous_salary: float | None = None,
                      season: int | None = None) -> Estimate:
    """Estimate a fair salary for `player_id`.

    `season` is the stats season to read PPG and games from; it defaults to
    the league's most recently completed season.
    """
    if season is None:
        season = store.stats_season(store.get_league(session, league_id))

    stat = store.season_stat(session, player_id, season)
    ppg = float(stat.avg_points_per_game) if stat is not None and stat.avg_points_per_game is not None else None
    games = int(stat.games_played or 0) if stat is not None else 0
    rng = POSITION_RANGES.get(position, DEFAULT_RANGE)
    target_ppg = ppg or 0.0

    comparables = find_comparables(session, league_id, position, target_ppg, season, exclude_player_id=player_id)
    adjustments: List[Dict[str, Any]] = []

    if len(comparables) >= 2:
        base = weighted_average(comparables, target_ppg)
    else:
        base = position_top_average(session, league_id, position)
        diff = target_ppg - PPG_BASELINE.get(position, 10.0)
        ppg_adj = diff * PPG_DOLLARS.get(position, DEFAULT_PPG_DOLLARS)
        base += ppg_adj
        if ppg_adj:
            adjustments.append({
                "reason": "Above average PPG" if diff > 0 else "Below average PPG",
                "amount": ppg_adj,
            })

    player_age = age or DEFAULT_AGE
    if player_age > 28:
        penalty = (player_age - 28) * -2.0
        base += penalty
        adjustments.append({"reason": f"Age {player_age} (over 28)", "amount": penalty})
    elif 24 <= player_age <= 26:
        base += 3.0
        adjustments.append({"reason": f"Prime age ({player_age})", "amount": 3.0})

    if 0 < games < FULL_SEASON_GAMES:
        games_adj = float(_round((FULL_SEASON_GAMES - games) * -MISSED_GAME_PENALTY))
        base += games_adj
        adjustments.append({"reason": f"Limited games ({games}/17)", "amount": games_adj})

    if previous_salary and previous_salary > MIN_SALARY:
        influence = (float(previous_salary) - base) * PRIOR_SALARY_WEIGHT
        if abs(influence) > PRIOR_SALARY_MIN_DELTA:
            base += influence
            adjustments.append({"reason": "Previous contract influence", "amount": influence})

    estimated = _round(max(rng["min"], min(rng["max"], base)))
    spread = max(5, _round(estimated * 0.1))
    salary_range = {
        "min": int(max(MIN_SALARY, estimated - spread)),
        "max": int(min(rng["max"], estimated + spread)),
    }

    return Estimate(
        estimated_salary=estimated,
        salary_range=salary_range,
        confidence=confidence_for(len(comparables), games),
        comparable_players=comparables,
        adjustments=adjustments,
        reasoning=_reasoning(position, comparables, adjustments),
        ppg=ppg,
        games_played=games,
    )


def quick_estimate(position: str, ppg: float, age: int | None = None,
                   previous_salary: float | None = None) -> int:
    """Cheap estimate without the comparables lookup, for bulk listings."""
    rng = POSITION_RANGES.get(position, DEFAULT_RANGE)
    est = (ppg or 0.0) * QUICK_PPG_MULTIPLIER.get(position, 2.5)

    player_age = age or DEFAULT_AGE
    if player_age > 28:
        est -= (player_age - 28) * 2
    elif 24 <= player_age <= 26:
        est += 3

    if previous_salary and previous_salary > MIN_SALARY:
        est = (est + float(previous_salary)) / 2

    return _round(max(rng["min"], min(rng["max"], est)))
