# ledger/player_lookup.py
from __future__ import annotations
from typing import Any, Dict, List, Tuple

from rapidfuzz import fuzz, process
from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger import store
from ledger.models import Contract, Player, Team

MIN_MATCH_SCORE = 70


def _low(s: Any) -> str:
    return (str(s or "")).strip().lower()


def _fuzzy_best(cands: List[str], query: str) -> Tuple[str, int] | Tuple[None, None]:
    if not _low(query) or not cands:
        return (None, None)
    hit = process.extractOne(query, cands, scorer=fuzz.WRatio, processor=_low)
    if hit is None:
        return (None, None)
    name, score, _ = hit
    return (name, int(score))


def find_player(session: Session, name_query: str, positions: tuple[str, ...] | None = None) -> Tuple[Player, int] | Tuple[None, None]:
    stmt = select(Player)
    if positions:
        stmt = stmt.where(Player.position.in_(positions))
    players = list(session.scalars(stmt.order_by(Player.id)))
    by_name: Dict[str, Player] = {}
    for p in players:
        by_name.setdefault(p.full_name, p)

    picked, score = _fuzzy_best(list(by_name), name_query)
    if not picked or score < MIN_MATCH_SCORE:
        return (None, None)
    return (by_name[picked], score)


def player_lookup(session: Session, league_id: int, name_query: str) -> Dict[str, Any] | None:
    """Player card: position, NFL team, contract (if any) and who holds it."""
    player, score = find_player(session, name_query)
    if player is None:
        return None

    league = store.get_league(session, league_id)
    contract = session.scalars(
        select(Contract).where(
            Contract.league_id == league_id,
            Contract.player_id == player.id,
            Contract.status == "active",
        )
    ).first()
    team = session.get(Team, contract.team_id) if contract and contract.team_id else None
    stat = store.season_stat(session, player.id, store.stats_season(league))

    return {
        "player_id": player.id,
        "sleeper_player_id": player.sleeper_player_id,
        "name": player.full_name,
        "pos": player.position,
        "nfl": player.nfl_team or "",
        "age": player.age,
        "status": "ROSTERED" if contract else "FA",
        "rostered_by": team.team_name if team else None,
        "contract_id": contract.id if contract else None,
        "salary": float(contract.salary) if contract else 0.0,
        "years": f"{contract.start_season}-{contract.end_season}" if contract else None,
        "ppg": float(stat.avg_points_per_game) if stat and stat.avg_points_per_game is not None else None,
        "games_played": int(stat.games_played) if stat else 0,
        "match_score": score or 0,
    }
