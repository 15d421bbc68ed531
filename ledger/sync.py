# ledger/sync.py
"""Pull league, team, player and season-stat data from Sleeper into the store."""

from __future__ import annotations
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ledger.models import League, Player, PlayerSeasonStat, SyncLog, Team

log = logging.getLogger("capbot.sync")

FANTASY_POSITIONS = ("QB", "RB", "WR", "TE")

# PPR; a league's own scoring_settings override per key
DEFAULT_SCORING: Dict[str, float] = {
    "pass_yd": 0.04,
    "pass_td": 4,
    "pass_int": -2,
    "rush_yd": 0.1,
    "rush_td": 6,
    "rec": 1,
    "rec_yd": 0.1,
    "rec_td": 6,
    "fum_lost": -2,
}


def fantasy_points(stats: Dict[str, Any], scoring: Optional[Dict[str, float]] = None) -> float:
    scoring = scoring or {}
    pts = 0.0
    for key, default in DEFAULT_SCORING.items():
        weight = scoring.get(key)
        pts += float(stats.get(key) or 0) * float(default if weight is None else weight)
    return round(pts, 2)


def scoring_label(scoring: Optional[Dict[str, float]]) -> str:
    if not scoring:
        return "PPR (default)"
    rec = scoring.get("rec", 1)
    if rec == 1:
        return "PPR (league)"
    if rec == 0.5:
        return "Half-PPR (league)"
    if rec == 0:
        return "Standard (league)"
    return f"Custom ({rec} PPR)"


# ---------- league + teams ----------

def _upsert_league(session_factory: sessionmaker, info: Dict[str, Any], users: list, rosters: list,
                   salary_cap: float | None, current_season: int | None) -> int:
    names = {}
    for u in users:
        meta = u.get("metadata") or {}
        names[u.get("user_id")] = (meta.get("team_name") or u.get("display_name") or "", u.get("display_name") or "")

    with session_factory.begin() as session:
        league = session.scalars(
            select(League).where(League.sleeper_league_id == str(info["league_id"]))
        ).first()
        if league is None:
            league = League(
                sleeper_league_id=str(info["league_id"]),
                current_season=current_season or int(info.get("season") or datetime.utcnow().year),
            )
            session.add(league)
        league.name = info.get("name") or league.name or ""
        league.scoring_settings = info.get("scoring_settings") or league.scoring_settings
        if salary_cap is not None:
            league.salary_cap = salary_cap
        if current_season is not None:
            league.current_season = current_season
        session.flush()

        existing = {t.sleeper_roster_id: t for t in session.scalars(select(Team).where(Team.league_id == league.id))}
        for r in rosters:
            rid = r.get("roster_id")
            team = existing.get(rid)
            if team is None:
                team = Team(league_id=league.id, sleeper_roster_id=rid)
                session.add(team)
            team_name, owner = names.get(r.get("owner_id"), ("", ""))
            team.sleeper_user_id = r.get("owner_id")
            team.team_name = team_name or team.team_name or f"Team {rid}"
            team.owner_name = owner or team.owner_name or ""
        return league.id


async def sync_league(session_factory: sessionmaker, client, sleeper_league_id: str,
                      salary_cap: float | None = None, current_season: int | None = None) -> int:
    """Create or refresh a league and its teams from the provider. Returns the league id."""
    info = await client.get_league(sleeper_league_id)
    users = await client.get_users(sleeper_league_id)
    rosters = await client.get_rosters(sleeper_league_id)
    league_id = await asyncio.to_thread(_upsert_league, session_factory, info, users, rosters,
                                        salary_cap, current_season)
    log.info(f"🏈 League {info.get('name')} synced ({len(rosters)} teams)")
    return league_id


# ---------- players ----------

def _upsert_players(session_factory: sessionmaker, players: Dict[str, Dict[str, Any]]) -> int:
    count = 0
    with session_factory.begin() as session:
        existing = {p.sleeper_player_id: p for p in session.scalars(select(Player))}
        for pid, data in players.items():
            pos = data.get("position")
            if pos not in FANTASY_POSITIONS:
                continue
            name = data.get("full_name") or " ".join(
                x for x in (data.get("first_name"), data.get("last_name")) if x
            )
            if not name:
                continue
            p = existing.get(str(pid))
            if p is None:
                p = Player(sleeper_player_id=str(pid))
                session.add(p)
            p.full_name = name
            p.position = pos
            p.nfl_team = data.get("team")
            p.age = data.get("age")
            p.years_exp = data.get("years_exp")
            p.status = data.get("status")
            count += 1
    return count


async def sync_players(session_factory: sessionmaker, client) -> int:
    players = await client.get_all_players()
    count = await asyncio.to_thread(_upsert_players, session_factory, players)
    log.info(f"👤 Synced {count} fantasy-relevant players")
    return count


# ---------- season stats ----------

def _upsert_stats(session_factory: sessionmaker, season: int, all_stats: Dict[str, Dict[str, Any]],
                  league_id: int | None) -> Dict[str, Any]:
    results = {"synced": 0, "skipped": 0, "scoring_type": scoring_label(None)}
    with session_factory.begin() as session:
        scoring = None
        if league_id is not None:
            league = session.get(League, league_id)
            scoring = league.scoring_settings if league is not None else None
            results["scoring_type"] = scoring_label(scoring)

        player_ids = dict(session.execute(
            select(Player.sleeper_player_id, Player.id).where(Player.position.in_(FANTASY_POSITIONS))
        ).all())
        existing = {
            s.player_id: s
            for s in session.scalars(select(PlayerSeasonStat).where(PlayerSeasonStat.season == season))
        }

        for sleeper_id, stats in all_stats.items():
            player_id = player_ids.get(str(sleeper_id))
            games = int(stats.get("gp") or 0)
            if player_id is None or games == 0:
                results["skipped"] += 1
                continue
            total = fantasy_points(stats, scoring)
            row = existing.get(player_id)
            if row is None:
                row = PlayerSeasonStat(player_id=player_id, season=season)
                session.add(row)
            row.games_played = games
            row.games_started = int(stats.get("gs") or 0)
            row.total_fantasy_points = total
            row.avg_points_per_game = round(total / games, 2)
            results["synced"] += 1
    return results


async def sync_player_stats(session_factory: sessionmaker, client, season: int,
                            league_id: int | None = None) -> Dict[str, Any]:
    log.info(f"📊 Fetching {season} stats from Sleeper...")
    all_stats = await client.get_season_stats(season)
    results = await asyncio.to_thread(_upsert_stats, session_factory, season, all_stats, league_id)
    log.info(f"📊 {season}: synced {results['synced']}, skipped {results['skipped']} ({results['scoring_type']})")
    return results


def record_sync(session_factory: sessionmaker, league_id: int, sync_type: str, records_processed: int,
                errors: list | None = None) -> None:
    with session_factory.begin() as session:
        session.add(SyncLog(
            league_id=league_id,
            sync_type=sync_type,
            status="completed" if not errors else "completed_with_errors",
            records_processed=records_processed,
            errors=errors or None,
        ))
