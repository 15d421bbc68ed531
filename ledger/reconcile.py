# ledger/reconcile.py
"""Periodic roster reconciliation.

A player holding an active contract locally but missing from his team's
provider roster has been dropped: release the contract (reason "dropped")
and charge the dead cap for the league's current season. `active -> released`
is the only transition made here; an already-released contract is skipped,
so re-running against an unchanged roster changes nothing.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ledger import store
from ledger.models import League, SyncLog
from ledger.sleeper import roster_player_ids

log = logging.getLogger("capbot.reconcile")

SYNC_TYPE = "auto_roster_sync"


@dataclass
class Release:
    contract_id: int
    team_id: Optional[int]
    team_name: str
    player_name: str
    dead_cap: float


@dataclass
class SyncResult:
    league_id: int
    league_name: str = ""
    season: Optional[int] = None
    players_released: int = 0
    total_dead_cap: float = 0.0
    releases: List[Release] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class SyncSummary:
    synced_at: datetime
    leagues_processed: int = 0
    total_releases: int = 0
    total_dead_cap: float = 0.0
    duration_seconds: float = 0.0
    results: List[SyncResult] = field(default_factory=list)


def _load_league(session_factory: sessionmaker, league_id: int) -> Dict[str, Any]:
    with session_factory() as session:
        league = store.get_league(session, league_id)
        teams = {t.sleeper_roster_id: (t.id, t.team_name) for t in store.league_teams(session, league_id)}
        return {
            "name": league.name,
            "sleeper_league_id": league.sleeper_league_id,
            "current_season": league.current_season,
            "teams": teams,
        }


def _apply_drops(session_factory: sessionmaker, ctx: Dict[str, Any], rosters: List[Dict[str, Any]],
                 result: SyncResult) -> None:
    season = ctx["current_season"]
    for roster in rosters:
        team = ctx["teams"].get(roster.get("roster_id"))
        if team is None:
            continue
        team_id, team_name = team
        held = roster_player_ids(roster)
        if held is None:
            log.warning(f"  roster {roster.get('roster_id')} ({team_name}) came back without a player list, skipping")
            continue

        with session_factory() as session:
            dropped = [
                (c.id, p.full_name)
                for c, p in store.active_team_contracts(session, team_id)
                if p.sleeper_player_id not in held
            ]

        for contract_id, player_name in dropped:
            try:
                outcome = store.release_contract(
                    session_factory,
                    contract_id,
                    season,
                    reason="dropped",
                    description=f"Auto-release: {player_name}",
                )
            except Exception as e:
                log.exception(f"  failed to release {player_name} (contract {contract_id})")
                result.errors.append(f"Failed to release {player_name}: {e}")
                continue
            if outcome is None:
                continue
            result.players_released += 1
            result.total_dead_cap = round(result.total_dead_cap + outcome.dead_cap, 2)
            result.releases.append(Release(contract_id, team_id, team_name, player_name, outcome.dead_cap))
            log.info(f"  🔴 Released {player_name} from {team_name} (dead cap: ${outcome.dead_cap:,.2f})")


def _record_sync(session_factory: sessionmaker, result: SyncResult) -> None:
    with session_factory.begin() as session:
        session.add(SyncLog(
            league_id=result.league_id,
            sync_type=SYNC_TYPE,
            status="completed" if not result.errors else "completed_with_errors",
            records_processed=result.players_released,
            total_dead_cap=result.total_dead_cap,
            errors=result.errors or None,
        ))


async def reconcile_league(session_factory: sessionmaker, client, league_id: int) -> SyncResult:
    """Reconcile one league. Failures end up in `result.errors`, never raised."""
    result = SyncResult(league_id=league_id)
    try:
        ctx = await asyncio.to_thread(_load_league, session_factory, league_id)
        result.league_name = ctx["name"]
        result.season = ctx["current_season"]
        rosters = await client.get_rosters(ctx["sleeper_league_id"])
        await asyncio.to_thread(_apply_drops, session_factory, ctx, rosters, result)
        if result.players_released > 0:
            await asyncio.to_thread(_record_sync, session_factory, result)
    except Exception as e:
        log.exception(f"Sync failed for league {league_id}")
        result.errors.append(f"Sync failed: {e}")
    return result


def _league_ids(session_factory: sessionmaker) -> List[int]:
    with session_factory() as session:
        return list(session.scalars(select(League.id).order_by(League.id)))


async def reconcile_all(session_factory: sessionmaker, client, league_ids: Optional[List[int]] = None) -> SyncSummary:
    """Reconcile leagues one after another."""
    started = time.monotonic()
    summary = SyncSummary(synced_at=datetime.utcnow())
    log.info(f"🔄 Starting automatic roster sync @ {summary.synced_at:%Y-%m-%d %H:%M:%S}")

    if league_ids is None:
        league_ids = await asyncio.to_thread(_league_ids, session_factory)
    log.info(f"📋 Found {len(league_ids)} leagues to sync")

    for league_id in league_ids:
        result = await reconcile_league(session_factory, client, league_id)
        summary.results.append(result)
        summary.leagues_processed += 1
        summary.total_releases += result.players_released
        summary.total_dead_cap = round(summary.total_dead_cap + result.total_dead_cap, 2)

        name = result.league_name or league_id
        if result.players_released:
            log.info(f"  ✅ {name}: released {result.players_released} players, ${result.total_dead_cap:,.2f} dead cap")
        else:
            log.info(f"  ✅ {name}: no changes detected")
        if result.errors:
            log.warning(f"  ⚠️ {name} errors: {', '.join(result.errors)}")

    summary.duration_seconds = round(time.monotonic() - started, 3)
    log.info(
        f"🔄 Sync complete in {summary.duration_seconds:.1f}s | Leagues: {summary.leagues_processed}, "
        f"Releases: {summary.total_releases}, Dead Cap: ${summary.total_dead_cap:,.2f}"
    )
    return summary


async def run_reconciliation(session_factory: sessionmaker, client, league_ids: Optional[List[int]] = None,
                             timeout: float = 120.0) -> Optional[SyncSummary]:
    """One scheduled run with a deadline. A timed-out run returns None; the next tick retries."""
    try:
        return await asyncio.wait_for(reconcile_all(session_factory, client, league_ids), timeout)
    except asyncio.TimeoutError:
        log.error(f"❌ Roster sync timed out after {timeout:.0f}s")
    except Exception:
        log.exception("❌ Roster sync failed")
    return None


def last_sync_time(session, league_id: int) -> Optional[datetime]:
    return session.scalars(
        select(SyncLog.completed_at)
        .where(SyncLog.league_id == league_id, SyncLog.sync_type.in_((SYNC_TYPE, "rosters", "full")))
        .order_by(SyncLog.completed_at.desc())
        .limit(1)
    ).first()
