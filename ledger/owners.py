# ledger/owners.py
"""Discord user -> team mapping, kept as an append-only version history.

Every change writes a new version row (who, when, which team; team None
unmaps). The current mapping for a user is simply their latest version.
"""

from __future__ import annotations
from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from ledger import store
from ledger.errors import ValidationError
from ledger.models import OwnerMapping, Team


def _norm(s) -> str:
    return (str(s or "")).strip()


def _key(s) -> str:
    return _norm(s).lower()


def set_owner(session_factory: sessionmaker, league_id: int, discord_user: str, team_id: int | None,
              changed_by: str) -> OwnerMapping:
    user = _key(discord_user)
    if not user:
        raise ValidationError("discord user is required.")
    with session_factory.begin() as session:
        store.get_league(session, league_id)
        if team_id is not None:
            team = store.get_team(session, team_id)
            if team.league_id != league_id:
                raise ValidationError(f"Team {team_id} is not in this league.")
        latest = session.scalar(
            select(func.max(OwnerMapping.version)).where(
                OwnerMapping.league_id == league_id,
                OwnerMapping.discord_user == user,
            )
        )
        row = OwnerMapping(
            league_id=league_id,
            discord_user=user,
            team_id=team_id,
            version=(latest or 0) + 1,
            changed_by=_norm(changed_by) or "unknown",
        )
        session.add(row)
        return row


def current_mapping(session: Session, league_id: int) -> Dict[str, int]:
    """discord user -> team id, latest version wins; unmapped users are left out."""
    latest = (
        select(OwnerMapping.discord_user, func.max(OwnerMapping.version).label("v"))
        .where(OwnerMapping.league_id == league_id)
        .group_by(OwnerMapping.discord_user)
        .subquery()
    )
    rows = session.execute(
        select(OwnerMapping.discord_user, OwnerMapping.team_id).join(
            latest,
            (OwnerMapping.discord_user == latest.c.discord_user) & (OwnerMapping.version == latest.c.v),
        ).where(OwnerMapping.league_id == league_id)
    ).all()
    return {user: team_id for user, team_id in rows if team_id is not None}


def mapping_history(session: Session, league_id: int, discord_user: str | None = None) -> List[Dict[str, Any]]:
    stmt = select(OwnerMapping).where(OwnerMapping.league_id == league_id)
    if discord_user:
        stmt = stmt.where(OwnerMapping.discord_user == _key(discord_user))
    stmt = stmt.order_by(OwnerMapping.discord_user, OwnerMapping.version)
    return [
        {
            "discord_user": m.discord_user,
            "version": m.version,
            "team_id": m.team_id,
            "team_name": m.team.team_name if m.team else None,
            "changed_by": m.changed_by,
            "changed_at": m.changed_at,
        }
        for m in session.scalars(stmt)
    ]


def resolve_user_team(session: Session, league_id: int, member) -> Team | None:
    """Map a Discord member to a team: owner mapping first, then team/owner names."""
    cand = {
        str(member),
        getattr(member, "display_name", "") or "",
        getattr(member, "global_name", "") or "",
        getattr(member, "name", "") or "",
    }
    cand = {_key(c) for c in cand if _norm(c)}

    mapping = current_mapping(session, league_id)
    for c in cand:
        if c in mapping:
            return session.get(Team, mapping[c])

    for team in store.league_teams(session, league_id):
        if _key(team.owner_name) in cand or _key(team.team_name) in cand:
            return team
    return None


def find_team(session: Session, league_id: int, query: str) -> Team | None:
    """Team by (partial) team or owner name."""
    q = _key(query)
    if not q:
        return None
    teams = store.league_teams(session, league_id)
    for t in teams:
        if q in (_key(t.team_name), _key(t.owner_name)):
            return t
    for t in teams:
        if q in _key(t.team_name) or q in _key(t.owner_name):
            return t
    return None
