# ledger/store.py
"""Engine/session setup and ledger access.

Reads take a Session. Writes that must land together (a release and its
dead-money transaction) open their own transaction from a session factory.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.orm import Session, sessionmaker

from ledger.deadcap import dead_cap_for
from ledger.errors import NotFoundError
from ledger.models import (
    Base,
    CapAdjustment,
    CapAdjustmentAmount,
    CapTransaction,
    Contract,
    League,
    Player,
    PlayerSeasonStat,
    Team,
)

log = logging.getLogger("capbot.store")


def make_engine(url: str, echo: bool = False):
    connect_args = {}
    if url.startswith("sqlite"):
        # sessions are handed to worker threads via asyncio.to_thread
        connect_args["check_same_thread"] = False
    return create_engine(url, echo=echo, future=True, connect_args=connect_args)


def make_session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


def init_db(engine) -> None:
    Base.metadata.create_all(engine)


# ---------- lookups ----------

def get_league(session: Session, league_id: int) -> League:
    league = session.get(League, league_id)
    if league is None:
        raise NotFoundError("League", league_id)
    return league


def league_by_sleeper_id(session: Session, sleeper_league_id: str) -> League:
    league = session.scalars(
        select(League).where(League.sleeper_league_id == str(sleeper_league_id))
    ).first()
    if league is None:
        raise NotFoundError("League", sleeper_league_id)
    return league


def get_team(session: Session, team_id: int) -> Team:
    team = session.get(Team, team_id)
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


def get_contract(session: Session, contract_id: int) -> Contract:
    contract = session.get(Contract, contract_id)
    if contract is None:
        raise NotFoundError("Contract", contract_id)
    return contract


def get_player(session: Session, player_id: int) -> Player:
    player = session.get(Player, player_id)
    if player is None:
        raise NotFoundError("Player", player_id)
    return player


def league_teams(session: Session, league_id: int) -> List[Team]:
    return list(session.scalars(select(Team).where(Team.league_id == league_id).order_by(Team.id)))


def stats_season(league: League) -> int:
    """Most recently completed season; valuation reads stats from here."""
    return league.current_season - 1


# ---------- contracts ----------

def active_contracts_for_season(session: Session, team_id: int, season: int) -> List[Contract]:
    return list(session.scalars(
        select(Contract)
        .where(
            Contract.team_id == team_id,
            Contract.status == "active",
            Contract.start_season <= season,
            Contract.end_season >= season,
        )
        .order_by(Contract.salary.desc(), Contract.id)
    ))


def active_team_contracts(session: Session, team_id: int) -> List[tuple[Contract, Player]]:
    """Active contracts joined to the player, for comparing against provider ids."""
    rows = session.execute(
        select(Contract, Player)
        .join(Player, Contract.player_id == Player.id)
        .where(Contract.team_id == team_id, Contract.status == "active")
        .order_by(Contract.id)
    ).all()
    return [(c, p) for c, p in rows]


def active_league_contracts(session: Session, league_id: int, min_salary: float | None = None) -> List[tuple[Contract, Player]]:
    stmt = (
        select(Contract, Player)
        .join(Player, Contract.player_id == Player.id)
        .where(Contract.league_id == league_id, Contract.status == "active")
    )
    if min_salary is not None:
        stmt = stmt.where(Contract.salary > min_salary)
    return [(c, p) for c, p in session.execute(stmt.order_by(Contract.id)).all()]


def active_contract_for_player(session: Session, league_id: int, player_id: int) -> Contract | None:
    return session.scalars(
        select(Contract).where(
            Contract.league_id == league_id,
            Contract.player_id == player_id,
            Contract.status == "active",
        )
    ).first()


# ---------- stats ----------

def season_stat(session: Session, player_id: int, season: int) -> PlayerSeasonStat | None:
    return session.scalars(
        select(PlayerSeasonStat).where(
            PlayerSeasonStat.player_id == player_id,
            PlayerSeasonStat.season == season,
        )
    ).first()


def players_with_stats(session: Session, player_ids: Iterable[int]) -> set[int]:
    ids = list(player_ids)
    if not ids:
        return set()
    return set(session.scalars(
        select(PlayerSeasonStat.player_id).where(PlayerSeasonStat.player_id.in_(ids)).distinct()
    ))


# ---------- ledgers ----------

def dead_money_for_season(session: Session, team_id: int, season: int) -> float:
    total = session.scalar(
        select(func.coalesce(func.sum(CapTransaction.amount), 0)).where(
            CapTransaction.team_id == team_id,
            CapTransaction.season == season,
            CapTransaction.transaction_type == "dead_money",
        )
    )
    return float(total or 0.0)


def adjustments_for_season(session: Session, team_id: int, season: int) -> float:
    total = session.scalar(
        select(func.coalesce(func.sum(CapAdjustmentAmount.amount), 0))
        .join(CapAdjustment, CapAdjustmentAmount.adjustment_id == CapAdjustment.id)
        .where(CapAdjustment.team_id == team_id, CapAdjustmentAmount.season == season)
    )
    return float(total or 0.0)


def dead_money_items(session: Session, team_id: int, season: int) -> List[Dict]:
    releases = session.execute(
        select(CapTransaction, Player.full_name, Player.position)
        .outerjoin(Contract, CapTransaction.related_contract_id == Contract.id)
        .outerjoin(Player, Contract.player_id == Player.id)
        .where(
            CapTransaction.team_id == team_id,
            CapTransaction.season == season,
            CapTransaction.transaction_type == "dead_money",
        )
        .order_by(CapTransaction.created_at.desc(), CapTransaction.id.desc())
    ).all()
    adjustments = session.execute(
        select(CapAdjustment, CapAdjustmentAmount.amount)
        .join(CapAdjustmentAmount, CapAdjustmentAmount.adjustment_id == CapAdjustment.id)
        .where(
            CapAdjustment.team_id == team_id,
            CapAdjustmentAmount.season == season,
            CapAdjustmentAmount.amount != 0,
        )
        .order_by(CapAdjustment.created_at.desc(), CapAdjustment.id.desc())
    ).all()
    out = [
        {
            "type": "release",
            "player_name": name or "Unknown Player",
            "position": pos,
            "amount": float(tx.amount),
            "reason": tx.description,
            "date": tx.created_at,
        }
        for tx, name, pos in releases
    ]
    out += [
        {
            "type": "adjustment",
            "player_name": adj.player_name,
            "position": None,
            "amount": float(amount),
            "reason": adj.description or "Trade dead money",
            "date": adj.created_at,
        }
        for adj, amount in adjustments
    ]
    return out


def find_adjustment(session: Session, team_id: int, description: str, player_name: str | None = None) -> CapAdjustment | None:
    stmt = select(CapAdjustment).where(CapAdjustment.team_id == team_id, CapAdjustment.description == description)
    if player_name is None:
        stmt = stmt.where(CapAdjustment.player_name.is_(None))
    else:
        stmt = stmt.where(CapAdjustment.player_name == player_name)
    return session.scalars(stmt).first()


def add_transaction(session: Session, *, league_id: int, team_id: int, season: int,
                    transaction_type: str, amount: float, description: str | None = None,
                    related_contract_id: int | None = None) -> CapTransaction:
    tx = CapTransaction(
        league_id=league_id,
        team_id=team_id,
        season=season,
        transaction_type=transaction_type,
        amount=round(float(amount), 2),
        description=description,
        related_contract_id=related_contract_id,
    )
    session.add(tx)
    return tx


def add_cap_adjustment(session: Session, team: Team, amounts: Dict[int, float], *,
                       description: str, adjustment_type: str = "trade_cap_hit",
                       player_name: str | None = None, trade_id: str | None = None) -> CapAdjustment:
    """Record a one-off charge (positive) or credit (negative) per season."""
    adj = CapAdjustment(
        league_id=team.league_id,
        team_id=team.id,
        adjustment_type=adjustment_type,
        description=description,
        player_name=player_name,
        trade_id=trade_id,
    )
    for season, amount in sorted(amounts.items()):
        if amount:
            adj.amounts.append(CapAdjustmentAmount(season=int(season), amount=round(float(amount), 2)))
    session.add(adj)
    return adj


# ---------- release (atomic unit) ----------

@dataclass
class ReleaseOutcome:
    contract_id: int
    team_id: int | None
    player_name: str
    season: int
    dead_cap: float
    transaction_id: int | None


def release_contract(session_factory: sessionmaker, contract_id: int, season: int,
                     reason: str = "released", description: str | None = None) -> ReleaseOutcome | None:
    """Release an active contract and post its dead money in one transaction.

    Returns None when the contract is no longer active, so a repeated or
    concurrent release never charges twice.
    """
    with session_factory.begin() as session:
        contract = get_contract(session, contract_id)
        if contract.status != "active":
            return None
        player = session.get(Player, contract.player_id)
        player_name = player.full_name if player else f"player {contract.player_id}"
        hit = dead_cap_for(contract, season)

        res = session.execute(
            update(Contract)
            .where(Contract.id == contract_id, Contract.status == "active")
            .values(
                status="released",
                released_at=datetime.utcnow(),
                release_reason=reason,
                dead_cap_hit=hit,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            return None

        tx = None
        if hit > 0 and contract.team_id is not None:
            tx = add_transaction(
                session,
                league_id=contract.league_id,
                team_id=contract.team_id,
                season=season,
                transaction_type="dead_money",
                amount=hit,
                description=description or f"Dead cap from release: {player_name}",
                related_contract_id=contract.id,
            )
            session.flush()

        return ReleaseOutcome(
            contract_id=contract.id,
            team_id=contract.team_id,
            player_name=player_name,
            season=season,
            dead_cap=hit,
            transaction_id=tx.id if tx is not None else None,
        )
