# ledger/ops.py
# Contract commands: sign, release, and a no-write drop preview.

from __future__ import annotations
from typing import Any, Dict, List

from sqlalchemy.orm import Session, sessionmaker

from ledger import store
from ledger.cap import cap_summary
from ledger.deadcap import preview as dead_cap_preview
from ledger.errors import ValidationError
from ledger.models import MAX_CONTRACT_YEARS, MIN_CONTRACT_YEARS, Contract
from ledger.owners import find_team

# minimum salary by contract length
MIN_SALARIES = {1: 1, 2: 4, 3: 8, 4: 12, 5: 15}


def validate_terms(salary: float, years_total: int) -> None:
    if not MIN_CONTRACT_YEARS <= int(years_total) <= MAX_CONTRACT_YEARS:
        raise ValidationError(f"years_total must be between {MIN_CONTRACT_YEARS} and {MAX_CONTRACT_YEARS}.")
    if salary is None or float(salary) < 0:
        raise ValidationError("salary must be zero or more.")
    floor = MIN_SALARIES[int(years_total)]
    if float(salary) < floor:
        raise ValidationError(f"Minimum salary for {years_total}-year contract is ${floor}.")


def sign_contract(session_factory: sessionmaker, *, team_id: int, player_id: int, salary: float,
                  years_total: int, start_season: int | None = None, contract_type: str = "standard",
                  acquisition_type: str = "free_agent") -> Contract:
    """Create an active contract and post its `contract_signed` transaction.

    Rejects terms outside 1-5 years, salaries under the length's minimum, and
    anything the team cannot fit under the cap in the start season.
    """
    validate_terms(salary, years_total)
    with session_factory.begin() as session:
        team = store.get_team(session, team_id)
        league = store.get_league(session, team.league_id)
        store.get_player(session, player_id)
        start = start_season if start_season is not None else league.current_season

        if store.active_contract_for_player(session, league.id, player_id) is not None:
            raise ValidationError("Player already has an active contract in this league.")

        room = cap_summary(session, team.id, start)["cap_room"]
        if room < float(salary):
            raise ValidationError(f"Insufficient cap room. Available: ${room:,.2f}, Required: ${float(salary):,.2f}")

        contract = Contract(
            league_id=league.id,
            team_id=team.id,
            player_id=player_id,
            salary=round(float(salary), 2),
            years_total=int(years_total),
            years_remaining=int(years_total),
            start_season=start,
            end_season=start + int(years_total) - 1,
            contract_type=contract_type,
            acquisition_type=acquisition_type,
            status="active",
        )
        session.add(contract)
        session.flush()
        store.add_transaction(
            session,
            league_id=league.id,
            team_id=team.id,
            season=start,
            transaction_type="contract_signed",
            amount=contract.salary,
            description=f"Signed contract: {years_total}yr/${float(salary):,.0f}",
            related_contract_id=contract.id,
        )
        return contract


def release(session_factory: sessionmaker, contract_id: int, reason: str = "released"):
    """Manual release at the league's current season. Same atomic unit as the roster job."""
    with session_factory() as session:
        contract = store.get_contract(session, contract_id)
        if contract.status != "active":
            raise ValidationError(f"Contract {contract_id} is already {contract.status}.")
        season = store.get_league(session, contract.league_id).current_season
    outcome = store.release_contract(session_factory, contract_id, season, reason=reason)
    if outcome is None:
        raise ValidationError(f"Contract {contract_id} was released by another process.")
    return outcome


def import_adjustments(session_factory: sessionmaker, league_id: int, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Load parsed adjustment rows ({team, player_name, description, trade_id, amounts}).
    A row already present for the team (same description and player) is skipped,
    so importing the same tab twice adds nothing.
    """
    out = {"imported": 0, "skipped": 0, "unknown_teams": []}
    with session_factory.begin() as session:
        store.get_league(session, league_id)
        for row in rows:
            team = find_team(session, league_id, row["team"])
            if team is None:
                out["unknown_teams"].append(row["team"])
                continue
            if store.find_adjustment(session, team.id, row["description"], row.get("player_name")) is not None:
                out["skipped"] += 1
                continue
            store.add_cap_adjustment(
                session,
                team,
                row["amounts"],
                description=row["description"],
                player_name=row.get("player_name"),
                trade_id=row.get("trade_id"),
            )
            out["imported"] += 1
    return out


def preview_drop(session: Session, contract_id: int) -> Dict[str, Any]:
    """
    What a drop would do, without writing anything.
    - dead cap charged this season (from the retention table)
    - cap room before -> after (salary comes off, dead cap goes on)
    """
    contract = store.get_contract(session, contract_id)
    if contract.status != "active":
        raise ValidationError(f"Contract {contract_id} is {contract.status}, nothing to drop.")
    league = store.get_league(session, contract.league_id)
    season = league.current_season
    pv = dead_cap_preview(contract, season)

    out = {**pv, "season": season, "player": contract.player.full_name if contract.player else None}
    if contract.team_id is None:
        return out

    before = cap_summary(session, contract.team_id, season)
    counts_now = contract.start_season <= season <= contract.end_season
    salary_off = float(contract.salary) if counts_now else 0.0
    used_delta = pv["dead_cap"] - salary_off
    out.update({
        "team": before["team_name"],
        "cap_room_before": before["cap_room"],
        "cap_room_after": round(before["cap_room"] - used_delta, 2),
        "used_delta": round(used_delta, 2),
    })
    return out
