import pytest
from sqlalchemy import select

from helpers import SEASON, make_contract, make_league, make_player, make_team
from ledger.cap import cap_summary
from ledger.errors import NotFoundError, ValidationError
from ledger.models import CapAdjustment, CapTransaction, Contract
from ledger.ops import import_adjustments, preview_drop, release, sign_contract, validate_terms


@pytest.fixture
def ids(session_factory):
    with session_factory.begin() as s:
        league = make_league(s, salary_cap=100)
        team = make_team(s, league, 1, "Gridiron Gang", owner="alice")
        other = make_team(s, league, 2, "Rival Squad", owner="bob")
        vet = make_player(s, "1", "Vet Receiver")
        make_contract(s, team, vet, 20, years_total=5, start_season=SEASON - 1)
        return {
            "league": league.id,
            "team": team.id,
            "other": other.id,
            "vet_contract": s.scalars(select(Contract.id)).one(),
            "fa": make_player(s, "2", "Free Agent").id,
            "fa2": make_player(s, "3", "Another Agent").id,
        }


@pytest.mark.parametrize("salary, years", [(10, 0), (10, 6), (5, 3), (14, 5), (-1, 1)])
def test_bad_terms_rejected(salary, years):
    with pytest.raises(ValidationError):
        validate_terms(salary, years)


@pytest.mark.parametrize("salary, years", [(1, 1), (4, 2), (8, 3), (12, 4), (15, 5)])
def test_minimum_salaries_accepted(salary, years):
    validate_terms(salary, years)


def test_sign_posts_transaction(session_factory, ids):
    c = sign_contract(session_factory, team_id=ids["team"], player_id=ids["fa"], salary=12, years_total=3)
    assert c.start_season == SEASON
    assert c.end_season == SEASON + 2
    assert c.status == "active"

    with session_factory() as s:
        tx = s.scalars(select(CapTransaction).where(CapTransaction.related_contract_id == c.id)).one()
        assert tx.transaction_type == "contract_signed"
        assert tx.amount == 12.0
        assert cap_summary(s, ids["team"])["committed_salary"] == 32.0


def test_sign_needs_cap_room(session_factory, ids):
    with pytest.raises(ValidationError, match="Insufficient cap room"):
        sign_contract(session_factory, team_id=ids["team"], player_id=ids["fa"], salary=81, years_total=1)


def test_player_cannot_hold_two_contracts(session_factory, ids):
    sign_contract(session_factory, team_id=ids["team"], player_id=ids["fa"], salary=5, years_total=1)
    with pytest.raises(ValidationError):
        sign_contract(session_factory, team_id=ids["other"], player_id=ids["fa"], salary=5, years_total=1)


def test_sign_unknown_team(session_factory, ids):
    with pytest.raises(NotFoundError):
        sign_contract(session_factory, team_id=999, player_id=ids["fa"], salary=5, years_total=1)


def test_drop_preview_writes_nothing(session_factory, ids):
    with session_factory() as s:
        pv = preview_drop(s, ids["vet_contract"])
    assert pv["dead_cap"] == 10.0
    assert pv["cap_room_before"] == 80.0
    assert pv["cap_room_after"] == 90.0
    assert pv["used_delta"] == -10.0
    assert pv["team"] == "Gridiron Gang"

    with session_factory() as s:
        assert s.get(Contract, ids["vet_contract"]).status == "active"
        assert s.scalars(select(CapTransaction)).all() == []


def test_manual_release(session_factory, ids):
    out = release(session_factory, ids["vet_contract"])
    assert out.dead_cap == 10.0
    assert out.season == SEASON

    with session_factory() as s:
        c = s.get(Contract, ids["vet_contract"])
        assert c.status == "released" and c.release_reason == "released"
        assert cap_summary(s, ids["team"])["cap_room"] == 90.0

    with pytest.raises(ValidationError):
        release(session_factory, ids["vet_contract"])


def test_import_adjustments_is_repeatable(session_factory, ids):
    rows = [
        {"team": "gridiron gang", "player_name": "Old Star", "description": "Trade dead money: Old Star",
         "trade_id": None, "amounts": {SEASON: 12.0, SEASON + 1: 6.0}},
        {"team": "Nobody FC", "player_name": None, "description": "x", "trade_id": None, "amounts": {SEASON: 1.0}},
    ]
    first = import_adjustments(session_factory, ids["league"], rows)
    second = import_adjustments(session_factory, ids["league"], rows)

    assert first == {"imported": 1, "skipped": 0, "unknown_teams": ["Nobody FC"]}
    assert second["imported"] == 0 and second["skipped"] == 1
    with session_factory() as s:
        assert len(s.scalars(select(CapAdjustment)).all()) == 1
        assert cap_summary(s, ids["team"])["dead_money_trades"] == 12.0
