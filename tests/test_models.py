import pytest
from sqlalchemy.exc import IntegrityError

from helpers import SEASON, make_league, make_player, make_team
from ledger.models import Contract


@pytest.fixture
def owner(session):
    league = make_league(session)
    team = make_team(session, league, 1)
    player = make_player(session, "1", "Alpha")
    session.commit()
    return team, player


def _contract(team, player, **overrides):
    fields = dict(
        league_id=team.league_id,
        team_id=team.id,
        player_id=player.id,
        salary=10,
        years_total=3,
        years_remaining=3,
        start_season=SEASON,
        end_season=SEASON + 2,
        status="active",
    )
    fields.update(overrides)
    return Contract(**fields)


def test_valid_contract_is_stored(session, owner):
    session.add(_contract(*owner))
    session.flush()


@pytest.mark.parametrize("overrides", [
    {"years_total": 0, "years_remaining": 0, "end_season": SEASON - 1},
    {"years_total": 6, "years_remaining": 6, "end_season": SEASON + 5},
    {"end_season": SEASON + 3},
    {"salary": -1},
    {"status": "pending"},
])
def test_schema_rejects_bad_contracts(session, owner, overrides):
    session.add(_contract(*owner, **overrides))
    with pytest.raises(IntegrityError):
        session.flush()
    session.rollback()
