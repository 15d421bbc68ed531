import pytest

from helpers import make_league, make_team
from ledger.errors import ValidationError
from ledger.owners import current_mapping, find_team, mapping_history, resolve_user_team, set_owner


class FakeMember:
    def __init__(self, name, display_name=None, global_name=None):
        self.name = name
        self.display_name = display_name or name
        self.global_name = global_name

    def __str__(self):
        return self.name


@pytest.fixture
def ids(session_factory):
    with session_factory.begin() as s:
        league = make_league(s)
        a = make_team(s, league, 1, "Gridiron Gang", owner="alice")
        b = make_team(s, league, 2, "Rival Squad", owner="bob")
        other = make_league(s, sleeper_id="L2")
        stranger = make_team(s, other, 1, "Elsewhere")
        return {"league": league.id, "a": a.id, "b": b.id, "stranger": stranger.id}


def test_every_change_is_a_new_version(session_factory, ids):
    v1 = set_owner(session_factory, ids["league"], "CarolC", ids["a"], changed_by="admin")
    v2 = set_owner(session_factory, ids["league"], "carolc", ids["b"], changed_by="admin2")
    assert (v1.version, v2.version) == (1, 2)

    with session_factory() as s:
        assert current_mapping(s, ids["league"]) == {"carolc": ids["b"]}
        hist = mapping_history(s, ids["league"], "CAROLC")
    assert [(h["version"], h["team_name"], h["changed_by"]) for h in hist] == [
        (1, "Gridiron Gang", "admin"),
        (2, "Rival Squad", "admin2"),
    ]


def test_unmapping_keeps_history(session_factory, ids):
    set_owner(session_factory, ids["league"], "carol", ids["a"], changed_by="admin")
    set_owner(session_factory, ids["league"], "carol", None, changed_by="admin")
    with session_factory() as s:
        assert current_mapping(s, ids["league"]) == {}
        assert len(mapping_history(s, ids["league"])) == 2


def test_team_from_another_league_rejected(session_factory, ids):
    with pytest.raises(ValidationError):
        set_owner(session_factory, ids["league"], "carol", ids["stranger"], changed_by="admin")


def test_resolve_prefers_mapping_then_names(session_factory, ids):
    set_owner(session_factory, ids["league"], "carol", ids["b"], changed_by="admin")
    with session_factory() as s:
        assert resolve_user_team(s, ids["league"], FakeMember("carol")).id == ids["b"]
        assert resolve_user_team(s, ids["league"], FakeMember("x", display_name="Alice")).id == ids["a"]
        assert resolve_user_team(s, ids["league"], FakeMember("nobody")) is None


def test_find_team_exact_then_partial(session_factory, ids):
    with session_factory() as s:
        assert find_team(s, ids["league"], "rival squad").id == ids["b"]
        assert find_team(s, ids["league"], "gridiron").id == ids["a"]
        assert find_team(s, ids["league"], "bob").id == ids["b"]
        assert find_team(s, ids["league"], "zzz") is None
