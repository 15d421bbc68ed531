"""Shared pytest fixtures for the cap ledger tests."""

import pytest

from ledger import store


@pytest.fixture
def engine(tmp_path):
    eng = store.make_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    store.init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return store.make_session_factory(engine)


@pytest.fixture
def session(session_factory):
    with session_factory() as s:
        yield s
