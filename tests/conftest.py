from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from letmein.client.document import DocumentStore
from letmein.client.profile_manager import ProfileManager
from letmein.core.models import SCHEME_SCRYPT, Profile
from letmein.server import models  # noqa: F401
from letmein.server.database import get_session, init_db, make_engine
from letmein.server.main import app

MASTER = "correct horse battery staple"


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def master():
    return MASTER


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return DocumentStore(tmp_path / "letmeinrc")


@pytest.fixture
def manager(store, clock):
    return ProfileManager(store, clock=clock)


@pytest.fixture
def ready_manager(manager, master):
    manager.init_client("alice", master)
    return manager


@pytest.fixture
def make_profile():
    def _make(**kwargs):
        fields = dict(
            uuid="u1",
            scheme=SCHEME_SCRYPT,
            name="Example",
            username="alice@example.com",
            url="example.com",
            length=16,
            lower=True,
            upper=True,
            digits=True,
            punctuation=True,
        )
        fields.update(kwargs)
        return Profile(**fields)
    return _make


@pytest.fixture
def server():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()
