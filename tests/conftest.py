"""Shared fixtures: in-memory database, frozen clock, wired services."""

import bcrypt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import authcore.models  # noqa: F401
from authcore.db.base import Base
from authcore.db.store import SqlStore
from authcore.services.container import build_container
from authcore.services.token_service import TokenService

from helpers import PASSWORD, TEST_SECRET, FrozenClock, RecordingDelivery


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Cheap hashes keep the suite fast."""
    original = bcrypt.gensalt
    monkeypatch.setattr(bcrypt, "gensalt", lambda rounds=4, prefix=b"2b": original(4, prefix))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db):
    return SqlStore(db)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def tokens(clock):
    return TokenService(
        secret=TEST_SECRET,
        access_minutes=15,
        refresh_days=7,
        remember_days=30,
        clock=clock,
    )


@pytest.fixture
def delivery():
    return RecordingDelivery()


@pytest.fixture
def container(store, tokens, clock, delivery):
    return build_container(store, tokens, clock=clock, delivery=delivery)


@pytest.fixture
def auth(container):
    return container.auth


@pytest.fixture
def signed_up(auth):
    """A fresh account plus the result of its signup."""
    return auth.signup("a@x.com", PASSWORD, username="alice", ip_address="10.0.0.1", user_agent="pytest")
