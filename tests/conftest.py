"""Shared test fixtures."""
import os

# Must be set before examsync.config builds its settings singleton
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from examsync.models.mirror import Building, Participant, Room  # noqa: F401
from examsync.models.sync import SyncLog  # noqa: F401


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="seeded_hall")
def seeded_hall_fixture(test_session: Session) -> Building:
    """A mirrored hall (external id 1) with one room (external id 10)."""
    building = Building(external_id=1, external_uid="hall-1", name="Hall A", capacity=120)
    test_session.add(building)
    test_session.commit()
    test_session.refresh(building)
    room = Room(external_id=10, building_id=building.id, name="R1", number="R1", capacity=30)
    test_session.add(room)
    test_session.commit()
    test_session.refresh(building)
    return building
