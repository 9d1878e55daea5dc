"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.chess.rules import PythonChessRules
from src.core.models import GameRecord
from src.db.schema import Base
from src.services.game_state_machine import GameStateMachine

FIXED_TIMESTAMP = 1_700_000_000_000

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of the store independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def machine() -> GameStateMachine:
    """State machine using the real rules, with a frozen clock so records can be compared as a whole."""
    return GameStateMachine(PythonChessRules(), clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def new_record(machine: GameStateMachine) -> GameRecord:
    return machine.create_game("Alice", "Bob")


PlayMoves = Callable[..., GameRecord]


@pytest.fixture
def play(machine: GameStateMachine) -> PlayMoves:
    """Apply a sequence of moves to a record, using the record's own token."""

    def _play(record: GameRecord, *moves: str) -> GameRecord:
        for move in moves:
            record = machine.apply_move(record, move, record.write_token)
        return record

    return _play
