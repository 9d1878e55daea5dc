"""Unit tests for src/services/chess_service.py"""

from typing import Generator

import pytest

from src.api.models import (
    CreatedGameResponse,
    CreateGameRequest,
    GameResponse,
    MoveRequest,
    WelcomeResponse,
)
from src.core.exceptions import (
    ChessAppError,
    IllegalMoveError,
    NotFoundError,
    StoreError,
    UnauthorizedError,
)
from src.core.shared_types import Color, Status, Winner
from src.db.repository import CurrentGamePointer, GameRepository
from src.services.chess_service import ChessService
from src.services.game_state_machine import GameStateMachine

POINTER_KEY = "current_game"


# --- MOCK DEPENDENCIES ----
class MockStore:
    """Mock the KeyValueStore using a dictionary. Keys listed in 'failing' raise a StoreError on write."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self.failing: set[str] = set()

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        if key in self.failing:
            raise StoreError(f"Mock failure writing {key}")
        self._data[key] = value

    def delete(self, key: str) -> None:
        if key in self.failing:
            raise StoreError(f"Mock failure deleting {key}")
        self._data.pop(key, None)

    def clear(self) -> None:
        """Clear the store (useful in between tests)"""
        self._data.clear()
        self.failing.clear()


@pytest.fixture
def mock_store() -> Generator[MockStore, None, None]:
    """Ensures to clear the store between tests"""
    store = MockStore()
    try:
        yield store
    finally:
        store.clear()


@pytest.fixture
def service(mock_store: MockStore, machine: GameStateMachine) -> ChessService:
    return ChessService(
        repository=GameRepository(mock_store),
        pointer=CurrentGamePointer(mock_store, POINTER_KEY),
        machine=machine,
    )


@pytest.fixture
def created(service: ChessService) -> CreatedGameResponse:
    return service.create_game(CreateGameRequest(player1="Alice", player2="Bob"))


# --- SERVICE - CREATE NEW GAME ----
def test_create_a_new_game(
    service: ChessService, created: CreatedGameResponse
) -> None:
    """Check that new game is created, persisted, becomes the current game, and the token is handed out."""
    assert isinstance(created, CreatedGameResponse)
    assert created.players == ["Alice", "Bob"]
    assert created.status == Status.IN_PROGRESS
    assert created.turn == Color.WHITE
    assert created.history == []
    assert created.write_token

    stored = service.repo.get_game(created.id)
    assert stored is not None
    assert stored.write_token == created.write_token
    assert service.pointer.get() == created.id


def test_create_with_invalid_name(service: ChessService, mock_store: MockStore) -> None:
    """Nothing gets stored for a rejected request."""
    with pytest.raises(ChessAppError):
        service.create_game(CreateGameRequest(player1="Alice", player2=None))
    assert service.pointer.get() is None


def test_create_game_when_store_fails(
    service: ChessService, mock_store: MockStore
) -> None:
    mock_store.failing.add(POINTER_KEY)
    # record itself is fine, only the pointer fails: still a success
    response = service.create_game(CreateGameRequest(player1="Alice", player2="Bob"))
    assert service.repo.get_game(response.id) is not None
    assert service.pointer.get() is None


# --- SERVICE - READ ----
def test_get_game_hides_token(
    service: ChessService, created: CreatedGameResponse
) -> None:
    response = service.get_game(created.id)
    assert type(response) is GameResponse
    assert response.id == created.id
    assert "writeToken" not in response.model_dump(by_alias=True)


def test_get_unknown_game(service: ChessService) -> None:
    with pytest.raises(NotFoundError):
        service.get_game("doesnotexist")


# --- SERVICE - MOVES ----
def test_make_move(service: ChessService, created: CreatedGameResponse) -> None:
    response = service.make_move(
        created.id, MoveRequest(move="e2 to e4"), created.write_token
    )
    assert response.turn == Color.BLACK
    assert response.last_move is not None
    assert response.last_move.from_square == "e2"
    assert len(response.history) == 1

    stored = service.repo.get_game(created.id)
    assert stored is not None
    assert len(stored.history) == 1


def test_rejected_move_is_not_stored(
    service: ChessService, created: CreatedGameResponse
) -> None:
    with pytest.raises(IllegalMoveError):
        service.make_move(created.id, MoveRequest(move="e2e5"), created.write_token)
    with pytest.raises(UnauthorizedError):
        service.make_move(created.id, MoveRequest(move="e2e4"), "wrong")

    stored = service.repo.get_game(created.id)
    assert stored is not None
    assert stored.history == []


def test_failed_save_is_not_a_move(
    service: ChessService, mock_store: MockStore, created: CreatedGameResponse
) -> None:
    """If persisting fails, the error propagates and the stored record is the old one."""
    mock_store.failing.add(created.id)
    with pytest.raises(StoreError):
        service.make_move(created.id, MoveRequest(move="e2e4"), created.write_token)

    mock_store.failing.clear()
    stored = service.repo.get_game(created.id)
    assert stored is not None
    assert stored.history == []


def test_move_on_unknown_game(service: ChessService) -> None:
    with pytest.raises(NotFoundError):
        service.make_move("doesnotexist", MoveRequest(move="e2e4"), "token")


def test_move_makes_game_current(
    service: ChessService, created: CreatedGameResponse
) -> None:
    other = service.create_game(CreateGameRequest(player1="Carol", player2="Dave"))
    assert service.pointer.get() == other.id

    service.make_move(created.id, MoveRequest(move="e2e4"), created.write_token)
    assert service.pointer.get() == created.id


# --- SERVICE - RESIGN / UNDO ----
def test_resign(service: ChessService, created: CreatedGameResponse) -> None:
    response = service.resign(created.id, created.write_token)
    assert response.status == Status.RESIGNATION
    assert response.winner == Winner.BLACK


def test_undo(service: ChessService, created: CreatedGameResponse) -> None:
    service.make_move(created.id, MoveRequest(move="e2e4"), created.write_token)
    response = service.undo(created.id, created.write_token)
    assert response.history == []
    assert response.last_move is None
    assert response.turn == Color.WHITE


# --- SERVICE - DISPLAY STATE / RESET ----
def test_display_without_game(service: ChessService) -> None:
    assert service.display_state() == WelcomeResponse()


def test_display_current_game(
    service: ChessService, created: CreatedGameResponse
) -> None:
    state = service.display_state()
    assert isinstance(state, GameResponse)
    assert state.id == created.id


def test_display_with_missing_record(
    service: ChessService, mock_store: MockStore, created: CreatedGameResponse
) -> None:
    mock_store.delete(created.id)
    state = service.display_state()
    assert isinstance(state, WelcomeResponse)
    assert state.error == "Game not found"


@pytest.mark.parametrize("payload", [b"{not json", b"[]"])
def test_display_with_corrupt_record(
    service: ChessService,
    mock_store: MockStore,
    created: CreatedGameResponse,
    payload: bytes,
) -> None:
    mock_store.set(created.id, payload)
    state = service.display_state()
    assert isinstance(state, WelcomeResponse)
    assert state.error is not None


def test_reset_current(
    service: ChessService, created: CreatedGameResponse
) -> None:
    assert service.reset_current(created.write_token) == WelcomeResponse()
    assert service.pointer.get() is None
    assert service.repo.get_game(created.id) is None


def test_reset_current_requires_token(
    service: ChessService, created: CreatedGameResponse
) -> None:
    with pytest.raises(UnauthorizedError):
        service.reset_current("wrong")
    assert service.pointer.get() == created.id
    assert service.repo.get_game(created.id) is not None


def test_reset_without_current_game(service: ChessService) -> None:
    assert service.reset_current(None) == WelcomeResponse()
