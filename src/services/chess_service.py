"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Optional

from src.api.models import (
    CreatedGameResponse,
    CreateGameRequest,
    GameResponse,
    MoveRequest,
    WelcomeResponse,
)
from src.core.exceptions import NotFoundError, StoreError, UnauthorizedError
from src.core.models import GameRecord
from src.db.repository import CurrentGamePointer, GameRepository
from src.services.game_state_machine import GameStateMachine

logger = logging.getLogger(__name__)


class ChessService:
    """Orchestration of layers for chess game."""

    def __init__(
        self,
        repository: GameRepository,
        pointer: CurrentGamePointer,
        machine: GameStateMachine,
    ) -> None:
        self.repo = repository
        self.pointer = pointer
        self.machine = machine

    # -- API routes logic ---
    def create_game(self, request: CreateGameRequest) -> CreatedGameResponse:
        """Create a new game. The response is the only place the write token is ever handed out."""
        record = self.machine.create_game(request.player1, request.player2)
        self.repo.save_game(record)
        logger.info("Game created: %s", record.id)

        self._point_to(record.id)
        return CreatedGameResponse.model_validate(
            self.machine.sanitize(record, include_token=True)
        )

    def get_game(self, game_id: str) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        record = self._fetch_game(game_id)
        return self._create_game_response(record)

    def make_move(
        self, game_id: str, request: MoveRequest, token: Optional[str]
    ) -> GameResponse:
        """Make a move attempt."""
        record = self._fetch_game(game_id)
        after_move = self.machine.apply_move(record, request.move, token)
        self.repo.save_game(after_move)
        logger.info("Move made in game %s: %s", game_id, after_move.history[-1].san)

        self._point_to(game_id)
        return self._create_game_response(after_move)

    def resign(self, game_id: str, token: Optional[str]) -> GameResponse:
        record = self._fetch_game(game_id)
        resigned = self.machine.resign(record, token)
        self.repo.save_game(resigned)
        logger.info("Player resigned in game %s, winner: %s", game_id, resigned.winner)

        self._point_to(game_id)
        return self._create_game_response(resigned)

    def undo(self, game_id: str, token: Optional[str]) -> GameResponse:
        record = self._fetch_game(game_id)
        reverted = self.machine.undo(record, token)
        self.repo.save_game(reverted)
        logger.info("Move undone in game %s", game_id)

        self._point_to(game_id)
        return self._create_game_response(reverted)

    def display_state(self) -> GameResponse | WelcomeResponse:
        """
        What the polling display should show.
        ----
        The display cannot do anything with an error, so every failure degrades into the welcome screen.
        """
        try:
            game_id = self.pointer.get()
            if not game_id:
                return WelcomeResponse()

            record = self.repo.get_game(game_id)
        except StoreError:
            logger.exception("Could not load the current game for the display")
            return WelcomeResponse(error="Internal server error")

        if record is None:
            return WelcomeResponse(error="Game not found")
        return self._create_game_response(record)

    def reset_current(self, token: Optional[str]) -> WelcomeResponse:
        """Delete the current game and clear the pointer, so the display goes back to the welcome screen."""
        game_id = self.pointer.get()
        if not game_id:
            return WelcomeResponse()

        record = self.repo.get_game(game_id)
        if not self.machine.authorize(token, record):
            raise UnauthorizedError("Missing or invalid game token")

        self.repo.delete_game(game_id)
        self.pointer.clear()
        logger.info("Current game %s reset; returning to welcome", game_id)
        return WelcomeResponse()

    # -- Internal helpers --
    def _create_game_response(self, record: GameRecord) -> GameResponse:
        return GameResponse.model_validate(self.machine.sanitize(record))

    def _fetch_game(self, game_id: str) -> GameRecord:
        """Attempt to find the game in the repository and raise error if it fails."""
        record = self.repo.get_game(game_id)
        if record is None:
            raise NotFoundError(f"Game {game_id!r} not found")
        return record

    def _point_to(self, game_id: str) -> None:
        """
        Make game_id the game shown on the display.
        ----
        Runs after the record itself was persisted, so a failure here must not turn an applied move into an error response.
        """
        try:
            self.pointer.set(game_id)
        except StoreError:
            logger.exception("Could not set current game to %s", game_id)
