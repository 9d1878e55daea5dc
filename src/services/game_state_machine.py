"""
State transitions of a single game record.

Every public operation takes a GameRecord (and the request input), validates the request against it and returns an
updated copy. The input record is never touched, so a caller that fails to persist the result still holds the
unchanged original. Loading / saving records and moving the "current game" pointer are the caller's job.
"""

import logging
import secrets
import time
from copy import deepcopy
from typing import Any, Callable, Optional
from uuid import uuid4

from src.chess.rules import MoveOutcome, RulesEngine, UndoOutcome
from src.core.exceptions import (
    GameOverError,
    IllegalMoveError,
    NoHistoryError,
    UnauthorizedError,
    ValidationError,
)
from src.core.models import GameRecord, LastMove, MoveRecord
from src.core.shared_types import Color, Status, Winner
from src.core.validation import normalize_move, validate_player_name

logger = logging.getLogger(__name__)

GAME_ID_LENGTH = 12


def _now_ms() -> int:
    return int(time.time() * 1000)


def _winner_for(color: Color) -> Winner:
    return Winner(color.value)


class GameStateMachine:
    """Creation, moves, resignation, undo and write authorization for one game record at a time."""

    def __init__(
        self, rules: RulesEngine, clock: Callable[[], int] = _now_ms
    ) -> None:
        self.rules = rules
        self.clock = clock

    # --- STATE TRANSITIONS ---
    def create_game(self, name_a: object, name_b: object) -> GameRecord:
        """New game in the starting position. Player one plays white."""
        try:
            white = validate_player_name(name_a)
        except ValidationError as exc:
            raise ValidationError(f"Player 1: {exc}") from exc
        try:
            black = validate_player_name(name_b)
        except ValidationError as exc:
            raise ValidationError(f"Player 2: {exc}") from exc

        position = self.rules.new_position()
        return GameRecord(
            id=uuid4().hex[:GAME_ID_LENGTH],
            players=[white, black],
            fen=position,
            status=Status.IN_PROGRESS,
            winner=None,
            turn=self.rules.side_to_move(position),
            write_token=uuid4().hex,
            last_move=None,
            history=[],
        )

    def apply_move(
        self, record: GameRecord, move_text: object, token: Optional[str]
    ) -> GameRecord:
        """
        Attempt a move
        ----

        1. the token must match the record's write token
        2. the game must still be in progress
        3. the move text must normalize to 'e2e4' / 'e7e8q' form
        4. the rules engine must accept the move
        5. update position, turn, last move and history
        6. check for an end condition (checkmate > stalemate > any other draw)
        """
        self._assert_authorized(record, token)
        self._assert_in_progress(record)
        move = normalize_move(move_text)

        outcome = self.rules.legal_move(record.fen, move, permissive=True)
        if outcome is None:
            raise IllegalMoveError(f"Illegal move: {move}")

        updated = deepcopy(record)
        earlier_positions = self._positions_played(updated)
        self._record_move(updated, outcome)
        self._update_status(updated, earlier_positions)
        return updated

    def resign(self, record: GameRecord, token: Optional[str]) -> GameRecord:
        """The side to move resigns: there is no notion of 'which player is asking'."""
        self._assert_authorized(record, token)
        self._assert_in_progress(record)

        updated = deepcopy(record)
        updated.status = Status.RESIGNATION
        updated.winner = _winner_for(updated.turn.opponent)
        return updated

    def undo(self, record: GameRecord, token: Optional[str]) -> GameRecord:
        """
        Take back the last move.
        ----
        Allowed after the game ended (that is how a mistaken final move gets reverted): an ended game is revived.
        """
        self._assert_authorized(record, token)

        outcome = self.rules.undo(
            record.fen, [move.san for move in record.history]
        ) or self._undo_from_history(record)
        if outcome is None:
            raise NoHistoryError("No moves to undo")

        updated = deepcopy(record)
        updated.fen = outcome.position
        updated.turn = self.rules.side_to_move(outcome.position)
        if updated.history:
            updated.history.pop()
        updated.last_move = outcome.last_move

        if updated.is_over:
            updated.status = Status.IN_PROGRESS
            updated.winner = None
        return updated

    # --- READ ACCESS / AUTHORIZATION ---
    @staticmethod
    def sanitize(record: GameRecord, include_token: bool = False) -> dict[str, Any]:
        """Serialized view of a record. The write token is only included on explicit request."""
        return record.to_dict(include_token=include_token)

    @staticmethod
    def authorize(token: Optional[str], record: Optional[GameRecord]) -> bool:
        if record is None or not record.write_token or not token:
            return False
        return secrets.compare_digest(
            token.encode("utf-8"), record.write_token.encode("utf-8")
        )

    # -- PRIVATE HELPERS ---
    def _assert_authorized(self, record: GameRecord, token: Optional[str]) -> None:
        if not self.authorize(token, record):
            logger.warning("Rejected write to game %s: missing or invalid token", record.id)
            raise UnauthorizedError("Missing or invalid game token")

    def _assert_in_progress(self, record: GameRecord) -> None:
        if record.is_over:
            raise GameOverError(f"Game is over. status: {record.status}")

    def _undo_from_history(self, record: GameRecord) -> UndoOutcome | None:
        """
        Step back using the positions stored in the history, for records whose history does not replay from the start
        (e.g. written before every move was recorded). Only trusted if its last entry is the current position.
        """
        if len(record.history) < 2 or record.history[-1].fen != record.fen:
            return None
        previous = record.history[-2]
        return UndoOutcome(
            position=previous.fen,
            last_move=LastMove(previous.from_square, previous.to_square),
        )

    def _positions_played(self, record: GameRecord) -> list[str]:
        """Positions seen so far in the game, oldest first (including the current one)."""
        return [self.rules.new_position()] + [move.fen for move in record.history]

    def _record_move(self, record: GameRecord, outcome: MoveOutcome) -> None:
        record.fen = outcome.position
        record.turn = self.rules.side_to_move(outcome.position)
        record.last_move = LastMove(outcome.from_square, outcome.to_square)
        record.history.append(
            MoveRecord(
                san=outcome.san,
                from_square=outcome.from_square,
                to_square=outcome.to_square,
                color=outcome.color,
                piece=outcome.piece,
                captured=outcome.captured,
                fen=outcome.position,
                at=self.clock(),
            )
        )

    def _update_status(self, record: GameRecord, earlier_positions: list[str]) -> None:
        if self.rules.is_checkmate(record.fen):
            # the side to move got mated
            record.status = Status.CHECKMATE
            record.winner = _winner_for(record.turn.opponent)
        elif self.rules.is_stalemate(record.fen):
            record.status = Status.STALEMATE
            record.winner = Winner.DRAW
        elif self.rules.is_other_draw(record.fen, earlier_positions):
            record.status = Status.DRAW
            record.winner = Winner.DRAW
