"""
Chess rules, as a capability the state machine can consult.

The state machine never inspects a board itself. It asks a RulesEngine whether a move is legal, what the resulting
position looks like, and whether that position ends the game. PythonChessRules answers these questions with python-chess.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import chess

from src.core.models import FEN, LastMove, SquareName
from src.core.shared_types import Color, PieceType

STARTING_FEN: FEN = chess.STARTING_FEN

# threefold repetition / fifty-move rule (counted in half-moves)
REPETITION_LIMIT = 3
HALF_MOVE_LIMIT = 100


@dataclass(frozen=True)
class MoveOutcome:
    """What the rules engine reports about an accepted move."""

    from_square: SquareName
    to_square: SquareName
    san: str
    color: Color
    piece: PieceType
    captured: Optional[PieceType]
    position: FEN  # position after the move


@dataclass(frozen=True)
class UndoOutcome:
    position: FEN
    last_move: Optional[LastMove]


class RulesEngine(Protocol):
    """Everything the state machine needs to know about chess."""

    def new_position(self) -> FEN: ...

    def side_to_move(self, position: FEN) -> Color: ...

    def legal_move(
        self, position: FEN, move_text: str, permissive: bool = True
    ) -> MoveOutcome | None:
        """Resulting move info if move_text is a legal (and unambiguous) move in position, None otherwise."""
        ...

    def is_checkmate(self, position: FEN) -> bool: ...

    def is_stalemate(self, position: FEN) -> bool: ...

    def is_other_draw(
        self, position: FEN, earlier_positions: Sequence[FEN] = ()
    ) -> bool: ...

    def undo(self, position: FEN, moves: Sequence[str]) -> UndoOutcome | None:
        """
        Position (and last move) reached by the SAN line 'moves' without its final move.
        None if there is nothing to undo, or if the line does not lead to 'position'.
        """
        ...


def _color(turn: chess.Color) -> Color:
    return Color.WHITE if turn == chess.WHITE else Color.BLACK


def _piece_type(piece_type: chess.PieceType) -> PieceType:
    return PieceType(chess.piece_name(piece_type))


def _repetition_key(position: FEN) -> str:
    """Piece placement, side to move, castling rights and en passant square (i.e. without the move counters)."""
    return " ".join(position.split(" ")[:4])


class PythonChessRules:
    """RulesEngine implemented with python-chess."""

    def new_position(self) -> FEN:
        return chess.Board().fen()

    def side_to_move(self, position: FEN) -> Color:
        return _color(chess.Board(position).turn)

    def legal_move(
        self, position: FEN, move_text: str, permissive: bool = True
    ) -> MoveOutcome | None:
        board = chess.Board(position)
        move = self._find_move(board, move_text, permissive)
        # NOTE: a null move ('0000') is falsy
        if not move:
            return None

        moving_piece = board.piece_at(move.from_square)
        if moving_piece is None:
            return None

        if board.is_en_passant(move):
            captured: Optional[PieceType] = PieceType.PAWN
        else:
            target = board.piece_at(move.to_square)
            captured = _piece_type(target.piece_type) if target else None

        san = board.san(move)
        color = _color(board.turn)
        board.push(move)
        return MoveOutcome(
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            san=san,
            color=color,
            piece=_piece_type(moving_piece.piece_type),
            captured=captured,
            position=board.fen(),
        )

    def is_checkmate(self, position: FEN) -> bool:
        return chess.Board(position).is_checkmate()

    def is_stalemate(self, position: FEN) -> bool:
        return chess.Board(position).is_stalemate()

    def is_other_draw(
        self, position: FEN, earlier_positions: Sequence[FEN] = ()
    ) -> bool:
        """
        Any drawn outcome besides stalemate.
        ----
        1. insufficient material
        2. fifty-move rule
        3. threefold repetition (a FEN on its own has no memory, so earlier positions of the game must be supplied)
        """
        board = chess.Board(position)
        if board.is_insufficient_material():
            return True
        if board.halfmove_clock >= HALF_MOVE_LIMIT:
            return True

        key = _repetition_key(board.fen())
        occurrences = 1 + sum(
            1 for earlier in earlier_positions if _repetition_key(earlier) == key
        )
        return occurrences >= REPETITION_LIMIT

    def undo(self, position: FEN, moves: Sequence[str]) -> UndoOutcome | None:
        if not moves:
            return None

        # replay the whole line: it only counts if it actually leads to the current position
        board = chess.Board()
        try:
            for san in moves:
                board.push_san(san)
            current = chess.Board(position).fen()
        except ValueError:
            return None
        if board.fen() != current:
            return None

        board.pop()
        last_move = None
        if board.move_stack:
            previous = board.move_stack[-1]
            last_move = LastMove(
                from_square=chess.square_name(previous.from_square),
                to_square=chess.square_name(previous.to_square),
            )
        return UndoOutcome(position=board.fen(), last_move=last_move)

    # -- PRIVATE HELPERS ---
    def _find_move(
        self, board: chess.Board, move_text: str, permissive: bool
    ) -> chess.Move | None:
        """
        Exact UCI first (e.g. 'e2e4', 'e7e8q').
        If permissive, fall back to SAN parsing ('Nf3', 'exd5', ...). An ambiguous SAN is rejected.
        """
        try:
            return board.parse_uci(move_text)
        except ValueError:
            pass

        if not permissive:
            return None

        try:
            return board.parse_san(move_text)
        except ValueError:
            return None
