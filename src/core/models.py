"""
Boundary layer data model(s).

These objects are passed between the API layer, the Service, the state machine and the persistence layer.
The serialized (dict / JSON) form uses the field tags the browser and display clients already know,
so records written by older versions of the backend can still be read back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Self

from src.core.shared_types import (
    COLOR_LETTERS,
    PIECE_LETTERS,
    Color,
    PieceType,
    Status,
    Winner,
)

# Type aliases to make GameRecord easier to read
PlayerName = str
SquareName = str
FEN = str


def parse_color(value: str) -> Color:
    """Accept both 'white'/'black' and the single letter 'w'/'b' spelling."""
    return COLOR_LETTERS.get(value) or Color(value)


def parse_piece(value: str) -> PieceType:
    """Accept both 'knight' and the single letter 'n' spelling."""
    return PIECE_LETTERS.get(value.lower()) or PieceType(value)


@dataclass(frozen=True)
class LastMove:
    from_square: SquareName
    to_square: SquareName

    def to_dict(self) -> dict[str, str]:
        return {"from": self.from_square, "to": self.to_square}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(from_square=data["from"], to_square=data["to"])


@dataclass(frozen=True)
class MoveRecord:
    """One applied move, as kept in a game's history."""

    san: str
    from_square: SquareName
    to_square: SquareName
    color: Color
    piece: PieceType
    captured: Optional[PieceType]
    fen: FEN  # position AFTER the move
    at: int  # epoch milliseconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "san": self.san,
            "from": self.from_square,
            "to": self.to_square,
            "color": str(self.color),
            "piece": str(self.piece),
            "captured": str(self.captured) if self.captured else None,
            "fen": self.fen,
            "at": self.at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        captured = data.get("captured")
        return cls(
            san=data["san"],
            from_square=data["from"],
            to_square=data["to"],
            color=parse_color(data["color"]),
            piece=parse_piece(data["piece"]),
            captured=parse_piece(captured) if captured else None,
            fen=data["fen"],
            at=int(data.get("at", 0)),
        )


@dataclass
class GameRecord:
    """Everything persisted about one game."""

    id: str
    players: list[PlayerName]
    fen: FEN
    status: Status
    winner: Optional[Winner]
    turn: Color
    write_token: str
    last_move: Optional[LastMove] = None
    history: list[MoveRecord] = field(default_factory=list)

    @property
    def is_over(self) -> bool:
        return self.status != Status.IN_PROGRESS

    def to_dict(self, include_token: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "players": list(self.players),
            "fen": self.fen,
            "status": str(self.status),
            "winner": str(self.winner) if self.winner else None,
            "turn": str(self.turn),
            "lastMove": self.last_move.to_dict() if self.last_move else None,
            "history": [move.to_dict() for move in self.history],
        }
        if include_token:
            data["writeToken"] = self.write_token
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Rebuild a record from its serialized form.
        ----
        Unknown keys are ignored. Fields added after the first version of the record get a default when absent.
        """
        last_move = data.get("lastMove")
        winner = data.get("winner")
        return cls(
            id=data["id"],
            players=list(data["players"]),
            fen=data["fen"],
            status=Status(data["status"]),
            winner=Winner(winner) if winner else None,
            turn=parse_color(data["turn"]),
            write_token=data.get("writeToken") or "",
            last_move=LastMove.from_dict(last_move) if last_move else None,
            history=[MoveRecord.from_dict(move) for move in data.get("history") or []],
        )
