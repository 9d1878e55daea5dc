"""
Custom exceptions shared by all layers.

The domain/service layers raise these; the API layer decides how each one is presented to a client.
"""


class ChessAppError(Exception):
    """Top-level exception for anything the application rejects on purpose."""


# --- Request / input problems
class ValidationError(ChessAppError):
    """Malformed player name (or other creation input)."""


class InvalidFormatError(ChessAppError):
    """Move text does not match the accepted move grammar."""


class IllegalMoveError(ChessAppError):
    """Move is well-formed but not legal (or ambiguous) in the current position."""


# --- Game state problems
class UnauthorizedError(ChessAppError):
    """Missing or incorrect write token."""


class GameOverError(ChessAppError):
    """Mutation attempted on a game that already ended."""


class NoHistoryError(ChessAppError):
    """Undo requested while there is no move to take back."""


# --- Persistence problems
class NotFoundError(ChessAppError):
    """Referenced game id has no record."""


class StoreError(ChessAppError):
    """The underlying key-value store failed (or returned something unreadable)."""
