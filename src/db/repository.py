"""
Persistence of game records on top of a plain key-value store.

The KeyValueStore protocol can be implemented with SQLAlchemy (see sql_store.py), a dict, Redis, ...
"""

import json
import logging
from typing import Protocol

from src.core.exceptions import StoreError
from src.core.models import GameRecord

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Get / set / delete bytes by key. Failures surface as StoreError."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class GameRepository:
    """Game records stored as JSON, keyed by game id."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get_game(self, game_id: str) -> GameRecord | None:
        """Get game by ID, if record exists."""
        raw = self.store.get(game_id)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            return GameRecord.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Stored record for game %s is unreadable: %s", game_id, exc)
            raise StoreError(f"Stored record for game {game_id!r} is unreadable") from exc

    def save_game(self, record: GameRecord) -> None:
        """Create or overwrite the record (last writer wins)."""
        payload = json.dumps(record.to_dict(include_token=True)).encode("utf-8")
        self.store.set(record.id, payload)

    def delete_game(self, game_id: str) -> None:
        self.store.delete(game_id)


class CurrentGamePointer:
    """Single slot naming the game a polling display should show."""

    def __init__(self, store: KeyValueStore, key: str) -> None:
        self.store = store
        self.key = key

    def get(self) -> str | None:
        raw = self.store.get(self.key)
        if not raw:
            return None
        return raw.decode("utf-8").strip() or None

    def set(self, game_id: str) -> None:
        self.store.set(self.key, game_id.encode("utf-8"))

    def clear(self) -> None:
        self.store.delete(self.key)
