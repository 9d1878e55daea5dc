"""Implementation of KeyValueStore using SQLAlchemy"""

import logging
from typing import NoReturn

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.core.exceptions import StoreError
from src.db.schema import DBEntry

logger = logging.getLogger(__name__)


class SQLKeyValueStore:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get(self, key: str) -> bytes | None:
        try:
            entry = self._fetch_entry(key)
        except SQLAlchemyError as exc:
            self._fail("read", key, exc)
        return entry.value if entry else None

    def set(self, key: str, value: bytes) -> None:
        try:
            entry = self._fetch_entry(key)
            if entry:
                entry.value = value
            else:
                self.db.add(DBEntry(key=key, value=value))
            self.db.commit()
        except SQLAlchemyError as exc:
            self._fail("write", key, exc)

    def delete(self, key: str) -> None:
        """Remove a key. Deleting a missing key is not an error."""
        try:
            entry = self._fetch_entry(key)
            if entry:
                self.db.delete(entry)
                self.db.commit()
        except SQLAlchemyError as exc:
            self._fail("delete", key, exc)

    def _fetch_entry(self, key: str) -> DBEntry | None:
        query = select(DBEntry).where(DBEntry.key == key)
        return self.db.scalar(query)

    def _fail(self, action: str, key: str, exc: SQLAlchemyError) -> NoReturn:
        """Undo whatever the session had pending and re-raise as a StoreError."""
        self.db.rollback()
        logger.error("Failed to %s key %r: %s", action, key, exc)
        raise StoreError(f"Failed to {action} {key!r}") from exc
