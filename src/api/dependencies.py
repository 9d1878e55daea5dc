"""Dependency injection for the routes: the service and the write token of a request."""

from typing import Annotated, Optional

from fastapi import Depends, Header, Query
from sqlalchemy.orm import Session

from src.chess.rules import PythonChessRules
from src.core.config import settings
from src.db.database import get_db
from src.db.repository import CurrentGamePointer, GameRepository
from src.db.sql_store import SQLKeyValueStore
from src.services.chess_service import ChessService
from src.services.game_state_machine import GameStateMachine

BEARER_PREFIX = "Bearer "


def get_chess_service(db: Session = Depends(get_db)) -> ChessService:
    store = SQLKeyValueStore(db)
    return ChessService(
        repository=GameRepository(store),
        pointer=CurrentGamePointer(store, settings.current_game_key),
        machine=GameStateMachine(PythonChessRules()),
    )


def extract_token(
    header_token: Optional[str],
    authorization: Optional[str],
    fallback: Optional[str],
) -> Optional[str]:
    """Explicit game token header first, then a bearer token, then a token passed in the query string or body."""
    bearer = (
        authorization[len(BEARER_PREFIX) :]
        if authorization and authorization.startswith(BEARER_PREFIX)
        else None
    )
    return header_token or bearer or fallback or None


def header_or_query_token(
    x_game_token: Annotated[Optional[str], Header()] = None,
    x_gametoken: Annotated[Optional[str], Header(alias="x-gametoken")] = None,
    authorization: Annotated[Optional[str], Header()] = None,
    token: Annotated[Optional[str], Query()] = None,
) -> Optional[str]:
    """Token found outside of the request body (the route adds the body's token as last resort)."""
    return extract_token(x_game_token or x_gametoken, authorization, token)
