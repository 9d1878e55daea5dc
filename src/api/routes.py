"""HTTP endpoints. Each one is a thin call into the ChessService."""

from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Response, status

from src.api.dependencies import get_chess_service, header_or_query_token
from src.api.models import (
    CreatedGameResponse,
    CreateGameRequest,
    ErrorResponse,
    GameResponse,
    MoveRequest,
    TokenRequest,
    WelcomeResponse,
)
from src.services.chess_service import ChessService

router = APIRouter(
    prefix="/api",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

Service = Annotated[ChessService, Depends(get_chess_service)]
Token = Annotated[Optional[str], Depends(header_or_query_token)]

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.post(
    "/games", response_model=CreatedGameResponse, status_code=status.HTTP_201_CREATED
)
def create_game(request: CreateGameRequest, service: Service) -> CreatedGameResponse:
    return service.create_game(request)


@router.get("/games/{game_id}", response_model=GameResponse)
def get_game(game_id: str, service: Service) -> GameResponse:
    return service.get_game(game_id)


@router.post("/games/{game_id}/moves", response_model=GameResponse)
def make_move(
    game_id: str, request: MoveRequest, service: Service, token: Token
) -> GameResponse:
    return service.make_move(game_id, request, token or request.token)


@router.post("/games/{game_id}/resign", response_model=GameResponse)
def resign(
    game_id: str,
    service: Service,
    token: Token,
    body: Annotated[Optional[TokenRequest], Body()] = None,
) -> GameResponse:
    return service.resign(game_id, token or (body.token if body else None))


@router.post("/games/{game_id}/undo", response_model=GameResponse)
def undo(
    game_id: str,
    service: Service,
    token: Token,
    body: Annotated[Optional[TokenRequest], Body()] = None,
) -> GameResponse:
    return service.undo(game_id, token or (body.token if body else None))


@router.get("/trmnl-state", response_model=GameResponse | WelcomeResponse)
@router.get("/display-state", response_model=GameResponse | WelcomeResponse, include_in_schema=False)
def display_state(
    response: Response, service: Service
) -> GameResponse | WelcomeResponse:
    """Polled by the e-paper display. Never cached, since the board changes under the same URL."""
    response.headers.update(NO_CACHE_HEADERS)
    return service.display_state()


@router.post("/reset-current", response_model=WelcomeResponse)
def reset_current(
    service: Service,
    token: Token,
    body: Annotated[Optional[TokenRequest], Body()] = None,
) -> WelcomeResponse:
    return service.reset_current(token or (body.token if body else None))
