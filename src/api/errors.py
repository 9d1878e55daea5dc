"""Translate domain exceptions into HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.exceptions import (
    ChessAppError,
    GameOverError,
    IllegalMoveError,
    InvalidFormatError,
    NoHistoryError,
    NotFoundError,
    StoreError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[ChessAppError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidFormatError: status.HTTP_400_BAD_REQUEST,
    IllegalMoveError: status.HTTP_400_BAD_REQUEST,
    GameOverError: status.HTTP_400_BAD_REQUEST,
    NoHistoryError: status.HTTP_400_BAD_REQUEST,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(exc: ChessAppError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return status.HTTP_400_BAD_REQUEST


async def chess_app_error_handler(request: Request, exc: ChessAppError) -> JSONResponse:
    code = status_code_for(exc)
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        message = "Failed to access game state"
    else:
        message = str(exc)
    return JSONResponse(status_code=code, content={"message": message})


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request (bad JSON, wrong token type, ...): a 400 in the same shape as every other error."""
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        detail = errors[0].get("msg", "")
        message = f"Invalid request: {location} {detail}" if location else f"Invalid request: {detail}"
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChessAppError, chess_app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
