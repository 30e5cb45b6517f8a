"""Exception handlers that turn errors into the API error envelope."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from feedboard.errors import FeedError, UnexpectedError, ValidationError, violation

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI app."""

    @app.exception_handler(FeedError)
    async def feed_error_handler(request: Request, exc: FeedError):
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}", exc_info=exc)
        else:
            logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_response(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        violations = [
            violation(".".join(str(loc) for loc in e["loc"] if loc != "body"), e["msg"])
            for e in exc.errors()
        ]
        logger.info(f"Invalid request on {request.url.path}: {violations}")
        error = ValidationError(violations)
        return JSONResponse(status_code=error.status_code, content=error.to_response())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=UnexpectedError().to_response(),
        )
