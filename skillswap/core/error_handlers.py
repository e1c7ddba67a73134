"""Global exception handlers mapping failures to the JSON error body."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import SkillSwapError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Attach domain, validation and catch-all handlers to ``app``."""

    @app.exception_handler(SkillSwapError)
    async def skillswap_error_handler(request: Request, exc: SkillSwapError) -> JSONResponse:
        logger.info(
            "%s %s -> %s",
            request.method,
            request.url.path,
            exc.http_status,
            extra={"error_code": exc.code},
        )
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Validation error on %s", request.url.path, extra={"error_code": "VALIDATION_ERROR"})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "kind": "bad_request",
                    "message": "Invalid request data",
                    "statusCode": status.HTTP_400_BAD_REQUEST,
                    "details": [
                        {
                            "field": ".".join(str(part) for part in error["loc"]),
                            "message": error["msg"],
                            "type": error["type"],
                        }
                        for error in exc.errors()
                    ],
                }
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "kind": "internal",
                    "message": "An unexpected error occurred",
                    "statusCode": status.HTTP_500_INTERNAL_SERVER_ERROR,
                }
            },
        )
