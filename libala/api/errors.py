"""Exception handlers shared by every router."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def _field_errors(exc: RequestValidationError) -> list[dict]:
    # Submitted values are left out so passwords never echo back
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for validation failures and unexpected errors."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Validation failed.", "errors": _field_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        user = getattr(request.state, "user", None)
        user_id = user.id if user is not None else None
        logger.exception(
            f"Unhandled error on {request.method} {request.url.path} (user {user_id}): {exc}"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error."},
        )
