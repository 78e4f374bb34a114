"""
Error responses.

Every failure leaves the API as ``{"success": false, "error": ..., "timestamp": ...}``
plus whatever extra fields the raising code attached (``invalidEmails``,
``details``).
"""
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ApiError(HTTPException):
    """HTTPException that carries extra top-level fields for the error body."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        extra: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.extra = extra or {}


class InvalidInput(ApiError):
    def __init__(self, detail: str, **extra: Any):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, extra)


class Forbidden(ApiError):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class NotFound(ApiError):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class InternalError(ApiError):
    def __init__(self, detail: str, details: str):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR, detail, {"details": details}
        )


def error_body(detail: Any, extra: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": detail}
    if extra:
        body.update(extra)
    body["timestamp"] = utc_timestamp()
    return body


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    extra = getattr(exc, "extra", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.detail, extra)),
        headers=exc.headers,
    )


def _error_details(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            error_body("Validation error", {"details": _error_details(exc)})
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
