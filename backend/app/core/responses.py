from __future__ import annotations

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.exceptions import AppError


def error_response(
    status_code: int,
    message: str,
    error_type: str,
    details: dict | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    """Build the failure envelope shared by exception handlers and middleware."""
    error = {"type": error_type}
    if details:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "message": message, "error": error}),
        headers=headers,
    )


def app_error_response(exc: AppError, headers: dict | None = None) -> JSONResponse:
    return error_response(exc.status_code, exc.message, exc.error_type, exc.details, headers=headers)
