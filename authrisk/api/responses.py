"""Uniform JSON error envelope for the HTTP layer.

Every non-200 response has the same shape:
    {success: false, code, error, message, requestId}
Internal details never reach the body; they go to the log with the request id.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
CSRF_BLOCKED = "CSRF_BLOCKED"
INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(
    status_code: int,
    code: str,
    message: str,
    request_id: str,
    **extra: Any,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "code": code,
            "error": message,
            "message": message,
            "requestId": request_id,
            **extra,
        },
    )


def internal_error_response(request_id: str, scope: str, exc: BaseException) -> JSONResponse:
    logger.error("[%s] request %s failed", scope, request_id, exc_info=exc)
    return error_response(500, INTERNAL_ERROR, "Internal server error", request_id)
