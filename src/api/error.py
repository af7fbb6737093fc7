"""HTTP error mapping

Use case errors are raised as ClientError and rendered as
{"error": {"code", "message", "details"}}.
"""

import logging
from typing import Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error, ErrorCategory

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "PAYMENT_AMOUNT_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
    "ACCESS_EXPIRED": status.HTTP_402_PAYMENT_REQUIRED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "VOUCHER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PAYMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SUBSCRIPTION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


def status_code_for(error: Error) -> int:
    """
    HTTP status for a use case error

    Explicit codes first, then by category: validation 400,
    infrastructure 503, remaining business rule violations 409.
    """
    if error.code in ERROR_STATUS_CODES:
        return ERROR_STATUS_CODES[error.code]
    if error.category == ErrorCategory.VALIDATION:
        return status.HTTP_400_BAD_REQUEST
    if error.category == ErrorCategory.INFRASTRUCTURE:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_409_CONFLICT


class ClientError(Exception):
    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or status_code_for(error)


def error_body(error: Error) -> dict:
    return {
        "error": {
            "code": error.code,
            "message": error.message,
            "details": error.details,
        }
    }


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.error.code}: {exc.error.reason}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = Error(
        code="VALIDATION_ERROR",
        message="Invalid request parameters",
        category=ErrorCategory.VALIDATION,
        details={"errors": [
            {"loc": list(item.get("loc", [])), "msg": item.get("msg")} for item in exc.errors()
        ]},
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(error))
