"""HTTP error envelope

Use-case errors travel to the client as ``{"error": {"code", "message"}}``.
``Error.reason`` is internal and only ever logged.
"""

import logging
from typing import Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from libs.result import Error

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "EMPTY_ITEMS": status.HTTP_400_BAD_REQUEST,
    "INVALID_ITEM_AMOUNT": status.HTTP_400_BAD_REQUEST,
    "INVALID_ITEM_DESCRIPTION": status.HTTP_400_BAD_REQUEST,
    "INVALID_AMOUNT": status.HTTP_400_BAD_REQUEST,
    "NO_RECIPIENTS": status.HTTP_400_BAD_REQUEST,
    "INVOICE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PAYMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "STUDENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "OVERPAYMENT": status.HTTP_409_CONFLICT,
    "INVOICE_ALREADY_PAID": status.HTTP_409_CONFLICT,
    "ALREADY_PROCESSED": status.HTTP_409_CONFLICT,
    "CONSTRAINT_VIOLATION": status.HTTP_409_CONFLICT,
    "DUPLICATE_INVOICE_NUMBER": status.HTTP_409_CONFLICT,
    "INVOICE_HAS_PAYMENTS": status.HTTP_409_CONFLICT,
    "TRANSIENT_STORE_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ClientError(Exception):
    """
    Raised by routes for a failed use-case Result

    status_code defaults to the code's mapping; unknown codes (the
    ``<OPERATION>_FAILED`` family) are server errors.
    """

    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or ERROR_STATUS_CODES.get(
            error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )


def error_body(code: str, message: str, details=None) -> dict:
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return {"error": body}


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    error = exc.error
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {error.code} {error.message} "
            f"(reason: {error.reason})"
        )
    elif error.reason:
        logger.info(f"{request.method} {request.url.path}: {error.code} (reason: {error.reason})")

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(error.code, error.message, error.details)),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "loc": list(err.get("loc", ())),
            "msg": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            error_body("VALIDATION_ERROR", "Invalid request parameters", {"errors": errors})
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("INTERNAL_ERROR", "Internal server error"),
    )
