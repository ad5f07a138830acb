"""Mapping of engine rejections and failures to HTTP responses"""
from typing import Dict, NoReturn

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from domain.enums import RejectionReason
from domain.exceptions import RepositoryUnavailableError
from domain.value_objects import REJECTION_MESSAGES, Rejection
from infrastructure.logger import get_logger

logger = get_logger()

REJECTION_STATUS_CODES: Dict[RejectionReason, int] = {
    RejectionReason.VALIDATION_ERROR: 422,
    RejectionReason.NOT_FOUND: 404,
    RejectionReason.RESOURCE_UNAVAILABLE: 400,
    RejectionReason.INVALID_INTERVAL: 400,
    RejectionReason.CAPACITY_EXCEEDED: 400,
    RejectionReason.BLACKOUT_CONFLICT: 409,
    RejectionReason.BOOKING_CONFLICT: 409,
    RejectionReason.FORBIDDEN: 403,
    RejectionReason.ALREADY_TERMINAL: 409,
    RejectionReason.INVALID_TRANSITION: 409,
    RejectionReason.ALREADY_REVIEWED: 409,
}


def rejection_body(rejection: Rejection) -> dict:
    return {"error": rejection.reason.value, "message": rejection.message, "detail": rejection.detail}


def raise_for_rejection(rejection: Rejection) -> NoReturn:
    raise HTTPException(
        status_code=REJECTION_STATUS_CODES[rejection.reason],
        detail=rejection_body(rejection),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Field-level detail for malformed requests"""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({
            "detail": {
                "error": RejectionReason.VALIDATION_ERROR.value,
                "message": REJECTION_MESSAGES[RejectionReason.VALIDATION_ERROR],
                "errors": errors,
            }
        }),
    )


async def repository_unavailable_handler(request: Request, exc: RepositoryUnavailableError) -> JSONResponse:
    logger.exception("Repository unavailable", extra={"path": request.url.path})
    return JSONResponse(
        status_code=503,
        content={"detail": {"error": "ServiceUnavailable", "message": "Service temporarily unavailable"}},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return JSONResponse(
        status_code=500,
        content={"detail": {"error": "InternalError", "message": "Internal server error"}},
    )
