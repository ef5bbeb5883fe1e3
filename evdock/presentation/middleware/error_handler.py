"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from evdock.domain.exceptions import (
    ClearAllDisabledException,
    ConcurrentModificationException,
    DomainException,
    DuplicateInstallmentException,
    InvalidInstallmentRequestException,
    NoOutstandingPaymentException,
    NotFoundException,
    PaymentAlreadyMadeException,
    StorageException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "request_id": get_request_id(),
        },
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exceptions to appropriate HTTP responses.
    """

    @app.exception_handler(NotFoundException)
    async def not_found_handler(
        request: Request,
        exc: NotFoundException,
    ) -> JSONResponse:
        """Handle missing plans and schedule months."""
        return _error_response(404, exc.code, exc.message)

    @app.exception_handler(InvalidInstallmentRequestException)
    async def invalid_request_handler(
        request: Request,
        exc: InvalidInstallmentRequestException,
    ) -> JSONResponse:
        """Handle invalid request errors."""
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(PaymentAlreadyMadeException)
    @app.exception_handler(NoOutstandingPaymentException)
    @app.exception_handler(DuplicateInstallmentException)
    async def conflict_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle requests that conflict with the plan's current state."""
        logger.info(
            "request_conflict",
            request_id=get_request_id(),
            code=exc.code,
        )
        return _error_response(409, exc.code, exc.message)

    @app.exception_handler(ClearAllDisabledException)
    async def clear_all_disabled_handler(
        request: Request,
        exc: ClearAllDisabledException,
    ) -> JSONResponse:
        return _error_response(403, exc.code, exc.message)

    @app.exception_handler(ConcurrentModificationException)
    async def concurrent_modification_handler(
        request: Request,
        exc: ConcurrentModificationException,
    ) -> JSONResponse:
        """Handle writes that kept losing the compare-and-swap race."""
        logger.warning(
            "concurrent_modification",
            request_id=get_request_id(),
            message=exc.message,
        )
        return _error_response(
            409,
            exc.code,
            "Installments were modified concurrently. Please retry.",
        )

    @app.exception_handler(StorageException)
    async def storage_error_handler(
        request: Request,
        exc: StorageException,
    ) -> JSONResponse:
        """Handle storage read/write failures."""
        logger.error(
            "storage_error",
            request_id=get_request_id(),
            message=exc.message,
        )
        return _error_response(
            503,
            exc.code,
            "Installment storage is temporarily unavailable. Please try again.",
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")
