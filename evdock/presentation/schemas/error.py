"""Pydantic schema for API error responses."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponseSchema(BaseModel):
    """
    Body of every non-2xx response raised from a domain error.

    ``error`` is the exception's stable code (INSTALLMENT_NOT_FOUND,
    PAYMENT_MONTH_NOT_FOUND, PAYMENT_ALREADY_MADE, NO_OUTSTANDING_PAYMENT,
    DUPLICATE_INSTALLMENT, CONCURRENT_MODIFICATION, CLEAR_ALL_DISABLED,
    INVALID_INSTALLMENT_REQUEST, STORAGE_ERROR or INTERNAL_ERROR).
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "PAYMENT_ALREADY_MADE",
                    "message": "Payment for month 3 already recorded (installment INST1705276800000K3J9Q2ZTA)",
                    "request_id": "3f2b9c1e-6a41-4d5e-9a0b-7c8d2e1f4a56",
                }
            ]
        }
    )

    error: str = Field(..., description="Machine-readable error code", examples=["INSTALLMENT_NOT_FOUND"])
    message: str = Field(..., description="Human-readable error message")
    request_id: str | None = Field(None, description="X-Request-ID of the failed request")
