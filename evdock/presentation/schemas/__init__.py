"""Pydantic schemas for API request/response validation."""

from .installment import (
    CreateInstallmentRequestSchema,
    InstallmentListResponseSchema,
    InstallmentPlanSchema,
    InstallmentStatisticsSchema,
    OverduePaymentSchema,
    OverduePaymentsResponseSchema,
    PaymentScheduleEntrySchema,
    RecordPaymentRequestSchema,
    UpcomingPaymentSchema,
    UpcomingPaymentsResponseSchema,
)
from .error import ErrorResponseSchema

__all__ = [
    "CreateInstallmentRequestSchema",
    "InstallmentListResponseSchema",
    "InstallmentPlanSchema",
    "InstallmentStatisticsSchema",
    "OverduePaymentSchema",
    "OverduePaymentsResponseSchema",
    "PaymentScheduleEntrySchema",
    "RecordPaymentRequestSchema",
    "UpcomingPaymentSchema",
    "UpcomingPaymentsResponseSchema",
    "ErrorResponseSchema",
]
