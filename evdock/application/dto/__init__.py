"""Data Transfer Objects for application layer."""

from .installment import (
    CreateInstallmentRequest,
    InstallmentStatistics,
    OverduePayment,
    PaymentOverrides,
    UpcomingPayment,
)

__all__ = [
    "CreateInstallmentRequest",
    "InstallmentStatistics",
    "OverduePayment",
    "PaymentOverrides",
    "UpcomingPayment",
]
