"""Application services (use cases)."""

from .installment_service import InstallmentService

__all__ = [
    "InstallmentService",
]
