"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException, NotFoundException
from .installment import (
    ClearAllDisabledException,
    DuplicateInstallmentException,
    InstallmentNotFoundException,
    InvalidInstallmentRequestException,
    NoOutstandingPaymentException,
    PaymentAlreadyMadeException,
    PaymentMonthNotFoundException,
)
from .storage import ConcurrentModificationException, StorageException

__all__ = [
    "DomainException",
    "NotFoundException",
    "ClearAllDisabledException",
    "DuplicateInstallmentException",
    "InstallmentNotFoundException",
    "InvalidInstallmentRequestException",
    "NoOutstandingPaymentException",
    "PaymentAlreadyMadeException",
    "PaymentMonthNotFoundException",
    "ConcurrentModificationException",
    "StorageException",
]
