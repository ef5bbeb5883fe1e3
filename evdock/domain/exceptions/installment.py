"""Installment-related domain exceptions."""

from .base import DomainException, NotFoundException


class InstallmentNotFoundException(NotFoundException):
    """Raised when an installment plan cannot be found."""

    def __init__(self, installment_id: str):
        super().__init__(
            message=f"Installment not found: {installment_id}",
            code="INSTALLMENT_NOT_FOUND",
        )
        self.installment_id = installment_id


class PaymentMonthNotFoundException(NotFoundException):
    """Raised when a plan has no schedule entry for the requested month."""

    def __init__(self, installment_id: str, month: int):
        super().__init__(
            message=f"Payment month not found: {month} (installment {installment_id})",
            code="PAYMENT_MONTH_NOT_FOUND",
        )
        self.installment_id = installment_id
        self.month = month


class InvalidInstallmentRequestException(DomainException):
    """Raised when plan terms or payment data are invalid."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_INSTALLMENT_REQUEST",
        )


class PaymentAlreadyMadeException(DomainException):
    """Raised when recording a payment for a month that is already paid."""

    def __init__(self, installment_id: str, month: int):
        super().__init__(
            message=f"Payment for month {month} already recorded (installment {installment_id})",
            code="PAYMENT_ALREADY_MADE",
        )
        self.installment_id = installment_id
        self.month = month


class NoOutstandingPaymentException(DomainException):
    """Raised when a plan has no pending or overdue entry left to pay."""

    def __init__(self, installment_id: str):
        super().__init__(
            message=f"No outstanding payment for installment {installment_id}",
            code="NO_OUTSTANDING_PAYMENT",
        )
        self.installment_id = installment_id


class DuplicateInstallmentException(DomainException):
    """Raised when a quotation already has an installment plan."""

    def __init__(self, quotation_id: str, installment_id: str):
        super().__init__(
            message=f"Quotation {quotation_id} already has installment {installment_id}",
            code="DUPLICATE_INSTALLMENT",
        )
        self.quotation_id = quotation_id
        self.installment_id = installment_id


class ClearAllDisabledException(DomainException):
    """Raised when clearing all installments is not enabled."""

    def __init__(self):
        super().__init__(
            message="Clearing all installments is disabled",
            code="CLEAR_ALL_DISABLED",
        )
