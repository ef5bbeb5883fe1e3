"""Data transfer objects for installment plan operations."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from evdock.service.amortization import AmortizationSettings, amortization_settings, validate_terms


@dataclass(frozen=True)
class CreateInstallmentRequest:
    """Input data for opening an installment plan on a paid quotation."""

    quotation_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    total_amount: Decimal
    installment_months: int
    interest_rate: Optional[Decimal] = None
    start_date: Optional[datetime] = None
    created_by: Optional[str] = None
    dealer_id: Optional[str] = None

    def validate(self, settings: AmortizationSettings = amortization_settings) -> List[str]:
        errors = []

        if not self.quotation_id or not self.quotation_id.strip():
            errors.append("quotation_id is required")

        if not self.customer_id or not self.customer_id.strip():
            errors.append("customer_id is required")

        if not self.customer_name or not self.customer_name.strip():
            errors.append("customer_name is required")

        errors.extend(
            validate_terms(
                self.total_amount, self.installment_months, self.interest_rate, settings
            )
        )

        return errors


@dataclass(frozen=True)
class PaymentOverrides:
    """Optional values recorded instead of the defaults (amount due, now)."""

    paid_amount: Optional[Decimal] = None
    paid_date: Optional[datetime] = None

    def validate(self) -> List[str]:
        errors = []

        if self.paid_amount is not None and self.paid_amount <= 0:
            errors.append("paid_amount must be positive")

        return errors


@dataclass(frozen=True)
class UpcomingPayment:
    """Next pending installment of an active plan that falls due soon."""

    installment_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    month: int
    due_date: datetime
    amount: Decimal
    days_until_due: int


@dataclass(frozen=True)
class OverduePayment:
    """Installment whose due date passed while it was still pending."""

    installment_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    month: int
    due_date: datetime
    amount: Decimal
    days_overdue: int


@dataclass(frozen=True)
class InstallmentStatistics:
    """Portfolio summary; monetary sums cover active plans only."""

    total_installments: int
    active_installments: int
    completed_installments: int
    defaulted_installments: int
    cancelled_installments: int
    overdue_payments: int
    upcoming_payments: int
    total_installment_value: Decimal
    total_collected: Decimal
    total_remaining: Decimal
    collection_rate: Decimal
