"""
Payment Schedule Calculation for EVDock installment plans.

Plans use a flat-rate approximation rather than a declining balance:
every month carries the same payment, principal share and interest
share, and only the remaining balance changes from month to month.

    monthly_rate    = annual_rate / 12 / 100
    monthly_payment = (total / months) * (1 + monthly_rate * months / 2)
    total_payable   = monthly_payment * months
    interest_amount = total_payable - total
"""

import calendar
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Tuple

from evdock.domain.entities import PaymentScheduleEntry, ensure_utc, to_decimal, utc_now
from evdock.domain.exceptions import InvalidInstallmentRequestException

from .settings import AmortizationSettings, amortization_settings


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months to a datetime.

    The day is clamped to the last day of the target month, so
    January 31 plus one month is February 28 (or 29). Time of day and
    tzinfo are preserved.
    """
    month = value.month - 1 + months
    year = value.year + month // 12
    month = month % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def validate_terms(
    total_amount: Any,
    installment_months: Any,
    interest_rate: Any,
    settings: AmortizationSettings = amortization_settings,
) -> List[str]:
    """
    Check financing terms.

    Returns:
        A list of error messages, empty when the terms are valid
    """
    errors = []

    if isinstance(installment_months, bool) or not isinstance(installment_months, int):
        errors.append("installment_months must be an integer")
    elif installment_months <= 0:
        errors.append("installment_months must be positive")
    elif installment_months > settings.max_installment_months:
        errors.append(
            f"installment_months must not exceed {settings.max_installment_months}"
        )

    try:
        if to_decimal(total_amount) <= 0:
            errors.append("total_amount must be positive")
    except ArithmeticError:
        errors.append("total_amount must be a number")

    if interest_rate is not None:
        try:
            if to_decimal(interest_rate) < 0:
                errors.append("interest_rate must not be negative")
        except ArithmeticError:
            errors.append("interest_rate must be a number")

    return errors


def calculate_plan_totals(
    total_amount: Decimal,
    installment_months: int,
    interest_rate: Decimal,
) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Compute the flat monthly payment and plan totals.

    Returns:
        Tuple of (monthly_payment, total_payable, interest_amount)
    """
    monthly_rate = interest_rate / 12 / 100
    monthly_payment = (total_amount / installment_months) * (
        1 + monthly_rate * installment_months / 2
    )
    total_payable = monthly_payment * installment_months
    interest_amount = total_payable - total_amount

    return monthly_payment, total_payable, interest_amount


def calculate_payment_schedule(
    total_amount: Any,
    installment_months: int,
    interest_rate: Any = None,
    start_date: datetime | None = None,
    settings: AmortizationSettings = amortization_settings,
) -> List[PaymentScheduleEntry]:
    """
    Build the month-by-month schedule for a plan.

    Args:
        total_amount: Financed amount in currency units
        installment_months: Number of monthly installments
        interest_rate: Annual rate in percent (settings default if None)
        start_date: Plan start; month N is due N calendar months later
        settings: Amortization settings (uses defaults if not provided)

    Returns:
        Exactly installment_months pending entries, ordered by month

    Raises:
        InvalidInstallmentRequestException: If the terms are invalid
    """
    errors = validate_terms(total_amount, installment_months, interest_rate, settings)
    if errors:
        raise InvalidInstallmentRequestException("; ".join(errors))

    total = to_decimal(total_amount)
    rate = settings.default_interest_rate if interest_rate is None else to_decimal(interest_rate)
    start = ensure_utc(start_date) if start_date else utc_now()

    monthly_payment, _, interest_amount = calculate_plan_totals(total, installment_months, rate)
    principal_payment = total / installment_months
    interest_payment = interest_amount / installment_months

    return [
        PaymentScheduleEntry(
            month=month,
            due_date=add_months(start, month),
            amount=monthly_payment,
            principal=principal_payment,
            interest=interest_payment,
            remaining_balance=(
                total - principal_payment * month if month < installment_months else Decimal("0")
            ),
        )
        for month in range(1, installment_months + 1)
    ]
