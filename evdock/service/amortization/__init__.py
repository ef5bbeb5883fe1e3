"""
Amortization Engine for EVDock installment plans
"""

from .settings import AmortizationSettings, amortization_settings
from .schedule import (
    add_months,
    calculate_payment_schedule,
    calculate_plan_totals,
    validate_terms,
)
from .classification import (
    classify_entry,
    days_between,
    find_overdue_entries,
    first_pending_entry,
    next_unpaid_entry,
)

__all__ = [
    # Settings
    "AmortizationSettings",
    "amortization_settings",
    # Schedule
    "add_months",
    "calculate_payment_schedule",
    "calculate_plan_totals",
    "validate_terms",
    # Classification
    "classify_entry",
    "days_between",
    "find_overdue_entries",
    "first_pending_entry",
    "next_unpaid_entry",
]
