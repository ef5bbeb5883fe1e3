"""
Schedule Entry Classification.

Pure functions deciding which entries are due, overdue or next in line.
Nothing here mutates a plan; callers apply the transitions explicitly.
"""

import math
from datetime import datetime
from typing import List, Optional

from evdock.domain.entities import InstallmentPlan, PaymentScheduleEntry, PaymentStatus

SECONDS_PER_DAY = 24 * 60 * 60


def classify_entry(entry: PaymentScheduleEntry, now: datetime) -> PaymentStatus:
    """
    Return the status an entry should have at ``now``.

    A pending entry whose due date has passed is overdue. Paid and
    overdue entries keep their status.
    """
    if entry.status == PaymentStatus.PAID:
        return PaymentStatus.PAID
    if entry.status == PaymentStatus.OVERDUE:
        return PaymentStatus.OVERDUE
    if entry.status == PaymentStatus.PENDING:
        if entry.due_date < now:
            return PaymentStatus.OVERDUE
        return PaymentStatus.PENDING
    raise ValueError(f"Unknown payment status: {entry.status!r}")


def find_overdue_entries(plan: InstallmentPlan, now: datetime) -> List[PaymentScheduleEntry]:
    """Pending entries of a plan that should transition to overdue."""
    return [
        entry
        for entry in plan.payment_schedule
        if entry.status == PaymentStatus.PENDING
        and classify_entry(entry, now) == PaymentStatus.OVERDUE
    ]


def first_pending_entry(plan: InstallmentPlan) -> Optional[PaymentScheduleEntry]:
    for entry in plan.payment_schedule:
        if entry.status == PaymentStatus.PENDING:
            return entry
    return None


def next_unpaid_entry(plan: InstallmentPlan) -> Optional[PaymentScheduleEntry]:
    """Earliest entry still owed, whether pending or overdue."""
    for entry in plan.payment_schedule:
        if entry.is_outstanding:
            return entry
    return None


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days from ``earlier`` to ``later``, rounded up."""
    return math.ceil((later - earlier).total_seconds() / SECONDS_PER_DAY)
