"""Domain Entities - Core business objects."""

from .installment import (
    InstallmentPlan,
    InstallmentStatus,
    PaymentScheduleEntry,
    PaymentStatus,
    ensure_utc,
    generate_installment_id,
    parse_datetime,
    to_decimal,
    utc_now,
)

__all__ = [
    "InstallmentPlan",
    "InstallmentStatus",
    "PaymentScheduleEntry",
    "PaymentStatus",
    "ensure_utc",
    "generate_installment_id",
    "parse_datetime",
    "to_decimal",
    "utc_now",
]
