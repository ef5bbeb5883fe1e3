"""Installment plan domain entities."""

import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional

_ID_ALPHABET = string.digits + string.ascii_uppercase


class InstallmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a persisted ISO 8601 timestamp (``Z`` suffix allowed)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def generate_installment_id(now: datetime | None = None) -> str:
    """Build an id from the epoch milliseconds plus a 9 character random suffix."""
    moment = now or utc_now()
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"INST{int(moment.timestamp() * 1000)}{suffix}"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class PaymentScheduleEntry:
    """One month's obligation within an installment plan."""

    month: int
    due_date: datetime
    amount: Decimal
    principal: Decimal
    interest: Decimal
    remaining_balance: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    paid_date: datetime | None = None
    paid_amount: Decimal = Decimal("0")

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID

    @property
    def is_outstanding(self) -> bool:
        """Pending or overdue, i.e. still owed."""
        return self.status in (PaymentStatus.PENDING, PaymentStatus.OVERDUE)

    def mark_paid(self, paid_date: datetime, paid_amount: Decimal) -> None:
        self.status = PaymentStatus.PAID
        self.paid_date = paid_date
        self.paid_amount = paid_amount

    def mark_overdue(self) -> None:
        self.status = PaymentStatus.OVERDUE

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "due_date": self.due_date.isoformat(),
            "amount": str(self.amount),
            "principal": str(self.principal),
            "interest": str(self.interest),
            "remaining_balance": str(self.remaining_balance),
            "status": self.status.value,
            "paid_date": _iso(self.paid_date),
            "paid_amount": str(self.paid_amount),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentScheduleEntry":
        return cls(
            month=int(data["month"]),
            due_date=parse_datetime(data["due_date"]),
            amount=to_decimal(data["amount"]),
            principal=to_decimal(data["principal"]),
            interest=to_decimal(data["interest"]),
            remaining_balance=to_decimal(data.get("remaining_balance")),
            status=PaymentStatus(data.get("status", PaymentStatus.PENDING.value)),
            paid_date=parse_datetime(data.get("paid_date")),
            paid_amount=to_decimal(data.get("paid_amount")),
        )


@dataclass
class InstallmentPlan:
    """
    A customer's financed vehicle purchase.

    Customer and vehicle fields are denormalized copies taken from the
    quotation at creation time. The payment schedule holds exactly one
    entry per month and never changes length after creation.
    """

    quotation_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    total_amount: Decimal
    installment_months: int
    monthly_payment: Decimal
    total_payable: Decimal
    interest_rate: Decimal
    interest_amount: Decimal
    start_date: datetime
    end_date: datetime
    remaining_months: int
    remaining_amount: Decimal
    payment_schedule: List[PaymentScheduleEntry] = field(default_factory=list)
    id: str = field(default_factory=generate_installment_id)
    status: InstallmentStatus = InstallmentStatus.ACTIVE
    paid_months: int = 0
    next_payment_date: datetime | None = None
    last_payment_date: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)
    created_by: str = "Dealer Staff"
    dealer_id: str = "dealer001"
    last_modified: datetime = field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status == InstallmentStatus.ACTIVE

    @property
    def has_overdue(self) -> bool:
        return any(e.status == PaymentStatus.OVERDUE for e in self.payment_schedule)

    @property
    def paid_entries(self) -> List[PaymentScheduleEntry]:
        return [e for e in self.payment_schedule if e.is_paid]

    def find_entry(self, month: int) -> Optional[PaymentScheduleEntry]:
        for entry in self.payment_schedule:
            if entry.month == month:
                return entry
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "quotation_id": self.quotation_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "vehicle_model": self.vehicle_model,
            "total_amount": str(self.total_amount),
            "installment_months": self.installment_months,
            "monthly_payment": str(self.monthly_payment),
            "total_payable": str(self.total_payable),
            "interest_rate": str(self.interest_rate),
            "interest_amount": str(self.interest_amount),
            "status": self.status.value,
            "paid_months": self.paid_months,
            "remaining_months": self.remaining_months,
            "remaining_amount": str(self.remaining_amount),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "next_payment_date": _iso(self.next_payment_date),
            "last_payment_date": _iso(self.last_payment_date),
            "payment_schedule": [entry.to_dict() for entry in self.payment_schedule],
            "created_at": self.created_at.isoformat(),
            "created_by": self.created_by,
            "dealer_id": self.dealer_id,
            "last_modified": self.last_modified.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InstallmentPlan":
        schedule = sorted(
            (PaymentScheduleEntry.from_dict(e) for e in data.get("payment_schedule", [])),
            key=lambda e: e.month,
        )
        created_at = parse_datetime(data.get("created_at")) or utc_now()

        return cls(
            id=data["id"],
            quotation_id=data.get("quotation_id", ""),
            customer_id=data.get("customer_id", ""),
            customer_name=data.get("customer_name", ""),
            customer_phone=data.get("customer_phone", ""),
            vehicle_model=data.get("vehicle_model", ""),
            total_amount=to_decimal(data["total_amount"]),
            installment_months=int(data["installment_months"]),
            monthly_payment=to_decimal(data.get("monthly_payment")),
            total_payable=to_decimal(data.get("total_payable")),
            interest_rate=to_decimal(data.get("interest_rate")),
            interest_amount=to_decimal(data.get("interest_amount")),
            status=InstallmentStatus(data.get("status", InstallmentStatus.ACTIVE.value)),
            paid_months=int(data.get("paid_months", 0)),
            remaining_months=int(data.get("remaining_months", 0)),
            remaining_amount=to_decimal(data.get("remaining_amount")),
            start_date=parse_datetime(data.get("start_date")) or created_at,
            end_date=parse_datetime(data.get("end_date")) or created_at,
            next_payment_date=parse_datetime(data.get("next_payment_date")),
            last_payment_date=parse_datetime(data.get("last_payment_date")),
            payment_schedule=schedule,
            created_at=created_at,
            created_by=data.get("created_by") or "Dealer Staff",
            dealer_id=data.get("dealer_id") or "dealer001",
            last_modified=parse_datetime(data.get("last_modified")) or created_at,
        )
