"""Installment-related Pydantic schemas."""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from evdock.domain.entities import InstallmentStatus, PaymentStatus, ensure_utc


class CreateInstallmentRequestSchema(BaseModel):
    """Schema for POST /v1/installments request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "quotation_id": "QUO1718000000000",
                    "customer_id": "CUS001",
                    "customer_name": "Nguyen Van A",
                    "customer_phone": "0901234567",
                    "vehicle_model": "VF 8 Plus",
                    "total_amount": "120000000",
                    "installment_months": 12,
                    "interest_rate": "6",
                    "start_date": "2024-01-15",
                }
            ]
        }
    )

    quotation_id: str = Field(..., min_length=1, max_length=255, description="Paid quotation being financed")
    customer_id: str = Field(..., min_length=1, max_length=255)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field("", max_length=64)
    vehicle_model: str = Field("", max_length=255)
    total_amount: Decimal = Field(
        ...,
        gt=0,
        description="Financed amount in currency units",
        examples=["120000000"],
    )
    installment_months: int = Field(
        ...,
        gt=0,
        description="Number of monthly installments",
        examples=[12],
    )
    interest_rate: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Annual interest rate in percent (service default if omitted)",
        examples=["6"],
    )
    start_date: Optional[datetime] = Field(
        None,
        description="Plan start; a bare date means midnight UTC (defaults to now)",
        examples=["2024-01-15"],
    )
    created_by: Optional[str] = Field(None, max_length=255)
    dealer_id: Optional[str] = Field(None, max_length=255)

    @field_validator("quotation_id", "customer_id", "customer_name")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        """Reject whitespace-only identifiers and names."""
        if not v.strip():
            raise ValueError("value cannot be empty or whitespace")
        return v.strip()

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_bare_date(cls, v):
        """A bare YYYY-MM-DD start date means midnight UTC."""
        if isinstance(v, str) and len(v) == 10:
            return datetime.combine(date.fromisoformat(v), time.min, tzinfo=timezone.utc)
        return v

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v else v


class RecordPaymentRequestSchema(BaseModel):
    """Optional body for the payment endpoints."""

    paid_amount: Optional[Decimal] = Field(
        None,
        gt=0,
        description="Amount received (defaults to the entry's amount)",
    )
    paid_date: Optional[datetime] = Field(
        None,
        description="When the payment was received (defaults to now)",
    )

    @field_validator("paid_date")
    @classmethod
    def validate_paid_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v else v


class PaymentScheduleEntrySchema(BaseModel):
    """One month of a plan's schedule."""

    model_config = ConfigDict(from_attributes=True)

    month: int = Field(..., ge=1)
    due_date: datetime
    amount: Decimal
    principal: Decimal
    interest: Decimal
    remaining_balance: Decimal
    status: PaymentStatus
    paid_date: Optional[datetime] = None
    paid_amount: Decimal = Decimal("0")


class InstallmentPlanSchema(BaseModel):
    """Schema for a full installment plan."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Installment plan id", examples=["INST1705276800000K3J9Q2ZTA"])
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
    status: InstallmentStatus
    paid_months: int
    remaining_months: int
    remaining_amount: Decimal
    start_date: datetime
    end_date: datetime
    next_payment_date: Optional[datetime] = None
    last_payment_date: Optional[datetime] = None
    payment_schedule: list[PaymentScheduleEntrySchema]
    created_at: datetime
    created_by: str
    dealer_id: str
    last_modified: datetime


class InstallmentListResponseSchema(BaseModel):
    """Schema for GET /v1/installments response."""

    installments: list[InstallmentPlanSchema]
    count: int = Field(..., ge=0)


class UpcomingPaymentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    installment_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    month: int
    due_date: datetime
    amount: Decimal
    days_until_due: int = Field(..., ge=0)


class UpcomingPaymentsResponseSchema(BaseModel):
    """Schema for GET /v1/installments/upcoming response."""

    days_ahead: int
    payments: list[UpcomingPaymentSchema] = Field(..., description="Earliest due first")
    count: int = Field(..., ge=0)


class OverduePaymentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    installment_id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    vehicle_model: str
    month: int
    due_date: datetime
    amount: Decimal
    days_overdue: int = Field(..., ge=0)


class OverduePaymentsResponseSchema(BaseModel):
    """Schema for GET /v1/installments/overdue response."""

    payments: list[OverduePaymentSchema] = Field(..., description="Most overdue first")
    count: int = Field(..., ge=0)


class InstallmentStatisticsSchema(BaseModel):
    """Schema for GET /v1/installments/statistics response."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "total_installments": 3,
                    "active_installments": 2,
                    "completed_installments": 1,
                    "defaulted_installments": 0,
                    "cancelled_installments": 0,
                    "overdue_payments": 1,
                    "upcoming_payments": 1,
                    "total_installment_value": "240000000",
                    "total_collected": "20000000",
                    "total_remaining": "220000000",
                    "collection_rate": "8.33",
                }
            ]
        },
    )

    total_installments: int = Field(..., ge=0)
    active_installments: int = Field(..., ge=0)
    completed_installments: int = Field(..., ge=0)
    defaulted_installments: int = Field(..., ge=0)
    cancelled_installments: int = Field(..., ge=0)
    overdue_payments: int = Field(..., ge=0)
    upcoming_payments: int = Field(..., ge=0)
    total_installment_value: Decimal
    total_collected: Decimal
    total_remaining: Decimal
    collection_rate: Decimal = Field(..., description="Collected share of active value, in percent")
