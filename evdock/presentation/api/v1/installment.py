"""Installment API endpoints."""

from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Response

from evdock.application.dto import CreateInstallmentRequest, PaymentOverrides
from evdock.application.services import InstallmentService
from evdock.core.dependencies import get_installment_service
from evdock.domain.entities import InstallmentStatus
from evdock.presentation.schemas import (
    CreateInstallmentRequestSchema,
    ErrorResponseSchema,
    InstallmentListResponseSchema,
    InstallmentPlanSchema,
    InstallmentStatisticsSchema,
    OverduePaymentSchema,
    OverduePaymentsResponseSchema,
    RecordPaymentRequestSchema,
    UpcomingPaymentSchema,
    UpcomingPaymentsResponseSchema,
)

installment_router = APIRouter(
    prefix="/installments",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        503: {"model": ErrorResponseSchema, "description": "Storage unavailable"},
    },
)

InstallmentServiceDep = Annotated[InstallmentService, Depends(get_installment_service)]
InstallmentIdPath = Annotated[str, Path(min_length=1, description="Installment plan id")]


def _overrides(request: Optional[RecordPaymentRequestSchema]) -> PaymentOverrides:
    if request is None:
        return PaymentOverrides()
    return PaymentOverrides(paid_amount=request.paid_amount, paid_date=request.paid_date)


@installment_router.post(
    "",
    response_model=InstallmentPlanSchema,
    status_code=201,
    summary="Create Installment Plan",
    description="""
    Open an installment plan for a paid quotation.

    The full payment schedule is generated up front: one pending entry
    per month, each due N calendar months after the start date.
    """,
    responses={
        201: {"description": "Plan created"},
        409: {"model": ErrorResponseSchema, "description": "Quotation already financed"},
    },
)
async def create_installment(
    request: CreateInstallmentRequestSchema,
    installment_service: InstallmentServiceDep,
) -> InstallmentPlanSchema:
    dto = CreateInstallmentRequest(
        quotation_id=request.quotation_id,
        customer_id=request.customer_id,
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        vehicle_model=request.vehicle_model,
        total_amount=request.total_amount,
        installment_months=request.installment_months,
        interest_rate=request.interest_rate,
        start_date=request.start_date,
        created_by=request.created_by,
        dealer_id=request.dealer_id,
    )

    plan = await installment_service.create_installment(dto)

    return InstallmentPlanSchema.model_validate(plan)


@installment_router.get(
    "",
    response_model=InstallmentListResponseSchema,
    summary="List Installment Plans",
)
async def list_installments(
    installment_service: InstallmentServiceDep,
    status: Annotated[
        Optional[InstallmentStatus],
        Query(description="Only plans in this status"),
    ] = None,
    search: Annotated[
        Optional[str],
        Query(max_length=255, description="Customer name, phone, vehicle model or plan id"),
    ] = None,
    has_overdue: Annotated[
        Optional[bool],
        Query(description="Only plans with (true) or without (false) overdue entries"),
    ] = None,
    dealer_id: Annotated[
        Optional[str],
        Query(max_length=255, description="Only plans opened by this dealer"),
    ] = None,
) -> InstallmentListResponseSchema:
    """List plans, newest created first."""
    plans = await installment_service.list_installments(
        status=status,
        search=search,
        has_overdue=has_overdue,
        dealer_id=dealer_id,
    )

    return InstallmentListResponseSchema(
        installments=[InstallmentPlanSchema.model_validate(p) for p in plans],
        count=len(plans),
    )


@installment_router.delete(
    "",
    status_code=204,
    summary="Clear All Installment Plans",
    description="Remove every stored plan. Disabled unless ALLOW_CLEAR_ALL is set.",
    responses={
        403: {"model": ErrorResponseSchema, "description": "Clearing is disabled"},
    },
)
async def clear_installments(installment_service: InstallmentServiceDep) -> Response:
    await installment_service.clear_all_installments()
    return Response(status_code=204)


@installment_router.get(
    "/upcoming",
    response_model=UpcomingPaymentsResponseSchema,
    summary="Upcoming Payments",
    description="""
    Next pending payment of each active plan falling due between now and
    now + days_ahead, earliest first.
    """,
)
async def get_upcoming_payments(
    installment_service: InstallmentServiceDep,
    days_ahead: Annotated[
        int,
        Query(ge=0, le=365, description="Window length in days"),
    ] = 7,
) -> UpcomingPaymentsResponseSchema:
    payments = await installment_service.get_upcoming_payments(days_ahead)

    return UpcomingPaymentsResponseSchema(
        days_ahead=days_ahead,
        payments=[UpcomingPaymentSchema.model_validate(p) for p in payments],
        count=len(payments),
    )


@installment_router.get(
    "/overdue",
    response_model=OverduePaymentsResponseSchema,
    summary="Overdue Payments",
    description="""
    Mark past-due pending entries as overdue and return the entries
    transitioned by this call, most overdue first.
    """,
)
async def get_overdue_payments(
    installment_service: InstallmentServiceDep,
) -> OverduePaymentsResponseSchema:
    payments = await installment_service.get_overdue_payments()

    return OverduePaymentsResponseSchema(
        payments=[OverduePaymentSchema.model_validate(p) for p in payments],
        count=len(payments),
    )


@installment_router.get(
    "/statistics",
    response_model=InstallmentStatisticsSchema,
    summary="Portfolio Statistics",
)
async def get_statistics(
    installment_service: InstallmentServiceDep,
) -> InstallmentStatisticsSchema:
    stats = await installment_service.get_statistics()
    return InstallmentStatisticsSchema.model_validate(stats)


@installment_router.get(
    "/by-quotation/{quotation_id}",
    response_model=InstallmentPlanSchema,
    summary="Get Plan By Quotation",
    responses={
        404: {"model": ErrorResponseSchema, "description": "No plan for this quotation"},
    },
)
async def get_installment_by_quotation(
    quotation_id: Annotated[str, Path(min_length=1, description="Quotation id")],
    installment_service: InstallmentServiceDep,
) -> InstallmentPlanSchema:
    plan = await installment_service.get_installment_by_quotation(quotation_id)
    return InstallmentPlanSchema.model_validate(plan)


@installment_router.get(
    "/{installment_id}",
    response_model=InstallmentPlanSchema,
    summary="Get Installment Plan",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Plan not found"},
    },
)
async def get_installment(
    installment_id: InstallmentIdPath,
    installment_service: InstallmentServiceDep,
) -> InstallmentPlanSchema:
    plan = await installment_service.get_installment(installment_id)
    return InstallmentPlanSchema.model_validate(plan)


# Registered before /payments/{month} so "next" is not parsed as a month.
@installment_router.post(
    "/{installment_id}/payments/next",
    response_model=InstallmentPlanSchema,
    summary="Record Next Payment",
    description="Pay the earliest pending or overdue entry of the plan.",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Plan not found"},
        409: {"model": ErrorResponseSchema, "description": "Nothing left to pay"},
    },
)
async def record_next_payment(
    installment_id: InstallmentIdPath,
    installment_service: InstallmentServiceDep,
    request: Annotated[Optional[RecordPaymentRequestSchema], Body()] = None,
) -> InstallmentPlanSchema:
    plan = await installment_service.record_next_payment(installment_id, _overrides(request))
    return InstallmentPlanSchema.model_validate(plan)


@installment_router.post(
    "/{installment_id}/payments/{month}",
    response_model=InstallmentPlanSchema,
    summary="Record Payment",
    description="""
    Mark one month of the schedule as paid and recompute the plan's
    paid/remaining figures. Paying the last outstanding month completes
    the plan.
    """,
    responses={
        404: {"model": ErrorResponseSchema, "description": "Plan or month not found"},
        409: {"model": ErrorResponseSchema, "description": "Month already paid"},
    },
)
async def record_payment(
    installment_id: InstallmentIdPath,
    month: Annotated[int, Path(description="1-based month number")],
    installment_service: InstallmentServiceDep,
    request: Annotated[Optional[RecordPaymentRequestSchema], Body()] = None,
) -> InstallmentPlanSchema:
    plan = await installment_service.record_payment(installment_id, month, _overrides(request))
    return InstallmentPlanSchema.model_validate(plan)
