"""Installment service - plan lifecycle and payment reporting use cases."""

from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional

import structlog

from evdock.core.config import Settings, settings as app_settings
from evdock.core.metrics import (
    record_installment_created,
    record_overdue_transitions,
    record_payment,
)
from evdock.domain.entities import (
    InstallmentPlan,
    InstallmentStatus,
    PaymentScheduleEntry,
    ensure_utc,
    generate_installment_id,
    to_decimal,
    utc_now,
)
from evdock.domain.exceptions import (
    ClearAllDisabledException,
    DuplicateInstallmentException,
    InstallmentNotFoundException,
    InvalidInstallmentRequestException,
    NoOutstandingPaymentException,
    PaymentAlreadyMadeException,
    PaymentMonthNotFoundException,
)
from evdock.domain.interfaces import InstallmentRepository
from evdock.application.dto import (
    CreateInstallmentRequest,
    InstallmentStatistics,
    OverduePayment,
    PaymentOverrides,
    UpcomingPayment,
)
from evdock.service.amortization import (
    AmortizationSettings,
    amortization_settings,
    calculate_payment_schedule,
    days_between,
    find_overdue_entries,
    first_pending_entry,
    next_unpaid_entry,
)

logger = structlog.get_logger(__name__)

EntrySelector = Callable[[InstallmentPlan], PaymentScheduleEntry]


class InstallmentService:
    """
    Application service for installment plan use cases.

    Creates plans, records payments against their schedules and derives
    upcoming/overdue views. Every mutation is a repository transaction
    over the whole stored collection.
    """

    def __init__(
        self,
        installment_repository: InstallmentRepository,
        settings: Settings = app_settings,
        amortization: AmortizationSettings = amortization_settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._repo = installment_repository
        self._settings = settings
        self._amortization = amortization
        self._clock = clock

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def create_installment(self, request: CreateInstallmentRequest) -> InstallmentPlan:
        """
        Open an installment plan for a paid quotation.

        Args:
            request: Customer, vehicle and financing terms

        Returns:
            The persisted plan with its full payment schedule

        Raises:
            InvalidInstallmentRequestException: If request validation fails
            DuplicateInstallmentException: If the quotation already has a plan
            StorageException: If the plan cannot be persisted
        """
        errors = request.validate(self._amortization)
        if errors:
            raise InvalidInstallmentRequestException("; ".join(errors))

        log = logger.bind(
            quotation_id=request.quotation_id,
            customer_id=request.customer_id,
        )
        log.info("installment_requested", months=request.installment_months)

        now = self._clock()
        start_date = ensure_utc(request.start_date) if request.start_date else now
        interest_rate = (
            self._amortization.default_interest_rate
            if request.interest_rate is None
            else to_decimal(request.interest_rate)
        )
        total_amount = to_decimal(request.total_amount)

        schedule = calculate_payment_schedule(
            total_amount=total_amount,
            installment_months=request.installment_months,
            interest_rate=interest_rate,
            start_date=start_date,
            settings=self._amortization,
        )
        monthly_payment = schedule[0].amount
        total_payable = monthly_payment * request.installment_months

        def _append(plans: List[InstallmentPlan]) -> InstallmentPlan:
            for existing in plans:
                if existing.quotation_id == request.quotation_id:
                    raise DuplicateInstallmentException(request.quotation_id, existing.id)

            taken = {plan.id for plan in plans}
            installment_id = generate_installment_id(now)
            while installment_id in taken:
                installment_id = generate_installment_id(now)

            plan = InstallmentPlan(
                id=installment_id,
                quotation_id=request.quotation_id,
                customer_id=request.customer_id,
                customer_name=request.customer_name,
                customer_phone=request.customer_phone,
                vehicle_model=request.vehicle_model,
                total_amount=total_amount,
                installment_months=request.installment_months,
                monthly_payment=monthly_payment,
                total_payable=total_payable,
                interest_rate=interest_rate,
                interest_amount=total_payable - total_amount,
                status=InstallmentStatus.ACTIVE,
                paid_months=0,
                remaining_months=request.installment_months,
                remaining_amount=total_amount,
                start_date=start_date,
                end_date=schedule[-1].due_date,
                next_payment_date=schedule[0].due_date,
                last_payment_date=None,
                payment_schedule=[*schedule],
                created_at=now,
                created_by=request.created_by or self._settings.default_created_by,
                dealer_id=request.dealer_id or self._settings.default_dealer_id,
                last_modified=now,
            )
            plans.append(plan)
            return plan

        plan = await self._repo.transact(_append)

        record_installment_created(plan.installment_months)
        log.info(
            "installment_created",
            installment_id=plan.id,
            monthly_payment=str(plan.monthly_payment),
            total_payable=str(plan.total_payable),
        )

        return plan

    async def record_payment(
        self,
        installment_id: str,
        month: int,
        overrides: PaymentOverrides | None = None,
    ) -> InstallmentPlan:
        """
        Record the payment of one schedule entry.

        Args:
            installment_id: The plan's identifier
            month: 1-based month number of the entry being paid
            overrides: Optional paid amount/date (defaults: amount due, now)

        Returns:
            The updated plan

        Raises:
            InstallmentNotFoundException: If the plan does not exist
            PaymentMonthNotFoundException: If the month is not in the schedule
            PaymentAlreadyMadeException: If the month is already paid
        """

        def _select(plan: InstallmentPlan) -> PaymentScheduleEntry:
            entry = plan.find_entry(month)
            if entry is None:
                raise PaymentMonthNotFoundException(installment_id, month)
            return entry

        return await self._record(installment_id, _select, overrides)

    async def record_next_payment(
        self,
        installment_id: str,
        overrides: PaymentOverrides | None = None,
    ) -> InstallmentPlan:
        """
        Record the payment of the earliest pending or overdue entry.

        Raises:
            InstallmentNotFoundException: If the plan does not exist
            NoOutstandingPaymentException: If every entry is already paid
        """

        def _select(plan: InstallmentPlan) -> PaymentScheduleEntry:
            entry = next_unpaid_entry(plan)
            if entry is None:
                raise NoOutstandingPaymentException(installment_id)
            return entry

        return await self._record(installment_id, _select, overrides)

    async def clear_all_installments(self) -> None:
        """
        Remove every stored plan (testing/reset).

        Raises:
            ClearAllDisabledException: Unless allow_clear_all is enabled
        """
        if not self._settings.allow_clear_all:
            raise ClearAllDisabledException()

        await self._repo.clear()
        logger.warning("all_installments_cleared")

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def get_installment(self, installment_id: str) -> InstallmentPlan:
        plan = await self._repo.get_by_id(installment_id)
        if plan is None:
            logger.warning("installment_not_found", installment_id=installment_id)
            raise InstallmentNotFoundException(installment_id)
        return plan

    async def get_installment_by_quotation(self, quotation_id: str) -> InstallmentPlan:
        plan = await self._repo.get_by_quotation_id(quotation_id)
        if plan is None:
            logger.warning("installment_not_found", quotation_id=quotation_id)
            raise InstallmentNotFoundException(f"quotation {quotation_id}")
        return plan

    async def list_installments(
        self,
        status: InstallmentStatus | None = None,
        search: str | None = None,
        has_overdue: bool | None = None,
        dealer_id: str | None = None,
    ) -> List[InstallmentPlan]:
        """
        List plans with optional filters, newest created first.

        Args:
            status: Keep only plans in this status
            dealer_id: Keep only plans opened by this dealer
            search: Case-insensitive match on customer name, phone,
                vehicle model or plan id
            has_overdue: Keep only plans with (True) or without (False)
                an overdue entry
        """
        plans = await self._repo.list(status=status)

        if dealer_id:
            plans = [plan for plan in plans if plan.dealer_id == dealer_id]

        if search and search.strip():
            needle = search.strip().lower()
            plans = [
                plan
                for plan in plans
                if needle in plan.customer_name.lower()
                or needle in plan.customer_phone.lower()
                or needle in plan.vehicle_model.lower()
                or needle in plan.id.lower()
            ]

        if has_overdue is not None:
            plans = [plan for plan in plans if plan.has_overdue == has_overdue]

        plans = sorted(plans, key=lambda p: p.created_at, reverse=True)

        logger.info("installments_listed", count=len(plans))
        return plans

    async def get_active_installments(self) -> List[InstallmentPlan]:
        return await self.list_installments(status=InstallmentStatus.ACTIVE)

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    async def get_upcoming_payments(self, days_ahead: int | None = None) -> List[UpcomingPayment]:
        """
        Next pending entry of each active plan due within the window.

        Args:
            days_ahead: Window length in days, inclusive of both ends

        Returns:
            Payments sorted by due date, earliest first
        """
        if days_ahead is None:
            days_ahead = self._settings.upcoming_days_ahead
        if days_ahead < 0:
            raise InvalidInstallmentRequestException("days_ahead must not be negative")

        now = self._clock()
        horizon = now + timedelta(days=days_ahead)
        upcoming = []

        for plan in await self._repo.list(status=InstallmentStatus.ACTIVE):
            entry = first_pending_entry(plan)
            if entry is None or not (now <= entry.due_date <= horizon):
                continue

            upcoming.append(
                UpcomingPayment(
                    installment_id=plan.id,
                    customer_id=plan.customer_id,
                    customer_name=plan.customer_name,
                    customer_phone=plan.customer_phone,
                    vehicle_model=plan.vehicle_model,
                    month=entry.month,
                    due_date=entry.due_date,
                    amount=entry.amount,
                    days_until_due=days_between(entry.due_date, now),
                )
            )

        return sorted(upcoming, key=lambda p: p.due_date)

    async def apply_overdue_transitions(self) -> List[OverduePayment]:
        """
        Mark past-due pending entries of active plans as overdue and persist.

        Returns:
            One record per entry transitioned by this call
        """
        now = self._clock()

        def _apply(plans: List[InstallmentPlan]) -> List[OverduePayment]:
            records = []
            for plan in plans:
                if not plan.is_active:
                    continue

                entries = find_overdue_entries(plan, now)
                for entry in entries:
                    entry.mark_overdue()
                    records.append(self._overdue_record(plan, entry, now))

                if entries:
                    plan.last_modified = now
            return records

        records = await self._repo.transact(_apply)

        record_overdue_transitions(len(records))
        if records:
            logger.info("overdue_transitions_applied", count=len(records))

        return records

    async def get_overdue_payments(self) -> List[OverduePayment]:
        """
        Advance overdue entries and report them, most overdue first.

        Entries already marked overdue by an earlier call are not
        reported again.
        """
        records = await self.apply_overdue_transitions()
        return sorted(records, key=lambda p: p.days_overdue, reverse=True)

    async def get_statistics(self) -> InstallmentStatistics:
        """
        Portfolio counts and collection figures.

        The overdue count is the number of entries transitioned to overdue
        by this call, so entries flipped by an earlier overdue query or
        statistics call are not counted again.
        """
        newly_overdue = await self.apply_overdue_transitions()
        upcoming = await self.get_upcoming_payments(self._settings.upcoming_days_ahead)

        plans = await self._repo.list()
        by_status = Counter(plan.status for plan in plans)
        active = [plan for plan in plans if plan.is_active]
        total_value = sum((plan.total_amount for plan in active), Decimal("0"))
        total_collected = sum(
            (plan.total_amount - plan.remaining_amount for plan in active), Decimal("0")
        )
        total_remaining = sum((plan.remaining_amount for plan in active), Decimal("0"))
        collection_rate = (
            total_collected / total_value * 100 if total_value > 0 else Decimal("0")
        )

        return InstallmentStatistics(
            total_installments=len(plans),
            active_installments=by_status[InstallmentStatus.ACTIVE],
            completed_installments=by_status[InstallmentStatus.COMPLETED],
            defaulted_installments=by_status[InstallmentStatus.DEFAULTED],
            cancelled_installments=by_status[InstallmentStatus.CANCELLED],
            overdue_payments=len(newly_overdue),
            upcoming_payments=len(upcoming),
            total_installment_value=total_value,
            total_collected=total_collected,
            total_remaining=total_remaining,
            collection_rate=collection_rate,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _record(
        self,
        installment_id: str,
        select_entry: EntrySelector,
        overrides: Optional[PaymentOverrides],
    ) -> InstallmentPlan:
        overrides = overrides or PaymentOverrides()
        errors = overrides.validate()
        if errors:
            raise InvalidInstallmentRequestException("; ".join(errors))

        now = self._clock()

        def _pay(plans: List[InstallmentPlan]) -> tuple[InstallmentPlan, int]:
            plan = next((p for p in plans if p.id == installment_id), None)
            if plan is None:
                raise InstallmentNotFoundException(installment_id)

            entry = select_entry(plan)
            if entry.is_paid:
                raise PaymentAlreadyMadeException(installment_id, entry.month)

            self._apply_payment(plan, entry, overrides, now)
            return plan, entry.month

        try:
            plan, month = await self._repo.transact(_pay)
        except (InstallmentNotFoundException, PaymentMonthNotFoundException) as e:
            logger.warning("payment_rejected", installment_id=installment_id, error=e.code)
            raise

        completed = plan.status == InstallmentStatus.COMPLETED
        record_payment(completed)
        logger.info(
            "payment_recorded",
            installment_id=installment_id,
            month=month,
            paid_months=plan.paid_months,
            remaining_months=plan.remaining_months,
            completed=completed,
        )

        return plan

    def _apply_payment(
        self,
        plan: InstallmentPlan,
        entry: PaymentScheduleEntry,
        overrides: PaymentOverrides,
        now: datetime,
    ) -> None:
        """
        Mark an entry paid and recompute the plan's aggregates.

        The remaining amount subtracts the principal actually paid on
        each paid entry, which matches principal * paid_months while the
        per-month principal is constant.
        """
        paid_date = ensure_utc(overrides.paid_date) if overrides.paid_date else now
        paid_amount = overrides.paid_amount if overrides.paid_amount is not None else entry.amount
        entry.mark_paid(paid_date, to_decimal(paid_amount))

        paid_entries = plan.paid_entries
        plan.paid_months = len(paid_entries)
        plan.remaining_months = plan.installment_months - plan.paid_months
        plan.remaining_amount = plan.total_amount - sum(
            (e.principal for e in paid_entries), Decimal("0")
        )
        plan.last_payment_date = paid_date
        plan.last_modified = now

        upcoming = next_unpaid_entry(plan)
        plan.next_payment_date = upcoming.due_date if upcoming else None

        if plan.paid_months == plan.installment_months:
            plan.status = InstallmentStatus.COMPLETED
            plan.remaining_amount = Decimal("0")
            plan.remaining_months = 0

    def _overdue_record(
        self,
        plan: InstallmentPlan,
        entry: PaymentScheduleEntry,
        now: datetime,
    ) -> OverduePayment:
        return OverduePayment(
            installment_id=plan.id,
            customer_id=plan.customer_id,
            customer_name=plan.customer_name,
            customer_phone=plan.customer_phone,
            vehicle_model=plan.vehicle_model,
            month=entry.month,
            due_date=entry.due_date,
            amount=entry.amount,
            days_overdue=days_between(now, entry.due_date),
        )
