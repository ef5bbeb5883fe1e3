"""Whole-document repository implementation for installment plans."""

from typing import Callable, List, Optional, TypeVar

import structlog

from evdock.core.config import settings
from evdock.core.metrics import record_storage_conflict
from evdock.domain.entities import InstallmentPlan, InstallmentStatus
from evdock.domain.exceptions import ConcurrentModificationException
from evdock.domain.interfaces import InstallmentRepository, KeyValueStore
from .document import decode_plans, encode_plans

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class DocumentInstallmentRepository(InstallmentRepository):
    """
    Stores every plan in a single JSON document under one key.

    Writes are compare-and-swap against the version that was read, so a
    concurrent writer causes a re-read and a fresh attempt instead of a
    lost update.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str | None = None,
        max_retries: int | None = None,
    ):
        self._store = store
        self._key = key or settings.installment_storage_key
        self._max_retries = max_retries or settings.storage_max_retries

    async def list(
        self,
        status: InstallmentStatus | None = None,
    ) -> List[InstallmentPlan]:
        plans, _ = await self._load()
        if status is None:
            return plans
        return [plan for plan in plans if plan.status == status]

    async def get_by_id(self, installment_id: str) -> Optional[InstallmentPlan]:
        plans, _ = await self._load()
        return next((p for p in plans if p.id == installment_id), None)

    async def get_by_quotation_id(self, quotation_id: str) -> Optional[InstallmentPlan]:
        plans, _ = await self._load()
        return next((p for p in plans if p.quotation_id == quotation_id), None)

    async def save(self, plan: InstallmentPlan) -> InstallmentPlan:
        def _upsert(plans: List[InstallmentPlan]) -> InstallmentPlan:
            for index, existing in enumerate(plans):
                if existing.id == plan.id:
                    plans[index] = plan
                    break
            else:
                plans.append(plan)
            return plan

        return await self.transact(_upsert)

    async def transact(self, fn: Callable[[List[InstallmentPlan]], T]) -> T:
        for attempt in range(1, self._max_retries + 1):
            plans, version = await self._load()
            result = fn(plans)

            try:
                await self._store.set_item(
                    self._key,
                    encode_plans(plans),
                    expected_version=version,
                )
                return result
            except ConcurrentModificationException:
                record_storage_conflict()
                logger.warning(
                    "storage_conflict",
                    key=self._key,
                    attempt=attempt,
                    max_retries=self._max_retries,
                )
                if attempt == self._max_retries:
                    raise

        raise ConcurrentModificationException(self._key)

    async def clear(self) -> None:
        await self._store.remove_item(self._key)
        logger.info("installments_cleared", key=self._key)

    async def _load(self) -> tuple[List[InstallmentPlan], int]:
        item = await self._store.get_item(self._key)
        if item is None:
            return [], 0
        return decode_plans(item.value), item.version
