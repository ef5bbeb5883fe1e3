"""
Fixtures for unit tests.

Provides:
- In-memory versioned key-value store
- Document repository over that store
- Installment service with a fixed clock
"""

from datetime import datetime, timezone
from typing import Dict, Optional

import pytest

from evdock.application.services import InstallmentService
from evdock.core.config import Settings
from evdock.domain.exceptions import ConcurrentModificationException
from evdock.domain.interfaces import KeyValueStore, StoredItem
from evdock.infrastructure.repositories import DocumentInstallmentRepository
from evdock.service.amortization import AmortizationSettings

STORAGE_KEY = "@EVDock:Installments"
NOW = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with the same versioning rules as the SQL store."""

    def __init__(self):
        self.items: Dict[str, StoredItem] = {}
        self.writes = 0
        self.interleaved_writes = []

    async def get_item(self, key: str) -> Optional[StoredItem]:
        return self.items.get(key)

    async def set_item(
        self,
        key: str,
        value: str,
        expected_version: int | None = None,
    ) -> int:
        # Simulate another writer landing between our read and our write
        if self.interleaved_writes:
            other_value = self.interleaved_writes.pop(0)
            current = self.items.get(key)
            self.items[key] = StoredItem(
                value=other_value,
                version=(current.version if current else 0) + 1,
            )

        current = self.items.get(key)
        current_version = current.version if current else 0

        if expected_version is not None and expected_version != current_version:
            raise ConcurrentModificationException(key)

        self.items[key] = StoredItem(value=value, version=current_version + 1)
        self.writes += 1
        return current_version + 1

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class FixedClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def repository(store: InMemoryKeyValueStore) -> DocumentInstallmentRepository:
    return DocumentInstallmentRepository(store, key=STORAGE_KEY, max_retries=3)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(allow_clear_all=True, upcoming_days_ahead=7)


@pytest.fixture
def service(
    repository: DocumentInstallmentRepository,
    app_settings: Settings,
    clock: FixedClock,
) -> InstallmentService:
    return InstallmentService(
        installment_repository=repository,
        settings=app_settings,
        amortization=AmortizationSettings(default_interest_rate=6, max_installment_months=120),
        clock=clock,
    )
