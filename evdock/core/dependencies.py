"""Dependency injection for FastAPI."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from evdock.core.config import settings
from evdock.domain.interfaces import InstallmentRepository, KeyValueStore
from evdock.infrastructure.database import get_db_session
from evdock.infrastructure.repositories import DocumentInstallmentRepository
from evdock.infrastructure.stores import SqlKeyValueStore
from evdock.application.services import InstallmentService


# Storage dependencies
async def get_key_value_store(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> KeyValueStore:
    """Get a KeyValueStore bound to the request's session."""
    return SqlKeyValueStore(session)


async def get_installment_repository(
    store: Annotated[KeyValueStore, Depends(get_key_value_store)],
) -> InstallmentRepository:
    """Get an InstallmentRepository over the configured storage key."""
    return DocumentInstallmentRepository(
        store,
        key=settings.installment_storage_key,
        max_retries=settings.storage_max_retries,
    )


# Service dependencies
async def get_installment_service(
    installment_repo: Annotated[InstallmentRepository, Depends(get_installment_repository)],
) -> InstallmentService:
    """Get an InstallmentService instance."""
    return InstallmentService(installment_repository=installment_repo)
