"""Health check endpoint for service monitoring."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from evdock import __version__
from evdock.core.config import settings
from evdock.core.dependencies import get_key_value_store
from evdock.domain.exceptions import StorageException
from evdock.domain.interfaces import KeyValueStore

logger = structlog.get_logger(__name__)

health_router = APIRouter()


class HealthResponse(BaseModel):
    status: str = Field(..., description="healthy, or degraded when storage is unreachable")
    version: str
    storage_key: str = Field(..., description="Key holding the installment document")
    storage_reachable: bool
    document_version: int | None = Field(
        None,
        description="Version stamp of the stored document (0 when nothing is stored yet)",
    )


@health_router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Reports service status and whether the installment document can be read.",
    responses={503: {"model": HealthResponse, "description": "Storage unreachable"}},
)
async def health_check(
    response: Response,
    store: Annotated[KeyValueStore, Depends(get_key_value_store)],
) -> HealthResponse:
    key = settings.installment_storage_key

    try:
        item = await store.get_item(key)
    except StorageException as e:
        logger.warning("health_storage_unreachable", key=key, error=e.message)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="degraded",
            version=__version__,
            storage_key=key,
            storage_reachable=False,
        )

    return HealthResponse(
        status="healthy",
        version=__version__,
        storage_key=key,
        storage_reachable=True,
        document_version=item.version if item else 0,
    )
