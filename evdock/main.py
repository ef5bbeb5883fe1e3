"""
EVDock Installments - Main Application Entry Point

Installment plan service for EV dealerships: generates payment
schedules for financed vehicle purchases, records payments and
reports upcoming and overdue installments.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from evdock import __version__
from evdock.core.config import settings
from evdock.core.logging import setup_logging
from evdock.core.metrics import get_metrics, get_metrics_content_type
from evdock.infrastructure.database import db_manager
from evdock.presentation.api import api_router
from evdock.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events:
    - Set up logging
    - Initialize database connection pool and the key-value table
    - Clean up on shutdown
    """
    setup_logging()
    db_manager.init()
    if settings.db_create_tables:
        await db_manager.create_tables()

    logger = structlog.get_logger(__name__)
    logger.info("application_started", version=__version__)

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="EVDock Installments",
    description="Installment plans, payment schedules and collections for EV dealerships",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""

    return RedirectResponse(url="/docs")
