from fastapi import APIRouter

from .health import health_router
from .installment import installment_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])
router.include_router(installment_router, tags=["Installments"])
