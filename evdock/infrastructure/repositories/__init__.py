"""Repository implementations."""

from .installment_repository import DocumentInstallmentRepository
from .document import SCHEMA_VERSION, decode_plans, encode_plans, migrate_document

__all__ = [
    "DocumentInstallmentRepository",
    "SCHEMA_VERSION",
    "decode_plans",
    "encode_plans",
    "migrate_document",
]
