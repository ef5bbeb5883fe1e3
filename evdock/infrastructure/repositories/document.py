"""
Persisted document layout for the installment collection.

Current layout (schema version 2):

    {"schema_version": 2, "installments": [<plan>, ...]}

with snake_case keys as produced by ``InstallmentPlan.to_dict()``.

Version 1 is the layout written by the mobile client: a bare JSON array
of plans with camelCase keys. It is upgraded in memory when read and
written back in the current layout on the next write.
"""

import json
import re
from typing import Any, List

import structlog

from evdock.domain.entities import InstallmentPlan
from evdock.domain.exceptions import StorageException

logger = structlog.get_logger(__name__)

SCHEMA_VERSION = 2

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _migrate_v1_plan(plan: dict) -> dict:
    migrated = {camel_to_snake(key): value for key, value in plan.items()}
    migrated["payment_schedule"] = [
        {camel_to_snake(key): value for key, value in entry.items()}
        for entry in migrated.get("payment_schedule") or []
    ]
    return migrated


def detect_schema_version(document: Any) -> int:
    if isinstance(document, list):
        return 1
    if isinstance(document, dict) and "schema_version" in document:
        return int(document["schema_version"])
    raise StorageException("Unrecognized installment document layout")


def migrate_document(document: Any) -> dict:
    """
    Upgrade a decoded document to the current schema version.

    Raises:
        StorageException: If the layout is unknown or newer than supported
    """
    version = detect_schema_version(document)

    if version > SCHEMA_VERSION:
        raise StorageException(
            f"Installment document schema {version} is newer than supported {SCHEMA_VERSION}"
        )

    if version == 1:
        plans = [_migrate_v1_plan(plan) for plan in document if isinstance(plan, dict)]
        logger.info("legacy_document_migrated", from_version=1, plans=len(plans))
        document = {"schema_version": 2, "installments": plans}

    return document


def decode_plans(raw: str) -> List[InstallmentPlan]:
    """Parse a stored blob into plans, migrating older layouts."""
    try:
        document = migrate_document(json.loads(raw))
        return [InstallmentPlan.from_dict(item) for item in document["installments"]]
    except StorageException:
        raise
    except (ValueError, KeyError, TypeError) as e:
        raise StorageException(f"Corrupt installment document: {e}") from e


def encode_plans(plans: List[InstallmentPlan]) -> str:
    return json.dumps(
        {
            "schema_version": SCHEMA_VERSION,
            "installments": [plan.to_dict() for plan in plans],
        },
        ensure_ascii=False,
    )
