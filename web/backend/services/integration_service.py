#!/usr/bin/env python3
"""
Integration service - dropdown metadata and collaborator health.

These operations sit next to the recommendation pipeline: they use the
same collaborators and timeouts but none of its sequencing.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from core.app_context import AppContext
from core.exceptions import ContractViolationError
from core.resilience import with_timeout

logger = logging.getLogger(__name__)


async def fetch_dropdown_options(context: AppContext) -> Dict[str, Any]:
    """
    Fetch form options from storage under the storage timeout.

    Raises:
        OperationTimeoutError: If storage misses the deadline.
        ContractViolationError: If storage returns something other than a mapping.
    """
    dropdowns = await with_timeout(
        context.storage.get_dropdown_options(),
        context.settings.storage_timeout_ms,
        "Fetch dropdowns",
    )
    if not isinstance(dropdowns, Mapping):
        raise ContractViolationError(
            f"get_dropdown_options returned {type(dropdowns).__name__}, expected a mapping"
        )
    return dict(dropdowns)


async def _storage_status(context: AppContext) -> str:
    operations = context.storage.describe_operations(context.field_map)
    missing = [name for name, ok in operations.items() if not ok]
    if missing:
        return f"missing method: {', '.join(missing)}"
    try:
        await with_timeout(context.storage.ping(), context.settings.storage_timeout_ms, "Storage ping")
    except Exception as e:
        logger.warning(f"Storage health check failed: {e}")
        return f"error: {e}"
    return "connected"


async def _scoring_status(context: AppContext) -> str:
    try:
        await with_timeout(
            context.scoring.check_health(),
            context.config.scoring.health_timeout_ms,
            "AI health check",
        )
    except Exception as e:
        logger.warning(f"AI service health check failed: {e}")
        return f"error: {e}"
    return "connected"


async def build_health_report(context: AppContext) -> Tuple[Dict[str, Any], int]:
    """
    Probe both collaborators.

    Returns:
        Tuple of (report, HTTP status): 200 when everything is connected,
        503 when any collaborator is degraded.
    """
    services = {
        "database": await _storage_status(context),
        "aiService": await _scoring_status(context),
    }
    status = "ok" if all(value == "connected" for value in services.values()) else "degraded"
    report = {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services,
        "fieldMappings": context.field_map.as_dict(),
    }
    return report, 200 if status == "ok" else 503


def build_integration_report(context: AppContext) -> Dict[str, Any]:
    """Report storage operation availability and the active field mappings."""
    return {
        "tests": {
            "database": {
                "loaded": True,
                "backend": context.storage_backend,
                "methods": context.storage.describe_operations(context.field_map),
            },
            "fieldMappings": context.field_map.as_dict(),
        }
    }
