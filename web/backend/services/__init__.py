"""Business logic services."""

from .integration_service import (
    build_health_report,
    build_integration_report,
    fetch_dropdown_options,
)
