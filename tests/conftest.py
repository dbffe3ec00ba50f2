"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
For collaborator fakes, see tests/mocks/collaborator_mocks.py
"""

import pytest

from core.config_loader import FieldMappingConfig, get_config
from core.field_mapping import FieldMappingTable


@pytest.fixture(autouse=True)
def _reset_config_cache():
    """Keep environment overrides from leaking between tests."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def field_map() -> FieldMappingTable:
    """Default field mapping table."""
    return FieldMappingTable.from_config(FieldMappingConfig())


@pytest.fixture
def candidate_payload() -> dict:
    """Minimal valid candidate payload under default field names."""
    return {"name": "Ada", "sector": "tech"}
