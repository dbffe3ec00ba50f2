#!/usr/bin/env python3
"""
Test suite for the career recommender.

All tests run without external services: storage uses in-memory SQLite or
the fakes in tests/mocks, and the scoring service is mocked.

    # Run all tests
    python -m pytest tests/ -v
"""
