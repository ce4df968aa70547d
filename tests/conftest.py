"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
Deterministic metrics and profile builders live in tests/mocks/matcher_mocks.py.
"""

import pytest

from tests.mocks.matcher_mocks import TableMetric


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "threaded: marks tests that drive engines from runner threads"
    )


@pytest.fixture
def table_metric():
    """Factory fixture for a metric that looks distances up by candidate id."""
    def _create(distances, default=None):
        return TableMetric(distances, default=default)
    return _create
