"""Root conftest.py for command-arbiter tests.

This file MUST be at the repository root for fixtures to be discovered
when running tests from any subdirectory.

Provides shared fixtures used across all test modules:
- arbiter_kernel/tests
- arbiter_protocols/tests
- arbiter_shared/tests
"""

import os

import pytest
from unittest.mock import MagicMock


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing.

    Every component takes an injected LoggerProtocol and binds its own
    component name, so bind() returns the same mock.
    """
    logger = MagicMock()
    logger.info = MagicMock()
    logger.debug = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    logger.bind = MagicMock(return_value=logger)
    return logger


@pytest.fixture(autouse=True)
def _isolated_arbiter_settings(monkeypatch):
    """Keep ARBITER_* variables from the developer's shell out of tests."""
    from arbiter_kernel.settings import reset_arbiter_settings

    for key in list(os.environ):
        if key.startswith("ARBITER_"):
            monkeypatch.delenv(key, raising=False)
    reset_arbiter_settings()
    yield
    reset_arbiter_settings()
