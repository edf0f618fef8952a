"""
Pytest configuration and fixtures for SETTLESIM tests.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from core.logging import clear_global_context  # noqa: E402


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: end-to-end CLI runs against a mock RPC node"
    )


@pytest.fixture(autouse=True)
def isolated_logging():
    """CLI runs install root handlers and global context; drop them after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_global_context()
