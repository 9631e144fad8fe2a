"""
Pytest configuration and shared fixtures for policy engine tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_chain = importlib.import_module("fixtures.chain_fixtures")

FakeChainRpc = _chain.FakeChainRpc
make_address = _chain.make_address


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def rpc():
    """Provide an empty in-memory ChainRpc."""
    return FakeChainRpc()


@pytest.fixture
def clock():
    """Provide a virtual clock starting at 2026-01-01T00:00:00Z."""
    from policy_engine.clock import VirtualClock
    return VirtualClock()


@pytest.fixture
def frozen_addresses():
    """Three frozen addresses with field values 10, 20 and 30, unsorted."""
    return [make_address(30), make_address(10), make_address(20)]


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
