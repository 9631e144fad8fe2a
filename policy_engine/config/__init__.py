"""
Runtime Configuration Module

Provides configuration loading and logging setup for the policy engine.
"""

from .runtime import (
    RuntimeConfig,
    NetworkConfig,
    HttpConfig,
    TreeConfig,
    TrackingConfig,
)
from .logging import setup_logging, setup_logging_from_config

__all__ = [
    "RuntimeConfig",
    "NetworkConfig",
    "HttpConfig",
    "TreeConfig",
    "TrackingConfig",
    "setup_logging",
    "setup_logging_from_config",
]
