"""
Runtime Configuration

Central configuration for node access, retry behaviour, tree sizing and
transaction tracking. Durations are in seconds.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from policy_engine.http.retry import RetryPolicy


DEFAULT_ENDPOINT = "https://api.explorer.provable.com/v1"
DEFAULT_NETWORK = "mainnet"


@dataclass
class NetworkConfig:
    """Aleo node endpoint and network name."""
    endpoint: str = DEFAULT_ENDPOINT
    network: str = DEFAULT_NETWORK


@dataclass
class HttpConfig:
    """Configuration for HTTP client (mapping reads)."""
    timeout: float = 30.0
    max_retries: int = 5
    retry_delay: float = 2.0
    max_delay: Optional[float] = None
    proxy: Optional[str] = None

    def to_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.retry_delay,
            max_delay=self.max_delay,
            request_timeout=self.timeout,
        )


@dataclass
class TreeConfig:
    """Merkle tree sizing."""
    max_tree_depth: int = 15
    max_root_refetches: int = 3

    @property
    def max_slots(self) -> int:
        """Most freeze list slots a tree of this depth can hold."""
        return 2 ** (self.max_tree_depth - 1)


@dataclass
class TrackingConfig:
    """Configuration for the transaction observer."""
    max_attempts: int = 60
    poll_interval: float = 5.0
    timeout: float = 300.0
    fetch_timeout: float = 30.0
    fetch_retries: int = 3
    retry_delay: float = 2.0

    def to_retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.fetch_retries,
            base_delay=self.retry_delay,
            request_timeout=self.fetch_timeout,
        )


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the policy engine.

    Can be loaded from:
    - Environment variables (and a .env file)
    - YAML file
    - Programmatic construction
    """
    network: NetworkConfig = field(default_factory=NetworkConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - POLICY_ENGINE_ENDPOINT: Node endpoint
        - POLICY_ENGINE_NETWORK: Network name (mainnet, testnet)
        - POLICY_ENGINE_MAX_TREE_DEPTH: Maximum Merkle tree depth
        - POLICY_ENGINE_MAX_RETRIES: Attempts per mapping read
        - POLICY_ENGINE_RETRY_DELAY: Backoff base in seconds
        - POLICY_ENGINE_POLL_INTERVAL: Transaction poll interval in seconds
        - POLICY_ENGINE_TRACKING_TIMEOUT: Transaction tracking budget in seconds
        - POLICY_ENGINE_HTTP_PROXY: HTTP proxy URL
        - POLICY_ENGINE_LOG_LEVEL: Logging level
        """
        overrides: dict[str, Any] = {}

        # Network settings
        if os.getenv("POLICY_ENGINE_ENDPOINT"):
            overrides.setdefault("network", {})["endpoint"] = os.getenv("POLICY_ENGINE_ENDPOINT")
        if os.getenv("POLICY_ENGINE_NETWORK"):
            overrides.setdefault("network", {})["network"] = os.getenv("POLICY_ENGINE_NETWORK")

        # Tree settings
        if os.getenv("POLICY_ENGINE_MAX_TREE_DEPTH"):
            overrides.setdefault("tree", {})["max_tree_depth"] = int(
                os.getenv("POLICY_ENGINE_MAX_TREE_DEPTH")
            )

        # HTTP settings
        if os.getenv("POLICY_ENGINE_MAX_RETRIES"):
            overrides.setdefault("http", {})["max_retries"] = int(os.getenv("POLICY_ENGINE_MAX_RETRIES"))
        if os.getenv("POLICY_ENGINE_RETRY_DELAY"):
            overrides.setdefault("http", {})["retry_delay"] = float(os.getenv("POLICY_ENGINE_RETRY_DELAY"))
        if os.getenv("POLICY_ENGINE_HTTP_PROXY"):
            overrides.setdefault("http", {})["proxy"] = os.getenv("POLICY_ENGINE_HTTP_PROXY")

        # Tracking settings
        if os.getenv("POLICY_ENGINE_POLL_INTERVAL"):
            overrides.setdefault("tracking", {})["poll_interval"] = float(
                os.getenv("POLICY_ENGINE_POLL_INTERVAL")
            )
        if os.getenv("POLICY_ENGINE_TRACKING_TIMEOUT"):
            overrides.setdefault("tracking", {})["timeout"] = float(
                os.getenv("POLICY_ENGINE_TRACKING_TIMEOUT")
            )

        if os.getenv("POLICY_ENGINE_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("POLICY_ENGINE_LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "RuntimeConfig":
        """
        Load configuration from environment variables.

        A .env file is read first (without overriding variables that are
        already set). Uses defaults for any values not specified.
        """
        load_dotenv(dotenv_path)
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        network_data = data.get("network", {})
        http_data = data.get("http", {})
        tree_data = data.get("tree", {})
        tracking_data = data.get("tracking", {})

        return cls(
            network=NetworkConfig(**network_data) if network_data else NetworkConfig(),
            http=HttpConfig(**http_data) if http_data else HttpConfig(),
            tree=TreeConfig(**tree_data) if tree_data else TreeConfig(),
            tracking=TrackingConfig(**tracking_data) if tracking_data else TrackingConfig(),
            log_level=data.get("log_level", "INFO"),
            log_file=data.get("log_file"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section in ("network", "http", "tree", "tracking"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "network": {
                "endpoint": self.network.endpoint,
                "network": self.network.network,
            },
            "http": {
                "timeout": self.http.timeout,
                "max_retries": self.http.max_retries,
                "retry_delay": self.http.retry_delay,
                "max_delay": self.http.max_delay,
                "proxy": self.http.proxy,
            },
            "tree": {
                "max_tree_depth": self.tree.max_tree_depth,
                "max_root_refetches": self.tree.max_root_refetches,
            },
            "tracking": {
                "max_attempts": self.tracking.max_attempts,
                "poll_interval": self.tracking.poll_interval,
                "timeout": self.tracking.timeout,
                "fetch_timeout": self.tracking.fetch_timeout,
                "fetch_retries": self.tracking.fetch_retries,
                "retry_delay": self.tracking.retry_delay,
            },
            "log_level": self.log_level,
            "log_file": self.log_file,
            "extra": self.extra,
        }
