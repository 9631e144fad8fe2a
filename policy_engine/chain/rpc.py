"""
Aleo RPC Client

Minimal read-only interface to an Aleo node, plus the HTTP implementation
used in production.

Endpoints (relative to {endpoint}/{network}):
    GET /program/{id}.aleo/mapping/{name}/{key}
    GET /transaction/confirmed/{tx_id}
    GET /transaction/unconfirmed/{tx_id}
    GET /find/blockHash/{tx_id}
    GET /block/{hash}
    GET /block/height/latest

A 404 from any endpoint means "absent" and maps to None.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, TYPE_CHECKING

from policy_engine.http.client import HttpClient, HttpResponse
from policy_engine.http.retry import RetryPolicy

if TYPE_CHECKING:
    from policy_engine.clock import Clock
    from policy_engine.config.runtime import RuntimeConfig

logger = logging.getLogger(__name__)


PROGRAM_SUFFIX = ".aleo"


class ChainRpc(Protocol):
    """
    Protocol for the chain queries the reconciler and observer depend on.

    Implementations return None for absent values and raise
    ChainFetchException subclasses for everything else.
    """

    def get_mapping_value(self, program_id: str, mapping: str, key: str) -> Optional[str]:
        """Raw mapping value with one layer of quotes removed."""
        ...

    def get_confirmed_transaction(self, tx_id: str) -> Optional[dict[str, Any]]:
        """Confirmed transaction JSON, None while unconfirmed."""
        ...

    def get_unconfirmed_transaction(self, tx_id: str) -> Optional[dict[str, Any]]:
        """Original (unconfirmed) transaction JSON."""
        ...

    def find_block_hash(self, tx_id: str) -> Optional[str]:
        """Hash of the block containing a transaction."""
        ...

    def get_block(self, block_hash: str) -> Optional[dict[str, Any]]:
        """Block JSON by hash."""
        ...

    def get_latest_block_height(self) -> Optional[int]:
        """Current chain height."""
        ...


def unwrap_raw_value(text: Optional[str]) -> Optional[str]:
    """
    Normalize a raw mapping/endpoint body.

    Trims whitespace and strips exactly one layer of surrounding double
    quotes. Empty bodies and the literal null (quoted or not) become None.
    """
    if text is None:
        return None
    value = text.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]
    if not value or value == "null":
        return None
    return value


def normalize_program_id(program_id: str) -> str:
    """Append ".aleo" when a program id is given without it."""
    if program_id.endswith(PROGRAM_SUFFIX):
        return program_id
    return f"{program_id}{PROGRAM_SUFFIX}"


class AleoRpcClient:
    """
    ChainRpc over HTTP.

    Mapping reads use `policy`; transaction and block lookups use
    `tracking_policy`, which is usually tighter since the observer has its
    own polling budget on top.

    Usage:
        rpc = AleoRpcClient(HttpClient(), "https://api.explorer.provable.com/v1", "mainnet")
        root = rpc.get_mapping_value("sealance_freezelist_registry.aleo", "freeze_list_root", "1u8")
    """

    def __init__(
        self,
        http: HttpClient,
        endpoint: str,
        network: str,
        policy: Optional[RetryPolicy] = None,
        tracking_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self.http = http
        self.endpoint = endpoint.rstrip("/")
        self.network = network
        self.policy = policy or http.retry_policy
        self.tracking_policy = tracking_policy or RetryPolicy(max_retries=3)

    @classmethod
    def from_config(
        cls,
        config: "RuntimeConfig",
        *,
        http: Optional[HttpClient] = None,
        clock: Optional["Clock"] = None,
    ) -> "AleoRpcClient":
        """Build a client from runtime configuration."""
        policy = config.http.to_retry_policy()
        if http is None:
            http = HttpClient(
                timeout=config.http.timeout,
                proxy=config.http.proxy,
                retry_policy=policy,
                clock=clock,
            )
        return cls(
            http,
            config.network.endpoint,
            config.network.network,
            policy=policy,
            tracking_policy=config.tracking.to_retry_policy(),
        )

    @property
    def base_url(self) -> str:
        return f"{self.endpoint}/{self.network}"

    def _get(self, path: str, policy: RetryPolicy) -> Optional[HttpResponse]:
        url = f"{self.base_url}/{path}"
        response = self.http.get_with_retries(url, policy)
        if response.status_code == 404:
            logger.debug(f"Not found: {url}")
            return None
        return response

    def get_mapping_value(self, program_id: str, mapping: str, key: str) -> Optional[str]:
        program = normalize_program_id(program_id)
        response = self._get(f"program/{program}/mapping/{mapping}/{key}", self.policy)
        if response is None:
            return None
        return unwrap_raw_value(response.text)

    def get_confirmed_transaction(self, tx_id: str) -> Optional[dict[str, Any]]:
        response = self._get(f"transaction/confirmed/{tx_id}", self.tracking_policy)
        return None if response is None else response.json()

    def get_unconfirmed_transaction(self, tx_id: str) -> Optional[dict[str, Any]]:
        response = self._get(f"transaction/unconfirmed/{tx_id}", self.tracking_policy)
        return None if response is None else response.json()

    def find_block_hash(self, tx_id: str) -> Optional[str]:
        response = self._get(f"find/blockHash/{tx_id}", self.tracking_policy)
        return None if response is None else unwrap_raw_value(response.text)

    def get_block(self, block_hash: str) -> Optional[dict[str, Any]]:
        response = self._get(f"block/{block_hash}", self.tracking_policy)
        return None if response is None else response.json()

    def get_latest_block_height(self) -> Optional[int]:
        response = self._get("block/height/latest", self.policy)
        if response is None:
            return None
        value = unwrap_raw_value(response.text)
        return None if value is None else int(value)


__all__ = [
    "ChainRpc",
    "AleoRpcClient",
    "unwrap_raw_value",
    "normalize_program_id",
]
