"""
Chain Access

RPC interface, freeze list reconciliation and transaction tracking.
"""

from .rpc import AleoRpcClient, ChainRpc, normalize_program_id, unwrap_raw_value
from .tracker import (
    TrackingState,
    TransactionObserver,
    track_transaction_status,
    transaction_type,
)
from .freeze_list import PolicyEngine, fetch_current_root, fetch_freeze_list_from_chain

__all__ = [
    "ChainRpc",
    "AleoRpcClient",
    "unwrap_raw_value",
    "normalize_program_id",
    "TrackingState",
    "TransactionObserver",
    "track_transaction_status",
    "transaction_type",
    "PolicyEngine",
    "fetch_current_root",
    "fetch_freeze_list_from_chain",
]
