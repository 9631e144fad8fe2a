"""
Schemas
File: __init__.py

Purpose: Export the public API for the schemas module: error taxonomy,
freeze list snapshots and transaction statuses.
"""

# Error models and exceptions
from .errors import (
    ChainFetchException,
    ChainStateException,
    DecodeException,
    ErrorCodes,
    InvalidAddressException,
    InvalidFieldException,
    InvalidLeafSetException,
    NonRetryableHttpException,
    PolicyEngineError,
    PolicyEngineException,
    PollExhaustedException,
    PollTimeoutException,
    RateLimitedException,
    RootMismatchException,
    TransientNetworkException,
    TreeFullException,
)

# Freeze list snapshot
from .freeze_list import (
    BLOCK_HEIGHT_WINDOW_MAPPING,
    CURRENT_ROOT_KEY,
    FREEZE_LIST_INDEX_MAPPING,
    FREEZE_LIST_LAST_INDEX_MAPPING,
    FREEZE_LIST_ROOT_MAPPING,
    PREVIOUS_ROOT_KEY,
    ROOT_UPDATED_HEIGHT_MAPPING,
    SINGLETON_KEY,
    FreezeListSnapshot,
    slot_key,
)

# Transaction status
from .transaction import (
    ACCEPTED_TYPES,
    REJECTED_ERROR_MESSAGE,
    REJECTED_TYPE,
    AcceptedStatus,
    FailureStatus,
    PendingStatus,
    RejectedStatus,
    TransactionStatus,
)

__all__ = [
    # Errors
    "ErrorCodes",
    "PolicyEngineError",
    "PolicyEngineException",
    "DecodeException",
    "InvalidAddressException",
    "InvalidFieldException",
    "InvalidLeafSetException",
    "TreeFullException",
    "ChainFetchException",
    "TransientNetworkException",
    "RateLimitedException",
    "NonRetryableHttpException",
    "ChainStateException",
    "RootMismatchException",
    "PollTimeoutException",
    "PollExhaustedException",
    # Freeze list
    "FreezeListSnapshot",
    "slot_key",
    "FREEZE_LIST_INDEX_MAPPING",
    "FREEZE_LIST_LAST_INDEX_MAPPING",
    "FREEZE_LIST_ROOT_MAPPING",
    "ROOT_UPDATED_HEIGHT_MAPPING",
    "BLOCK_HEIGHT_WINDOW_MAPPING",
    "CURRENT_ROOT_KEY",
    "PREVIOUS_ROOT_KEY",
    "SINGLETON_KEY",
    # Transaction status
    "TransactionStatus",
    "PendingStatus",
    "AcceptedStatus",
    "RejectedStatus",
    "FailureStatus",
    "ACCEPTED_TYPES",
    "REJECTED_TYPE",
    "REJECTED_ERROR_MESSAGE",
]
