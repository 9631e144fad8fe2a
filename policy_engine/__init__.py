"""
Policy Engine

Off-chain companion for compliance-gated Aleo token programs:
- sorted Merkle trees over frozen addresses
- non-inclusion witnesses for arbitrary addresses
- reconciliation with the on-chain freeze list registry
- tracking of submitted transactions

Usage:
    from policy_engine import PolicyEngine, RuntimeConfig

    engine = PolicyEngine(RuntimeConfig.from_env())
    witness = engine.generate_non_inclusion_witness(
        "aleo1...", program_id="sealance_freezelist_registry.aleo"
    )
    left, right = witness.proofs
"""

from .chain import (
    AleoRpcClient,
    ChainRpc,
    PolicyEngine,
    TransactionObserver,
    track_transaction_status,
)
from .codec import ZERO_ADDRESS, address_to_field, field_to_address
from .config import RuntimeConfig, TrackingConfig, setup_logging
from .merkle import (
    NonInclusionWitness,
    SiblingPath,
    build_tree,
    gen_leaves,
    locate_bracket,
    sibling_path,
    verify_non_inclusion,
)

__version__ = "0.1.0"

__all__ = [
    "PolicyEngine",
    "ChainRpc",
    "AleoRpcClient",
    "TransactionObserver",
    "track_transaction_status",
    "ZERO_ADDRESS",
    "address_to_field",
    "field_to_address",
    "RuntimeConfig",
    "TrackingConfig",
    "setup_logging",
    "NonInclusionWitness",
    "SiblingPath",
    "build_tree",
    "gen_leaves",
    "locate_bracket",
    "sibling_path",
    "verify_non_inclusion",
]
