"""
Chain-compatible cryptographic primitives.

Poseidon4 over the BLS12-377 scalar field and the Merkle node hash built
on it.
"""
from .poseidon import (
    poseidon_hash,
    poseidon_parameters,
    hash_to_field,
    encode_field_array,
)
from .hashing import (
    LEAF_PREFIX,
    NODE_PREFIX,
    hash_pair,
    hash_leaf_pair,
    hash_node_pair,
)

__all__ = [
    "poseidon_hash",
    "poseidon_parameters",
    "hash_to_field",
    "encode_field_array",
    "LEAF_PREFIX",
    "NODE_PREFIX",
    "hash_pair",
    "hash_leaf_pair",
    "hash_node_pair",
]
