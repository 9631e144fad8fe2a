"""
Merkle Node Hashing
Domain-separated Poseidon4 hashing for freeze-list Merkle trees.

This module provides:
- hash_pair: hash two children under a level prefix
- LEAF_PREFIX / NODE_PREFIX: level prefixes

Rules:
1. Leaf level: parent = Poseidon4::hash_to_field([1field, left, right])
2. Upper levels: parent = Poseidon4::hash_to_field([0field, left, right])
3. Leaves themselves are never hashed on their own

The prefix keeps a pair of leaves from colliding with a pair of inner
nodes that happen to share the same values.
"""
from __future__ import annotations

from typing import Union

from policy_engine.codec.address import to_field
from policy_engine.crypto.poseidon import hash_to_field


LEAF_PREFIX = 1
NODE_PREFIX = 0


def hash_pair(
    prefix: int,
    left: Union[int, str],
    right: Union[int, str],
) -> int:
    """
    Hash two child nodes into their parent.

    Args:
        prefix: LEAF_PREFIX when both children are leaves, NODE_PREFIX above
        left: left child (int or "Nfield" literal)
        right: right child (int or "Nfield" literal)

    Returns:
        Parent node as a field element

    Raises:
        InvalidFieldException: If either child is outside the field

    Example:
        >>> hash_pair(LEAF_PREFIX, 0, 5) != hash_pair(NODE_PREFIX, 0, 5)
        True
    """
    return hash_to_field([prefix, to_field(left), to_field(right)])


def hash_leaf_pair(left: Union[int, str], right: Union[int, str]) -> int:
    """Hash two sibling leaves."""
    return hash_pair(LEAF_PREFIX, left, right)


def hash_node_pair(left: Union[int, str], right: Union[int, str]) -> int:
    """Hash two sibling inner nodes."""
    return hash_pair(NODE_PREFIX, left, right)


__all__ = [
    "LEAF_PREFIX",
    "NODE_PREFIX",
    "hash_pair",
    "hash_leaf_pair",
    "hash_node_pair",
]
