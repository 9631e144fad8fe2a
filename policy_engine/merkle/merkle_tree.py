"""
Merkle Tree Implementation
Sorted, sentinel-padded Merkle trees over address-derived field elements.

This module provides:
- Leaf set construction from Aleo addresses (filter, sort, pad)
- Flat-array tree construction with the chain's Poseidon4 node hash
- Small helpers for navigating the flat array

Tree Rules (Hard Contracts):
1. Leaves are field elements, sorted ascending, left-padded with 0
2. Leaf count is a power of two, at least 2
3. Leaf level parents: hash_to_field([1field, left, right])
4. Upper level parents: hash_to_field([0field, left, right])
5. Flat layout: leaves first, then each level, root at the last index
   (length 2n - 1 for n leaves)

Determinism Notes:
- gen_leaves sorts; build_tree never does, it trusts input order
- Trees are never mutated; a new leaf set produces a new tree
"""
from __future__ import annotations

import logging
from typing import Sequence, Union

from policy_engine.codec.address import ZERO_ADDRESS, address_to_field, to_field
from policy_engine.crypto.hashing import LEAF_PREFIX, NODE_PREFIX, hash_pair
from policy_engine.schemas.errors import InvalidLeafSetException, TreeFullException

logger = logging.getLogger(__name__)


DEFAULT_MAX_TREE_DEPTH = 15

# Value of the sentinel leaf
ZERO_LEAF = 0


def merkle_parent(left: int, right: int, prefix: int = NODE_PREFIX) -> int:
    """
    Compute the parent of two child nodes.

    Args:
        left: Left child
        right: Right child
        prefix: LEAF_PREFIX for the first level above the leaves,
                NODE_PREFIX everywhere else

    Returns:
        Parent node as a field element
    """
    return hash_pair(prefix, left, right)


def next_power_of_two(n: int) -> int:
    """Smallest power of two >= n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def build_tree(leaves: Sequence[Union[int, str]]) -> list[int]:
    """
    Build the flat Merkle tree array from a leaf set.

    Algorithm:
    1. Validate: non-empty, even, power-of-two length
    2. Hash adjacent pairs of the leaf level with LEAF_PREFIX
    3. Hash adjacent pairs of every higher level with NODE_PREFIX
    4. Append each level to the array until one root remains

    Example: [a, b, c, d] ->
        [a, b, c, d, H1(a,b), H1(c,d), H0(H1(a,b), H1(c,d))]

    Args:
        leaves: Leaf set as ints or "Nfield" literals

    Returns:
        Flat array of length 2n - 1; the root is the last element

    Raises:
        InvalidLeafSetException: If the leaf count is empty, odd, or not a
            power of two
        InvalidFieldException: If a leaf is not a valid field element
    """
    num = len(leaves)
    if num == 0:
        raise InvalidLeafSetException("Leaf set cannot be empty", num_leaves=0)
    if num % 2 != 0:
        raise InvalidLeafSetException(
            f"Leaf set must have an even number of elements, got {num}",
            num_leaves=num,
        )
    if not _is_power_of_two(num):
        raise InvalidLeafSetException(
            f"Leaf set size must be a power of two, got {num}",
            num_leaves=num,
        )

    current_level = [to_field(leaf) for leaf in leaves]
    tree = list(current_level)
    prefix = LEAF_PREFIX

    while len(current_level) > 1:
        next_level = [
            merkle_parent(current_level[i], current_level[i + 1], prefix)
            for i in range(0, len(current_level), 2)
        ]
        tree.extend(next_level)
        current_level = next_level
        prefix = NODE_PREFIX

    return tree


def gen_leaves(
    addresses: Sequence[str],
    max_depth: int = DEFAULT_MAX_TREE_DEPTH,
    *,
    fixed_size: bool = False,
) -> list[int]:
    """
    Turn a freeze list into a sorted, padded leaf set.

    The sentinel ZERO_ADDRESS is dropped, the remaining addresses are
    converted to field elements and sorted ascending, then the list is
    left-padded with 0 up to the target size.

    Target size:
    - compact (default): max(2, next_power_of_two(n)); at most
      2**(max_depth - 1) addresses
    - fixed_size=True: always 2**max_depth; at most 2**max_depth addresses

    Args:
        addresses: Aleo addresses in any order
        max_depth: Maximum tree depth
        fixed_size: Pad to the full capacity of a max_depth tree

    Returns:
        Leaf set ready for build_tree

    Raises:
        TreeFullException: If there are more addresses than the tree holds
        InvalidAddressException: If an address cannot be decoded
    """
    real = [address for address in addresses if address != ZERO_ADDRESS]

    if fixed_size:
        capacity = 1 << max_depth
        target = capacity
    else:
        capacity = 1 << max(max_depth - 1, 0)
        target = max(2, next_power_of_two(len(real)))

    if len(real) > capacity:
        raise TreeFullException(
            f"Leaves limit exceeded. Max: {capacity}, provided: {len(real)}",
            capacity=capacity,
            provided=len(real),
        )

    fields = sorted(address_to_field(address) for address in real)
    padding = [ZERO_LEAF] * max(target - len(fields), 0)

    logger.debug(
        f"Generated {target} leaves from {len(real)} addresses "
        f"({len(addresses) - len(real)} sentinel entries dropped)"
    )
    return padding + fields


def num_leaves(tree: Sequence[int]) -> int:
    """Number of leaves in a flat tree array."""
    return (len(tree) + 1) // 2


def tree_root(tree: Sequence[int]) -> int:
    """Root of a flat tree array."""
    if not tree:
        raise InvalidLeafSetException("Tree is empty", num_leaves=0)
    return tree[-1]


def tree_height(tree: Sequence[int]) -> int:
    """
    Number of hashing levels between the leaves and the root.

    Two leaves have height 1, four have height 2, and so on.
    """
    return max(num_leaves(tree).bit_length() - 1, 0)


def leaves_of(tree: Sequence[int]) -> list[int]:
    """Leaf level of a flat tree array."""
    return list(tree[: num_leaves(tree)])


__all__ = [
    "DEFAULT_MAX_TREE_DEPTH",
    "ZERO_LEAF",
    "merkle_parent",
    "next_power_of_two",
    "build_tree",
    "gen_leaves",
    "num_leaves",
    "tree_root",
    "tree_height",
    "leaves_of",
]
