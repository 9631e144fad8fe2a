"""
Non-Inclusion Proofs
Sibling paths and non-inclusion witnesses over sorted freeze-list trees.

This module provides:
- SiblingPath: authentication path for one leaf, in the on-chain layout
- NonInclusionWitness: the two bracketing paths plus the root
- locate_bracket: find the adjacent leaves around a candidate address
- sibling_path / verify_sibling_path / verify_non_inclusion
- NonInclusionProver / NonInclusionVerifier: class-based wrappers

Sibling path layout (matches the on-chain MerkleProof struct):
    siblings[0]            the authenticated leaf itself
    siblings[1..height]    sibling hashes, bottom-up
    siblings[height+1..]   0 padding up to the fixed depth

A tree of height h only authenticates h levels; the padding carries no
information and verifiers check it is zero separately.
"""
from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Any, Sequence

from policy_engine.codec.address import address_to_field, format_field
from policy_engine.crypto.hashing import LEAF_PREFIX, NODE_PREFIX
from policy_engine.merkle.merkle_tree import (
    DEFAULT_MAX_TREE_DEPTH,
    build_tree,
    gen_leaves,
    leaves_of,
    merkle_parent,
    num_leaves,
    tree_height,
    tree_root,
)


@dataclass(frozen=True)
class SiblingPath:
    """
    Authentication path for a single leaf.

    Attributes:
        siblings: Leaf, then sibling hashes bottom-up, then zero padding
        leaf_index: Index of the leaf in the leaf level
    """
    siblings: tuple[int, ...]
    leaf_index: int

    def __post_init__(self) -> None:
        if self.leaf_index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.leaf_index}")
        if not self.siblings:
            raise ValueError("Sibling path must contain at least the leaf")

    @property
    def leaf(self) -> int:
        return self.siblings[0]

    @property
    def depth(self) -> int:
        return len(self.siblings)

    def to_leo(self) -> dict[str, Any]:
        """Render as the on-chain MerkleProof struct inputs."""
        return {
            "siblings": [format_field(s) for s in self.siblings],
            "leaf_index": f"{self.leaf_index}u32",
        }


@dataclass(frozen=True)
class NonInclusionWitness:
    """
    Two sibling paths bracketing an address, plus the root they prove against.

    left authenticates the largest leaf below the address and right the
    smallest leaf above it. Both are the same boundary leaf when the
    address lies outside the range of the tree.
    """
    left: SiblingPath
    right: SiblingPath
    root: int
    freeze_list: tuple[str, ...] = ()

    @property
    def proofs(self) -> tuple[SiblingPath, SiblingPath]:
        return (self.left, self.right)


def locate_bracket(tree: Sequence[int], address: str) -> tuple[int, int]:
    """
    Find the leaf indices that bracket an address.

    Let r be the smallest index with v <= leaves[r]:
    - no such r: (n - 1, n - 1), v is above every leaf
    - r == 0:    (0, 0), v is at or below the smallest leaf
    - otherwise: (r - 1, r)

    Args:
        tree: Flat tree array built from a sorted leaf set
        address: Candidate Aleo address

    Returns:
        (left_index, right_index)

    Raises:
        InvalidAddressException: If the address cannot be decoded
    """
    value = address_to_field(address)
    leaves = leaves_of(tree)
    right = bisect_left(leaves, value)

    if right == len(leaves):
        last = len(leaves) - 1
        return last, last
    if right == 0:
        return 0, 0
    return right - 1, right


def sibling_path(tree: Sequence[int], leaf_index: int, depth: int) -> SiblingPath:
    """
    Build the authentication path for a leaf.

    Algorithm:
    1. Record the leaf itself
    2. At each level record the sibling (local index XOR 1), then move to
       the parent at level_start + local_index // 2
    3. Pad with 0 until the path has `depth` entries

    Args:
        tree: Flat tree array
        leaf_index: Index of the leaf to authenticate
        depth: Total number of entries in the returned path

    Returns:
        SiblingPath with the original leaf_index

    Raises:
        IndexError: If leaf_index is outside the leaf level
        ValueError: If depth cannot hold the leaf plus every sibling
    """
    n = num_leaves(tree)
    if leaf_index < 0 or leaf_index >= n:
        raise IndexError(f"Leaf index {leaf_index} out of range for {n} leaves")

    height = tree_height(tree)
    if depth < height + 1:
        raise ValueError(
            f"Depth {depth} too small for a tree of height {height} "
            f"(need at least {height + 1})"
        )

    path = [tree[leaf_index]]
    level_start = 0
    level_size = n
    local_index = leaf_index

    while level_size > 1:
        path.append(tree[level_start + (local_index ^ 1)])
        level_start += level_size
        level_size //= 2
        local_index //= 2

    path.extend([0] * (depth - len(path)))
    return SiblingPath(siblings=tuple(path), leaf_index=leaf_index)


def compute_root(path: SiblingPath, height: int) -> int:
    """Recompute the root from a sibling path over `height` levels."""
    current = path.leaf
    index = path.leaf_index
    for level in range(1, height + 1):
        sibling = path.siblings[level]
        prefix = LEAF_PREFIX if level == 1 else NODE_PREFIX
        if index % 2 == 0:
            current = merkle_parent(current, sibling, prefix)
        else:
            current = merkle_parent(sibling, current, prefix)
        index //= 2
    return current


def verify_sibling_path(path: SiblingPath, root: int, height: int) -> bool:
    """
    Check that a sibling path authenticates its leaf against a root.

    The path must be long enough for `height` levels, the leaf index must
    fit in the tree, and every padding entry must be zero.
    """
    if height < 1 or path.depth < height + 1:
        return False
    if path.leaf_index >= 1 << height:
        return False
    if any(s != 0 for s in path.siblings[height + 1:]):
        return False
    return compute_root(path, height) == root


def verify_non_inclusion(address: str, witness: NonInclusionWitness, height: int) -> bool:
    """
    Check a non-inclusion witness the way the on-chain verifier does.

    Both paths must verify against the witness root, and one of:
    - adjacent indices with leaf[left] < v < leaf[right]
    - both at index 0 with v < leaf[0]
    - both at the last index with v > leaf[last]
    """
    value = address_to_field(address)
    left, right = witness.left, witness.right

    if not verify_sibling_path(left, witness.root, height):
        return False
    if not verify_sibling_path(right, witness.root, height):
        return False

    last = (1 << height) - 1
    if right.leaf_index == left.leaf_index + 1:
        return left.leaf < value < right.leaf
    if left.leaf_index == right.leaf_index == 0:
        return value < left.leaf
    if left.leaf_index == right.leaf_index == last:
        return value > right.leaf
    return False


class NonInclusionProver:
    """
    Convenience class for generating non-inclusion witnesses.

    Example:
        >>> witness = NonInclusionProver.prove(freeze_list, "aleo1...")
        >>> witness.left.leaf < address_to_field("aleo1...") < witness.right.leaf
        True
    """

    @staticmethod
    def prove_tree(tree: Sequence[int], address: str, depth: int) -> tuple[SiblingPath, SiblingPath]:
        """Bracket an address in an existing tree and return both paths."""
        left_index, right_index = locate_bracket(tree, address)
        return (
            sibling_path(tree, left_index, depth),
            sibling_path(tree, right_index, depth),
        )

    @staticmethod
    def prove(
        freeze_list: Sequence[str],
        address: str,
        max_depth: int = DEFAULT_MAX_TREE_DEPTH,
    ) -> NonInclusionWitness:
        """
        Build the tree for a freeze list and derive the witness for an address.

        Paths are padded to max_depth + 1 entries, the size of the
        on-chain struct.

        Args:
            freeze_list: Frozen addresses, any order
            address: Address to prove absent
            max_depth: Maximum tree depth

        Returns:
            NonInclusionWitness against the rebuilt root
        """
        tree = build_tree(gen_leaves(freeze_list, max_depth))
        left, right = NonInclusionProver.prove_tree(tree, address, max_depth + 1)
        return NonInclusionWitness(
            left=left,
            right=right,
            root=tree_root(tree),
            freeze_list=tuple(freeze_list),
        )


class NonInclusionVerifier:
    """Convenience class for checking witnesses off-chain."""

    @staticmethod
    def verify(address: str, witness: NonInclusionWitness, height: int) -> bool:
        return verify_non_inclusion(address, witness, height)

    @staticmethod
    def verify_path(path: SiblingPath, root: int, height: int) -> bool:
        return verify_sibling_path(path, root, height)


__all__ = [
    "SiblingPath",
    "NonInclusionWitness",
    "locate_bracket",
    "sibling_path",
    "compute_root",
    "verify_sibling_path",
    "verify_non_inclusion",
    "NonInclusionProver",
    "NonInclusionVerifier",
]
