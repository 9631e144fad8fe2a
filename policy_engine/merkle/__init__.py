"""
Freeze-List Merkle Trees
Sorted Merkle tree construction and non-inclusion witness generation.

This module provides:
- gen_leaves: freeze list -> sorted, zero-padded leaf set
- build_tree: leaf set -> flat tree array (root last)
- locate_bracket / sibling_path: witness construction
- verify_sibling_path / verify_non_inclusion: off-chain checks

Tree Rules:
1. Leaf level parents: Poseidon4 hash_to_field([1field, l, r])
2. Upper level parents: Poseidon4 hash_to_field([0field, l, r])
3. Leaf count: power of two, minimum 2
4. Sibling paths: leaf first, then siblings, then zero padding

Usage:
    from policy_engine.merkle import gen_leaves, build_tree, NonInclusionProver

    leaves = gen_leaves(freeze_list, max_depth=15)
    tree = build_tree(leaves)
    root = tree[-1]

    witness = NonInclusionProver.prove(freeze_list, "aleo1...")
    left, right = witness.proofs
"""
from .merkle_tree import (
    DEFAULT_MAX_TREE_DEPTH,
    ZERO_LEAF,
    merkle_parent,
    next_power_of_two,
    build_tree,
    gen_leaves,
    num_leaves,
    tree_root,
    tree_height,
    leaves_of,
)

from .merkle_proofs import (
    SiblingPath,
    NonInclusionWitness,
    locate_bracket,
    sibling_path,
    compute_root,
    verify_sibling_path,
    verify_non_inclusion,
    NonInclusionProver,
    NonInclusionVerifier,
)


__all__ = [
    # Constants
    "DEFAULT_MAX_TREE_DEPTH",
    "ZERO_LEAF",
    # Tree construction
    "merkle_parent",
    "next_power_of_two",
    "build_tree",
    "gen_leaves",
    "num_leaves",
    "tree_root",
    "tree_height",
    "leaves_of",
    # Witnesses
    "SiblingPath",
    "NonInclusionWitness",
    "locate_bracket",
    "sibling_path",
    "compute_root",
    "verify_sibling_path",
    "verify_non_inclusion",
    # Convenience classes
    "NonInclusionProver",
    "NonInclusionVerifier",
]
