"""
Chain-State Reconciler

Reads the freeze list registry from chain and rebuilds the Merkle tree
that the token programs verify against.

Pagination walks freeze_list_index[0u32], [1u32], ... and stops at the
first absent slot. A 404 there is the end-of-list marker, not an error.
Fetch failures also end the walk (logged) with whatever was collected.

The rebuilt root must equal freeze_list_root[1u8]. A mismatch means the
list changed between reads; PolicyEngine.reconcile re-fetches instead of
carrying on with a stale tree.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from policy_engine.chain.rpc import AleoRpcClient, ChainRpc
from policy_engine.chain.tracker import TransactionObserver
from policy_engine.clock import Clock
from policy_engine.codec.address import (
    FIELD_SUFFIX,
    ZERO_ADDRESS,
    parse_field,
    parse_integer_literal,
)
from policy_engine.config.runtime import RuntimeConfig
from policy_engine.http.client import HttpClient
from policy_engine.merkle.merkle_proofs import NonInclusionProver, NonInclusionWitness
from policy_engine.merkle.merkle_tree import build_tree, gen_leaves, tree_root
from policy_engine.schemas.errors import (
    ChainFetchException,
    ChainStateException,
    DecodeException,
    RootMismatchException,
)
from policy_engine.schemas.freeze_list import (
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

logger = logging.getLogger(__name__)


def _parse_root(value: str) -> int:
    # Roots come back as "123field", occasionally "123FIELD" or bare digits
    text = value.strip()
    if text.lower().endswith(FIELD_SUFFIX):
        text = text[: -len(FIELD_SUFFIX)]
    return parse_field(f"{text}{FIELD_SUFFIX}")


def fetch_current_root(rpc: ChainRpc, program_id: str) -> int:
    """
    Fetch freeze_list_root[1u8].

    Lightweight check for validating a cached freeze list.

    Raises:
        ChainStateException: If the root is absent or malformed
        ChainFetchException: If the request itself fails
    """
    value = rpc.get_mapping_value(program_id, FREEZE_LIST_ROOT_MAPPING, CURRENT_ROOT_KEY)
    if value is None:
        raise ChainStateException(
            f"Failed to fetch freeze_list_root for program {program_id}",
            program_id=program_id,
            mapping=FREEZE_LIST_ROOT_MAPPING,
        )
    try:
        return _parse_root(value)
    except DecodeException as e:
        raise ChainStateException(
            f"Invalid freeze_list_root value: {value}",
            program_id=program_id,
            mapping=FREEZE_LIST_ROOT_MAPPING,
        ) from e


def _fetch_optional(rpc: ChainRpc, program_id: str, mapping: str, key: str) -> Optional[str]:
    try:
        return rpc.get_mapping_value(program_id, mapping, key)
    except ChainFetchException as e:
        logger.warning(f"Could not read {mapping}[{key}] for {program_id}: {e.message}")
        return None


def _optional_root(rpc: ChainRpc, program_id: str, key: str) -> Optional[int]:
    value = _fetch_optional(rpc, program_id, FREEZE_LIST_ROOT_MAPPING, key)
    if value is None:
        return None
    try:
        return _parse_root(value)
    except DecodeException as e:
        raise ChainStateException(
            f"Invalid freeze_list_root[{key}] value: {value}",
            program_id=program_id,
            mapping=FREEZE_LIST_ROOT_MAPPING,
        ) from e


def _optional_integer(rpc: ChainRpc, program_id: str, mapping: str) -> Optional[int]:
    value = _fetch_optional(rpc, program_id, mapping, SINGLETON_KEY)
    if value is None:
        return None
    try:
        return parse_integer_literal(value)
    except DecodeException as e:
        raise ChainStateException(
            f"Invalid {mapping} value: {value}",
            program_id=program_id,
            mapping=mapping,
        ) from e


def fetch_freeze_list_from_chain(
    rpc: ChainRpc,
    program_id: str,
    max_slots: int,
) -> FreezeListSnapshot:
    """
    Read the full freeze list and its roots from chain.

    Args:
        rpc: Chain query interface
        program_id: Freeze list registry program
        max_slots: Upper bound on slots to read (tree capacity)

    Returns:
        FreezeListSnapshot with addresses in slot order, sentinel removed

    Raises:
        ChainStateException: If the current root is absent or malformed
    """
    current_root = fetch_current_root(rpc, program_id)

    addresses: list[str] = []
    index = 0
    while index < max_slots:
        try:
            value = rpc.get_mapping_value(program_id, FREEZE_LIST_INDEX_MAPPING, slot_key(index))
        except ChainFetchException as e:
            logger.warning(
                f"Stopping freeze list walk for {program_id} at slot {index}: {e.message}"
            )
            break
        if value is None:
            break
        addresses.append(value)
        index += 1

    if index == max_slots:
        logger.info(f"Freeze list for {program_id} reached tree capacity ({max_slots} slots)")

    filtered = tuple(address for address in addresses if address != ZERO_ADDRESS)
    logger.debug(
        f"Read {index} slots from {program_id}: {len(filtered)} addresses, "
        f"{index - len(filtered)} sentinel entries"
    )

    return FreezeListSnapshot(
        program_id=program_id,
        addresses=filtered,
        last_index=index,
        current_root=current_root,
        previous_root=_optional_root(rpc, program_id, PREVIOUS_ROOT_KEY),
        reported_last_index=_optional_integer(rpc, program_id, FREEZE_LIST_LAST_INDEX_MAPPING),
        root_updated_height=_optional_integer(rpc, program_id, ROOT_UPDATED_HEIGHT_MAPPING),
        block_height_window=_optional_integer(rpc, program_id, BLOCK_HEIGHT_WINDOW_MAPPING),
    )


class PolicyEngine:
    """
    Entry point for freeze list proofs against a live network.

    Usage:
        engine = PolicyEngine(RuntimeConfig.from_env())

        snapshot, tree = engine.reconcile("sealance_freezelist_registry.aleo")
        witness = engine.generate_non_inclusion_witness(
            "aleo1...", freeze_list=snapshot.addresses
        )
    """

    def __init__(
        self,
        config: Optional[RuntimeConfig] = None,
        rpc: Optional[ChainRpc] = None,
        http: Optional[HttpClient] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or RuntimeConfig()
        self.clock = clock
        self.rpc = rpc or AleoRpcClient.from_config(self.config, http=http, clock=clock)

    @property
    def max_tree_depth(self) -> int:
        return self.config.tree.max_tree_depth

    def fetch_current_root(self, program_id: str) -> int:
        return fetch_current_root(self.rpc, program_id)

    def fetch_freeze_list_from_chain(self, program_id: str) -> FreezeListSnapshot:
        return fetch_freeze_list_from_chain(self.rpc, program_id, self.config.tree.max_slots)

    def reconcile(self, program_id: str) -> tuple[FreezeListSnapshot, list[int]]:
        """
        Fetch the freeze list and rebuild a tree whose root matches the chain.

        Re-fetches up to tree.max_root_refetches times when the rebuilt root
        differs from freeze_list_root[1u8].

        Returns:
            (snapshot, tree)

        Raises:
            RootMismatchException: If the roots still differ after all re-fetches
        """
        attempts = self.config.tree.max_root_refetches + 1
        local_root = chain_root = None

        for attempt in range(1, attempts + 1):
            snapshot = self.fetch_freeze_list_from_chain(program_id)
            tree = self.build_merkle_tree(snapshot.addresses)
            local_root = tree_root(tree)
            chain_root = snapshot.current_root

            if local_root == chain_root:
                logger.info(
                    f"Reconciled {program_id}: {len(snapshot.addresses)} addresses, "
                    f"root {chain_root}"
                )
                return snapshot, tree

            logger.warning(
                f"Root mismatch for {program_id} (attempt {attempt}/{attempts}): "
                f"local {local_root}, on-chain {chain_root}"
            )

        raise RootMismatchException(
            f"Rebuilt root does not match on-chain root for {program_id} after {attempts} attempts",
            local_root=local_root,
            chain_root=chain_root,
            details={"attempts": attempts, "program_id": program_id},
        )

    def generate_non_inclusion_witness(
        self,
        address: str,
        freeze_list: Optional[Sequence[str]] = None,
        program_id: Optional[str] = None,
    ) -> NonInclusionWitness:
        """
        Build the two sibling paths proving `address` is not frozen.

        Uses `freeze_list` when given, otherwise reconciles `program_id`
        so the witness root matches the on-chain root.

        Raises:
            ValueError: If neither freeze_list nor program_id is given
        """
        if freeze_list is None:
            if not program_id:
                raise ValueError("Either freeze_list or program_id must be provided")
            snapshot, _ = self.reconcile(program_id)
            freeze_list = snapshot.addresses

        return NonInclusionProver.prove(freeze_list, address, self.max_tree_depth)

    def build_merkle_tree(self, addresses: Sequence[str]) -> list[int]:
        return build_tree(gen_leaves(addresses, self.max_tree_depth))

    def get_merkle_root(self, addresses: Sequence[str]) -> int:
        return tree_root(self.build_merkle_tree(addresses))

    def track_transaction(self, tx_id: str) -> TransactionObserver:
        """Observer for a submitted transaction, using the tracking config."""
        return TransactionObserver(tx_id, self.rpc, self.config.tracking, self.clock)


__all__ = [
    "fetch_current_root",
    "fetch_freeze_list_from_chain",
    "PolicyEngine",
]
