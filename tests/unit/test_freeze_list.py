"""
Chain-State Reconciler Unit Tests
Tests for policy_engine/chain/freeze_list.py and policy_engine/schemas/freeze_list.py

Covers:
1. Paginated slot walk (404 end marker, sentinel filtering, fetch errors, cap)
2. Current root fetch and validation
3. Optional root/height metadata
4. Root reconciliation with re-fetches
5. Witness generation through PolicyEngine
"""
import pytest

from fixtures.chain_fixtures import PROGRAM_ID, TX_ID, FakeChainRpc, make_address, make_addresses
from policy_engine.chain.freeze_list import (
    PolicyEngine,
    fetch_current_root,
    fetch_freeze_list_from_chain,
)
from policy_engine.chain.rpc import AleoRpcClient
from policy_engine.chain.tracker import TrackingState
from policy_engine.codec.address import ZERO_ADDRESS
from policy_engine.config.runtime import RuntimeConfig
from policy_engine.merkle.merkle_proofs import verify_non_inclusion
from policy_engine.merkle.merkle_tree import build_tree, gen_leaves, tree_root
from policy_engine.schemas.errors import (
    ChainStateException,
    ErrorCodes,
    RootMismatchException,
    TransientNetworkException,
)
from policy_engine.schemas.freeze_list import (
    BLOCK_HEIGHT_WINDOW_MAPPING,
    FREEZE_LIST_INDEX_MAPPING,
    FREEZE_LIST_LAST_INDEX_MAPPING,
    FREEZE_LIST_ROOT_MAPPING,
    ROOT_UPDATED_HEIGHT_MAPPING,
    FreezeListSnapshot,
)


def _root_of(addresses, depth=15):
    return tree_root(build_tree(gen_leaves(addresses, depth)))


def _engine(rpc, depth=15, refetches=3):
    config = RuntimeConfig.from_dict({
        "tree": {"max_tree_depth": depth, "max_root_refetches": refetches},
    })
    return PolicyEngine(config=config, rpc=rpc)


class RacingChainRpc(FakeChainRpc):
    """Reports a stale root on the first `stale_reads` root reads."""

    def __init__(self, stale_root: int, stale_reads: int = 1) -> None:
        super().__init__()
        self.stale_root = stale_root
        self.stale_reads = stale_reads

    def get_mapping_value(self, program_id, mapping, key):
        value = super().get_mapping_value(program_id, mapping, key)
        if mapping == FREEZE_LIST_ROOT_MAPPING and key == "1u8" and self.stale_reads > 0:
            self.stale_reads -= 1
            return f"{self.stale_root}field"
        return value


class TestFetchCurrentRoot:
    """Tests for freeze_list_root[1u8]."""

    def test_parses_root(self, rpc):
        rpc.set_root(12345)
        assert fetch_current_root(rpc, PROGRAM_ID) == 12345

    @pytest.mark.parametrize("raw", ["777FIELD", "777", " 777field "])
    def test_tolerant_formats(self, rpc, raw):
        rpc.mappings[(FREEZE_LIST_ROOT_MAPPING, "1u8")] = raw
        assert fetch_current_root(rpc, PROGRAM_ID) == 777

    def test_missing_root(self, rpc):
        with pytest.raises(ChainStateException) as exc_info:
            fetch_current_root(rpc, PROGRAM_ID)

        assert exc_info.value.code == ErrorCodes.CHAIN_STATE_MISSING
        assert exc_info.value.details == {
            "program_id": PROGRAM_ID,
            "mapping": FREEZE_LIST_ROOT_MAPPING,
        }

    def test_malformed_root(self, rpc):
        rpc.mappings[(FREEZE_LIST_ROOT_MAPPING, "1u8")] = "notarootfield"
        with pytest.raises(ChainStateException, match="Invalid"):
            fetch_current_root(rpc, PROGRAM_ID)

    def test_fetch_error_propagates(self, rpc):
        rpc.mapping_errors[(FREEZE_LIST_ROOT_MAPPING, "1u8")] = TransientNetworkException("down")
        with pytest.raises(TransientNetworkException):
            fetch_current_root(rpc, PROGRAM_ID)


class TestFetchFreezeList:
    """Tests for the paginated slot walk."""

    def test_walk_stops_at_first_absent_slot(self, rpc):
        addresses = make_addresses([10, 20])
        rpc.set_freeze_list(addresses)
        rpc.set_root(1)

        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.addresses == tuple(addresses)
        assert snapshot.last_index == 2
        assert snapshot.current_root == 1
        assert rpc.mapping_calls(FREEZE_LIST_INDEX_MAPPING) == ["0u32", "1u32", "2u32"]

    def test_empty_list(self, rpc):
        rpc.set_root(1)
        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.addresses == ()
        assert snapshot.last_index == 0

    def test_sentinel_filtered_anywhere(self, rpc):
        a, b = make_address(10), make_address(20)
        rpc.set_freeze_list([ZERO_ADDRESS, a, ZERO_ADDRESS, b, ZERO_ADDRESS])
        rpc.set_root(1)

        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.addresses == (a, b)
        assert snapshot.last_index == 5

    def test_keeps_slot_order(self, rpc):
        addresses = make_addresses([30, 10, 20])
        rpc.set_freeze_list(addresses)
        rpc.set_root(1)

        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.addresses == tuple(addresses)

    def test_fetch_error_ends_walk(self, rpc):
        addresses = make_addresses([10, 20, 30])
        rpc.set_freeze_list(addresses)
        rpc.set_root(1)
        rpc.mapping_errors[(FREEZE_LIST_INDEX_MAPPING, "1u32")] = TransientNetworkException("boom")

        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.addresses == (addresses[0],)
        assert snapshot.last_index == 1

    def test_max_slots_cap(self, rpc):
        rpc.set_freeze_list(make_addresses(range(1, 7)))
        rpc.set_root(1)

        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 4)

        assert len(snapshot.addresses) == 4
        assert snapshot.last_index == 4
        assert "4u32" not in rpc.mapping_calls(FREEZE_LIST_INDEX_MAPPING)

    def test_root_read_first(self, rpc):
        rpc.set_freeze_list([make_address(1)])
        with pytest.raises(ChainStateException):
            fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)
        assert rpc.mapping_calls(FREEZE_LIST_INDEX_MAPPING) == []

    def test_optional_metadata(self, rpc):
        rpc.set_root(100)
        rpc.set_previous_root(99)
        rpc.mappings[(FREEZE_LIST_LAST_INDEX_MAPPING, "true")] = "0u32"
        rpc.mappings[(ROOT_UPDATED_HEIGHT_MAPPING, "true")] = "1000u32"
        rpc.mappings[(BLOCK_HEIGHT_WINDOW_MAPPING, "true")] = "50u32"

        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.previous_root == 99
        assert snapshot.reported_last_index == 0
        assert snapshot.root_updated_height == 1000
        assert snapshot.block_height_window == 50

    def test_optional_metadata_absent(self, rpc):
        rpc.set_root(100)
        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.previous_root is None
        assert snapshot.reported_last_index is None
        assert snapshot.root_updated_height is None
        assert snapshot.block_height_window is None

    def test_optional_fetch_error_is_none(self, rpc):
        rpc.set_root(100)
        rpc.mapping_errors[(BLOCK_HEIGHT_WINDOW_MAPPING, "true")] = TransientNetworkException("x")

        snapshot = fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)

        assert snapshot.block_height_window is None

    def test_optional_malformed_value(self, rpc):
        rpc.set_root(100)
        rpc.mappings[(ROOT_UPDATED_HEIGHT_MAPPING, "true")] = "soon"

        with pytest.raises(ChainStateException, match=ROOT_UPDATED_HEIGHT_MAPPING):
            fetch_freeze_list_from_chain(rpc, PROGRAM_ID, 16)


class TestSnapshot:
    """Tests for FreezeListSnapshot helpers."""

    def _snapshot(self, **kwargs):
        values = dict(program_id=PROGRAM_ID, last_index=0, current_root=1)
        values.update(kwargs)
        return FreezeListSnapshot(**values)

    def test_previous_root_window(self):
        snapshot = self._snapshot(previous_root=2, root_updated_height=100, block_height_window=50)

        assert snapshot.previous_root_valid_at(150)
        assert not snapshot.previous_root_valid_at(151)
        assert snapshot.accepted_roots(120) == [1, 2]
        assert snapshot.accepted_roots(200) == [1]
        assert snapshot.accepted_roots() == [1]

    def test_no_previous_root(self):
        snapshot = self._snapshot(root_updated_height=100, block_height_window=50)
        assert not snapshot.previous_root_valid_at(100)

    def test_missing_window(self):
        snapshot = self._snapshot(previous_root=2)
        assert not snapshot.previous_root_valid_at(0)

    def test_frozen(self):
        snapshot = self._snapshot()
        with pytest.raises(Exception):
            snapshot.current_root = 5


class TestReconcile:
    """Tests for PolicyEngine.reconcile."""

    def test_matching_root(self, rpc, frozen_addresses):
        rpc.set_freeze_list(frozen_addresses)
        rpc.set_root(_root_of(frozen_addresses))

        snapshot, tree = _engine(rpc).reconcile(PROGRAM_ID)

        assert snapshot.addresses == tuple(frozen_addresses)
        assert tree[:4] == [0, 10, 20, 30]
        assert tree_root(tree) == snapshot.current_root
        assert rpc.mapping_calls(FREEZE_LIST_ROOT_MAPPING).count("1u8") == 1

    def test_empty_list_root(self, rpc):
        rpc.set_root(_root_of([]))
        snapshot, tree = _engine(rpc).reconcile(PROGRAM_ID)

        assert snapshot.addresses == ()
        assert tree[:2] == [0, 0]

    def test_refetches_after_race(self, frozen_addresses):
        rpc = RacingChainRpc(stale_root=42, stale_reads=2)
        rpc.set_freeze_list(frozen_addresses)
        rpc.set_root(_root_of(frozen_addresses))

        snapshot, _ = _engine(rpc).reconcile(PROGRAM_ID)

        assert snapshot.current_root == _root_of(frozen_addresses)
        assert rpc.mapping_calls(FREEZE_LIST_ROOT_MAPPING).count("1u8") == 3

    def test_persistent_mismatch(self, rpc, frozen_addresses):
        rpc.set_freeze_list(frozen_addresses)
        rpc.set_root(123)

        with pytest.raises(RootMismatchException) as exc_info:
            _engine(rpc).reconcile(PROGRAM_ID)

        error = exc_info.value
        assert error.code == ErrorCodes.ROOT_MISMATCH
        assert error.retryable is True
        assert error.details["attempts"] == 4
        assert error.details["chain_root"] == "123"
        assert error.details["local_root"] == str(_root_of(frozen_addresses))
        assert rpc.mapping_calls(FREEZE_LIST_ROOT_MAPPING).count("1u8") == 4

    def test_refetch_budget_configurable(self, rpc):
        rpc.set_root(123)
        with pytest.raises(RootMismatchException):
            _engine(rpc, refetches=0).reconcile(PROGRAM_ID)
        assert rpc.mapping_calls(FREEZE_LIST_ROOT_MAPPING).count("1u8") == 1


class TestPolicyEngine:
    """Tests for the PolicyEngine entry points."""

    def test_witness_requires_input(self, rpc):
        with pytest.raises(ValueError, match="freeze_list or program_id"):
            _engine(rpc).generate_non_inclusion_witness(make_address(15))

    def test_witness_from_freeze_list(self, rpc, frozen_addresses):
        address = make_address(15)
        witness = _engine(rpc).generate_non_inclusion_witness(address, freeze_list=frozen_addresses)

        assert witness.left.depth == 16
        assert witness.left.leaf == 10
        assert witness.right.leaf == 20
        assert verify_non_inclusion(address, witness, 2)
        assert rpc.calls == []

    def test_witness_from_chain(self, rpc, frozen_addresses):
        rpc.set_freeze_list(frozen_addresses)
        rpc.set_root(_root_of(frozen_addresses))
        address = make_address(25)

        witness = _engine(rpc).generate_non_inclusion_witness(address, program_id=PROGRAM_ID)

        assert witness.root == _root_of(frozen_addresses)
        assert witness.freeze_list == tuple(frozen_addresses)
        assert verify_non_inclusion(address, witness, 2)

    def test_witness_depth_follows_config(self, rpc, frozen_addresses):
        witness = _engine(rpc, depth=4).generate_non_inclusion_witness(
            make_address(15), freeze_list=frozen_addresses
        )
        assert witness.left.depth == 5

    def test_merkle_root(self, rpc, frozen_addresses):
        engine = _engine(rpc)
        assert engine.get_merkle_root(frozen_addresses) == _root_of(frozen_addresses)
        assert engine.build_merkle_tree(frozen_addresses)[:4] == [0, 10, 20, 30]

    def test_fetch_uses_tree_capacity(self, rpc):
        rpc.set_freeze_list(make_addresses(range(1, 7)))
        rpc.set_root(1)

        snapshot = _engine(rpc, depth=3).fetch_freeze_list_from_chain(PROGRAM_ID)

        assert snapshot.last_index == 4

    def test_fetch_current_root(self, rpc):
        rpc.set_root(9)
        assert _engine(rpc).fetch_current_root(PROGRAM_ID) == 9

    def test_track_transaction(self, rpc, clock):
        engine = PolicyEngine(rpc=rpc, clock=clock)
        observer = engine.track_transaction(TX_ID)

        assert observer.tx_id == TX_ID
        assert observer.state == TrackingState.SUBMITTED
        assert observer.options is engine.config.tracking
        assert observer.clock is clock

    def test_default_rpc_from_config(self):
        engine = PolicyEngine(RuntimeConfig.from_dict({"network": {"network": "testnet"}}))

        assert isinstance(engine.rpc, AleoRpcClient)
        assert engine.rpc.base_url.endswith("/testnet")
        assert engine.max_tree_depth == 15
