"""
Test fixtures package for policy engine tests.

This package provides factory functions and fakes:
- chain_fixtures.py: addresses, FakeChainRpc, mocked HTTP responses

Usage:
    from fixtures.chain_fixtures import FakeChainRpc, make_address

    def test_something():
        rpc = FakeChainRpc()
        rpc.set_freeze_list([make_address(5)])
"""

from .chain_fixtures import (
    PROGRAM_ID,
    TX_ID,
    FakeChainRpc,
    confirmed_tx,
    make_address,
    make_addresses,
    make_block,
    make_http_response,
    make_session,
)

__all__ = [
    "PROGRAM_ID",
    "TX_ID",
    "FakeChainRpc",
    "confirmed_tx",
    "make_address",
    "make_addresses",
    "make_block",
    "make_http_response",
    "make_session",
]
