"""
Transaction Observer

Polls a submitted transaction until the chain reports an outcome or the
polling budget runs out.

States:
    SUBMITTED -> POLLING            first poll
    POLLING   -> POLLING            404 (not yet confirmed) or a fetch error
    POLLING   -> ACCEPTED           confirmed type "execute" or "deploy"
    POLLING   -> REJECTED           confirmed type "fee" (execution failed)
    POLLING   -> TIMED_OUT          elapsed > timeout, checked before each poll
    POLLING   -> EXHAUSTED          attempts == max_attempts, checked before each poll

Terminal states never change. The two budgets are independent; whichever
runs out first ends tracking. TIMED_OUT and EXHAUSTED mean the outcome is
unknown, not that the transaction failed.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from policy_engine.chain.rpc import ChainRpc
from policy_engine.clock import Clock, RealClock
from policy_engine.config.runtime import TrackingConfig
from policy_engine.schemas.errors import (
    PolicyEngineError,
    PolicyEngineException,
    PollExhaustedException,
    PollTimeoutException,
)
from policy_engine.schemas.transaction import (
    ACCEPTED_TYPES,
    REJECTED_TYPE,
    AcceptedStatus,
    FailureStatus,
    PendingStatus,
    RejectedStatus,
    TransactionStatus,
)

logger = logging.getLogger(__name__)


class TrackingState(str, Enum):
    """Observer state."""
    SUBMITTED = "submitted"
    POLLING = "polling"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"
    EXHAUSTED = "exhausted"

    @property
    def is_terminal(self) -> bool:
        return self not in (TrackingState.SUBMITTED, TrackingState.POLLING)


def transaction_type(payload: Any) -> Optional[str]:
    """Type of a confirmed transaction: {"transaction": {"type": ...}} or flat."""
    if not isinstance(payload, dict):
        return None
    inner = payload.get("transaction")
    if isinstance(inner, dict) and inner.get("type") is not None:
        return inner["type"]
    return payload.get("type")


class TransactionObserver:
    """
    Polling state machine for one transaction id.

    poll() performs a single step; run() drives it to a terminal state,
    sleeping on the injected clock between steps.

    Usage:
        observer = TransactionObserver(tx_id, rpc, TrackingConfig(timeout=600))
        status = observer.run()
        if status.status == "rejected":
            print(status.error)
    """

    def __init__(
        self,
        tx_id: str,
        rpc: ChainRpc,
        options: Optional[TrackingConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.tx_id = tx_id
        self.rpc = rpc
        self.options = options or TrackingConfig()
        self.clock = clock or RealClock()

        self.state = TrackingState.SUBMITTED
        self.attempts = 0
        self.last_error: Optional[str] = None
        self.last_exception: Optional[Exception] = None
        self._status: TransactionStatus = PendingStatus()
        self._started: Optional[float] = None
        self._last_poll_failed = False

    @property
    def status(self) -> TransactionStatus:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def elapsed(self) -> float:
        if self._started is None:
            return 0.0
        return self.clock.monotonic() - self._started

    def poll(self) -> TransactionStatus:
        """
        Advance the state machine by one step.

        Returns the current status; PendingStatus until a terminal state is
        reached, after which the same terminal status is returned forever.
        """
        if self.is_terminal:
            return self._status

        if self.state == TrackingState.SUBMITTED:
            self._started = self.clock.monotonic()
            self.state = TrackingState.POLLING
            logger.info(
                f"Starting transaction tracking for {self.tx_id} "
                f"(max_attempts={self.options.max_attempts}, "
                f"poll_interval={self.options.poll_interval}s, timeout={self.options.timeout}s)"
            )

        elapsed = self.elapsed
        if elapsed > self.options.timeout:
            return self._fail(TrackingState.TIMED_OUT)
        if self.attempts >= self.options.max_attempts:
            return self._fail(TrackingState.EXHAUSTED)

        self.attempts += 1
        try:
            payload = self.rpc.get_confirmed_transaction(self.tx_id)
        except Exception as e:
            self.last_error = str(e)
            self.last_exception = e
            self._last_poll_failed = True
            logger.debug(
                f"Fetch error while tracking {self.tx_id} "
                f"(attempt {self.attempts}/{self.options.max_attempts}): {e}"
            )
            return self._status

        self._last_poll_failed = False
        if payload is None:
            logger.debug(
                f"Transaction {self.tx_id} not yet confirmed "
                f"(attempt {self.attempts}/{self.options.max_attempts}, {int(elapsed)}s elapsed)"
            )
            return self._status

        tx_type = transaction_type(payload)
        if tx_type == REJECTED_TYPE:
            return self._reject()
        if tx_type in ACCEPTED_TYPES:
            return self._accept(tx_type)

        logger.debug(f"Transaction {self.tx_id} has unrecognised type {tx_type!r}; still pending")
        return self._status

    def next_delay(self) -> float:
        """Seconds to wait before the next poll."""
        if not self._last_poll_failed:
            return self.options.poll_interval
        remaining = self.options.timeout - self.elapsed
        return max(min(self.options.poll_interval, remaining), 0.0)

    def run(self) -> TransactionStatus:
        """
        Poll until a terminal state.

        Returns:
            AcceptedStatus or RejectedStatus

        Raises:
            PollTimeoutException: If the wall-clock budget ran out
            PollExhaustedException: If the attempt budget ran out
        """
        while True:
            status = self.poll()
            if self.is_terminal:
                break
            if self.attempts >= self.options.max_attempts:
                continue
            delay = self.next_delay()
            if delay > 0:
                self.clock.sleep(delay)

        if self.state == TrackingState.TIMED_OUT:
            raise PollTimeoutException(
                f"Transaction polling timeout after {int(status.elapsed_s)}s "
                f"(limit: {int(self.options.timeout)}s, "
                f"attempts: {self.attempts}/{self.options.max_attempts})",
                status=status,
                details=status.model_dump(),
            )
        if self.state == TrackingState.EXHAUSTED:
            raise PollExhaustedException(
                f"Transaction status could not be determined after {self.attempts} attempts "
                f"({int(status.elapsed_s)}s elapsed). Transaction may still be pending.",
                status=status,
                details=status.model_dump(),
            )
        return status

    def _fail(self, state: TrackingState) -> TransactionStatus:
        self.state = state
        self._status = FailureStatus(
            status=state.value,
            tx_id=self.tx_id,
            attempts=self.attempts,
            elapsed_s=round(self.elapsed, 3),
            last_error=self.last_error,
            error=self._error_model(),
        )
        logger.error(
            f"Gave up tracking {self.tx_id}: {state.value} after {self.attempts} attempts "
            f"({int(self.elapsed)}s elapsed)"
        )
        return self._status

    def _error_model(self) -> Optional[PolicyEngineError]:
        error = self.last_exception
        if error is None:
            return None
        if not isinstance(error, PolicyEngineException):
            error = PolicyEngineException(str(error))
        return error.to_error_model()

    def _accept(self, tx_type: str) -> TransactionStatus:
        logger.info(f"Transaction {self.tx_id} accepted ({tx_type})")
        block_height = self._fetch_block_height()
        self.state = TrackingState.ACCEPTED
        self._status = AcceptedStatus(
            type=tx_type,
            confirmed_id=self.tx_id,
            block_height=block_height,
        )
        return self._status

    def _reject(self) -> TransactionStatus:
        logger.warning(f"Transaction {self.tx_id} rejected (fee-only transaction)")
        unconfirmed_id = self._fetch_unconfirmed_id()
        block_height = self._fetch_block_height()
        self.state = TrackingState.REJECTED
        self._status = RejectedStatus(
            confirmed_id=self.tx_id,
            unconfirmed_id=unconfirmed_id,
            block_height=block_height,
        )
        return self._status

    def _fetch_unconfirmed_id(self) -> Optional[str]:
        try:
            payload = self.rpc.get_unconfirmed_transaction(self.tx_id)
        except Exception as e:
            logger.warning(f"Could not retrieve unconfirmed transaction id for {self.tx_id}: {e}")
            return None
        if not isinstance(payload, dict):
            return None
        inner = payload.get("transaction")
        return inner.get("id") if isinstance(inner, dict) else None

    def _fetch_block_height(self) -> Optional[int]:
        try:
            block_hash = self.rpc.find_block_hash(self.tx_id)
            if not block_hash:
                return None
            block = self.rpc.get_block(block_hash)
            if not isinstance(block, dict):
                return None
            height = (block.get("header") or {}).get("metadata", {}).get("height")
            return None if height is None else int(height)
        except Exception as e:
            logger.warning(f"Could not retrieve block height for {self.tx_id}: {e}")
            return None


def track_transaction_status(
    tx_id: str,
    rpc: ChainRpc,
    options: Optional[TrackingConfig] = None,
    clock: Optional[Clock] = None,
) -> TransactionStatus:
    """Track a transaction to completion; see TransactionObserver.run."""
    return TransactionObserver(tx_id, rpc, options, clock).run()


__all__ = [
    "TrackingState",
    "TransactionObserver",
    "transaction_type",
    "track_transaction_status",
]
