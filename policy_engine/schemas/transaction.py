"""
Schemas - Transaction Status
File: transaction.py

Purpose: Tagged union describing what the transaction observer knows
about a submitted transaction.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from policy_engine.schemas.errors import PolicyEngineError


REJECTED_ERROR_MESSAGE = "Transaction execution failed but fee was consumed"

ACCEPTED_TYPES = ("execute", "deploy")
REJECTED_TYPE = "fee"


class _Status(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def is_terminal(self) -> bool:
        return True


class PendingStatus(_Status):
    """Not yet confirmed."""

    status: Literal["pending"] = "pending"

    @property
    def is_terminal(self) -> bool:
        return False


class AcceptedStatus(_Status):
    """Confirmed as an execution or deployment."""

    status: Literal["accepted"] = "accepted"
    type: Literal["execute", "deploy"]
    confirmed_id: str
    block_height: Optional[int] = None


class RejectedStatus(_Status):
    """Confirmed as a fee-only transaction: execution failed, fee consumed."""

    status: Literal["rejected"] = "rejected"
    type: Literal["fee"] = "fee"
    confirmed_id: str
    unconfirmed_id: Optional[str] = None
    block_height: Optional[int] = None
    error: str = REJECTED_ERROR_MESSAGE


class FailureStatus(_Status):
    """
    The observer gave up; the transaction outcome is unknown.

    status is "timed_out" when the wall-clock budget ran out and
    "exhausted" when the attempt budget did. error carries the last fetch
    failure, if any, as a structured model.
    """

    status: Literal["timed_out", "exhausted"]
    tx_id: str
    attempts: int = Field(..., ge=0)
    elapsed_s: float = Field(..., ge=0.0)
    last_error: Optional[str] = None
    error: Optional[PolicyEngineError] = None


TransactionStatus = Annotated[
    Union[PendingStatus, AcceptedStatus, RejectedStatus, FailureStatus],
    Field(discriminator="status"),
]
