"""
Schemas - Errors
File: errors.py

Purpose: Standard error taxonomy for the policy engine.
Defines both a Pydantic model for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the policy engine."""

    # Codec Errors
    DECODE_ERROR = "DECODE_ERROR"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_FIELD = "INVALID_FIELD"

    # Merkle Tree Errors
    INVALID_LEAF_SET = "INVALID_LEAF_SET"
    TREE_FULL = "TREE_FULL"
    ROOT_MISMATCH = "ROOT_MISMATCH"

    # Network Errors
    TRANSIENT_NETWORK_ERROR = "TRANSIENT_NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    NON_RETRYABLE_HTTP_ERROR = "NON_RETRYABLE_HTTP_ERROR"

    # Chain State Errors
    CHAIN_STATE_MISSING = "CHAIN_STATE_MISSING"

    # Transaction Observer Errors
    POLL_TIMEOUT = "POLL_TIMEOUT"
    POLL_EXHAUSTED = "POLL_EXHAUSTED"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class PolicyEngineError(BaseModel):
    """
    Base error model for structured error communication.

    Lets callers pass or serialize failures (for example a reconciliation
    that gave up after repeated root mismatches) without raising.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.ROOT_MISMATCH],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "PolicyEngineException":
        """Convert this error model to a raised exception."""
        return PolicyEngineException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class PolicyEngineException(Exception):
    """
    Base exception for all policy engine errors.

    This exception carries structured error information and can be
    converted to/from PolicyEngineError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "POLICY_ENGINE_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> PolicyEngineError:
        """Convert this exception to a PolicyEngineError model."""
        return PolicyEngineError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class DecodeException(PolicyEngineException):
    """Exception raised when an address, field or literal cannot be decoded."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.DECODE_ERROR,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if value is not None:
            full_details["value"] = value
        super().__init__(
            message=message,
            code=code,
            details=full_details,
            retryable=False,
        )


class InvalidAddressException(DecodeException):
    """Exception raised for malformed Aleo addresses."""

    def __init__(
        self,
        message: str,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_ADDRESS,
            value=value,
            details=details,
        )


class InvalidFieldException(DecodeException):
    """Exception raised for malformed or out-of-range field elements."""

    def __init__(
        self,
        message: str,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_FIELD,
            value=value,
            details=details,
        )


class InvalidLeafSetException(PolicyEngineException):
    """Exception raised when a leaf set violates the tree shape invariants."""

    def __init__(
        self,
        message: str,
        num_leaves: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if num_leaves is not None:
            full_details["num_leaves"] = num_leaves
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_LEAF_SET,
            details=full_details,
            retryable=False,
        )


class TreeFullException(PolicyEngineException):
    """Exception raised when more addresses are supplied than the tree can hold."""

    def __init__(
        self,
        message: str,
        capacity: int | None = None,
        provided: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if capacity is not None:
            full_details["capacity"] = capacity
        if provided is not None:
            full_details["provided"] = provided
        super().__init__(
            message=message,
            code=ErrorCodes.TREE_FULL,
            details=full_details,
            retryable=False,
        )


class ChainFetchException(PolicyEngineException):
    """Base exception for failed requests against an Aleo node."""

    def __init__(
        self,
        message: str,
        code: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        full_details = details or {}
        if url:
            full_details["url"] = url
        if status_code is not None:
            full_details["status_code"] = status_code
        super().__init__(
            message=message,
            code=code,
            details=full_details,
            retryable=retryable,
        )
        self.status_code = status_code


class TransientNetworkException(ChainFetchException):
    """Timeouts, connection failures and 5xx responses."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.TRANSIENT_NETWORK_ERROR,
            url=url,
            status_code=status_code,
            details=details,
            retryable=True,
        )


class RateLimitedException(ChainFetchException):
    """HTTP 429 responses that outlasted the retry budget."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.RATE_LIMITED,
            url=url,
            status_code=429,
            details=details,
            retryable=True,
        )


class NonRetryableHttpException(ChainFetchException):
    """4xx responses other than 404 and 429."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NON_RETRYABLE_HTTP_ERROR,
            url=url,
            status_code=status_code,
            details=details,
            retryable=False,
        )


class ChainStateException(PolicyEngineException):
    """Exception raised when a mandatory mapping value is missing or malformed."""

    def __init__(
        self,
        message: str,
        program_id: str | None = None,
        mapping: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if program_id:
            full_details["program_id"] = program_id
        if mapping:
            full_details["mapping"] = mapping
        super().__init__(
            message=message,
            code=ErrorCodes.CHAIN_STATE_MISSING,
            details=full_details,
            retryable=False,
        )


class RootMismatchException(PolicyEngineException):
    """
    Exception raised when a locally rebuilt root disagrees with the on-chain root.

    Signals a race with a concurrent freeze list update. Callers must
    re-fetch rather than continue with the stale tree.
    """

    def __init__(
        self,
        message: str,
        local_root: int | None = None,
        chain_root: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if local_root is not None:
            full_details["local_root"] = str(local_root)
        if chain_root is not None:
            full_details["chain_root"] = str(chain_root)
        super().__init__(
            message=message,
            code=ErrorCodes.ROOT_MISMATCH,
            details=full_details,
            retryable=True,
        )


class PollTimeoutException(PolicyEngineException):
    """The observer's wall-clock budget ran out; the outcome is unknown."""

    def __init__(
        self,
        message: str,
        status: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.POLL_TIMEOUT,
            details=details,
            retryable=False,
        )
        self.status = status


class PollExhaustedException(PolicyEngineException):
    """The observer's attempt budget ran out; the outcome is unknown."""

    def __init__(
        self,
        message: str,
        status: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.POLL_EXHAUSTED,
            details=details,
            retryable=False,
        )
        self.status = status
