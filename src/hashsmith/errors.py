"""
Error taxonomy for the contract interaction pipeline.

Two families, so callers can decide whether a retry makes sense:

- LocalError: lookup, encode and decode failures. Raised before (or
  without) any network I/O; retrying with the same input cannot help.
- NetworkError: transport failures. The pipeline is aborted and no
  ExecutionResult exists.

A settled transaction with a non-success status is neither: the executor
returns it as a normal ExecutionResult, and TransactionStatusFailure is only
raised when the caller asks for it via ExecutionResult.raise_for_status().
"""

from __future__ import annotations

from typing import Any, Optional


class HashsmithError(RuntimeError):
    exit_code: int = 1


class ConfigurationError(HashsmithError):
    exit_code = 2


# ============ Local (encode / decode / lookup) ============


class LocalError(HashsmithError):
    pass


class ArtifactNotFound(LocalError):
    exit_code = 3


class ArtifactMalformed(LocalError):
    exit_code = 3


class FunctionOrEventNotFound(LocalError):
    exit_code = 4


class ArgumentTypeMismatch(LocalError):
    exit_code = 5

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        super().__init__(message)
        self.index = index


class LogDecodeSkipped(LocalError):
    """A historical log entry that could not be decoded and was skipped."""

    def __init__(self, entry: dict[str, Any], reason: str) -> None:
        super().__init__(reason)
        self.entry = entry
        self.reason = reason


# ============ Network ============


class NetworkError(HashsmithError):
    exit_code = 6


class TransportFailure(NetworkError):
    pass


# ============ Settlement ============


class QueryReverted(HashsmithError):
    """A read-only mirror call reverted or returned no data."""

    exit_code = 7


class TransactionStatusFailure(HashsmithError):
    exit_code = 7

    def __init__(self, result: Any) -> None:
        super().__init__(
            f"Transaction {result.transaction_id} settled with status {result.status}"
        )
        self.result = result
