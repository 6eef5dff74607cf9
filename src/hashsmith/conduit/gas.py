"""
Gas/Fee Estimator and read-only calls via the mirror node.

Both go through ``POST /api/v1/contracts/call``: with ``estimate=true`` the
mirror simulates the call and returns the gas it used; with
``estimate=false`` it returns the call's output.

Estimation degrades instead of failing. Some operations cannot be simulated
reliably (configuration setters, calls that depend on HTS precompiles), so
when the dry-run fails the caller's static ceiling is used unchanged.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..errors import NetworkError, QueryReverted
from ..network import NetworkContext
from .artifacts import ContractArtifact
from .decoder import DecodedField, decode_return
from .encoder import encode_call
from .ids import contract_address
from .revert import decode_error
from .rpc import LedgerSession

logger = logging.getLogger(__name__)

SAFETY_MULTIPLIER = 1.05
DRY_RUN_GAS_PRICE = 100_000_000
CONTRACT_CALL_PATH = "/api/v1/contracts/call"


class EstimationSource(enum.Enum):
    DRY_RUN = "dry-run"
    STATIC_FALLBACK = "static-fallback"


@dataclass(frozen=True)
class GasEstimate:
    gas_limit: int
    source: EstimationSource
    raw_estimate: Optional[int] = None
    reason: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.source is EstimationSource.STATIC_FALLBACK


def _call_body(
    context: NetworkContext,
    contract_id: str,
    data: bytes,
    estimate: bool,
    gas: int,
    value: int = 0,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "block": "latest",
        "data": "0x" + data.hex(),
        "estimate": estimate,
        "gas": gas,
        "gasPrice": DRY_RUN_GAS_PRICE,
        "to": contract_address(contract_id),
        "value": value,
    }
    if context.operator_id is not None:
        body["from"] = "0x" + context.operator_id.to_solidity_address()
    return body


def _mirror_error(response: Any) -> tuple[str, Optional[str]]:
    """(message, revert data) from a mirror ``_status`` error payload."""
    try:
        messages = response.json().get("_status", {}).get("messages", [])
    except ValueError:
        messages = []
    if not messages:
        return f"HTTP {response.status_code}", None
    first = messages[0]
    message = first.get("message", f"HTTP {response.status_code}")
    if first.get("detail"):
        message = f"{message}: {first['detail']}"
    return message, first.get("data")


def estimate_gas(
    context: NetworkContext,
    session: LedgerSession,
    artifact: ContractArtifact,
    contract_id: str,
    function_name: str,
    args: Sequence[Any],
    static_ceiling: int,
    value: int = 0,
    simulate: bool = True,
) -> GasEstimate:
    """
    Determine a gas limit for a contract call.

    Encoding happens first and its errors propagate: an unknown function or
    a bad argument is not a dry-run failure.

    Args:
        context: Network context (operator used as the simulated sender)
        session: Ledger session
        artifact: Contract artifact
        contract_id: Target contract (entity id or 0x address)
        function_name: Function to simulate
        args: Function arguments
        static_ceiling: Gas limit used when the dry-run is unavailable
        value: Value sent with the call, in tinybars
        simulate: False for operations with no safe dry-run analogue

    Returns:
        GasEstimate padded by SAFETY_MULTIPLIER, or the static ceiling
    """
    data = encode_call(artifact, function_name, args)

    if not simulate:
        return _fallback(function_name, static_ceiling, "dry-run disabled for this operation")

    body = _call_body(context, contract_id, data, True, static_ceiling * 2, value)
    logger.info("Estimating gas for %s...", function_name)
    try:
        response = session.mirror_post(CONTRACT_CALL_PATH, body)
    except NetworkError as exc:
        return _fallback(function_name, static_ceiling, str(exc))

    if response.status_code != 200:
        message, revert_data = _mirror_error(response)
        if revert_data:
            message = f"{message} ({decode_error(artifact, revert_data)})"
        return _fallback(function_name, static_ceiling, message)

    try:
        raw = int(response.json()["result"], 16)
    except (KeyError, TypeError, ValueError) as exc:
        return _fallback(function_name, static_ceiling, f"unreadable estimate: {exc}")

    padded = math.ceil(raw * SAFETY_MULTIPLIER)
    logger.info("Gas estimate: %s | with buffer: %s", f"{raw:,}", f"{padded:,}")
    return GasEstimate(gas_limit=padded, source=EstimationSource.DRY_RUN, raw_estimate=raw)


def _fallback(function_name: str, static_ceiling: int, reason: str) -> GasEstimate:
    logger.warning(
        "Gas estimation failed for %s: %s. Using fallback gas limit: %s",
        function_name,
        reason,
        f"{static_ceiling:,}",
    )
    return GasEstimate(
        gas_limit=static_ceiling,
        source=EstimationSource.STATIC_FALLBACK,
        reason=reason,
    )


def call_read_only(
    context: NetworkContext,
    session: LedgerSession,
    artifact: ContractArtifact,
    contract_id: str,
    function_name: str,
    args: Sequence[Any] = (),
    gas: int = 300_000,
) -> tuple[DecodedField, ...]:
    """
    Read from a contract through the mirror node (free, no transaction).

    Returns:
        Decoded return values

    Raises:
        QueryReverted: If the simulated call reverts
        TransportFailure: If the mirror cannot be reached
    """
    data = encode_call(artifact, function_name, args)
    body = _call_body(context, contract_id, data, False, gas)
    response = session.mirror_post(CONTRACT_CALL_PATH, body)

    if response.status_code != 200:
        message, revert_data = _mirror_error(response)
        if revert_data:
            message = f"{message} ({decode_error(artifact, revert_data)})"
        raise QueryReverted(f"{function_name} query failed: {message}")

    try:
        result = response.json().get("result")
    except ValueError as exc:
        raise QueryReverted(f"{function_name} query returned invalid JSON") from exc

    if not result or result == "0x":
        raise QueryReverted(
            f"{function_name} returned empty data. Check the contract id and environment."
        )
    return decode_return(artifact, function_name, result)
