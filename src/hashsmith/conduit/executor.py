"""
Transaction Executor - Build, sign, submit and settle contract transactions.

Uses eth-account for signing and the JSON-RPC relay for submission. Two
shapes are supported: deploy (bytecode + constructor args, no ``to``) and
invoke (calldata against an existing contract).

A settled transaction always yields an ExecutionResult, whatever its status.
Only transport failures (connectivity, a rejected signature, no receipt
before the timeout) raise, and then no ExecutionResult exists.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from eth_utils import to_checksum_address

from ..errors import (
    ArtifactMalformed,
    LocalError,
    NetworkError,
    TransactionStatusFailure,
)
from ..network import NetworkContext
from ..sigil.operator import get_account, sign_transaction
from .artifacts import ContractArtifact, link_bytecode
from .decoder import DecodedField, EventRecord, decode_log, decode_return
from .encoder import encode_call, encode_constructor
from .ids import EntityId, contract_address, is_long_zero
from .revert import decode_error
from .rpc import LedgerSession

logger = logging.getLogger(__name__)

SUCCESS = "SUCCESS"
CONTRACT_REVERT_EXECUTED = "CONTRACT_REVERT_EXECUTED"

# the relay denominates value in weibars: 1 tinybar = 10^10 weibar
WEIBARS_PER_TINYBAR = 10**10

DEFAULT_INVOKE_GAS = 200_000
DEFAULT_DEPLOY_GAS = 800_000


class CallStage(enum.Enum):
    BUILT = "built"
    ENCODED = "encoded"
    ESTIMATED = "estimated"
    SUBMITTED = "submitted"
    SETTLED = "settled"
    DECODED = "decoded"


@dataclass(frozen=True)
class ExecutionResult:
    status: str
    transaction_id: str
    raw_receipt: Mapping[str, Any]
    decoded_return: Optional[tuple[DecodedField, ...]] = None
    contract_id: Optional[str] = None
    gas_limit: Optional[int] = None
    gas_used: Optional[int] = None
    events: tuple[EventRecord, ...] = field(default_factory=tuple)
    revert_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS

    def raise_for_status(self) -> "ExecutionResult":
        """Raise TransactionStatusFailure unless the status is SUCCESS."""
        if not self.ok:
            raise TransactionStatusFailure(self)
        return self


def _sign_and_submit(
    context: NetworkContext,
    session: LedgerSession,
    tx: dict[str, Any],
    timeout: float,
) -> tuple[str, dict]:
    account = get_account(context)

    tx = dict(tx)
    tx["nonce"] = session.get_nonce(account.address)
    tx["gasPrice"] = session.get_gas_price()
    tx["chainId"] = context.endpoint.chain_id

    raw_tx = sign_transaction(context, tx)
    logger.debug("%s", CallStage.BUILT.value)

    tx_hash = session.send_raw_transaction(raw_tx)
    logger.debug("%s %s", CallStage.SUBMITTED.value, tx_hash)
    logger.info("Submitted %s, awaiting receipt", tx_hash)
    receipt = session.wait_for_receipt(tx_hash, timeout=timeout)
    return tx_hash, receipt


def _status_of(receipt: Mapping[str, Any]) -> str:
    status = receipt.get("status")
    if isinstance(status, str) and status.startswith("0x"):
        return SUCCESS if int(status, 16) == 1 else CONTRACT_REVERT_EXECUTED
    if status in (1, True):
        return SUCCESS
    if isinstance(status, str) and status:
        return status
    return CONTRACT_REVERT_EXECUTED


def _gas_used(receipt: Mapping[str, Any]) -> Optional[int]:
    value = receipt.get("gasUsed")
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return value


def receipt_events(artifact: ContractArtifact, receipt: Mapping[str, Any]) -> tuple[EventRecord, ...]:
    """Decode receipt logs known to ``artifact``; other logs are skipped."""
    events = []
    for log in receipt.get("logs") or []:
        topics = log.get("topics") or []
        data = log.get("data")
        if not topics:
            continue
        try:
            events.append(decode_log(artifact, topics, data or "0x"))
        except LocalError as exc:
            logger.debug("skipping receipt log %s: %s", topics[0], exc)
    return tuple(events)


def _fetch_call_result(
    session: LedgerSession, tx_hash: str, attempts: int, delay: float
) -> Optional[dict]:
    # the mirror trails consensus by a few seconds
    for attempt in range(attempts):
        try:
            return session.mirror_get(f"/api/v1/contracts/results/{tx_hash}")
        except NetworkError as exc:
            logger.debug("mirror result for %s not ready (%d/%d): %s", tx_hash, attempt + 1, attempts, exc)
            if attempt + 1 < attempts:
                time.sleep(delay)
    logger.warning("No mirror record for %s; return values unavailable", tx_hash)
    return None


def execute_invoke(
    context: NetworkContext,
    session: LedgerSession,
    artifact: ContractArtifact,
    contract_id: str,
    function_name: str,
    args: Sequence[Any] = (),
    gas_limit: int = DEFAULT_INVOKE_GAS,
    value: int = 0,
    timeout: float = 120,
    fetch_result: bool = True,
    result_attempts: int = 3,
    result_delay: float = 2.0,
) -> ExecutionResult:
    """
    Execute a state-changing contract function.

    Args:
        context: Network context with operator credentials
        session: Ledger session
        artifact: Contract artifact
        contract_id: Target contract (entity id or 0x address)
        function_name: Function to call
        args: Function arguments
        gas_limit: Gas limit (see gas.estimate_gas)
        value: Payable amount in tinybars
        timeout: Receipt wait timeout in seconds
        fetch_result: Look up return values and status detail on the mirror

    Returns:
        ExecutionResult; check ``ok`` or call ``raise_for_status()``

    Raises:
        FunctionOrEventNotFound, ArgumentTypeMismatch: Before any network I/O
        TransportFailure: Submission or settlement failed
    """
    calldata = encode_call(artifact, function_name, args)
    logger.debug("%s: %s", function_name, CallStage.ENCODED.value)

    tx = {
        "to": to_checksum_address(contract_address(contract_id)),
        "data": "0x" + calldata.hex(),
        "value": value * WEIBARS_PER_TINYBAR,
        "gas": gas_limit,
    }
    tx_hash, receipt = _sign_and_submit(context, session, tx, timeout)
    logger.debug("%s: %s", function_name, CallStage.SETTLED.value)

    status = _status_of(receipt)
    revert_reason = None
    decoded = None

    record = _fetch_call_result(session, tx_hash, result_attempts, result_delay) if fetch_result else None
    if record is not None:
        mirror_status = record.get("result")
        if status != SUCCESS and mirror_status and mirror_status != SUCCESS:
            status = mirror_status
        if status == SUCCESS and record.get("call_result") not in (None, "", "0x"):
            try:
                decoded = decode_return(artifact, function_name, record["call_result"])
            except LocalError as exc:
                logger.warning("Return data of %s did not decode: %s", function_name, exc)
        if status != SUCCESS and record.get("error_message"):
            revert_reason = decode_error(artifact, record["error_message"])

    if status != SUCCESS and revert_reason is None and receipt.get("revertReason"):
        revert_reason = decode_error(artifact, receipt["revertReason"])

    result = ExecutionResult(
        status=status,
        transaction_id=tx_hash,
        raw_receipt=receipt,
        decoded_return=decoded,
        gas_limit=gas_limit,
        gas_used=_gas_used(receipt),
        events=receipt_events(artifact, receipt),
        revert_reason=revert_reason,
    )
    logger.debug("%s: %s (%s)", function_name, CallStage.DECODED.value, status)
    return result


def execute_deploy(
    context: NetworkContext,
    session: LedgerSession,
    artifact: ContractArtifact,
    constructor_args: Sequence[Any] = (),
    gas_limit: int = DEFAULT_DEPLOY_GAS,
    bytecode: Optional[str] = None,
    libraries: Optional[Mapping[str, str]] = None,
    timeout: float = 180,
) -> ExecutionResult:
    """
    Deploy a contract.

    Builds a creation transaction (no ``to``), signs, submits and extracts the
    new contract's id from the receipt.

    Args:
        context: Network context with operator credentials
        session: Ledger session
        artifact: Artifact providing the constructor ABI (and bytecode)
        constructor_args: Constructor arguments
        gas_limit: Gas limit for deployment
        bytecode: Pre-built bytecode used instead of the artifact's
        libraries: Library name -> deployed address for linking
        timeout: Receipt wait timeout

    Returns:
        ExecutionResult with ``contract_id`` set on success
    """
    code = bytecode or artifact.bytecode
    if not code:
        raise ArtifactMalformed(
            f"No bytecode for {artifact.name}: it is an interface or abstract contract"
        )
    if libraries:
        code = link_bytecode(code, libraries)
    if "__$" in code:
        raise ArtifactMalformed(f"Bytecode for {artifact.name} has unlinked libraries")

    encoded_args = encode_constructor(artifact, constructor_args)
    deploy_data = code if code.startswith("0x") else "0x" + code
    deploy_data += encoded_args.hex()

    tx = {"data": deploy_data, "value": 0, "gas": gas_limit}
    tx_hash, receipt = _sign_and_submit(context, session, tx, timeout)

    status = _status_of(receipt)
    contract_id = None
    address = receipt.get("contractAddress")
    if status == SUCCESS and address:
        contract_id = str(EntityId.from_solidity_address(address)) if is_long_zero(address) else address

    revert_reason = None
    if status != SUCCESS and receipt.get("revertReason"):
        revert_reason = decode_error(artifact, receipt["revertReason"])

    return ExecutionResult(
        status=status,
        transaction_id=tx_hash,
        raw_receipt=receipt,
        contract_id=contract_id,
        gas_limit=gas_limit,
        gas_used=_gas_used(receipt),
        events=receipt_events(artifact, receipt),
        revert_reason=revert_reason,
    )
