"""
Result/Log Decoder - Raw return data and logs back into named, typed fields.

Address-typed values are never left as bare strings: they become either a
NativeAccountId (long-zero form, rendered ``shard.realm.num``) or a
RawAddress (an EVM alias that carries no entity id). Non-address strings are
left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_hash.auto import keccak

from ..errors import ArgumentTypeMismatch, FunctionOrEventNotFound
from .artifacts import ContractArtifact
from .encoder import canonical_type, find_functions, output_types, split_tuple
from .ids import EntityId, is_long_zero

# ---------------------------------------------------------------------------
# Address variant
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RawAddress:
    address: str

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class NativeAccountId:
    entity: EntityId
    address: str

    def __str__(self) -> str:
        return str(self.entity)


AddressValue = Union[RawAddress, NativeAccountId]


def address_value(address: str) -> AddressValue:
    """Tag a decoded 20-byte address as native id or raw EVM address."""
    address = address.lower()
    if is_long_zero(address):
        return NativeAccountId(EntityId.from_solidity_address(address), address)
    return RawAddress(address)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DecodedField:
    name: str
    abi_type: str
    value: Any


@dataclass(frozen=True)
class EventRecord:
    event_name: str
    fields: tuple[DecodedField, ...]
    timestamp: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {f.name: f.value for f in self.fields}

    def values(self) -> tuple[Any, ...]:
        return tuple(f.value for f in self.fields)


def _annotate(abi_type: str, value: Any) -> Any:
    if isinstance(value, bytes) and (abi_type.endswith("]") or abi_type.startswith("(")):
        # indexed dynamic parameter: only its topic hash is available
        return value
    if abi_type == "address":
        return address_value(value)
    if abi_type.endswith("]"):
        inner = abi_type[: abi_type.rfind("[")]
        return tuple(_annotate(inner, v) for v in value)
    if abi_type.startswith("("):
        parts = split_tuple(abi_type[1:-1])
        return tuple(_annotate(t, v) for t, v in zip(parts, value))
    return value


def _fields(params: Sequence[dict[str, Any]], values: Sequence[Any]) -> tuple[DecodedField, ...]:
    out = []
    for index, (param, value) in enumerate(zip(params, values)):
        abi_type = canonical_type(param)
        out.append(
            DecodedField(
                name=param.get("name") or f"_{index}",
                abi_type=abi_type,
                value=_annotate(abi_type, value),
            )
        )
    return tuple(out)


# ---------------------------------------------------------------------------
# Return values
# ---------------------------------------------------------------------------

def decode_return(
    artifact: ContractArtifact, function_name: str, raw_output: str | bytes
) -> tuple[DecodedField, ...]:
    """
    ABI-decode a function's return data.

    Overloads sharing a name are tried in ABI order; the first whose output
    types decode the data wins.

    Args:
        artifact: Contract artifact
        function_name: Function that produced the output
        raw_output: 0x-prefixed hex or bytes

    Returns:
        Tuple of DecodedField, empty for functions without outputs

    Raises:
        FunctionOrEventNotFound: If the function is not in the ABI
        ArgumentTypeMismatch: If no overload's outputs decode the data
    """
    raw = _to_bytes(raw_output)
    last_error: Optional[Exception] = None
    for entry in find_functions(artifact, function_name):
        outputs = entry.get("outputs", [])
        if not outputs:
            if not raw:
                return ()
            continue
        try:
            values = decode(output_types(entry), raw)
        except (DecodingError, ValueError) as exc:
            last_error = exc
            continue
        return _fields(outputs, values)

    raise ArgumentTypeMismatch(
        f"Return data of {function_name} does not decode: {last_error or 'unexpected data'}"
    )


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------

def event_signature(entry: dict[str, Any]) -> str:
    types = ",".join(canonical_type(p) for p in entry.get("inputs", []))
    return f"{entry['name']}({types})"


def event_topic(entry: dict[str, Any]) -> bytes:
    return keccak(event_signature(entry).encode("utf-8"))


def find_event(artifact: ContractArtifact, topic0: str | bytes) -> dict[str, Any]:
    """Event entry whose signature hash equals ``topic0``.

    Raises:
        FunctionOrEventNotFound: If no non-anonymous event matches
        ArgumentTypeMismatch: If topic0 is not hex
    """
    try:
        wanted = _to_bytes(topic0)
    except ValueError as exc:
        raise ArgumentTypeMismatch(f"Malformed topic {topic0!r}: {exc}") from exc
    for entry in artifact.entries("event"):
        if not entry.get("anonymous") and event_topic(entry) == wanted:
            return entry
    raise FunctionOrEventNotFound(
        f"No event in {artifact.name} has topic 0x{wanted.hex()}"
    )


def decode_log(
    artifact: ContractArtifact,
    topics: Sequence[str | bytes],
    data: str | bytes,
    timestamp: Optional[str] = None,
) -> EventRecord:
    """
    Decode a log entry into an EventRecord.

    Indexed parameters are read from ``topics[1:]``; indexed dynamic types
    (string, bytes, arrays, tuples) only exist as their keccak hash, which is
    returned as 32 raw bytes.

    Raises:
        FunctionOrEventNotFound: If the first topic is not a known event
        ArgumentTypeMismatch: If topics or data do not fit the signature
    """
    if not topics:
        raise FunctionOrEventNotFound("Log has no topics")

    entry = find_event(artifact, topics[0])
    params = entry.get("inputs", [])
    indexed = [p for p in params if p.get("indexed")]
    plain = [p for p in params if not p.get("indexed")]

    if len(topics) - 1 != len(indexed):
        raise ArgumentTypeMismatch(
            f"{entry['name']} expects {len(indexed)} indexed topic(s), got {len(topics) - 1}"
        )

    try:
        plain_values = list(decode([canonical_type(p) for p in plain], _to_bytes(data)))
        indexed_values = [
            _decode_topic(canonical_type(p), _to_bytes(t)) for p, t in zip(indexed, topics[1:])
        ]
    except (DecodingError, ValueError) as exc:
        raise ArgumentTypeMismatch(f"Log data for {entry['name']} does not decode: {exc}") from exc

    ordered = [indexed_values.pop(0) if p.get("indexed") else plain_values.pop(0) for p in params]
    return EventRecord(
        event_name=entry["name"],
        fields=_fields(params, ordered),
        timestamp=timestamp,
    )


def _decode_topic(abi_type: str, topic: bytes) -> Any:
    if abi_type in ("string", "bytes") or abi_type.startswith("(") or abi_type.endswith("]"):
        return topic
    return decode([abi_type], topic)[0]


def _to_bytes(data: str | bytes | None) -> bytes:
    if data is None:
        return b""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    text = data.strip()
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)
