"""
Call Encoder - Turns a function name plus arguments into calldata.

Overloaded functions (several entries sharing a name) are resolved by a
ranked search: candidates with the right arity are tried in ABI order and
the first one whose parameters all accept the (coerced) arguments wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from eth_abi import decode, encode, is_encodable
from eth_abi.exceptions import DecodingError
from eth_hash.auto import keccak

from ..errors import ArgumentTypeMismatch, FunctionOrEventNotFound
from .artifacts import ContractArtifact
from .ids import to_evm_address

_ARRAY_SUFFIX_RE = re.compile(r"(\[\d*\])+$")
_INT_RE = re.compile(r"^u?int\d*$")


@dataclass(frozen=True)
class CallSpec:
    function_name: str
    args: tuple
    gas_budget: Optional[int] = None

    @classmethod
    def of(cls, function_name: str, args: Iterable[Any] = (), gas_budget: Optional[int] = None) -> "CallSpec":
        return cls(function_name, tuple(args), gas_budget)


# ---------------------------------------------------------------------------
# Signatures
# ---------------------------------------------------------------------------

def canonical_type(param: dict[str, Any]) -> str:
    """Canonical ABI type of a parameter, expanding tuples to ``(t1,t2)``."""
    abi_type = param["type"]
    if not abi_type.startswith("tuple"):
        return abi_type
    suffix = abi_type[len("tuple"):]
    inner = ",".join(canonical_type(c) for c in param.get("components", []))
    return f"({inner}){suffix}"


def input_types(entry: dict[str, Any]) -> list[str]:
    return [canonical_type(p) for p in entry.get("inputs", [])]


def output_types(entry: dict[str, Any]) -> list[str]:
    return [canonical_type(p) for p in entry.get("outputs", [])]


def signature(entry: dict[str, Any]) -> str:
    return f"{entry['name']}({','.join(input_types(entry))})"


def selector(entry: dict[str, Any]) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(signature(entry).encode("utf-8"))[:4]


def find_functions(artifact: ContractArtifact, function_name: str) -> list[dict[str, Any]]:
    """All function entries named ``function_name``, in ABI order.

    Raises:
        FunctionOrEventNotFound: If the artifact defines no such function
    """
    found = [e for e in artifact.entries("function") if e.get("name") == function_name]
    if not found:
        raise FunctionOrEventNotFound(
            f"Function {function_name} not found in {artifact.name} ABI"
        )
    return found


# ---------------------------------------------------------------------------
# Argument coercion
# ---------------------------------------------------------------------------

def _coerce(abi_type: str, value: Any) -> Any:
    """Best-effort conversion of CLI-ish values to what eth-abi accepts."""
    array = _ARRAY_SUFFIX_RE.search(abi_type)
    if array:
        if isinstance(value, (list, tuple)):
            inner = abi_type[: abi_type.rfind("[")]
            return [_coerce(inner, v) for v in value]
        return value

    if abi_type.startswith("(") and isinstance(value, (list, tuple)):
        parts = split_tuple(abi_type[1:-1])
        if len(parts) == len(value):
            return tuple(_coerce(t, v) for t, v in zip(parts, value))
        return value

    if abi_type == "bool":
        if isinstance(value, str) and value.strip().lower() in {"true", "1"}:
            return True
        if isinstance(value, str) and value.strip().lower() in {"false", "0"}:
            return False
        if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
            return bool(value)
        return value

    if _INT_RE.match(abi_type) and isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 16) if text.lower().startswith(("0x", "-0x")) else int(text)
        except ValueError:
            return value

    if abi_type == "address" and isinstance(value, str):
        try:
            return to_evm_address(value)
        except ValueError:
            return value

    if abi_type.startswith("bytes") and isinstance(value, str):
        if value.startswith("0x"):
            try:
                return bytes.fromhex(value[2:])
            except ValueError:
                return value

    return value


def split_tuple(inner: str) -> list[str]:
    parts, depth, current = [], 0, ""
    for ch in inner:
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        depth += ch == "("
        depth -= ch == ")"
        current += ch
    if current:
        parts.append(current)
    return parts


def coerce_args(types: Sequence[str], args: Sequence[Any]) -> tuple[list[Any], Optional[int]]:
    """
    Coerce and validate arguments against parameter types.

    Returns:
        (coerced args, index of the first parameter that rejects its value or None)
    """
    coerced = []
    for index, (abi_type, value) in enumerate(zip(types, args)):
        candidate = _coerce(abi_type, value)
        if not is_encodable(abi_type, candidate):
            return coerced, index
        coerced.append(candidate)
    return coerced, None


def resolve_function(
    artifact: ContractArtifact, function_name: str, args: Sequence[Any]
) -> tuple[dict[str, Any], list[Any]]:
    """
    Pick the overload matching ``args`` and return it with coerced args.

    Raises:
        FunctionOrEventNotFound: No function with that name
        ArgumentTypeMismatch: Candidates exist but none accepts the arguments
    """
    candidates = find_functions(artifact, function_name)
    same_arity = [c for c in candidates if len(c.get("inputs", [])) == len(args)]

    if not same_arity:
        arities = sorted({len(c.get("inputs", [])) for c in candidates})
        raise ArgumentTypeMismatch(
            f"{function_name} expects {' or '.join(map(str, arities))} "
            f"argument(s), got {len(args)}",
            index=None,
        )

    first_failure: Optional[tuple[dict[str, Any], int]] = None
    for entry in same_arity:
        coerced, bad_index = coerce_args(input_types(entry), args)
        if bad_index is None:
            return entry, coerced
        if first_failure is None:
            first_failure = (entry, bad_index)

    entry, bad_index = first_failure
    param = entry["inputs"][bad_index]
    raise ArgumentTypeMismatch(
        f"Argument {bad_index} ({param.get('name') or '?'}: {canonical_type(param)}) "
        f"of {signature(entry)} rejects value {args[bad_index]!r}",
        index=bad_index,
    )


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------

def encode_call(artifact: ContractArtifact, function_name: str, args: Sequence[Any] = ()) -> bytes:
    """
    ABI-encode a function call.

    Args:
        artifact: Contract artifact
        function_name: Function to call (overloads resolved by arguments)
        args: Ordered function arguments

    Returns:
        4-byte selector followed by the encoded arguments
    """
    entry, coerced = resolve_function(artifact, function_name, args)
    return selector(entry) + encode(input_types(entry), coerced)


def encode_spec(artifact: ContractArtifact, spec: CallSpec) -> bytes:
    return encode_call(artifact, spec.function_name, spec.args)


def encode_constructor(artifact: ContractArtifact, args: Sequence[Any] = ()) -> bytes:
    """ABI-encode constructor arguments (no selector)."""
    constructor = artifact.constructor
    if constructor is None:
        if args:
            raise FunctionOrEventNotFound(
                f"Constructor not found in ABI for {artifact.name}, "
                f"but constructor args were provided."
            )
        return b""

    types = input_types(constructor)
    if len(types) != len(args):
        raise ArgumentTypeMismatch(
            f"Constructor of {artifact.name} expects {len(types)} argument(s), got {len(args)}"
        )
    coerced, bad_index = coerce_args(types, args)
    if bad_index is not None:
        raise ArgumentTypeMismatch(
            f"Constructor argument {bad_index} ({types[bad_index]}) rejects value "
            f"{args[bad_index]!r}",
            index=bad_index,
        )
    return encode(types, coerced)


def decode_call_data(artifact: ContractArtifact, data: str | bytes) -> tuple[str, tuple[Any, ...]]:
    """
    Decode calldata back into the function name and argument values.

    Raises:
        FunctionOrEventNotFound: If no function has the calldata's selector
        ArgumentTypeMismatch: If the argument payload does not decode
    """
    raw = _to_bytes(data)
    for entry in artifact.entries("function"):
        if selector(entry) == raw[:4]:
            try:
                values = decode(input_types(entry), raw[4:])
            except DecodingError as exc:
                raise ArgumentTypeMismatch(
                    f"Calldata for {signature(entry)} does not decode: {exc}"
                ) from exc
            return entry["name"], tuple(values)
    raise FunctionOrEventNotFound(
        f"No function in {artifact.name} has selector 0x{raw[:4].hex()}"
    )


def _to_bytes(data: str | bytes) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    text = data.strip()
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)
