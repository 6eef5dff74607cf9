"""
Revert data decoding: Error(string), Panic(uint256) and custom ABI errors.
"""

from __future__ import annotations

from typing import Any, Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from ..errors import FunctionOrEventNotFound
from .artifacts import ContractArtifact
from .encoder import input_types, selector

ERROR_STRING_SELECTOR = "08c379a0"
PANIC_SELECTOR = "4e487b71"

PANIC_CODES = {
    0x00: "Generic compiler inserted panic",
    0x01: "Assert with an argument that evaluates to false",
    0x11: "Arithmetic operation results in underflow or overflow outside of an unchecked { ... } block",
    0x12: "Divide or modulo by zero (e.g. 5 / 0 or 23 % 0)",
    0x21: "Convert a value that is too big or negative into an enum type",
    0x22: "Access a storage byte array that is incorrectly encoded",
    0x31: "Call .pop() on an empty array",
    0x32: "Access an array, bytesN or an array slice at an out-of-bounds or negative index",
    0x41: "Allocate too much memory or create an array that is too large",
    0x51: "Call a zero-initialized variable of internal function type",
}


def decode_error(artifact: Optional[ContractArtifact], data: Optional[str]) -> str:
    """
    Render revert data as a human-readable message.

    Args:
        artifact: Artifact whose custom errors are tried (may be None)
        data: 0x-prefixed revert data

    Returns:
        ``REVERT: <reason>``, ``Panic code: N : <description>``,
        ``ErrorName(arg, ...)`` or ``UNKNOWN ERROR: <data>``
    """
    if not data or data == "0x":
        return "REVERT: (no reason)"

    hex_data = data[2:] if data.startswith("0x") else data
    try:
        raw = bytes.fromhex(hex_data)
    except ValueError:
        # the relay occasionally hands back an already-decoded message
        return f"REVERT: {data}"

    head, body = raw[:4].hex(), raw[4:]
    try:
        if head == ERROR_STRING_SELECTOR:
            (reason,) = decode(["string"], body)
            return f"REVERT: {reason}"
        if head == PANIC_SELECTOR:
            (code,) = decode(["uint256"], body)
            return f"Panic code: {code} : {PANIC_CODES.get(code, 'Unknown')}"
        if artifact is not None:
            for entry in artifact.entries("error"):
                if selector(entry).hex() == head:
                    values = decode(input_types(entry), body)
                    return f"{entry['name']}({', '.join(_render(v) for v in values)})"
    except (DecodingError, ValueError):
        # includes reason strings that are not valid UTF-8
        return f"UNKNOWN ERROR: 0x{hex_data}"

    return f"UNKNOWN ERROR: 0x{hex_data}"


def find_error(artifact: ContractArtifact, error_name: str) -> tuple[dict[str, Any], str]:
    """Look up a custom error by name.

    Returns:
        (ABI entry, 0x-prefixed 4-byte selector)

    Raises:
        FunctionOrEventNotFound: If the artifact defines no such error
    """
    for entry in artifact.entries("error"):
        if entry.get("name") == error_name:
            return entry, "0x" + selector(entry).hex()
    raise FunctionOrEventNotFound(f"Error {error_name} not found in {artifact.name} ABI")


def _render(value: Any) -> str:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    return str(value)
