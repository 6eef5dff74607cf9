"""
Hedera entity ids and their EVM address form.

A Hedera entity (account, contract, token) is addressed natively as
``shard.realm.num``. Its "long-zero" EVM address packs the same triple into
20 bytes: 4 bytes shard, 8 bytes realm, 8 bytes num.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import ArgumentTypeMismatch

_ENTITY_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")
_HEX_ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


@dataclass(frozen=True, order=True)
class EntityId:
    shard: int
    realm: int
    num: int

    def __str__(self) -> str:
        return f"{self.shard}.{self.realm}.{self.num}"

    @classmethod
    def parse(cls, value: str) -> "EntityId":
        """Parse a ``shard.realm.num`` string.

        Raises:
            ValueError: If the string is not an entity id or a part is out
                of range for its long-zero encoding.
        """
        match = _ENTITY_RE.match(value.strip())
        if match is None:
            raise ValueError(f"Not a Hedera entity id: {value!r}")
        shard, realm, num = (int(g) for g in match.groups())
        if shard >= 1 << 32 or realm >= 1 << 64 or num >= 1 << 64:
            raise ValueError(f"Entity id out of range: {value!r}")
        return cls(shard, realm, num)

    def to_solidity_address(self) -> str:
        """Long-zero address as 40 lowercase hex chars, no 0x prefix."""
        raw = (
            self.shard.to_bytes(4, "big")
            + self.realm.to_bytes(8, "big")
            + self.num.to_bytes(8, "big")
        )
        return raw.hex()

    @classmethod
    def from_solidity_address(cls, address: str | bytes) -> "EntityId":
        raw = _address_bytes(address)
        return cls(
            int.from_bytes(raw[0:4], "big"),
            int.from_bytes(raw[4:12], "big"),
            int.from_bytes(raw[12:20], "big"),
        )


def is_entity_id(value: str) -> bool:
    return bool(_ENTITY_RE.match(value.strip()))


def is_hex_address(value: str) -> bool:
    return bool(_HEX_ADDRESS_RE.match(value))


def is_long_zero(address: str | bytes) -> bool:
    """True when the address carries an entity id rather than an EVM alias."""
    return _address_bytes(address)[:12] == b"\x00" * 12


def to_evm_address(value: str) -> str:
    """Normalize an entity id or hex address to a lowercase 0x address."""
    value = value.strip()
    if is_entity_id(value):
        return "0x" + EntityId.parse(value).to_solidity_address()
    if is_hex_address(value):
        return "0x" + value.lower().removeprefix("0x")
    raise ValueError(f"Not an address or entity id: {value!r}")


def contract_address(contract_id: str) -> str:
    """to_evm_address for a call target; bad ids raise ArgumentTypeMismatch."""
    try:
        return to_evm_address(contract_id)
    except ValueError as exc:
        raise ArgumentTypeMismatch(f"Invalid contract id: {exc}") from exc


def _address_bytes(address: str | bytes) -> bytes:
    if isinstance(address, (bytes, bytearray)):
        raw = bytes(address)
    else:
        raw = bytes.fromhex(address.lower().removeprefix("0x"))
    if len(raw) != 20:
        raise ValueError(f"Address must be 20 bytes, got {len(raw)}")
    return raw
