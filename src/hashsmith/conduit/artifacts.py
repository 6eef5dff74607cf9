"""
Artifact Registry - Loads compiled contract artifacts from Hardhat output.

Single source of truth: artifacts/contracts/**/<Name>.json (compilation
artifacts). Interfaces live under artifacts/contracts/interfaces/ and are
recognised by name: an ``I`` followed by an upper-case letter (IERC721,
IPrngGenerator).
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from eth_hash.auto import keccak

from ..errors import ArtifactMalformed, ArtifactNotFound
from .ids import to_evm_address

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACTS_DIR = Path("artifacts")

_INTERFACE_NAME_RE = re.compile(r"^I[A-Z]")
_ABI_ENTRY_TYPES = {"function", "event", "error", "constructor", "fallback", "receive"}


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    abi: tuple[dict[str, Any], ...]
    bytecode: Optional[str] = None
    path: Optional[Path] = field(default=None, compare=False)

    def entries(self, entry_type: str) -> list[dict[str, Any]]:
        return [e for e in self.abi if e.get("type") == entry_type]

    @property
    def constructor(self) -> Optional[dict[str, Any]]:
        found = self.entries("constructor")
        return found[0] if found else None

    @classmethod
    def from_abi(
        cls, name: str, abi: list[dict[str, Any]], bytecode: Optional[str] = None
    ) -> "ContractArtifact":
        """Build an artifact from an in-memory ABI (e.g. a minimal ERC-20 ABI)."""
        return cls(name=name, abi=_validate_abi(name, abi), bytecode=bytecode)


def is_interface_name(contract_name: str) -> bool:
    return bool(_INTERFACE_NAME_RE.match(contract_name))


class ArtifactRegistry:
    """
    Resolves contract names to artifacts and caches them for the process.

    Args:
        root: Hardhat artifacts directory (default: $ARTIFACTS_DIR or ./artifacts)
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        if root is None:
            root = Path(os.environ.get("ARTIFACTS_DIR", DEFAULT_ARTIFACTS_DIR))
        self.root = Path(root)
        self._cache: dict[str, ContractArtifact] = {}

    def path_for(self, contract_name: str) -> Path:
        base = self.root / "contracts"
        if is_interface_name(contract_name):
            base = base / "interfaces"
        return base / f"{contract_name}.sol" / f"{contract_name}.json"

    def load(self, contract_name: str) -> ContractArtifact:
        """
        Load a contract artifact.

        Args:
            contract_name: Contract name (e.g., "ForeverMinter", "IERC721")

        Returns:
            ContractArtifact with ABI and, for concrete contracts, bytecode

        Raises:
            ArtifactNotFound: If no compiled output exists for the name
            ArtifactMalformed: If the JSON or its ABI cannot be parsed
        """
        cached = self._cache.get(contract_name)
        if cached is not None:
            return cached

        path = self.path_for(contract_name)
        if not path.is_file():
            raise ArtifactNotFound(
                f"Artifact not found: {path}. Compile the contracts first."
            )

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ArtifactMalformed(f"Cannot read artifact {path}: {exc}") from exc

        if not isinstance(data, dict) or "abi" not in data:
            raise ArtifactMalformed(f"Artifact {path} has no 'abi' field")

        artifact = ContractArtifact(
            name=contract_name,
            abi=_validate_abi(contract_name, data["abi"]),
            bytecode=_extract_bytecode(data.get("bytecode")),
            path=path,
        )
        logger.debug("loaded artifact %s (%d abi entries)", contract_name, len(artifact.abi))
        self._cache[contract_name] = artifact
        return artifact


def _validate_abi(name: str, abi: Any) -> tuple[dict[str, Any], ...]:
    if not isinstance(abi, list):
        raise ArtifactMalformed(f"ABI for {name} is not a list")
    for i, entry in enumerate(abi):
        if not isinstance(entry, dict) or entry.get("type", "function") not in _ABI_ENTRY_TYPES:
            raise ArtifactMalformed(f"ABI entry {i} for {name} is not a valid entry")
        if entry.get("type", "function") in {"function", "event", "error"} and not entry.get("name"):
            raise ArtifactMalformed(f"ABI entry {i} for {name} has no name")
        for param in entry.get("inputs", []) + entry.get("outputs", []):
            if not isinstance(param, dict) or "type" not in param:
                raise ArtifactMalformed(f"ABI entry {i} for {name} has an untyped parameter")
    return tuple(abi)


def _extract_bytecode(raw: Any) -> Optional[str]:
    # Hardhat stores a hex string, Foundry an {"object": hex} mapping
    if isinstance(raw, dict):
        raw = raw.get("object")
    if not raw or raw == "0x":
        return None
    if not isinstance(raw, str):
        raise ArtifactMalformed("Bytecode must be a hex string")
    return raw if raw.startswith("0x") else "0x" + raw


def load_bytecode_file(path: Path) -> str:
    """
    Read a pre-built bytecode file for deployment by reference.

    Returns:
        0x-prefixed hex bytecode

    Raises:
        ArtifactNotFound: If the file does not exist
        ArtifactMalformed: If the file is empty
    """
    path = Path(path)
    if not path.is_file():
        raise ArtifactNotFound(f"Bytecode file not found: {path}")
    content = path.read_text(encoding="utf-8").strip()
    bytecode = _extract_bytecode(content)
    if bytecode is None:
        raise ArtifactMalformed(f"Bytecode file is empty: {path}")
    return bytecode


def library_placeholder(library_name: str) -> str:
    fully_qualified = f"contracts/{library_name}.sol:{library_name}"
    return f"__${keccak(fully_qualified.encode('utf-8')).hex()[:34]}$__"


def link_bytecode(bytecode: str, libraries: Mapping[str, str]) -> str:
    """
    Link deployed library addresses into unlinked bytecode.

    Args:
        bytecode: Hex bytecode containing ``__$<hash>$__`` placeholders
        libraries: Library name -> entity id or hex address

    Returns:
        Bytecode with every placeholder of every library replaced

    Raises:
        ArtifactMalformed: If a library has no placeholder in the bytecode
    """
    for name, address in libraries.items():
        placeholder = library_placeholder(name)
        if placeholder not in bytecode:
            raise ArtifactMalformed(f"Unable to find placeholder for library {name}")
        try:
            linked = to_evm_address(address)[2:]
        except ValueError as exc:
            raise ArtifactMalformed(f"Library {name}: {exc}") from exc
        bytecode = bytecode.replace(placeholder, linked)
    return bytecode
