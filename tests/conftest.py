"""
Shared fixtures: a Hardhat-style artifacts tree and a fake Hedera endpoint.

The fake ledger answers JSON-RPC relay methods and mirror node REST paths
through httpx.MockTransport, so every pipeline stage runs without network
access.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest
from eth_abi import encode
from eth_hash.auto import keccak

from hashsmith.conduit.artifacts import ArtifactRegistry, ContractArtifact
from hashsmith.conduit.ids import EntityId
from hashsmith.conduit.rpc import LedgerSession
from hashsmith.network import EnvironmentKind, NetworkContext, NetworkEndpoint

RELAY_URL = "http://relay.test/api"
MIRROR_URL = "http://mirror.test"
OPERATOR_KEY = "0x" + "11" * 32
OPERATOR_ID = EntityId(0, 0, 1001)
CONTRACT_ID = "0.0.5001"
TX_HASH = "0x" + "ab" * 32


def _param(name: str, abi_type: str, **extra: Any) -> dict[str, Any]:
    return {"name": name, "type": abi_type, **extra}


ECONOMICS_COMPONENTS = [
    _param("mintPriceHbar", "uint256"),
    _param("maxMint", "uint256"),
    _param("paused", "bool"),
    _param("treasury", "address"),
]

MINTER_ABI: list[dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [_param("owner", "address"), _param("cap", "uint256")],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [_param("to", "address"), _param("amount", "uint256")],
        "outputs": [_param("", "bool")],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "store",
        "inputs": [_param("value", "uint256")],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "store",
        "inputs": [_param("label", "string")],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "store",
        "inputs": [_param("value", "uint256"), _param("label", "string")],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "setPaused",
        "inputs": [_param("paused", "bool")],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [_param("account", "address")],
        "outputs": [_param("", "uint256")],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "owner",
        "inputs": [],
        "outputs": [_param("", "address")],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "getEconomics",
        "inputs": [],
        "outputs": [
            _param("", "tuple", components=ECONOMICS_COMPONENTS, internalType="struct Minter.Economics")
        ],
        "stateMutability": "view",
    },
    {
        "type": "function",
        "name": "updateEconomics",
        "inputs": [dict(c) for c in ECONOMICS_COMPONENTS],
        "outputs": [],
        "stateMutability": "nonpayable",
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            _param("from", "address", indexed=True),
            _param("to", "address", indexed=True),
            _param("value", "uint256", indexed=False),
        ],
    },
    {
        "type": "event",
        "name": "Minted",
        "anonymous": False,
        "inputs": [
            _param("to", "address", indexed=True),
            _param("amount", "uint256", indexed=False),
            _param("memo", "string", indexed=False),
        ],
    },
    {
        "type": "error",
        "name": "InsufficientFunds",
        "inputs": [_param("needed", "uint256"), _param("available", "uint256")],
    },
]

MINTER_BYTECODE = "0x6080604052348015600f57600080fd5b50"

INTERFACE_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "balanceOf",
        "inputs": [_param("account", "address")],
        "outputs": [_param("", "uint256")],
        "stateMutability": "view",
    },
]


def write_artifact(root: Path, name: str, abi: list, bytecode: str = "0x", interface: bool = False) -> Path:
    base = root / "contracts"
    if interface:
        base = base / "interfaces"
    path = base / f"{name}.sol" / f"{name}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps({"contractName": name, "abi": abi, "bytecode": bytecode}),
        encoding="utf-8",
    )
    return path


# ============ Fake ledger ============


class FakeLedger:
    """
    Scripted relay + mirror node.

    Tests tweak the attributes before running a pipeline and inspect
    ``rpc_calls`` / ``mirror_calls`` afterwards.
    """

    def __init__(self) -> None:
        self.rpc_calls: list[str] = []
        self.mirror_calls: list[tuple[str, str]] = []
        self.sent_raw: list[str] = []
        self.rpc_errors: dict[str, dict] = {}
        self.receipt: Optional[dict] = {
            "transactionHash": TX_HASH,
            "status": "0x1",
            "gasUsed": hex(42_000),
            "contractAddress": None,
            "logs": [],
        }
        self.estimate: Any = (200, {"result": hex(100_000)})
        self.call: Any = (200, {"result": "0x"})
        self.call_bodies: list[dict] = []
        self.results: dict[str, dict] = {}
        self.log_pages: list[Any] = [{"logs": [], "links": {"next": None}}]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "relay.test":
            return self._relay(request)
        return self._mirror(request)

    def _relay(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        method = payload["method"]
        self.rpc_calls.append(method)

        if method in self.rpc_errors:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "error": self.rpc_errors[method]})

        if method == "eth_getTransactionCount":
            result: Any = "0x0"
        elif method == "eth_gasPrice":
            result = hex(710_000_000_000)
        elif method == "eth_sendRawTransaction":
            self.sent_raw.append(payload["params"][0])
            result = TX_HASH
        elif method == "eth_getTransactionReceipt":
            result = self.receipt
        else:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "error": {"message": "unsupported"}})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})

    def _mirror(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.mirror_calls.append((request.method, path))

        if request.method == "POST" and path == "/api/v1/contracts/call":
            body = json.loads(request.content)
            self.call_bodies.append(body)
            return self._scripted(request, self.estimate if body["estimate"] else self.call)

        if path.startswith("/api/v1/contracts/results/"):
            record = self.results.get(path.rsplit("/", 1)[-1])
            if record is None:
                return httpx.Response(404, json={"_status": {"messages": [{"message": "Not found"}]}})
            return httpx.Response(200, json=record)

        if path.endswith("/results/logs"):
            page = int(request.url.params.get("page", "0"))
            return self._scripted(request, self.log_pages[page])

        return httpx.Response(404, json={"_status": {"messages": [{"message": "Not found"}]}})

    @staticmethod
    def _scripted(request: httpx.Request, answer: Any) -> httpx.Response:
        if isinstance(answer, Exception):
            raise httpx.ConnectError(str(answer), request=request)
        if isinstance(answer, dict):
            return httpx.Response(200, json=answer)
        status, body = answer
        return httpx.Response(status, json=body)


def mirror_error(message: str, data: Optional[str] = None, detail: str = "") -> tuple[int, dict]:
    """A 400 response in the mirror's ``_status.messages`` shape."""
    entry: dict[str, Any] = {"message": message, "detail": detail}
    if data is not None:
        entry["data"] = data
    return 400, {"_status": {"messages": [entry]}}


# ============ Fixtures ============


@pytest.fixture()
def endpoint() -> NetworkEndpoint:
    return NetworkEndpoint(
        kind=EnvironmentKind.TEST,
        rpc_url=RELAY_URL,
        mirror_url=MIRROR_URL,
        chain_id=296,
    )


@pytest.fixture()
def context(endpoint: NetworkEndpoint) -> NetworkContext:
    return NetworkContext(endpoint=endpoint, operator_id=OPERATOR_ID, operator_key=OPERATOR_KEY)


@pytest.fixture()
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture()
def session(endpoint: NetworkEndpoint, ledger: FakeLedger) -> LedgerSession:
    with LedgerSession(endpoint, transport=ledger.transport) as s:
        yield s


@pytest.fixture()
def artifacts_dir(tmp_path: Path) -> Path:
    root = tmp_path / "artifacts"
    write_artifact(root, "Minter", MINTER_ABI, MINTER_BYTECODE)
    write_artifact(root, "IMinter", INTERFACE_ABI, interface=True)
    return root


@pytest.fixture()
def registry(artifacts_dir: Path) -> ArtifactRegistry:
    return ArtifactRegistry(artifacts_dir)


@pytest.fixture()
def minter() -> ContractArtifact:
    return ContractArtifact.from_abi("Minter", MINTER_ABI, MINTER_BYTECODE)


# ============ Log entries ============


def address_topic(num: int) -> str:
    return "0x" + encode(["address"], ["0x" + f"{num:040x}"]).hex()


def transfer_entry(ts: str, amount: int) -> dict:
    """Mirror log entry for Transfer(0.0.1001 -> 0.0.1002, amount)."""
    return {
        "timestamp": ts,
        "topics": [
            "0x" + keccak(b"Transfer(address,address,uint256)").hex(),
            address_topic(1001),
            address_topic(1002),
        ],
        "data": "0x" + encode(["uint256"], [amount]).hex(),
    }
