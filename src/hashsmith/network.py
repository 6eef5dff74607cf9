"""
Network selection and the per-process context.

The environment (TEST, MAIN, PREVIEW, LOCAL) is chosen once per invocation
from ``ENVIRONMENT`` in ``./.env`` or the process environment. Every pipeline
call takes the resulting NetworkContext explicitly; nothing reads global
state after setup.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from dotenv import load_dotenv

from .conduit.ids import EntityId
from .errors import ConfigurationError

DEFAULT_ENV_FILE = Path(".env")


class EnvironmentKind(enum.Enum):
    TEST = "test"
    MAIN = "main"
    PREVIEW = "preview"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: Optional[str]) -> "EnvironmentKind":
        if not value:
            raise ConfigurationError(
                "ENVIRONMENT not set. Specify TEST, MAIN, PREVIEW or LOCAL."
            )
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown environment {value!r}. "
                "Must specify either MAIN, TEST, LOCAL or PREVIEW."
            ) from None


_MIRROR_URLS = {
    EnvironmentKind.TEST: "https://testnet.mirrornode.hedera.com",
    EnvironmentKind.MAIN: "https://mainnet-public.mirrornode.hedera.com",
    EnvironmentKind.PREVIEW: "https://previewnet.mirrornode.hedera.com",
    EnvironmentKind.LOCAL: "http://localhost:8000",
}

_RPC_URLS = {
    EnvironmentKind.TEST: "https://testnet.hashio.io/api",
    EnvironmentKind.MAIN: "https://mainnet.hashio.io/api",
    EnvironmentKind.PREVIEW: "https://previewnet.hashio.io/api",
    EnvironmentKind.LOCAL: "http://localhost:7546",
}

_CHAIN_IDS = {
    EnvironmentKind.MAIN: 295,
    EnvironmentKind.TEST: 296,
    EnvironmentKind.PREVIEW: 297,
    EnvironmentKind.LOCAL: 298,
}

_LOCAL_NODES = MappingProxyType({"127.0.0.1:50211": "0.0.3"})


@dataclass(frozen=True)
class NetworkEndpoint:
    kind: EnvironmentKind
    rpc_url: str
    mirror_url: str
    chain_id: int
    node_table: Optional[Mapping[str, str]] = None

    @classmethod
    def for_environment(
        cls,
        kind: EnvironmentKind,
        rpc_url: Optional[str] = None,
        mirror_url: Optional[str] = None,
    ) -> "NetworkEndpoint":
        """Build an endpoint from the per-environment defaults.

        Args:
            kind: Target environment
            rpc_url: Override for the JSON-RPC relay URL
            mirror_url: Override for the mirror node base URL

        Returns:
            NetworkEndpoint with trailing slashes stripped from both URLs
        """
        return cls(
            kind=kind,
            rpc_url=(rpc_url or _RPC_URLS[kind]).rstrip("/"),
            mirror_url=(mirror_url or _MIRROR_URLS[kind]).rstrip("/"),
            chain_id=_CHAIN_IDS[kind],
            node_table=_LOCAL_NODES if kind is EnvironmentKind.LOCAL else None,
        )


@dataclass(frozen=True)
class NetworkContext:
    """Endpoint plus operator identity, fixed for the process lifetime."""

    endpoint: NetworkEndpoint
    operator_id: Optional[EntityId] = None
    operator_key: Optional[str] = field(default=None, repr=False)

    def require_operator(self) -> tuple[EntityId, str]:
        if self.operator_id is None or not self.operator_key:
            raise ConfigurationError(
                "ACCOUNT_ID and PRIVATE_KEY must be set to submit transactions."
            )
        return self.operator_id, self.operator_key


def load_network_context(
    environment: Optional[str] = None,
    env_path: Optional[Path] = None,
    rpc_url: Optional[str] = None,
    mirror_url: Optional[str] = None,
) -> NetworkContext:
    """
    Resolve the network context from arguments, ``.env`` and the environment.

    Explicit arguments win over environment variables. Operator identity is
    optional here: read-only commands (logs, call, decode) work without it.

    Args:
        environment: TEST, MAIN, PREVIEW or LOCAL (default: $ENVIRONMENT)
        env_path: Path to .env file (default: ./.env)
        rpc_url: JSON-RPC relay override (default: $RPC_URL)
        mirror_url: Mirror node override (default: $MIRROR_URL)

    Returns:
        Immutable NetworkContext

    Raises:
        ConfigurationError: On unknown environment or malformed ACCOUNT_ID
    """
    env_path = env_path or DEFAULT_ENV_FILE
    if env_path.exists():
        load_dotenv(env_path, override=False)

    kind = EnvironmentKind.parse(environment or os.environ.get("ENVIRONMENT"))
    endpoint = NetworkEndpoint.for_environment(
        kind,
        rpc_url=rpc_url or os.environ.get("RPC_URL"),
        mirror_url=mirror_url or os.environ.get("MIRROR_URL"),
    )

    operator_id = None
    account_id = os.environ.get("ACCOUNT_ID")
    if account_id:
        try:
            operator_id = EntityId.parse(account_id)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid ACCOUNT_ID: {exc}") from exc

    private_key = os.environ.get("PRIVATE_KEY") or None
    if private_key and not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return NetworkContext(
        endpoint=endpoint, operator_id=operator_id, operator_key=private_key
    )
