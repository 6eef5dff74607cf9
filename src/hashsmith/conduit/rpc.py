"""
Ledger session: JSON-RPC relay and mirror node REST over one httpx client.

Lightweight alternative to a full SDK: httpx for HTTP, eth-abi for encoding.
The session is read-only after construction and is shared by every stage
of the pipeline for a single invocation.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

from ..errors import TransportFailure
from ..network import NetworkEndpoint

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class LedgerSession:
    """
    HTTP access to a Hedera network endpoint.

    Args:
        endpoint: Relay and mirror URLs for the selected environment
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        endpoint: NetworkEndpoint,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._request_id = 0

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "LedgerSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # JSON-RPC relay
    # ------------------------------------------------------------------

    def rpc(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call against the relay.

        Args:
            method: RPC method name (e.g., "eth_sendRawTransaction")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            TransportFailure: On HTTP errors or a JSON-RPC error object
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }
        logger.debug("rpc %s -> %s", method, self.endpoint.rpc_url)

        try:
            response = self._client.post(self.endpoint.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransportFailure(f"RPC {method} failed: {exc}") from exc

        if "error" in data:
            raise TransportFailure(f"RPC error from {method}: {data['error']}")

        return data.get("result")

    def get_nonce(self, address: str) -> int:
        return int(self.rpc("eth_getTransactionCount", [address, "latest"]), 16)

    def get_gas_price(self) -> int:
        return int(self.rpc("eth_gasPrice", []), 16)

    def send_raw_transaction(self, raw_tx: str) -> str:
        return self.rpc("eth_sendRawTransaction", [raw_tx])

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120,
        poll_interval: float = 2.0,
    ) -> dict:
        """
        Block until the transaction reaches finality.

        Args:
            tx_hash: Transaction hash
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds

        Returns:
            Transaction receipt dict

        Raises:
            TransportFailure: If no receipt appears within timeout
        """
        start = time.monotonic()
        while True:
            receipt = self.rpc("eth_getTransactionReceipt", [tx_hash])
            if receipt is not None:
                return receipt
            if time.monotonic() - start >= timeout:
                break
            time.sleep(poll_interval)

        raise TransportFailure(f"Transaction {tx_hash} not settled within {timeout}s")

    # ------------------------------------------------------------------
    # Mirror node
    # ------------------------------------------------------------------

    def mirror_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.endpoint.mirror_url}{path}"

    def mirror_get(self, path: str, params: Optional[dict] = None) -> dict:
        """GET a mirror node resource. ``path`` may be absolute or a ``links.next`` value."""
        url = self.mirror_url(path)
        logger.debug("mirror GET %s %s", url, params or "")
        try:
            response = self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransportFailure(f"Mirror GET {url} failed: {exc}") from exc

    def mirror_post(self, path: str, body: dict) -> httpx.Response:
        """POST to the mirror node; the caller inspects the status code."""
        url = self.mirror_url(path)
        logger.debug("mirror POST %s", url)
        try:
            return self._client.post(url, json=body)
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Mirror POST {url} failed: {exc}") from exc
