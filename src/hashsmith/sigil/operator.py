"""
Operator signing identity.

The operator is a Hedera account (``ACCOUNT_ID``) with an ECDSA/secp256k1
key (``PRIVATE_KEY``), which is what the JSON-RPC relay accepts. Keys are
only read here; creating or rotating them is out of scope.

Dependencies: eth-account (lightweight, no full web3.py needed)
"""

from __future__ import annotations

import re

from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import ConfigurationError
from ..network import NetworkContext

_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def get_account(context: NetworkContext) -> LocalAccount:
    """
    Get an eth-account LocalAccount for the context's operator.

    Raises:
        ConfigurationError: If no key is configured or it is not a valid
            secp256k1 private key (ED25519 keys cannot sign EVM transactions)
    """
    _, private_key = context.require_operator()
    if not _KEY_RE.match(private_key):
        raise ConfigurationError(
            "PRIVATE_KEY must be a 32-byte hex ECDSA/secp256k1 key"
        )
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(
            "PRIVATE_KEY is not a valid ECDSA/secp256k1 key"
        ) from exc


def get_address(context: NetworkContext) -> str:
    """0x-prefixed checksummed EVM address of the operator key."""
    return get_account(context).address


def sign_transaction(context: NetworkContext, tx: dict) -> str:
    """
    Sign a transaction dict with the operator key.

    Returns:
        0x-prefixed hex encoded signed transaction
    """
    signed = get_account(context).sign_transaction(tx)
    return "0x" + signed.raw_transaction.hex().removeprefix("0x")
