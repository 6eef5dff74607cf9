"""
Conduit - Contract interaction pipeline for Hedera's EVM surface.

Artifact registry, call encoder, gas estimator, transaction executor,
result/log decoder and the mirror node log fetcher.

Uses httpx + eth-account + eth-abi instead of the heavyweight web3.py.
"""
