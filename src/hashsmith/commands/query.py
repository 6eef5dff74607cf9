"""
Query - Free read-only calls and standalone gas estimates via the mirror node.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..conduit.executor import DEFAULT_INVOKE_GAS
from ..conduit.gas import call_read_only, estimate_gas
from ..errors import HashsmithError
from ._common import echo_fields, fail, network_options, open_pipeline, parse_args_json, validate_contract


@click.command()
@click.option("--contract", required=True, callback=validate_contract, help="Contract id (0.0.x) or address")
@click.option("--abi-name", required=True, help="Contract name for artifact loading")
@click.option("--function", "func_name", required=True, help="View function to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@network_options
def call(
    contract: str,
    abi_name: str,
    func_name: str,
    args_json: str,
    environment: Optional[str],
    rpc_url: Optional[str],
    mirror_url: Optional[str],
    artifacts_dir: Path,
) -> None:
    """Read from a contract without submitting a transaction."""
    args = parse_args_json(args_json)
    try:
        with open_pipeline(environment, rpc_url, mirror_url, artifacts_dir) as pipe:
            artifact = pipe.registry.load(abi_name)
            fields = call_read_only(pipe.context, pipe.session, artifact, contract, func_name, args)
    except HashsmithError as exc:
        fail(exc)
        return

    click.echo(f"{abi_name}.{func_name}:")
    echo_fields(fields)


@click.command()
@click.option("--contract", required=True, callback=validate_contract, help="Contract id (0.0.x) or address")
@click.option("--abi-name", required=True, help="Contract name for artifact loading")
@click.option("--function", "func_name", required=True, help="Function to simulate")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@click.option("--value", default=0, type=int, help="Payable amount in tinybars")
@click.option("--gas-ceiling", default=DEFAULT_INVOKE_GAS, type=int, show_default=True)
@network_options
def estimate(
    contract: str,
    abi_name: str,
    func_name: str,
    args_json: str,
    value: int,
    gas_ceiling: int,
    environment: Optional[str],
    rpc_url: Optional[str],
    mirror_url: Optional[str],
    artifacts_dir: Path,
) -> None:
    """Estimate gas for a call without executing it."""
    args = parse_args_json(args_json)
    try:
        with open_pipeline(environment, rpc_url, mirror_url, artifacts_dir) as pipe:
            artifact = pipe.registry.load(abi_name)
            result = estimate_gas(
                pipe.context,
                pipe.session,
                artifact,
                contract,
                func_name,
                args,
                static_ceiling=gas_ceiling,
                value=value,
            )
    except HashsmithError as exc:
        fail(exc)
        return

    if result.degraded:
        click.secho(f"Gas limit: {result.gas_limit:,} (static fallback)", fg="yellow")
        click.echo(f"  Reason: {result.reason}")
    else:
        click.secho(f"Gas limit: {result.gas_limit:,}", fg="green")
        click.echo(f"  Raw estimate: {result.raw_estimate:,}")
