"""
Invoke - Estimate gas for and execute a state-changing contract call.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ..conduit.executor import DEFAULT_INVOKE_GAS, execute_invoke
from ..conduit.gas import estimate_gas
from ..errors import HashsmithError
from ._common import fail, network_options, open_pipeline, parse_args_json, report_result, validate_contract


@click.command()
@click.option("--contract", required=True, callback=validate_contract, help="Target contract id (0.0.x) or address")
@click.option("--abi-name", required=True, help="Contract name for artifact loading")
@click.option("--function", "func_name", required=True, help="Function name to call")
@click.option("--args", "args_json", default="[]", help="Function args as JSON array")
@click.option("--value", default=0, type=int, help="Payable amount in tinybars")
@click.option(
    "--gas-ceiling",
    default=DEFAULT_INVOKE_GAS,
    type=int,
    show_default=True,
    help="Gas limit used when estimation is unavailable",
)
@click.option("--no-estimate", is_flag=True, help="Skip the dry-run and use --gas-ceiling")
@network_options
def invoke(
    contract: str,
    abi_name: str,
    func_name: str,
    args_json: str,
    value: int,
    gas_ceiling: int,
    no_estimate: bool,
    environment: Optional[str],
    rpc_url: Optional[str],
    mirror_url: Optional[str],
    artifacts_dir: Path,
) -> None:
    """
    Execute an on-chain contract call.

    Gas is estimated against the mirror node first; if the simulation fails
    the ceiling is used as-is. The settled status is always reported.
    """
    args = parse_args_json(args_json)

    click.echo(f"=== Invoke {abi_name}.{func_name} ===")
    click.echo("")

    try:
        with open_pipeline(environment, rpc_url, mirror_url, artifacts_dir) as pipe:
            artifact = pipe.registry.load(abi_name)

            click.echo(f"  Operator: {pipe.context.operator_id}")
            click.echo(f"  Target:   {contract}")
            click.echo(f"  Args:     {args}")
            if value > 0:
                click.echo(f"  Value:    {value} tinybar")

            estimate = estimate_gas(
                pipe.context,
                pipe.session,
                artifact,
                contract,
                func_name,
                args,
                static_ceiling=gas_ceiling,
                value=value,
                simulate=not no_estimate,
            )
            source = "estimated" if not estimate.degraded else f"fallback: {estimate.reason}"
            click.echo(f"  Gas:      {estimate.gas_limit:,} ({source})")
            click.echo("")

            result = execute_invoke(
                pipe.context,
                pipe.session,
                artifact,
                contract,
                func_name,
                args,
                gas_limit=estimate.gas_limit,
                value=value,
            )
    except HashsmithError as exc:
        fail(exc)
        return

    report_result(result, func_name, estimate)
    if not result.ok:
        sys.exit(1)
