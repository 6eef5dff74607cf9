"""
Deploy - Create a contract from its compiled artifact.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ..conduit.artifacts import load_bytecode_file
from ..conduit.executor import DEFAULT_DEPLOY_GAS, execute_deploy
from ..errors import HashsmithError
from ._common import fail, network_options, open_pipeline, parse_args_json, parse_assignments, report_result


@click.command()
@click.argument("contract_name")
@click.option("--args", "args_json", default="[]", help="Constructor args as JSON array")
@click.option("--gas-limit", default=DEFAULT_DEPLOY_GAS, type=int, show_default=True, help="Gas limit")
@click.option(
    "--bytecode-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Pre-built bytecode file to deploy instead of the artifact's",
)
@click.option("--library", "libraries", multiple=True, help="Link a library: Name=0.0.1234")
@network_options
def deploy(
    contract_name: str,
    args_json: str,
    gas_limit: int,
    bytecode_file: Optional[Path],
    libraries: tuple[str, ...],
    environment: Optional[str],
    rpc_url: Optional[str],
    mirror_url: Optional[str],
    artifacts_dir: Path,
) -> None:
    """Deploy CONTRACT_NAME with the operator account."""
    args = parse_args_json(args_json)
    links = {name: str(address) for name, address in parse_assignments(libraries).items()}

    click.echo(f"=== Deploy {contract_name} ===")
    click.echo("")

    try:
        with open_pipeline(environment, rpc_url, mirror_url, artifacts_dir) as pipe:
            artifact = pipe.registry.load(contract_name)
            bytecode = load_bytecode_file(bytecode_file) if bytecode_file else None

            click.echo(f"  Environment: {pipe.context.endpoint.kind.name}")
            click.echo(f"  Operator:    {pipe.context.operator_id}")
            click.echo(f"  Args:        {args}")
            click.echo(f"  Gas limit:   {gas_limit:,}")
            click.echo("")

            result = execute_deploy(
                pipe.context,
                pipe.session,
                artifact,
                constructor_args=args,
                gas_limit=gas_limit,
                bytecode=bytecode,
                libraries=links or None,
            )
    except HashsmithError as exc:
        fail(exc)
        return

    report_result(result, f"Deploy {contract_name}")
    if not result.ok:
        sys.exit(1)
