"""
Decode - Offline helpers: calldata, revert data and custom error lookup.
"""

from __future__ import annotations

from pathlib import Path

import click

from ..conduit.artifacts import ArtifactRegistry
from ..conduit.encoder import decode_call_data, signature
from ..conduit.revert import decode_error, find_error
from ..errors import HashsmithError
from ._common import fail, render_value

_artifacts_option = click.option(
    "--artifacts",
    "artifacts_dir",
    envvar="ARTIFACTS_DIR",
    default="artifacts",
    type=click.Path(file_okay=False, path_type=Path),
    help="Compiled artifacts directory",
)


@click.group()
def decode() -> None:
    """Decode calldata, revert data and custom errors with a contract ABI."""
    pass


@decode.command("calldata")
@click.argument("contract_name")
@click.argument("data")
@_artifacts_option
def decode_calldata(contract_name: str, data: str, artifacts_dir: Path) -> None:
    """Decode function calldata DATA using CONTRACT_NAME's ABI."""
    try:
        artifact = ArtifactRegistry(artifacts_dir).load(contract_name)
        name, values = decode_call_data(artifact, data)
    except HashsmithError as exc:
        fail(exc)
        return
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="DATA") from exc
    click.echo(f"{name}({', '.join(render_value(v) for v in values)})")


@decode.command("revert")
@click.argument("contract_name")
@click.argument("data")
@_artifacts_option
def decode_revert(contract_name: str, data: str, artifacts_dir: Path) -> None:
    """Explain revert DATA (Error, Panic or a custom error)."""
    try:
        artifact = ArtifactRegistry(artifacts_dir).load(contract_name)
    except HashsmithError as exc:
        fail(exc)
        return
    click.echo(decode_error(artifact, data))


@decode.command("error")
@click.argument("contract_name")
@click.argument("error_name")
@_artifacts_option
def decode_error_name(contract_name: str, error_name: str, artifacts_dir: Path) -> None:
    """Show the signature and selector of custom error ERROR_NAME."""
    try:
        artifact = ArtifactRegistry(artifacts_dir).load(contract_name)
        entry, error_selector = find_error(artifact, error_name)
    except HashsmithError as exc:
        fail(exc)
        return
    click.echo(f"{signature(entry)}  {error_selector}")
