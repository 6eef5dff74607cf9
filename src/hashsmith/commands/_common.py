"""
Shared plumbing for the CLI commands: network options, argument parsing
and rendering of pipeline results.
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Sequence

import click

from ..conduit.artifacts import ArtifactRegistry
from ..conduit.decoder import DecodedField, EventRecord, NativeAccountId, RawAddress
from ..conduit.executor import ExecutionResult
from ..conduit.gas import GasEstimate
from ..conduit.ids import to_evm_address
from ..conduit.rpc import LedgerSession
from ..errors import HashsmithError
from ..network import NetworkContext, load_network_context


def network_options(func: Callable) -> Callable:
    """--env / --rpc-url / --mirror-url / --artifacts, shared by every network command."""
    options = [
        click.option("--env", "environment", envvar="ENVIRONMENT", help="TEST, MAIN, PREVIEW or LOCAL"),
        click.option("--rpc-url", envvar="RPC_URL", default=None, help="JSON-RPC relay URL override"),
        click.option("--mirror-url", envvar="MIRROR_URL", default=None, help="Mirror node URL override"),
        click.option(
            "--artifacts",
            "artifacts_dir",
            envvar="ARTIFACTS_DIR",
            default="artifacts",
            type=click.Path(file_okay=False, path_type=Path),
            help="Compiled artifacts directory",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


class Pipeline:
    """Everything a command needs for one invocation."""

    def __init__(self, context: NetworkContext, session: LedgerSession, registry: ArtifactRegistry) -> None:
        self.context = context
        self.session = session
        self.registry = registry


@contextmanager
def open_pipeline(
    environment: Optional[str],
    rpc_url: Optional[str],
    mirror_url: Optional[str],
    artifacts_dir: Path,
) -> Iterator[Pipeline]:
    context = load_network_context(environment, rpc_url=rpc_url, mirror_url=mirror_url)
    with LedgerSession(context.endpoint) as session:
        yield Pipeline(context, session, ArtifactRegistry(artifacts_dir))


def fail(exc: HashsmithError) -> None:
    click.secho(f"ERROR: {exc}", fg="red", err=True)
    sys.exit(exc.exit_code)


def validate_contract(ctx: click.Context, param: click.Parameter, value: str) -> str:
    """click callback: accept 0.0.x or a 20-byte hex address."""
    try:
        to_evm_address(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    return value


def parse_args_json(args_json: str) -> list:
    """Parse a JSON array of arguments, exiting with a message on bad input."""
    try:
        args = json.loads(args_json)
        if not isinstance(args, list):
            raise ValueError("Args must be a JSON array")
    except (json.JSONDecodeError, ValueError) as exc:
        click.secho(f"ERROR: Invalid args: {exc}", fg="red", err=True)
        sys.exit(1)
    return args


def parse_assignments(pairs: Sequence[str]) -> dict[str, Any]:
    """``name=value`` pairs; values are JSON when they parse, strings otherwise."""
    updates: dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got {pair!r}")
        try:
            updates[name.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            updates[name.strip()] = raw
    return updates


# ============ Rendering ============


def render_value(value: Any) -> str:
    if isinstance(value, NativeAccountId):
        return str(value.entity)
    if isinstance(value, RawAddress):
        return value.address
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(render_value(v) for v in value) + "]"
    return str(value)


def echo_fields(fields: Sequence[DecodedField], indent: str = "  ") -> None:
    for f in fields:
        click.echo(
            click.style(f"{indent}{f.name} ({f.abi_type}): ", dim=True) + render_value(f.value)
        )


def format_event(record: EventRecord) -> str:
    parts = [record.event_name] + [render_value(f.value) for f in record.fields]
    prefix = f"@ {record.timestamp} : " if record.timestamp else ""
    return prefix + " : ".join(parts)


def report_result(result: ExecutionResult, operation: str, estimate: Optional[GasEstimate] = None) -> None:
    """Print a settled transaction, including gas usage against the limit."""
    if result.ok:
        click.secho(f"SUCCESS: {operation} completed", fg="green")
    else:
        click.secho(f"FAILED: {operation} settled with status {result.status}", fg="red")
    click.echo(f"  TX: {result.transaction_id}")

    if result.contract_id:
        click.echo(f"  Contract: {result.contract_id}")
    if result.revert_reason:
        click.echo(f"  Reason: {result.revert_reason}")

    if result.gas_used is not None and result.gas_limit:
        efficiency = result.gas_used / result.gas_limit * 100
        click.echo(f"  Gas: {result.gas_used:,} / {result.gas_limit:,} ({efficiency:.1f}%)")
        if estimate is not None and estimate.raw_estimate:
            accuracy = result.gas_used / estimate.raw_estimate * 100
            click.echo(f"  Estimate accuracy: {accuracy:.1f}% of {estimate.raw_estimate:,}")

    if result.decoded_return:
        click.echo("  Returned:")
        echo_fields(result.decoded_return, indent="    ")
    for record in result.events:
        click.echo(f"  Event: {format_event(record)}")
