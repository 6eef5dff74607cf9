"""
hashsmith CLI

Command-line interface for deploying and operating smart contracts on
Hedera through its EVM surface (JSON-RPC relay + mirror node).

Commands:
  deploy    - Deploy a contract from its compiled artifact
  invoke    - Execute a state-changing call (gas estimated first)
  call      - Read-only call through the mirror node
  estimate  - Estimate gas for a call
  logs      - Decode a contract's historical events
  decode    - Decode calldata / revert data, look up custom errors
  update    - Change selected fields of a configuration setter
  whoami    - Show the operator identity
  info      - Show network configuration
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click

from .errors import ConfigurationError, HashsmithError
from .network import load_network_context
from .sigil.operator import get_address


# ============ Constants ============

VERSION = "1.0.0"


# ============ Banner ============


def _print_banner() -> None:
    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo(
        click.style("        H A S H S M I T H", fg="bright_white", bold=True)
        + click.style(f"        v{VERSION}", dim=True)
    )
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="hashsmith")
@click.option("-v", "--verbose", count=True, help="-v for progress, -vv for wire-level detail")
@click.pass_context
def cli(ctx: click.Context, verbose: int) -> None:
    """hashsmith - Hedera smart contract toolkit."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.deploy import deploy
from .commands.invoke import invoke
from .commands.query import call, estimate
from .commands.logs import logs
from .commands.decode import decode
from .commands.update import update

cli.add_command(deploy)
cli.add_command(invoke)
cli.add_command(call)
cli.add_command(estimate)
cli.add_command(logs)
cli.add_command(decode)
cli.add_command(update)


# ============ Identity ============


@cli.command()
@click.option("--env", "environment", envvar="ENVIRONMENT", help="TEST, MAIN, PREVIEW or LOCAL")
def whoami(environment: Optional[str]) -> None:
    """Show the operator account and its EVM address."""
    try:
        context = load_network_context(environment)
        operator_id, _ = context.require_operator()
        address = get_address(context)
    except ConfigurationError as exc:
        click.echo(f"No operator configured: {exc}")
        sys.exit(exc.exit_code)

    click.echo(f"Account: {operator_id}")
    click.echo(f"Address: {address}")


# ============ Info ============


@cli.command()
@click.option("--env", "environment", envvar="ENVIRONMENT", help="TEST, MAIN, PREVIEW or LOCAL")
def info(environment: Optional[str]) -> None:
    """Show network configuration."""
    _print_banner()

    try:
        context = load_network_context(environment)
    except HashsmithError as exc:
        click.secho(f"  ERROR: {exc}", fg="red")
        sys.exit(exc.exit_code)

    endpoint = context.endpoint
    rows = [
        ("Environment", endpoint.kind.name),
        ("Chain id", str(endpoint.chain_id)),
        ("Relay", endpoint.rpc_url),
        ("Mirror", endpoint.mirror_url),
        ("Operator", str(context.operator_id) if context.operator_id else "not configured"),
    ]
    if endpoint.node_table:
        rows.append(("Nodes", ", ".join(f"{k} -> {v}" for k, v in endpoint.node_table.items())))

    click.secho("  Network ────────────────────────────────", fg="cyan")
    for label, value in rows:
        click.echo(click.style(f"  {label + ':':<13}", dim=True) + click.style(value, fg="bright_white"))
    click.echo()


# ============ Entry Points ============


def main() -> None:
    """hashsmith CLI entry point."""
    # Ensure UTF-8 output on Windows (for the box-drawing banner)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: non-tty
    cli()


if __name__ == "__main__":
    main()
