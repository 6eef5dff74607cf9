"""
Update - Change selected fields of a multi-field configuration setter.

Reads the current values through a getter, overrides only the fields passed
with ``--set`` and submits the setter with everything else unchanged.
A field is updated when it is named, whatever its value: ``--set maxMint=0``
sets zero, it does not mean "keep".
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from ..conduit.encoder import find_functions, resolve_function, signature
from ..conduit.executor import DEFAULT_INVOKE_GAS, execute_invoke
from ..conduit.gas import call_read_only, estimate_gas
from ..conduit.updates import current_values, merge_updates, select_setter
from ..errors import ArgumentTypeMismatch, HashsmithError
from ._common import fail, network_options, open_pipeline, parse_assignments, render_value, report_result, validate_contract


@click.command()
@click.option("--contract", required=True, callback=validate_contract, help="Contract id (0.0.x) or address")
@click.option("--abi-name", required=True, help="Contract name for artifact loading")
@click.option("--getter", required=True, help="View function returning the current values")
@click.option("--setter", required=True, help="Function that takes every field")
@click.option("--set", "assignments", multiple=True, required=True, help="field=value (repeatable)")
@click.option("--gas-ceiling", default=DEFAULT_INVOKE_GAS, type=int, show_default=True)
@click.option("--dry-run", is_flag=True, help="Show the resulting arguments without submitting")
@network_options
def update(
    contract: str,
    abi_name: str,
    getter: str,
    setter: str,
    assignments: tuple[str, ...],
    gas_ceiling: int,
    dry_run: bool,
    environment: Optional[str],
    rpc_url: Optional[str],
    mirror_url: Optional[str],
    artifacts_dir: Path,
) -> None:
    """Update only the named fields of a configuration setter."""
    updates = parse_assignments(assignments)

    click.echo(f"=== Update {abi_name}.{setter} ===")
    click.echo("")

    try:
        with open_pipeline(environment, rpc_url, mirror_url, artifacts_dir) as pipe:
            artifact = pipe.registry.load(abi_name)
            getter_entry, _ = resolve_function(artifact, getter, [])
            candidates = find_functions(artifact, setter)

            fields = call_read_only(pipe.context, pipe.session, artifact, contract, getter)
            current = current_values(getter_entry.get("outputs", []), fields)
            setter_entry = select_setter(candidates, current, updates)
            args = merge_updates(setter_entry.get("inputs", []), current, updates)

            # the executor re-resolves the overload from the values alone
            resolved, _ = resolve_function(artifact, setter, args)
            if signature(resolved) != signature(setter_entry):
                raise ArgumentTypeMismatch(
                    f"Fields {sorted(updates)} target {signature(setter_entry)} "
                    f"but the values resolve to {signature(resolved)}"
                )

            for param, value in zip(setter_entry.get("inputs", []), args):
                name = param.get("name", "")
                marker = click.style(" *", fg="yellow") if name in updates else "  "
                before = render_value(current.get(name)) if name in current else "-"
                click.echo(f"{marker} {name}: {before} -> {render_value(value)}")
            click.echo("")

            if dry_run:
                click.echo("Dry run: nothing submitted.")
                return

            estimate = estimate_gas(
                pipe.context, pipe.session, artifact, contract, setter, args, static_ceiling=gas_ceiling
            )
            result = execute_invoke(
                pipe.context, pipe.session, artifact, contract, setter, args, gas_limit=estimate.gas_limit
            )
    except HashsmithError as exc:
        fail(exc)
        return

    report_result(result, setter, estimate)
    if not result.ok:
        sys.exit(1)
