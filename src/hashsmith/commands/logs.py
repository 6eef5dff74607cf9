"""
Logs - Decode a contract's historical events from the mirror node.

Output follows the mirror's order (newest first by default), one line per
event: ``@ <timestamp> : <Event> : <field> : <field> ...``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..conduit.mirror import DEFAULT_PAGE_SIZE, iter_contract_events
from ..errors import HashsmithError
from ._common import fail, format_event, network_options, open_pipeline, validate_contract


@click.command()
@click.option("--contract", required=True, callback=validate_contract, help="Contract id (0.0.x) or address")
@click.option("--abi-name", required=True, help="Contract name for artifact loading")
@click.option("--event", "event_name", default=None, help="Only show this event")
@click.option("--limit", default=DEFAULT_PAGE_SIZE, type=click.IntRange(1, 100), show_default=True)
@click.option("--order", type=click.Choice(["desc", "asc"]), default="desc", show_default=True)
@click.option("--pages", default=1, type=click.IntRange(min=0), show_default=True, help="Pages to follow (0 = all)")
@network_options
def logs(
    contract: str,
    abi_name: str,
    event_name: Optional[str],
    limit: int,
    order: str,
    pages: int,
    environment: Optional[str],
    rpc_url: Optional[str],
    mirror_url: Optional[str],
    artifacts_dir: Path,
) -> None:
    """Print decoded events emitted by a contract."""
    count = 0
    try:
        with open_pipeline(environment, rpc_url, mirror_url, artifacts_dir) as pipe:
            artifact = pipe.registry.load(abi_name)
            click.echo(f" -Getting event(s) for {contract} from {pipe.context.endpoint.mirror_url}")
            reader, events = iter_contract_events(
                pipe.session,
                artifact,
                contract,
                page_size=limit,
                order=order,
                max_pages=pages or None,
                event_filter=event_name,
            )
            for record in events:
                click.echo(format_event(record))
                count += 1
    except HashsmithError as exc:
        fail(exc)
        return

    click.echo("")
    click.echo(f"{count} event(s) decoded")
    if reader.skipped:
        click.secho(f"{len(reader.skipped)} log(s) skipped:", fg="yellow")
        for skipped in reader.skipped:
            click.echo(f"  @ {skipped.entry.get('timestamp')} : {skipped.reason}")
