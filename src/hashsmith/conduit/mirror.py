"""
Mirror/Historical Log Fetcher.

Reads ``/api/v1/contracts/{id}/results/logs`` from the mirror node and decodes
every entry with the same decoder used for live receipts. This is a
presentation path: an entry that cannot be decoded is reported and skipped,
never allowed to abort the rest of the page.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Optional

from ..errors import LocalError, LogDecodeSkipped, NetworkError
from .artifacts import ContractArtifact
from .decoder import EventRecord, decode_log
from .rpc import LedgerSession

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
EMPTY_DATA = (None, "", "0x")


def fetch_logs(
    session: LedgerSession,
    contract_id: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    order: str = "desc",
    max_pages: Optional[int] = 1,
) -> Iterator[dict[str, Any]]:
    """
    Lazily yield raw log entries for a contract, in the order received.

    Args:
        session: Ledger session
        contract_id: Contract entity id or 0x address
        page_size: Entries per page (mirror caps this at 100)
        order: "desc" (newest first) or "asc"
        max_pages: Pages to follow via ``links.next``; None follows all

    Raises:
        TransportFailure: If the first page cannot be fetched
    """
    if order not in ("asc", "desc"):
        raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")

    path: Optional[str] = f"/api/v1/contracts/{contract_id}/results/logs"
    params: Optional[dict] = {"order": order, "limit": page_size}
    pages = 0

    while path and (max_pages is None or pages < max_pages):
        try:
            page = session.mirror_get(path, params)
        except NetworkError as exc:
            if pages == 0:
                raise
            logger.warning("Stopping after %d page(s): %s", pages, exc)
            return
        pages += 1

        for entry in page.get("logs", []):
            yield entry

        # links.next already carries the query string
        path = (page.get("links") or {}).get("next")
        params = None


class MirrorLogReader:
    """
    Decodes raw mirror log entries into EventRecords.

    Entries with empty data are dropped before decoding. Entries that fail
    to decode (unknown event, mismatched data) are collected in ``skipped``.

    Args:
        artifact: Artifact whose events are recognised
        event_filter: Only yield events with this name
    """

    def __init__(self, artifact: ContractArtifact, event_filter: Optional[str] = None) -> None:
        self.artifact = artifact
        self.event_filter = event_filter
        self.skipped: list[LogDecodeSkipped] = []
        self.decode_attempts = 0

    def events(self, entries: Iterable[dict[str, Any]]) -> Iterator[EventRecord]:
        for entry in entries:
            data = entry.get("data")
            if data in EMPTY_DATA:
                continue

            self.decode_attempts += 1
            try:
                record = decode_log(
                    self.artifact,
                    entry.get("topics") or [],
                    data,
                    timestamp=entry.get("timestamp"),
                )
            except LocalError as exc:
                skipped = LogDecodeSkipped(entry, str(exc))
                self.skipped.append(skipped)
                logger.warning("Skipping log @ %s: %s", entry.get("timestamp"), exc)
                continue

            if self.event_filter and record.event_name != self.event_filter:
                continue
            yield record


def iter_contract_events(
    session: LedgerSession,
    artifact: ContractArtifact,
    contract_id: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    order: str = "desc",
    max_pages: Optional[int] = 1,
    event_filter: Optional[str] = None,
) -> tuple[MirrorLogReader, Iterator[EventRecord]]:
    """Convenience wrapper: the reader (for ``skipped``) and its event stream."""
    reader = MirrorLogReader(artifact, event_filter=event_filter)
    entries = fetch_logs(session, contract_id, page_size, order, max_pages)
    return reader, reader.events(entries)
