"""Decide which entries of a feed are new relative to its watermark."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from .models import CheckedAt, NeverChecked, NormalizedEntry, Watermark

LOGGER = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    new_entries: List[NormalizedEntry] = field(default_factory=list)
    watermark: Watermark = field(default_factory=NeverChecked)
    is_first_run: bool = False


def reconcile(feed_id: str, entries: Iterable[NormalizedEntry], watermark: Watermark) -> ReconcileResult:
    """Compute the new entries of ``feed_id`` and its advanced watermark.

    ``entries`` must already be sorted newest-first with undated entries
    last (see :func:`feed_watch.normalize.sort_newest_first`). It is
    consumed lazily: the walk stops at the first dated entry that is not
    newer than the watermark, and nothing after it is inspected.

    On a first run (no watermark, at least one entry) nothing is reported
    new; the watermark is set from the newest entry only, and stays unset
    when that entry is undated. Once a watermark exists, undated entries
    are never reported and never move it.
    """

    iterator = iter(entries)

    if isinstance(watermark, NeverChecked):
        newest = next(iterator, None)
        if newest is None:
            return ReconcileResult(watermark=watermark)
        if newest.timestamp is not None:
            return ReconcileResult(watermark=CheckedAt(newest.timestamp), is_first_run=True)
        return ReconcileResult(watermark=watermark, is_first_run=True)

    new_entries: List[NormalizedEntry] = []
    latest = watermark.timestamp
    for entry in iterator:
        if entry.timestamp is None:
            continue
        if entry.timestamp <= watermark.timestamp:
            break
        new_entries.append(entry)
        latest = max(latest, entry.timestamp)

    LOGGER.debug("%s: %d new entries, watermark %s -> %s", feed_id, len(new_entries), watermark.timestamp, latest)
    return ReconcileResult(new_entries=new_entries, watermark=CheckedAt(latest))
