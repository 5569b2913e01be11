"""Normalization of raw feed entries into canonical, comparable records.

Timestamps are compared as strings, so every timestamp that reaches the
reconciliation step is rendered in a single representation: UTC with
millisecond precision and a ``Z`` suffix (``2024-01-03T08:30:00.000Z``).
Lexicographic order on that form matches chronological order.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from dateutil import parser as date_parser

from .models import NO_TITLE, NormalizedEntry, RawEntry

LOGGER = logging.getLogger(__name__)

# Two defaults differing in year, month and day; a complete date parses the same under both.
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the canonical UTC form."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc).replace(tzinfo=None)
    return utc.isoformat(timespec="milliseconds") + "Z"


def parse_timestamp(value: Optional[str]) -> Optional[str]:
    """Parse a date string into the canonical form, or ``None`` if it can't be.

    Strings that leave out the year, month or day ("Monday", "Jan 5",
    "10:30") are rejected instead of being completed from today's date.
    A missing time of day counts as midnight.
    """

    if not value or not value.strip():
        return None
    try:
        first = date_parser.parse(value, default=_DEFAULT_A)
        second = date_parser.parse(value, default=_DEFAULT_B)
    except (ValueError, TypeError, OverflowError) as exc:
        LOGGER.debug("Unparseable entry date %r: %s", value, exc)
        return None
    if first.date() != second.date():
        LOGGER.debug("Incomplete entry date %r", value)
        return None
    try:
        return format_timestamp(first)
    except (ValueError, OverflowError) as exc:
        LOGGER.debug("Out of range entry date %r: %s", value, exc)
        return None


def normalize_entry(raw: RawEntry) -> NormalizedEntry:
    return NormalizedEntry(
        title=raw.title or NO_TITLE,
        link=raw.link or "",
        raw_date=raw.date or None,
        timestamp=parse_timestamp(raw.date),
        summary=raw.snippet or raw.content or "",
    )


def sort_newest_first(entries: Iterable[NormalizedEntry]) -> List[NormalizedEntry]:
    """Sort entries newest-first; undated entries go last, ties keep source order."""

    entries = list(entries)
    dated = [entry for entry in entries if entry.timestamp is not None]
    undated = [entry for entry in entries if entry.timestamp is None]
    # sorted() is stable, and reverse=True preserves the order of equal keys.
    dated = sorted(dated, key=lambda entry: entry.timestamp, reverse=True)
    return dated + undated


def normalize_entries(raws: Iterable[RawEntry]) -> List[NormalizedEntry]:
    return sort_newest_first([normalize_entry(raw) for raw in raws])
