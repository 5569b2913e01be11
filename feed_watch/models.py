"""Shared dataclasses and type definitions for the feed watcher."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Union

NO_TITLE = "(no title)"


@dataclass(frozen=True)
class FeedConfig:
    """A configured feed; ``url`` doubles as the watermark key."""

    url: str
    name: str
    enabled: bool = True


@dataclass
class RawEntry:
    """Entry as produced by the fetch/parse collaborator."""

    title: Optional[str] = None
    link: Optional[str] = None
    guid: Optional[str] = None
    date: Optional[str] = None
    content: Optional[str] = None
    snippet: Optional[str] = None


@dataclass(frozen=True)
class NormalizedEntry:
    """Canonical entry record.

    ``timestamp`` is the canonical UTC form of ``raw_date`` and is present
    only when ``raw_date`` was present and parseable.
    """

    title: str
    link: str
    raw_date: Optional[str]
    timestamp: Optional[str]
    summary: str


@dataclass(frozen=True)
class NeverChecked:
    """Watermark state of a feed with no recorded timestamp."""


@dataclass(frozen=True)
class CheckedAt:
    """Watermark state holding the newest delivered timestamp."""

    timestamp: str


Watermark = Union[NeverChecked, CheckedAt]

NEVER_CHECKED = NeverChecked()


@dataclass(frozen=True)
class NewEntryRecord:
    """Externally visible shape of a new entry."""

    feed_name: str
    title: str
    link: str
    date: str
    summary: str

    @classmethod
    def from_entry(cls, feed: FeedConfig, entry: NormalizedEntry) -> "NewEntryRecord":
        return cls(
            feed_name=feed.name,
            title=entry.title,
            link=entry.link,
            date=entry.raw_date or "",
            summary=entry.summary,
        )

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data["feedName"] = data.pop("feed_name")
        return {key: data[key] for key in ("feedName", "title", "link", "date", "summary")}
