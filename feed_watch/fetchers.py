"""Fetching and parsing RSS/Atom feeds into raw entries."""

from __future__ import annotations

import calendar
import logging
import time
from datetime import datetime, timezone
from typing import Any, List, Optional

import feedparser
import requests
from bs4 import BeautifulSoup

from .models import RawEntry
from .normalize import format_timestamp

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class FeedFetchError(Exception):
    """Raised when a feed cannot be downloaded or parsed."""


class FeedFetcher:
    """Download a feed over HTTP and map its entries to :class:`RawEntry`."""

    def __init__(self, timeout: float = 15.0, user_agent: str = "feed-watch/0.1") -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch(self, url: str) -> List[RawEntry]:
        """Download and parse ``url``; the whole download is bounded by ``timeout``."""

        deadline = time.monotonic() + self.timeout
        try:
            response = requests.get(
                url, timeout=self.timeout, headers={"User-Agent": self.user_agent}, stream=True
            )
            try:
                response.raise_for_status()
                chunks = []
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    chunks.append(chunk)
                    if time.monotonic() > deadline:
                        raise FeedFetchError(f"timed out after {self.timeout}s")
            finally:
                response.close()
        except requests.Timeout as exc:
            raise FeedFetchError(f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise FeedFetchError(str(exc)) from exc

        return self.parse(b"".join(chunks))

    def parse(self, document: bytes) -> List[RawEntry]:
        feed = feedparser.parse(document)
        if not feed.entries and (feed.bozo or not feed.get("version")):
            raise FeedFetchError(f"not a valid RSS or Atom feed: {feed.get('bozo_exception')}")

        entries = [_to_raw_entry(entry) for entry in feed.entries]
        LOGGER.debug("Parsed %d entries", len(entries))
        return entries


def _to_raw_entry(entry: Any) -> RawEntry:
    content = _first_content(entry) or entry.get("summary")
    return RawEntry(
        title=entry.get("title"),
        link=entry.get("link"),
        guid=entry.get("id"),
        date=_entry_date(entry),
        content=content,
        snippet=_text_snippet(content),
    )


def _entry_date(entry: Any) -> Optional[str]:
    """Return an ISO-8601 date for the entry, falling back to a raw string."""

    for field in ("published", "updated"):
        parsed = entry.get(f"{field}_parsed")
        if parsed:
            try:
                return format_timestamp(datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc))
            except (ValueError, OverflowError, TypeError) as exc:
                LOGGER.debug("Could not convert %s_parsed %r: %s", field, parsed, exc)
    for field in ("published", "updated"):
        if entry.get(field):
            return entry.get(field)
    return None


def _first_content(entry: Any) -> Optional[str]:
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return None


def _text_snippet(html: Optional[str]) -> Optional[str]:
    if not html:
        return None
    text = BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
    return " ".join(text.split()) or None
