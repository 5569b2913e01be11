"""Shared test fixtures for feed watcher tests."""

from typing import Dict, List, Optional, Union

import pytest

from feed_watch.models import NormalizedEntry, RawEntry
from feed_watch.normalize import parse_timestamp


SAMPLE_RSS_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>A test RSS feed</description>
    <item>
      <title>Second Article</title>
      <link>https://example.com/article-2</link>
      <guid>article-2</guid>
      <description>&lt;p&gt;Description of the &lt;b&gt;second&lt;/b&gt; article&lt;/p&gt;</description>
      <pubDate>Tue, 02 Jan 2024 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>First Article</title>
      <link>https://example.com/article-1</link>
      <guid>article-1</guid>
      <description>Description of the first article</description>
      <pubDate>Mon, 01 Jan 2024 10:00:00 +0200</pubDate>
    </item>
    <item>
      <link>https://example.com/undated</link>
      <description>No title and no date</description>
    </item>
  </channel>
</rss>"""

SAMPLE_ATOM_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Test Atom Feed</title>
  <link href="https://example.com"/>
  <entry>
    <title>Atom Entry 1</title>
    <link href="https://example.com/entry-1"/>
    <id>urn:uuid:entry-1</id>
    <summary>Summary of entry 1</summary>
    <content type="html">&lt;p&gt;Full content of entry 1&lt;/p&gt;</content>
    <updated>2024-02-01T10:00:00Z</updated>
  </entry>
</feed>"""

SAMPLE_NOT_A_FEED = b"""<html><body><p>This is not a feed"""


def make_entry(date: Optional[str], title: Optional[str] = None) -> NormalizedEntry:
    """Build a normalized entry dated ``date`` (raw string, may be ``None``)."""
    return NormalizedEntry(
        title=title or f"Entry {date}",
        link=f"https://example.com/{title or date}",
        raw_date=date,
        timestamp=parse_timestamp(date),
        summary="",
    )


def make_raw(date: Optional[str], title: Optional[str] = None) -> RawEntry:
    return RawEntry(
        title=title or f"Entry {date}",
        link=f"https://example.com/{title or date}",
        date=date,
        snippet=f"About {title or date}",
    )


class StubFetcher:
    """Fetcher returning canned entries per URL, or raising a canned error."""

    def __init__(self, responses: Dict[str, Union[List[RawEntry], Exception]]):
        self.responses = responses
        self.calls: List[str] = []

    def fetch(self, url: str) -> List[RawEntry]:
        self.calls.append(url)
        response = self.responses.get(url, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


@pytest.fixture
def sample_rss_xml():
    """Sample valid RSS 2.0 XML."""
    return SAMPLE_RSS_XML


@pytest.fixture
def sample_atom_xml():
    """Sample valid Atom XML."""
    return SAMPLE_ATOM_XML


@pytest.fixture
def sample_not_a_feed():
    """Sample document that is not a feed."""
    return SAMPLE_NOT_A_FEED


@pytest.fixture
def feeds_file(tmp_path):
    """Write a YAML feed list with two enabled feeds and one disabled feed."""
    path = tmp_path / "feeds.yml"
    path.write_text(
        "feeds:\n"
        "  - name: Alpha\n"
        "    url: https://alpha.example/feed\n"
        "  - name: Beta\n"
        "    url: https://beta.example/feed\n"
        "  - name: Gamma\n"
        "    url: https://gamma.example/feed\n"
        "    enabled: false\n",
        encoding="utf-8",
    )
    return path
