"""High-level orchestration of a feed check run."""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .config import Config, load_config, load_feeds
from .fetchers import FeedFetcher
from .models import FeedConfig, NewEntryRecord
from .normalize import normalize_entries
from .notify import EmailNotifier, NotificationError
from .reconcile import reconcile
from .state import WatermarkStore

LOGGER = logging.getLogger(__name__)


@dataclass
class FeedOutcome:
    feed_name: str
    status: str
    new_count: int = 0
    error: Optional[str] = None


@dataclass
class CheckResult:
    items: List[NewEntryRecord] = field(default_factory=list)
    outcomes: List[FeedOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[FeedOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "error"]


@dataclass
class Digest:
    created_at: datetime
    items: List[NewEntryRecord]

    def subject(self, prefix: str = "Feed digest") -> str:
        noun = "item" if len(self.items) == 1 else "items"
        return f"{prefix}: {len(self.items)} new {noun}"

    def _by_feed(self) -> Dict[str, List[NewEntryRecord]]:
        grouped: Dict[str, List[NewEntryRecord]] = {}
        for item in self.items:
            grouped.setdefault(item.feed_name, []).append(item)
        return grouped

    def to_markdown(self) -> str:
        lines = [f"# Feed Digest — {self.created_at.strftime('%Y-%m-%d')}", ""]
        for feed_name, items in self._by_feed().items():
            lines.append(f"## {feed_name}")
            lines.append("")
            for item in items:
                lines.append(f"### [{item.title}]({item.link})" if item.link else f"### {item.title}")
                lines.append(f"*Published:* {item.date or 'Unknown'}")
                lines.append("")
                if item.summary.strip():
                    lines.append(item.summary.strip())
                    lines.append("")
        return "\n".join(lines).strip() + "\n"

    def to_html(self) -> str:
        parts = [f"<h1>Feed Digest — {self.created_at.strftime('%Y-%m-%d')}</h1>"]
        for feed_name, items in self._by_feed().items():
            parts.append(f"<h2>{html.escape(feed_name)}</h2>")
            parts.append("<ul>")
            for item in items:
                title = html.escape(item.title)
                if item.link:
                    title = f'<a href="{html.escape(item.link, quote=True)}">{title}</a>'
                parts.append(f"<li><p><strong>{title}</strong><br><small>{html.escape(item.date or 'Unknown')}</small></p>")
                if item.summary.strip():
                    parts.append(f"<p>{html.escape(item.summary.strip())}</p>")
                parts.append("</li>")
            parts.append("</ul>")
        return "\n".join(parts) + "\n"


def check_feeds(
    feeds: List[FeedConfig],
    store: WatermarkStore,
    fetcher: FeedFetcher,
) -> CheckResult:
    """Check each feed in order, updating ``store`` in memory."""

    result = CheckResult()
    for feed in feeds:
        if not feed.enabled:
            continue
        try:
            entries = normalize_entries(fetcher.fetch(feed.url))
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("[error] %s: %s", feed.name, exc)
            result.outcomes.append(FeedOutcome(feed_name=feed.name, status="error", error=str(exc)))
            continue

        outcome = reconcile(feed.url, entries, store.get(feed.url))
        store.set(feed.url, outcome.watermark)

        if outcome.is_first_run:
            LOGGER.info("[init] %s: recorded state (%d items)", feed.name, len(entries))
            result.outcomes.append(FeedOutcome(feed_name=feed.name, status="init"))
            continue

        records = [NewEntryRecord.from_entry(feed, entry) for entry in outcome.new_entries]
        result.items.extend(records)
        LOGGER.info("[check] %s: %d new items", feed.name, len(records))
        result.outcomes.append(FeedOutcome(feed_name=feed.name, status="check", new_count=len(records)))
    return result


def write_batch(items: List[NewEntryRecord], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [item.to_dict() for item in items]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def write_digest(digest: Digest, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(digest.to_markdown(), encoding="utf-8")
    LOGGER.info("Digest written to %s", path)


def send_digest(digest: Digest, notifier: EmailNotifier, subject_prefix: str) -> bool:
    """Deliver the digest; failures are logged and reported as ``False``."""

    try:
        notifier.send(digest.subject(subject_prefix), digest.to_html(), digest.to_markdown())
    except NotificationError as exc:
        LOGGER.error("[notify] digest not delivered: %s", exc)
        return False
    return True


def run(
    config: Config | None = None,
    fetcher: FeedFetcher | None = None,
    notifier: EmailNotifier | None = None,
) -> CheckResult:
    config = config or load_config()
    feeds = load_feeds(config.feeds_file)
    LOGGER.info("Checking %d feeds", len(feeds))

    store = WatermarkStore(config.state_file)
    store.load()
    fetcher = fetcher or FeedFetcher(timeout=config.timeout, user_agent=config.user_agent)

    result = check_feeds(feeds, store, fetcher)
    store.save()

    write_batch(result.items, config.output_file)
    LOGGER.info("[done] %d new items written to %s", len(result.items), config.output_file)

    if config.notify and result.items:
        notifier = notifier or EmailNotifier(
            api_url=config.email_api_url,
            api_key=config.email_api_key,
            sender=config.email_from,
            recipients=config.email_to,
            timeout=config.timeout,
        )
        digest = Digest(created_at=datetime.now(timezone.utc), items=result.items)
        send_digest(digest, notifier, config.subject_prefix)
    return result


__all__ = [
    "CheckResult",
    "Digest",
    "FeedOutcome",
    "check_feeds",
    "run",
    "send_digest",
    "write_batch",
    "write_digest",
]
