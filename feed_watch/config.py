"""Configuration utilities for the feed watcher."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from .models import FeedConfig

DEFAULT_DATA_DIR = Path(os.getenv("FEED_WATCH_DATA_DIR", "data"))
DEFAULT_FEEDS_FILE = Path("feeds.yml")
DEFAULT_STATE_FILE = DEFAULT_DATA_DIR / "state.json"
DEFAULT_OUTPUT_FILE = DEFAULT_DATA_DIR / "new-items.json"
DEFAULT_TIMEOUT = 15.0
DEFAULT_EMAIL_API_URL = "https://api.resend.com/emails"

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when the run configuration or feed list is unusable."""


@dataclass(frozen=True)
class Config:
    """Runtime configuration values for a check run."""

    feeds_file: Path = DEFAULT_FEEDS_FILE
    state_file: Path = DEFAULT_STATE_FILE
    output_file: Path = DEFAULT_OUTPUT_FILE
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = "feed-watch/0.1"
    notify: bool = False
    email_api_url: str = DEFAULT_EMAIL_API_URL
    email_api_key: Optional[str] = None
    email_from: Optional[str] = None
    email_to: Tuple[str, ...] = field(default_factory=tuple)
    subject_prefix: str = "Feed digest"


def load_config() -> Config:
    """Load configuration from environment variables and defaults."""

    data_dir = Path(os.getenv("FEED_WATCH_DATA_DIR", str(DEFAULT_DATA_DIR)))
    raw_timeout = os.getenv("FEED_WATCH_TIMEOUT")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    except ValueError as exc:
        raise ConfigError(f"FEED_WATCH_TIMEOUT must be a number, got {raw_timeout!r}") from exc
    if timeout <= 0:
        raise ConfigError(f"FEED_WATCH_TIMEOUT must be positive, got {raw_timeout!r}")

    recipients = tuple(
        address.strip() for address in os.getenv("EMAIL_TO", "").split(",") if address.strip()
    )
    return Config(
        feeds_file=Path(os.getenv("FEED_WATCH_FEEDS_FILE", str(DEFAULT_FEEDS_FILE))),
        state_file=Path(os.getenv("FEED_WATCH_STATE_FILE", str(data_dir / "state.json"))),
        output_file=Path(os.getenv("FEED_WATCH_OUTPUT_FILE", str(data_dir / "new-items.json"))),
        timeout=timeout,
        notify=os.getenv("FEED_WATCH_NOTIFY", "").strip().lower() in _TRUTHY,
        email_api_url=os.getenv("EMAIL_API_URL", DEFAULT_EMAIL_API_URL),
        email_api_key=os.getenv("EMAIL_API_KEY"),
        email_from=os.getenv("EMAIL_FROM"),
        email_to=recipients,
        subject_prefix=os.getenv("FEED_WATCH_SUBJECT", "Feed digest"),
    )


def load_feeds(path: Path) -> List[FeedConfig]:
    """Read the YAML feed list, keeping enabled feeds in file order.

    The document is a mapping with a ``feeds`` list; each item needs a
    ``url`` and may set ``name`` and ``enabled``. Only an explicit
    ``enabled: false`` disables a feed.
    """

    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Could not read feed list {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in feed list {path}: {exc}") from exc

    if document is None:
        return []
    if not isinstance(document, dict):
        raise ConfigError(f"Feed list {path} must be a mapping with a 'feeds' key")

    items = document.get("feeds") or []
    if not isinstance(items, list):
        raise ConfigError(f"'feeds' in {path} must be a list")

    feeds: List[FeedConfig] = []
    for position, item in enumerate(items, start=1):
        if not isinstance(item, dict) or not item.get("url"):
            raise ConfigError(f"Feed #{position} in {path} has no url")
        url = str(item["url"]).strip()
        feed = FeedConfig(url=url, name=str(item.get("name") or url), enabled=item.get("enabled") is not False)
        if feed.enabled:
            feeds.append(feed)
    return feeds
