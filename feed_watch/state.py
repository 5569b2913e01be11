"""Persisted per-feed watermarks."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict

from .models import NEVER_CHECKED, CheckedAt, NeverChecked, Watermark
from .normalize import parse_timestamp

LOGGER = logging.getLogger(__name__)


class StateError(Exception):
    """Raised when the watermark store cannot be written."""


class WatermarkStore:
    """JSON-backed mapping of feed URL to the last delivered timestamp."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: Dict[str, str] = {}

    def load(self) -> Dict[str, str]:
        """Read the store from disk; a missing or corrupt file loads as empty."""

        self._data = {}
        if not self.path.exists():
            return dict(self._data)
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.warning("Could not parse state file %s: %s", self.path, exc)
            return dict(self._data)
        if not isinstance(raw, dict):
            LOGGER.warning("Ignoring state file %s: expected a JSON object", self.path)
            return dict(self._data)

        for feed_id, value in raw.items():
            timestamp = parse_timestamp(value) if isinstance(value, str) else None
            if timestamp is None:
                LOGGER.warning("Dropping unreadable watermark for %s: %r", feed_id, value)
                continue
            self._data[feed_id] = timestamp
        return dict(self._data)

    def get(self, feed_id: str) -> Watermark:
        timestamp = self._data.get(feed_id)
        if timestamp is None:
            return NEVER_CHECKED
        return CheckedAt(timestamp)

    def set(self, feed_id: str, watermark: Watermark) -> None:
        if isinstance(watermark, NeverChecked):
            return
        current = self._data.get(feed_id)
        if current is not None and watermark.timestamp < current:
            LOGGER.warning(
                "Refusing to move watermark for %s backwards (%s -> %s)", feed_id, current, watermark.timestamp
            )
            return
        self._data[feed_id] = watermark.timestamp

    def save(self) -> None:
        """Replace the persisted store with the in-memory mapping."""

        payload = json.dumps(self._data, indent=2, sort_keys=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise StateError(f"Could not write state file {self.path}: {exc}") from exc
        LOGGER.debug("Saved %d watermarks to %s", len(self._data), self.path)


__all__ = ["StateError", "WatermarkStore"]
