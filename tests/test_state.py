"""Tests for the JSON watermark store."""

import json
import os

import pytest

from feed_watch.models import NEVER_CHECKED, CheckedAt
from feed_watch.state import StateError, WatermarkStore


def test_missing_file_loads_empty(tmp_path):
    store = WatermarkStore(tmp_path / "state.json")

    assert store.load() == {}
    assert store.get("https://example.com/feed") == NEVER_CHECKED


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", "", "\xff\xfe"])
def test_corrupt_file_loads_empty(tmp_path, content):
    path = tmp_path / "state.json"
    path.write_text(content, encoding="latin-1")

    assert WatermarkStore(path).load() == {}


def test_load_canonicalises_values_and_drops_unreadable_ones(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(
        json.dumps(
            {
                "https://a.example/feed": "2024-01-01T02:00:00+02:00",
                "https://b.example/feed": "2024-01-05T00:00:00.000Z",
                "https://c.example/feed": "garbage",
                "https://d.example/feed": 12,
            }
        ),
        encoding="utf-8",
    )

    store = WatermarkStore(path)

    assert store.load() == {
        "https://a.example/feed": "2024-01-01T00:00:00.000Z",
        "https://b.example/feed": "2024-01-05T00:00:00.000Z",
    }
    assert store.get("https://c.example/feed") == NEVER_CHECKED


def test_save_round_trips_and_leaves_no_temp_files(tmp_path):
    path = tmp_path / "nested" / "state.json"
    store = WatermarkStore(path)
    store.set("https://a.example/feed", CheckedAt("2024-01-01T00:00:00.000Z"))
    store.set("https://b.example/feed", NEVER_CHECKED)
    store.save()

    assert json.loads(path.read_text(encoding="utf-8")) == {"https://a.example/feed": "2024-01-01T00:00:00.000Z"}
    assert os.listdir(path.parent) == ["state.json"]

    reloaded = WatermarkStore(path)
    reloaded.load()
    assert reloaded.get("https://a.example/feed") == CheckedAt("2024-01-01T00:00:00.000Z")


def test_save_replaces_previous_contents(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"https://old.example/feed": "2023-01-01T00:00:00.000Z"}), encoding="utf-8")

    store = WatermarkStore(path)
    store.set("https://new.example/feed", CheckedAt("2024-01-01T00:00:00.000Z"))
    store.save()

    assert json.loads(path.read_text(encoding="utf-8")) == {"https://new.example/feed": "2024-01-01T00:00:00.000Z"}


def test_set_never_lowers_a_watermark(tmp_path):
    store = WatermarkStore(tmp_path / "state.json")
    store.set("feed", CheckedAt("2024-02-01T00:00:00.000Z"))
    store.set("feed", CheckedAt("2024-01-01T00:00:00.000Z"))

    assert store.get("feed") == CheckedAt("2024-02-01T00:00:00.000Z")


def test_failed_write_raises_state_error_and_keeps_old_file(tmp_path, monkeypatch):
    path = tmp_path / "state.json"
    path.write_text('{"feed": "2024-01-01T00:00:00.000Z"}', encoding="utf-8")
    store = WatermarkStore(path)
    store.load()
    store.set("feed", CheckedAt("2024-03-01T00:00:00.000Z"))

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)

    with pytest.raises(StateError, match="disk full"):
        store.save()
    assert path.read_text(encoding="utf-8") == '{"feed": "2024-01-01T00:00:00.000Z"}'
    assert sorted(os.listdir(tmp_path)) == ["state.json"]
