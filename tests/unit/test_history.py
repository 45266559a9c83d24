"""Tests for session history."""

import json
import tempfile
from pathlib import Path

from skill_dispatch import SessionHistory, record_match


class TestSessionHistoryRecord:
    """Test recording skill invocations."""

    def test_record_creates_file(self) -> None:
        """Recording into a missing file starts a new log."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "history.json"
            SessionHistory(path, clock=lambda: 100.0, session_id=lambda: 7).record("brainstorming")

            stored = json.loads(path.read_text())
            assert stored == {"pid": 7, "history": [{"skill": "brainstorming", "ts": 100.0}]}

    def test_record_appends_in_same_session(self) -> None:
        """Entries accumulate while the session is unchanged."""
        with tempfile.TemporaryDirectory() as tmpdir:
            history = SessionHistory(Path(tmpdir) / "h.json", clock=lambda: 1.0, session_id=lambda: 7)
            history.record("a")
            record = history.record("b")
            assert [e["skill"] for e in record["history"]] == ["a", "b"]

    def test_session_change_resets_history(self) -> None:
        """A different parent pid starts a fresh log before appending."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "h.json"
            path.write_text(json.dumps({"pid": 111, "history": [{"skill": "old", "ts": 1.0}]}))

            record = SessionHistory(path, clock=lambda: 2.0, session_id=lambda: 222).record("new")

            assert record["pid"] == 222
            assert record["history"] == [{"skill": "new", "ts": 2.0}]
            assert json.loads(path.read_text()) == record

    def test_keeps_only_last_ten(self) -> None:
        """The oldest entries are dropped beyond ten."""
        with tempfile.TemporaryDirectory() as tmpdir:
            history = SessionHistory(Path(tmpdir) / "h.json", clock=lambda: 1.0, session_id=lambda: 7)
            for i in range(12):
                history.record(f"skill-{i}")

            entries = history.load()["history"]
            assert len(entries) == 10
            assert entries[0]["skill"] == "skill-2"
            assert entries[-1]["skill"] == "skill-11"

    def test_corrupt_file_treated_as_empty(self) -> None:
        """A corrupt file is replaced by a fresh record."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "h.json"
            path.write_text("{{{")
            record = SessionHistory(path, clock=lambda: 1.0, session_id=lambda: 7).record("a")
            assert record["history"] == [{"skill": "a", "ts": 1.0}]

    def test_write_failure_is_ignored(self) -> None:
        """Unwritable locations do not raise."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "missing-dir" / "h.json"
            record = SessionHistory(path, clock=lambda: 1.0, session_id=lambda: 7).record("a")
            assert record["history"][0]["skill"] == "a"
            assert not path.exists()

    def test_record_match_helper(self) -> None:
        """record_match writes to the given path."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "h.json"
            record_match("deploy", path)
            assert json.loads(path.read_text())["history"][-1]["skill"] == "deploy"


class TestSessionHistoryRecent:
    """Test reading back the last invocation."""

    def test_last_entry_empty(self) -> None:
        """No file means no last entry."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert SessionHistory(Path(tmpdir) / "h.json").last_entry() is None

    def test_last_entry_malformed(self) -> None:
        """Entries without a numeric timestamp are ignored."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "h.json"
            path.write_text(json.dumps({"pid": 1, "history": [{"skill": "a", "ts": "yesterday"}]}))
            assert SessionHistory(path).last_entry() is None

    def test_last_entry_non_string_skill(self) -> None:
        """Entries whose skill is not a string are ignored."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "h.json"
            path.write_text(json.dumps({"pid": 1, "history": [{"skill": {"name": "a"}, "ts": 1_000.0}]}))
            assert SessionHistory(path).last_entry() is None

    def test_recent_skill_within_window(self) -> None:
        """The last skill is reported while it is recent."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "h.json"
            path.write_text(json.dumps({"pid": 1, "history": [{"skill": "a", "ts": 1_000.0}]}))
            history = SessionHistory(path, clock=lambda: 1_000.0 + 2 * 60 * 60)
            assert history.recent_skill() == "a"

    def test_recent_skill_outside_window(self) -> None:
        """Old entries are not recent but stay on disk."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "h.json"
            path.write_text(json.dumps({"pid": 1, "history": [{"skill": "a", "ts": 1_000.0}]}))
            history = SessionHistory(path, clock=lambda: 1_000.0 + 2 * 60 * 60 + 1)
            assert history.recent_skill() is None
            assert history.load()["history"] == [{"skill": "a", "ts": 1_000.0}]
