"""
Session history of skill invocations.

The history file holds a bounded log of the skills invoked in the current
session, used to boost likely follow-up skills. A session is identified by
the parent process id of the caller; when it changes, the log starts over.

History is advisory: read failures produce an empty record and write
failures are ignored. Concurrent writers are last-writer-wins.
"""

import json
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

__all__ = [
    "MAX_HISTORY_ENTRIES",
    "SESSION_WINDOW_SECONDS",
    "SessionHistory",
    "current_session_id",
    "record_match",
]

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 10
SESSION_WINDOW_SECONDS = 2 * 60 * 60


def current_session_id() -> int:
    """Return the parent process id, or this process's id if no parent is observable."""
    return os.getppid() or os.getpid()


class SessionHistory:
    """
    File-backed log of recent skill invocations.

    Attributes:
        path: Location of the JSON history file
    """

    def __init__(
        self,
        path: Path | str,
        clock: Callable[[], float] = time.time,
        session_id: Callable[[], int] = current_session_id,
    ):
        """
        Args:
            path: Location of the JSON history file
            clock: Returns the current time in seconds since the epoch
            session_id: Returns the identifier of the current session
        """
        self.path = Path(path)
        self._clock = clock
        self._session_id = session_id

    def load(self) -> dict:
        """
        Read the stored record.

        Returns:
            ``{"pid": int | None, "history": [{"skill": str, "ts": float}]}``.
            A missing or corrupt file yields an empty record.
        """
        try:
            record = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug(f"No usable session history at {self.path}: {e}")
            return {"pid": None, "history": []}

        if not isinstance(record, dict) or not isinstance(record.get("history"), list):
            logger.debug(f"Malformed session history at {self.path}, starting fresh")
            return {"pid": None, "history": []}

        return record

    def record(self, skill: str) -> dict:
        """
        Append an invocation of ``skill`` to the log.

        Prior entries are discarded when the stored session differs from the
        current one. Only the newest ``MAX_HISTORY_ENTRIES`` are kept.

        Args:
            skill: The command of the skill that was invoked

        Returns:
            The record as written (or as it would have been written)
        """
        record = self.load()
        pid = self._session_id()

        if record.get("pid") and record["pid"] != pid:
            logger.debug(f"Session changed ({record['pid']} -> {pid}), resetting history")
            record["history"] = []

        record["pid"] = pid
        record["history"].append({"skill": skill, "ts": self._clock()})
        record["history"] = record["history"][-MAX_HISTORY_ENTRIES:]

        try:
            self.path.write_text(json.dumps(record), encoding="utf-8")
        except OSError as e:
            logger.debug(f"Could not write session history to {self.path}: {e}")

        return record

    def last_entry(self) -> dict | None:
        """Return the most recent entry, or None if the log is empty or malformed."""
        history = self.load()["history"]
        if not history:
            return None

        entry = history[-1]
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("skill"), str)
            or not isinstance(entry.get("ts"), (int, float))
        ):
            return None
        return entry

    def recent_skill(self, window: float = SESSION_WINDOW_SECONDS) -> str | None:
        """
        Return the last invoked skill if it was invoked within ``window`` seconds.

        Older entries stay on disk; they are just not considered recent.
        """
        entry = self.last_entry()
        if entry is None:
            return None
        if self._clock() - entry["ts"] > window:
            return None
        return entry["skill"]


def record_match(command: str, history_path: Path | str) -> None:
    """Record that ``command`` was invoked, in the history file at ``history_path``."""
    SessionHistory(history_path).record(command)
