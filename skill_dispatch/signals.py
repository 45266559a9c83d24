"""
Context checks for Layer 1.5 re-ranking.

Four independent checks inspect the environment a prompt was typed in:

- directory: regex patterns matched against the working directory path
- file types: extension histogram of the working directory listing
- project markers: marker files in the working directory or its ancestors
- session sequence: skills that usually follow the last one invoked

Each check is bounded and side-effect free. A failing check resolves to no
signal; it never fails the routing call. Filesystem access and history are
injected so each check can be exercised with fixed data.
"""

import logging
import os
import re
from collections import Counter
from collections.abc import Callable

from skill_dispatch.history import SESSION_WINDOW_SECONDS, SessionHistory
from skill_dispatch.models import ContextSignals, RuleSet

__all__ = [
    "MAX_LISTED_ENTRIES",
    "MIN_FILE_TYPE_COUNT",
    "MAX_MARKER_DEPTH",
    "FIRST_SUCCESSOR_BOOST",
    "LATER_SUCCESSOR_BOOST",
    "ContextSignalResolver",
]

logger = logging.getLogger(__name__)

MAX_LISTED_ENTRIES = 50
MIN_FILE_TYPE_COUNT = 3
MAX_MARKER_DEPTH = 6  # cwd plus 5 ancestors
FIRST_SUCCESSOR_BOOST = 2
LATER_SUCCESSOR_BOOST = 1


def _accumulate(target: dict[str, int], boosts: dict[str, int]) -> None:
    for key, value in boosts.items():
        target[key] = target.get(key, 0) + value


class ContextSignalResolver:
    """
    Resolves the context signals configured in a rule set for a working directory.

    Attributes:
        ruleset: The rule set whose signal sections are checked
        history: Session history for sequence boosts (None disables them)
    """

    def __init__(
        self,
        ruleset: RuleSet,
        history: SessionHistory | None = None,
        list_dir: Callable[[str], list[str]] = os.listdir,
        path_exists: Callable[[str], bool] = os.path.exists,
    ):
        """
        Args:
            ruleset: The rule set whose signal sections are checked
            history: Session history for sequence boosts (None disables them)
            list_dir: Lists the entry names of a directory
            path_exists: Tells whether a path exists
        """
        self.ruleset = ruleset
        self.history = history
        self._list_dir = list_dir
        self._path_exists = path_exists

    def resolve(self, cwd: str, overrides: dict[str, dict[str, int]] | None = None) -> ContextSignals:
        """
        Run all checks for ``cwd``.

        Args:
            cwd: Absolute working directory
            overrides: Fixed check outputs replacing the real checks. Keys are
                ``directory``, ``file_types``, ``marker_boosts``,
                ``marker_penalties`` and ``sequence``. Overriding
                ``marker_boosts`` without ``marker_penalties`` gives empty
                penalties.

        Returns:
            The resolved signals
        """
        overrides = overrides or {}

        directory = overrides.get("directory")
        if directory is None:
            directory = self.directory_boosts(cwd)

        file_types = overrides.get("file_types")
        if file_types is None:
            file_types = self.file_type_boosts(cwd)

        if overrides.get("marker_boosts") is not None:
            marker_boosts = overrides["marker_boosts"]
            marker_penalties = overrides.get("marker_penalties") or {}
        else:
            marker_boosts, marker_penalties = self.marker_signals(cwd)

        sequence = overrides.get("sequence")
        if sequence is None:
            sequence = self.sequence_boosts()

        return ContextSignals(
            directory=directory,
            file_types=file_types,
            marker_boosts=marker_boosts,
            marker_penalties=marker_penalties,
            sequence=sequence,
        )

    def directory_boosts(self, cwd: str) -> dict[str, int]:
        """Sum the boosts of every directory signal whose pattern matches ``cwd``."""
        boosts: dict[str, int] = {}
        for signal in self.ruleset.directory_signals:
            try:
                matched = re.search(signal.pattern, cwd)
            except re.error as e:
                logger.debug(f"Skipping invalid directory pattern {signal.pattern!r}: {e}")
                continue
            if matched:
                _accumulate(boosts, signal.boosts)
        return boosts

    def file_type_boosts(self, cwd: str) -> dict[str, int]:
        """
        Boost categories for extensions common in ``cwd``.

        Only the first 50 entries (by name) are inspected. An extension must
        occur at least three times to count.
        """
        if not self.ruleset.file_type_signals:
            return {}

        try:
            entries = sorted(self._list_dir(cwd))[:MAX_LISTED_ENTRIES]
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot list {cwd}: {e}")
            return {}

        counts = Counter(ext.lower() for ext in (os.path.splitext(name)[1] for name in entries) if ext)

        boosts: dict[str, int] = {}
        for ext, count in counts.items():
            if count >= MIN_FILE_TYPE_COUNT and ext in self.ruleset.file_type_signals:
                _accumulate(boosts, self.ruleset.file_type_signals[ext])
        return boosts

    def marker_signals(self, cwd: str) -> tuple[dict[str, int], dict[str, int]]:
        """
        Evaluate project markers for ``cwd``.

        Returns:
            Tuple of (boosts for markers whose ``file`` was found,
            penalties for markers whose ``absent`` file was not found)
        """
        boosts: dict[str, int] = {}
        penalties: dict[str, int] = {}

        for marker in self.ruleset.project_markers:
            if marker.file and self._found_upward(cwd, marker.file):
                _accumulate(boosts, marker.boosts)
            if marker.absent and not self._found_upward(cwd, marker.absent):
                _accumulate(penalties, marker.penalties)

        return boosts, penalties

    def sequence_boosts(self) -> dict[str, int]:
        """
        Boost the usual successors of the last skill invoked this session.

        The first listed successor gets +2, every later one +1. Nothing is
        boosted if the last invocation is older than two hours.
        """
        if self.history is None or not self.ruleset.skill_sequences:
            return {}

        last_skill = self.history.recent_skill(SESSION_WINDOW_SECONDS)
        if last_skill is None:
            return {}

        successors = self.ruleset.skill_sequences.get(last_skill)
        if not successors:
            return {}

        boosts: dict[str, int] = {}
        for position, command in enumerate(successors):
            boosts[command] = FIRST_SUCCESSOR_BOOST if position == 0 else LATER_SUCCESSOR_BOOST
        return boosts

    def _found_upward(self, cwd: str, name: str) -> bool:
        """Look for ``name`` in ``cwd`` and up to five of its ancestors."""
        directory = cwd
        for _ in range(MAX_MARKER_DEPTH):
            try:
                if self._path_exists(os.path.join(directory, name)):
                    return True
            except (OSError, ValueError) as e:
                logger.debug(f"Cannot check {name} in {directory}: {e}")
            parent = os.path.dirname(directory)
            if parent == directory:
                break
            directory = parent
        return False
