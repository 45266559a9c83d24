"""
Fingerprint-keyed cache of routing results.

Entries are ``{"ts": float, "value": ...}`` keyed by a digest of the prompt
prefix and the working directory. Pruning is a pure function so eviction
boundaries can be checked directly.
"""

import hashlib
import json
import logging
import time
from collections.abc import Callable
from pathlib import Path

__all__ = ["PROMPT_PREFIX_LENGTH", "hash_prompt", "prune_cache", "RouteCache"]

logger = logging.getLogger(__name__)

PROMPT_PREFIX_LENGTH = 200


def hash_prompt(prompt: str, cwd: str) -> str:
    """Fingerprint the first 200 characters of ``prompt`` together with ``cwd``."""
    material = f"{prompt[:PROMPT_PREFIX_LENGTH]}|{cwd}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def prune_cache(cache: dict[str, dict], ttl: float, now: float | None = None) -> dict[str, dict]:
    """
    Return a copy of ``cache`` without expired entries.

    An entry survives when its age (``now - entry["ts"]``) is strictly below
    ``ttl``. The input mapping is not modified.

    Args:
        cache: Mapping of fingerprint -> entry
        ttl: Maximum age in seconds
        now: Current time; defaults to ``time.time()``

    Returns:
        A new mapping holding only the live entries
    """
    if now is None:
        now = time.time()
    return {key: entry for key, entry in cache.items() if now - entry["ts"] < ttl}


class RouteCache:
    """
    JSON file store for routing results.

    Read failures give an empty store and write failures are ignored; the
    cache only saves work, it is never needed for a correct result.
    """

    def __init__(self, path: Path | str, ttl: float, clock: Callable[[], float] = time.time):
        """
        Args:
            path: Location of the JSON cache file
            ttl: Entry lifetime in seconds
            clock: Returns the current time in seconds since the epoch
        """
        self.path = Path(path)
        self.ttl = ttl
        self._clock = clock

    def load(self) -> dict[str, dict]:
        """Read the live entries from disk."""
        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug(f"No usable route cache at {self.path}: {e}")
            return {}

        if not isinstance(stored, dict):
            return {}

        entries = {
            key: entry
            for key, entry in stored.items()
            if isinstance(entry, dict) and isinstance(entry.get("ts"), (int, float))
        }
        return prune_cache(entries, self.ttl, self._clock())

    def get(self, key: str):
        """Return the cached value for ``key``, or None when missing or expired."""
        entry = self.load().get(key)
        if entry is None:
            return None
        logger.debug(f"Route cache hit: {key[:12]}")
        return entry.get("value")

    def put(self, key: str, value) -> None:
        """Store ``value`` under ``key`` and drop expired entries."""
        entries = self.load()
        entries[key] = {"ts": self._clock(), "value": value}

        try:
            self.path.write_text(json.dumps(entries), encoding="utf-8")
        except OSError as e:
            logger.debug(f"Could not write route cache to {self.path}: {e}")
