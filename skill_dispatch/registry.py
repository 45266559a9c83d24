"""
Rule registry for loading and managing routing rules.

Rules live in JSON or YAML documents (``version: 2``) together with the
context signals used to re-rank them. Supports loading several documents,
e.g. shared rules plus project-specific ones.

Thread-safe: All public methods are safe to call from multiple threads.
The reload() method uses atomic swapping to prevent inconsistent states
during concurrent access.
"""

import json
import logging
import threading
from pathlib import Path

import yaml

from skill_dispatch.models import Rule, RuleSet

__all__ = ["ConfigError", "RuleRegistry", "load_ruleset", "read_rules_document"]

logger = logging.getLogger(__name__)

SUPPORTED_VERSION = 2
YAML_SUFFIXES = {".yaml", ".yml"}


class ConfigError(ValueError):
    """Raised when a rules document cannot be read or has the wrong version."""


def read_rules_document(path: Path) -> dict:
    """
    Read and parse a rules document.

    Args:
        path: A ``.json``, ``.yaml`` or ``.yml`` file

    Returns:
        The parsed document

    Raises:
        ConfigError: If the file cannot be read or parsed, is not a mapping,
            or its version is not 2
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read rules file {path}: {e}") from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            document = yaml.safe_load(raw)
        else:
            document = json.loads(raw)
    except (ValueError, yaml.YAMLError) as e:
        logger.error(f"Failed to parse rules file {path}: {e}")
        raise ConfigError(f"Failed to parse rules file {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigError(f"Rules file {path} must contain a mapping")

    if document.get("version") != SUPPORTED_VERSION:
        raise ConfigError(f"Rules file {path} has missing or invalid version (must be {SUPPORTED_VERSION})")

    return document


def load_ruleset(path: Path | str) -> RuleSet:
    """Load a single rules document into a RuleSet."""
    ruleset = RuleSet.from_dict(read_rules_document(Path(path)))
    logger.debug(f"Loaded {len(ruleset.rules)} rules from {path}")
    return ruleset


def _merge(base: RuleSet, overlay: RuleSet) -> RuleSet:
    """
    Layer ``overlay`` on top of ``base``.

    Rules with the same id are replaced in place; new rules are appended.
    Directory signals and project markers are appended; file-type signals
    and skill sequences are updated key by key. The overlay's config wins.
    """
    rules: dict[str, Rule] = {rule.id: rule for rule in base.rules}
    for rule in overlay.rules:
        if rule.id in rules:
            logger.debug(f"Overriding rule: {rule.id}")
        rules[rule.id] = rule

    return RuleSet(
        version=overlay.version,
        config=overlay.config,
        rules=list(rules.values()),
        directory_signals=base.directory_signals + overlay.directory_signals,
        file_type_signals={**base.file_type_signals, **overlay.file_type_signals},
        project_markers=base.project_markers + overlay.project_markers,
        skill_sequences={**base.skill_sequences, **overlay.skill_sequences},
    )


class RuleRegistry:
    """
    Registry for loading and accessing routing rules.

    When multiple documents are provided, later documents override rules
    with the same ID from earlier ones and add to their signal sections.
    """

    def __init__(
        self,
        rules_path: Path | str | None = None,
        rules_paths: list[Path | str] | None = None,
    ):
        """
        Initialize the registry and load all rule documents.

        Args:
            rules_path: Single rules document
            rules_paths: List of rules documents, applied in order. Takes
                precedence over ``rules_path`` when both are given.

        Raises:
            ConfigError: If any document cannot be loaded
        """
        if rules_paths is not None:
            self.rules_paths = [Path(p) for p in rules_paths]
        elif rules_path is not None:
            self.rules_paths = [Path(rules_path)]
        else:
            self.rules_paths = []

        # Thread safety: lock protects access to self._ruleset
        self._lock = threading.RLock()
        self._ruleset = self._load_all()

    def _load_all(self) -> RuleSet:
        ruleset = RuleSet()
        for path in self.rules_paths:
            ruleset = _merge(ruleset, load_ruleset(path))
        return ruleset

    @property
    def ruleset(self) -> RuleSet:
        """The merged rule set. Thread-safe snapshot."""
        with self._lock:
            return self._ruleset

    def get_rule(self, rule_id: str) -> Rule | None:
        """
        Get a rule by ID.

        Thread-safe: uses internal locking.
        """
        with self._lock:
            for rule in self._ruleset.rules:
                if rule.id == rule_id:
                    return rule
            return None

    def get_all_rules(self) -> list[Rule]:
        """
        Get all registered rules in configuration order.

        Thread-safe: returns a snapshot of the current rules list.
        """
        with self._lock:
            return list(self._ruleset.rules)

    def get_rules_by_category(self, category: str) -> list[Rule]:
        """
        Get all rules in a specific category.

        Thread-safe: uses internal locking.
        """
        with self._lock:
            return [r for r in self._ruleset.rules if r.category == category]

    def reload(self) -> None:
        """
        Reload all rule documents from disk.

        Thread-safe: loads into a new RuleSet first, then atomically swaps.
        If loading fails the current rules stay in place.
        """
        new_ruleset = self._load_all()

        with self._lock:
            self._ruleset = new_ruleset

        logger.info(f"Reloaded {len(new_ruleset.rules)} rules")
