"""Tests for the RuleRegistry class and rules document loading."""

import json
import tempfile
from pathlib import Path

import pytest

from skill_dispatch import ConfigError, RuleRegistry, load_ruleset


def write_rules(path: Path, rules: list[dict], **sections) -> Path:
    path.write_text(json.dumps({"version": 2, "config": {"maxMatches": 5, "minScore": 2}, "rules": rules, **sections}))
    return path


def make_rule(rule_id: str, **overrides) -> dict:
    rule = {
        "id": rule_id,
        "name": rule_id.title(),
        "category": "dev-workflows",
        "command": rule_id,
        "enforcement": "suggest",
        "keywords": ["deploy"],
        "patterns": [],
        "description": f"{rule_id} rule",
    }
    rule.update(overrides)
    return rule


class TestLoadRuleset:
    """Test loading single documents."""

    def test_loads_json(self) -> None:
        """Should load rules from a JSON document."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_rules(Path(tmpdir) / "rules.json", [make_rule("deploy")])
            ruleset = load_ruleset(path)
            assert [r.id for r in ruleset.rules] == ["deploy"]

    def test_loads_yaml(self) -> None:
        """Should load rules from a YAML document."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "rules.yaml"
            path.write_text("""
version: 2
config:
  maxMatches: 3
rules:
  - id: review
    name: Code Review
    category: code-quality
    command: review
    enforcement: silent
    keywords: [review, pr]
    patterns: ['\\breview\\b']
    minMatches: 1
    description: Review code
directorySignals:
  - pattern: src/components
    boosts:
      ui: 2
""")
            ruleset = load_ruleset(path)
            assert ruleset.config.max_matches == 3
            assert ruleset.rules[0].min_matches == 1
            assert ruleset.rules[0].keywords == ["review", "pr"]
            assert ruleset.directory_signals[0].pattern == "src/components"

    def test_missing_file_raises(self) -> None:
        """A missing file is a ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ConfigError, match="Cannot read rules file"):
                load_ruleset(Path(tmpdir) / "missing.json")

    def test_invalid_json_raises(self) -> None:
        """Unparseable JSON is a ConfigError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "rules.json"
            path.write_text("{not json")
            with pytest.raises(ConfigError, match="Failed to parse"):
                load_ruleset(path)

    def test_wrong_version_raises(self) -> None:
        """Only version 2 documents are accepted."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "rules.json"
            path.write_text(json.dumps({"version": 1, "rules": []}))
            with pytest.raises(ConfigError, match="version"):
                load_ruleset(path)

    def test_non_mapping_raises(self) -> None:
        """A document must be a mapping."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "rules.yaml"
            path.write_text("- just\n- a list\n")
            with pytest.raises(ConfigError, match="mapping"):
                load_ruleset(path)


class TestRuleRegistryInitialization:
    """Test RuleRegistry initialization."""

    def test_empty_initialization(self) -> None:
        """Registry can be initialized with no documents."""
        registry = RuleRegistry()
        assert registry.get_all_rules() == []

    def test_rules_paths_takes_precedence(self) -> None:
        """rules_paths parameter should take precedence over rules_path."""
        with tempfile.TemporaryDirectory() as tmpdir:
            first = write_rules(Path(tmpdir) / "first.json", [make_rule("first")])
            second = write_rules(Path(tmpdir) / "second.json", [make_rule("second")])

            registry = RuleRegistry(rules_path=first, rules_paths=[second])
            assert [r.id for r in registry.get_all_rules()] == ["second"]

    def test_later_documents_override_earlier(self) -> None:
        """Rules from later documents replace same-id rules in place."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = write_rules(
                Path(tmpdir) / "base.json",
                [make_rule("deploy"), make_rule("review")],
                skillSequences={"deploy": ["review"]},
            )
            local = write_rules(
                Path(tmpdir) / "local.json",
                [make_rule("deploy", name="Local Deploy"), make_rule("extra")],
                skillSequences={"review": ["deploy"]},
            )

            registry = RuleRegistry(rules_paths=[base, local])
            assert [r.id for r in registry.get_all_rules()] == ["deploy", "review", "extra"]
            assert registry.get_rule("deploy").name == "Local Deploy"
            assert registry.ruleset.skill_sequences == {"deploy": ["review"], "review": ["deploy"]}

    def test_signal_lists_are_concatenated(self) -> None:
        """Directory signals and markers from all documents are kept in order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = write_rules(
                Path(tmpdir) / "base.json", [], directorySignals=[{"pattern": "a", "boosts": {"x": 1}}]
            )
            local = write_rules(
                Path(tmpdir) / "local.json", [], directorySignals=[{"pattern": "b", "boosts": {"x": 1}}]
            )
            registry = RuleRegistry(rules_paths=[base, local])
            assert [s.pattern for s in registry.ruleset.directory_signals] == ["a", "b"]


class TestRuleRegistryAccess:
    """Test rule access methods."""

    def test_get_rule_returns_none_for_missing(self) -> None:
        """get_rule should return None for non-existent rules."""
        with tempfile.TemporaryDirectory() as tmpdir:
            registry = RuleRegistry(rules_path=write_rules(Path(tmpdir) / "r.json", [make_rule("deploy")]))
            assert registry.get_rule("nonexistent") is None

    def test_get_rules_by_category(self) -> None:
        """get_rules_by_category should return rules in that category."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_rules(
                Path(tmpdir) / "r.json",
                [make_rule("deploy"), make_rule("button", category="ui")],
            )
            registry = RuleRegistry(rules_path=path)
            rules = registry.get_rules_by_category("ui")
            assert [r.id for r in rules] == ["button"]


class TestRuleRegistryReload:
    """Test reload functionality."""

    def test_reload_reloads_from_disk(self) -> None:
        """reload should pick up modified documents."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_rules(Path(tmpdir) / "r.json", [make_rule("deploy", name="Initial")])
            registry = RuleRegistry(rules_path=path)
            assert registry.get_rule("deploy").name == "Initial"

            write_rules(path, [make_rule("deploy", name="Updated")])
            registry.reload()

            assert registry.get_rule("deploy").name == "Updated"

    def test_failed_reload_keeps_current_rules(self) -> None:
        """A broken document on reload leaves the loaded rules in place."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_rules(Path(tmpdir) / "r.json", [make_rule("deploy")])
            registry = RuleRegistry(rules_path=path)

            path.write_text("{broken")
            with pytest.raises(ConfigError):
                registry.reload()

            assert registry.get_rule("deploy") is not None
