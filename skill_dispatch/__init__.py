"""
Context-aware skill routing for agent prompts.

skill_dispatch decides which automation skills to suggest for a prompt. Rules
score the prompt text by keywords and regex patterns (Layer 1), then the
surviving candidates are re-ranked with signals from the environment: the
working directory, the file types in it, project marker files and the skills
invoked earlier in the session (Layer 1.5).

Basic Usage:
    from skill_dispatch import Dispatch

    dispatch = Dispatch(".claude/dispatch-rules.json")

    # Suggest skills for a prompt typed in the current directory
    matches = dispatch.route("deploy the release to production", os.getcwd())

    # Structured response for the agent
    output = dispatch.route_output("deploy the release to production", os.getcwd())

Session History:
    dispatch = Dispatch(
        ".claude/dispatch-rules.json",
        history_path=".claude/dispatch-history.json",
    )

    # After a suggested skill was actually invoked
    dispatch.record_match("writing-plans")
"""

from pathlib import Path

from skill_dispatch.authoring import RuleAuthoringError, append_rule, build_rule, generate_test_prompt
from skill_dispatch.cache import RouteCache, hash_prompt, prune_cache
from skill_dispatch.config import DispatchConfig
from skill_dispatch.context import apply_context_signals, rerank
from skill_dispatch.formatter import INSTRUCTION, format_dry_run, format_output
from skill_dispatch.history import SessionHistory, record_match
from skill_dispatch.models import (
    ContextSignals,
    DirectorySignal,
    DryRunResult,
    Enforcement,
    Match,
    ProjectMarker,
    Rule,
    RuleSet,
)
from skill_dispatch.registry import ConfigError, RuleRegistry, load_ruleset
from skill_dispatch.router import SkillRouter, dry_run, route
from skill_dispatch.scoring import layer1_match, score_rule
from skill_dispatch.signals import ContextSignalResolver


class Dispatch:
    """
    Main entry point for skill routing.

    Loads rules from one or more documents and routes prompts against them,
    optionally using session history and a result cache.

    Attributes:
        registry: The underlying rule registry (for advanced use)
        history: Session history, if a history path was given
        cache: Route cache, if a cache path was given
    """

    def __init__(
        self,
        rules_path: Path | str | None = None,
        rules_paths: list[Path | str] | None = None,
        history_path: Path | str | None = None,
        cache_path: Path | str | None = None,
    ):
        """
        Initialize the router.

        Args:
            rules_path: Rules document to load
            rules_paths: Several rules documents, later ones overriding
                earlier ones. Takes precedence over ``rules_path``.
            history_path: Session history file. Enables sequence boosts and
                ``record_match``.
            cache_path: Route cache file. Entries live for the rule set's
                ``cache_ttl``.

        Raises:
            ConfigError: If a rules document cannot be loaded
        """
        self._registry = RuleRegistry(rules_path=rules_path, rules_paths=rules_paths)
        self.history = SessionHistory(history_path) if history_path is not None else None
        self._cache_path = cache_path
        self._router = self._build_router()

    def _build_router(self) -> SkillRouter:
        """Build the router for the current rule set."""
        ruleset = self._registry.ruleset
        self.cache = (
            RouteCache(self._cache_path, ttl=ruleset.config.cache_ttl) if self._cache_path is not None else None
        )
        return SkillRouter(ruleset, history=self.history, cache=self.cache)

    @property
    def registry(self) -> RuleRegistry:
        """Access the underlying rule registry."""
        return self._registry

    @property
    def router(self) -> SkillRouter:
        """Access the underlying router."""
        return self._router

    def route(self, prompt: str, cwd: str) -> list[Match]:
        """
        Route a prompt.

        Args:
            prompt: The prompt text as typed
            cwd: Absolute working directory

        Returns:
            Matches ordered best first (possibly empty)
        """
        return self._router.route(prompt, cwd)

    def route_output(self, prompt: str, cwd: str) -> dict:
        """Route a prompt and format the result for the calling agent."""
        return format_output(self.route(prompt, cwd))

    def dry_run(self, prompt: str, cwd: str) -> DryRunResult:
        """Route a prompt without session history or cache."""
        return dry_run(prompt, cwd, self._registry.ruleset)

    def record_match(self, command: str) -> None:
        """
        Record that a suggested skill was invoked.

        Does nothing when no history path was configured.
        """
        if self.history is not None:
            self.history.record(command)

    def get_rule(self, rule_id: str) -> Rule | None:
        """Get a rule by its ID."""
        return self._registry.get_rule(rule_id)

    def list_rules(self) -> list[Rule]:
        """List all rules in configuration order."""
        return self._registry.get_all_rules()

    def reload(self) -> None:
        """Reload all rules documents from disk."""
        self._registry.reload()
        self._router = self._build_router()


__all__ = [
    # Main entry point
    "Dispatch",
    # Configuration
    "DispatchConfig",
    # Models
    "Enforcement",
    "Rule",
    "RuleSet",
    "DirectorySignal",
    "ProjectMarker",
    "Match",
    "ContextSignals",
    "DryRunResult",
    # Loading
    "ConfigError",
    "RuleRegistry",
    "load_ruleset",
    # Routing (for advanced use)
    "SkillRouter",
    "route",
    "dry_run",
    "score_rule",
    "layer1_match",
    "ContextSignalResolver",
    "apply_context_signals",
    "rerank",
    # History and cache
    "SessionHistory",
    "record_match",
    "RouteCache",
    "hash_prompt",
    "prune_cache",
    # Output
    "INSTRUCTION",
    "format_output",
    "format_dry_run",
    # Authoring
    "RuleAuthoringError",
    "build_rule",
    "append_rule",
    "generate_test_prompt",
]
