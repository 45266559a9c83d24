"""
Prompt routing: Layer 1 text scoring followed by Layer 1.5 context re-ranking.

The router evaluates every rule against the prompt, keeps the rules that
reach their threshold and, only when something matched, checks the
environment to re-rank the candidates.
"""

import logging
from pathlib import Path

from skill_dispatch.cache import RouteCache, hash_prompt
from skill_dispatch.context import apply_context_signals, rerank
from skill_dispatch.history import SessionHistory
from skill_dispatch.models import DryRunResult, Match, RuleSet
from skill_dispatch.scoring import layer1_match
from skill_dispatch.signals import ContextSignalResolver

__all__ = ["MIN_PROMPT_LENGTH", "SkillRouter", "route", "dry_run"]

logger = logging.getLogger(__name__)

MIN_PROMPT_LENGTH = 10


class SkillRouter:
    """
    Routes prompts to the skills configured in a rule set.

    Each call runs start to finish without touching shared in-memory state.
    The only persistent state is the session history (read) and, when
    attached, the route cache.
    """

    def __init__(
        self,
        ruleset: RuleSet,
        history: SessionHistory | None = None,
        resolver: ContextSignalResolver | None = None,
        cache: RouteCache | None = None,
    ):
        """
        Initialize the router.

        Args:
            ruleset: The rules and signals to route against
            history: Session history used for sequence boosts (optional)
            resolver: Context check resolver. Defaults to one built from
                ``ruleset`` and ``history``; pass a custom one to substitute
                checks.
            cache: Route cache consulted before scoring (optional)
        """
        self.ruleset = ruleset
        self.history = history
        self.resolver = resolver or ContextSignalResolver(ruleset, history=history)
        self.cache = cache

    def route(self, prompt: str, cwd: str, overrides: dict[str, dict[str, int]] | None = None) -> list[Match]:
        """
        Route a prompt.

        Args:
            prompt: The prompt text as typed
            cwd: Absolute working directory the prompt was typed in
            overrides: Fixed context check outputs (see
                ``ContextSignalResolver.resolve``)

        Returns:
            Matches ordered best first, at most ``config.max_matches``. Empty
            for short prompts, slash commands, empty rule sets or when no
            rule reaches its threshold.
        """
        if not prompt or len(prompt) < MIN_PROMPT_LENGTH:
            return []

        # Slash-prefixed text is a literal command, not something to route
        if prompt.startswith("/"):
            return []

        if not self.ruleset.rules:
            return []

        # Overridden signals describe a hypothetical context; never cache those
        cache_key = None
        if self.cache is not None and overrides is None:
            cache_key = hash_prompt(prompt, cwd)
            cached = self.cache.get(cache_key)
            if cached is not None:
                return [Match.from_dict(m) for m in cached]

        config = self.ruleset.config
        matches = layer1_match(self.ruleset.rules, config, prompt)

        if matches:
            signals = self.resolver.resolve(cwd, overrides)
            matches = rerank(apply_context_signals(matches, signals), config.max_matches)
            self._log_routing(matches)

            if cache_key is not None:
                self.cache.put(cache_key, [m.to_dict() for m in matches])

        return matches

    def _log_routing(self, matches: list[Match]) -> None:
        details = ", ".join(f"{m.id}({m.score})" for m in matches)
        logger.info(f"Routed to {len(matches)} skills [{details}]")


def route(
    prompt: str,
    cwd: str,
    ruleset: RuleSet,
    history_path: Path | str | None = None,
) -> list[Match]:
    """
    Route a prompt against ``ruleset``.

    Args:
        prompt: The prompt text as typed
        cwd: Absolute working directory
        ruleset: The rules and signals to route against
        history_path: Session history file for sequence boosts (optional)

    Returns:
        Matches ordered best first
    """
    history = SessionHistory(history_path) if history_path is not None else None
    return SkillRouter(ruleset, history=history).route(prompt, cwd)


def dry_run(prompt: str, cwd: str, ruleset: RuleSet) -> DryRunResult:
    """Route a prompt without session history and keep the inputs alongside the result."""
    return DryRunResult(prompt=prompt, cwd=cwd, matches=route(prompt, cwd, ruleset))
