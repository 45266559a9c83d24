"""
Layer 1 scoring: keyword and regex matching of rules against prompt text.

Keywords score +1 when they occur as a case-insensitive substring of the
prompt. Patterns score +2 when they match. A pattern that does not compile
is skipped rather than failing the call.
"""

import logging
import re

from skill_dispatch.config import DispatchConfig
from skill_dispatch.models import Match, Rule

__all__ = ["KEYWORD_WEIGHT", "PATTERN_WEIGHT", "DEFAULT_MIN_SCORE", "score_rule", "effective_threshold", "layer1_match"]

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 1
PATTERN_WEIGHT = 2
DEFAULT_MIN_SCORE = 2


def score_rule(rule: Rule, prompt_lower: str, prompt_raw: str) -> tuple[int, list[str]]:
    """
    Score a single rule against a prompt.

    Args:
        rule: The rule to score
        prompt_lower: The prompt, lowercased (used for keyword matching)
        prompt_raw: The prompt as typed (used for pattern matching)

    Returns:
        Tuple of (score, matched_terms). Matched keywords are reported
        verbatim, matched patterns as ``/pattern/``; keywords first, each in
        rule order.
    """
    score = 0
    matched_terms: list[str] = []

    for keyword in rule.keywords:
        if keyword.lower() in prompt_lower:
            score += KEYWORD_WEIGHT
            matched_terms.append(keyword)

    for pattern in rule.patterns:
        try:
            compiled = re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            logger.debug(f"Skipping invalid pattern {pattern!r} in rule {rule.id}: {e}")
            continue
        if compiled.search(prompt_raw):
            score += PATTERN_WEIGHT
            matched_terms.append(f"/{pattern}/")

    return score, matched_terms


def effective_threshold(rule: Rule, config: DispatchConfig) -> int:
    """Resolve the score a rule must reach: its own ``min_matches`` or the global ``min_score``."""
    if rule.min_matches is not None:
        return rule.min_matches
    if config.min_score is not None:
        return config.min_score
    return DEFAULT_MIN_SCORE


def layer1_match(rules: list[Rule], config: DispatchConfig, prompt: str) -> list[Match]:
    """
    Score every rule and keep those meeting their threshold.

    Results are sorted by score, highest first. The sort is stable, so
    equal scores keep configuration order. At most ``2 * max_matches``
    candidates are kept, leaving room for context re-ranking.

    Args:
        rules: Rules in configuration order
        config: Routing configuration
        prompt: The raw prompt text

    Returns:
        Layer 1 matches, best first
    """
    prompt_lower = prompt.lower()
    results: list[Match] = []

    for rule in rules:
        score, matched_terms = score_rule(rule, prompt_lower, prompt)
        if score >= effective_threshold(rule, config):
            results.append(Match.from_rule(rule, score, matched_terms))

    results.sort(key=lambda m: m.score, reverse=True)
    limit = 2 * config.max_matches

    if results:
        logger.debug(f"Layer 1 matched {len(results)} rules: {[m.id for m in results[:limit]]}")

    return results[:limit]
