"""
Layer 1.5: apply context signals to Layer 1 candidates and re-rank them.
"""

import logging
from dataclasses import replace

from skill_dispatch.models import ContextSignals, Match

__all__ = ["context_contributions", "apply_context_signals", "rerank"]

logger = logging.getLogger(__name__)


def _boost(source: str, value: int) -> tuple[str, int]:
    return f"{source}:{value:+d}", value


def _penalty(source: str, value: int) -> tuple[str, int]:
    return f"{source}:{value}", value


def context_contributions(match: Match, signals: ContextSignals) -> list[tuple[str, int]]:
    """
    List the non-zero context adjustments for a match, in application order.

    Each entry is ``(trace, value)``. Boosts are traced with an explicit
    sign (``dir:+2``), penalties as stored (``marker:-2``). Category-keyed
    signals are looked up by the match's category, sequence boosts by its
    command.
    """
    contributions = [
        _boost("dir", signals.directory.get(match.category, 0)),
        _boost("files", signals.file_types.get(match.category, 0)),
        _boost("marker", signals.marker_boosts.get(match.category, 0)),
        _penalty("marker", signals.marker_penalties.get(match.category, 0)),
        _boost("seq", signals.sequence.get(match.command, 0)),
    ]
    return [(trace, value) for trace, value in contributions if value]


def apply_context_signals(matches: list[Match], signals: ContextSignals) -> list[Match]:
    """
    Add context scores to each match.

    The trace and the total come from the same contribution list, so every
    point of ``context_score`` appears in ``context_signals``. Input matches
    are left untouched; new matches are returned in the same order.
    """
    boosted: list[Match] = []
    for match in matches:
        contributions = context_contributions(match, signals)
        context_score = sum(value for _, value in contributions)
        boosted.append(
            replace(
                match,
                score=match.score + context_score,
                context_score=context_score,
                context_signals=[trace for trace, _ in contributions],
            )
        )
        if contributions:
            logger.debug(f"Context for {match.id}: {boosted[-1].context_signals}")
    return boosted


def rerank(matches: list[Match], max_matches: int) -> list[Match]:
    """Stable sort by final score, highest first, and keep the top ``max_matches``."""
    return sorted(matches, key=lambda m: m.score, reverse=True)[:max_matches]
