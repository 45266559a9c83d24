"""
Dispatch models for routing prompts to skills.

Rules map textual and contextual signals to a suggested skill invocation.
A RuleSet bundles the rules with the context signals used to re-rank them,
and a Match records how a single rule scored against a single prompt.
"""

from dataclasses import dataclass, field
from enum import Enum

from skill_dispatch.config import DispatchConfig

__all__ = [
    "Enforcement",
    "Rule",
    "DirectorySignal",
    "ProjectMarker",
    "RuleSet",
    "Match",
    "ContextSignals",
    "DryRunResult",
]


class Enforcement(Enum):
    """How strongly a matched rule should be surfaced to the agent."""

    SUGGEST = "suggest"  # Present for confirmation
    SILENT = "silent"  # Mention only, no action required
    BLOCK = "block"  # Require explicit acknowledgment


@dataclass
class Rule:
    """
    A configured mapping from prompt text to a suggested skill.

    Attributes:
        id: Unique slug within a rule set (e.g., "deployment")
        name: Human-readable name
        category: Grouping label used to aggregate context boosts
        command: The skill command suggested when the rule matches
        enforcement: How strongly the match is surfaced
        keywords: Case-insensitive substrings, +1 each when present
        patterns: Regex sources, +2 each when they match
        min_matches: Per-rule score threshold. None means use the
            configured ``min_score``.
        description: Shown to the agent alongside the match
    """

    id: str
    name: str
    category: str
    command: str
    enforcement: Enforcement = Enforcement.SUGGEST
    keywords: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)
    min_matches: int | None = None
    description: str = ""

    def __post_init__(self):
        # Convert string enforcement to enum if needed
        if isinstance(self.enforcement, str):
            try:
                self.enforcement = Enforcement(self.enforcement)
            except ValueError:
                self.enforcement = Enforcement.SUGGEST

    @classmethod
    def from_dict(cls, data: dict) -> "Rule":
        """Build a rule from its on-disk form (camelCase ``minMatches``)."""
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            category=data.get("category", ""),
            command=data.get("command", ""),
            enforcement=data.get("enforcement", "suggest"),
            keywords=list(data.get("keywords") or []),
            patterns=list(data.get("patterns") or []),
            min_matches=data.get("minMatches"),
            description=data.get("description", ""),
        )

    def to_dict(self) -> dict:
        """Render the rule in its on-disk form."""
        data = {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "command": self.command,
            "enforcement": self.enforcement.value,
            "keywords": list(self.keywords),
            "patterns": list(self.patterns),
        }
        if self.min_matches is not None:
            data["minMatches"] = self.min_matches
        data["description"] = self.description
        return data


@dataclass
class DirectorySignal:
    """Category boosts applied when the working directory matches a pattern."""

    pattern: str
    boosts: dict[str, int] = field(default_factory=dict)


@dataclass
class ProjectMarker:
    """
    Category adjustments driven by files found near the working directory.

    Attributes:
        file: Name that, when present in cwd or an ancestor, applies ``boosts``
        absent: Name that, when missing from cwd and its ancestors, applies
            ``penalties``
        boosts: Category adjustments for a found ``file``
        penalties: Category adjustments (typically negative) for a
            missing ``absent``
    """

    file: str | None = None
    absent: str | None = None
    boosts: dict[str, int] = field(default_factory=dict)
    penalties: dict[str, int] = field(default_factory=dict)


@dataclass
class RuleSet:
    """
    A complete routing configuration.

    Attributes:
        version: Document version (always 2)
        config: Routing configuration
        rules: Rules in configuration order. Order breaks score ties.
        directory_signals: Ordered directory-pattern boosts
        file_type_signals: Extension (e.g. ".tsx") -> category -> boost
        project_markers: Ordered marker-file adjustments
        skill_sequences: Predecessor command -> ordered successor commands
    """

    version: int = 2
    config: DispatchConfig = field(default_factory=DispatchConfig)
    rules: list[Rule] = field(default_factory=list)
    directory_signals: list[DirectorySignal] = field(default_factory=list)
    file_type_signals: dict[str, dict[str, int]] = field(default_factory=dict)
    project_markers: list[ProjectMarker] = field(default_factory=list)
    skill_sequences: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "RuleSet":
        """
        Build a rule set from a parsed rules document.

        The document is assumed to be structurally valid; only shapes are
        converted here.
        """
        return cls(
            version=data.get("version", 2),
            config=DispatchConfig.from_dict(data.get("config")),
            rules=[Rule.from_dict(r) for r in data.get("rules") or []],
            directory_signals=[
                DirectorySignal(pattern=s["pattern"], boosts=dict(s.get("boosts") or {}))
                for s in data.get("directorySignals") or []
            ],
            file_type_signals={
                ext: dict(boosts or {}) for ext, boosts in (data.get("fileTypeSignals") or {}).items()
            },
            project_markers=[
                ProjectMarker(
                    file=m.get("file"),
                    absent=m.get("absent"),
                    boosts=dict(m.get("boosts") or {}),
                    penalties=dict(m.get("penalties") or {}),
                )
                for m in data.get("projectMarkers") or []
            ],
            skill_sequences={
                skill: list(successors or []) for skill, successors in (data.get("skillSequences") or {}).items()
            },
        )


@dataclass
class Match:
    """
    Result of scoring one rule against one prompt.

    ``score`` is the running total: the Layer 1 ``keyword_score`` plus the
    Layer 1.5 ``context_score``. ``context_signals`` traces the non-zero
    context contributions in application order.
    """

    id: str
    name: str
    category: str
    command: str
    enforcement: Enforcement
    description: str
    score: int
    keyword_score: int
    context_score: int = 0
    context_signals: list[str] = field(default_factory=list)
    matched_terms: list[str] = field(default_factory=list)
    layer: int = 1

    @classmethod
    def from_rule(cls, rule: Rule, score: int, matched_terms: list[str]) -> "Match":
        """Create a Layer 1 match for a rule."""
        return cls(
            id=rule.id,
            name=rule.name,
            category=rule.category,
            command=rule.command,
            enforcement=rule.enforcement,
            description=rule.description,
            score=score,
            keyword_score=score,
            matched_terms=list(matched_terms),
        )

    def to_dict(self) -> dict:
        """Render the match in its camelCase wire form."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "command": self.command,
            "enforcement": self.enforcement.value,
            "description": self.description,
            "score": self.score,
            "keywordScore": self.keyword_score,
            "contextScore": self.context_score,
            "contextSignals": list(self.context_signals),
            "matchedTerms": list(self.matched_terms),
            "layer": self.layer,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Match":
        """Rebuild a match from its wire form."""
        return cls(
            id=data["id"],
            name=data["name"],
            category=data.get("category", ""),
            command=data["command"],
            enforcement=Enforcement(data.get("enforcement", "suggest")),
            description=data.get("description", ""),
            score=data["score"],
            keyword_score=data.get("keywordScore", data["score"]),
            context_score=data.get("contextScore", 0),
            context_signals=list(data.get("contextSignals") or []),
            matched_terms=list(data.get("matchedTerms") or []),
            layer=data.get("layer", 1),
        )


@dataclass
class ContextSignals:
    """
    Output of the context checks.

    ``sequence`` is keyed by command; every other map is keyed by category.
    """

    directory: dict[str, int] = field(default_factory=dict)
    file_types: dict[str, int] = field(default_factory=dict)
    marker_boosts: dict[str, int] = field(default_factory=dict)
    marker_penalties: dict[str, int] = field(default_factory=dict)
    sequence: dict[str, int] = field(default_factory=dict)


@dataclass
class DryRunResult:
    """A routed prompt together with the context it was routed in."""

    prompt: str
    cwd: str
    matches: list[Match]

    def __iter__(self):
        """Allow iteration over matches for convenience."""
        return iter(self.matches)

    def __len__(self):
        """Return number of matches."""
        return len(self.matches)
