"""
Building new rules and adding them to a rules document.

The interactive prompts live outside this package; these helpers take the
collected answers, turn them into a Rule and append it, guaranteeing the id
is not already taken.
"""

import json
import logging
import re
from pathlib import Path

from skill_dispatch.models import Enforcement, Rule

__all__ = ["RuleAuthoringError", "slugify", "build_rule", "append_rule", "generate_test_prompt"]

logger = logging.getLogger(__name__)

DEFAULT_MIN_MATCHES = 2


class RuleAuthoringError(Exception):
    """Raised when a rule cannot be added to a rules document."""


def slugify(name: str) -> str:
    """Turn a rule name into an id: lowercase, dash-separated, alphanumerics only."""
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def _split(value: str | list[str] | None) -> list[str]:
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [item.strip() for item in items if item and item.strip()]


def build_rule(
    name: str,
    category: str,
    command: str,
    keywords: str | list[str],
    patterns: str | list[str] | None = None,
    enforcement: Enforcement | str = Enforcement.SUGGEST,
    min_matches: int | str | None = None,
    description: str = "",
) -> Rule:
    """
    Build a rule from authoring answers.

    Args:
        name: Human-readable name; the id is derived from it
        category: Category label
        command: Skill command to suggest
        keywords: Keywords, as a list or a comma-separated string
        patterns: Regex sources, as a list or a comma-separated string
        enforcement: Enforcement level
        min_matches: Score threshold; anything that is not a positive
            integer falls back to 2
        description: Description shown with matches

    Returns:
        The new rule
    """
    try:
        threshold = int(min_matches) if min_matches is not None else DEFAULT_MIN_MATCHES
    except (TypeError, ValueError):
        threshold = DEFAULT_MIN_MATCHES

    return Rule(
        id=slugify(name),
        name=name,
        category=category,
        command=command,
        enforcement=enforcement,
        keywords=_split(keywords),
        patterns=_split(patterns),
        min_matches=threshold or DEFAULT_MIN_MATCHES,
        description=description,
    )


def append_rule(path: Path | str, rule: Rule) -> str:
    """
    Append ``rule`` to the JSON rules document at ``path``.

    Args:
        path: The rules document
        rule: The rule to add

    Returns:
        The id of the added rule

    Raises:
        RuleAuthoringError: If the file cannot be read, parsed or written,
            or a rule with the same id already exists
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RuleAuthoringError(f"Cannot read file: {path}") from e
    except ValueError as e:
        raise RuleAuthoringError(f"Invalid JSON in config file: {path}") from e

    rules = document.setdefault("rules", [])
    if any(existing.get("id") == rule.id for existing in rules):
        raise RuleAuthoringError(f'Duplicate rule ID: "{rule.id}"')

    rules.append(rule.to_dict())

    try:
        path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        raise RuleAuthoringError(f"Cannot write file: {e}") from e

    logger.info(f"Added rule {rule.id} to {path}")
    return rule.id


def generate_test_prompt(keywords: list[str]) -> str:
    """Build a prompt from the first four keywords, for checking a new rule matches."""
    return " ".join(keywords[:4])
