"""
Presentation of routing results.

``format_output`` builds the structured response handed to the calling agent;
``format_dry_run`` renders a readable report for checking rules by hand.
"""

from skill_dispatch.models import DryRunResult, Match

__all__ = ["INSTRUCTION", "format_output", "format_dry_run"]

INSTRUCTION = (
    "Present these matched skills to the user for confirmation before activating. "
    "Only invoke a skill the user explicitly approves. "
    "If enforcement is 'block', require explicit acknowledgment. "
    "If enforcement is 'silent', mention the skill without requiring action."
)

_OUTPUT_FIELDS = (
    "id",
    "name",
    "command",
    "enforcement",
    "description",
    "score",
    "keywordScore",
    "contextScore",
    "contextSignals",
    "layer",
)


def format_output(matches: list[Match]) -> dict:
    """
    Build the response for the calling agent.

    Returns:
        ``{"matched", "matchCount", "matches", "instruction"}``. When nothing
        matched, ``matched`` is False and there is no instruction.
    """
    if not matches:
        return {"matched": False, "matchCount": 0, "matches": []}

    rendered = []
    for match in matches:
        data = match.to_dict()
        rendered.append({key: data[key] for key in _OUTPUT_FIELDS})

    return {
        "matched": True,
        "matchCount": len(rendered),
        "matches": rendered,
        "instruction": INSTRUCTION,
    }


def format_dry_run(result: DryRunResult) -> str:
    """Render a dry run as text, one block per match."""
    if not result.matches:
        return f'No matches found for: "{result.prompt or "(empty)"}"'

    lines = [
        f'Prompt: "{result.prompt}"',
        f"CWD: {result.cwd or '(default)'}",
        "",
        "Matches:",
        "-" * 60,
    ]

    for position, match in enumerate(result.matches, start=1):
        lines.append(f"  {position}. {match.name} ({match.id})")
        lines.append(f"     command: {match.command}")
        lines.append(
            f"     score: {match.score} (keyword: {match.keyword_score}, context: {match.context_score})"
        )
        lines.append(f"     layer: {match.layer}")
        if match.matched_terms:
            lines.append(f"     matched: {', '.join(match.matched_terms)}")
        if match.context_signals:
            lines.append(f"     signals: {', '.join(match.context_signals)}")
        lines.append("")

    return "\n".join(lines)
