"""
Configuration for the dispatch router.

Provides a dataclass-based configuration that controls how many candidates
survive each ranking pass, the default score threshold and cache lifetime.
"""

from dataclasses import dataclass

__all__ = ["DispatchConfig"]

# Durations kept in milliseconds in rules documents
MILLISECOND_FIELDS = ("cache_ttl", "llm_timeout")


@dataclass
class DispatchConfig:
    """
    Configuration for routing a prompt against a rule set.

    Attributes:
        max_matches: Maximum number of matches returned after context
            re-ranking. Layer 1 keeps twice this many candidates. Default is 5.
        min_score: Global score threshold for rules without their own
            ``min_matches``. Default is 2.
        cache_ttl: Lifetime of cached routing results, in seconds.
        llm_fallback: Whether the caller should fall back to a model when
            nothing matches. Carried for the caller; the router never calls
            a model.
        llm_timeout: Timeout, in seconds, the caller should apply to that
            fallback.
    """

    max_matches: int = 5
    min_score: int = 2

    # Result cache lifetime
    cache_ttl: float = 300.0

    # Model fallback settings (acted on by the caller, not the router)
    llm_fallback: bool = False
    llm_timeout: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_matches <= 0:
            raise ValueError(f"max_matches must be positive, got {self.max_matches}")

        if self.min_score < 0:
            raise ValueError(f"min_score must be non-negative, got {self.min_score}")

        if self.cache_ttl < 0:
            raise ValueError(f"cache_ttl must be non-negative, got {self.cache_ttl}")

        if self.llm_timeout <= 0:
            raise ValueError(f"llm_timeout must be positive, got {self.llm_timeout}")

    @classmethod
    def from_dict(cls, data: dict | None) -> "DispatchConfig":
        """
        Build a configuration from the ``config`` block of a rules document.

        Keys use the on-disk camelCase names (``maxMatches``, ``minScore``,
        ``cacheTTL``, ``llmFallback``, ``llmTimeout``). Missing or null keys
        keep their defaults. ``cacheTTL`` and ``llmTimeout`` are stored in
        milliseconds and converted to seconds.

        Args:
            data: The ``config`` mapping, or None

        Returns:
            A validated DispatchConfig
        """
        data = data or {}
        key_map = {
            "maxMatches": "max_matches",
            "minScore": "min_score",
            "cacheTTL": "cache_ttl",
            "llmFallback": "llm_fallback",
            "llmTimeout": "llm_timeout",
        }
        kwargs = {field_name: data[key] for key, field_name in key_map.items() if data.get(key) is not None}
        for field_name in MILLISECOND_FIELDS:
            if field_name in kwargs:
                kwargs[field_name] = kwargs[field_name] / 1000
        return cls(**kwargs)
