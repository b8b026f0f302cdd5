# coverage_engine/config.py

"""
Configuration module for the coverage engine.

Holds the rank rules the pair selector works with: which rank may supervise,
the preference order of assistant ranks, the default per-rank period limits
and the scarce-pairing quota shape.
"""

from typing import Dict, Tuple
from dataclasses import dataclass, field


SUPERVISOR_RANK = "Senior"

# Ordinary assistant ranks, highest priority first
ASSISTANT_RANK_PREFERENCE: Tuple[str, ...] = (
    "Lecturer",
    "Assistant Lecturer",
    "Tutor",
)

DEFAULT_RANK_LIMITS: Dict[str, int] = {
    "Senior": 5,
    "Lecturer": 7,
    "Assistant Lecturer": 8,
    "Tutor": 10,
}


@dataclass(frozen=True)
class CoverageEngineConfig:
    """Rank rules and quota shape for one calculation run"""

    supervisor_rank: str = SUPERVISOR_RANK
    assistant_rank_preference: Tuple[str, ...] = ASSISTANT_RANK_PREFERENCE

    # Scarce pairing (supervisor rank as assistant) quota
    quota_window_dates: int = 2
    max_scarce_pairings_per_window: int = 1

    default_rank_limits: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_RANK_LIMITS)
    )

    def __post_init__(self):
        if self.quota_window_dates < 1:
            raise ValueError("quota_window_dates must be at least 1")
        if self.max_scarce_pairings_per_window < 0:
            raise ValueError("max_scarce_pairings_per_window cannot be negative")
        if self.supervisor_rank in self.assistant_rank_preference:
            raise ValueError(
                f"{self.supervisor_rank} is reserved for the scarce fallback and "
                "cannot be an ordinary assistant rank"
            )

    @property
    def supervisor_ranks(self) -> Tuple[str, ...]:
        return (self.supervisor_rank,)

    @property
    def assistant_ranks(self) -> Tuple[str, ...]:
        # The supervisor rank sits in the assistant pool only for the scarce path
        return self.assistant_rank_preference + (self.supervisor_rank,)


# Global configuration instance
config = CoverageEngineConfig()
