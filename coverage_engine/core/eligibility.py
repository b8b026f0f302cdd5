# coverage_engine/core/eligibility.py

"""Eligibility predicate and workload helpers used by the pair selector."""

from __future__ import annotations
from datetime import date
from typing import Iterable, List, Optional, Set, Sequence

from .problem_model import RankLimits, Teacher


def is_eligible(
    teacher: Teacher,
    rank_limits: RankLimits,
    used_today: Set[int],
    exam_date: date,
) -> bool:
    """
    A teacher is eligible when available on the date, not already placed on a
    slot that date, and still under their rank's period cap (no cap configured
    means unrestricted).

    Callers add a chosen teacher to ``used_today`` themselves.
    """
    if not teacher.is_available_on(exam_date):
        return False
    if teacher.id in used_today:
        return False
    limit = rank_limits.get(teacher.rank)
    return limit is None or (teacher.total_periods_assigned or 0) < limit


def lowest_workload(candidates: Sequence[Teacher]) -> Teacher:
    """Lowest running total; ties go to the first candidate in pool order."""
    if not candidates:
        raise ValueError("lowest_workload needs at least one candidate")
    best = candidates[0]
    for teacher in candidates[1:]:
        if (teacher.total_periods_assigned or 0) < (best.total_periods_assigned or 0):
            best = teacher
    return best


def prefer_fresh(
    candidates: Sequence[Teacher], seen_ids: Iterable[Optional[int]]
) -> Teacher:
    """Lowest workload among candidates not in ``seen_ids``, else among all."""
    seen = {tid for tid in seen_ids if tid is not None}
    fresh: List[Teacher] = [t for t in candidates if t.id not in seen]
    return lowest_workload(fresh or list(candidates))


def describe_vacancy(
    rank_label: str,
    pool: Sequence[Teacher],
    rank_limits: RankLimits,
    used_today: Set[int],
    exam_date: date,
) -> str:
    """Human-readable reason nobody from ``pool`` could take a role."""
    if not pool:
        return f"No {rank_label} teachers found"
    if all(
        not t.is_available_on(exam_date) or t.id in used_today for t in pool
    ):
        return f"All {rank_label} teachers are already assigned today"
    return f"All {rank_label} teachers have reached their period limit"
