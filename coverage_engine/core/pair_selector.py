# coverage_engine/core/pair_selector.py

"""
Supervisor/assistant selection for a single coverage slot.

Selection order, most important first:
- only the supervisor rank may supervise;
- a supervisor who has not supervised this room/group before, then lowest workload;
- an ordinary assistant rank, rotating across the least-used pair type today;
- within a rank, a teacher never paired with this supervisor here, then lowest workload;
- a second supervisor-rank teacher as assistant only as a quota-gated last resort.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Set
import logging

from ..config import CoverageEngineConfig, config as default_config
from .eligibility import is_eligible, prefer_fresh
from .problem_model import PairRecord, RankLimits, Teacher
from .trackers import PairTypeUsage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairSelection:
    supervisor: Optional[Teacher]
    assistant: Optional[Teacher]
    pair_label: Optional[str] = None
    scarce_pairing: bool = False

    @property
    def is_empty(self) -> bool:
        return self.supervisor is None and self.assistant is None

    def to_record(self) -> PairRecord:
        return PairRecord(
            supervisor_id=self.supervisor.id if self.supervisor else None,
            assistant_id=self.assistant.id if self.assistant else None,
        )


def _paired_with(supervisor: Teacher, past_pairs: Sequence[PairRecord]) -> Set[int]:
    return {
        p.assistant_id
        for p in past_pairs
        if p.supervisor_id == supervisor.id and p.assistant_id is not None
    }


def pick_paired_teachers(
    supervisors: Sequence[Teacher],
    assistants: Sequence[Teacher],
    rank_limits: RankLimits,
    used_today: Set[int],
    exam_date: date,
    past_pairs: Sequence[PairRecord],
    pair_type_usage: PairTypeUsage,
    scarce_allowed: bool,
    engine_config: Optional[CoverageEngineConfig] = None,
) -> PairSelection:
    """Choose one supervisor and, if possible, one assistant for a slot.

    ``pair_type_usage`` is updated in place when an ordinary pair type is used.
    """
    cfg = engine_config or default_config
    senior = cfg.supervisor_rank

    eligible_sups = [
        t
        for t in supervisors
        if t.rank == senior and is_eligible(t, rank_limits, used_today, exam_date)
    ]
    if not eligible_sups:
        return PairSelection(supervisor=None, assistant=None)

    # Supervisor rank is held back from the ordinary assistant pool
    eligible_assts = [
        t
        for t in assistants
        if t.rank != senior and is_eligible(t, rank_limits, used_today, exam_date)
    ]

    supervisor = prefer_fresh(eligible_sups, (p.supervisor_id for p in past_pairs))
    already_paired = _paired_with(supervisor, past_pairs)

    # Supervisors are always the supervisor rank, so never in eligible_assts
    viable_ranks: List[str] = [
        rank
        for rank in cfg.assistant_rank_preference
        if any(t.rank == rank for t in eligible_assts)
    ]

    if viable_ranks:
        # min() keeps the first of equal usages, i.e. preference order
        chosen_rank = min(viable_ranks, key=pair_type_usage.usage)
        pair_type_usage.mark_used(chosen_rank)

        of_rank = [t for t in eligible_assts if t.rank == chosen_rank]
        assistant = prefer_fresh(of_rank, already_paired)
        return PairSelection(
            supervisor=supervisor,
            assistant=assistant,
            pair_label=f"{supervisor.rank} + {assistant.rank}",
        )

    return _scarce_fallback(
        supervisor,
        assistants,
        rank_limits,
        used_today,
        exam_date,
        already_paired,
        scarce_allowed,
        senior,
    )


def _scarce_fallback(
    supervisor: Teacher,
    assistants: Sequence[Teacher],
    rank_limits: RankLimits,
    used_today: Set[int],
    exam_date: date,
    already_paired: Set[int],
    scarce_allowed: bool,
    senior: str,
) -> PairSelection:
    if not scarce_allowed:
        logger.debug(
            f"Scarce pairing quota used up for {exam_date}; "
            f"{supervisor.name} supervises alone"
        )
        return PairSelection(supervisor=supervisor, assistant=None)

    seniors = [
        t
        for t in assistants
        if t.rank == senior
        and t.id != supervisor.id
        and is_eligible(t, rank_limits, used_today, exam_date)
    ]
    if not seniors:
        return PairSelection(supervisor=supervisor, assistant=None)

    assistant = prefer_fresh(seniors, already_paired)
    return PairSelection(
        supervisor=supervisor,
        assistant=assistant,
        pair_label=f"{supervisor.rank} + {assistant.rank} (last resort)",
        scarce_pairing=True,
    )
