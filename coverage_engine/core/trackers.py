# coverage_engine/core/trackers.py

"""
Run-scoped bookkeeping passed into the calculation: pair history per recurring
room/group, pair-type usage per date, and the scarce-pairing quota.
"""

from __future__ import annotations
from collections import defaultdict
from datetime import date
from typing import DefaultDict, Dict, Iterable, List, Tuple
import logging

from .problem_model import PairRecord

logger = logging.getLogger(__name__)


class PairHistory:
    """Past supervisor/assistant pairs per history key, in the order they were made."""

    def __init__(self):
        self._records: DefaultDict[str, List[PairRecord]] = defaultdict(list)

    def get(self, history_key: str) -> Tuple[PairRecord, ...]:
        return tuple(self._records.get(history_key, ()))

    def record(self, history_key: str, pair: PairRecord) -> None:
        self._records[history_key].append(pair)

    def keys(self) -> List[str]:
        return list(self._records.keys())

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())


class PairTypeUsage:
    """How often each assistant rank has been paired with a supervisor on one date."""

    def __init__(self):
        self._counts: Dict[str, int] = {}

    def usage(self, assistant_rank: str) -> int:
        return self._counts.get(assistant_rank, 0)

    def mark_used(self, assistant_rank: str) -> int:
        self._counts[assistant_rank] = self.usage(assistant_rank) + 1
        return self._counts[assistant_rank]

    def as_dict(self) -> Dict[str, int]:
        return dict(self._counts)


class QuotaTracker:
    """
    Caps scarce pairings per quota window.

    Windows are fixed, non-overlapping buckets over the batch's sorted,
    deduplicated exam dates: window = position // window_size.
    """

    def __init__(
        self,
        dates: Iterable[date],
        window_size: int = 2,
        max_per_window: int = 1,
    ):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self.window_size = window_size
        self.max_per_window = max_per_window
        self._dates: List[date] = sorted(set(dates))
        self._index: Dict[date, int] = {d: i for i, d in enumerate(self._dates)}
        self._uses: DefaultDict[int, int] = defaultdict(int)

    @property
    def dates(self) -> List[date]:
        return list(self._dates)

    def window_for(self, exam_date: date) -> int:
        try:
            return self._index[exam_date] // self.window_size
        except KeyError:
            raise KeyError(f"{exam_date} is not part of this batch") from None

    def uses(self, exam_date: date) -> int:
        return self._uses[self.window_for(exam_date)]

    def is_allowed(self, exam_date: date) -> bool:
        return self.uses(exam_date) < self.max_per_window

    def record_use(self, exam_date: date) -> int:
        window = self.window_for(exam_date)
        self._uses[window] += 1
        if self._uses[window] > self.max_per_window:
            logger.warning(
                f"Scarce pairing quota exceeded in window {window} "
                f"({self._uses[window]}/{self.max_per_window})"
            )
        return self._uses[window]

    def usage_by_window(self) -> Dict[int, int]:
        return {w: n for w, n in sorted(self._uses.items()) if n}
