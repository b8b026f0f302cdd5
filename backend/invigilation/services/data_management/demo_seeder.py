#!/usr/bin/env python3

# backend/invigilation/services/data_management/demo_seeder.py

"""
Deterministic demo data for the coverage service: teachers of every rank,
rooms across a few buildings, and exam-room bookings over a run of weekdays.

    python -m backend.invigilation.services.data_management.demo_seeder --seed 7
"""

import asyncio
import argparse
import logging
import os
import random
import sys
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from faker import Faker
from sqlalchemy.ext.asyncio import AsyncSession

from coverage_engine.config import DEFAULT_RANK_LIMITS
from coverage_engine.core.problem_model import ExamSession

from ...database import db_manager, init_db
from ...models import ExamRoom, Room, Teacher, TeacherUnavailability

logger = logging.getLogger(__name__)

DEFAULT_START_DATE = date(2025, 1, 6)

MAGNITUDE_LEVELS: Dict[int, Dict[str, Any]] = {
    0: {"ranks": {"Senior": 3, "Lecturer": 2, "Assistant Lecturer": 1, "Tutor": 1}, "rooms": 3},
    1: {"ranks": {"Senior": 6, "Lecturer": 6, "Assistant Lecturer": 4, "Tutor": 4}, "rooms": 8},
    2: {"ranks": {"Senior": 12, "Lecturer": 14, "Assistant Lecturer": 10, "Tutor": 10}, "rooms": 20},
}

DEPARTMENTS = [
    "Computer Science",
    "Mathematics",
    "Physics",
    "Economics",
    "Law",
    "Architecture",
]


@dataclass
class DemoDataset:
    teachers: List[Dict[str, Any]] = field(default_factory=list)
    rooms: List[Dict[str, Any]] = field(default_factory=list)
    exam_rooms: List[Dict[str, Any]] = field(default_factory=list)
    unavailability: List[Dict[str, Any]] = field(default_factory=list)
    exam_dates: List[date] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {
            "teachers": len(self.teachers),
            "rooms": len(self.rooms),
            "exam_rooms": len(self.exam_rooms),
            "teacher_unavailability": len(self.unavailability),
        }


def exam_weekdays(start: date, days: int) -> List[date]:
    """The first ``days`` weekdays on or after ``start``."""
    found: List[date] = []
    current = start
    while len(found) < days:
        if current.weekday() < 5:
            found.append(current)
        current += timedelta(days=1)
    return found


class DemoCoverageSeeder:
    def __init__(
        self,
        database_url: Optional[str] = None,
        seed: Optional[int] = None,
        magnitude: int = 1,
        start_date: date = DEFAULT_START_DATE,
        days: int = 5,
    ):
        if magnitude not in MAGNITUDE_LEVELS:
            raise ValueError(f"magnitude must be one of {sorted(MAGNITUDE_LEVELS)}")
        self.database_url = database_url or os.getenv("DATABASE_URL")
        self.seed = seed
        self.magnitude = magnitude
        self.start_date = start_date
        self.days = days

        self.rng = random.Random(seed)
        self.fake = Faker()
        if seed is not None:
            self.fake.seed_instance(seed)

    def build_dataset(self) -> DemoDataset:
        """Generate the dataset in memory; the same seed gives the same data."""
        level = MAGNITUDE_LEVELS[self.magnitude]
        dataset = DemoDataset(exam_dates=exam_weekdays(self.start_date, self.days))

        for rank, count in level["ranks"].items():
            cap = DEFAULT_RANK_LIMITS.get(rank, 10)
            for _ in range(count):
                dataset.teachers.append(
                    {
                        "name": self.fake.name(),
                        "rank": rank,
                        "department": self.rng.choice(DEPARTMENTS),
                        "total_periods_assigned": self.rng.randint(0, max(0, cap - 3)),
                    }
                )

        buildings = [f"{self.fake.last_name()} Hall" for _ in range(2)]
        for i in range(level["rooms"]):
            building = buildings[i % len(buildings)]
            dataset.rooms.append(
                {
                    "room_number": f"{'AB'[i % 2]}{101 + i // 2}",
                    "building": building,
                    "capacity": self.rng.choice([30, 40, 60, 80, 120]),
                }
            )

        sessions = list(ExamSession)
        for exam_date in dataset.exam_dates:
            for room in dataset.rooms:
                course = f"{self.fake.lexify('???').upper()}{self.rng.randint(100, 499)}"
                dataset.exam_rooms.append(
                    {
                        "room_number": room["room_number"],
                        "exam_date": exam_date,
                        "session": self.rng.choice(sessions).value,
                        "group_label": course,
                    }
                )

        for index, _ in enumerate(dataset.teachers):
            if self.rng.random() < 0.15:
                dataset.unavailability.append(
                    {
                        "teacher_index": index,
                        "unavailable_date": self.rng.choice(dataset.exam_dates),
                        "reason": "Leave",
                    }
                )

        return dataset

    async def write(self, session: AsyncSession, dataset: Optional[DemoDataset] = None) -> Dict[str, int]:
        """Add the dataset to ``session``; the caller owns the commit."""
        dataset = dataset or self.build_dataset()

        teachers = [Teacher(**row) for row in dataset.teachers]
        rooms = {row["room_number"]: Room(**row) for row in dataset.rooms}
        session.add_all(teachers)
        session.add_all(rooms.values())
        await session.flush()

        session.add_all(
            ExamRoom(
                room_id=rooms[row["room_number"]].id,
                exam_date=row["exam_date"],
                session=row["session"],
                group_label=row["group_label"],
            )
            for row in dataset.exam_rooms
        )
        session.add_all(
            TeacherUnavailability(
                teacher_id=teachers[row["teacher_index"]].id,
                unavailable_date=row["unavailable_date"],
                reason=row["reason"],
            )
            for row in dataset.unavailability
        )
        await session.flush()

        counts = dataset.counts()
        logger.info(f"Seeded demo coverage data: {counts}")
        return counts

    async def run(self, drop_existing: bool = False) -> Dict[str, int]:
        logger.info("Starting demo coverage data seeding...")
        await init_db(database_url=self.database_url, create_tables=True)
        try:
            if drop_existing:
                await db_manager.drop_all_tables()
                await db_manager.create_all_tables()

            async with db_manager.get_db_transaction() as session:
                counts = await self.write(session)
            self.print_summary(counts)
            return counts
        finally:
            await db_manager.close()

    @staticmethod
    def print_summary(counts: Dict[str, int]) -> None:
        by_kind = defaultdict(int, counts)
        print("Demo coverage data:")
        for kind in ("teachers", "rooms", "exam_rooms", "teacher_unavailability"):
            print(f"  {kind:<24} {by_kind[kind]}")


async def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Seed the database with demo invigilation coverage data."
    )
    parser.add_argument("--database-url", help="Database connection URL.")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop and recreate all tables before seeding.",
    )
    parser.add_argument(
        "--magnitude",
        type=int,
        choices=sorted(MAGNITUDE_LEVELS),
        default=1,
        help="Data size magnitude.",
    )
    parser.add_argument("--days", type=int, default=5, help="Number of exam weekdays.")
    parser.add_argument(
        "--start-date",
        type=date.fromisoformat,
        default=DEFAULT_START_DATE,
        help="First exam date (YYYY-MM-DD).",
    )
    parser.add_argument("--seed", type=int, help="A seed for the random number generator.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    seeder = DemoCoverageSeeder(
        database_url=args.database_url,
        seed=args.seed,
        magnitude=args.magnitude,
        start_date=args.start_date,
        days=args.days,
    )
    try:
        await seeder.run(drop_existing=args.drop_existing)
    except Exception:
        logger.critical("Seeding process failed. See error details above.", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
