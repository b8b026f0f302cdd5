# backend/invigilation/tests/conftest.py

from datetime import date
from typing import Any, AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import async_sessionmaker

from backend.invigilation.api.deps import app_settings, get_run_registry
from backend.invigilation.config import TestingSettings
from backend.invigilation.database import DatabaseManager, get_session_factory
from backend.invigilation.main import app
from backend.invigilation.models import (
    ExamRoom,
    Room,
    Teacher,
    TeacherAssignment,
    TeacherUnavailability,
)
from backend.invigilation.services.coverage import RunRegistry

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

D1 = date(2025, 1, 6)
D2 = date(2025, 1, 7)


@pytest.fixture
def test_settings() -> TestingSettings:
    return TestingSettings()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[DatabaseManager, None]:
    """A fresh in-memory database with all tables, per test."""
    manager = DatabaseManager()
    await manager.initialize(database_url=TEST_DATABASE_URL, max_retries=1)
    await manager.create_all_tables()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def session_factory(database: DatabaseManager) -> async_sessionmaker:
    return database.AsyncSessionLocal


@pytest_asyncio.fixture
async def seeded(session_factory) -> Dict[str, Any]:
    """
    Three rooms, five exam rooms over two dates, six teachers (one inactive),
    one unavailability and one committed assignment.
    """
    async with session_factory() as session:
        async with session.begin():
            rooms = {n: Room(room_number=n, capacity=40) for n in ("R101", "R102", "R103")}
            teachers = {
                "ada": Teacher(name="Ada Senior", rank="Senior", total_periods_assigned=0),
                "bola": Teacher(name="Bola Senior", rank="Senior", total_periods_assigned=2),
                "chidi": Teacher(name="Chidi Senior", rank="Senior", total_periods_assigned=1),
                "lara": Teacher(name="Lara Lecturer", rank="Lecturer", total_periods_assigned=0),
                "tayo": Teacher(name="Tayo Tutor", rank="Tutor", total_periods_assigned=3),
                "xena": Teacher(
                    name="Xena Retired", rank="Senior", total_periods_assigned=0, is_active=False
                ),
            }
            session.add_all(list(rooms.values()) + list(teachers.values()))
            await session.flush()

            exam_rooms = {
                ("R101", D1): ExamRoom(room_id=rooms["R101"].id, exam_date=D1),
                ("R102", D1): ExamRoom(room_id=rooms["R102"].id, exam_date=D1),
                ("R103", D1): ExamRoom(room_id=rooms["R103"].id, exam_date=D1),
                ("R101", D2): ExamRoom(
                    room_id=rooms["R101"].id, exam_date=D2, session="Afternoon"
                ),
                ("R102", D2): ExamRoom(room_id=rooms["R102"].id, exam_date=D2),
            }
            session.add_all(exam_rooms.values())
            session.add(
                TeacherUnavailability(teacher_id=teachers["lara"].id, unavailable_date=D2)
            )
            await session.flush()

            session.add(
                TeacherAssignment(
                    exam_room_id=exam_rooms[("R103", D1)].id,
                    teacher_id=teachers["tayo"].id,
                    role="Assistant",
                )
            )

    return {
        "teachers": {key: t.id for key, t in teachers.items()},
        "exam_rooms": {key: er.id for key, er in exam_rooms.items()},
        "rooms": {key: r.id for key, r in rooms.items()},
    }


@pytest_asyncio.fixture
async def client(
    session_factory, test_settings, seeded
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test database and a fresh registry."""
    registry = RunRegistry(ttl_seconds=test_settings.COVERAGE_RUN_TTL_SECONDS)

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_run_registry] = lambda: registry
    app.dependency_overrides[app_settings] = lambda: test_settings

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
