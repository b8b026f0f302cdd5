# backend/invigilation/tests/unit/test_database.py

import pytest
from sqlalchemy import func, select

from backend.invigilation import database as db_module
from backend.invigilation.models import Room


class TestDatabaseManager:
    """Tests for the session helpers the service relies on"""

    @pytest.mark.asyncio
    async def test_transaction_commits(self, database):
        async with database.get_db_transaction() as session:
            session.add(Room(room_number="R201", capacity=30))

        async with database.AsyncSessionLocal() as session:
            count = (await session.execute(select(func.count(Room.id)))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            async with database.get_db_transaction() as session:
                session.add(Room(room_number="R202", capacity=30))
                await session.flush()
                raise RuntimeError("boom")

        async with database.AsyncSessionLocal() as session:
            count = (await session.execute(select(func.count(Room.id)))).scalar_one()
        assert count == 0

    @pytest.mark.asyncio
    async def test_connection_info(self, database):
        info = await database.get_connection_info()
        assert info["dialect"] == "sqlite"

    def test_session_factory_requires_initialized_database(self, monkeypatch):
        monkeypatch.setattr(db_module.db_manager, "_is_initialized", False)
        with pytest.raises(RuntimeError):
            db_module.get_session_factory()
