# backend/invigilation/api/deps.py
import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import Settings, get_settings
from ..database import get_session_factory
from ..services.coverage import CoverageAssignmentService, RunRegistry

logger = logging.getLogger(__name__)


@lru_cache()
def get_run_registry() -> RunRegistry:
    """Process-wide registry of live coverage runs."""
    settings = get_settings()
    logger.info(
        f"Creating coverage run registry (ttl={settings.COVERAGE_RUN_TTL_SECONDS}s)"
    )
    return RunRegistry(ttl_seconds=settings.COVERAGE_RUN_TTL_SECONDS)


def app_settings() -> Settings:
    return get_settings()


async def coverage_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    registry: RunRegistry = Depends(get_run_registry),
    settings: Settings = Depends(app_settings),
) -> CoverageAssignmentService:
    """Dependency to get a coverage service bound to the shared run registry."""
    return CoverageAssignmentService(session_factory, registry, settings=settings)
