# backend/__init__.py

"""
Backend package for the Invigilator Coverage service.
Exposes the core modules and components.
"""

from .invigilation import (
    AppError,
    CoverageRunError,
    RunNotFoundError,
    RunStateError,
    RankLimitValidationError,
    coverage,
    data_management,
)

from .invigilation.database import (
    Base,
    DatabaseManager,
    db_manager,
    init_db,
    check_db_health,
)

from .invigilation.config import (
    Settings,
    get_settings,
    validate_settings,
    setup_logging,
    DevelopmentSettings,
    ProductionSettings,
    TestingSettings,
)

from .invigilation.main import app

__all__ = [
    # Core components
    "AppError",
    "CoverageRunError",
    "RunNotFoundError",
    "RunStateError",
    "RankLimitValidationError",
    # Services
    "coverage",
    "data_management",
    # Database
    "Base",
    "DatabaseManager",
    "db_manager",
    "init_db",
    "check_db_health",
    # Configuration
    "Settings",
    "get_settings",
    "validate_settings",
    "setup_logging",
    "DevelopmentSettings",
    "ProductionSettings",
    "TestingSettings",
    # Main application
    "app",
]
