# backend/invigilation/services/data_management/__init__.py
from .demo_seeder import DemoCoverageSeeder, DemoDataset, exam_weekdays

__all__ = ["DemoCoverageSeeder", "DemoDataset", "exam_weekdays"]
