# backend/invigilation/services/__init__.py
from . import coverage, data_management
from .tracking_mixin import TrackingMixin

__all__ = ["coverage", "data_management", "TrackingMixin"]
