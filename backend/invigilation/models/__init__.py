# backend/invigilation/models/__init__.py

from .base import Base, TimestampMixin
from .infrastructure import Room, ExamRoom
from .staffing import Teacher, TeacherUnavailability, TeacherAssignment

__all__ = [
    "Base",
    "TimestampMixin",
    "Room",
    "ExamRoom",
    "Teacher",
    "TeacherUnavailability",
    "TeacherAssignment",
]
