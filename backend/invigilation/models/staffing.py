# backend/invigilation/models/staffing.py

from datetime import date, datetime, time
from typing import List, TYPE_CHECKING
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Date,
    DateTime,
    Time,
    ForeignKey,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .infrastructure import ExamRoom


class Teacher(Base, TimestampMixin):
    __tablename__ = "teachers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    rank: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    department: Mapped[str | None] = mapped_column(String(200))
    total_periods_assigned: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    unavailabilities: Mapped[List["TeacherUnavailability"]] = relationship(
        back_populates="teacher", cascade="all, delete-orphan"
    )
    assignments: Mapped[List["TeacherAssignment"]] = relationship(
        back_populates="teacher"
    )


class TeacherUnavailability(Base):
    __tablename__ = "teacher_unavailability"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False
    )
    unavailable_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    reason: Mapped[str | None] = mapped_column(String(200))

    teacher: Mapped["Teacher"] = relationship(back_populates="unavailabilities")

    __table_args__ = (
        UniqueConstraint(
            "teacher_id", "unavailable_date", name="uq_teacher_unavailable_date"
        ),
    )


class TeacherAssignment(Base, TimestampMixin):
    __tablename__ = "teacher_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    exam_room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("exam_rooms.id", ondelete="CASCADE"), nullable=False
    )
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.id"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(30), nullable=False)
    session: Mapped[str] = mapped_column(String(20), nullable=False, default="Morning")
    shift_start: Mapped[time | None] = mapped_column(Time)
    shift_end: Mapped[time | None] = mapped_column(Time)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    exam_room: Mapped["ExamRoom"] = relationship(back_populates="assignments")
    teacher: Mapped["Teacher"] = relationship(back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("exam_room_id", "role", name="uq_assignment_exam_room_role"),
    )
