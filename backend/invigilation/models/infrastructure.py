# backend/invigilation/models/infrastructure.py

from datetime import date, time
from typing import List, Optional, TYPE_CHECKING
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Date,
    Time,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .staffing import TeacherAssignment


class Room(Base, TimestampMixin):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    building: Mapped[str | None] = mapped_column(String(100))
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    exam_rooms: Mapped[List["ExamRoom"]] = relationship(back_populates="room")


class ExamRoom(Base, TimestampMixin):
    """A room booked for exams on one date; the row coverage slots resolve to."""

    __tablename__ = "exam_rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False
    )
    exam_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    session: Mapped[str] = mapped_column(String(20), nullable=False, default="Morning")
    start_time: Mapped[time | None] = mapped_column(Time)
    end_time: Mapped[time | None] = mapped_column(Time)
    # Recurring student group seated here, e.g. a course code
    group_label: Mapped[str | None] = mapped_column(String(100))

    room: Mapped["Room"] = relationship(back_populates="exam_rooms")
    assignments: Mapped[List["TeacherAssignment"]] = relationship(
        back_populates="exam_room", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("room_id", "exam_date", name="uq_exam_room_room_date"),
    )

    @property
    def room_number(self) -> Optional[str]:
        return self.room.room_number if self.room else None
