import uuid
import datetime as dt
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Date, Time, Text, UniqueConstraint
from app.core.base import Base, TimestampedMixin

# weekday columns hold Weekday values ("sunday".."saturday")

class ScheduleDay(Base, TimestampedMixin):
    __tablename__ = "schedule_day"
    __table_args__ = (UniqueConstraint("doctor_id", "weekday"),)
    doctor_id: Mapped[uuid.UUID] = mapped_column(index=True)
    weekday: Mapped[str] = mapped_column(String(9))
    enabled: Mapped[bool] = mapped_column(default=False)

class ScheduleRange(Base, TimestampedMixin):
    __tablename__ = "schedule_range"
    doctor_id: Mapped[uuid.UUID] = mapped_column(index=True)
    weekday: Mapped[str] = mapped_column(String(9))
    start_time: Mapped[dt.time] = mapped_column(Time)
    end_time: Mapped[dt.time] = mapped_column(Time)
    active: Mapped[bool] = mapped_column(default=True)

class AvailabilityExceptionRow(Base, TimestampedMixin):
    __tablename__ = "availability_exception"
    doctor_id: Mapped[uuid.UUID] = mapped_column(index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    kind: Mapped[str] = mapped_column(String(16))  # block | release
    start_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)  # both null = whole day
    end_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
