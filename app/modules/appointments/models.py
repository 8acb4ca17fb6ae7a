import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, TIMESTAMP, Text, Integer
from app.core.base import Base, TimestampedMixin

class Appointment(Base, TimestampedMixin):
    doctor_id: Mapped[uuid.UUID] = mapped_column(index=True)
    patient_id: Mapped[uuid.UUID] = mapped_column(index=True)

    # Scheduling
    scheduled_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=30)
    status: Mapped[str] = mapped_column(String(24), default="scheduled")  # scheduled, confirmed, completed, cancelled, no_show
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)  # chief complaint as typed by the patient
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
