from pydantic import BaseModel, Field
import uuid
from datetime import date, datetime, time
from app.modules.appointments.domain import AppointmentStatus
from app.modules.availability.domain import RejectReason

# ---- Appointments ----

class AppointmentBook(BaseModel):
    doctor_id: uuid.UUID
    patient_id: uuid.UUID
    date: date
    time: time
    reason: str | None = Field(default=None, max_length=1000)
    duration_minutes: int = Field(default=30, ge=5, le=240)

class AppointmentStatusChange(BaseModel):
    status: AppointmentStatus
    note: str | None = None  # cancellation reason or completion notes

class AppointmentOut(BaseModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    patient_id: uuid.UUID
    scheduled_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    reason: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None

    class Config:
        from_attributes = True

class BookingRejectedOut(BaseModel):
    detail: str = "booking_rejected"
    reason: RejectReason
