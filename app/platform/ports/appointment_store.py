import uuid
from datetime import datetime
from typing import Protocol, runtime_checkable

from app.modules.appointments.domain import AppointmentStatus, Booking

@runtime_checkable
class AppointmentStorePort(Protocol):
    async def create(self, booking: Booking) -> Booking: ...
    async def get(self, appointment_id: uuid.UUID) -> Booking | None: ...
    async def update(self, booking: Booking) -> Booking: ...
    async def list(
        self,
        *,
        doctor_id: uuid.UUID | None = None,
        patient_id: uuid.UUID | None = None,
        status: AppointmentStatus | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Booking]: ...
