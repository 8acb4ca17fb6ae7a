import uuid
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from app.modules.appointments.domain import AppointmentStatus, Booking
from app.modules.appointments.models import Appointment
from app.platform.ports.appointment_store import AppointmentStorePort

_FIELDS = (
    "doctor_id", "patient_id", "scheduled_at", "duration_minutes", "reason", "notes",
    "cancellation_reason", "cancelled_at", "completed_at",
)

def _to_booking(row: Appointment) -> Booking:
    return Booking(
        id=row.id, created_at=row.created_at, status=AppointmentStatus(row.status),
        **{f: getattr(row, f) for f in _FIELDS},
    )

class SqlAppointmentStore(AppointmentStorePort):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: Booking) -> Booking:
        obj = Appointment(
            id=booking.id or uuid.uuid4(), status=booking.status.value,
            **{f: getattr(booking, f) for f in _FIELDS},
        )
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return _to_booking(obj)

    async def _row(self, appointment_id: uuid.UUID) -> Appointment | None:
        q = select(Appointment).where(
            and_(Appointment.id == appointment_id,
                 Appointment.deleted_at.is_(None))
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def get(self, appointment_id: uuid.UUID) -> Booking | None:
        obj = await self._row(appointment_id)
        return _to_booking(obj) if obj else None

    async def update(self, booking: Booking) -> Booking:
        obj = await self._row(booking.id)
        if obj is None:
            raise LookupError(f"appointment {booking.id} vanished during update")
        for f in _FIELDS:
            setattr(obj, f, getattr(booking, f))
        obj.status = booking.status.value
        obj.touch()
        await self.session.commit()
        return _to_booking(obj)

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
    ) -> list[Booking]:
        cond = [Appointment.deleted_at.is_(None)]
        if doctor_id:
            cond.append(Appointment.doctor_id == doctor_id)
        if patient_id:
            cond.append(Appointment.patient_id == patient_id)
        if status:
            cond.append(Appointment.status == status.value)
        if start:
            cond.append(Appointment.scheduled_at >= start)
        if end:
            cond.append(Appointment.scheduled_at < end)
        q = select(Appointment).where(and_(*cond)).order_by(Appointment.scheduled_at.asc()).limit(limit).offset(offset)
        res = await self.session.execute(q)
        return [_to_booking(r) for r in res.scalars().all()]
