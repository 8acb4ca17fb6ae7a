import uuid
import logging
from datetime import date, datetime, time

from app.core.errors import NotFoundError, ValidationError
from app.modules.appointments.domain import AppointmentStatus, Booking, DEFAULT_DURATION_MINUTES, VALID_NEXT
from app.modules.availability.domain import Rejected
from app.modules.availability.service import BookingValidator
from app.modules.events.publisher import EventPublisher
from app.platform.ports.appointment_store import AppointmentStorePort
from app.platform.ports.clock import ClockPort

logger = logging.getLogger(__name__)


def _dt_floor(dt: datetime | None, tz) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt


class AppointmentService:
    def __init__(self, store: AppointmentStorePort, validator: BookingValidator, clock: ClockPort, events: EventPublisher | None = None):
        self.store = store
        self.validator = validator
        self.clock = clock
        self.events = events

    async def book(
        self,
        doctor_id: uuid.UUID,
        patient_id: uuid.UUID,
        on: date,
        at: time,
        reason: str | None = None,
        duration_minutes: int = DEFAULT_DURATION_MINUTES,
    ) -> tuple[Booking | None, Rejected | None]:
        """Gate the booking on the freshly resolved slots, then persist it as ``scheduled``.

        Existing appointments on the same slot are not checked.
        """
        decision = await self.validator.validate_booking_request(doctor_id, on, at)
        if not decision.ok:
            return None, decision

        scheduled_at = datetime.combine(on, decision.slot.start_time, tzinfo=self.clock.tz)
        booking = await self.store.create(Booking(
            doctor_id=doctor_id,
            patient_id=patient_id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
            reason=(reason or "").strip() or None,
        ))
        logger.info(f"Appointment {booking.id} booked for doctor {doctor_id} at {scheduled_at.isoformat()}")
        if self.events:
            await self.events.emit("APPT_BOOKED", "appointment", booking.id, {
                "doctor_id": str(doctor_id), "patient_id": str(patient_id), "scheduled_at": scheduled_at.isoformat(),
            })
        return booking, None

    async def get(self, appointment_id: uuid.UUID) -> Booking:
        obj = await self.store.get(appointment_id)
        if not obj:
            raise NotFoundError("appointment", appointment_id)
        return obj

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
        return await self.store.list(
            doctor_id=doctor_id, patient_id=patient_id, status=status,
            start=_dt_floor(start, self.clock.tz), end=_dt_floor(end, self.clock.tz), limit=limit, offset=offset,
        )

    async def change_status(self, appointment_id: uuid.UUID, status: AppointmentStatus | str, note: str | None = None) -> Booking:
        try:
            nxt = AppointmentStatus(status)
        except ValueError as e:
            raise ValidationError(f"unknown status: {status!r}", field="status") from e
        obj = await self.get(appointment_id)
        if nxt not in VALID_NEXT[obj.status]:
            raise ValidationError(f"cannot move appointment from {obj.status.value} to {nxt.value}", field="status")

        prev = obj.status
        obj.status = nxt
        if nxt is AppointmentStatus.CANCELLED:
            obj.cancelled_at = self.clock.now()
            obj.cancellation_reason = note
        elif nxt is AppointmentStatus.COMPLETED:
            obj.completed_at = self.clock.now()
            if note:
                obj.notes = note
        obj = await self.store.update(obj)
        if self.events:
            await self.events.emit("APPT_STATUS_CHANGED", "appointment", obj.id, {"from": prev.value, "to": nxt.value})
        return obj

    # ---- conveniences ----
    async def confirm(self, appointment_id: uuid.UUID) -> Booking:
        return await self.change_status(appointment_id, AppointmentStatus.CONFIRMED)

    async def cancel(self, appointment_id: uuid.UUID, reason: str | None = None) -> Booking:
        return await self.change_status(appointment_id, AppointmentStatus.CANCELLED, reason)

    async def complete(self, appointment_id: uuid.UUID, notes: str | None = None) -> Booking:
        return await self.change_status(appointment_id, AppointmentStatus.COMPLETED, notes)

    async def mark_no_show(self, appointment_id: uuid.UUID) -> Booking:
        return await self.change_status(appointment_id, AppointmentStatus.NO_SHOW)
