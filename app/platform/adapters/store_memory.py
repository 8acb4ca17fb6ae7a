import logging
import uuid
from dataclasses import replace
from datetime import date, datetime

from app.core.errors import ValidationError
from app.modules.appointments.domain import AppointmentStatus, Booking
from app.modules.availability.domain import AvailabilityException, TimeRange, Weekday
from app.platform.ports.appointment_store import AppointmentStorePort
from app.platform.ports.availability_store import AvailabilityStorePort

log = logging.getLogger("store.memory")

class InMemoryAvailabilityStore(AvailabilityStorePort):
    """Process-local rows, for local runs and tests. Last writer wins."""

    def __init__(self):
        self._flags: dict[tuple[uuid.UUID, Weekday], bool] = {}
        # range id -> (doctor, weekday, range)
        self._ranges: dict[uuid.UUID, tuple[uuid.UUID, Weekday, TimeRange]] = {}
        self._exceptions: dict[uuid.UUID, AvailabilityException] = {}

    async def load_day_flags(self, doctor_id: uuid.UUID) -> dict[Weekday, bool]:
        return {wd: enabled for (doc, wd), enabled in self._flags.items() if doc == doctor_id}

    async def set_day_flag(self, doctor_id: uuid.UUID, weekday: Weekday, enabled: bool) -> None:
        self._flags[(doctor_id, weekday)] = enabled

    async def load_ranges(self, doctor_id: uuid.UUID, weekday: Weekday | None = None) -> dict[Weekday, list[TimeRange]]:
        out: dict[Weekday, list[TimeRange]] = {}
        for doc, wd, rng in self._ranges.values():
            if doc != doctor_id or (weekday is not None and wd is not weekday):
                continue
            out.setdefault(wd, []).append(rng)
        return out

    async def save_range(self, doctor_id: uuid.UUID, weekday: Weekday, rng: TimeRange) -> TimeRange:
        if rng.id is None:
            rng = replace(rng, id=uuid.uuid4())
        elif rng.id in self._ranges and self._ranges[rng.id][0] != doctor_id:
            raise ValidationError(f"range {rng.id} belongs to another doctor", field="id")
        self._ranges[rng.id] = (doctor_id, weekday, rng)
        return rng

    async def delete_range(self, doctor_id: uuid.UUID, weekday: Weekday, range_id: uuid.UUID) -> bool:
        row = self._ranges.get(range_id)
        if row is None or row[0] != doctor_id or row[1] is not weekday:
            return False
        del self._ranges[range_id]
        return True

    async def list_exceptions(self, doctor_id: uuid.UUID, start: date | None = None, end: date | None = None) -> list[AvailabilityException]:
        rows = [
            e for e in self._exceptions.values()
            if e.doctor_id == doctor_id
            and (start is None or e.date >= start)
            and (end is None or e.date <= end)
        ]
        return sorted(rows, key=lambda e: (e.date, e.start or datetime.min.time()))

    async def add_exception(self, exc: AvailabilityException) -> AvailabilityException:
        if exc.id is None:
            exc = replace(exc, id=uuid.uuid4())
        self._exceptions[exc.id] = exc
        return exc

    async def delete_exception(self, exception_id: uuid.UUID) -> bool:
        return self._exceptions.pop(exception_id, None) is not None

class InMemoryAppointmentStore(AppointmentStorePort):
    def __init__(self):
        self._rows: dict[uuid.UUID, Booking] = {}

    async def create(self, booking: Booking) -> Booking:
        booking = replace(booking, id=booking.id or uuid.uuid4(), created_at=booking.created_at or datetime.now().astimezone())
        self._rows[booking.id] = booking
        log.debug("stored appointment %s", booking.id)
        return replace(booking)

    async def get(self, appointment_id: uuid.UUID) -> Booking | None:
        row = self._rows.get(appointment_id)
        return replace(row) if row else None

    async def update(self, booking: Booking) -> Booking:
        self._rows[booking.id] = replace(booking)
        return booking

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
        rows = [
            b for b in self._rows.values()
            if (doctor_id is None or b.doctor_id == doctor_id)
            and (patient_id is None or b.patient_id == patient_id)
            and (status is None or b.status is status)
            and (start is None or b.scheduled_at >= start)
            and (end is None or b.scheduled_at < end)
        ]
        rows.sort(key=lambda b: b.scheduled_at)
        return [replace(b) for b in rows[offset:offset + limit]]
