import uuid
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.core.errors import ValidationError
from app.modules.availability.domain import AvailabilityException, ExceptionKind, TimeRange, Weekday
from app.modules.availability.models import ScheduleDay, ScheduleRange, AvailabilityExceptionRow
from app.platform.ports.availability_store import AvailabilityStorePort

def _to_range(row: ScheduleRange) -> TimeRange:
    return TimeRange(start=row.start_time, end=row.end_time, active=row.active, id=row.id)

def _to_exception(row: AvailabilityExceptionRow) -> AvailabilityException:
    return AvailabilityException(
        doctor_id=row.doctor_id, date=row.date, kind=ExceptionKind(row.kind),
        start=row.start_time, end=row.end_time, reason=row.reason, id=row.id,
    )

class SqlAvailabilityStore(AvailabilityStorePort):
    """AvailabilityStorePort over the schedule_day / schedule_range / availability_exception tables.

    Every mutation commits on its own so that batch callers keep earlier
    units when a later one fails.
    """

    def __init__(self, s: AsyncSession): self.s = s

    async def _commit(self):
        try:
            await self.s.commit()
        except Exception:
            await self.s.rollback()
            raise

    # weekday flags
    async def load_day_flags(self, doctor_id: uuid.UUID) -> dict[Weekday, bool]:
        res = await self.s.execute(select(ScheduleDay).where(
            ScheduleDay.doctor_id==doctor_id,
            ScheduleDay.deleted_at.is_(None),
        ))
        return {Weekday(r.weekday): r.enabled for r in res.scalars().all()}

    async def set_day_flag(self, doctor_id: uuid.UUID, weekday: Weekday, enabled: bool) -> None:
        res = await self.s.execute(select(ScheduleDay).where(
            ScheduleDay.doctor_id==doctor_id,
            ScheduleDay.weekday==weekday.value,
        ))
        row = res.scalar_one_or_none()
        if row is None:
            self.s.add(ScheduleDay(doctor_id=doctor_id, weekday=weekday.value, enabled=enabled))
        else:
            row.enabled = enabled
            row.touch()
        await self._commit()

    # recurring ranges
    async def load_ranges(self, doctor_id: uuid.UUID, weekday: Weekday | None = None) -> dict[Weekday, list[TimeRange]]:
        q = select(ScheduleRange).where(
            ScheduleRange.doctor_id==doctor_id,
            ScheduleRange.deleted_at.is_(None),
        )
        if weekday is not None:
            q = q.where(ScheduleRange.weekday==weekday.value)
        res = await self.s.execute(q.order_by(ScheduleRange.start_time))
        out: dict[Weekday, list[TimeRange]] = {}
        for row in res.scalars().all():
            out.setdefault(Weekday(row.weekday), []).append(_to_range(row))
        return out

    async def save_range(self, doctor_id: uuid.UUID, weekday: Weekday, rng: TimeRange) -> TimeRange:
        row = await self.s.get(ScheduleRange, rng.id) if rng.id else None
        if row is None:
            row = ScheduleRange(id=rng.id or uuid.uuid4(), doctor_id=doctor_id, weekday=weekday.value,
                                start_time=rng.start, end_time=rng.end, active=rng.active)
            self.s.add(row)
        elif row.doctor_id != doctor_id:
            raise ValidationError(f"range {rng.id} belongs to another doctor", field="id")
        else:
            row.weekday = weekday.value
            row.start_time = rng.start
            row.end_time = rng.end
            row.active = rng.active
            row.touch()
        await self._commit()
        return _to_range(row)

    async def delete_range(self, doctor_id: uuid.UUID, weekday: Weekday, range_id: uuid.UUID) -> bool:
        res = await self.s.execute(select(ScheduleRange).where(
            ScheduleRange.id==range_id,
            ScheduleRange.doctor_id==doctor_id,
            ScheduleRange.weekday==weekday.value,
            ScheduleRange.deleted_at.is_(None),
        ))
        row = res.scalar_one_or_none()
        if row is None:
            return False
        row.soft_delete()
        await self._commit()
        return True

    # exceptions
    async def list_exceptions(self, doctor_id: uuid.UUID, start: date | None = None, end: date | None = None) -> list[AvailabilityException]:
        cond = [AvailabilityExceptionRow.doctor_id==doctor_id, AvailabilityExceptionRow.deleted_at.is_(None)]
        if start is not None:
            cond.append(AvailabilityExceptionRow.date >= start)
        if end is not None:
            cond.append(AvailabilityExceptionRow.date <= end)
        res = await self.s.execute(
            select(AvailabilityExceptionRow).where(*cond)
            .order_by(AvailabilityExceptionRow.date, AvailabilityExceptionRow.start_time)
        )
        return [_to_exception(r) for r in res.scalars().all()]

    async def add_exception(self, exc: AvailabilityException) -> AvailabilityException:
        row = AvailabilityExceptionRow(
            id=exc.id or uuid.uuid4(), doctor_id=exc.doctor_id, date=exc.date, kind=exc.kind.value,
            start_time=exc.start, end_time=exc.end, reason=exc.reason,
        )
        self.s.add(row)
        await self._commit()
        return _to_exception(row)

    async def delete_exception(self, exception_id: uuid.UUID) -> bool:
        row = await self.s.get(AvailabilityExceptionRow, exception_id)
        if row is None or row.deleted_at is not None:
            return False
        row.soft_delete()
        await self._commit()
        return True
