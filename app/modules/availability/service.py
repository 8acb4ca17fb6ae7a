import calendar
import logging
import uuid
from datetime import date, time, timedelta
from typing import Iterable

from app.core.errors import ValidationError
from app.modules.availability import resolver
from app.modules.availability.domain import (
    WEEK_ORDER,
    AvailabilityException,
    BatchResult,
    BookingDecision,
    DayResolution,
    ExceptionKind,
    ExceptionSummary,
    ResolvedSlot,
    TimeRange,
    Weekday,
    WeekdaySchedule,
)
from app.modules.events.publisher import EventPublisher
from app.platform.ports.availability_store import AvailabilityStorePort
from app.platform.ports.clock import ClockPort

logger = logging.getLogger(__name__)


def _weekday(raw: Weekday | str) -> Weekday:
    try:
        return Weekday.parse(raw)
    except ValueError as e:
        raise ValidationError(str(e), field="weekday") from e


def _check_window(start: time, end: time) -> None:
    if start >= end:
        raise ValidationError(f"start {start:%H:%M} must be before end {end:%H:%M}", field="end")


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be 1..12, got {month}", field="month")
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


class ScheduleStore:
    """Weekly recurring schedule per doctor.

    A weekday counts only when its own ``enabled`` flag is set, and a range on
    it counts only when the range is ``active``; the two flags are independent.
    Mutators return the updated weekly snapshot.
    """

    def __init__(self, store: AvailabilityStorePort, events: EventPublisher | None = None):
        self.store = store
        self.events = events

    async def _emit(self, event_type: str, subject_id, payload: dict):
        if self.events:
            await self.events.emit(event_type, "schedule", subject_id, payload)

    async def get_weekly_schedule(self, doctor_id: uuid.UUID) -> list[WeekdaySchedule]:
        flags = await self.store.load_day_flags(doctor_id)
        ranges = await self.store.load_ranges(doctor_id)
        return [
            WeekdaySchedule(
                weekday=wd,
                enabled=flags.get(wd, False),
                time_ranges=tuple(sorted(ranges.get(wd, []), key=lambda r: (r.start, r.end))),
            )
            for wd in WEEK_ORDER
        ]

    async def get_day_schedule(self, doctor_id: uuid.UUID, weekday: Weekday | str) -> WeekdaySchedule:
        wd = _weekday(weekday)
        flags = await self.store.load_day_flags(doctor_id)
        ranges = await self.store.load_ranges(doctor_id, wd)
        return WeekdaySchedule(
            weekday=wd,
            enabled=flags.get(wd, False),
            time_ranges=tuple(sorted(ranges.get(wd, []), key=lambda r: (r.start, r.end))),
        )

    async def _save(self, doctor_id: uuid.UUID, weekday: Weekday | str, rng: TimeRange) -> TimeRange:
        wd = _weekday(weekday)
        _check_window(rng.start, rng.end)
        saved = await self.store.save_range(doctor_id, wd, rng)
        await self._emit("SCHEDULE_RANGE_SAVED", saved.id, {
            "doctor_id": str(doctor_id), "weekday": wd.value,
            "start": saved.start.isoformat(), "end": saved.end.isoformat(), "active": saved.active,
        })
        return saved

    async def upsert_time_range(self, doctor_id: uuid.UUID, weekday: Weekday | str, rng: TimeRange) -> list[WeekdaySchedule]:
        """Replace the range carrying ``rng.id``, or append it when it has none."""
        await self._save(doctor_id, weekday, rng)
        return await self.get_weekly_schedule(doctor_id)

    async def remove_time_range(self, doctor_id: uuid.UUID, weekday: Weekday | str, range_id: uuid.UUID) -> list[WeekdaySchedule]:
        wd = _weekday(weekday)
        if await self.store.delete_range(doctor_id, wd, range_id):
            await self._emit("SCHEDULE_RANGE_REMOVED", range_id, {"doctor_id": str(doctor_id), "weekday": wd.value})
        else:
            logger.debug(f"range {range_id} not on {wd.value} for doctor {doctor_id}; nothing to remove")
        return await self.get_weekly_schedule(doctor_id)

    async def set_weekday_enabled(self, doctor_id: uuid.UUID, weekday: Weekday | str, enabled: bool) -> list[WeekdaySchedule]:
        wd = _weekday(weekday)
        await self.store.set_day_flag(doctor_id, wd, enabled)
        await self._emit("SCHEDULE_DAY_TOGGLED", doctor_id, {"weekday": wd.value, "enabled": enabled})
        return await self.get_weekly_schedule(doctor_id)

    async def save_weekly_schedule(self, doctor_id: uuid.UUID, entries: Iterable[tuple[Weekday | str, TimeRange]]) -> BatchResult:
        result = BatchResult()
        for idx, (weekday, rng) in enumerate(entries):
            try:
                saved = await self._save(doctor_id, weekday, rng)
            except Exception as e:
                logger.warning(f"Schedule item {idx} ({weekday}) for doctor {doctor_id} not saved: {e}")
                result.record_failure(f"item {idx}", e)
            else:
                result.record_success(saved)
        logger.info(f"Weekly schedule save for doctor {doctor_id}: {result.succeeded} saved, {result.failed} failed")
        return result

    async def create_week_schedule(self, doctor_id: uuid.UUID, weekdays: Iterable[Weekday | str], start: time, end: time) -> BatchResult:
        """One new active range per weekday, enabling each weekday it lands on."""
        result = BatchResult()
        for weekday in weekdays:
            try:
                wd = _weekday(weekday)
                saved = await self._save(doctor_id, wd, TimeRange(start=start, end=end, active=True))
                await self.store.set_day_flag(doctor_id, wd, True)
            except Exception as e:
                logger.warning(f"Week schedule for doctor {doctor_id} failed on {weekday}: {e}")
                result.record_failure(str(getattr(weekday, "value", weekday)), e)
            else:
                result.record_success(saved)
        return result

    async def schedule_summary(self, doctor_id: uuid.UUID) -> dict[Weekday, list[TimeRange]]:
        return {
            day.weekday: day.active_ranges() if day.enabled else []
            for day in await self.get_weekly_schedule(doctor_id)
        }

    async def is_available_on_weekday(self, doctor_id: uuid.UUID, weekday: Weekday | str) -> bool:
        day = await self.get_day_schedule(doctor_id, weekday)
        return day.enabled and bool(day.active_ranges())


class ExceptionStore:
    """Date-specific blocks and releases layered on the weekly schedule."""

    def __init__(self, store: AvailabilityStorePort, clock: ClockPort, events: EventPublisher | None = None):
        self.store = store
        self.clock = clock
        self.events = events

    async def _emit(self, event_type: str, subject_id, payload: dict):
        if self.events:
            await self.events.emit(event_type, "exception", subject_id, payload)

    async def list_exceptions(self, doctor_id: uuid.UUID, start: date | None = None, end: date | None = None) -> list[AvailabilityException]:
        if start and end and end < start:
            raise ValidationError("end date is before start date", field="end")
        return await self.store.list_exceptions(doctor_id, start, end)

    async def create_exception(
        self,
        doctor_id: uuid.UUID,
        on: date,
        kind: ExceptionKind | str,
        start: time | None = None,
        end: time | None = None,
        reason: str | None = None,
    ) -> AvailabilityException:
        try:
            kind = kind if isinstance(kind, ExceptionKind) else ExceptionKind(str(kind).strip().lower())
        except ValueError as e:
            raise ValidationError(f"unknown exception kind: {kind!r}", field="kind") from e
        if (start is None) != (end is None):
            raise ValidationError("start and end must be given together, or both omitted for a full day", field="start")
        if start is not None:
            _check_window(start, end)
        reason = (reason or "").strip() or None

        exc = await self.store.add_exception(AvailabilityException(
            doctor_id=doctor_id, date=on, kind=kind, start=start, end=end, reason=reason,
        ))
        await self._emit("EXCEPTION_CREATED", exc.id, {
            "doctor_id": str(doctor_id), "date": on.isoformat(), "kind": kind.value,
            "start": start.isoformat() if start else None, "end": end.isoformat() if end else None,
        })
        return exc

    async def delete_exception(self, exception_id: uuid.UUID) -> bool:
        removed = await self.store.delete_exception(exception_id)
        if removed:
            await self._emit("EXCEPTION_DELETED", exception_id, {})
        return removed

    # ---- conveniences ----
    async def block_full_day(self, doctor_id: uuid.UUID, on: date, reason: str | None = None):
        return await self.create_exception(doctor_id, on, ExceptionKind.BLOCK, reason=reason)

    async def block_time_range(self, doctor_id: uuid.UUID, on: date, start: time, end: time, reason: str | None = None):
        return await self.create_exception(doctor_id, on, ExceptionKind.BLOCK, start, end, reason)

    async def release_full_day(self, doctor_id: uuid.UUID, on: date, reason: str | None = None):
        return await self.create_exception(doctor_id, on, ExceptionKind.RELEASE, reason=reason)

    async def release_time_range(self, doctor_id: uuid.UUID, on: date, start: time, end: time, reason: str | None = None):
        return await self.create_exception(doctor_id, on, ExceptionKind.RELEASE, start, end, reason)

    async def block_date_range(self, doctor_id: uuid.UUID, start_date: date, end_date: date, reason: str | None = "Vacation") -> BatchResult:
        """Full-day block for every date in [start_date, end_date]; days are independent."""
        if end_date < start_date:
            raise ValidationError("end date is before start date", field="end_date")
        result = BatchResult()
        day = start_date
        while day <= end_date:
            try:
                exc = await self.block_full_day(doctor_id, day, reason)
            except Exception as e:
                logger.warning(f"Could not block {day.isoformat()} for doctor {doctor_id}: {e}")
                result.record_failure(day.isoformat(), e)
            else:
                result.record_success(exc)
            day += timedelta(days=1)
        logger.info(f"Blocked {result.succeeded} day(s) for doctor {doctor_id}, {result.failed} failed")
        return result

    async def delete_exceptions_in_range(self, doctor_id: uuid.UUID, start_date: date, end_date: date) -> BatchResult:
        result = BatchResult()
        for exc in await self.list_exceptions(doctor_id, start_date, end_date):
            try:
                await self.delete_exception(exc.id)
            except Exception as e:
                logger.warning(f"Could not delete exception {exc.id}: {e}")
                result.record_failure(exc.date.isoformat(), e)
            else:
                result.record_success(exc)
        return result

    # ---- queries ----
    async def list_blocks(self, doctor_id: uuid.UUID) -> list[AvailabilityException]:
        return [e for e in await self.store.list_exceptions(doctor_id) if e.kind is ExceptionKind.BLOCK]

    async def list_releases(self, doctor_id: uuid.UUID) -> list[AvailabilityException]:
        return [e for e in await self.store.list_exceptions(doctor_id) if e.kind is ExceptionKind.RELEASE]

    async def is_day_blocked(self, doctor_id: uuid.UUID, on: date) -> bool:
        # any block counts here, partial ones included
        return any(e.kind is ExceptionKind.BLOCK for e in await self.store.list_exceptions(doctor_id, on, on))

    async def is_time_blocked(self, doctor_id: uuid.UUID, on: date, at: time) -> bool:
        for e in await self.store.list_exceptions(doctor_id, on, on):
            if e.kind is not ExceptionKind.BLOCK:
                continue
            if e.is_full_day:
                return True
            if e.start is not None and e.end is not None and e.start <= at <= e.end:
                return True
        return False

    async def future_exceptions(self, doctor_id: uuid.UUID) -> list[AvailabilityException]:
        return await self.store.list_exceptions(doctor_id, start=self.clock.today())

    async def month_summary(self, doctor_id: uuid.UUID, year: int, month: int) -> ExceptionSummary:
        first, last = _month_bounds(year, month)
        rows = await self.store.list_exceptions(doctor_id, first, last)
        return ExceptionSummary(
            blocks=tuple(e for e in rows if e.kind is ExceptionKind.BLOCK),
            releases=tuple(e for e in rows if e.kind is ExceptionKind.RELEASE),
        )


class SlotResolver:
    """Reads the latest schedule and exceptions on every call; nothing is cached."""

    def __init__(self, schedules: ScheduleStore, exceptions: ExceptionStore, clock: ClockPort):
        self.schedules = schedules
        self.exceptions = exceptions
        self.clock = clock

    async def resolve_day(self, doctor_id: uuid.UUID, on: date) -> DayResolution:
        day = await self.schedules.get_day_schedule(doctor_id, Weekday.of(on))
        excs = await self.exceptions.store.list_exceptions(doctor_id, on, on)
        return resolver.resolve_day(day, excs, on, self.clock.today())

    async def resolve_available_slots(self, doctor_id: uuid.UUID, on: date) -> list[ResolvedSlot]:
        return list((await self.resolve_day(doctor_id, on)).slots)

    async def is_date_bookable(self, doctor_id: uuid.UUID, on: date) -> bool:
        return (await self.resolve_day(doctor_id, on)).bookable

    async def month_calendar(self, doctor_id: uuid.UUID, year: int, month: int) -> list[DayResolution]:
        first, last = _month_bounds(year, month)
        weekly = {d.weekday: d for d in await self.schedules.get_weekly_schedule(doctor_id)}
        excs = await self.exceptions.store.list_exceptions(doctor_id, first, last)
        today = self.clock.today()
        out = []
        day = first
        while day <= last:
            out.append(resolver.resolve_day(weekly[Weekday.of(day)], excs, day, today))
            day += timedelta(days=1)
        return out


class BookingValidator:
    def __init__(self, slots: SlotResolver):
        self.slots = slots

    async def validate_booking_request(self, doctor_id: uuid.UUID, on: date, at: time) -> BookingDecision:
        # always recomputed, never served from an earlier resolution
        resolution = await self.slots.resolve_day(doctor_id, on)
        decision = resolver.validate_booking(resolution, at)
        if not decision.ok:
            logger.info(f"Booking request rejected for doctor {doctor_id} on {on.isoformat()} {at:%H:%M}: {decision.reason.value}")
        return decision
