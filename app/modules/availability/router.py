from datetime import date
import uuid
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import get_session
from app.core.security import require_scopes
from app.modules.availability.domain import AvailabilityException, BatchResult, DayResolution, TimeRange, Weekday, WeekdaySchedule
from app.modules.availability.service import BookingValidator, ExceptionStore, ScheduleStore, SlotResolver
from app.modules.availability.schemas import (
    BatchResultOut, BookingCheck, BookingCheckOut, DateRangeIn, DayAvailabilityOut, ExceptionCreate, ExceptionOut,
    ExceptionSummaryOut, ScheduleBulkSave, SlotOut, TimeRangeIn, TimeRangeOut, WeekdayScheduleOut, WeekdayToggle,
    WeekScheduleCreate,
)
from app.modules.events.publisher import EventPublisher
from app.platform.provider_registry import registry

router = APIRouter()

def schedule_store(s: AsyncSession = Depends(get_session)) -> ScheduleStore:
    return ScheduleStore(registry.availability_store(s), EventPublisher(registry.event_bus()))

def exception_store(s: AsyncSession = Depends(get_session)) -> ExceptionStore:
    return ExceptionStore(registry.availability_store(s), registry.clock(), EventPublisher(registry.event_bus()))

def slot_resolver(s: AsyncSession = Depends(get_session)) -> SlotResolver:
    store = registry.availability_store(s)
    return SlotResolver(ScheduleStore(store), ExceptionStore(store, registry.clock()), registry.clock())

# ---- converters ----

def _week_out(days: list[WeekdaySchedule]) -> list[WeekdayScheduleOut]:
    return [
        WeekdayScheduleOut(
            weekday=d.weekday, enabled=d.enabled,
            time_ranges=[TimeRangeOut.model_validate(r, from_attributes=True) for r in d.time_ranges],
        )
        for d in days
    ]

def _exc_out(e: AvailabilityException) -> ExceptionOut:
    return ExceptionOut(id=e.id, doctor_id=e.doctor_id, date=e.date, kind=e.kind, start=e.start, end=e.end,
                        reason=e.reason, full_day=e.is_full_day)

def _batch_out(r: BatchResult) -> BatchResultOut:
    return BatchResultOut(succeeded=r.succeeded, failed=r.failed, errors=r.errors)

def _day_out(d: DayResolution) -> DayAvailabilityOut:
    return DayAvailabilityOut(date=d.date, bookable=d.bookable, reason=d.reason, slots=[s.label for s in d.slots])

# ---- Weekly schedule ----

@router.get("/doctors/{doctor_id}/schedule", response_model=list[WeekdayScheduleOut], dependencies=[Depends(require_scopes("schedule:read"))])
async def get_weekly_schedule(doctor_id: uuid.UUID, store: ScheduleStore = Depends(schedule_store)):
    return _week_out(await store.get_weekly_schedule(doctor_id))

@router.get("/doctors/{doctor_id}/schedule/summary", dependencies=[Depends(require_scopes("schedule:read"))])
async def get_schedule_summary(doctor_id: uuid.UUID, store: ScheduleStore = Depends(schedule_store)) -> dict[str, list[TimeRangeOut]]:
    summary = await store.schedule_summary(doctor_id)
    return {wd.value: [TimeRangeOut.model_validate(r, from_attributes=True) for r in ranges] for wd, ranges in summary.items()}

@router.put("/doctors/{doctor_id}/schedule/{weekday}/ranges", response_model=list[WeekdayScheduleOut], dependencies=[Depends(require_scopes("schedule:write"))])
async def upsert_time_range(doctor_id: uuid.UUID, weekday: Weekday, payload: TimeRangeIn, store: ScheduleStore = Depends(schedule_store)):
    rng = TimeRange(start=payload.start, end=payload.end, active=payload.active, id=payload.id)
    return _week_out(await store.upsert_time_range(doctor_id, weekday, rng))

@router.delete("/doctors/{doctor_id}/schedule/{weekday}/ranges/{range_id}", response_model=list[WeekdayScheduleOut], dependencies=[Depends(require_scopes("schedule:write"))])
async def remove_time_range(doctor_id: uuid.UUID, weekday: Weekday, range_id: uuid.UUID, store: ScheduleStore = Depends(schedule_store)):
    return _week_out(await store.remove_time_range(doctor_id, weekday, range_id))

@router.put("/doctors/{doctor_id}/schedule/{weekday}/enabled", response_model=list[WeekdayScheduleOut], dependencies=[Depends(require_scopes("schedule:write"))])
async def set_weekday_enabled(doctor_id: uuid.UUID, weekday: Weekday, payload: WeekdayToggle, store: ScheduleStore = Depends(schedule_store)):
    return _week_out(await store.set_weekday_enabled(doctor_id, weekday, payload.enabled))

@router.post("/doctors/{doctor_id}/schedule/bulk", response_model=BatchResultOut, dependencies=[Depends(require_scopes("schedule:write"))])
async def save_weekly_schedule(doctor_id: uuid.UUID, payload: ScheduleBulkSave, store: ScheduleStore = Depends(schedule_store)):
    entries = [(e.weekday, TimeRange(start=e.start, end=e.end, active=e.active, id=e.id)) for e in payload.entries]
    return _batch_out(await store.save_weekly_schedule(doctor_id, entries))

@router.post("/doctors/{doctor_id}/schedule/week", response_model=BatchResultOut, dependencies=[Depends(require_scopes("schedule:write"))])
async def create_week_schedule(doctor_id: uuid.UUID, payload: WeekScheduleCreate, store: ScheduleStore = Depends(schedule_store)):
    return _batch_out(await store.create_week_schedule(doctor_id, payload.weekdays, payload.start, payload.end))

# ---- Exceptions ----

@router.get("/doctors/{doctor_id}/exceptions", response_model=list[ExceptionOut], dependencies=[Depends(require_scopes("schedule:read"))])
async def list_exceptions(doctor_id: uuid.UUID, start: date | None = None, end: date | None = None, upcoming: bool = False, store: ExceptionStore = Depends(exception_store)):
    rows = await store.future_exceptions(doctor_id) if upcoming else await store.list_exceptions(doctor_id, start, end)
    return [_exc_out(e) for e in rows]

@router.post("/doctors/{doctor_id}/exceptions", response_model=ExceptionOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_scopes("schedule:write"))])
async def create_exception(doctor_id: uuid.UUID, payload: ExceptionCreate, store: ExceptionStore = Depends(exception_store)):
    exc = await store.create_exception(doctor_id, payload.date, payload.kind, payload.start, payload.end, payload.reason)
    return _exc_out(exc)

@router.delete("/exceptions/{exception_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_scopes("schedule:write"))])
async def delete_exception(exception_id: uuid.UUID, store: ExceptionStore = Depends(exception_store)):
    await store.delete_exception(exception_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.post("/doctors/{doctor_id}/exceptions/block-range", response_model=BatchResultOut, dependencies=[Depends(require_scopes("schedule:write"))])
async def block_date_range(doctor_id: uuid.UUID, payload: DateRangeIn, store: ExceptionStore = Depends(exception_store)):
    return _batch_out(await store.block_date_range(doctor_id, payload.start_date, payload.end_date, payload.reason or "Vacation"))

@router.post("/doctors/{doctor_id}/exceptions/delete-range", response_model=BatchResultOut, dependencies=[Depends(require_scopes("schedule:write"))])
async def delete_exceptions_in_range(doctor_id: uuid.UUID, payload: DateRangeIn, store: ExceptionStore = Depends(exception_store)):
    return _batch_out(await store.delete_exceptions_in_range(doctor_id, payload.start_date, payload.end_date))

@router.get("/doctors/{doctor_id}/exceptions/summary", response_model=ExceptionSummaryOut, dependencies=[Depends(require_scopes("schedule:read"))])
async def exception_month_summary(doctor_id: uuid.UUID, year: int = Query(ge=1900, le=9999), month: int = Query(ge=1, le=12), store: ExceptionStore = Depends(exception_store)):
    summary = await store.month_summary(doctor_id, year, month)
    return ExceptionSummaryOut(
        blocks=[_exc_out(e) for e in summary.blocks],
        releases=[_exc_out(e) for e in summary.releases],
        total_blocks=summary.total_blocks,
        total_releases=summary.total_releases,
    )

# ---- Slots ----

@router.get("/doctors/{doctor_id}/slots", response_model=list[SlotOut], dependencies=[Depends(require_scopes("schedule:read"))])
async def available_slots(doctor_id: uuid.UUID, on: date = Query(alias="date"), resolver: SlotResolver = Depends(slot_resolver)):
    slots = await resolver.resolve_available_slots(doctor_id, on)
    return [SlotOut(date=s.date, start_time=s.label) for s in slots]

@router.get("/doctors/{doctor_id}/calendar", response_model=list[DayAvailabilityOut], dependencies=[Depends(require_scopes("schedule:read"))])
async def month_calendar(doctor_id: uuid.UUID, year: int = Query(ge=1900, le=9999), month: int = Query(ge=1, le=12), resolver: SlotResolver = Depends(slot_resolver)):
    return [_day_out(d) for d in await resolver.month_calendar(doctor_id, year, month)]

@router.post("/doctors/{doctor_id}/slots/validate", response_model=BookingCheckOut, dependencies=[Depends(require_scopes("schedule:read"))])
async def validate_booking_request(doctor_id: uuid.UUID, payload: BookingCheck, resolver: SlotResolver = Depends(slot_resolver)):
    decision = await BookingValidator(resolver).validate_booking_request(doctor_id, payload.date, payload.time)
    return BookingCheckOut(accepted=decision.ok, reason=None if decision.ok else decision.reason)
