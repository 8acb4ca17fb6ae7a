import uuid
from datetime import date, time
from pydantic import BaseModel, Field, field_serializer
from app.modules.availability.domain import ExceptionKind, RejectReason, Weekday

# ---- Weekly schedule ----

class TimeRangeIn(BaseModel):
    id: uuid.UUID | None = None
    start: time
    end: time
    active: bool = True

class TimeRangeOut(BaseModel):
    id: uuid.UUID | None
    start: time
    end: time
    active: bool

    class Config:
        from_attributes = True

    @field_serializer("start", "end")
    def _hhmm(self, t: time) -> str:
        return t.strftime("%H:%M")

class WeekdayScheduleOut(BaseModel):
    weekday: Weekday
    enabled: bool
    time_ranges: list[TimeRangeOut]

    class Config:
        from_attributes = True

class WeekdayToggle(BaseModel):
    enabled: bool

class ScheduleEntryIn(TimeRangeIn):
    weekday: Weekday

class ScheduleBulkSave(BaseModel):
    entries: list[ScheduleEntryIn] = Field(min_length=1)

class WeekScheduleCreate(BaseModel):
    weekdays: list[Weekday] = Field(min_length=1)
    start: time
    end: time

class BatchResultOut(BaseModel):
    succeeded: int
    failed: int
    errors: list[str] = []

# ---- Exceptions ----

class ExceptionCreate(BaseModel):
    date: date
    kind: ExceptionKind
    start: time | None = None
    end: time | None = None
    reason: str | None = Field(default=None, max_length=500)

class ExceptionOut(BaseModel):
    id: uuid.UUID
    doctor_id: uuid.UUID
    date: date
    kind: ExceptionKind
    start: time | None = None
    end: time | None = None
    reason: str | None = None
    full_day: bool

    class Config:
        from_attributes = True

    @field_serializer("start", "end")
    def _hhmm(self, t: time | None) -> str | None:
        return t.strftime("%H:%M") if t else None

class DateRangeIn(BaseModel):
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=500)

class ExceptionSummaryOut(BaseModel):
    blocks: list[ExceptionOut]
    releases: list[ExceptionOut]
    total_blocks: int
    total_releases: int

# ---- Slots ----

class SlotOut(BaseModel):
    date: date
    start_time: str  # HH:MM

class DayAvailabilityOut(BaseModel):
    date: date
    bookable: bool
    reason: RejectReason | None = None
    slots: list[str] = []

class BookingCheck(BaseModel):
    date: date
    time: time

class BookingCheckOut(BaseModel):
    accepted: bool
    reason: RejectReason | None = None
