import uuid
from datetime import date
from typing import Protocol, runtime_checkable

from app.modules.availability.domain import AvailabilityException, TimeRange, Weekday

@runtime_checkable
class AvailabilityStorePort(Protocol):
    """Rows behind the weekly schedule and the per-date exceptions of each doctor.

    Implementations are dumb persistence: validation happens in the stores
    that wrap them. Deletes report whether a row was removed and never raise
    for unknown ids.
    """

    # weekday flags
    async def load_day_flags(self, doctor_id: uuid.UUID) -> dict[Weekday, bool]: ...
    async def set_day_flag(self, doctor_id: uuid.UUID, weekday: Weekday, enabled: bool) -> None: ...

    # recurring ranges
    async def load_ranges(self, doctor_id: uuid.UUID, weekday: Weekday | None = None) -> dict[Weekday, list[TimeRange]]: ...
    async def save_range(self, doctor_id: uuid.UUID, weekday: Weekday, rng: TimeRange) -> TimeRange: ...
    async def delete_range(self, doctor_id: uuid.UUID, weekday: Weekday, range_id: uuid.UUID) -> bool: ...

    # exceptions
    async def list_exceptions(self, doctor_id: uuid.UUID, start: date | None = None, end: date | None = None) -> list[AvailabilityException]: ...
    async def add_exception(self, exc: AvailabilityException) -> AvailabilityException: ...
    async def delete_exception(self, exception_id: uuid.UUID) -> bool: ...
