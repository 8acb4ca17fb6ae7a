from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum


class Weekday(str, Enum):
    SUN = "sunday"
    MON = "monday"
    TUE = "tuesday"
    WED = "wednesday"
    THU = "thursday"
    FRI = "friday"
    SAT = "saturday"

    @classmethod
    def of(cls, d: date) -> Weekday:
        # date.weekday() is 0=Mon..6=Sun
        return _BY_ISO_INDEX[d.weekday()]

    @classmethod
    def parse(cls, raw: Weekday | str) -> Weekday:
        if isinstance(raw, Weekday):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            pass
        try:
            return cls[str(raw).strip().upper()]
        except KeyError:
            raise ValueError(f"unknown weekday: {raw!r}") from None


WEEK_ORDER: tuple[Weekday, ...] = (
    Weekday.SUN, Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI, Weekday.SAT,
)
_BY_ISO_INDEX = (
    Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI, Weekday.SAT, Weekday.SUN,
)


def hhmm(t: time) -> str:
    return t.strftime("%H:%M")


@dataclass(frozen=True)
class TimeRange:
    """A recurring offering window on one weekday.

    ``id`` is None until the range has been persisted.
    """

    start: time
    end: time
    active: bool = True
    id: uuid.UUID | None = None

    def overlaps(self, start: time, end: time) -> bool:
        # half-open: 09:00-10:00 and 10:00-11:00 do not overlap
        return self.start < end and start < self.end


@dataclass(frozen=True)
class WeekdaySchedule:
    weekday: Weekday
    enabled: bool = False
    time_ranges: tuple[TimeRange, ...] = ()

    def active_ranges(self) -> list[TimeRange]:
        return sorted((r for r in self.time_ranges if r.active), key=lambda r: (r.start, r.end))


class ExceptionKind(str, Enum):
    BLOCK = "block"
    RELEASE = "release"


@dataclass(frozen=True)
class AvailabilityException:
    doctor_id: uuid.UUID
    date: date
    kind: ExceptionKind
    start: time | None = None
    end: time | None = None
    reason: str | None = None
    id: uuid.UUID | None = None

    @property
    def is_full_day(self) -> bool:
        return self.start is None and self.end is None


@dataclass(frozen=True, order=True)
class ResolvedSlot:
    date: date
    start_time: time

    @property
    def label(self) -> str:
        return hhmm(self.start_time)


class RejectReason(str, Enum):
    PAST_DATE = "PAST_DATE"
    DAY_DISABLED = "DAY_DISABLED"
    TIME_NOT_OFFERED = "TIME_NOT_OFFERED"
    DATE_BLOCKED = "DATE_BLOCKED"


@dataclass(frozen=True)
class Accepted:
    slot: ResolvedSlot

    ok = True


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason

    ok = False


BookingDecision = Accepted | Rejected


@dataclass(frozen=True)
class DayResolution:
    """Slots for one date plus why the list is empty, when it is."""

    date: date
    slots: tuple[ResolvedSlot, ...] = ()
    reason: RejectReason | None = None

    @property
    def bookable(self) -> bool:
        return bool(self.slots)


@dataclass
class BatchResult:
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    items: list = field(default_factory=list)

    def record_success(self, item=None) -> None:
        self.succeeded += 1
        if item is not None:
            self.items.append(item)

    def record_failure(self, unit: str, error: Exception) -> None:
        self.failed += 1
        self.errors.append(f"{unit}: {error}")


@dataclass(frozen=True)
class ExceptionSummary:
    blocks: tuple[AvailabilityException, ...]
    releases: tuple[AvailabilityException, ...]

    @property
    def total_blocks(self) -> int:
        return len(self.blocks)

    @property
    def total_releases(self) -> int:
        return len(self.releases)
