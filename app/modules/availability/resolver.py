"""Slot resolution for a single doctor and date.

Everything here is pure: callers fetch the weekday schedule and the
exceptions first and pass in "today", so results depend only on the
arguments.

Policies:

* Overlapping time ranges on a weekday are treated as a union. Slots are
  start times, so two ranges that begin at the same minute yield one slot.
* A partial BLOCK drops every range it overlaps (half-open comparison);
  ranges are never trimmed or split.
* A full-day BLOCK wins over any RELEASE on the same date.
* RELEASE exceptions are not applied. They are stored and listed, but
  whether a release may add time outside the weekly schedule is undecided.
"""
from datetime import date, time
from typing import Iterable

from app.modules.availability.domain import (
    Accepted,
    AvailabilityException,
    BookingDecision,
    DayResolution,
    ExceptionKind,
    Rejected,
    RejectReason,
    ResolvedSlot,
    Weekday,
    WeekdaySchedule,
)


def resolve_day(
    day: WeekdaySchedule,
    exceptions: Iterable[AvailabilityException],
    target: date,
    today: date,
) -> DayResolution:
    if day.weekday is not Weekday.of(target):
        raise ValueError(f"{target.isoformat()} is a {Weekday.of(target).value}, schedule is for {day.weekday.value}")

    if target < today:
        return DayResolution(target, (), RejectReason.PAST_DATE)
    if not day.enabled:
        return DayResolution(target, (), RejectReason.DAY_DISABLED)

    ranges = day.active_ranges()
    blocks = [e for e in exceptions if e.date == target and e.kind is ExceptionKind.BLOCK]

    # existence is enough, duplicates behave like a single block
    if any(b.is_full_day for b in blocks):
        return DayResolution(target, (), RejectReason.DATE_BLOCKED)

    for b in blocks:
        if b.start is None or b.end is None:
            continue  # half-specified rows predate store validation
        ranges = [r for r in ranges if not r.overlaps(b.start, b.end)]

    starts = sorted({r.start for r in ranges})
    slots = tuple(ResolvedSlot(target, s) for s in starts)
    return DayResolution(target, slots, None if slots else RejectReason.TIME_NOT_OFFERED)


def resolve_available_slots(
    day: WeekdaySchedule,
    exceptions: Iterable[AvailabilityException],
    target: date,
    today: date,
) -> list[ResolvedSlot]:
    return list(resolve_day(day, exceptions, target, today).slots)


def validate_booking(resolution: DayResolution, requested: time) -> BookingDecision:
    """Accept ``requested`` only if it is one of the resolved start times."""
    if resolution.reason in (RejectReason.PAST_DATE, RejectReason.DAY_DISABLED, RejectReason.DATE_BLOCKED):
        return Rejected(resolution.reason)
    # seconds count: 09:00:30 is not the 09:00 slot
    wanted = requested.replace(microsecond=0, tzinfo=None)
    for slot in resolution.slots:
        if slot.start_time == wanted:
            return Accepted(slot)
    return Rejected(RejectReason.TIME_NOT_OFFERED)
