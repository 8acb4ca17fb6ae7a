from __future__ import annotations

import asyncio
import uuid
from datetime import time

import pytest

from app.core.errors import ValidationError
from app.modules.availability.domain import TimeRange, Weekday, WEEK_ORDER
from app.modules.availability.service import ScheduleStore
from app.modules.events.publisher import EventPublisher


def _store(availability, bus=None) -> ScheduleStore:
    return ScheduleStore(availability, EventPublisher(bus) if bus else None)


def test_unknown_doctor_gets_seven_disabled_days_sunday_first(availability, doctor_id) -> None:
    week = asyncio.run(_store(availability).get_weekly_schedule(doctor_id))

    assert [d.weekday for d in week] == list(WEEK_ORDER)
    assert week[0].weekday is Weekday.SUN
    assert all(not d.enabled and d.time_ranges == () for d in week)


def test_upsert_appends_then_replaces_by_id(availability, doctor_id) -> None:
    store = _store(availability)

    async def run():
        week = await store.upsert_time_range(doctor_id, "monday", TimeRange(time(9), time(12)))
        saved = week[1].time_ranges[0]
        assert saved.id is not None
        week = await store.upsert_time_range(doctor_id, Weekday.MON, TimeRange(time(8), time(11), id=saved.id))
        return week[1].time_ranges

    ranges = asyncio.run(run())
    assert len(ranges) == 1
    assert (ranges[0].start, ranges[0].end) == (time(8), time(11))


def test_ranges_come_back_sorted_by_start(availability, doctor_id) -> None:
    store = _store(availability)

    async def run():
        await store.upsert_time_range(doctor_id, Weekday.WED, TimeRange(time(14), time(17)))
        await store.upsert_time_range(doctor_id, Weekday.WED, TimeRange(time(9), time(12)))
        return await store.get_day_schedule(doctor_id, Weekday.WED)

    day = asyncio.run(run())
    assert [r.start for r in day.time_ranges] == [time(9), time(14)]


@pytest.mark.parametrize("start, end", [(time(12), time(9)), (time(9), time(9))])
def test_upsert_rejects_empty_or_inverted_window(availability, doctor_id, start, end) -> None:
    store = _store(availability)

    with pytest.raises(ValidationError) as err:
        asyncio.run(store.upsert_time_range(doctor_id, Weekday.MON, TimeRange(start, end)))

    assert err.value.field == "end"
    assert asyncio.run(availability.load_ranges(doctor_id)) == {}


def test_unknown_weekday_is_a_validation_error(availability, doctor_id) -> None:
    with pytest.raises(ValidationError) as err:
        asyncio.run(_store(availability).set_weekday_enabled(doctor_id, "funday", True))

    assert err.value.field == "weekday"


def test_remove_time_range_is_idempotent(availability, doctor_id, bus) -> None:
    store = _store(availability, bus)

    async def run():
        week = await store.upsert_time_range(doctor_id, Weekday.FRI, TimeRange(time(9), time(12)))
        range_id = week[5].time_ranges[0].id
        await store.remove_time_range(doctor_id, Weekday.FRI, range_id)
        return await store.remove_time_range(doctor_id, Weekday.FRI, range_id)

    week = asyncio.run(run())
    assert week[5].time_ranges == ()
    assert bus.types == ["SCHEDULE_RANGE_SAVED", "SCHEDULE_RANGE_REMOVED"]


def test_enabled_flag_and_range_activity_are_independent(availability, doctor_id) -> None:
    store = _store(availability)

    async def run():
        await store.upsert_time_range(doctor_id, Weekday.THU, TimeRange(time(9), time(12), active=False))
        await store.set_weekday_enabled(doctor_id, Weekday.THU, True)
        return await store.get_day_schedule(doctor_id, Weekday.THU), await store.is_available_on_weekday(doctor_id, Weekday.THU)

    day, available = asyncio.run(run())
    assert day.enabled
    assert day.time_ranges[0].active is False
    assert available is False


def test_save_weekly_schedule_keeps_good_entries_when_one_fails(availability, doctor_id) -> None:
    entries = [
        (Weekday.MON, TimeRange(time(9), time(12))),
        (Weekday.TUE, TimeRange(time(13), time(10))),
        ("wednesday", TimeRange(time(14), time(17))),
    ]

    result = asyncio.run(_store(availability).save_weekly_schedule(doctor_id, entries))

    assert (result.succeeded, result.failed) == (2, 1)
    assert result.errors[0].startswith("item 1")
    ranges = asyncio.run(availability.load_ranges(doctor_id))
    assert set(ranges) == {Weekday.MON, Weekday.WED}


def test_create_week_schedule_enables_each_day(availability, doctor_id) -> None:
    store = _store(availability)

    async def run():
        result = await store.create_week_schedule(doctor_id, ["monday", "tuesday", "nope"], time(9), time(13))
        return result, await store.schedule_summary(doctor_id)

    result, summary = asyncio.run(run())
    assert (result.succeeded, result.failed) == (2, 1)
    assert result.errors == ["nope: unknown weekday: 'nope'"]
    assert [r.start for r in summary[Weekday.MON]] == [time(9)]
    assert [r.start for r in summary[Weekday.TUE]] == [time(9)]
    assert summary[Weekday.SUN] == []


def test_summary_hides_ranges_of_disabled_days(availability, doctor_id) -> None:
    store = _store(availability)

    async def run():
        await store.upsert_time_range(doctor_id, Weekday.SAT, TimeRange(time(9), time(12)))
        return await store.schedule_summary(doctor_id), await store.is_available_on_weekday(doctor_id, "saturday")

    summary, available = asyncio.run(run())
    assert summary[Weekday.SAT] == []
    assert available is False


def test_upsert_with_another_doctors_range_id_is_refused(availability, doctor_id) -> None:
    store = _store(availability)
    other = uuid.uuid4()

    async def run():
        week = await store.upsert_time_range(other, Weekday.TUE, TimeRange(time(9), time(12)))
        theirs = week[2].time_ranges[0]
        with pytest.raises(ValidationError) as err:
            await store.upsert_time_range(doctor_id, Weekday.MON, TimeRange(time(7), time(8), id=theirs.id))
        return err.value, await store.get_day_schedule(other, Weekday.TUE), await store.get_weekly_schedule(doctor_id)

    err, their_tuesday, my_week = asyncio.run(run())
    assert err.field == "id"
    assert [(r.start, r.end) for r in their_tuesday.time_ranges] == [(time(9), time(12))]
    assert all(d.time_ranges == () for d in my_week)


def test_upsert_may_move_own_range_to_another_weekday(availability, doctor_id) -> None:
    store = _store(availability)

    async def run():
        week = await store.upsert_time_range(doctor_id, Weekday.TUE, TimeRange(time(9), time(12)))
        mine = week[2].time_ranges[0]
        return await store.upsert_time_range(doctor_id, Weekday.WED, TimeRange(time(9), time(12), id=mine.id))

    week = asyncio.run(run())
    assert week[2].time_ranges == ()
    assert len(week[3].time_ranges) == 1
