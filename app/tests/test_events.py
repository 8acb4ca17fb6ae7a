from __future__ import annotations

import asyncio
import uuid

import pytest

from app.modules.events.publisher import TOPIC, EventPublisher
from app.platform.adapters import bus_redis
from app.platform.adapters.bus_noop import NoopEventBus


class _BrokenBus:
    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        raise ConnectionError("redis unreachable")

    async def close(self) -> None:
        return None


def test_emit_wraps_payload_in_an_envelope(bus) -> None:
    subject = uuid.uuid4()

    asyncio.run(EventPublisher(bus).emit("EXCEPTION_CREATED", "exception", subject, {"kind": "block"}))

    [event] = bus.published
    assert event["topic"] == TOPIC
    assert event["key"] == str(subject)
    assert event["subject"] == {"type": "exception", "id": str(subject)}
    assert event["payload"] == {"kind": "block"}
    assert event["occurred_at"]


def test_emit_swallows_bus_failures(caplog) -> None:
    asyncio.run(EventPublisher(_BrokenBus()).emit("APPT_BOOKED", "appointment", None, {}))

    assert "Publish failed for APPT_BOOKED -" in caplog.text


def test_noop_bus_logs_the_event(caplog) -> None:
    caplog.set_level("INFO", logger="bus.noop")

    asyncio.run(NoopEventBus().publish(TOPIC, "k", {"when": uuid.UUID(int=1)}))

    assert "[NOOP BUS]" in caplog.text


class _FakeRedis:
    def __init__(self) -> None:
        self.entries: list[tuple[str, dict, int]] = []
        self.closed = False

    async def xadd(self, stream: str, fields: dict, maxlen: int, approximate: bool) -> str:
        self.entries.append((stream, fields, maxlen))
        return f"0-{len(self.entries)}"

    async def aclose(self) -> None:
        self.closed = True


def test_redis_bus_appends_to_the_capped_stream(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeRedis()
    monkeypatch.setattr(bus_redis, "redis_from_url", lambda url, **kw: fake)
    redis_bus = bus_redis.RedisEventBus("redis://localhost:6379/0", maxlen=50)

    async def run():
        await EventPublisher(redis_bus).emit("SCHEDULE_DAY_TOGGLED", "schedule", "doc-1", {"enabled": True})
        await redis_bus.close()

    asyncio.run(run())

    [(stream, fields, maxlen)] = fake.entries
    assert (stream, maxlen) == ("mediconnect.events", 50)
    assert fields["event_type"] == "SCHEDULE_DAY_TOGGLED"
    assert fields["key"] == "doc-1"
    assert fake.closed


def test_redis_bus_needs_a_url() -> None:
    with pytest.raises(RuntimeError, match="REDIS_URL"):
        bus_redis.RedisEventBus(None)
