from __future__ import annotations

import uuid
from datetime import date

import pytest

from app.core.config import settings
from app.platform.adapters.clock_system import FixedClock
from app.platform.adapters.store_memory import InMemoryAppointmentStore, InMemoryAvailabilityStore
from app.platform.provider_registry import registry

# 2025-06-10 is a Tuesday; 2025-06-09 the Monday before it.
TODAY = date(2025, 6, 10)


class RecordingBus:
    """Event bus that keeps what it was given."""

    def __init__(self) -> None:
        self.published: list[dict] = []

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        self.published.append({"topic": topic, "key": key, **value})

    async def close(self) -> None:
        return None

    @property
    def types(self) -> list[str]:
        return [e["event_type"] for e in self.published]


@pytest.fixture
def doctor_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture
def availability() -> InMemoryAvailabilityStore:
    return InMemoryAvailabilityStore()


@pytest.fixture
def appointments() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore()


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def memory_settings(monkeypatch: pytest.MonkeyPatch):
    """Point the provider registry at process-local stores and a pinned clock."""
    monkeypatch.setattr(settings, "STORE_PROVIDER", "memory")
    monkeypatch.setattr(settings, "EVENT_BUS_PROVIDER", "noop")
    monkeypatch.setattr(settings, "FIXED_TODAY", TODAY)
    monkeypatch.setattr(settings, "ENV", "local")
    registry.reset()
    yield settings
    registry.reset()
