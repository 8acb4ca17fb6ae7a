from typing import Protocol, runtime_checkable

@runtime_checkable
class EventBusPort(Protocol):
    """Fire-and-forget publication of domain events (schedule edits, bookings).

    ``headers`` carries routing metadata such as ``event_type`` so consumers
    can filter without decoding ``value``.
    """

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None: ...
    async def close(self) -> None: ...
