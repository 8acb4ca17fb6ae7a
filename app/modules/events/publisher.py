import logging
from datetime import datetime, timezone

from app.platform.ports.event_bus import EventBusPort

log = logging.getLogger("event.publisher")

TOPIC = "mediconnect.events"

class EventPublisher:
    """Publishes domain events after a mutation has been persisted.

    Failures are logged and swallowed: the mutation already happened and
    there is no delivery guarantee to uphold.
    """

    def __init__(self, bus: EventBusPort):
        self.bus = bus

    async def emit(self, event_type: str, subject_type: str, subject_id, payload: dict) -> None:
        key = str(subject_id) if subject_id is not None else "-"
        try:
            await self.bus.publish(topic=TOPIC, key=key, headers={"event_type": event_type}, value={
                "event_type": event_type,
                "subject": {"type": subject_type, "id": key},
                "payload": payload,
                "occurred_at": datetime.now(timezone.utc).isoformat(),
            })
        except Exception:  # noqa
            log.exception("Publish failed for %s %s", event_type, key)
