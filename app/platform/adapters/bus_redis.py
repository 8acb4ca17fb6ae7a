import json
import logging
from redis.asyncio import from_url as redis_from_url
from app.platform.ports.event_bus import EventBusPort

log = logging.getLogger("bus.redis")

DEFAULT_STREAM = "mediconnect.events"

class RedisEventBus(EventBusPort):
    """Appends each event to a capped Redis stream (XADD ... MAXLEN ~ n)."""

    def __init__(self, url: str | None, stream: str | None = None, maxlen: int = 10000):
        if not url:
            raise RuntimeError("REDIS_URL not configured")
        self.redis = redis_from_url(url, encoding="utf-8", decode_responses=True)
        self.stream = stream or DEFAULT_STREAM
        self.maxlen = maxlen

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        headers = headers or {}
        fields = {
            "topic": topic,
            "key": key,
            "event_type": headers.get("event_type", ""),
            "value": json.dumps(value, default=str),
            "headers": json.dumps(headers),
        }
        entry_id = await self.redis.xadd(self.stream, fields, maxlen=self.maxlen, approximate=True)
        log.debug(f"[REDIS BUS] XADD stream={self.stream} id={entry_id} type={fields['event_type']} key={key}")

    async def close(self) -> None:
        await self.redis.aclose()
