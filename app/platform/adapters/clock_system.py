from datetime import date, datetime, time, tzinfo
from zoneinfo import ZoneInfo
from app.platform.ports.clock import ClockPort

class SystemClock(ClockPort):
    def __init__(self, tz_name: str):
        self.tz: tzinfo = ZoneInfo(tz_name)

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def now(self) -> datetime:
        return datetime.now(self.tz)

class FixedClock(ClockPort):
    """Always reports the same day; ``now()`` is noon of that day."""

    def __init__(self, today: date, tz_name: str = "UTC"):
        self.tz: tzinfo = ZoneInfo(tz_name)
        self._today = today

    def today(self) -> date:
        return self._today

    def now(self) -> datetime:
        return datetime.combine(self._today, time(12, 0), tzinfo=self.tz)
