from datetime import date, datetime, tzinfo
from typing import Protocol, runtime_checkable

@runtime_checkable
class ClockPort(Protocol):
    tz: tzinfo

    def today(self) -> date: ...
    def now(self) -> datetime: ...
