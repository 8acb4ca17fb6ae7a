from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.platform.ports.appointment_store import AppointmentStorePort
from app.platform.ports.availability_store import AvailabilityStorePort
from app.platform.ports.clock import ClockPort
from app.platform.ports.event_bus import EventBusPort
from app.platform.adapters.bus_noop import NoopEventBus
from app.platform.adapters.bus_redis import RedisEventBus
from app.platform.adapters.clock_system import FixedClock, SystemClock
from app.platform.adapters.store_memory import InMemoryAppointmentStore, InMemoryAvailabilityStore
from app.modules.availability.repository import SqlAvailabilityStore
from app.modules.appointments.repository import SqlAppointmentStore

class ProviderRegistry:
    _event_bus: EventBusPort | None = None
    _clock: ClockPort | None = None
    _memory_availability: InMemoryAvailabilityStore | None = None
    _memory_appointments: InMemoryAppointmentStore | None = None

    @classmethod
    def event_bus(cls) -> EventBusPort:
        if cls._event_bus is None:
            prov = (settings.EVENT_BUS_PROVIDER or "noop").lower()
            if prov == "redis":
                cls._event_bus = RedisEventBus(settings.REDIS_URL, settings.REDIS_STREAM, settings.REDIS_STREAM_MAXLEN)
            else:
                cls._event_bus = NoopEventBus()
        return cls._event_bus

    @classmethod
    def clock(cls) -> ClockPort:
        if cls._clock is None:
            if settings.FIXED_TODAY is not None:
                cls._clock = FixedClock(settings.FIXED_TODAY, settings.CLINIC_TIMEZONE)
            else:
                cls._clock = SystemClock(settings.CLINIC_TIMEZONE)
        return cls._clock

    @classmethod
    def availability_store(cls, session: AsyncSession) -> AvailabilityStorePort:
        if settings.STORE_PROVIDER == "memory":
            if cls._memory_availability is None:
                cls._memory_availability = InMemoryAvailabilityStore()
            return cls._memory_availability
        return SqlAvailabilityStore(session)

    @classmethod
    def appointment_store(cls, session: AsyncSession) -> AppointmentStorePort:
        if settings.STORE_PROVIDER == "memory":
            if cls._memory_appointments is None:
                cls._memory_appointments = InMemoryAppointmentStore()
            return cls._memory_appointments
        return SqlAppointmentStore(session)

    @classmethod
    def reset(cls) -> None:
        """Forget cached providers so the next call re-reads settings."""
        cls._event_bus = None
        cls._clock = None
        cls._memory_availability = None
        cls._memory_appointments = None

registry = ProviderRegistry()
