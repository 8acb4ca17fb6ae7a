import uuid
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_session
from app.core.security import require_scopes
from app.modules.appointments.domain import AppointmentStatus
from app.modules.appointments.schemas import AppointmentBook, AppointmentOut, AppointmentStatusChange, BookingRejectedOut
from app.modules.appointments.service import AppointmentService
from app.modules.availability.service import BookingValidator, ExceptionStore, ScheduleStore, SlotResolver
from app.modules.events.publisher import EventPublisher
from app.platform.provider_registry import registry

router = APIRouter()
logger = logging.getLogger(__name__)

def svc(session: AsyncSession = Depends(get_session)) -> AppointmentService:
    clock = registry.clock()
    availability = registry.availability_store(session)
    validator = BookingValidator(SlotResolver(ScheduleStore(availability), ExceptionStore(availability, clock), clock))
    return AppointmentService(registry.appointment_store(session), validator, clock, EventPublisher(registry.event_bus()))

def _out(b) -> AppointmentOut:
    return AppointmentOut.model_validate(b, from_attributes=True)

@router.post(
    "/appointments",
    response_model=AppointmentOut,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": BookingRejectedOut}},
    dependencies=[Depends(require_scopes("appointments:write"))],
)
async def book_appointment(payload: AppointmentBook, service: AppointmentService = Depends(svc)):
    appt, rejected = await service.book(
        payload.doctor_id, payload.patient_id, payload.date, payload.time,
        reason=payload.reason, duration_minutes=payload.duration_minutes,
    )
    if rejected:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=BookingRejectedOut(reason=rejected.reason).model_dump(mode="json"),
        )
    return _out(appt)

@router.get("/appointments", response_model=list[AppointmentOut], dependencies=[Depends(require_scopes("appointments:read"))])
async def list_appointments(
    doctor_id: uuid.UUID | None = None,
    patient_id: uuid.UUID | None = None,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: AppointmentService = Depends(svc),
):
    rows = await service.list(doctor_id=doctor_id, patient_id=patient_id, status=status_filter, start=start, end=end, limit=limit, offset=offset)
    return [_out(b) for b in rows]

@router.get("/appointments/{appointment_id}", response_model=AppointmentOut, dependencies=[Depends(require_scopes("appointments:read"))])
async def get_appointment(appointment_id: uuid.UUID, service: AppointmentService = Depends(svc)):
    return _out(await service.get(appointment_id))

@router.post("/appointments/{appointment_id}/status", response_model=AppointmentOut, dependencies=[Depends(require_scopes("appointments:write"))])
async def change_status(appointment_id: uuid.UUID, payload: AppointmentStatusChange, service: AppointmentService = Depends(svc)):
    obj = await service.change_status(appointment_id, payload.status, payload.note)
    logger.info(f"Appointment {appointment_id} moved to {obj.status.value}")
    return _out(obj)
