from fastapi import APIRouter
from app.modules.availability.router import router as availability_router
from app.modules.appointments.router import router as appointments_router

api_router = APIRouter()
api_router.include_router(availability_router, tags=["availability"])
api_router.include_router(appointments_router, tags=["appointments"])
# both routers carry full paths (/doctors/..., /exceptions/..., /appointments/...)

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
