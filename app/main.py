import time
import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.core.logging import request_id_ctx, setup_logging
from app.api.router import api_router
from app.core.db import init_models
from app.platform.provider_registry import registry


setup_logging()
app = FastAPI(title=settings.APP_NAME)
logger = logging.getLogger(__name__)

# last registered runs outermost, so add_request_id wraps this one
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000
    logger.info(
        f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.2f}ms"
    )
    return response

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id", "-")
    token = request_id_ctx.set(rid)
    try:
        response = await call_next(request)
    finally:
        request_id_ctx.reset(token)
    if rid != "-":
        response.headers["x-request-id"] = rid
    return response

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"Rejected input on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field},
    )

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "An internal server error occurred."},
    )


@app.on_event("startup")
async def on_startup():
    if settings.STORE_PROVIDER == "sql":
        await init_models()
    logger.info(f"{settings.APP_NAME} started (store={settings.STORE_PROVIDER}, bus={settings.EVENT_BUS_PROVIDER}, tz={settings.CLINIC_TIMEZONE})")

@app.on_event("shutdown")
async def on_shutdown():
    await registry.event_bus().close()


app.include_router(api_router, prefix=settings.API_PREFIX)
