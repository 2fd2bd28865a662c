# clinic_booking/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import LOG_JSON, LOG_LEVEL
from .db import init_db
from .logging_config import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_structured_logging,
)
from .routers import admin_routes, appointments_routes
from .scheduling.errors import (
    CapacityConflict,
    FetchError,
    InvalidTransition,
    NotFound,
    OverrideRequired,
    StaffConflictError,
    ValidationError,
)

setup_structured_logging(LOG_LEVEL, LOG_JSON)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("database_ready")
    yield


app = FastAPI(title="Clinic Booking API", lifespan=lifespan)

app.include_router(appointments_routes.router)
app.include_router(admin_routes.router)


@app.middleware("http")
async def request_log_context(request: Request, call_next):
    bind_request_context(method=request.method, path=request.url.path)
    try:
        return await call_next(request)
    finally:
        clear_request_context()


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(CapacityConflict)
async def capacity_conflict_handler(request: Request, exc: CapacityConflict):
    return JSONResponse(
        status_code=409,
        content={"detail": exc.message, "current": exc.current, "limit": exc.limit},
    )


@app.exception_handler(StaffConflictError)
async def staff_conflict_handler(request: Request, exc: StaffConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message, "conflicts": exc.conflicts})


@app.exception_handler(OverrideRequired)
async def override_required_handler(request: Request, exc: OverrideRequired):
    # the admin UI shows these and resubmits with "acknowledge": true
    return JSONResponse(
        status_code=409,
        content={"detail": "Confirmation required", "warnings": exc.warnings},
    )


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(FetchError)
async def fetch_error_handler(request: Request, exc: FetchError):
    logger.error("store_unavailable", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=503, content={"detail": "Appointment store unavailable"})
