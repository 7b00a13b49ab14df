import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import models so every table is registered with Base before create_all
from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS
from .database import Base, engine
from .domain.appointments.router import admin_router as admin_appointments_router
from .domain.appointments.router import router as appointments_router
from .domain.availability.router import router as availability_router
from .domain.catalog.router import router as catalog_router
from .domain.providers.router import router as providers_router
from .domain.scheduling.exceptions import SchedulingError, StorageTimeout
from .domain.scheduling.router import router as booking_router
from .routes.audit import router as audit_router
from .routes.auth import router as auth_router
from .routes.stats import router as stats_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

STORAGE_RETRY_AFTER_SECONDS = 2


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    from .rate_limiter import get_redis_client

    if get_redis_client() is None:
        logger.info("Rate limiting runs on in-process counters")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Appointly API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_exception_handler(request: Request, exc: SchedulingError):
    """Map booking-engine errors to their HTTP status and a stable error code"""
    headers = None
    if isinstance(exc, StorageTimeout):
        headers = {"Retry-After": str(STORAGE_RETRY_AFTER_SECONDS)}
        logger.warning(f"⏰ {request.method} {request.url.path} - {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {exc.status_code} {exc.code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return 400 with the first validation message, plus the full error list"""
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    first = errors[0] if errors else {}
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    return JSONResponse(
        status_code=400,
        content={
            "error": message,
            "code": "validation_error",
            "details": jsonable_errors(errors),
        },
    )


def jsonable_errors(errors) -> list[dict]:
    return [
        {"loc": list(e.get("loc", ())), "msg": str(e.get("msg", "")), "type": e.get("type")}
        for e in errors
    ]


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(booking_router)
app.include_router(availability_router)
app.include_router(appointments_router)
app.include_router(admin_appointments_router)
app.include_router(providers_router)
app.include_router(catalog_router)
app.include_router(stats_router)
app.include_router(audit_router)


@app.get("/")
def root():
    return {"message": "Appointly API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
