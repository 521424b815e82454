import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import models  # noqa: F401
from .config import FRONTEND_URL
from .database import Base, engine
from .domain.clinics.router import router as clinics_router
from .domain.notifications.router import router as notifications_router
from .domain.patients.router import router as patients_router
from .domain.scheduling.router import router as scheduling_router
from .exceptions import ClinicFlowError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Another worker process may have created them first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="ClinicFlow API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(ClinicFlowError)
async def clinicflow_exception_handler(request: Request, exc: ClinicFlowError):
    """Domain errors: 400 validation, 404 not found, 409 slot conflict, 502 provider"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# CORS Configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:5173").split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(clinics_router)
app.include_router(patients_router)
app.include_router(scheduling_router)
app.include_router(notifications_router)


@app.get("/")
def root():
    return {"message": "ClinicFlow API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
