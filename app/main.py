"""Main FastAPI application"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.core.config import settings
from app.utils.logger import setup_file_logging
from app.api.v1.api import api_router
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.errors.exceptions import OtpValidationError, StorageError
from app.errors.handlers import (
    validation_exception_handler,
    otp_validation_exception_handler,
    storage_exception_handler,
    sqlalchemy_exception_handler,
    general_exception_handler
)
from app.services.otp_registry import build_otp_stores, start_otp_sweeper

setup_file_logging(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Password reset and email confirmation by one-time codes",
    version=settings.PROJECT_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(OtpValidationError, otp_validation_exception_handler)
app.add_exception_handler(StorageError, storage_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(api_router, prefix=settings.API_V1_STR)

app.state.otp_stores = build_otp_stores(settings, SessionLocal)
app.state.otp_sweeper = None


@app.get("/health", tags=["Health"])
def health():
    """Liveness check"""
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "otp_backend": settings.OTP_BACKEND,
    }


@app.on_event("startup")
async def startup_event():
    """Initialize database, start the expired-code sweeper and log application startup"""
    try:
        init_db()
        logger.warning(f"{settings.PROJECT_NAME} STARTED - Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        logger.warning(f"{settings.PROJECT_NAME} STARTED - Database initialization failed, but API is running")

    if settings.OTP_SWEEP_ENABLED:
        app.state.otp_sweeper = start_otp_sweeper(
            app.state.otp_stores,
            settings.OTP_SWEEP_INTERVAL_MINUTES,
        )


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the sweeper and log application shutdown"""
    sweeper = app.state.otp_sweeper
    if sweeper is not None:
        sweeper.shutdown(wait=False)
        app.state.otp_sweeper = None
    logger.warning(f"{settings.PROJECT_NAME} SHUTDOWN")
