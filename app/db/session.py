"""Engine and session factory"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

DATABASE_URL = settings.DATABASE_URL

engine_kwargs = {"pool_pre_ping": True}
if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    # A slow database must surface as an error, not a hung request
    engine_kwargs["connect_args"] = {"connect_timeout": settings.DATABASE_TIMEOUT_SECONDS}
    engine_kwargs["pool_timeout"] = settings.DATABASE_TIMEOUT_SECONDS

engine = create_engine(DATABASE_URL, **engine_kwargs)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
