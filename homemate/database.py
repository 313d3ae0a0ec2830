import logging
from sqlmodel import SQLModel, create_engine
from sqlalchemy.engine import Engine
from .core.config import settings

logger = logging.getLogger(__name__)


def engine_options(db_url: str) -> dict:
    """Connection settings per backend; every wait is bounded by STORE_TIMEOUT_SECONDS."""
    engine_kwargs = {}
    if db_url.startswith("sqlite"):
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False, "timeout": settings.STORE_TIMEOUT_SECONDS}
        })
    else:
        # Better resiliency for managed Postgres
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": settings.STORE_TIMEOUT_SECONDS,
        })
        if db_url.startswith("postgres"):
            timeout_ms = int(settings.STORE_TIMEOUT_SECONDS * 1000)
            engine_kwargs["connect_args"] = {
                "connect_timeout": max(int(settings.STORE_TIMEOUT_SECONDS), 1),
                "options": f"-c statement_timeout={timeout_ms}",
            }
    return engine_kwargs


def build_engine(db_url: str) -> Engine:
    return create_engine(db_url, echo=settings.DEBUG, **engine_options(db_url))


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(bind: Engine = None) -> None:
    from .db import models  # noqa: F401  registers table metadata
    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ensured")
