"""
Connections used by the search store backends
SQL engine/session factory for the `sql` backend, Redis client for the
`redis` backend and for published order snapshots
"""

import logging
import os
from typing import Any, Dict, Optional

import redis
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./search.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")


def _engine_options(url: str) -> Dict[str, Any]:
    """SQLite needs cross-thread access; server databases get a sized pool"""
    options: Dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": os.getenv("ENVIRONMENT") == "development",
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = int(os.getenv("DB_POOL_SIZE", "10"))
        options["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "20"))
    return options


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_redis_client: Optional[redis.Redis] = None
_redis_checked = False


def get_redis() -> Optional[redis.Redis]:
    """
    Redis client, connected on first use

    Returns None when Redis is unreachable; the failed attempt is not
    retried for the lifetime of the process.
    """
    global _redis_client, _redis_checked
    if _redis_checked:
        return _redis_client

    _redis_checked = True
    try:
        client = redis.from_url(
            REDIS_URL,
            max_connections=int(os.getenv("REDIS_MAX_CONNECTIONS", "20")),
            decode_responses=True
        )
        client.ping()
        _redis_client = client
        logger.info(f"Connected to Redis at {REDIS_URL}")
    except Exception as e:
        logger.warning(f"Redis unavailable ({e}); Redis store and order snapshots disabled")
        _redis_client = None

    return _redis_client


def create_tables():
    """Create the saved filter and search history tables"""
    from .models import Base
    Base.metadata.create_all(bind=engine)
    logger.info("Search tables created")
