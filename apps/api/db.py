import logging
import threading
from typing import Optional

from psycopg_pool import ConnectionPool

from .settings import settings

logger = logging.getLogger(__name__)

_pool: Optional[ConnectionPool] = None
_pool_lock = threading.Lock()


def get_pool() -> ConnectionPool:
    """Open the shared connection pool on first use."""
    global _pool
    with _pool_lock:
        if _pool is None:
            logger.info("Opening Postgres pool (min=%s, max=%s)", settings.DB_POOL_MIN_SIZE, settings.DB_POOL_MAX_SIZE)
            _pool = ConnectionPool(
                conninfo=settings.DATABASE_URL,
                min_size=settings.DB_POOL_MIN_SIZE,
                max_size=settings.DB_POOL_MAX_SIZE,
                open=True,
            )
        return _pool


def close_pool() -> None:
    global _pool
    with _pool_lock:
        if _pool is not None:
            _pool.close()
            _pool = None


def db_ok() -> bool:
    try:
        with get_pool().connection() as conn, conn.cursor() as cur:
            cur.execute('select 1;')
            cur.fetchone()
        return True
    except Exception:
        logger.warning("Database health check failed", exc_info=True)
        return False
