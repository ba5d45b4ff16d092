"""
Database configuration module.
Reads DATABASE_URL and owns the shared psycopg2 connection pool.
"""

import os
import logging
import threading
from contextlib import contextmanager
from urllib.parse import urlparse, unquote

import psycopg2
from fastapi import HTTPException
from psycopg2.pool import ThreadedConnectionPool

logger = logging.getLogger(__name__)

DEFAULT_POOL_MIN = 1
DEFAULT_POOL_MAX = 20


class DBConfig:
    """Database configuration and pooled connections"""

    def __init__(self):
        self.database_url = os.getenv("DATABASE_URL")
        self.pool_max = int(os.getenv("DB_POOL_MAX", str(DEFAULT_POOL_MAX)))
        self._pool = None
        self._pool_lock = threading.Lock()

        if self.database_url:
            try:
                parsed = urlparse(self.database_url)
                logger.info(
                    f"[db_config] DATABASE_URL configured: {parsed.scheme}://{parsed.username}:***@"
                    f"{parsed.hostname}:{parsed.port or 5432}{parsed.path}"
                )
            except Exception as e:
                logger.info(f"[db_config] DATABASE_URL configured (unable to parse for logging: {e})")
        else:
            logger.warning("[db_config] DATABASE_URL not set - database connections will fail")

    @property
    def is_db_enabled(self) -> bool:
        return bool(self.database_url)

    def get_connection_params(self) -> dict | None:
        """
        Get connection parameters parsed from DATABASE_URL.
        Returns dict with host, port, database, user, password.
        """
        if not self.database_url:
            return None

        try:
            parsed = urlparse(self.database_url)
        except Exception as e:
            logger.error(f"Failed to parse DATABASE_URL: {e}")
            return None

        if not parsed.hostname:
            return None

        params = {
            "host": parsed.hostname,
            "port": parsed.port or 5432,
            "database": parsed.path.lstrip('/') or 'postgres',
            "user": parsed.username or 'postgres',
        }
        if parsed.password:
            params["password"] = unquote(parsed.password)

        # Supabase and most hosted Postgres require TLS outside dev
        if os.getenv("ORBITJOBS_ENV", "production").lower() != "dev":
            params["sslmode"] = os.getenv("DB_SSLMODE", "require")

        return params

    def get_pool(self) -> ThreadedConnectionPool:
        """Lazily create the shared pool."""
        if self._pool is None:
            with self._pool_lock:
                if self._pool is None:
                    conn_params = self.get_connection_params()
                    if not conn_params:
                        raise RuntimeError("Database not configured")
                    self._pool = ThreadedConnectionPool(
                        DEFAULT_POOL_MIN,
                        self.pool_max,
                        connect_timeout=5,
                        **conn_params,
                    )
                    logger.info(f"[db_config] Connection pool created (max={self.pool_max})")
        return self._pool

    @contextmanager
    def connection(self):
        """
        Borrow a pooled connection.
        Commits on success, rolls back on error, always returns it to the pool.
        """
        pool = self.get_pool()
        conn = pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def close(self):
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("[db_config] Connection pool closed")


def check_db_connection() -> bool:
    """Verify database connectivity with a trivial query (1s timeout)."""
    conn_params = db_config.get_connection_params()
    if not conn_params:
        return False
    try:
        conn = psycopg2.connect(**{**conn_params, "connect_timeout": 1})
        cursor = conn.cursor()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        cursor.close()
        conn.close()
        return True
    except Exception:
        return False


# Global instance
db_config = DBConfig()


def require_db():
    """FastAPI dependency; 503 when DATABASE_URL is not set."""
    if not db_config.is_db_enabled:
        raise HTTPException(status_code=503, detail="Database not configured")
