"""
PostgreSQL connection pool for the rule store (psycopg3)

Opening retries a bounded number of times. Connecting, acquiring a pooled
connection and running a statement all share one timeout, so store I/O
cannot stall an evaluation indefinitely.
"""
import os
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from shipcomply.observability.logger import get_logger

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    Lazily opened psycopg connection pool.

    Rows are returned as dicts. Unset connection parameters fall back to the
    DB_HOST, DB_PORT, DB_NAME, DB_USER and DB_PASSWORD environment variables.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 10,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            min_size: Connections kept open
            max_size: Upper bound on pooled connections
            timeout: Seconds for connect, pool acquire and each statement

        Raises:
            ValueError: If no password is given or set in DB_PASSWORD
        """
        self.host = host or os.getenv("DB_HOST", "localhost")
        self.port = port or int(os.getenv("DB_PORT", "5432"))
        self.database = database or os.getenv("DB_NAME", "compliance")
        self.user = user or os.getenv("DB_USER", "compliance")
        password = password or os.getenv("DB_PASSWORD")
        if not password:
            raise ValueError("Database password must be provided via DB_PASSWORD or the constructor")

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout
        self.conninfo = (
            f"host={self.host} port={self.port} dbname={self.database} "
            f"user={self.user} password={password} "
            f"connect_timeout={max(1, int(timeout))}"
        )
        self._pool: ConnectionPool | None = None

    @classmethod
    def from_settings(cls, settings) -> "DatabaseConnectionPool":
        """Build an unopened pool from shipcomply Settings."""
        return cls(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
            timeout=settings.db_timeout_seconds,
        )

    def _new_pool(self) -> ConnectionPool:
        return ConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={
                "row_factory": dict_row,
                "options": f"-c statement_timeout={int(self.timeout * 1000)}",
            },
            open=False,
        )

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying failed attempts.

        Does nothing if the pool is already open.

        Raises:
            OperationalError: If every attempt failed
        """
        if self._pool is not None:
            return

        for attempt in range(1, max_retries + 1):
            # A pool that failed to fill is closed and cannot be reopened
            pool = self._new_pool()
            try:
                pool.open(wait=True, timeout=self.timeout)
            except (OperationalError, PoolTimeout) as e:
                pool.close()
                logger.warning(
                    f"Rule store connection attempt {attempt}/{max_retries} failed: {e}",
                    extra={"host": self.host, "port": self.port, "database": self.database},
                )
                if attempt == max_retries:
                    raise OperationalError(
                        f"Failed to connect to database after {max_retries} attempts: {e}"
                    ) from e
                time.sleep(retry_delay)
                continue

            self._pool = pool
            logger.info(
                "Rule store connection pool open",
                extra={"host": self.host, "database": self.database, "max_size": self.max_size},
            )
            return

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection for the duration of the with-block.

        Raises:
            RuntimeError: If the pool is not open
            PoolTimeout: If no connection frees up within the timeout
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection(timeout=self.timeout) as conn:
            yield conn

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
