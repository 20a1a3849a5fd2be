"""
PostgreSQL connection pool for the durable workflow store.

Every store operation runs inside a single transaction on a single pooled
connection. Transactions may request an isolation level so multi-statement
reads see one consistent snapshot.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from flowstate.config import get_config

logger = logging.getLogger(__name__)

ISOLATION_LEVELS = ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE")


class Database:
    """
    Thread-safe pool of PostgreSQL connections.

    Uses psycopg2's ThreadedConnectionPool; cursors yield rows as dicts.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        pool_size: Optional[int] = None,
        max_overflow: Optional[int] = None,
    ):
        config = get_config()
        self.database_url = database_url or config.DATABASE_URL
        self.max_connections = (pool_size or config.DATABASE_POOL_SIZE) + (
            max_overflow or config.DATABASE_MAX_OVERFLOW
        )
        self._pool: Optional[pool.ThreadedConnectionPool] = None

    def initialize(self) -> None:
        """Open the pool on first use."""
        if self._pool is not None:
            return

        logger.info(f"Opening PostgreSQL pool (max {self.max_connections} connections)")
        self._pool = pool.ThreadedConnectionPool(
            minconn=1,
            maxconn=self.max_connections,
            dsn=self.database_url,
        )

    def close(self) -> None:
        if self._pool is not None:
            logger.info("Closing PostgreSQL pool")
            self._pool.closeall()
            self._pool = None

    @contextmanager
    def transaction(self, isolation: Optional[str] = None) -> Generator:
        """
        Run a block in one transaction, committing on success.

        Row locks taken inside the block are held until it exits.

        Usage:
            with db.transaction(isolation="REPEATABLE READ") as cur:
                cur.execute("SELECT ...")
                cur.execute("SELECT ...")
        """
        if isolation is not None and isolation not in ISOLATION_LEVELS:
            raise ValueError(f"Unsupported isolation level: {isolation}")

        self.initialize()
        conn = self._pool.getconn()
        try:
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            try:
                if isolation is not None:
                    # Must be the first statement of the transaction
                    cursor.execute(f"SET TRANSACTION ISOLATION LEVEL {isolation}")
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()
        finally:
            self._pool.putconn(conn)

    def health_check(self) -> bool:
        """Check if the database answers a trivial query."""
        try:
            with self.transaction() as cur:
                cur.execute("SELECT 1 AS healthy")
                row = cur.fetchone()
            return row is not None and row.get("healthy") == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
