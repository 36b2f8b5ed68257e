"""
Connection pool shared by all workers of a run, with pooling sized for the
two connection modes.

Persistent mode keeps thread-count+1 idle connections and allows at most
2x thread-count open, so every worker can pin one connection with headroom
for transient overlap. Short-connection mode keeps nothing idle and has no
open limit: every connection is closed when it is released, so no
connection is ever reused across operations.
"""

import itertools
import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import NullPool, QueuePool

from ycsb_sql.core.deadline import Deadline, check_deadline
from ycsb_sql.core.dialect import Dialect
from ycsb_sql.core.errors import ConnectionAcquireError, StaleConnectionError
from ycsb_sql.utils.rows import Row, decode_rows

logger = logging.getLogger(__name__)

_connection_ids = itertools.count(1)

# Longest single wait on a full pool before deadlines are re-checked
WAIT_SLICE = 0.05


def pool_limits(thread_count: int, short_conn: bool):
    """
    Pool ceilings for a run.

    Returns:
        (max_open, max_idle); max_open 0 means unbounded
    """
    if short_conn:
        return 0, 0
    return thread_count * 2, thread_count + 1


class PreparedStatement:
    """
    A statement prepared on one connection.

    Owned by the session that prepared it; only ever used from that
    session's worker thread.
    """

    def __init__(self, dialect: Dialect, cursor, sql: str, connection_id: int):
        self._dialect = dialect
        self._cursor = cursor
        self.sql = sql
        self.connection_id = connection_id
        self.closed = False

    def query(self, args: Sequence[Any]) -> List[Row]:
        self._dialect.execute(self._cursor, self.sql, args, prepared=True)
        return decode_rows(self._cursor)

    def execute(self, args: Sequence[Any]) -> int:
        self._dialect.execute(self._cursor, self.sql, args, prepared=True)
        if self._cursor.description is not None:
            self._cursor.fetchall()
        return self._cursor.rowcount

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._cursor.close()


class PooledConnection:
    """
    One connection checked out of the pool.

    ``release()`` returns it (persistent mode) or closes it (short mode);
    ``invalidate()`` closes it for good so the pool never hands it out again.
    """

    def __init__(self, proxied, dialect: Dialect, silence: bool = True):
        self._proxied = proxied
        self._dialect = dialect
        self._silence = silence
        self.id = next(_connection_ids)
        self.released = False

    @property
    def dbapi_connection(self):
        return self._proxied.dbapi_connection

    def _raw(self):
        if self.released or not self._proxied.is_valid:
            raise StaleConnectionError(f"Connection {self.id} is no longer usable")
        return self._proxied.dbapi_connection

    def prepare(self, sql: str) -> PreparedStatement:
        cursor = self._dialect.new_cursor(self._raw(), prepared=True)
        return PreparedStatement(self._dialect, cursor, sql, self.id)

    def run(self, sql: str, args: Sequence[Any], fetch: bool):
        """Prepare, execute once and close (used when statements are not cached)"""
        stmt = self.prepare(sql)
        try:
            if fetch:
                return stmt.query(args)
            return stmt.execute(args)
        finally:
            close_quietly(stmt, self._silence)

    def execute_direct(self, sql: str):
        """Run unprepared DDL or maintenance SQL, discarding any result set"""
        cursor = self._dialect.new_cursor(self._raw(), prepared=False)
        try:
            cursor.execute(sql)
            if cursor.description is not None:
                cursor.fetchall()
        finally:
            cursor.close()

    def invalidate(self, error: Optional[BaseException] = None):
        if self.released:
            return
        self.released = True
        try:
            # invalidate() also checks the connection back in
            if self._proxied.is_valid:
                self._proxied.invalidate(error)
        except Exception as e:
            _log_release_failure(f"err invalidating connection {self.id}: {e}", self._silence)

    def release(self):
        if self.released:
            return
        self.released = True
        try:
            self._proxied.close()
        except Exception as e:
            _log_release_failure(f"err closing connection {self.id}: {e}", self._silence)

    def close(self):
        self.release()


def _log_release_failure(message: str, silence: bool):
    if silence:
        logger.debug(message)
    else:
        logger.warning(message)


def close_quietly(resource, silence: bool = True):
    """Close a statement or connection; failures are logged, never raised"""
    try:
        resource.close()
    except Exception as e:
        _log_release_failure(f"err closing {type(resource).__name__}: {e}", silence)


class ConnectionPool:
    """Connection pool manager shared by every worker session."""

    def __init__(
        self,
        creator: Callable[[], Any],
        dialect: Dialect,
        max_open: int,
        max_idle: int,
        timeout: float = 30.0,
        silence: bool = True,
    ):
        """
        Initialize connection pool.

        Args:
            creator: Zero-argument callable returning a new DB-API connection
            dialect: Dialect used to create cursors on pooled connections
            max_open: Maximum open connections (0 = unbounded)
            max_idle: Maximum idle connections kept for reuse (0 = close on release)
            timeout: Seconds to wait for a connection when max_open is reached
            silence: Log release failures at DEBUG instead of WARNING
        """
        self.dialect = dialect
        self.max_open = max_open
        self.max_idle = max_idle
        self.timeout = timeout
        self.silence = silence

        if max_idle <= 0:
            self._pool = NullPool(creator)
        else:
            if max_open <= 0:
                overflow = -1
            else:
                overflow = max(max_open - max_idle, 0)
            # Waits happen in slices so get_connection() can honour deadlines
            self._pool = QueuePool(
                creator,
                pool_size=max_idle,
                max_overflow=overflow,
                timeout=min(timeout, WAIT_SLICE),
            )

    @classmethod
    def for_workload(
        cls,
        creator: Callable[[], Any],
        dialect: Dialect,
        thread_count: int,
        short_conn: bool,
        timeout: float = 30.0,
        silence: bool = True,
    ) -> "ConnectionPool":
        max_open, max_idle = pool_limits(thread_count, short_conn)
        return cls(creator, dialect, max_open, max_idle, timeout=timeout, silence=silence)

    def get_connection(self, deadline: Optional[Deadline] = None) -> PooledConnection:
        """
        Get a connection from the pool.

        Waits on a full pool until a connection frees up, the pool timeout
        passes (ConnectionAcquireError) or the deadline expires or is
        cancelled (OperationCancelledError), whichever comes first.
        """
        check_deadline(deadline)
        give_up_at = time.monotonic() + self.timeout
        while True:
            try:
                proxied = self._pool.connect()
                break
            except sa_exc.TimeoutError as e:
                check_deadline(deadline)
                if time.monotonic() >= give_up_at:
                    raise ConnectionAcquireError(f"Connection pool exhausted: {self.status()}") from e
            except Exception as e:
                raise ConnectionAcquireError(f"Failed to open connection: {e}") from e

        conn = PooledConnection(proxied, self.dialect, silence=self.silence)
        if deadline is not None and deadline.expired():
            conn.release()
            deadline.check()
        return conn

    @contextmanager
    def connection(self, deadline: Optional[Deadline] = None) -> Iterator[PooledConnection]:
        conn = self.get_connection(deadline)
        try:
            yield conn
        finally:
            conn.release()

    def status(self) -> str:
        return self._pool.status()

    def close_all(self):
        """Close all connections in the pool."""
        self._pool.dispose()
