"""
Per-worker connection sessions.

A session belongs to exactly one worker thread and is never shared, so
nothing in here takes a lock. The only shared object it touches is the
connection pool, and only through get_connection()/release().

Two variants sit behind one interface and are chosen once per run:

- PooledSession: pins one pool connection for the worker's lifetime and
  caches prepared statements by SQL text.
- PerCallSession: no caching; every operation acquires a fresh connection,
  runs once and releases it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence

from ycsb_sql.core.deadline import Deadline, check_deadline
from ycsb_sql.core.errors import SessionClosedError, StaleConnectionError
from ycsb_sql.core.statement_cache import StatementCache, UnboundedStatementCache
from ycsb_sql.utils.connection_pool import ConnectionPool, PooledConnection, PreparedStatement, close_quietly
from ycsb_sql.utils.rows import Row

logger = logging.getLogger(__name__)


class ConnectionSession(ABC):
    """
    Worker-owned handle used by every CRUD operation.

    Returned by ``init_thread`` and passed explicitly to each operation.
    """

    def __init__(self, pool: ConnectionPool, worker_id: int, total_workers: int):
        self.pool = pool
        self.worker_id = worker_id
        self.total_workers = total_workers
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self):
        if self._closed:
            raise SessionClosedError(f"Session for worker {self.worker_id} is closed")

    @abstractmethod
    def query(self, sql: str, args: Sequence[Any], deadline: Optional[Deadline] = None) -> List[Row]:
        """
        Run a statement that returns rows.

        Args:
            sql: Statement text with dialect placeholders
            args: Bound arguments, in placeholder order
            deadline: Optional cancellation signal

        Returns:
            Decoded rows (possibly empty)
        """
        pass

    @abstractmethod
    def execute(self, sql: str, args: Sequence[Any], deadline: Optional[Deadline] = None) -> int:
        """Run a statement without a result set; returns the affected row count"""
        pass

    @abstractmethod
    def execute_direct(self, sql: str, deadline: Optional[Deadline] = None):
        """Run maintenance SQL without preparing or caching it"""
        pass

    @abstractmethod
    def close(self):
        """Release everything the session owns. Safe to call more than once."""
        pass


class PooledSession(ConnectionSession):
    """Persistent mode: one pinned connection plus a statement cache."""

    def __init__(
        self,
        pool: ConnectionPool,
        worker_id: int,
        total_workers: int,
        cache_factory: Callable[[], StatementCache] = UnboundedStatementCache,
        deadline: Optional[Deadline] = None,
    ):
        super().__init__(pool, worker_id, total_workers)
        self.cache = cache_factory()
        self.conn: PooledConnection = pool.get_connection(deadline)
        self._needs_reconnect = False

    def _is_stale(self, exc: BaseException) -> bool:
        return isinstance(exc, StaleConnectionError) or self.pool.dialect.is_disconnect(exc)

    def _discard_statements(self):
        for stmt in self.cache.drain():
            close_quietly(stmt, self.pool.silence)

    def _reconnect(self, deadline: Optional[Deadline], error: Optional[BaseException] = None):
        logger.info(f"Worker {self.worker_id}: replacing stale connection {self.conn.id}")
        self._discard_statements()
        self.conn.invalidate(error)
        self.conn = self.pool.get_connection(deadline)
        self._needs_reconnect = False

    def statement(self, sql: str, deadline: Optional[Deadline] = None) -> PreparedStatement:
        """
        Get the cached statement for sql, preparing it on a miss.

        A stale connection is replaced once and the prepare retried; a second
        failure propagates.
        """
        if self._needs_reconnect:
            self._reconnect(deadline)

        stmt = self.cache.get(sql)
        if stmt is not None:
            return stmt

        try:
            stmt = self.conn.prepare(sql)
        except Exception as e:
            if not self._is_stale(e):
                raise
            self._reconnect(deadline, e)
            stmt = self.conn.prepare(sql)

        self.cache.put(sql, stmt)
        return stmt

    def _evict(self, sql: str, error: BaseException):
        if self._is_stale(error):
            # Every statement on this connection is dead with it
            self._discard_statements()
            self._needs_reconnect = True
            return

        stmt = self.cache.pop(sql)
        if stmt is not None:
            close_quietly(stmt, self.pool.silence)

    def query(self, sql: str, args: Sequence[Any], deadline: Optional[Deadline] = None) -> List[Row]:
        self._ensure_open()
        check_deadline(deadline)
        stmt = self.statement(sql, deadline)
        check_deadline(deadline)
        try:
            return stmt.query(args)
        except Exception as e:
            self._evict(sql, e)
            raise

    def execute(self, sql: str, args: Sequence[Any], deadline: Optional[Deadline] = None) -> int:
        self._ensure_open()
        check_deadline(deadline)
        stmt = self.statement(sql, deadline)
        check_deadline(deadline)
        try:
            return stmt.execute(args)
        except Exception as e:
            self._evict(sql, e)
            raise

    def execute_direct(self, sql: str, deadline: Optional[Deadline] = None):
        self._ensure_open()
        check_deadline(deadline)
        if self._needs_reconnect:
            self._reconnect(deadline)
        try:
            self.conn.execute_direct(sql)
        except Exception as e:
            if self._is_stale(e):
                self._discard_statements()
                self._needs_reconnect = True
            raise

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._discard_statements()
        if self._needs_reconnect:
            self.conn.invalidate()
        else:
            self.conn.release()


class PerCallSession(ConnectionSession):
    """Short-connection mode: a fresh connection per operation, nothing cached."""

    def __init__(
        self,
        pool: ConnectionPool,
        worker_id: int,
        total_workers: int,
        deadline: Optional[Deadline] = None,
    ):
        super().__init__(pool, worker_id, total_workers)
        # Fail fast if the backend is unreachable; nothing is kept
        pool.get_connection(deadline).release()

    def _run(self, sql: str, args: Sequence[Any], deadline: Optional[Deadline], fetch: bool):
        self._ensure_open()
        with self.pool.connection(deadline) as conn:
            check_deadline(deadline)
            return conn.run(sql, args, fetch)

    def query(self, sql: str, args: Sequence[Any], deadline: Optional[Deadline] = None) -> List[Row]:
        return self._run(sql, args, deadline, fetch=True)

    def execute(self, sql: str, args: Sequence[Any], deadline: Optional[Deadline] = None) -> int:
        return self._run(sql, args, deadline, fetch=False)

    def execute_direct(self, sql: str, deadline: Optional[Deadline] = None):
        self._ensure_open()
        with self.pool.connection(deadline) as conn:
            check_deadline(deadline)
            conn.execute_direct(sql)

    def close(self):
        self._closed = True
