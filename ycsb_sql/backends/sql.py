"""
SQL adapter shared by every dialect.

Owns the connection pool for the run, creates the benchmark table once at
construction, and routes each CRUD operation through the worker's session.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ycsb_sql.core import properties as prop
from ycsb_sql.core.db import DB, Values
from ycsb_sql.core.deadline import Deadline
from ycsb_sql.core.dialect import Dialect
from ycsb_sql.core.properties import Properties
from ycsb_sql.core.query_builder import QueryBuilder
from ycsb_sql.core.session import ConnectionSession, PerCallSession, PooledSession
from ycsb_sql.core.statement_cache import UnboundedStatementCache
from ycsb_sql.utils.connection_pool import ConnectionPool
from ycsb_sql.utils.rows import Row

logger = logging.getLogger(__name__)


class SQLAdapter(DB):
    """
    Benchmark adapter for a relational backend.

    Usage:
        db = SQLAdapter(props, MySQLDialect())
        session = db.init_thread(0, 1)
        try:
            db.insert(session, 'usertable', 'user1', {'FIELD0': b'v0'})
            row = db.read(session, 'usertable', 'user1')
        finally:
            db.cleanup_thread(session)
        db.close()
    """

    def __init__(
        self,
        props: Properties,
        dialect: Dialect,
        cache_factory=UnboundedStatementCache,
    ):
        """
        Initialize the adapter and create the benchmark table.

        Args:
            props: Resolved run properties
            dialect: Engine family to talk to
            cache_factory: Builds each persistent session's StatementCache

        Raises:
            ConnectionAcquireError: If no connection could be opened for the bootstrap
            Exception: Driver errors from DROP/CREATE TABLE propagate unchanged
        """
        self.props = props
        self.dialect = dialect
        self.cache_factory = cache_factory

        self.verbose = props.get_bool(prop.VERBOSE, prop.VERBOSE_DEFAULT)
        self.silence = props.get_bool(prop.SILENCE, prop.SILENCE_DEFAULT)
        self.short_conn = props.get_bool(prop.USE_SHORT_CONN, prop.USE_SHORT_CONN_DEFAULT)
        self.thread_count = props.get_int(prop.THREAD_COUNT, prop.THREAD_COUNT_DEFAULT)

        self.settings = dialect.settings(props)
        self.builder = QueryBuilder(dialect, dialect.force_index_clause(props))

        self.pool = ConnectionPool.for_workload(
            lambda: dialect.connect(self.settings),
            dialect,
            thread_count=self.thread_count,
            short_conn=self.short_conn,
            timeout=dialect.pool_timeout(props),
            silence=self.silence,
        )

        if self.verbose:
            logger.info(f"{dialect.name} adapter properties: {props.masked()}")

        try:
            self._create_table()
        except Exception:
            self.pool.close_all()
            raise

        mode = "short-connection" if self.short_conn else "persistent"
        logger.info(
            f"✅ {dialect.name} adapter ready ({mode} mode, "
            f"{self.settings.host}:{self.settings.port}/{self.settings.database})"
        )

    def _create_table(self):
        table = self.props.get_string(prop.TABLE_NAME, prop.TABLE_NAME_DEFAULT)

        with self.pool.connection() as conn:
            drop = self.props.get_bool(prop.DROP_DATA, prop.DROP_DATA_DEFAULT)
            if drop and not self.props.get_bool(prop.DO_TRANSACTIONS, prop.DO_TRANSACTIONS_DEFAULT):
                sql = self.builder.drop_table(table)
                self._log_statement(sql)
                conn.execute_direct(sql)

            sql = self.builder.create_table(
                table,
                field_count=self.props.get_int(prop.FIELD_COUNT, prop.FIELD_COUNT_DEFAULT),
                field_length=self.props.get_int(prop.FIELD_LENGTH, prop.FIELD_LENGTH_DEFAULT),
                fields=self.props.get_string(prop.FIELDS, prop.FIELDS_DEFAULT),
            )
            self._log_statement(sql)
            conn.execute_direct(sql)

    def _log_statement(self, sql: str, args: Sequence[Any] = ()):
        if self.verbose:
            logger.info("%s %s", sql, list(args))

    def close(self):
        if self.pool is None:
            return
        self.pool.close_all()
        self.pool = None

    def init_thread(self, worker_id: int, total_workers: int) -> ConnectionSession:
        if self.short_conn:
            return PerCallSession(self.pool, worker_id, total_workers)
        return PooledSession(self.pool, worker_id, total_workers, cache_factory=self.cache_factory)

    def cleanup_thread(self, session: ConnectionSession):
        session.close()

    def _query(self, session, sql, args, deadline) -> List[Row]:
        self._log_statement(sql, args)
        return session.query(sql, args, deadline)

    def _execute(self, session, sql, args, deadline) -> int:
        self._log_statement(sql, args)
        return session.execute(sql, args, deadline)

    def read(
        self,
        session: ConnectionSession,
        table: str,
        key: str,
        fields: Optional[Sequence[str]] = None,
        deadline: Optional[Deadline] = None,
    ) -> Optional[Row]:
        rows = self._query(session, self.builder.read(table, fields), [key], deadline)
        if not rows:
            return None
        return rows[0]

    def scan(
        self,
        session: ConnectionSession,
        table: str,
        start_key: str,
        count: int,
        fields: Optional[Sequence[str]] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[Row]:
        return self._query(session, self.builder.scan(table, fields), [start_key, count], deadline)

    def update(self, session: ConnectionSession, table: str, key: str, values: Values, deadline: Optional[Deadline] = None):
        sql, args = self.builder.update(table, key, values)
        self._execute(session, sql, args, deadline)

    def insert(self, session: ConnectionSession, table: str, key: str, values: Values, deadline: Optional[Deadline] = None):
        sql, args = self.builder.insert(table, key, values)
        self._execute(session, sql, args, deadline)

    def delete(self, session: ConnectionSession, table: str, key: str, deadline: Optional[Deadline] = None):
        self._execute(session, self.builder.delete(table), [key], deadline)

    def analyze(self, session: ConnectionSession, table: str, deadline: Optional[Deadline] = None):
        sql = self.builder.analyze(table)
        self._log_statement(sql)
        session.execute_direct(sql, deadline)

    def get_info(self) -> Dict:
        return {
            'name': self.__class__.__name__,
            'dialect': self.dialect.name,
            'mode': 'short' if self.short_conn else 'persistent',
            'max_open': self.pool.max_open if self.pool else None,
            'max_idle': self.pool.max_idle if self.pool else None,
            'properties': self.props.masked(),
        }


class SQLAdapterCreator:
    """Registry creator binding a dialect class to SQLAdapter"""

    def __init__(self, dialect_class, cache_factory=UnboundedStatementCache):
        self.dialect_class = dialect_class
        self.cache_factory = cache_factory

    def __call__(self, props: Properties) -> SQLAdapter:
        return SQLAdapter(props, self.dialect_class(), cache_factory=self.cache_factory)
