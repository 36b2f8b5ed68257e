"""
Shared fixtures.

The adapters are exercised against an in-memory engine that understands
exactly the statement shapes the query builder generates. It speaks DB-API
through FakeConnection/FakeCursor and is plugged in via MySQLDialect and
PostgresDialect subclasses, so the SQL fragments and value encoding are the
real ones. In PostgreSQL mode it rejects unquoted column names, the way a
real server would fail to find ``FIELD0`` after folding it to ``field0``.
"""

import re
import threading

import pytest

from ycsb_sql.backends.mysql import MySQLDialect
from ycsb_sql.backends.postgres import PostgresDialect
from ycsb_sql.backends.sql import SQLAdapter
from ycsb_sql.core.properties import Properties


class FakeDisconnect(Exception):
    """Raised when talking over a connection the server has dropped"""


class FakeSQLError(Exception):
    """Raised for statements the fake engine cannot run"""


def _split_top_level(text):
    parts, depth, current = [], 0, []
    for ch in text:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        if ch == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append(''.join(current).strip())
    return parts


_CREATE = re.compile(r"CREATE TABLE IF NOT EXISTS (\w+) \((.*)\)$")
_DROP = re.compile(r"DROP TABLE IF EXISTS (\w+)$")
_ANALYZE = re.compile(r"ANALYZE TABLE (\w+)$")
_INSERT = re.compile(r"INSERT IGNORE INTO (\w+) \(([^)]*)\) VALUES \(([^)]*)\)$")
_UPDATE = re.compile(r"UPDATE (\w+) SET (.*) WHERE YCSB_KEY = \?$")
_DELETE = re.compile(r"DELETE FROM (\w+) WHERE YCSB_KEY = \?$")
_SELECT = re.compile(
    r"SELECT (.*?) FROM (\w+)(?: FORCE INDEX\(`PRIMARY`\))? WHERE YCSB_KEY (=|>=) \?( LIMIT \?)?$"
)

_PG_ON_CONFLICT = re.compile(r'^INSERT INTO (.*) ON CONFLICT \("YCSB_KEY"\) DO NOTHING$')
_PG_ANALYZE = re.compile(r"^ANALYZE (\w+)$")


def _from_postgres(sql):
    """Rewrite the PostgreSQL statement shapes into the MySQL ones the engine runs"""
    m = _PG_ON_CONFLICT.match(sql)
    if m:
        sql = f"INSERT IGNORE INTO {m.group(1)}"
    sql = _PG_ANALYZE.sub(r"ANALYZE TABLE \1", sql)
    sql = sql.replace(' ORDER BY "YCSB_KEY"', '')
    # Unquoted columns would fold to lower case on a real server
    unquoted = re.search(r'\b(?:YCSB_KEY|FIELD\d+)\b', re.sub(r'"[^"]*"', '', sql))
    if unquoted:
        raise FakeSQLError(f'column "{unquoted.group(0).lower()}" does not exist')
    return sql.replace('%s', '?').replace('"', '')


class FakeEngine:
    """A tiny thread-safe key/value 'server'"""

    def __init__(self):
        self.lock = threading.Lock()
        self.tables = {}
        self.connections = []
        self.log = []
        self.prepares = 0
        self.refuse_connections = False
        self.dead_on_arrival = False
        self.syntax = 'mysql'

    # -- connections ----------------------------------------------------------

    def connect(self):
        with self.lock:
            if self.refuse_connections:
                raise FakeDisconnect("connection refused")
            conn = FakeConnection(self, len(self.connections) + 1)
            if self.dead_on_arrival:
                conn.server_closed = True
            self.connections.append(conn)
            return conn

    def kill(self, conn):
        """Drop a connection server-side"""
        conn.server_closed = True

    def open_connections(self):
        return [c for c in self.connections if not c.closed]

    def connection_ids_for(self, prefix):
        return [conn_id for conn_id, sql, _ in self.log if sql.startswith(prefix)]

    # -- statements -----------------------------------------------------------

    def run(self, conn_id, sql, args):
        with self.lock:
            self.log.append((conn_id, sql, tuple(args)))
            if self.syntax == 'postgres':
                sql = _from_postgres(sql)
            return self._run(sql, list(args))

    def _table(self, name):
        if name not in self.tables:
            raise FakeSQLError(f"Table '{name}' doesn't exist")
        return self.tables[name]

    def _run(self, sql, args):
        m = _CREATE.match(sql)
        if m:
            name, body = m.groups()
            if name not in self.tables:
                columns = [part.split()[0] for part in _split_top_level(body)]
                self.tables[name] = {'columns': columns, 'rows': {}}
            return None, [], 0

        m = _DROP.match(sql)
        if m:
            self.tables.pop(m.group(1), None)
            return None, [], 0

        m = _ANALYZE.match(sql)
        if m:
            self._table(m.group(1))
            return ['Table', 'Op', 'Msg_type', 'Msg_text'], [(m.group(1), 'analyze', 'status', 'OK')], 0

        m = _INSERT.match(sql)
        if m:
            table = self._table(m.group(1))
            columns = [c.strip() for c in m.group(2).split(',')]
            record = {col.upper(): value for col, value in zip(columns, args)}
            key = record.pop('YCSB_KEY')
            if key in table['rows']:
                return None, [], 0
            table['rows'][key] = record
            return None, [], 1

        m = _UPDATE.match(sql)
        if m:
            table = self._table(m.group(1))
            columns = [a.split('=')[0].strip() for a in m.group(2).split(',')]
            key = args[-1]
            record = table['rows'].get(key)
            if record is None:
                return None, [], 0
            for col, value in zip(columns, args):
                record[col.upper()] = value
            return None, [], 1

        m = _DELETE.match(sql)
        if m:
            table = self._table(m.group(1))
            return None, [], 1 if table['rows'].pop(args[0], None) is not None else 0

        m = _SELECT.match(sql)
        if m:
            projection, name, op, limit = m.groups()
            table = self._table(name)
            if projection == '*':
                columns = ['YCSB_KEY'] + table['columns'][1:]
            else:
                columns = [c.strip() for c in projection.split(',')]

            if op == '=':
                keys = [args[0]] if args[0] in table['rows'] else []
            else:
                keys = sorted(k for k in table['rows'] if k >= args[0])
                if limit:
                    keys = keys[:args[1]]

            rows = []
            for key in keys:
                record = dict(table['rows'][key], YCSB_KEY=key)
                rows.append(tuple(record.get(col.upper()) for col in columns))
            return columns, rows, len(rows)

        raise FakeSQLError(f"You have an error in your SQL syntax near '{sql}'")


class FakeConnection:

    def __init__(self, engine, conn_id):
        self.engine = engine
        self.id = conn_id
        self.closed = False
        self.server_closed = False
        self.cursors = []

    def cursor(self, prepared=False):
        if self.closed or self.server_closed:
            raise FakeDisconnect("MySQL Connection not available.")
        cursor = FakeCursor(self, prepared)
        self.cursors.append(cursor)
        return cursor

    def rollback(self):
        pass

    def close(self):
        self.closed = True


class FakeCursor:

    def __init__(self, connection, prepared):
        self.connection = connection
        self.prepared = prepared
        self.prepared_sql = None
        self.description = None
        self.rowcount = -1
        self.closed = False
        self.executions = 0
        self._rows = []

    def execute(self, sql, args=(), prepare=None):
        if self.closed:
            raise FakeSQLError("Cursor is closed")
        if self.connection.closed or self.connection.server_closed:
            raise FakeDisconnect("Lost connection to MySQL server during query")
        if (self.prepared or prepare) and sql != self.prepared_sql:
            self.prepared_sql = sql
            self.connection.engine.prepares += 1

        columns, rows, rowcount = self.connection.engine.run(self.connection.id, sql, args)
        self.executions += 1
        self.description = [(c, None, None, None, None, None, True) for c in columns] if columns else None
        self._rows = list(rows)
        self.rowcount = rowcount

    def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    def close(self):
        self.closed = True


class FakeMySQLDialect(MySQLDialect):
    """MySQL dialect wired to the fake engine instead of mysql-connector"""

    name = "fake-mysql"

    def __init__(self, engine):
        self.engine = engine

    def connect(self, settings):
        return self.engine.connect()

    def new_cursor(self, connection, prepared):
        return connection.cursor(prepared=prepared)

    def is_disconnect(self, exc):
        return isinstance(exc, FakeDisconnect)


class FakePostgresDialect(PostgresDialect):
    """PostgreSQL dialect wired to the fake engine instead of psycopg"""

    name = "fake-postgresql"

    def __init__(self, engine):
        self.engine = engine
        engine.syntax = 'postgres'

    def connect(self, settings):
        return self.engine.connect()

    def is_disconnect(self, exc):
        return isinstance(exc, FakeDisconnect)


def _adapter_factory(dialect, prefix):
    adapters = []

    def _make(**overrides):
        values = {
            'threadcount': 4,
            'fieldcount': 2,
            'fieldlength': 16,
            f'{prefix}.pool_timeout': 1,
        }
        values.update(overrides)
        adapter = SQLAdapter(Properties(values), dialect)
        adapters.append(adapter)
        return adapter

    return _make, adapters


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def dialect(engine):
    return FakeMySQLDialect(engine)


@pytest.fixture
def make_adapter(dialect):
    """Factory building SQLAdapters on the fake engine; all closed at teardown"""
    make, adapters = _adapter_factory(dialect, 'mysql')
    yield make

    for adapter in adapters:
        adapter.close()


@pytest.fixture
def adapter(make_adapter):
    return make_adapter()


@pytest.fixture
def make_pg_adapter(engine):
    """Same as make_adapter, speaking the PostgreSQL statement shapes"""
    make, adapters = _adapter_factory(FakePostgresDialect(engine), 'pg')
    yield make

    for adapter in adapters:
        adapter.close()
