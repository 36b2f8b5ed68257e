"""
PostgreSQL-compatible dialect (PostgreSQL, Lakebase, Aurora PostgreSQL).

Uses psycopg 3; executing with prepare=True makes the connection prepare
the statement server-side and reuse it on later executions.

PostgreSQL folds unquoted identifiers to lower case, so column names are
double-quoted everywhere. Rows then come back keyed ``YCSB_KEY``,
``FIELD0`` and so on, exactly as on MySQL.
"""

from typing import Any

import psycopg

from ycsb_sql.core.dialect import KEY_COLUMN, ConnectionSettings, Dialect
from ycsb_sql.core.properties import Properties

SSL_MODE = "pg.sslmode"


class PostgresDialect(Dialect):
    """PostgreSQL wire protocol family."""

    name = "postgresql"
    property_prefix = "pg"
    default_port = 5432
    placeholder = "%s"

    def extra_options(self, props: Properties) -> Any:
        return {'sslmode': props.get_string(SSL_MODE, 'prefer')}

    def connect(self, settings: ConnectionSettings):
        options = settings.options or {}
        conninfo = (
            f"host={settings.host} "
            f"port={settings.port} "
            f"dbname={settings.database} "
            f"user={settings.user} "
            f"connect_timeout={settings.connect_timeout} "
            f"sslmode={options.get('sslmode', 'prefer')}"
        )
        # Password passed separately so it can contain spaces or quotes
        return psycopg.connect(conninfo, password=settings.password, autocommit=True)

    def new_cursor(self, connection, prepared: bool):
        return connection.cursor()

    def execute(self, cursor, sql, args, prepared):
        cursor.execute(sql, tuple(args), prepare=prepared)

    def is_disconnect(self, exc: BaseException) -> bool:
        if isinstance(exc, psycopg.InterfaceError):
            return True
        if isinstance(exc, psycopg.OperationalError):
            # Class 08 is "connection exception"; no sqlstate means the client lost the socket
            return exc.sqlstate is None or exc.sqlstate.startswith('08')
        return False

    def encode_value(self, value: bytes) -> Any:
        # Field columns are VARCHAR; bytes would bind as bytea
        return value.decode('utf-8')

    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def insert_suffix(self) -> str:
        return f"ON CONFLICT ({self.quote_identifier(KEY_COLUMN)}) DO NOTHING"

    def scan_order_clause(self) -> str:
        return f"ORDER BY {self.quote_identifier(KEY_COLUMN)}"

    def analyze_statement(self, table: str) -> str:
        return f"ANALYZE {table}"
