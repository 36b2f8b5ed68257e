"""
MySQL-compatible dialect (MySQL, TiDB, MariaDB).

Uses mysql-connector-python; prepared cursors prepare their statement
server-side on first execute and reuse it for as long as the cursor lives.
"""

from typing import Any

import mysql.connector
from mysql.connector import errors

from ycsb_sql.core.dialect import ConnectionSettings, Dialect
from ycsb_sql.core.properties import Properties

FORCE_INDEX = "mysql.force_index"

# Client error codes for a connection that is gone:
# CR_CONN_HOST_ERROR, CR_SERVER_GONE_ERROR, CR_SERVER_LOST,
# CR_SERVER_LOST_EXTENDED; -1 is "MySQL Connection not available."
_DISCONNECT_ERRNOS = {-1, 2003, 2006, 2013, 2055}


class MySQLDialect(Dialect):
    """MySQL wire protocol family."""

    name = "mysql"
    property_prefix = "mysql"
    default_port = 3306
    placeholder = "?"

    def connect(self, settings: ConnectionSettings):
        return mysql.connector.connect(
            host=settings.host,
            port=settings.port,
            user=settings.user,
            password=settings.password,
            database=settings.database,
            connection_timeout=settings.connect_timeout,
            autocommit=True,
        )

    def new_cursor(self, connection, prepared: bool):
        if prepared:
            return connection.cursor(prepared=True)
        return connection.cursor()

    def is_disconnect(self, exc: BaseException) -> bool:
        if not isinstance(exc, (errors.OperationalError, errors.InterfaceError)):
            return False
        return exc.errno in _DISCONNECT_ERRNOS

    def encode_value(self, value: bytes) -> Any:
        # Boolean columns are written from the literal strings
        if value == b"true":
            return True
        if value == b"false":
            return False
        return value

    def force_index_clause(self, props: Properties) -> str:
        if props.get_bool(FORCE_INDEX, True):
            return "FORCE INDEX(`PRIMARY`)"
        return ""

    def insert_prefix(self) -> str:
        return "INSERT IGNORE INTO"
