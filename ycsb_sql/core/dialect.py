"""
SQL dialect interface.

A dialect captures everything that differs between wire-compatible engine
families: the DB-API driver, how prepared statements are created, which
errors mean the connection is gone, and the handful of SQL fragments the
query builder needs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from ycsb_sql.core.properties import Properties

KEY_COLUMN = "YCSB_KEY"


@dataclass
class ConnectionSettings:
    """Connection parameters resolved from the property bag"""
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10
    options: Any = None


class Dialect(ABC):
    """
    Abstract base class for SQL engine families.

    Subclasses set the class attributes and implement the driver hooks.
    """

    name = "generic"
    property_prefix = "sql"
    default_port = 0
    default_user = "root"
    default_database = "test"

    # Parameter marker used by the driver's prepared statements
    placeholder = "?"

    def settings(self, props: Properties) -> ConnectionSettings:
        """
        Resolve connection settings from the property bag.

        Args:
            props: Run properties; keys are read under ``<prefix>.``

        Returns:
            ConnectionSettings for connect()
        """
        prefix = self.property_prefix
        return ConnectionSettings(
            host=props.get_string(f"{prefix}.host", "127.0.0.1"),
            port=props.get_int(f"{prefix}.port", self.default_port),
            user=props.get_string(f"{prefix}.user", self.default_user),
            password=props.get_string(f"{prefix}.password", ""),
            database=props.get_string(f"{prefix}.db", self.default_database),
            connect_timeout=props.get_int(f"{prefix}.connect_timeout", 10),
            options=self.extra_options(props),
        )

    def extra_options(self, props: Properties) -> Any:
        """Dialect-specific connection options"""
        return None

    def pool_timeout(self, props: Properties) -> float:
        return props.get_float(f"{self.property_prefix}.pool_timeout", 30.0)

    @abstractmethod
    def connect(self, settings: ConnectionSettings):
        """Open a new DB-API connection (autocommit)"""
        pass

    @abstractmethod
    def new_cursor(self, connection, prepared: bool):
        """
        Create a cursor on a raw DB-API connection.

        Args:
            connection: DB-API connection
            prepared: True for a cursor that prepares its statement server-side

        Returns:
            DB-API cursor
        """
        pass

    def execute(self, cursor, sql: str, args: Sequence[Any], prepared: bool):
        cursor.execute(sql, tuple(args))

    @abstractmethod
    def is_disconnect(self, exc: BaseException) -> bool:
        """True when the error means the connection can no longer be used"""
        pass

    def encode_value(self, value: bytes) -> Any:
        """Bind form of a field value on the write path"""
        return value

    # -------------------------------------------------------------------------
    # SQL fragments
    # -------------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Column name as written in SQL; must keep the name's case"""
        return name

    def force_index_clause(self, props: Properties) -> str:
        """Index hint pinning the primary key, empty when unsupported or disabled"""
        return ""

    def insert_prefix(self) -> str:
        return "INSERT INTO"

    def insert_suffix(self) -> str:
        return ""

    def scan_order_clause(self) -> str:
        """ORDER BY needed for ascending scans; empty when the hinted index already orders rows"""
        return ""

    def analyze_statement(self, table: str) -> str:
        return f"ANALYZE TABLE {table}"
