"""
SQL adapter implementations for benchmarking.

Available dialects:
- MySQL family (mysql, tidb, mariadb)
- PostgreSQL family (postgresql, pg, lakebase)
"""

from ycsb_sql.core.registry import AdapterRegistry

# Import backend implementations
from .mysql import MySQLDialect
from .postgres import PostgresDialect
from .sql import SQLAdapter, SQLAdapterCreator

MYSQL_ALIASES = ('mysql', 'tidb', 'mariadb')
POSTGRES_ALIASES = ('postgresql', 'pg', 'lakebase')


def register_sql_adapters(registry: AdapterRegistry) -> AdapterRegistry:
    """Register every SQL adapter alias with the given registry"""
    mysql_creator = SQLAdapterCreator(MySQLDialect)
    for name in MYSQL_ALIASES:
        registry.register(name, mysql_creator)

    postgres_creator = SQLAdapterCreator(PostgresDialect)
    for name in POSTGRES_ALIASES:
        registry.register(name, postgres_creator)

    return registry


def default_registry() -> AdapterRegistry:
    """A new registry holding every SQL adapter"""
    return register_sql_adapters(AdapterRegistry())


__all__ = [
    'MySQLDialect',
    'PostgresDialect',
    'SQLAdapter',
    'SQLAdapterCreator',
    'register_sql_adapters',
    'default_registry',
]
