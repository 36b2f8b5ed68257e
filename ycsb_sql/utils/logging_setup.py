"""
Logging setup for processes hosting the adapters.
"""

import logging
import sys

DRIVER_LOGGERS = (
    "mysql.connector",
    "psycopg",
    "psycopg.pq",
    "sqlalchemy.pool",
)


def silence_driver_logging(level=logging.WARNING):
    """
    Raise the level of driver / pool loggers so they don't drown the
    benchmark output.
    """
    for name in DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(level)


def configure_logging(verbose: bool = False):
    """
    Configure root logging for a benchmark process.

    Args:
        verbose: Log at DEBUG instead of INFO
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - [%(threadName)-15s] - %(levelname)s - %(name)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    silence_driver_logging()
