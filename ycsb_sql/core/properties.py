"""
Property bag consumed by the adapters.

The workload driver resolves its configuration into a flat ``key=value``
mapping (the same format as YCSB workload files) and hands it to the
adapter. ``load_properties`` reads such files with python-dotenv, so values
may reference environment variables, e.g. ``mysql.password=${DB_PASSWORD}``.
"""

import os
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from ycsb_sql.core.errors import ConfigurationError


# =============================================================================
# Generic benchmark properties
# =============================================================================

THREAD_COUNT = "threadcount"
THREAD_COUNT_DEFAULT = 200

USE_SHORT_CONN = "useshortconn"
USE_SHORT_CONN_DEFAULT = False

VERBOSE = "verbose"
VERBOSE_DEFAULT = False

# Suppresses non-fatal cleanup warnings
SILENCE = "silence"
SILENCE_DEFAULT = True

TABLE_NAME = "table"
TABLE_NAME_DEFAULT = "usertable"

FIELD_COUNT = "fieldcount"
FIELD_COUNT_DEFAULT = 10

FIELD_LENGTH = "fieldlength"
FIELD_LENGTH_DEFAULT = 100

# Explicit field schema, e.g. "name varchar(32), age int"
FIELDS = "fields"
FIELDS_DEFAULT = ""

DROP_DATA = "dropdata"
DROP_DATA_DEFAULT = False

DO_TRANSACTIONS = "dotransactions"
DO_TRANSACTIONS_DEFAULT = True

_TRUE_VALUES = {'true', '1', 'yes', 'on'}
_FALSE_VALUES = {'false', '0', 'no', 'off', ''}

_SENSITIVE_KEYS = ['password', 'token', 'secret']


class Properties:
    """
    Resolved configuration for one benchmark run.

    Values are stored as given; the typed getters convert on access and
    fall back to the supplied default when a key is missing.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(values or {})

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Properties({self.masked()!r})"

    def set(self, key: str, value: Any):
        self._values[key] = value

    def get_string(self, key: str, default: str = "") -> str:
        value = self._values.get(key)
        if value is None:
            return default
        return str(value)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self._values.get(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Property '{key}' must be an integer, got {value!r}") from e

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = self._values.get(key)
        if value is None or value == "":
            return default
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Property '{key}' must be a number, got {value!r}") from e

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._values.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value

        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Property '{key}' must be a boolean, got {value!r}")

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def masked(self) -> Dict[str, Any]:
        """
        Get properties with sensitive values masked.

        Returns:
            Dict with passwords/tokens masked
        """
        safe = self.as_dict()
        for key in safe:
            if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
                if isinstance(safe[key], str) and len(safe[key]) > 0:
                    safe[key] = '***'
        return safe


def load_properties(*paths: str, overrides: Optional[Mapping[str, Any]] = None) -> Properties:
    """
    Load property files into a Properties bag.

    Args:
        paths: Property files, read in order (later files win)
        overrides: Values applied last, e.g. from the command line

    Returns:
        Properties with every file and override merged
    """
    values: Dict[str, Any] = {}
    for path in paths:
        if not os.path.isfile(path):
            raise ConfigurationError(f"Property file not found: {path}")
        loaded = dotenv_values(path, interpolate=True)
        values.update({k: v for k, v in loaded.items() if v is not None})

    if overrides:
        values.update(overrides)

    return Properties(values)
