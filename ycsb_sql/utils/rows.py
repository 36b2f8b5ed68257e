"""
Generic result-set decoding.

Every column comes back as raw bytes regardless of its declared SQL type;
interpreting the value is the workload's business.
"""

from typing import Any, Dict, List, Optional

Row = Dict[str, Optional[bytes]]


def column_names(cursor) -> List[str]:
    """Column names from a DB-API cursor description (empty for DML)"""
    if cursor.description is None:
        return []
    return [col[0] for col in cursor.description]


def decode_value(value: Any) -> Optional[bytes]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode('utf-8')
    return str(value).encode('utf-8')


def decode_rows(cursor) -> List[Row]:
    """
    Fetch every remaining row of an executed cursor.

    Args:
        cursor: DB-API cursor after execute()

    Returns:
        One fresh dict per row, column name -> raw bytes (None for SQL NULL)
    """
    cols = column_names(cursor)
    if not cols:
        return []

    return [
        {col: decode_value(value) for col, value in zip(cols, record)}
        for record in cursor.fetchall()
    ]
