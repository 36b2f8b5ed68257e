"""
Field/value pairs for the write path.

Workload values arrive as an unordered mapping. Sorting by field name keeps
the generated column list and the bound arguments positionally consistent,
and gives the same SQL text for the same field set so prepared statements
can be reused.
"""

from typing import List, Mapping, NamedTuple, Union


class FieldPair(NamedTuple):
    field: str
    value: bytes


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Normalize a workload value to raw bytes"""
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode('utf-8')
    raise TypeError(f"Field values must be bytes or str, got {type(value).__name__}")


def field_pairs(values: Mapping[str, Union[bytes, str]]) -> List[FieldPair]:
    """
    Convert a field->value mapping into name-ordered pairs.

    Args:
        values: Field name to value (bytes, or text encoded as UTF-8)

    Returns:
        List of FieldPair sorted by field name
    """
    return [FieldPair(field, to_bytes(values[field])) for field in sorted(values)]
