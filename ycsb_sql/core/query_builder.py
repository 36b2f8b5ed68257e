"""
SQL text generation for the CRUD statement shapes and the table bootstrap.

Generated text is deterministic for a given table, field list and dialect,
which is what lets sessions cache prepared statements by exact text.
"""

from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from ycsb_sql.core.dialect import KEY_COLUMN, Dialect
from ycsb_sql.core.errors import ConfigurationError
from ycsb_sql.utils.field_pairs import field_pairs


def parse_field_spec(fields: str) -> List[Tuple[str, str]]:
    """
    Parse an explicit field schema.

    Args:
        fields: Comma-separated ``name type`` entries, e.g. ``"name varchar(32), age int"``

    Returns:
        List of (name, type) tuples in the given order
    """
    # Commas inside a type, e.g. DECIMAL(10,2), belong to that type
    depth = 0
    current = []
    entries = []
    for ch in fields:
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        if ch == ',' and depth == 0:
            entries.append(''.join(current))
            current = []
        else:
            current.append(ch)
    entries.append(''.join(current))

    columns = []
    for entry in entries:
        parts = entry.strip().split(None, 1)
        if len(parts) != 2:
            raise ConfigurationError(f"Malformed field spec entry: {entry.strip()!r}")
        columns.append((parts[0], parts[1].strip()))

    return columns


class QueryBuilder:
    """
    Builds SQL for one dialect.

    Args:
        dialect: Engine family supplying placeholders and SQL fragments
        force_index: Index hint clause inserted after the table name ("" for none)
    """

    def __init__(self, dialect: Dialect, force_index: str = ""):
        self.dialect = dialect
        self.force_index = force_index
        self.key = dialect.quote_identifier(KEY_COLUMN)

    def _columns(self, fields: Sequence[str]) -> str:
        return ', '.join(self.dialect.quote_identifier(f) for f in fields)

    def _from(self, table: str, fields: Optional[Sequence[str]]) -> str:
        columns = self._columns(fields) if fields else '*'
        parts = [f"SELECT {columns} FROM {table}"]
        if self.force_index:
            parts.append(self.force_index)
        return ' '.join(parts)

    def read(self, table: str, fields: Optional[Sequence[str]] = None) -> str:
        p = self.dialect.placeholder
        return f"{self._from(table, fields)} WHERE {self.key} = {p}"

    def scan(self, table: str, fields: Optional[Sequence[str]] = None) -> str:
        p = self.dialect.placeholder
        parts = [f"{self._from(table, fields)} WHERE {self.key} >= {p}"]
        order = self.dialect.scan_order_clause()
        if order:
            parts.append(order)
        parts.append(f"LIMIT {p}")
        return ' '.join(parts)

    def update(self, table: str, key: str, values: Mapping[str, Union[bytes, str]]) -> Tuple[str, List[Any]]:
        """
        Build an UPDATE over the name-ordered field pairs.

        Returns:
            (sql, args) with the key bound last
        """
        p = self.dialect.placeholder
        pairs = field_pairs(values)
        if not pairs:
            raise ValueError("update requires at least one field")

        assignments = ', '.join(f"{self.dialect.quote_identifier(pair.field)} = {p}" for pair in pairs)
        args = [self.dialect.encode_value(pair.value) for pair in pairs]
        args.append(key)

        return f"UPDATE {table} SET {assignments} WHERE {self.key} = {p}", args

    def insert(self, table: str, key: str, values: Mapping[str, Union[bytes, str]]) -> Tuple[str, List[Any]]:
        """
        Build a duplicate-ignoring INSERT.

        Returns:
            (sql, args) with the key bound first
        """
        p = self.dialect.placeholder
        pairs = field_pairs(values)

        columns = self._columns([KEY_COLUMN] + [pair.field for pair in pairs])
        markers = ', '.join([p] * (len(pairs) + 1))
        args: List[Any] = [key]
        args.extend(self.dialect.encode_value(pair.value) for pair in pairs)

        sql = f"{self.dialect.insert_prefix()} {table} ({columns}) VALUES ({markers})"
        suffix = self.dialect.insert_suffix()
        if suffix:
            sql = f"{sql} {suffix}"
        return sql, args

    def delete(self, table: str) -> str:
        return f"DELETE FROM {table} WHERE {self.key} = {self.dialect.placeholder}"

    def analyze(self, table: str) -> str:
        return self.dialect.analyze_statement(table)

    def drop_table(self, table: str) -> str:
        return f"DROP TABLE IF EXISTS {table}"

    def create_table(self, table: str, field_count: int, field_length: int, fields: str = "") -> str:
        """
        Build the idempotent CREATE TABLE for the benchmark table.

        Args:
            table: Table name
            field_count: Number of generated FIELDn columns (ignored when fields is set)
            field_length: VARCHAR length of generated columns
            fields: Explicit field spec, see parse_field_spec()
        """
        quote = self.dialect.quote_identifier
        parts = [f"CREATE TABLE IF NOT EXISTS {table} ({self.key} VARCHAR(64) PRIMARY KEY"]
        if fields:
            for name, col_type in parse_field_spec(fields):
                parts.append(f", {quote(name)} {col_type}")
        else:
            for i in range(field_count):
                parts.append(f", {quote(f'FIELD{i}')} VARCHAR({field_length})")
        parts.append(")")
        return ''.join(parts)
