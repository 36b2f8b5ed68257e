"""
Per-session prepared statement cache.

Keyed by exact SQL text. The default implementation never evicts: a run
uses a small, fixed vocabulary of statement shapes (five CRUD shapes, times
the distinct field subsets the workload asks for). A workload generating
many distinct field subsets grows the cache without bound; substitute a
bounded StatementCache if that matters.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class StatementCache(ABC):
    """Interface for a session's query text -> prepared statement map"""

    @abstractmethod
    def get(self, sql: str):
        pass

    @abstractmethod
    def put(self, sql: str, statement):
        pass

    @abstractmethod
    def pop(self, sql: str):
        """Remove and return the statement for sql (None if absent)"""
        pass

    @abstractmethod
    def drain(self) -> List:
        """Remove and return every cached statement"""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class UnboundedStatementCache(StatementCache):

    def __init__(self):
        self._statements: Dict[str, object] = {}

    def get(self, sql: str) -> Optional[object]:
        return self._statements.get(sql)

    def put(self, sql: str, statement):
        self._statements[sql] = statement

    def pop(self, sql: str) -> Optional[object]:
        return self._statements.pop(sql, None)

    def drain(self) -> List:
        statements = list(self._statements.values())
        self._statements.clear()
        return statements

    def __len__(self) -> int:
        return len(self._statements)

    def __contains__(self, sql: str) -> bool:
        return sql in self._statements
