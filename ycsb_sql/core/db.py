"""
Abstract database interface driven by the benchmark workload.

The driver creates one DB per run, calls init_thread once per worker, then
issues operations from that worker with the session it got back, and
finally calls cleanup_thread (always, even after failures) and close().
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ycsb_sql.core.deadline import Deadline
from ycsb_sql.core.session import ConnectionSession
from ycsb_sql.utils.rows import Row

Values = Mapping[str, Union[bytes, str]]


class DB(ABC):
    """
    Abstract base class for benchmark database adapters.

    Every operation takes the worker's session explicitly; a session must
    only be used by the worker that created it.
    """

    @abstractmethod
    def init_thread(self, worker_id: int, total_workers: int) -> ConnectionSession:
        """
        Set up per-worker state.

        Args:
            worker_id: Index of the calling worker
            total_workers: Number of workers in the run

        Returns:
            Session to pass to every operation from this worker
        """
        pass

    @abstractmethod
    def cleanup_thread(self, session: ConnectionSession):
        """Release everything the session owns. Call exactly once per init_thread."""
        pass

    @abstractmethod
    def read(
        self,
        session: ConnectionSession,
        table: str,
        key: str,
        fields: Optional[Sequence[str]] = None,
        deadline: Optional[Deadline] = None,
    ) -> Optional[Row]:
        """
        Read one record.

        Args:
            session: Worker session
            table: Table name
            key: Record key
            fields: Columns to return (None or empty for all)
            deadline: Optional cancellation signal

        Returns:
            Column name -> raw bytes, or None if the key does not exist
        """
        pass

    @abstractmethod
    def scan(
        self,
        session: ConnectionSession,
        table: str,
        start_key: str,
        count: int,
        fields: Optional[Sequence[str]] = None,
        deadline: Optional[Deadline] = None,
    ) -> List[Row]:
        """
        Read up to count records with key >= start_key, in ascending key order.

        Returns:
            List of rows (empty if nothing qualifies)
        """
        pass

    @abstractmethod
    def update(
        self,
        session: ConnectionSession,
        table: str,
        key: str,
        values: Values,
        deadline: Optional[Deadline] = None,
    ):
        """Overwrite the given fields of one record"""
        pass

    @abstractmethod
    def insert(
        self,
        session: ConnectionSession,
        table: str,
        key: str,
        values: Values,
        deadline: Optional[Deadline] = None,
    ):
        """Insert a record; an existing key is left untouched"""
        pass

    @abstractmethod
    def delete(
        self,
        session: ConnectionSession,
        table: str,
        key: str,
        deadline: Optional[Deadline] = None,
    ):
        """Delete one record"""
        pass

    @abstractmethod
    def analyze(self, session: ConnectionSession, table: str, deadline: Optional[Deadline] = None):
        """Ask the backend to refresh table statistics"""
        pass

    @abstractmethod
    def close(self):
        """Tear down shared resources at the end of the run"""
        pass

    def get_info(self) -> Dict:
        """
        Get information about the adapter.

        Returns:
            Dict with adapter metadata
        """
        return {'name': self.__class__.__name__}
