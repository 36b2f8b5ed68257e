"""
Registry mapping adapter names to creators.

The hosting driver builds a registry at startup, fills it (see
``ycsb_sql.backends.register_sql_adapters``) and passes it to whatever
selects the adapter. Several names may map to the same creator when
engines are wire-compatible.
"""

from typing import Callable, Dict, List

from ycsb_sql.core.db import DB
from ycsb_sql.core.properties import Properties

Creator = Callable[[Properties], DB]


class AdapterRegistry:
    """
    Factory for creating adapter instances.
    """

    def __init__(self):
        self._creators: Dict[str, Creator] = {}

    def register(self, name: str, creator: Creator):
        """Register a creator under a name (replaces an existing one)"""
        self._creators[name.lower()] = creator

    def create(self, name: str, props: Properties) -> DB:
        """
        Create an adapter instance.

        Args:
            name: Registered adapter name, e.g. 'mysql' or 'tidb'
            props: Resolved run properties

        Returns:
            DB instance

        Raises:
            ValueError: If the name is not registered
        """
        creator = self._creators.get(name.lower())
        if creator is None:
            available = ', '.join(self.names())
            raise ValueError(
                f"Adapter '{name}' not registered. "
                f"Available adapters: {available}"
            )

        return creator(props)

    def names(self) -> List[str]:
        """List all registered names"""
        return sorted(self._creators)

    def is_registered(self, name: str) -> bool:
        return name.lower() in self._creators
