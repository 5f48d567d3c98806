# Abstract base class for record stores
# The rewrite only ever needs to run a query and read back rows

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .query import QueryExpression

Row = Dict[str, Any]


class RecordStore(ABC):
    """Abstract base class for the record store the closure lookups run against."""

    @abstractmethod
    def run_query(self, query: QueryExpression) -> List[Row]:
        """
        Run a query and return the matching rows.

        Args:
            query: The query to evaluate

        Returns:
            One mapping of attribute name to value per row. Attributes of
            aliased joins appear as ``"<alias>.<attribute>"``.
        """
        pass
