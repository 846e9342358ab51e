"""
Query context passed to the listing functions.

QueryData bundles the connection, the row limit, the qualifier values of the
current matrix cell and the row sink.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from gcporg.connection import Connection
from gcporg.core import NormalizedResourceRow

logger = logging.getLogger(__name__)


class RowCollector:
    """Thread-safe row sink that enforces the query limit."""

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        self.rows: List[NormalizedResourceRow] = []
        self._lock = threading.Lock()

    def stream_row(self, row: NormalizedResourceRow) -> bool:
        """Accept a row. Returns False when the limit was already reached."""
        with self._lock:
            if self.limit is not None and len(self.rows) >= self.limit:
                logger.debug(f"Row limit {self.limit} reached, dropping {row.name}")
                return False
            self.rows.append(row)
            return True

    def rows_remaining(self) -> Optional[int]:
        """Rows still needed to satisfy the limit, or None when unlimited."""
        if self.limit is None:
            return None
        with self._lock:
            return max(self.limit - len(self.rows), 0)


@dataclass
class QueryData:
    connection: Connection
    sink: RowCollector
    limit: Optional[int] = None
    quals: Dict[str, str] = field(default_factory=dict)

    def equals_qual_string(self, key: str) -> str:
        return self.quals.get(key, "")

    def stream_list_item(self, row: NormalizedResourceRow) -> None:
        self.sink.stream_row(row)

    def rows_remaining(self) -> Optional[int]:
        return self.sink.rows_remaining()
