"""
Display formatting utilities for gcporg CLI.

This module renders normalized rows as a rich table or as JSON.
"""

import json
from datetime import datetime
from typing import Any, List, Optional

from rich.table import Table

from gcporg.core import NormalizedResourceRow

# Columns shown in table output; JSON output carries every column
TABLE_COLUMNS = [
    ("resource_type", "TYPE"),
    ("resource_id", "ID"),
    ("name", "NAME"),
    ("display_name", "DISPLAY NAME"),
    ("parent", "PARENT"),
    ("lifecycle_state", "STATE"),
]


def format_value(value: Any) -> str:
    """Format a row value for table display."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def build_rows_table(
    rows: List[NormalizedResourceRow], title: Optional[str] = None
) -> Table:
    """Build a rich Table of rows.

    Args:
        rows: Rows to display, in order
        title: Optional table title

    Returns:
        rich Table ready for console.print
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold magenta",
        box=None,
        padding=(0, 1),
    )
    for _, header in TABLE_COLUMNS:
        table.add_column(header)

    for row in rows:
        data = row.to_dict()
        table.add_row(*(format_value(data[key]) for key, _ in TABLE_COLUMNS))

    return table


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def rows_to_json(rows: List[NormalizedResourceRow], indent: Optional[int] = 2) -> str:
    """Serialize rows to a JSON array, timestamps as ISO 8601."""
    return json.dumps(
        [row.to_dict() for row in rows], indent=indent, default=_json_default
    )
