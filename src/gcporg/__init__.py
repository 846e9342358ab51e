"""gcporg - GCP organizations, folders and projects as one table."""

from gcporg.core import (
    NormalizedResourceRow,
    ResourceType,
    GCPOrgError,
    ServiceError,
    UpstreamFetchError,
    ParseError,
    get_last_path_element,
)
from gcporg.cache import ConnectionCache
from gcporg.connection import Connection
from gcporg.cli import run
from gcporg.loaders import (
    build_organization_list,
    build_search_request,
    list_organization_project_folder,
)
from gcporg.parsers import (
    classify_resource,
    get_resource_field,
)
from gcporg.query import QueryData, RowCollector
from gcporg.table import COLUMNS, collect_rows
from gcporg.formatters import (
    build_rows_table,
    rows_to_json,
)

__all__ = [
    # Core data structures
    "NormalizedResourceRow",
    "ResourceType",
    # Exceptions
    "GCPOrgError",
    "ServiceError",
    "UpstreamFetchError",
    "ParseError",
    # Utilities
    "get_last_path_element",
    # Connection and cache
    "Connection",
    "ConnectionCache",
    # CLI
    "run",
    # Loaders
    "build_organization_list",
    "build_search_request",
    "list_organization_project_folder",
    # Parsers
    "classify_resource",
    "get_resource_field",
    # Query engine
    "QueryData",
    "RowCollector",
    "COLUMNS",
    "collect_rows",
    # Formatters
    "build_rows_table",
    "rows_to_json",
]
