"""
Table definition for gcp_organization_project_folder.

Declares the columns and runs the organization matrix: one listing per
organization discovered (or given), all feeding the same row collector.
"""

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import List, Optional

from gcporg.connection import Connection
from gcporg.core import NormalizedResourceRow
from gcporg.loaders import (
    MATRIX_KEY_ORG,
    build_organization_list,
    list_organization_project_folder,
)
from gcporg.query import QueryData, RowCollector

logger = logging.getLogger(__name__)

TABLE_NAME = "gcp_organization_project_folder"


@dataclass(frozen=True)
class Column:
    name: str
    type: str
    description: str


COLUMNS: List[Column] = [
    Column("resource_id", "INT", "The id of an organization, project, or folder."),
    Column(
        "resource_type",
        "STRING",
        "Type of resource. One of organization, project, or folder.",
    ),
    Column("name", "STRING", "The resource name."),
    Column("display_name", "STRING", "Human-readable display name of the resource."),
    Column("lifecycle_state", "STRING", "The resource's current lifecycle state."),
    Column("create_time", "TIMESTAMP", "Timestamp when the resource was created."),
    Column("update_time", "TIMESTAMP", "Timestamp when the resource was last updated."),
    Column("organization", "STRING", "Organization the resource belongs to."),
    Column("parent", "STRING", "Parent resource name."),
    Column(
        "parent_asset_type",
        "STRING",
        "Parent asset type. One of organization, project, or folder.",
    ),
    Column("title", "STRING", "Title of the resource."),
    Column("labels", "JSON", "A set of labels associated with this resource."),
    Column("tags", "JSON", "A map of tags for the resource."),
    Column("akas", "JSON", "Array of globally unique identifier strings (also known as) for the resource."),
    Column("location", "STRING", "The GCP multi-region, region, or zone in which the resource is located."),
    Column("project", "STRING", "The GCP Project in which the resource is located."),
]


def build_matrix(
    connection: Connection,
    limit: Optional[int] = None,
    organizations: Optional[List[str]] = None,
) -> List[dict]:
    """Return one qualifier dict per organization to list.

    Explicit organizations bypass discovery.
    """
    org_ids = organizations if organizations else build_organization_list(connection, limit)
    return [{MATRIX_KEY_ORG: org_id} for org_id in org_ids]


def collect_rows(
    connection: Connection,
    limit: Optional[int] = None,
    organizations: Optional[List[str]] = None,
    max_workers: int = 1,
) -> List[NormalizedResourceRow]:
    """List the table across all organizations and return the rows.

    Args:
        connection: Connection providing the clients and cache
        limit: Optional maximum number of rows overall
        organizations: Organization ids to list instead of discovering them
        max_workers: Number of organizations listed concurrently

    Raises:
        ServiceError, UpstreamFetchError, ParseError: From the first failing listing
    """
    sink = RowCollector(limit=limit)
    matrix = build_matrix(connection, limit, organizations)
    logger.debug(f"{TABLE_NAME}: listing {len(matrix)} organizations")

    queries = [
        QueryData(connection=connection, sink=sink, limit=limit, quals=quals)
        for quals in matrix
    ]

    if max_workers <= 1:
        for query in queries:
            if sink.rows_remaining() == 0:
                break
            list_organization_project_folder(query)
        return sink.rows

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(list_organization_project_folder, query) for query in queries
        ]
        try:
            for future in concurrent.futures.as_completed(futures):
                future.result()
        except Exception:
            # Cancel the listings that have not started yet
            executor.shutdown(wait=False, cancel_futures=True)
            raise

    return sink.rows
