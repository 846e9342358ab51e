"""
GCP Resource loading utilities.

This module discovers organizations via the Resource Manager API and lists
organizations, folders and projects via the Cloud Asset search API.
"""

import logging
from typing import Iterator, List, Optional

from google.cloud import resourcemanager_v3, asset_v1  # type: ignore
from google.api_core import exceptions

from gcporg.connection import Connection
from gcporg.core import (
    SEARCHABLE_ASSET_TYPES,
    ServiceError,
    UpstreamFetchError,
    get_last_path_element,
)
from gcporg.parsers import classify_resource
from gcporg.query import QueryData

logger = logging.getLogger(__name__)

MATRIX_KEY_ORG = "organization"
ORGANIZATIONS_CACHE_KEY = "Organizations"

# Max page size isn't documented for SearchOrganizations
ORGANIZATION_PAGE_SIZE = 1000
# SearchAllResources accepts page sizes in [0, 500]
SEARCH_PAGE_SIZE = 500


def _search_organization_ids(connection: Connection, limit: Optional[int]) -> List[str]:
    # A non-positive limit caps nothing; page_size 0 means the server default
    if limit is not None and limit <= 0:
        limit = None

    page_size = ORGANIZATION_PAGE_SIZE
    if limit is not None and limit < page_size:
        page_size = limit

    org_client = connection.resource_manager_service()
    logger.debug(f"Calling search_organizations() with page_size={page_size}")
    page_result = org_client.search_organizations(
        request=resourcemanager_v3.SearchOrganizationsRequest(page_size=page_size)
    )
    logger.debug("GCP API: search_organizations() returned successfully")

    org_ids: List[str] = []
    for org in page_result:
        if limit is not None and len(org_ids) >= limit:
            break
        org_ids.append(get_last_path_element(org.name))

    logger.debug(f"Discovered {len(org_ids)} organizations: {org_ids}")
    return org_ids


def build_organization_list(
    connection: Connection, limit: Optional[int] = None
) -> List[str]:
    """Return the organization ids visible to the connection.

    The list is computed once per connection and served from its cache
    afterwards. Failures are logged and yield an empty list, which is not
    cached.

    Args:
        connection: Connection providing the Resource Manager client and cache
        limit: Optional row limit of the query; caps the page size and the
               number of ids collected
    """
    try:
        return connection.cache.get_or_compute(
            ORGANIZATIONS_CACHE_KEY,
            lambda: _search_organization_ids(connection, limit),
        )
    except exceptions.PermissionDenied:
        logger.warning("Permission denied searching organizations")
    except (ServiceError, exceptions.GoogleAPIError) as e:
        logger.error(f"Error searching organizations: {e}")
    return []


def build_search_request(
    org: str, limit: Optional[int] = None
) -> asset_v1.SearchAllResourcesRequest:
    """Build the SearchAllResources request for one organization.

    Args:
        org: Organization id (without the 'organizations/' prefix)
        limit: Optional row limit; lowers the page size when smaller than 500
    """
    page_size = SEARCH_PAGE_SIZE
    if limit is not None and limit < page_size:
        page_size = max(limit, 0)

    return asset_v1.SearchAllResourcesRequest(
        scope=f"organizations/{org}",
        asset_types=SEARCHABLE_ASSET_TYPES,
        order_by="assetType",
        page_size=page_size,
    )


def _iter_search_results(
    asset_client, request: asset_v1.SearchAllResourcesRequest
) -> Iterator[asset_v1.ResourceSearchResult]:
    """Yield search results, fetching pages lazily.

    NotFound ends the iteration without error. Other API errors are raised as
    UpstreamFetchError.
    """
    try:
        pager = asset_client.search_all_resources(request=request)
        logger.debug(f"GCP API: search_all_resources() returned for {request.scope}")
        for result in pager:
            yield result
    except exceptions.NotFound as e:
        logger.debug(f"Nothing to list in {request.scope}: {e}")
    except exceptions.GoogleAPIError as e:
        logger.error(f"Error searching resources in {request.scope}: {e}")
        raise UpstreamFetchError(
            f"Error searching resources in {request.scope}: {e}"
        ) from e


def list_organization_project_folder(query: QueryData) -> None:
    """Stream the organization, its folders and its projects to the query sink.

    The organization comes from the 'organization' qualifier. Rows are
    classified and emitted one by one; listing stops as soon as the query
    needs no more rows.

    Raises:
        ServiceError: If the Cloud Asset client cannot be created
        UpstreamFetchError: If a search call fails for a reason other than not found
        ParseError: If a result cannot be normalized
    """
    # Empty when the matrix could not be resolved, e.g. the API is disabled
    org = query.equals_qual_string(MATRIX_KEY_ORG)
    logger.debug(f"list_organization_project_folder: org='{org}'")

    request = build_search_request(org, query.limit)
    asset_client = query.connection.asset_service()

    for result in _iter_search_results(asset_client, request):
        query.stream_list_item(classify_resource(result))

        # Limit hit; stop before pulling another page
        if query.rows_remaining() == 0:
            logger.debug(f"Row limit reached while listing organizations/{org}")
            return
