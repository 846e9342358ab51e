"""Tests for loaders.py module."""

import math

import pytest
from unittest.mock import MagicMock, patch
from google.api_core import exceptions
from google.cloud import resourcemanager_v3

from gcporg.connection import RESOURCE_MANAGER_CACHE_KEY
from gcporg.core import ParseError, ServiceError, UpstreamFetchError
from gcporg.loaders import (
    ORGANIZATIONS_CACHE_KEY,
    build_organization_list,
    build_search_request,
    list_organization_project_folder,
)
from gcporg.query import QueryData, RowCollector
from factories import FakePager, make_folder, make_organization, make_project


@pytest.fixture
def org_client(connection):
    client = MagicMock()
    connection.cache.set(RESOURCE_MANAGER_CACHE_KEY, client)
    return client


def make_orgs(count):
    return [
        resourcemanager_v3.Organization(
            name=f"organizations/{i}", display_name=f"org{i}.example.com"
        )
        for i in range(1, count + 1)
    ]


def make_query(connection, org="999", limit=None):
    return QueryData(
        connection=connection,
        sink=RowCollector(limit=limit),
        limit=limit,
        quals={"organization": org},
    )


# Test build_organization_list
def test_build_organization_list(connection, org_client):
    org_client.search_organizations.return_value = make_orgs(3)

    assert build_organization_list(connection) == ["1", "2", "3"]

    request = org_client.search_organizations.call_args.kwargs["request"]
    assert request.page_size == 1000


def test_build_organization_list_is_cached(connection, org_client):
    org_client.search_organizations.return_value = make_orgs(2)

    first = build_organization_list(connection)
    second = build_organization_list(connection)

    assert first == second == ["1", "2"]
    assert org_client.search_organizations.call_count == 1
    assert connection.cache.get(ORGANIZATIONS_CACHE_KEY) == ["1", "2"]


def test_build_organization_list_with_limit(connection, org_client):
    org_client.search_organizations.return_value = make_orgs(5)

    assert build_organization_list(connection, limit=3) == ["1", "2", "3"]

    request = org_client.search_organizations.call_args.kwargs["request"]
    assert request.page_size == 3


def test_build_organization_list_limit_above_count(connection, org_client):
    org_client.search_organizations.return_value = make_orgs(2)
    assert build_organization_list(connection, limit=10) == ["1", "2"]


def test_build_organization_list_zero_limit_is_uncapped(connection, org_client):
    """A zero limit must not cache an empty list for the connection."""
    org_client.search_organizations.return_value = make_orgs(5)

    assert build_organization_list(connection, limit=0) == ["1", "2", "3", "4", "5"]
    request = org_client.search_organizations.call_args.kwargs["request"]
    assert request.page_size == 1000

    assert build_organization_list(connection) == ["1", "2", "3", "4", "5"]
    assert org_client.search_organizations.call_count == 1


def test_build_organization_list_keeps_duplicates(connection, org_client):
    org_client.search_organizations.return_value = make_orgs(1) + make_orgs(1)
    assert build_organization_list(connection) == ["1", "1"]


def test_build_organization_list_permission_denied(connection, org_client):
    org_client.search_organizations.side_effect = exceptions.PermissionDenied("denied")

    assert build_organization_list(connection) == []
    assert ORGANIZATIONS_CACHE_KEY not in connection.cache

    # Failure is not cached; the next call retries
    org_client.search_organizations.side_effect = None
    org_client.search_organizations.return_value = make_orgs(1)
    assert build_organization_list(connection) == ["1"]


def test_build_organization_list_api_error(connection, org_client):
    org_client.search_organizations.side_effect = exceptions.InternalServerError("boom")
    assert build_organization_list(connection) == []


def test_build_organization_list_service_error(connection):
    with patch.object(
        connection, "resource_manager_service", side_effect=ServiceError("no creds")
    ):
        assert build_organization_list(connection) == []


# Test build_search_request
def test_build_search_request():
    request = build_search_request("999")
    assert request.scope == "organizations/999"
    assert list(request.asset_types) == [
        "cloudresourcemanager.googleapis.com/Organization",
        "cloudresourcemanager.googleapis.com/Project",
        "cloudresourcemanager.googleapis.com/Folder",
    ]
    assert request.order_by == "assetType"
    assert request.page_size == 500


def test_build_search_request_page_size():
    assert build_search_request("999", limit=10).page_size == 10
    assert build_search_request("999", limit=500).page_size == 500
    assert build_search_request("999", limit=10000).page_size == 500
    assert build_search_request("999", limit=-1).page_size == 0


def test_build_search_request_empty_org():
    assert build_search_request("").scope == "organizations/"


# Test list_organization_project_folder
def test_list_streams_rows_in_order(connection, asset_client):
    asset_client.search_all_resources.return_value = FakePager(
        [
            [make_organization(), make_folder()],
            [make_project()],
        ]
    )
    query = make_query(connection)

    list_organization_project_folder(query)

    rows = query.sink.rows
    assert [r.name for r in rows] == ["organizations/999", "folders/123", "projects/4242"]
    request = asset_client.search_all_resources.call_args.kwargs["request"]
    assert request.scope == "organizations/999"


def test_list_stops_at_row_limit(connection, asset_client):
    """10 rows requested out of 50: only the first page is pulled."""
    page_size = 10
    pages = [
        [make_folder(folder_id=str(p * page_size + i)) for i in range(page_size)]
        for p in range(5)
    ]
    pager = FakePager(pages)
    asset_client.search_all_resources.return_value = pager
    query = make_query(connection, limit=10)

    list_organization_project_folder(query)

    request = asset_client.search_all_resources.call_args.kwargs["request"]
    assert request.page_size == page_size
    assert len(query.sink.rows) == 10
    assert pager.pages_fetched <= math.ceil(10 / page_size)


def test_list_not_found_is_benign(connection, asset_client):
    asset_client.search_all_resources.return_value = FakePager(
        [exceptions.NotFound("404 organization not found")]
    )
    query = make_query(connection)

    list_organization_project_folder(query)

    assert query.sink.rows == []


def test_list_not_found_on_first_call(connection, asset_client):
    asset_client.search_all_resources.side_effect = exceptions.NotFound("not found")
    query = make_query(connection)

    list_organization_project_folder(query)

    assert query.sink.rows == []


def test_list_not_found_after_first_page(connection, asset_client):
    """Rows sent before a NotFound stay; listing ends without error."""
    pager = FakePager(
        [
            [make_organization(), make_folder()],
            exceptions.NotFound("404 organization not found"),
            [make_project()],
        ]
    )
    asset_client.search_all_resources.return_value = pager
    query = make_query(connection)

    list_organization_project_folder(query)

    assert [r.name for r in query.sink.rows] == ["organizations/999", "folders/123"]
    assert pager.pages_fetched == 2


def test_list_upstream_error_keeps_emitted_rows(connection, asset_client):
    pager = FakePager(
        [
            [make_organization(), make_folder()],
            exceptions.InternalServerError("boom"),
            [make_project()],
        ]
    )
    asset_client.search_all_resources.return_value = pager
    query = make_query(connection)

    with pytest.raises(UpstreamFetchError) as exc_info:
        list_organization_project_folder(query)

    assert isinstance(exc_info.value.__cause__, exceptions.InternalServerError)
    assert len(query.sink.rows) == 2
    assert pager.pages_fetched == 2


def test_list_permission_denied_is_surfaced(connection, asset_client):
    asset_client.search_all_resources.side_effect = exceptions.PermissionDenied("denied")

    with pytest.raises(UpstreamFetchError):
        list_organization_project_folder(make_query(connection))


def test_list_parse_error_is_surfaced(connection, asset_client):
    bad = make_project()
    bad.project = "projects/abc"
    asset_client.search_all_resources.return_value = FakePager([[make_folder(), bad]])
    query = make_query(connection)

    with pytest.raises(ParseError):
        list_organization_project_folder(query)

    assert len(query.sink.rows) == 1


def test_list_service_error(connection):
    with patch.object(connection, "asset_service", side_effect=ServiceError("no creds")):
        with pytest.raises(ServiceError):
            list_organization_project_folder(make_query(connection))
