"""
GCP service connection.

A Connection owns the API clients and the cache shared by every query that
runs against it.
"""

import logging
from typing import Any, Optional

from google.auth import exceptions as auth_exceptions
from google.api_core import exceptions
from google.cloud import asset_v1, resourcemanager_v3  # type: ignore

from gcporg.cache import ConnectionCache
from gcporg.core import ServiceError

logger = logging.getLogger(__name__)

ASSET_SERVICE_CACHE_KEY = "CloudAssetInventoryService"
RESOURCE_MANAGER_CACHE_KEY = "CloudResourceManagerService"


class Connection:
    def __init__(self, credentials: Optional[Any] = None):
        """
        Args:
            credentials: Optional google.auth credentials. When None the client
                         libraries fall back to Application Default Credentials.
        """
        self.credentials = credentials
        self.cache = ConnectionCache()

    def _build_client(self, client_cls, service_name: str):
        try:
            client = client_cls(credentials=self.credentials)
            logger.debug(f"Created {service_name} client")
            return client
        except (auth_exceptions.GoogleAuthError, exceptions.GoogleAPIError) as e:
            logger.error(f"Could not create {service_name} client: {e}")
            raise ServiceError(f"Could not create {service_name} client: {e}") from e

    def asset_service(self) -> asset_v1.AssetServiceClient:
        """Return the Cloud Asset Inventory client, creating it on first use."""
        return self.cache.get_or_compute(
            ASSET_SERVICE_CACHE_KEY,
            lambda: self._build_client(
                asset_v1.AssetServiceClient, "Cloud Asset Inventory"
            ),
        )

    def resource_manager_service(self) -> resourcemanager_v3.OrganizationsClient:
        """Return the Resource Manager organizations client, creating it on first use."""
        return self.cache.get_or_compute(
            RESOURCE_MANAGER_CACHE_KEY,
            lambda: self._build_client(
                resourcemanager_v3.OrganizationsClient, "Resource Manager"
            ),
        )
