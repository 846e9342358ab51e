from unittest.mock import MagicMock

import pytest

from gcporg.connection import ASSET_SERVICE_CACHE_KEY, Connection


@pytest.fixture
def connection():
    return Connection()


@pytest.fixture
def asset_client(connection):
    """Mock AssetServiceClient already cached on the connection."""
    client = MagicMock()
    connection.cache.set(ASSET_SERVICE_CACHE_KEY, client)
    return client
