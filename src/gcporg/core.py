import enum
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional

ASSET_TYPE_PREFIX = "cloudresourcemanager.googleapis.com/"


class GCPOrgError(Exception):
    """Base exception for gcporg."""

    pass


class ServiceError(GCPOrgError):
    """Raised when a GCP service client cannot be created."""

    pass


class UpstreamFetchError(GCPOrgError):
    """Raised when a search call fails for a reason other than not found."""

    pass


class ParseError(GCPOrgError, ValueError):
    """Raised when a search result cannot be normalized."""

    pass


class ResourceType(str, enum.Enum):
    ORGANIZATION = "Organization"
    PROJECT = "Project"
    FOLDER = "Folder"

    @property
    def asset_type(self) -> str:
        return ASSET_TYPE_PREFIX + self.value


SEARCHABLE_ASSET_TYPES = [t.asset_type for t in ResourceType]


def get_last_path_element(path: str) -> str:
    """Return the last '/'-delimited segment of a resource path."""
    return path.rsplit("/", 1)[-1]


@dataclass
class NormalizedResourceRow:
    """One row of the organization/project/folder table."""

    resource_id: int
    resource_type: ResourceType
    name: str
    akas: List[str]
    organization: str = ""
    parent: Optional[str] = None
    parent_asset_type: Optional[str] = None
    project: Optional[str] = None
    location: str = ""
    display_name: str = ""
    lifecycle_state: str = ""
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    labels: Dict[str, str] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.display_name

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["resource_type"] = self.resource_type.value
        data["title"] = self.title
        return data
