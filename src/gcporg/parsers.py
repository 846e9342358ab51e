"""
Asset API search result parsing utilities.

This module turns Cloud Asset Inventory search results for organizations,
folders and projects into NormalizedResourceRow objects.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from gcporg.core import (
    NormalizedResourceRow,
    ParseError,
    ResourceType,
    get_last_path_element,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def parse_resource_type(asset_type: str) -> ResourceType:
    """Map an asset type tag to its ResourceType.

    Args:
        asset_type: e.g. "cloudresourcemanager.googleapis.com/Folder"

    Raises:
        ParseError: If the tag is not an organization, project or folder
    """
    kind = get_last_path_element(asset_type)
    try:
        return ResourceType(kind)
    except ValueError:
        raise ParseError(f"Unsupported asset type '{asset_type}'") from None


def parse_resource_id(value: str) -> int:
    """Parse a numeric resource id, e.g. "123" from "folders/123"."""
    if not _INTEGER_RE.fullmatch(value):
        logger.error(f"Could not convert resource id '{value}' to integer")
        raise ParseError(f"Could not convert resource id '{value}' to integer")
    return int(value)


def parse_parent(parent_full_resource_name: str) -> Optional[str]:
    """Return the kind/id tail of a parent full resource name.

    "//cloudresourcemanager.googleapis.com/organizations/999" -> "organizations/999"
    """
    parts = parent_full_resource_name.split("/")
    if len(parts) < 2:
        logger.debug(
            f"Parent resource name '{parent_full_resource_name}' has no kind/id tail"
        )
        return None
    return "/".join(parts[-2:])


def null_if_zero_time(value: Optional[datetime]) -> Optional[datetime]:
    """Treat a missing or epoch timestamp as absent."""
    if value is None:
        return None
    aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if aware == _EPOCH:
        return None
    return value


def _organization_identity(result: Any) -> Dict[str, Any]:
    return {
        "resource_id": parse_resource_id(get_last_path_element(result.organization)),
        "name": result.organization,
    }


def _folder_identity(result: Any) -> Dict[str, Any]:
    folder_id = get_last_path_element(result.name)
    return {
        "resource_id": parse_resource_id(folder_id),
        "name": f"folders/{folder_id}",
        "parent": parse_parent(result.parent_full_resource_name),
        "parent_asset_type": get_last_path_element(result.parent_asset_type) or None,
    }


def _project_identity(result: Any) -> Dict[str, Any]:
    return {
        "resource_id": parse_resource_id(get_last_path_element(result.project)),
        "name": result.project,
        "project": get_last_path_element(result.name),
        "parent": parse_parent(result.parent_full_resource_name),
        "parent_asset_type": get_last_path_element(result.parent_asset_type) or None,
    }


_IDENTITY_BUILDERS: Dict[ResourceType, Callable[[Any], Dict[str, Any]]] = {
    ResourceType.ORGANIZATION: _organization_identity,
    ResourceType.FOLDER: _folder_identity,
    ResourceType.PROJECT: _project_identity,
}


def parse_tags(tags: Any) -> Dict[str, str]:
    return {tag.tag_key: tag.tag_value for tag in tags}


def classify_resource(result: Any) -> NormalizedResourceRow:
    """Normalize one asset_v1.ResourceSearchResult.

    The identity fields (resource_id, name, parent, parent_asset_type, project)
    depend on the resource type; everything else is passed through.

    Raises:
        ParseError: If the asset type is unsupported or the id is not numeric
    """
    resource_type = parse_resource_type(result.asset_type)
    identity = _IDENTITY_BUILDERS[resource_type](result)

    row = NormalizedResourceRow(
        resource_type=resource_type,
        akas=[f"gcp:{result.name}"],
        organization=result.organization,
        location=result.location,
        display_name=result.display_name,
        lifecycle_state=result.state,
        create_time=result.create_time,
        update_time=null_if_zero_time(result.update_time),
        labels=dict(result.labels),
        tags=parse_tags(result.tags),
        **identity,
    )

    logger.debug(
        f"Classified {row.resource_type.value} {row.name}: resource_id={row.resource_id}, "
        f"parent={row.parent}, parent_asset_type={row.parent_asset_type}, "
        f"project={row.project}, location={row.location}"
    )
    return row


def get_resource_field(result: Any, field_name: str) -> Any:
    """Return a single named field of the normalized form of result.

    Raises:
        ParseError: If the result cannot be normalized
        KeyError: If field_name is not a column of the row
    """
    return classify_resource(result).to_dict()[field_name]