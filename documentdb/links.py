"""
Resource links for the DocumentDB REST API.

Resources form a hierarchy (database -> collection -> document, stored
procedure, user-defined function). Every resource is addressed by the
self link the server returned for it, e.g. ``dbs/Xq0AAA==/colls/Xq0AAP8=/``.
Feeds of child resources are addressed by appending the child segment.
"""

from enum import Enum
from typing import Tuple


class ResourceType(str, Enum):
    """Resource type path segments."""

    DATABASES = "dbs"
    COLLECTIONS = "colls"
    DOCUMENTS = "docs"
    STORED_PROCEDURES = "sprocs"
    USER_DEFINED_FUNCTIONS = "udfs"


RESOURCE_TYPES = frozenset(t.value for t in ResourceType)

DATABASES_LINK = ResourceType.DATABASES.value


def join_url(base: str, link: str) -> str:
    """
    Join a base URL and a resource link with exactly one separator.

    The link's own trailing slash is preserved:
    ``join_url("https://x/", "dbs/abc/colls/") == "https://x/dbs/abc/colls/"``.
    """
    base = base.rstrip("/")
    link = link.lstrip("/")
    if not link:
        return base
    return f"{base}/{link}"


def parse_link(link: str) -> Tuple[str, str]:
    """
    Split a resource link into ``(resource_id, resource_type)``.

    A link ending in an id addresses that resource (``dbs/abc/`` -> ``("abc", "dbs")``).
    A link ending in a type segment addresses a feed, signed with the parent
    id (``dbs/abc/colls/`` -> ``("abc", "colls")``, ``dbs`` -> ``("", "dbs")``).

    Raises:
        ValueError: If the link is empty or the type segment is not recognised
    """
    if not link or not link.strip("/"):
        raise ValueError("Resource link cannot be empty")

    if not link.startswith("/"):
        link = "/" + link
    if not link.endswith("/"):
        link = link + "/"

    parts = link.split("/")
    if len(parts) % 2 == 0:
        resource_id, resource_type = parts[-2], parts[-3]
    else:
        resource_id, resource_type = parts[-3], parts[-2]

    if resource_type not in RESOURCE_TYPES:
        raise ValueError(f"Unsupported resource type in link '{link}': '{resource_type}'")

    return resource_id, resource_type


def _feed(parent_link: str, resource_type: ResourceType) -> str:
    if not parent_link:
        raise ValueError("Parent self link cannot be empty")
    if not parent_link.endswith("/"):
        parent_link += "/"
    return f"{parent_link}{resource_type.value}/"


def collections_link(database_link: str) -> str:
    return _feed(database_link, ResourceType.COLLECTIONS)


def documents_link(collection_link: str) -> str:
    return _feed(collection_link, ResourceType.DOCUMENTS)


def stored_procedures_link(collection_link: str) -> str:
    return _feed(collection_link, ResourceType.STORED_PROCEDURES)


def user_defined_functions_link(collection_link: str) -> str:
    return _feed(collection_link, ResourceType.USER_DEFINED_FUNCTIONS)
