"""
Resource Data Models
====================

Plain data types shared by the discovery, filtering and deletion stages.

Classes
-------
DeletionErrorKind
    Classification of a failed delete request.
ResourceCandidate
    Read-only snapshot of a remote resource considered for deletion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

# Tag key whose value is used as the display name of a resource
NAME_TAG_KEY = "Name"


class DeletionErrorKind(Enum):
    """Classification of a failed delete request."""

    CONFLICT = "conflict"
    ALREADY_GONE = "already_gone"
    OTHER = "other"


def tags_to_dict(tags: Optional[List[Mapping[str, Any]]]) -> Dict[str, str]:
    """
    Convert an AWS ``[{"Key": ..., "Value": ...}]`` tag list into a dict.

    Entries that are ``None`` or lack a key are ignored. Later duplicates
    win, which never happens for well-formed AWS responses.
    """
    result: Dict[str, str] = {}
    for tag in tags or []:
        if not tag or tag.get("Key") is None:
            continue
        result[tag["Key"]] = tag.get("Value") or ""
    return result


@dataclass(frozen=True)
class ResourceCandidate:
    """
    Snapshot of a remote resource fetched at discovery time.

    Parameters
    ----------
    identifier : str
        Remote-assigned identifier (e.g. 'vol-0abc').
    created_at : datetime
        Creation time reported by the remote API (timezone-aware).
    status : str
        Remote lifecycle status (e.g. 'available', 'in-use').
    tags : dict
        Tag key to value mapping.

    Examples
    --------
    >>> candidate = ResourceCandidate(
    ...     identifier="vol-123",
    ...     created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    ...     status="available",
    ...     tags={"Name": "scratch"},
    ... )
    >>> candidate.name
    'scratch'
    """

    identifier: str
    created_at: datetime
    status: str
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Display name from the ``Name`` tag, or an empty string."""
        return self.tags.get(NAME_TAG_KEY, "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.identifier,
            "name": self.name,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
            "tags": dict(self.tags),
        }
