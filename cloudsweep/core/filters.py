"""
Candidate Filters
=================

Pure predicates deciding whether a discovered resource may be deleted.

A candidate is eligible only if all of the following hold:

1. **Age** - it was not created after the cutoff (``excluded_after``).
   Resources newer than the cutoff are protected.
2. **Exclusion tag** - it does not carry ``cloud-nuke-excluded=true``.
3. **Name rules** - its ``Name`` tag (empty when untagged) passes the
   include/exclude patterns configured for its resource type.

Nothing here touches the network, so these functions are tested in
isolation from the handlers that call them.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Mapping, Optional

from cloudsweep.core.config import ResourceTypeRule
from cloudsweep.core.models import NAME_TAG_KEY, ResourceCandidate

# Module logger
logger = logging.getLogger(__name__)

# Tag that protects a resource from deletion regardless of other rules
EXCLUSION_TAG_KEY = "cloud-nuke-excluded"
EXCLUSION_TAG_VALUE = "true"


def has_exclude_tag(tags: Optional[Mapping[str, str]]) -> bool:
    """Return True if the exclusion tag is set to ``"true"``."""
    if not tags:
        return False
    return tags.get(EXCLUSION_TAG_KEY) == EXCLUSION_TAG_VALUE


def resolve_name(tags: Optional[Mapping[str, str]]) -> str:
    """Return the ``Name`` tag value, or an empty string."""
    if not tags:
        return ""
    return tags.get(NAME_TAG_KEY) or ""


def is_created_after(created_at: datetime, excluded_after: datetime) -> bool:
    """
    Return True if the resource was created strictly after the cutoff.

    Parameters
    ----------
    created_at : datetime
        Resource creation time.
    excluded_after : datetime
        Cutoff; resources created after it are protected.
    """
    return excluded_after < created_at


def should_include_candidate(
    candidate: Optional[ResourceCandidate],
    excluded_after: datetime,
    rule: ResourceTypeRule,
) -> bool:
    """
    Decide whether a candidate is eligible for deletion.

    Parameters
    ----------
    candidate : ResourceCandidate or None
        The discovered resource. ``None`` is never eligible.
    excluded_after : datetime
        Resources created after this time are protected.
    rule : ResourceTypeRule
        Name rules for the candidate's resource type.

    Returns
    -------
    bool
        True if the candidate should be deleted.

    Examples
    --------
    >>> should_include_candidate(old_untagged_volume, five_days_ago, EMPTY_RULE)
    True
    >>> should_include_candidate(None, five_days_ago, EMPTY_RULE)
    False
    """
    if candidate is None:
        return False

    if is_created_after(candidate.created_at, excluded_after):
        logger.debug(
            f"Skipping {candidate.identifier}: created {candidate.created_at.isoformat()} "
            f"after cutoff {excluded_after.isoformat()}"
        )
        return False

    if has_exclude_tag(candidate.tags):
        logger.debug(f"Skipping {candidate.identifier}: tagged {EXCLUSION_TAG_KEY}=true")
        return False

    name = resolve_name(candidate.tags)
    if not rule.matches(name):
        logger.debug(f"Skipping {candidate.identifier}: name {name!r} filtered by rules")
        return False

    return True
