"""
EBS Volume Handler
==================

Discovers and deletes EBS volumes.

Volumes are listed with a server-side status filter limited to the states
that can be deleted (``available``, ``creating`` and ``error``). A volume
that is ``in-use`` would fail with ``VolumeInUse`` anyway, so there is no
point fetching it. Eligibility is still re-checked locally by the base
class filters.

Error Classification
--------------------
``VolumeInUse``
    Still attached to an instance. Recorded as a conflict; a later run
    may succeed once the instance lets go of it.
``InvalidVolume.NotFound``
    Already gone. Recorded as such.

Example
-------
>>> from cloudsweep.core import AWSClient
>>> from cloudsweep.resources import EBSVolumes
>>>
>>> volumes = EBSVolumes(AWSClient(region="us-east-1"))
>>> ids = volumes.get_all(excluded_after)
>>> volumes.nuke_all(ids)
"""

from __future__ import annotations

import logging
from typing import List

from cloudsweep.core.base_resource import BaseResource
from cloudsweep.core.models import ResourceCandidate, tags_to_dict

# Module logger
logger = logging.getLogger(__name__)


class EBSVolumes(BaseResource):
    """
    Handler for EBS volumes.

    Available statuses are creating, available, in-use, deleting, deleted
    and error. Only the ones in :attr:`DELETABLE_STATUSES` are listed.
    """

    RESOURCE_NAME = "ebs"
    RESOURCE_LABEL = "EBS Volume"
    CONFIG_KEY = "EBSVolume"

    CONFLICT_CODES = frozenset({"VolumeInUse"})
    NOT_FOUND_CODES = frozenset({"InvalidVolume.NotFound"})

    DELETABLE_STATUSES = ("available", "creating", "error")

    def list_candidates(self) -> List[ResourceCandidate]:
        """
        List volumes in a deletable status.

        Returns
        -------
        list of ResourceCandidate
            Volumes in the order returned by the API.
        """
        candidates: List[ResourceCandidate] = []
        paginator = self.ec2_client.get_paginator("describe_volumes")

        for page in paginator.paginate(
            Filters=[{"Name": "status", "Values": list(self.DELETABLE_STATUSES)}]
        ):
            for volume in page.get("Volumes", []):
                if not volume:
                    continue
                candidates.append(
                    ResourceCandidate(
                        identifier=volume["VolumeId"],
                        created_at=volume["CreateTime"],
                        status=volume.get("State", ""),
                        tags=tags_to_dict(volume.get("Tags")),
                    )
                )

        logger.debug(f"Listed {len(candidates)} EBS volumes in {self.region}")
        return candidates

    def delete_resource(self, identifier: str) -> None:
        self.ec2_client.delete_volume(VolumeId=identifier)

    def wait_for_deletion(self, identifiers: List[str]) -> None:
        waiter = self.ec2_client.get_waiter("volume_deleted")
        waiter.wait(
            VolumeIds=identifiers,
            WaiterConfig={
                "Delay": self.waiter_delay,
                "MaxAttempts": self.waiter_max_attempts,
            },
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"EBSVolumes(region='{self.region}')"
