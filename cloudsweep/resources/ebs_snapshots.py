"""
EBS Snapshot Handler
====================

Discovers and deletes EBS snapshots owned by the calling account.

Snapshots registered to an AMI cannot be deleted until the AMI is
deregistered; EC2 answers ``InvalidSnapshot.InUse`` and the snapshot is
recorded as a conflict.

EC2 ships no "snapshot deleted" waiter, so one is defined here with
botocore's waiter model and bound to the EC2 client. It polls with a
``snapshot-id`` filter and succeeds only when none of the snapshots is
listed. ``SnapshotIds`` cannot be used: it fails the whole call with
``InvalidSnapshot.NotFound`` once any one of them is gone.
"""

from __future__ import annotations

import logging
from typing import List

from botocore.waiter import WaiterModel, create_waiter_with_client

from cloudsweep.core.base_resource import BaseResource
from cloudsweep.core.models import ResourceCandidate, tags_to_dict

# Module logger
logger = logging.getLogger(__name__)

SNAPSHOT_DELETED_WAITER = "SnapshotDeleted"

SNAPSHOT_WAITER_CONFIG = {
    "version": 2,
    "waiters": {
        SNAPSHOT_DELETED_WAITER: {
            "operation": "DescribeSnapshots",
            "delay": 15,
            "maxAttempts": 40,
            "acceptors": [
                {
                    "matcher": "path",
                    "argument": "length(Snapshots[]) == `0`",
                    "expected": True,
                    "state": "success",
                },
            ],
        }
    },
}


class EBSSnapshots(BaseResource):
    """Handler for EBS snapshots owned by this account."""

    RESOURCE_NAME = "snap"
    RESOURCE_LABEL = "EBS Snapshot"
    CONFIG_KEY = "EBSSnapshot"

    CONFLICT_CODES = frozenset({"InvalidSnapshot.InUse"})
    NOT_FOUND_CODES = frozenset({"InvalidSnapshot.NotFound"})

    DELETABLE_STATUSES = ("pending", "completed", "error")

    def list_candidates(self) -> List[ResourceCandidate]:
        """List snapshots owned by this account in a deletable status."""
        candidates: List[ResourceCandidate] = []
        paginator = self.ec2_client.get_paginator("describe_snapshots")

        for page in paginator.paginate(
            OwnerIds=["self"],
            Filters=[{"Name": "status", "Values": list(self.DELETABLE_STATUSES)}],
        ):
            for snapshot in page.get("Snapshots", []):
                if not snapshot:
                    continue
                candidates.append(
                    ResourceCandidate(
                        identifier=snapshot["SnapshotId"],
                        created_at=snapshot["StartTime"],
                        status=snapshot.get("State", ""),
                        tags=tags_to_dict(snapshot.get("Tags")),
                    )
                )

        logger.debug(f"Listed {len(candidates)} EBS snapshots in {self.region}")
        return candidates

    def delete_resource(self, identifier: str) -> None:
        self.ec2_client.delete_snapshot(SnapshotId=identifier)

    def wait_for_deletion(self, identifiers: List[str]) -> None:
        waiter = create_waiter_with_client(
            SNAPSHOT_DELETED_WAITER,
            WaiterModel(SNAPSHOT_WAITER_CONFIG),
            self.ec2_client,
        )
        waiter.wait(
            OwnerIds=["self"],
            Filters=[{"Name": "snapshot-id", "Values": identifiers}],
            WaiterConfig={
                "Delay": self.waiter_delay,
                "MaxAttempts": self.waiter_max_attempts,
            },
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"EBSSnapshots(region='{self.region}')"
