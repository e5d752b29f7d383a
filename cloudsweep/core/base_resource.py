"""
Base Resource Module
====================

Provides the abstract base class implementing the discover, filter,
delete, confirm and report lifecycle shared by every resource type.

A concrete handler supplies only the remote calls for its resource type:
listing candidates (with a server-side status filter), deleting one
resource, and blocking until a set of resources is gone. It also names
the remote error codes that mean "still in use" and "already deleted".
Everything else lives here.

Classes
-------
ResourceTypeResult
    Outcome of running one resource type in one region.
BaseResource
    Abstract base class for resource handlers.

Example
-------
>>> from cloudsweep.core.base_resource import BaseResource
>>>
>>> class MyResource(BaseResource):
...     RESOURCE_NAME = "thing"
...     RESOURCE_LABEL = "Thing"
...     CONFIG_KEY = "Thing"
...
...     def list_candidates(self):
...         ...
...
...     def delete_resource(self, identifier):
...         ...
...
...     def wait_for_deletion(self, identifiers):
...         ...

Notes
-----
Per-resource deletion failures never abort a batch. They are classified,
recorded in the report and emitted as telemetry. Failures to list
candidates or to confirm deletion are raised as ``RemoteQueryError`` and
``ConvergenceError``.

See Also
--------
EBSVolumes : Reference implementation for EBS volumes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from cloudsweep.core.config import Config
from cloudsweep.core.exceptions import (
    ConvergenceError,
    DeletionError,
    RemoteQueryError,
    ResourceError,
)
from cloudsweep.core.filters import should_include_candidate
from cloudsweep.core.models import DeletionErrorKind, ResourceCandidate
from cloudsweep.core.report import Report, ReportEntry
from cloudsweep.core.telemetry import Telemetry

# Module logger
logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class ResourceTypeResult:
    """
    Outcome of running one resource type in one region.

    Parameters
    ----------
    resource_type : str
        Resource type label (e.g. 'EBS Volume').
    region : str
        AWS region that was processed.
    candidates : list of str
        Identifiers that passed the filters.
    issued : list of str
        Identifiers whose delete request was accepted.
    details : list of ResourceCandidate
        Snapshots of the candidates, for display.
    error : str, optional
        Message of the batch-level error that stopped the run, if any.
    dry_run : bool
        True if deletion was skipped.
    run_time : datetime
        When the run finished.
    """

    resource_type: str
    region: str
    candidates: List[str] = field(default_factory=list)
    issued: List[str] = field(default_factory=list)
    details: List[ResourceCandidate] = field(default_factory=list)
    error: Optional[str] = None
    dry_run: bool = False
    run_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "resource_type": self.resource_type,
            "region": self.region,
            "candidates": list(self.candidates),
            "issued": list(self.issued),
            "candidate_details": [c.to_dict() for c in self.details],
            "error": self.error,
            "dry_run": self.dry_run,
            "run_time": self.run_time.isoformat(),
        }


class BaseResource(ABC):
    """
    Abstract base class for all resource handlers.

    Parameters
    ----------
    aws_client : AWSClient
        Instance of AWSClient for AWS API access.
    config : Config, optional
        Name rules. Defaults to an empty Config (no name restriction).
    report : Report, optional
        Outcome sink shared across handlers.
    telemetry : Telemetry, optional
        Event sink shared across handlers.
    waiter_delay : int, optional
        Seconds between convergence polls.
    waiter_max_attempts : int, optional
        Polls before convergence is declared failed.

    Attributes
    ----------
    RESOURCE_NAME : str
        Short name used on the command line (e.g. 'ebs').
    RESOURCE_LABEL : str
        Human-readable label used in reports (e.g. 'EBS Volume').
    CONFIG_KEY : str
        Key of this type's rules in the configuration file.
    CONFLICT_CODES : frozenset of str
        Remote error codes meaning the resource is still referenced.
    NOT_FOUND_CODES : frozenset of str
        Remote error codes meaning the resource no longer exists.
    """

    RESOURCE_NAME: str = ""
    RESOURCE_LABEL: str = ""
    CONFIG_KEY: str = ""

    CONFLICT_CODES: FrozenSet[str] = frozenset()
    NOT_FOUND_CODES: FrozenSet[str] = frozenset()

    WAITER_DELAY = 15
    WAITER_MAX_ATTEMPTS = 40

    def __init__(
        self,
        aws_client,
        config: Optional[Config] = None,
        report: Optional[Report] = None,
        telemetry: Optional[Telemetry] = None,
        waiter_delay: Optional[int] = None,
        waiter_max_attempts: Optional[int] = None,
    ) -> None:
        self.aws_client = aws_client
        self.region = aws_client.region
        self.config = config or Config()
        self.rule = self.config.rule_for(self.CONFIG_KEY)
        self.report = report if report is not None else Report()
        self.telemetry = telemetry if telemetry is not None else Telemetry()
        self.waiter_delay = waiter_delay if waiter_delay is not None else self.WAITER_DELAY
        self.waiter_max_attempts = (
            waiter_max_attempts if waiter_max_attempts is not None else self.WAITER_MAX_ATTEMPTS
        )

        # Lazy-loaded service client
        self._ec2_client = None

        logger.debug(
            f"Initialized {self.__class__.__name__} for region {self.region}"
        )

    @property
    def ec2_client(self):
        """Get EC2 client (lazy loaded)."""
        if self._ec2_client is None:
            self._ec2_client = self.aws_client.get_ec2_client()
        return self._ec2_client

    @property
    def error_event_name(self) -> str:
        return f"Error Nuking {self.RESOURCE_LABEL}"

    def get_resource_type(self) -> str:
        """
        Get the short resource type name.

        Returns
        -------
        str
            The command-line name of this resource type.
        """
        return self.RESOURCE_NAME

    # =========================================================================
    # Remote Operations (implemented per resource type)
    # =========================================================================

    @abstractmethod
    def list_candidates(self) -> List[ResourceCandidate]:
        """
        List resources in statuses that can be deleted.

        Implementations filter server-side by status where the API allows
        it and may raise botocore errors, which the caller wraps.
        """
        pass

    @abstractmethod
    def delete_resource(self, identifier: str) -> None:
        """Issue a delete request for one resource."""
        pass

    @abstractmethod
    def wait_for_deletion(self, identifiers: List[str]) -> None:
        """
        Block until every identifier is reported deleted.

        Implementations use a botocore waiter configured with
        ``waiter_delay`` and ``waiter_max_attempts`` and let its errors
        propagate.
        """
        pass

    # =========================================================================
    # Filtering
    # =========================================================================

    def should_include(
        self,
        candidate: Optional[ResourceCandidate],
        excluded_after: datetime,
    ) -> bool:
        """Apply the age, exclusion tag and name rules to a candidate."""
        return should_include_candidate(candidate, _as_utc(excluded_after), self.rule)

    def classify_error(
        self, error: BaseException
    ) -> Tuple[DeletionErrorKind, Optional[str]]:
        """
        Classify a failed delete request.

        Parameters
        ----------
        error : Exception
            The exception raised by :meth:`delete_resource`.

        Returns
        -------
        tuple
            ``(kind, code)`` where ``code`` is the remote error code, or
            None for errors that did not come from the remote API.
        """
        code = None
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code")

        if code in self.CONFLICT_CODES:
            return DeletionErrorKind.CONFLICT, code
        if code in self.NOT_FOUND_CODES:
            return DeletionErrorKind.ALREADY_GONE, code
        return DeletionErrorKind.OTHER, code

    # =========================================================================
    # Lifecycle Stages
    # =========================================================================

    def get_candidates(self, excluded_after: datetime) -> List[ResourceCandidate]:
        """
        Discover the candidates eligible for deletion.

        Parameters
        ----------
        excluded_after : datetime
            Resources created after this time are protected.

        Returns
        -------
        list of ResourceCandidate
            Eligible candidates in the order the API returned them.

        Raises
        ------
        RemoteQueryError
            If the listing call fails.
        """
        try:
            candidates = self.list_candidates()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing {self.RESOURCE_LABEL}s in {self.region}: {e}")
            raise RemoteQueryError(
                f"Failed to list {self.RESOURCE_LABEL}s: {e}",
                resource_type=self.RESOURCE_LABEL,
                region=self.region,
            ) from e

        eligible = [c for c in candidates if self.should_include(c, excluded_after)]
        logger.debug(
            f"Found {len(eligible)} {self.RESOURCE_LABEL}s eligible for deletion "
            f"out of {len(candidates)} in {self.region}"
        )
        return eligible

    def get_all(self, excluded_after: datetime) -> List[str]:
        """Return identifiers of the candidates eligible for deletion."""
        return [c.identifier for c in self.get_candidates(excluded_after)]

    def delete_all(self, identifiers: Sequence[str]) -> List[str]:
        """
        Issue one delete request per identifier.

        Every identifier gets exactly one report entry. Failures are
        classified, logged and emitted as telemetry, and processing moves
        on to the next identifier.

        Parameters
        ----------
        identifiers : sequence of str
            Identifiers to delete, usually from :meth:`get_all`.

        Returns
        -------
        list of str
            Identifiers whose delete request was accepted.
        """
        if not identifiers:
            logger.debug(f"No {self.RESOURCE_LABEL}s to nuke in region {self.region}")
            return []

        logger.debug(f"Deleting all {self.RESOURCE_LABEL}s in region {self.region}")
        issued: List[str] = []

        for identifier in identifiers:
            try:
                self.delete_resource(identifier)
            except Exception as e:
                error = self._handle_delete_error(identifier, e)
                self.report.record(
                    ReportEntry(identifier, self.RESOURCE_LABEL, self.region, error)
                )
                continue

            self.report.record(ReportEntry(identifier, self.RESOURCE_LABEL, self.region))
            issued.append(identifier)
            logger.debug(f"Deleted {self.RESOURCE_LABEL}: {identifier}")

        return issued

    def _handle_delete_error(self, identifier: str, error: Exception) -> DeletionError:
        kind, code = self.classify_error(error)
        metadata: Dict[str, Any] = {"region": self.region}

        if kind is DeletionErrorKind.CONFLICT:
            metadata["reason"] = code
            logger.debug(
                f"{self.RESOURCE_LABEL} {identifier} can't be deleted, "
                f"it is still attached to an active resource"
            )
        elif kind is DeletionErrorKind.ALREADY_GONE:
            metadata["reason"] = code
            logger.debug(f"{self.RESOURCE_LABEL} {identifier} has already been deleted")
        else:
            logger.debug(f"[Failed] {error}")

        self.telemetry.track_event(self.error_event_name, metadata)

        deletion_error = DeletionError(
            str(error),
            kind=kind,
            code=code,
            resource_id=identifier,
            resource_type=self.RESOURCE_LABEL,
            region=self.region,
        )
        deletion_error.__cause__ = error
        return deletion_error

    def wait_until_deleted(self, identifiers: Sequence[str]) -> None:
        """
        Block until all issued deletions are confirmed.

        Does nothing for an empty sequence.

        Raises
        ------
        ConvergenceError
            If the waiter times out or the remote API fails while polling.
        """
        if not identifiers:
            return

        try:
            self.wait_for_deletion(list(identifiers))
        except (ClientError, BotoCoreError) as e:
            logger.debug(f"[Failed] {e}")
            self.telemetry.track_event(self.error_event_name, {"region": self.region})
            raise ConvergenceError(
                f"Failed waiting for {self.RESOURCE_LABEL}s to be deleted: {e}",
                resource_ids=list(identifiers),
                resource_type=self.RESOURCE_LABEL,
                region=self.region,
            ) from e

    def nuke_all(self, identifiers: Sequence[str]) -> List[str]:
        """
        Delete the given resources and wait for the deletions to converge.

        Returns
        -------
        list of str
            Identifiers confirmed deleted.

        Raises
        ------
        ConvergenceError
            If the deletions could not be confirmed.
        """
        issued = self.delete_all(identifiers)
        self.wait_until_deleted(issued)
        logger.debug(
            f"[OK] {len(issued)} {self.RESOURCE_LABEL}(s) terminated in {self.region}"
        )
        return issued

    def run(
        self,
        excluded_after: datetime,
        dry_run: bool = False,
        identifiers: Optional[Sequence[str]] = None,
    ) -> ResourceTypeResult:
        """
        Run the whole lifecycle for this resource type.

        Batch-level errors are logged and stored on the result instead of
        being raised, so a caller processing several resource types can
        carry on with the next one.

        Parameters
        ----------
        excluded_after : datetime
            Resources created after this time are protected.
        dry_run : bool, default=False
            If True, only discover.
        identifiers : sequence of str, optional
            Identifiers already discovered (e.g. by an earlier dry run and
            confirmed by the user). Discovery is skipped when given.

        Returns
        -------
        ResourceTypeResult
            Candidates, issued deletions and any batch-level error.
        """
        logger.info(f"Processing {self.RESOURCE_LABEL}s in {self.region}")
        result = ResourceTypeResult(
            resource_type=self.RESOURCE_LABEL,
            region=self.region,
            dry_run=dry_run,
        )

        try:
            if identifiers is None:
                result.details = self.get_candidates(excluded_after)
                result.candidates = [c.identifier for c in result.details]
            else:
                result.candidates = list(identifiers)
            if not dry_run:
                result.issued = self.delete_all(result.candidates)
                self.wait_until_deleted(result.issued)
        except ResourceError as e:
            logger.error(f"{self.RESOURCE_LABEL}s in {self.region}: {e.message}")
            result.error = e.message

        return result

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"{self.__class__.__name__}("
            f"region='{self.region}', "
            f"resource_type='{self.get_resource_type()}')"
        )
