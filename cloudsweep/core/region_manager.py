"""
Region Manager Module
=====================

Runs resource handlers across many AWS regions in parallel.

Each region runs in its own thread with its own :class:`AWSClient`.
Inside a region, resource types are processed one after another, and each
resource type runs its discover, delete and confirm stages sequentially.
The :class:`Report` and :class:`Telemetry` sinks are shared by every
thread.

Classes
-------
MultiRegionNukeResult
    Aggregated results from processing multiple regions.
RegionManager
    Orchestrates multi-region runs.

Example
-------
>>> from cloudsweep.core.region_manager import RegionManager
>>> from cloudsweep.resources import get_resource_classes
>>>
>>> manager = RegionManager(profile="sandbox", max_workers=10)
>>> result = manager.nuke_regions(
...     get_resource_classes(["ebs"]),
...     regions=["us-east-1", "eu-west-1"],
...     excluded_after=cutoff,
... )
>>> print(f"Deleted {result.total_issued} resources")
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from botocore.exceptions import BotoCoreError, ClientError

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.base_resource import BaseResource, ResourceTypeResult
from cloudsweep.core.config import Config
from cloudsweep.core.exceptions import AWSClientError, CloudSweepError
from cloudsweep.core.report import Report
from cloudsweep.core.telemetry import Telemetry

# Module logger
logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, str], None]


@dataclass
class MultiRegionNukeResult:
    """
    Aggregated results from processing multiple AWS regions.

    Parameters
    ----------
    regions : list of str
        Regions that were processed.
    results_by_region : dict
        Mapping of region name to the results of each resource type.
    errors : dict
        Mapping of region name to error messages.
    dry_run : bool
        True if nothing was deleted.
    run_time : datetime
        When the run started.

    Examples
    --------
    >>> result = manager.nuke_regions(classes, regions=["us-east-1"])
    >>> if result.has_errors:
    ...     for region, errors in result.errors.items():
    ...         print(f"{region}: {errors}")
    """

    regions: List[str]
    results_by_region: Dict[str, List[ResourceTypeResult]] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)
    dry_run: bool = False
    run_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def failed_regions(self) -> List[str]:
        return list(self.errors.keys())

    @property
    def successful_regions(self) -> List[str]:
        return [r for r in self.regions if r not in self.errors]

    @property
    def total_candidates(self) -> int:
        return sum(len(r.candidates) for r in self.all_results())

    @property
    def total_issued(self) -> int:
        return sum(len(r.issued) for r in self.all_results())

    def candidates_for(self, region: str, resource_type: str) -> List[str]:
        """Identifiers found for one resource type in one region."""
        for result in self.results_by_region.get(region, []):
            if result.resource_type == resource_type:
                return list(result.candidates)
        return []

    def all_results(self) -> List[ResourceTypeResult]:
        """All per-resource-type results, ordered by region."""
        return [
            result
            for region in sorted(self.results_by_region)
            for result in self.results_by_region[region]
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "regions": self.regions,
            "dry_run": self.dry_run,
            "total_candidates": self.total_candidates,
            "total_issued": self.total_issued,
            "results_by_region": {
                region: [r.to_dict() for r in results]
                for region, results in self.results_by_region.items()
            },
            "errors": self.errors,
            "run_time": self.run_time.isoformat(),
        }

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"MultiRegionNukeResult(regions={len(self.regions)}, "
            f"candidates={self.total_candidates}, issued={self.total_issued})"
        )


class RegionManager:
    """
    Manages multi-region runs.

    Parameters
    ----------
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    max_workers : int, default=10
        Maximum number of regions processed in parallel.
    max_retries : int, default=3
        Maximum retries for failed API calls.
    timeout : int, default=30
        Request timeout in seconds.
    waiter_delay : int, optional
        Seconds between convergence polls, passed to each handler.
    waiter_max_attempts : int, optional
        Convergence polls before giving up, passed to each handler.
    """

    def __init__(
        self,
        profile: Optional[str] = None,
        max_workers: int = 10,
        max_retries: int = 3,
        timeout: int = 30,
        waiter_delay: Optional[int] = None,
        waiter_max_attempts: Optional[int] = None,
    ) -> None:
        """Initialize region manager with the specified configuration."""
        self.profile = profile
        self.max_workers = max_workers
        self.max_retries = max_retries
        self.timeout = timeout
        self.waiter_delay = waiter_delay
        self.waiter_max_attempts = waiter_max_attempts

        # us-east-1 is always enabled, so it is used to list regions
        self._base_client = AWSClient(
            region="us-east-1",
            profile=profile,
            max_retries=max_retries,
            timeout=timeout,
        )

        logger.debug(f"Initialized RegionManager with max_workers={max_workers}")

    def get_all_regions(self) -> List[str]:
        """
        Fetch the regions enabled for the account.

        Returns
        -------
        list of str
            Sorted region names.

        Raises
        ------
        AWSClientError
            If the region list cannot be fetched.
        """
        try:
            response = self._base_client.get_ec2_client().describe_regions(AllRegions=False)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to fetch AWS regions: {e}")
            raise AWSClientError(f"Failed to fetch AWS regions: {e}") from e

        regions = sorted(r["RegionName"] for r in response["Regions"])
        logger.info(f"Discovered {len(regions)} enabled AWS regions")
        return regions

    def get_client_for_region(self, region: str) -> AWSClient:
        """Create an AWSClient for ``region`` with this manager's settings."""
        return self._base_client.with_region(region)

    def _run_region(
        self,
        region: str,
        resource_classes: Sequence[Type[BaseResource]],
        excluded_after: datetime,
        config: Config,
        report: Report,
        telemetry: Telemetry,
        dry_run: bool,
        progress_callback: Optional[ProgressCallback],
        targets: Optional[MultiRegionNukeResult] = None,
    ) -> Tuple[str, List[ResourceTypeResult], List[str]]:
        """
        Process every resource type in one region (internal method).

        Returns
        -------
        tuple
            (region, results, error messages)
        """
        if progress_callback:
            progress_callback(region, "running")

        client = self.get_client_for_region(region)
        results: List[ResourceTypeResult] = []
        errors: List[str] = []

        for resource_class in resource_classes:
            handler = resource_class(
                client,
                config=config,
                report=report,
                telemetry=telemetry,
                waiter_delay=self.waiter_delay,
                waiter_max_attempts=self.waiter_max_attempts,
            )
            identifiers = None
            if targets is not None:
                identifiers = targets.candidates_for(region, resource_class.RESOURCE_LABEL)
            try:
                result = handler.run(excluded_after, dry_run=dry_run, identifiers=identifiers)
            except CloudSweepError as e:
                logger.error(f"Error processing {resource_class.RESOURCE_LABEL}s in {region}: {e}")
                result = ResourceTypeResult(
                    resource_type=resource_class.RESOURCE_LABEL,
                    region=region,
                    error=e.message,
                    dry_run=dry_run,
                )

            results.append(result)
            if result.error:
                errors.append(f"{result.resource_type}: {result.error}")

        if progress_callback:
            progress_callback(region, "error" if errors else "complete")

        logger.debug(f"Completed run in {region}")
        return region, results, errors

    def nuke_regions(
        self,
        resource_classes: Sequence[Type[BaseResource]],
        regions: Optional[List[str]] = None,
        excluded_after: Optional[datetime] = None,
        config: Optional[Config] = None,
        report: Optional[Report] = None,
        telemetry: Optional[Telemetry] = None,
        dry_run: bool = False,
        progress_callback: Optional[ProgressCallback] = None,
        targets: Optional[MultiRegionNukeResult] = None,
    ) -> MultiRegionNukeResult:
        """
        Discover and delete resources across regions in parallel.

        Parameters
        ----------
        resource_classes : sequence of type
            Handler classes to run, in order, in every region.
        regions : list of str, optional
            Regions to process. If None, all enabled regions.
        excluded_after : datetime, optional
            Resources created after this time are protected. Defaults to now.
        config : Config, optional
            Name rules.
        report : Report, optional
            Outcome sink shared by all regions.
        telemetry : Telemetry, optional
            Event sink shared by all regions.
        dry_run : bool, default=False
            If True, only discover.
        progress_callback : callable, optional
            Called with (region, status); status is 'running', 'complete'
            or 'error'.
        targets : MultiRegionNukeResult, optional
            Result of an earlier inspection. When given, exactly the
            candidates it found are deleted and discovery is skipped.

        Returns
        -------
        MultiRegionNukeResult
            Aggregated results from all regions.
        """
        if regions is None:
            regions = self.get_all_regions()
        if excluded_after is None:
            excluded_after = datetime.now(timezone.utc)
        config = config or Config()
        report = report if report is not None else Report()
        telemetry = telemetry if telemetry is not None else Telemetry()

        logger.info(
            f"Starting {'inspection' if dry_run else 'run'} across {len(regions)} regions"
        )

        result = MultiRegionNukeResult(regions=list(regions), dry_run=dry_run)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(
                    self._run_region,
                    region,
                    resource_classes,
                    excluded_after,
                    config,
                    report,
                    telemetry,
                    dry_run,
                    progress_callback,
                    targets,
                ): region
                for region in regions
            }

            for future in as_completed(futures):
                region = futures[future]
                try:
                    region, region_results, errors = future.result()
                except CloudSweepError as e:
                    logger.warning(f"Region {region} failed: {e}")
                    result.errors[region] = [e.message]
                    if progress_callback:
                        progress_callback(region, "error")
                    continue

                result.results_by_region[region] = region_results
                if errors:
                    result.errors[region] = errors

        logger.info(
            f"Run complete: {result.total_issued} deleted out of "
            f"{result.total_candidates} candidates across {len(regions)} regions"
        )
        return result

    def inspect_regions(
        self,
        resource_classes: Sequence[Type[BaseResource]],
        regions: Optional[List[str]] = None,
        excluded_after: Optional[datetime] = None,
        config: Optional[Config] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> MultiRegionNukeResult:
        """Discover deletion candidates across regions without deleting."""
        return self.nuke_regions(
            resource_classes,
            regions=regions,
            excluded_after=excluded_after,
            config=config,
            dry_run=True,
            progress_callback=progress_callback,
        )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"RegionManager(profile={self.profile!r}, "
            f"max_workers={self.max_workers})"
        )
