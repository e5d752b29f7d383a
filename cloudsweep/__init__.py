"""
cloudsweep: AWS Resource Cleanup
================================

Finds AWS resources that are eligible for deletion, filters them against
age, exclusion-tag and name rules, deletes the survivors, waits for the
deletions to converge and reports the outcome of every attempt.

Modules
-------
core
    Lifecycle, configuration, reporting and multi-region orchestration
resources
    Per-resource-type handlers (EBS volumes, EBS snapshots)
reporters
    Output formatters (CLI, JSON)

Example
-------
>>> from datetime import datetime, timedelta, timezone
>>> from cloudsweep import AWSClient, EBSVolumes, Report
>>>
>>> report = Report()
>>> volumes = EBSVolumes(AWSClient(region="us-east-1"), report=report)
>>> cutoff = datetime.now(timezone.utc) - timedelta(days=7)
>>> volumes.nuke_all(volumes.get_all(cutoff))
>>> print(f"Deleted {report.deleted_count} volumes")

Notes
-----
Requires AWS credentials configured via:
- Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)
- AWS credentials file (~/.aws/credentials)
- IAM role (when running on AWS infrastructure)

See Also
--------
boto3 : AWS SDK for Python
"""

__version__ = "0.1.0"
__author__ = "cloudsweep Team"
__license__ = "MIT"

# Public API
from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.base_resource import BaseResource, ResourceTypeResult
from cloudsweep.core.config import Config, load_config
from cloudsweep.core.exceptions import AWSClientError, CloudSweepError
from cloudsweep.core.region_manager import MultiRegionNukeResult, RegionManager
from cloudsweep.core.report import Report, ReportEntry
from cloudsweep.core.telemetry import Telemetry
from cloudsweep.resources import ALL_RESOURCES, EBSSnapshots, EBSVolumes, get_resource_classes

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core classes
    "AWSClient",
    "BaseResource",
    "ResourceTypeResult",
    "Config",
    "load_config",
    "Report",
    "ReportEntry",
    "Telemetry",
    "RegionManager",
    "MultiRegionNukeResult",
    # Errors
    "CloudSweepError",
    "AWSClientError",
    # Resource types
    "ALL_RESOURCES",
    "EBSVolumes",
    "EBSSnapshots",
    "get_resource_classes",
]
