"""
Core Infrastructure Components
==============================

This module provides the foundational components for cloudsweep:

- :class:`AWSClient` - Manages AWS connections and client creation
- :class:`BaseResource` - Generic discover, delete and confirm lifecycle
- :class:`RegionManager` - Orchestrates multi-region runs
- :class:`Report` and :class:`Telemetry` - Thread-safe outcome and event sinks
- Exception hierarchy for error handling

Classes
-------
AWSClient
    AWS client wrapper with retry logic and credential management.
BaseResource
    Abstract base class for resource-type handlers.
ResourceTypeResult
    Result of one resource type in one region.
Config
    Per-resource-type name rules loaded from YAML.
Report
    Append-only record of deletion outcomes.
Telemetry
    In-memory telemetry event sink.
RegionManager
    Runs handlers across multiple AWS regions in parallel.
MultiRegionNukeResult
    Aggregated results from multi-region runs.

Exceptions
----------
CloudSweepError
    Base exception for all cloudsweep errors.
AWSClientError
    Base exception for AWS client errors.
ConfigError
    Raised when the rule file is missing or invalid.
ResourceError
    Base exception for resource-handler errors.

Example
-------
>>> from cloudsweep.core import RegionManager, Report
>>>
>>> manager = RegionManager(profile="sandbox", max_workers=10)
>>> regions = manager.get_all_regions()

See Also
--------
cloudsweep.resources : Resource-type handlers.
cloudsweep.reporters : Output formatters.
"""

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.base_resource import BaseResource, ResourceTypeResult
from cloudsweep.core.config import Config, ResourceTypeRule, load_config, should_include
from cloudsweep.core.exceptions import (
    AWSClientError,
    CloudSweepError,
    ConfigError,
    ConvergenceError,
    CredentialsError,
    DeletionError,
    InvalidResourceTypeError,
    RegionError,
    RemoteQueryError,
    ResourceError,
    ServiceError,
)
from cloudsweep.core.filters import has_exclude_tag, resolve_name, should_include_candidate
from cloudsweep.core.models import DeletionErrorKind, ResourceCandidate
from cloudsweep.core.region_manager import MultiRegionNukeResult, RegionManager
from cloudsweep.core.report import Report, ReportEntry
from cloudsweep.core.telemetry import Telemetry, TelemetryEvent

__all__ = [
    # Client
    "AWSClient",
    # Lifecycle
    "BaseResource",
    "ResourceTypeResult",
    "ResourceCandidate",
    "DeletionErrorKind",
    # Filtering
    "Config",
    "ResourceTypeRule",
    "load_config",
    "should_include",
    "should_include_candidate",
    "has_exclude_tag",
    "resolve_name",
    # Sinks
    "Report",
    "ReportEntry",
    "Telemetry",
    "TelemetryEvent",
    # Region management
    "RegionManager",
    "MultiRegionNukeResult",
    # Exceptions - Base
    "CloudSweepError",
    # Exceptions - AWS Client
    "AWSClientError",
    "CredentialsError",
    "RegionError",
    "ServiceError",
    # Exceptions - Configuration
    "ConfigError",
    "InvalidResourceTypeError",
    # Exceptions - Resources
    "ResourceError",
    "RemoteQueryError",
    "DeletionError",
    "ConvergenceError",
]
