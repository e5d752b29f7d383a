"""
Exception types raised by cloudsweep.

Every error derives from :class:`CloudSweepError`, which carries a message
and a ``details`` mapping that the CLI and the JSON reporter serialize.

::

    CloudSweepError
    ├── AWSClientError
    │   ├── CredentialsError
    │   ├── RegionError
    │   └── ServiceError
    ├── ConfigError
    ├── InvalidResourceTypeError
    └── ResourceError
        ├── RemoteQueryError
        ├── DeletionError
        └── ConvergenceError

A resource handler raises ``RemoteQueryError`` and ``ConvergenceError`` to
its caller. ``DeletionError`` stays inside the deletion batch: it is what a
report entry holds when one delete request fails.

Example
-------
>>> from cloudsweep.core.exceptions import RemoteQueryError
>>>
>>> try:
...     ids = volumes.get_all(excluded_after)
... except RemoteQueryError as e:
...     print(f"Listing failed: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from cloudsweep.core.models import DeletionErrorKind


def _merge_context(details: Optional[Dict[str, Any]], **context: Any) -> Dict[str, Any]:
    merged = dict(details or {})
    merged.update({key: value for key, value in context.items() if value})
    return merged


class CloudSweepError(Exception):
    """
    Root of the cloudsweep exception tree.

    Parameters
    ----------
    message : str
        What went wrong, phrased for the operator.
    details : dict, optional
        Extra key/value context; shown after the message.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} (Details: {self.details})"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used by the JSON reporter."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class AWSClientError(CloudSweepError):
    """
    Failure talking to AWS before any resource is touched.

    ``service`` and ``region`` are copied into ``details`` when given.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.region = region
        super().__init__(message, _merge_context(details, service=service, region=region))


class CredentialsError(AWSClientError):
    """Credentials are missing, expired, or rejected by STS."""


class RegionError(AWSClientError):
    """No usable region could be resolved."""


class ServiceError(AWSClientError):
    """botocore could not build a client for a service."""


class ConfigError(CloudSweepError):
    """
    The rule file is missing, unreadable, or malformed.

    ``details["path"]`` points at the offending key, for example
    ``EBSVolume.include.names_regex[0]``.
    """


class InvalidResourceTypeError(CloudSweepError):
    """A resource type name on the command line is not registered."""


class ResourceError(CloudSweepError):
    """
    Failure while processing one resource type in one region.

    Parameters
    ----------
    message : str
        What went wrong.
    resource_type : str, optional
        Label of the resource type, e.g. ``"EBS Volume"``.
    region : str, optional
        Region being processed.
    details : dict, optional
        Extra context.
    """

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_type = resource_type
        self.region = region
        super().__init__(
            message, _merge_context(details, resource_type=resource_type, region=region)
        )


class RemoteQueryError(ResourceError):
    """Listing candidates failed; the botocore error is the ``__cause__``."""


class DeletionError(ResourceError):
    """
    Classified failure of one delete request.

    Parameters
    ----------
    message : str
        Error text reported by AWS, or the local exception text.
    kind : DeletionErrorKind
        CONFLICT, ALREADY_GONE or OTHER.
    code : str, optional
        AWS error code, when AWS returned one.
    resource_id : str, optional
        Identifier of the resource whose delete failed.
    resource_type, region : str, optional
        Same as :class:`ResourceError`.
    """

    def __init__(
        self,
        message: str,
        kind: DeletionErrorKind,
        code: Optional[str] = None,
        resource_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.code = code
        self.resource_id = resource_id
        super().__init__(
            message,
            resource_type=resource_type,
            region=region,
            details=_merge_context({"kind": kind.value}, code=code, resource_id=resource_id),
        )


class ConvergenceError(ResourceError):
    """
    Deleted resources were never observed as gone.

    ``resource_ids`` lists the identifiers that were waited on.
    """

    def __init__(
        self,
        message: str,
        resource_ids: Optional[List[str]] = None,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        self.resource_ids = list(resource_ids or [])
        super().__init__(
            message,
            resource_type=resource_type,
            region=region,
            details=_merge_context(None, resource_ids=self.resource_ids),
        )
