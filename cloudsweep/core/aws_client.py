"""
AWS Client Module
=================

Wraps boto3 session and client creation for one region, with retry
configuration and credential checks.

Classes
-------
AWSClient
    Per-region client factory used by every resource handler.

Example
-------
>>> from cloudsweep.core.aws_client import AWSClient
>>>
>>> client = AWSClient(region="eu-west-1", profile="sandbox")
>>> client.validate_credentials()
True
>>> ec2 = client.get_ec2_client()

Notes
-----
Sessions and service clients are created on first use and cached. boto3
clients are thread-safe, but sessions are not, so the region manager
builds one AWSClient per region thread.

See Also
--------
boto3 : AWS SDK for Python
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from cloudsweep.core.exceptions import (
    AWSClientError,
    CredentialsError,
    RegionError,
    ServiceError,
)

# Module logger
logger = logging.getLogger(__name__)

# Error codes returned by STS for bad keys
INVALID_CREDENTIAL_CODES = ("InvalidClientTokenId", "SignatureDoesNotMatch", "ExpiredToken")

CREDENTIALS_HINT = (
    "Run 'aws configure', pass --profile, or export "
    "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY"
)


class AWSClient:
    """
    boto3 session and client factory bound to one region.

    Parameters
    ----------
    region : str, default="us-east-1"
        Region every client of this instance talks to.
    profile : str, optional
        Named profile from the shared AWS config files.
    max_retries : int, default=3
        Attempts per API call, using botocore's adaptive retry mode.
    timeout : int, default=30
        Connect and read timeout in seconds.

    Raises
    ------
    CredentialsError
        If the profile or credentials cannot be found.
    RegionError
        If no usable region is configured.
    ServiceError
        If a service client cannot be created.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        self.region = region
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout

        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._config = Config(
            region_name=region,
            retries={"max_attempts": max_retries, "mode": "adaptive"},
            connect_timeout=timeout,
            read_timeout=timeout,
        )

    @property
    def session(self) -> boto3.Session:
        """The boto3 session, created on first access."""
        if self._session is None:
            self._session = self._open_session()
        return self._session

    def _profile_not_found(self) -> CredentialsError:
        return CredentialsError(
            f"AWS profile '{self.profile}' not found",
            details={"profile": self.profile, "hint": CREDENTIALS_HINT},
        )

    def _open_session(self) -> boto3.Session:
        kwargs = {"region_name": self.region}
        if self.profile:
            kwargs["profile_name"] = self.profile

        try:
            return boto3.Session(**kwargs)
        except ProfileNotFound as e:
            raise self._profile_not_found() from e
        except NoRegionError as e:
            raise RegionError(f"No usable AWS region: {self.region}", region=self.region) from e

    def client(self, service_name: str) -> Any:
        """
        Get a cached boto3 client for ``service_name``.

        Raises
        ------
        CredentialsError
            If no credentials can be resolved.
        ServiceError
            If botocore refuses to build the client.
        """
        cached = self._clients.get(service_name)
        if cached is not None:
            return cached

        session = self.session
        try:
            created = session.client(service_name, config=self._config)
        except ProfileNotFound as e:
            raise self._profile_not_found() from e
        except NoCredentialsError as e:
            raise CredentialsError(
                "AWS credentials not found", details={"hint": CREDENTIALS_HINT}
            ) from e
        except Exception as e:
            logger.debug(f"Could not create {service_name} client in {self.region}: {e}")
            raise ServiceError(
                f"Failed to create {service_name} client: {e}",
                service=service_name,
                region=self.region,
            ) from e

        self._clients[service_name] = created
        return created

    def get_ec2_client(self) -> Any:
        """EC2 client for this region; volumes and snapshots live there."""
        return self.client("ec2")

    def _caller_identity(self) -> Dict[str, Any]:
        try:
            return self.client("sts").get_caller_identity()
        except NoCredentialsError as e:
            raise CredentialsError(
                "AWS credentials not found", details={"hint": CREDENTIALS_HINT}
            ) from e
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code in INVALID_CREDENTIAL_CODES:
                raise CredentialsError(
                    "Invalid AWS credentials", details={"error_code": code}
                ) from e
            raise CredentialsError(f"Failed to validate credentials: {e}") from e

    def validate_credentials(self) -> bool:
        """
        Check the credentials with STS GetCallerIdentity.

        Returns
        -------
        bool
            True if STS accepted the credentials.

        Raises
        ------
        CredentialsError
            If credentials are invalid, expired, or missing.
        """
        identity = self._caller_identity()
        logger.info(f"Using AWS account {identity['Account']} ({identity.get('Arn', '?')})")
        return True

    def get_account_id(self) -> str:
        """12-digit ID of the account the credentials belong to."""
        try:
            return self._caller_identity()["Account"]
        except CredentialsError as e:
            raise AWSClientError(f"Failed to get account ID: {e.message}") from e

    def with_region(self, region: str) -> AWSClient:
        """Same profile and retry settings, different region."""
        return AWSClient(region, self.profile, self.max_retries, self.timeout)

    def __enter__(self) -> AWSClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._clients.clear()
        self._session = None

    def __repr__(self) -> str:
        return f"AWSClient(region={self.region!r}, profile={self.profile!r})"
