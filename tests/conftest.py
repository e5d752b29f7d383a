"""
Pytest configuration and shared fixtures for testing.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.models import ResourceCandidate
from cloudsweep.core.report import Report
from cloudsweep.core.telemetry import Telemetry


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("MOTO_EC2_LOAD_DEFAULT_AMIS", "false")


@pytest.fixture
def mock_aws_environment(aws_credentials):
    """Create a mocked AWS environment."""
    with mock_aws():
        yield


@pytest.fixture
def aws_client(mock_aws_environment):
    """Create an AWSClient instance for testing."""
    return AWSClient(region="us-east-1")


@pytest.fixture
def ec2_client(mock_aws_environment):
    """Create a boto3 EC2 client for setting up test resources."""
    return boto3.client("ec2", region_name="us-east-1")


@pytest.fixture
def report():
    """Create an empty outcome report."""
    return Report()


@pytest.fixture
def telemetry():
    """Create an empty telemetry sink."""
    return Telemetry()


@pytest.fixture
def future_cutoff():
    """A cutoff one hour from now, so freshly created resources are eligible."""
    return datetime.now(timezone.utc) + timedelta(hours=1)


@pytest.fixture
def volume(ec2_client):
    """Create an available EBS volume."""
    response = ec2_client.create_volume(Size=1, AvailabilityZone="us-east-1a")
    return response["VolumeId"]


@pytest.fixture
def tagged_volume(ec2_client):
    """Factory creating an available volume with the given tags."""

    def _create(**tags):
        response = ec2_client.create_volume(
            Size=1,
            AvailabilityZone="us-east-1a",
            TagSpecifications=[
                {
                    "ResourceType": "volume",
                    "Tags": [{"Key": k, "Value": v} for k, v in tags.items()],
                }
            ],
        )
        return response["VolumeId"]

    return _create


@pytest.fixture
def snapshot(ec2_client, volume):
    """Create a completed EBS snapshot owned by the account."""
    response = ec2_client.create_snapshot(VolumeId=volume, Description="test")
    return response["SnapshotId"]


@pytest.fixture
def mock_handler_client():
    """
    An AWSClient stand-in whose EC2 client is a MagicMock.

    Used for error paths moto cannot produce on demand.
    """
    ec2 = MagicMock()
    client = MagicMock()
    client.region = "us-east-1"
    client.get_ec2_client.return_value = ec2
    return client


@pytest.fixture
def make_candidate():
    """Factory building a candidate created ``age`` ago."""

    def _make(identifier="vol-1", age=timedelta(days=10), tags=None, status="available"):
        return ResourceCandidate(
            identifier=identifier,
            created_at=datetime.now(timezone.utc) - age,
            status=status,
            tags=tags or {},
        )

    return _make


@pytest.fixture
def client_error():
    """Factory building a botocore ClientError with the given code."""

    def _make(code, operation="DeleteVolume", message="error"):
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)

    return _make
