"""
Tests for the EBS volume handler.
"""

from datetime import datetime, timedelta, timezone

import pytest
from botocore.exceptions import EndpointConnectionError, WaiterError

from cloudsweep.core.config import Config
from cloudsweep.core.exceptions import ConvergenceError, DeletionError, RemoteQueryError
from cloudsweep.core.filters import EXCLUSION_TAG_KEY
from cloudsweep.core.models import DeletionErrorKind
from cloudsweep.resources.ebs import EBSVolumes

ERROR_EVENT = "Error Nuking EBS Volume"


@pytest.fixture
def volumes(aws_client, report, telemetry):
    """Create an EBS volume handler against moto."""
    return EBSVolumes(
        aws_client,
        report=report,
        telemetry=telemetry,
        waiter_delay=1,
        waiter_max_attempts=3,
    )


@pytest.fixture
def mock_volumes(mock_handler_client, report, telemetry):
    """Create an EBS volume handler whose EC2 client is a MagicMock."""
    return EBSVolumes(
        mock_handler_client,
        report=report,
        telemetry=telemetry,
        waiter_delay=1,
        waiter_max_attempts=1,
    )


def mock_page(*volumes):
    """Paginator stand-in returning a single page."""
    return [{"Volumes": list(volumes)}]


class TestEBSVolumesDiscovery:
    """Tests for listing and filtering volumes."""

    def test_attributes(self, volumes):
        assert volumes.get_resource_type() == "ebs"
        assert volumes.RESOURCE_LABEL == "EBS Volume"
        assert volumes.region == "us-east-1"
        assert volumes.error_event_name == ERROR_EVENT

    def test_lists_available_volume(self, volumes, volume):
        candidates = volumes.list_candidates()

        ids = [c.identifier for c in candidates]
        assert volume in ids
        found = next(c for c in candidates if c.identifier == volume)
        assert found.status == "available"
        assert found.created_at.tzinfo is not None

    def test_get_all_includes_old_volume(self, volumes, volume, future_cutoff):
        assert volume in volumes.get_all(future_cutoff)

    def test_get_all_protects_new_volume(self, volumes, volume):
        """A volume created after the cutoff is not returned."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=5)
        assert volume not in volumes.get_all(cutoff)

    def test_get_all_skips_excluded_tag(self, volumes, tagged_volume, future_cutoff):
        protected = tagged_volume(**{EXCLUSION_TAG_KEY: "true"})
        unprotected = tagged_volume(**{EXCLUSION_TAG_KEY: "false"})

        ids = volumes.get_all(future_cutoff)

        assert protected not in ids
        assert unprotected in ids

    def test_get_all_applies_name_rules(self, aws_client, tagged_volume, future_cutoff):
        ci = tagged_volume(Name="ci-build-1")
        prod = tagged_volume(Name="prod-db")
        config = Config.from_dict({"EBSVolume": {"include": {"names_regex": ["^ci-"]}}})

        ids = EBSVolumes(aws_client, config=config).get_all(future_cutoff)

        assert ci in ids
        assert prod not in ids

    def test_in_use_volume_not_listed(self, volumes, ec2_client, volume, future_cutoff):
        reservation = ec2_client.run_instances(ImageId="ami-12345678", MinCount=1, MaxCount=1)
        instance_id = reservation["Instances"][0]["InstanceId"]
        ec2_client.attach_volume(VolumeId=volume, InstanceId=instance_id, Device="/dev/sdf")

        assert volume not in volumes.get_all(future_cutoff)

    def test_uses_status_filter(self, mock_volumes, mock_handler_client):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.get_paginator.return_value.paginate.return_value = mock_page()

        mock_volumes.list_candidates()

        ec2.get_paginator.assert_called_once_with("describe_volumes")
        ec2.get_paginator.return_value.paginate.assert_called_once_with(
            Filters=[{"Name": "status", "Values": ["available", "creating", "error"]}]
        )

    def test_preserves_api_order_and_skips_empty_entries(
        self, mock_volumes, mock_handler_client, future_cutoff
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        created = datetime.now(timezone.utc) - timedelta(days=10)
        ec2.get_paginator.return_value.paginate.return_value = [
            {"Volumes": [{"VolumeId": "vol-b", "CreateTime": created, "State": "available"}]},
            {"Volumes": [None, {"VolumeId": "vol-a", "CreateTime": created, "State": "error"}]},
        ]

        assert mock_volumes.get_all(future_cutoff) == ["vol-b", "vol-a"]

    def test_list_failure_raises_remote_query_error(
        self, mock_volumes, mock_handler_client, client_error, future_cutoff
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        cause = client_error("UnauthorizedOperation", operation="DescribeVolumes")
        ec2.get_paginator.return_value.paginate.side_effect = cause

        with pytest.raises(RemoteQueryError) as exc_info:
            mock_volumes.get_all(future_cutoff)

        assert exc_info.value.resource_type == "EBS Volume"
        assert exc_info.value.region == "us-east-1"
        assert exc_info.value.__cause__ is cause

    def test_connection_failure_raises_remote_query_error(
        self, mock_volumes, mock_handler_client, future_cutoff
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.get_paginator.return_value.paginate.side_effect = EndpointConnectionError(
            endpoint_url="https://ec2.us-east-1.amazonaws.com"
        )

        with pytest.raises(RemoteQueryError):
            mock_volumes.get_all(future_cutoff)


class TestEBSVolumesDeletion:
    """Tests for deleting volumes."""

    def test_delete_and_wait(self, volumes, volume, ec2_client, report, telemetry, future_cutoff):
        """An old, untagged volume is deleted and one success is recorded."""
        ids = volumes.get_all(future_cutoff)
        assert volume in ids

        issued = volumes.nuke_all([volume])

        assert issued == [volume]
        assert report.total == 1
        entry = report.entries[0]
        assert entry.identifier == volume
        assert entry.resource_type == "EBS Volume"
        assert entry.deleted is True
        assert telemetry.events == []
        assert volume not in [
            v["VolumeId"] for v in ec2_client.describe_volumes()["Volumes"]
        ]

    def test_excluded_volume_never_reaches_deletion(
        self, volumes, tagged_volume, report, future_cutoff
    ):
        protected = tagged_volume(**{EXCLUSION_TAG_KEY: "true"})

        volumes.nuke_all(volumes.get_all(future_cutoff))

        assert protected not in [e.identifier for e in report.entries]

    def test_delete_twice_is_already_gone(self, volumes, volume, report, telemetry):
        """Deleting an already-deleted volume is classified, never raised."""
        volumes.delete_all([volume])
        volumes.delete_all([volume])
        volumes.delete_all([volume])

        entries = report.entries
        assert len(entries) == 3
        assert entries[0].deleted is True
        for entry in entries[1:]:
            assert entry.deleted is False
            assert isinstance(entry.error, DeletionError)
            assert entry.error.kind is DeletionErrorKind.ALREADY_GONE
            assert entry.error.code == "InvalidVolume.NotFound"

        events = telemetry.events_named(ERROR_EVENT)
        assert len(events) == 2
        assert all(e.metadata == {"region": "us-east-1", "reason": "InvalidVolume.NotFound"} for e in events)

    def test_volume_in_use_is_recorded_and_batch_continues(
        self, mock_volumes, mock_handler_client, client_error, report, telemetry
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        in_use = client_error("VolumeInUse")

        def delete_volume(VolumeId):
            if VolumeId == "vol-3":
                raise in_use
            return {}

        ec2.delete_volume.side_effect = delete_volume

        issued = mock_volumes.delete_all(["vol-3", "vol-4"])

        assert issued == ["vol-4"]
        assert ec2.delete_volume.call_count == 2
        failed = report.failed
        assert [e.identifier for e in failed] == ["vol-3"]
        assert failed[0].error.kind is DeletionErrorKind.CONFLICT
        assert failed[0].error.__cause__ is in_use
        assert [e.identifier for e in report.deleted] == ["vol-4"]

        events = telemetry.events_named(ERROR_EVENT)
        assert len(events) == 1
        assert events[0].metadata == {"region": "us-east-1", "reason": "VolumeInUse"}

    def test_other_error_has_no_reason(
        self, mock_volumes, mock_handler_client, client_error, report, telemetry
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.delete_volume.side_effect = client_error("UnauthorizedOperation")

        assert mock_volumes.delete_all(["vol-5"]) == []

        assert report.failed[0].error.kind is DeletionErrorKind.OTHER
        assert telemetry.events[0].metadata == {"region": "us-east-1"}

    def test_unexpected_exception_is_recorded(
        self, mock_volumes, mock_handler_client, report, telemetry
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.delete_volume.side_effect = [RuntimeError("boom"), {}]

        issued = mock_volumes.delete_all(["vol-6", "vol-7"])

        assert issued == ["vol-7"]
        assert report.failed[0].error.kind is DeletionErrorKind.OTHER
        assert report.failed[0].error.code is None
        assert "boom" in report.failed[0].error_message

    @pytest.mark.parametrize(
        "codes",
        [
            [],
            ["VolumeInUse"],
            [None, "InvalidVolume.NotFound", "Throttling"],
            ["VolumeInUse", "VolumeInUse", None, None, "Other"],
        ],
    )
    def test_one_outcome_per_identifier(
        self, mock_volumes, mock_handler_client, client_error, report, codes
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.delete_volume.side_effect = [
            client_error(code) if code else {} for code in codes
        ]
        identifiers = [f"vol-{i}" for i in range(len(codes))]

        issued = mock_volumes.delete_all(identifiers)

        assert report.total == len(identifiers)
        assert [e.identifier for e in report.entries] == identifiers
        assert len(issued) == codes.count(None)

    def test_empty_input_is_noop(self, mock_volumes, mock_handler_client, report):
        ec2 = mock_handler_client.get_ec2_client.return_value

        assert mock_volumes.nuke_all([]) == []

        ec2.delete_volume.assert_not_called()
        ec2.get_waiter.assert_not_called()
        assert report.total == 0


class TestEBSVolumesConvergence:
    """Tests for waiting on deletions."""

    def test_waiter_config(self, mock_volumes, mock_handler_client):
        ec2 = mock_handler_client.get_ec2_client.return_value

        mock_volumes.wait_until_deleted(["vol-1"])

        ec2.get_waiter.assert_called_once_with("volume_deleted")
        ec2.get_waiter.return_value.wait.assert_called_once_with(
            VolumeIds=["vol-1"],
            WaiterConfig={"Delay": 1, "MaxAttempts": 1},
        )

    def test_waiter_timeout_raises_convergence_error(
        self, mock_volumes, mock_handler_client, report, telemetry
    ):
        """A convergence timeout is raised and leaves recorded outcomes alone."""
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.delete_volume.return_value = {}
        timeout = WaiterError(
            name="VolumeDeleted",
            reason="Max attempts exceeded",
            last_response={},
        )
        ec2.get_waiter.return_value.wait.side_effect = timeout

        with pytest.raises(ConvergenceError) as exc_info:
            mock_volumes.nuke_all(["vol-1"])

        assert exc_info.value.resource_ids == ["vol-1"]
        assert exc_info.value.__cause__ is timeout
        assert report.total == 1
        assert report.entries[0].deleted is True

        events = telemetry.events_named(ERROR_EVENT)
        assert len(events) == 1
        assert events[0].metadata == {"region": "us-east-1"}
        assert "reason" not in events[0].metadata

    def test_wait_skipped_when_nothing_issued(
        self, mock_volumes, mock_handler_client, client_error
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.delete_volume.side_effect = client_error("VolumeInUse")

        assert mock_volumes.nuke_all(["vol-1"]) == []
        ec2.get_waiter.assert_not_called()


class TestEBSVolumesRun:
    """Tests for the full lifecycle."""

    def test_run_dry_run_does_not_delete(self, volumes, volume, ec2_client, report, future_cutoff):
        result = volumes.run(future_cutoff, dry_run=True)

        assert volume in result.candidates
        assert volume in [c.identifier for c in result.details]
        assert result.issued == []
        assert result.dry_run is True
        assert report.total == 0
        ec2_client.describe_volumes(VolumeIds=[volume])

    def test_run_deletes(self, volumes, volume, report, future_cutoff):
        result = volumes.run(future_cutoff)

        assert volume in result.issued
        assert result.error is None
        assert report.total == len(result.candidates)

    def test_run_with_identifiers_skips_discovery(
        self, mock_volumes, mock_handler_client, future_cutoff
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.delete_volume.return_value = {}

        result = mock_volumes.run(future_cutoff, identifiers=["vol-9"])

        ec2.get_paginator.assert_not_called()
        assert result.candidates == ["vol-9"]
        assert result.issued == ["vol-9"]

    def test_run_stores_batch_error(
        self, mock_volumes, mock_handler_client, client_error, future_cutoff
    ):
        ec2 = mock_handler_client.get_ec2_client.return_value
        ec2.get_paginator.return_value.paginate.side_effect = client_error(
            "RequestLimitExceeded", operation="DescribeVolumes"
        )

        result = mock_volumes.run(future_cutoff)

        assert result.has_error
        assert "Failed to list EBS Volumes" in result.error
        assert result.to_dict()["error"] == result.error

    def test_naive_cutoff_treated_as_utc(self, mock_volumes, mock_handler_client):
        ec2 = mock_handler_client.get_ec2_client.return_value
        created = datetime.now(timezone.utc) - timedelta(days=10)
        ec2.get_paginator.return_value.paginate.return_value = mock_page(
            {"VolumeId": "vol-1", "CreateTime": created, "State": "available"}
        )

        naive_cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=5)

        assert mock_volumes.get_all(naive_cutoff) == ["vol-1"]


class TestEBSVolumesWaiterSettings:
    """Tests for the waiter delay and attempt settings."""

    def test_defaults(self, mock_handler_client):
        handler = EBSVolumes(mock_handler_client)

        assert handler.waiter_delay == EBSVolumes.WAITER_DELAY
        assert handler.waiter_max_attempts == EBSVolumes.WAITER_MAX_ATTEMPTS

    def test_explicit_zero_delay_is_kept(self, mock_handler_client):
        handler = EBSVolumes(mock_handler_client, waiter_delay=0, waiter_max_attempts=0)

        assert handler.waiter_delay == 0
        assert handler.waiter_max_attempts == 0
