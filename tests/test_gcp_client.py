"""
Tests for the compute API wrapper with the compute_v1 clients mocked.
"""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest

from shared_vpc_ip_report.base import CredentialsError, ProjectEnumerationError
from shared_vpc_ip_report.gcp_client import GCPComputeClient, load_credentials

from conftest import make_address, make_instance


@pytest.fixture
def mock_compute():
    with patch("shared_vpc_ip_report.gcp_client.compute_v1") as compute_v1:
        yield compute_v1


def failing_pager(*items, error):
    """Pager that yields some items, then fails like a lazy page fetch."""
    def pages(*args, **kwargs):
        yield from items
        raise error
    return pages


class TestClientInit:
    """Test creation of the underlying compute clients."""

    def test_default_credentials(self, mock_compute):
        client = GCPComputeClient()

        mock_compute.ProjectsClient.assert_called_once_with()
        mock_compute.AddressesClient.assert_called_once_with()
        mock_compute.InstancesClient.assert_called_once_with()
        assert client.projects_client is mock_compute.ProjectsClient.return_value

    def test_explicit_credentials(self, mock_compute):
        credentials = Mock()

        GCPComputeClient(credentials=credentials)

        mock_compute.ProjectsClient.assert_called_once_with(credentials=credentials)
        mock_compute.AddressesClient.assert_called_once_with(credentials=credentials)
        mock_compute.InstancesClient.assert_called_once_with(credentials=credentials)


class TestListServiceProjects:
    """Test enumeration of the projects attached to a host project."""

    def test_returns_project_ids(self, mock_compute):
        client = GCPComputeClient()
        client.projects_client.get_xpn_resources.return_value = [
            SimpleNamespace(id="svc-a", type_="PROJECT"),
            SimpleNamespace(id="svc-b", type_="PROJECT"),
            SimpleNamespace(id="svc-a", type_="PROJECT"),
        ]

        projects = client.list_service_projects("host")

        assert projects == {"svc-a", "svc-b"}
        client.projects_client.get_xpn_resources.assert_called_once_with(project="host")

    def test_api_error_is_raised(self, mock_compute):
        client = GCPComputeClient()
        cause = RuntimeError("403 Required 'compute.projects.get' permission")
        client.projects_client.get_xpn_resources.side_effect = cause

        with pytest.raises(ProjectEnumerationError) as excinfo:
            client.list_service_projects("host")

        assert excinfo.value.__cause__ is cause
        assert excinfo.value.host_project == "host"
        assert "compute.projects.get" in str(excinfo.value)

    def test_error_while_paging_is_raised(self, mock_compute):
        client = GCPComputeClient()
        client.projects_client.get_xpn_resources.side_effect = failing_pager(
            SimpleNamespace(id="svc-a"), error=ConnectionError("reset by peer")
        )

        with pytest.raises(ProjectEnumerationError, match="reset by peer"):
            client.list_service_projects("host")

    def test_empty_host_project(self, mock_compute):
        with pytest.raises(ValueError):
            GCPComputeClient().list_service_projects("")


class TestFetchProjectSnapshot:
    """Test the partial-failure tolerant per-project fetch."""

    def test_flattens_all_scopes(self, mock_compute):
        client = GCPComputeClient()
        a1, a2 = make_address("10.0.0.1"), make_address("10.1.0.1")
        vm = make_instance("vm1", "10.0.0.2")
        client.addresses_client.aggregated_list.return_value = [
            ("regions/us-central1", SimpleNamespace(addresses=[a1])),
            ("regions/europe-west1", SimpleNamespace(addresses=[a2])),
            ("regions/asia-east1", SimpleNamespace(addresses=[])),
        ]
        client.instances_client.aggregated_list.return_value = [
            ("zones/us-central1-a", SimpleNamespace(instances=[vm])),
            ("zones/us-central1-b", SimpleNamespace(instances=[])),
        ]

        snapshot = client.fetch_project_snapshot("svc-a")

        assert snapshot.project == "svc-a"
        assert snapshot.address_records == (a1, a2)
        assert snapshot.instance_records == (vm,)
        assert snapshot.complete
        mock_compute.AggregatedListAddressesRequest.assert_called_once_with(project="svc-a")
        mock_compute.AggregatedListInstancesRequest.assert_called_once_with(project="svc-a")

    def test_instance_failure_keeps_addresses(self, mock_compute, caplog):
        client = GCPComputeClient()
        address = make_address("10.0.0.1")
        client.addresses_client.aggregated_list.return_value = [
            ("regions/us-central1", SimpleNamespace(addresses=[address])),
        ]
        client.instances_client.aggregated_list.side_effect = RuntimeError("API not enabled")

        snapshot = client.fetch_project_snapshot("svc-a")

        assert snapshot.address_records == (address,)
        assert snapshot.instance_records is None
        assert not snapshot.complete
        assert "Error getting instances for svc-a: API not enabled" in caplog.text

    def test_failure_while_paging_leaves_field_absent(self, mock_compute):
        client = GCPComputeClient()
        client.addresses_client.aggregated_list.side_effect = failing_pager(
            ("regions/us-central1", SimpleNamespace(addresses=[make_address("10.0.0.1")])),
            error=TimeoutError("deadline exceeded"),
        )
        client.instances_client.aggregated_list.return_value = []

        snapshot = client.fetch_project_snapshot("svc-a")

        assert snapshot.address_records is None
        assert snapshot.instance_records == ()

    def test_never_raises(self, mock_compute):
        client = GCPComputeClient()
        client.addresses_client.aggregated_list.side_effect = RuntimeError("boom")
        client.instances_client.aggregated_list.side_effect = RuntimeError("boom")

        snapshot = client.fetch_project_snapshot("svc-a")

        assert snapshot.address_records is None
        assert snapshot.instance_records is None


class TestLoadCredentials:
    """Test credential selection."""

    def test_default_credentials(self):
        assert load_credentials(None) is None

    def test_key_file(self):
        with patch("google.oauth2.service_account.Credentials.from_service_account_file") as from_file:
            credentials = load_credentials("sa.json")

        from_file.assert_called_once_with("sa.json")
        assert credentials is from_file.return_value

    def test_missing_key_file(self):
        cause = FileNotFoundError(2, "No such file or directory", "missing.json")
        with patch("google.oauth2.service_account.Credentials.from_service_account_file", side_effect=cause):
            with pytest.raises(CredentialsError) as excinfo:
                load_credentials("missing.json")

        assert excinfo.value.key_file == "missing.json"
        assert excinfo.value.__cause__ is cause
        assert "missing.json" in str(excinfo.value)

    def test_malformed_key_file(self):
        cause = ValueError("Service account info was not in the expected format")
        with patch("google.oauth2.service_account.Credentials.from_service_account_file", side_effect=cause):
            with pytest.raises(CredentialsError, match="expected format"):
                load_credentials("sa.json")
