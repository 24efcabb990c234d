"""
Shared fixtures: fake compute API records and a fake compute client.
"""

import logging
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from shared_vpc_ip_report.base import ProjectSnapshot
from shared_vpc_ip_report.gcp_client import GCPComputeClient


COMPUTE_URL = "https://www.googleapis.com/compute/v1/projects"


def subnet_link(subnet, host="host-project", region="us-central1"):
    return f"{COMPUTE_URL}/{host}/regions/{region}/subnetworks/{subnet}" if subnet else ""


def make_address(ip, status="RESERVED", subnet="sub1", users=None):
    """Fake compute_v1.Address."""
    return SimpleNamespace(
        address=ip,
        status=status,
        subnetwork=subnet_link(subnet),
        users=list(users or []),
    )


def make_instance(name, ip, subnet="sub1", project="svc", zone="us-central1-a"):
    """Fake compute_v1.Instance with a single network interface."""
    nic = SimpleNamespace(network_i_p=ip, subnetwork=subnet_link(subnet))
    return SimpleNamespace(
        name=name,
        network_interfaces=[nic],
        self_link=f"{COMPUTE_URL}/{project}/zones/{zone}/instances/{name}",
    )


def make_snapshot(project, addresses=(), instances=()):
    return ProjectSnapshot(
        project=project,
        address_records=None if addresses is None else tuple(addresses),
        instance_records=None if instances is None else tuple(instances),
    )


@pytest.fixture
def scenario_snapshots():
    """Host H with svc-a (reserved 10.0.0.5) and svc-b (vm1 on 10.0.0.5)."""
    return {
        "svc-a": make_snapshot("svc-a", addresses=[make_address("10.0.0.5", "RESERVED", "sub1")]),
        "svc-b": make_snapshot("svc-b", instances=[make_instance("vm1", "10.0.0.5", "sub1", project="svc-b")]),
    }


@pytest.fixture
def fake_client():
    """Build a Mock GCPComputeClient serving the given snapshots."""
    def _make(snapshots_by_project, error=None):
        client = Mock(spec=GCPComputeClient)
        if error is not None:
            client.list_service_projects.side_effect = error
        else:
            client.list_service_projects.return_value = set(snapshots_by_project)
        client.fetch_project_snapshot.side_effect = lambda project: snapshots_by_project[project]
        return client
    return _make


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so handlers never outlive a captured stream."""
    yield
    log = logging.getLogger("shared_vpc_ip_report")
    log.handlers = []
    log.setLevel(logging.NOTSET)
