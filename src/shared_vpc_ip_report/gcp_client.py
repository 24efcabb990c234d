#!/usr/bin/env python3
"""
GCP Compute Client for Shared VPC IP Report

Wraps the Compute Engine API calls the report needs:
- listing the service projects attached to a Shared VPC host project
- listing a project's reserved addresses and instances

Requires: pip install google-cloud-compute google-auth
"""

import logging
from typing import Any, Optional, Set, Tuple

from google.cloud import compute_v1

from .base import CredentialsError, ProjectEnumerationError, ProjectSnapshot
from .utils import logger


class GCPComputeClient:
    """
    Thin wrapper around the compute_v1 clients.

    Every call is made exactly once; there is no retry. Credentials are
    whatever the caller passes in, or Application Default Credentials.
    """

    def __init__(self, credentials=None, log: logging.Logger = logger):
        """
        Initialize the compute clients.

        Args:
            credentials: GCP credentials (if None, uses default)
            log: Logger for progress and error messages
        """
        self.credentials = credentials
        self.log = log

        if credentials:
            self.projects_client = compute_v1.ProjectsClient(credentials=credentials)
            self.addresses_client = compute_v1.AddressesClient(credentials=credentials)
            self.instances_client = compute_v1.InstancesClient(credentials=credentials)
        else:
            self.projects_client = compute_v1.ProjectsClient()
            self.addresses_client = compute_v1.AddressesClient()
            self.instances_client = compute_v1.InstancesClient()

    def list_service_projects(self, host_project: str) -> Set[str]:
        """
        Get the IDs of all service projects attached to a host project.

        Raises:
            ValueError: if host_project is empty
            ProjectEnumerationError: if the API call fails
        """
        if not host_project:
            raise ValueError("host project must not be empty")

        self.log.info(f"Looking for service projects in {host_project}")

        try:
            resources = self.projects_client.get_xpn_resources(project=host_project)
            projects = {resource.id for resource in resources}
        except Exception as e:
            self.log.error(f"Error getting service projects for {host_project}: {e}")
            raise ProjectEnumerationError(host_project, e) from e

        self.log.info(f"Found {len(projects)} service projects in {host_project}")
        return projects

    def fetch_project_snapshot(self, project: str) -> ProjectSnapshot:
        """
        Get the reserved addresses and instances of a project.

        The two lists are fetched independently. A failure in either is
        logged and leaves that field as None; this method does not raise.
        """
        self.log.info(f"Looking for instances and IPs in {project}")

        address_records = None
        try:
            address_records = self._list_addresses(project)
        except Exception as e:
            self.log.error(f"Error getting reserved IPs for {project}: {e}")

        instance_records = None
        try:
            instance_records = self._list_instances(project)
        except Exception as e:
            self.log.error(f"Error getting instances for {project}: {e}")

        return ProjectSnapshot(
            project=project,
            address_records=address_records,
            instance_records=instance_records,
        )

    def _list_addresses(self, project: str) -> Tuple[Any, ...]:
        """List reserved addresses across all regions of a project."""
        request = compute_v1.AggregatedListAddressesRequest(project=project)

        records = []
        # Pages are fetched lazily, so errors surface while iterating
        for scope, scoped_list in self.addresses_client.aggregated_list(request=request):
            records.extend(scoped_list.addresses or [])
        return tuple(records)

    def _list_instances(self, project: str) -> Tuple[Any, ...]:
        """List instances across all zones of a project."""
        request = compute_v1.AggregatedListInstancesRequest(project=project)

        records = []
        for scope, scoped_list in self.instances_client.aggregated_list(request=request):
            records.extend(scoped_list.instances or [])
        return tuple(records)


def load_credentials(key_file: Optional[str] = None):
    """
    Load credentials from a service account key file.

    Returns None without a key file, so the clients fall back to
    Application Default Credentials. A missing or malformed key file
    raises CredentialsError.
    """
    if not key_file:
        logger.info("Using GCP application default credentials")
        return None

    from google.oauth2 import service_account

    try:
        credentials = service_account.Credentials.from_service_account_file(key_file)
    except Exception as e:
        logger.error(f"Error loading service account key {key_file}: {e}")
        raise CredentialsError(key_file, e) from e
    logger.info(f"Using GCP service account from {key_file}")
    return credentials
