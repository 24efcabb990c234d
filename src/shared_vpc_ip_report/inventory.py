#!/usr/bin/env python3
"""
Shared VPC IP Inventory

Collects reserved addresses and instances from every service project
attached to a Shared VPC host project, merges them into one record per
IP address and groups the records by subnet.

The AddressList and InstanceList records come straight from the
compute_v1 aggregated list calls; only address, status, subnetwork and
users (addresses) and name and network_interfaces (instances) are read.
"""

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .base import AddressInfo, ProjectSnapshot
from .gcp_client import GCPComputeClient
from .utils import ProgressIndicator, get_name, logger


# =============================================================================
# Merging
# =============================================================================

def insert_address_info(
    address_info_map: Dict[str, AddressInfo],
    address_info: AddressInfo,
    log: logging.Logger = logger
) -> None:
    """
    Add an AddressInfo to a map keyed by IP address.

    If the IP is already present the existing entry has precedence: only
    its empty fields are filled from the new one. Differing values are
    dropped, which can leave a record holding fields contributed by
    different projects.
    """
    existing = address_info_map.get(address_info.ip)
    if existing is None:
        address_info_map[address_info.ip] = address_info
        return

    conflicts = existing.fill_from(address_info)
    for name in conflicts:
        log.debug(
            f"{address_info.ip}: keeping {name}={getattr(existing, name)!r} "
            f"(from {existing.project}), ignoring {getattr(address_info, name)!r} "
            f"from {address_info.project}"
        )


def _address_infos(snapshot: ProjectSnapshot, log: logging.Logger) -> Iterator[AddressInfo]:
    """Yield an AddressInfo for each reserved address of a snapshot."""
    for address in snapshot.address_records or ():
        if not address.address:
            log.debug(f"Skipping address without IP in {snapshot.project}")
            continue

        # users is empty when the address is RESERVED but not IN_USE
        user = get_name(address.users[0]) if address.users else ""

        yield AddressInfo(
            ip=address.address,
            project=snapshot.project,
            status=address.status or "",
            subnet=get_name(address.subnetwork or ""),
            user=user,
        )


def _instance_infos(snapshot: ProjectSnapshot, log: logging.Logger) -> Iterator[AddressInfo]:
    """Yield an AddressInfo for the primary interface of each instance."""
    for instance in snapshot.instance_records or ():
        if not instance.network_interfaces:
            log.debug(f"Skipping instance {instance.name} without network interfaces in {snapshot.project}")
            continue

        nic = instance.network_interfaces[0]
        if not nic.network_i_p:
            log.debug(f"Skipping instance {instance.name} without internal IP in {snapshot.project}")
            continue

        yield AddressInfo(
            ip=nic.network_i_p,
            project=snapshot.project,
            subnet=get_name(nic.subnetwork or ""),
            user=instance.name,
        )


def flatten(
    snapshots: Iterable[ProjectSnapshot],
    log: logging.Logger = logger
) -> Dict[str, AddressInfo]:
    """
    Merge the records of all snapshots into one AddressInfo per IP.

    Snapshots are processed in the order given, and within a snapshot
    addresses come before instances. That order decides which record
    wins when an IP is seen more than once.
    """
    address_info_map: Dict[str, AddressInfo] = {}

    for snapshot in snapshots:
        if not snapshot.address_records:
            log.info(f"{snapshot.project} has no reserved addresses")
        for address_info in _address_infos(snapshot, log):
            insert_address_info(address_info_map, address_info, log)

        if not snapshot.instance_records:
            log.info(f"{snapshot.project} has no instances")
        for address_info in _instance_infos(snapshot, log):
            insert_address_info(address_info_map, address_info, log)

    return address_info_map


# =============================================================================
# Grouping
# =============================================================================

def group_by_subnet(address_info_map: Dict[str, AddressInfo]) -> Dict[str, List[AddressInfo]]:
    """
    Re-organize merged records by subnet name.

    Records without a subnet are kept under the "" key.
    """
    by_subnet: Dict[str, List[AddressInfo]] = defaultdict(list)
    for address_info in address_info_map.values():
        by_subnet[address_info.subnet].append(address_info)
    return dict(by_subnet)


# =============================================================================
# Aggregation
# =============================================================================

class SharedVPCInventory:
    """
    Collects address data from all service projects of a host project.

    Attributes:
        host_project: Shared VPC host project ID
        snapshots: Snapshots gathered by the last aggregate() call
    """

    def __init__(self, host_project: str, client: GCPComputeClient,
                 max_parallel: Optional[int] = None, quiet: bool = False,
                 log: logging.Logger = logger):
        """
        Initialize the inventory.

        Args:
            host_project: Shared VPC host project ID
            client: Compute client used for every API call
            max_parallel: Maximum concurrent project scans (None = one per project)
            quiet: Suppress progress output
            log: Logger for progress and error messages
        """
        self.host_project = host_project
        self.client = client
        self.max_parallel = max_parallel
        self.quiet = quiet
        self.log = log

        self.snapshots: List[ProjectSnapshot] = []

    def aggregate(self) -> List[ProjectSnapshot]:
        """
        Fetch a snapshot of every service project concurrently.

        Snapshots are returned in completion order. Failing to list the
        service projects raises ProjectEnumerationError; per-project
        failures only leave fields of that project's snapshot empty.
        """
        projects = self.client.list_service_projects(self.host_project)

        snapshots: List[ProjectSnapshot] = []
        if not projects:
            self.log.warning(f"No service projects attached to {self.host_project}")
            self.snapshots = snapshots
            return snapshots

        num_workers = min(self.max_parallel or len(projects), len(projects))
        progress = ProgressIndicator(len(projects), "Scanning projects", self.quiet)

        executor = ThreadPoolExecutor(max_workers=num_workers)
        interrupted = False
        try:
            futures = {
                executor.submit(self.client.fetch_project_snapshot, project): project
                for project in projects
            }

            for future in as_completed(futures):
                project = futures[future]
                try:
                    snapshot = future.result()
                except Exception as e:
                    self.log.error(f"Error scanning project {project}: {e}")
                    progress.update(project, "error")
                    continue

                if snapshot is not None:
                    snapshots.append(snapshot)
                progress.update(project, "done" if snapshot and snapshot.complete else "partial")
        except KeyboardInterrupt:
            interrupted = True
            self.log.warning("Scan interrupted, cancelling pending projects")
            raise
        finally:
            # Pending scans are dropped on interrupt; in-flight calls are not awaited
            executor.shutdown(wait=not interrupted, cancel_futures=interrupted)

        progress.finish()

        partial = len(projects) - progress.count("done")
        if partial:
            self.log.warning(f"{partial} of {len(projects)} projects returned incomplete data")

        self.snapshots = snapshots
        return snapshots

    def addresses_by_subnet(self, snapshots: Optional[List[ProjectSnapshot]] = None) -> Dict[str, List[AddressInfo]]:
        """
        Merge snapshots and group the result by subnet.

        Snapshots are sorted by project ID first, so when the same IP
        appears in several projects the lowest project ID is recorded.
        """
        if snapshots is None:
            snapshots = self.snapshots

        ordered = sorted(snapshots, key=lambda s: s.project)
        address_info_map = flatten(ordered, self.log)
        self.log.info(f"Found {len(address_info_map)} IP addresses across {len(ordered)} projects")
        return group_by_subnet(address_info_map)

    def summary(self, by_subnet: Dict[str, List[AddressInfo]],
                snapshots: Optional[List[ProjectSnapshot]] = None) -> Dict[str, Any]:
        """
        Counts for the final log line.

        Pass the same snapshots that produced by_subnet; without them the
        project counts describe the last aggregate() result.
        """
        if snapshots is None:
            snapshots = self.snapshots

        return {
            "total_projects": len(snapshots),
            "complete_projects": sum(1 for s in snapshots if s.complete),
            "total_subnets": len([s for s in by_subnet if s]),
            "total_addresses": sum(len(infos) for infos in by_subnet.values()),
            "unassigned_addresses": len(by_subnet.get("", [])),
        }
