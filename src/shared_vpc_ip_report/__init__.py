"""
Shared VPC IP Report

Inventories IP address usage across a GCP Shared VPC: lists the service
projects attached to a host project, collects their reserved addresses
and instances concurrently, merges them into one record per IP and
writes a table per subnet.

Example:
    >>> from shared_vpc_ip_report import GCPComputeClient, SharedVPCInventory
    >>> from shared_vpc_ip_report import MarkdownExporter, write_all
    >>> inventory = SharedVPCInventory("host-project", GCPComputeClient())
    >>> inventory.aggregate()
    >>> write_all(inventory.addresses_by_subnet(), "reports", MarkdownExporter())
"""

# Import version from base module for single source of truth
from shared_vpc_ip_report.base import VERSION

__version__ = VERSION

from shared_vpc_ip_report.base import (
    ExitCode,
    InventoryError,
    CredentialsError,
    ProjectEnumerationError,
    ReportWriteError,
    ProjectSnapshot,
    AddressInfo,
)
from shared_vpc_ip_report.utils import (
    setup_logging,
    logger,
    get_name,
    ip_sort_key,
)
from shared_vpc_ip_report.gcp_client import GCPComputeClient, load_credentials
from shared_vpc_ip_report.inventory import (
    SharedVPCInventory,
    insert_address_info,
    flatten,
    group_by_subnet,
)
from shared_vpc_ip_report.exporters import (
    MarkdownExporter,
    CSVExporter,
    get_exporter,
    sort_by_ip,
    write_subnet_report,
    write_all,
)

__all__ = [
    "__version__",

    # Errors
    "ExitCode",
    "InventoryError",
    "CredentialsError",
    "ProjectEnumerationError",
    "ReportWriteError",

    # Data models
    "ProjectSnapshot",
    "AddressInfo",

    # Collection and merging
    "GCPComputeClient",
    "load_credentials",
    "SharedVPCInventory",
    "insert_address_info",
    "flatten",
    "group_by_subnet",

    # Reports
    "MarkdownExporter",
    "CSVExporter",
    "get_exporter",
    "sort_by_ip",
    "write_subnet_report",
    "write_all",

    # Utilities
    "setup_logging",
    "logger",
    "get_name",
    "ip_sort_key",
]
