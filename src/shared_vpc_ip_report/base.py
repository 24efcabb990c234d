#!/usr/bin/env python3
"""
Base Module for Shared VPC IP Report

Provides the constants, data models and exceptions shared by the
client, inventory and exporter modules.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple


# =============================================================================
# Constants
# =============================================================================

VERSION = "1.0.0"

# Column order of every subnet report
REPORT_HEADERS = ["IP", "GCP Project", "Status", "User"]

DEFAULT_OUTPUT_DIR = "."
DEFAULT_FORMAT = "markdown"


class ExitCode(Enum):
    """Standard exit codes for the report tool."""
    SUCCESS = 0
    ERROR = 2          # Fatal error (same code argparse uses for usage errors)
    INTERRUPTED = 130  # Ctrl+C (128 + SIGINT)


# =============================================================================
# Exceptions
# =============================================================================

class InventoryError(Exception):
    """Base class for errors that abort the whole run."""


class CredentialsError(InventoryError):
    """Service account key file could not be loaded."""

    def __init__(self, key_file: str, cause: Exception):
        self.key_file = key_file
        self.cause = cause
        super().__init__(f"Error loading credentials from {key_file}: {cause}")


class ProjectEnumerationError(InventoryError):
    """Raised when the service projects of a host project cannot be listed."""

    def __init__(self, host_project: str, cause: Exception):
        self.host_project = host_project
        self.cause = cause
        super().__init__(f"Error getting service projects for {host_project}: {cause}")


class ReportWriteError(InventoryError):
    """Raised when a subnet report cannot be written."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Error writing report {path}: {cause}")


# =============================================================================
# Data Models
# =============================================================================

@dataclass(frozen=True)
class ProjectSnapshot:
    """
    Raw collection result for one service project.

    ``address_records`` and ``instance_records`` hold the compute API
    objects returned for the project, flattened across regions/zones.
    Either is None when the corresponding fetch failed.
    """
    project: str
    address_records: Optional[Tuple[Any, ...]] = None
    instance_records: Optional[Tuple[Any, ...]] = None

    @property
    def complete(self) -> bool:
        """True if both fetches succeeded."""
        return self.address_records is not None and self.instance_records is not None


@dataclass
class AddressInfo:
    """The fields reported for a single IP address."""
    ip: str
    project: str = ""
    status: str = ""
    subnet: str = ""
    user: str = ""

    # ip is the key and never merged
    MERGED_FIELDS = ("project", "status", "subnet", "user")

    def fill_from(self, other: "AddressInfo") -> List[str]:
        """
        Copy values from ``other`` into fields that are still empty.

        Non-empty fields are never overwritten.

        Returns:
            Names of fields where ``other`` had a different non-empty
            value that was dropped.
        """
        conflicts = []
        for name in self.MERGED_FIELDS:
            current = getattr(self, name)
            candidate = getattr(other, name)
            if not current:
                setattr(self, name, candidate)
            elif candidate and candidate != current:
                conflicts.append(name)
        return conflicts

    def to_row(self) -> List[str]:
        """Return the values in REPORT_HEADERS order."""
        return [self.ip, self.project, self.status, self.user]
