#!/usr/bin/env python3
"""
Utilities Module for Shared VPC IP Report

Provides common utility functions and classes:
- Logging setup
- Progress indicator for the per-project scan
- Self-link and IP address helpers
"""

import sys
import time
import logging
import threading
import ipaddress
from typing import Dict, Optional, Tuple


# =============================================================================
# Logging
# =============================================================================

logger = logging.getLogger('shared_vpc_ip_report')


def setup_logging(verbose: bool = False, log_file: Optional[str] = None, name: str = 'shared_vpc_ip_report'):
    """
    Configure logging based on verbosity level.

    Args:
        verbose: Enable debug-level logging
        log_file: Optional file path for logging
        name: Logger name
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log = logging.getLogger(name)
    log.setLevel(logging.DEBUG if log_file else level)

    # Remove existing handlers
    log.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    log.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)
        log.info(f"Logging to file: {log_file}")

    return log


# =============================================================================
# Progress Indicators
# =============================================================================

class ProgressIndicator:
    """
    Thread-safe progress indicator with visual progress bar.

    Updated from the collecting loop as each project scan completes.
    """

    def __init__(self, total: int, description: str = "Progress", quiet: bool = False):
        """
        Initialize progress indicator.

        Args:
            total: Total number of items
            description: Description prefix
            quiet: Suppress output
        """
        self.total = total
        self.description = description
        self.quiet = quiet
        self.completed = 0
        self.lock = threading.Lock()
        self.start_time = time.time()
        self.item_status: Dict[str, str] = {}

    def update(self, item: str, status: str = "done"):
        """
        Update progress after completing an item.

        Args:
            item: Item identifier (e.g., project ID)
            status: Status string (e.g., "done", "partial", "error")
        """
        with self.lock:
            self.completed += 1
            self.item_status[item] = status
            if not self.quiet:
                self._print_progress(item)

    def _print_progress(self, item: str):
        """Print progress bar to stderr."""
        pct = (self.completed / self.total) * 100 if self.total > 0 else 0
        elapsed = time.time() - self.start_time

        bar_len = 30
        filled = int(bar_len * self.completed / self.total) if self.total > 0 else 0
        bar = '█' * filled + '░' * (bar_len - filled)

        sys.stderr.write(f"\r  {self.description} [{bar}] {self.completed}/{self.total} ({pct:.0f}%) - {item} ({elapsed:.1f}s)")
        sys.stderr.flush()

        if self.completed == self.total:
            sys.stderr.write("\n")

    def count(self, status: str) -> int:
        """Number of items that finished with the given status."""
        with self.lock:
            return sum(1 for s in self.item_status.values() if s == status)

    def finish(self):
        """Finalize progress indicator."""
        elapsed = time.time() - self.start_time
        if not self.quiet:
            sys.stderr.write(f"\r{' ' * 80}\r")  # Clear line
            print(f"  ✓ Completed {self.completed}/{self.total} in {elapsed:.1f}s", file=sys.stderr)


# =============================================================================
# Resource Name / IP Utilities
# =============================================================================

def get_name(self_link: str, delimiter: str = "/") -> str:
    """
    Extract the resource name from a self-link.

    "https://www.googleapis.com/compute/v1/projects/p/regions/r/subnetworks/sub1"
    becomes "sub1". Strings without a delimiter are returned unchanged.
    """
    return self_link.split(delimiter)[-1]


# IPv4 addresses are ordered as IPv4-mapped IPv6 (::ffff:a.b.c.d)
_IPV4_MAPPED_PREFIX = 0xFFFF << 32


def ip_sort_key(ip: str) -> Tuple[int, int]:
    """
    Sort key ordering addresses by numeric value.

    IPv4 and IPv6 share one 128-bit space; strings that do not parse
    as an address sort before every valid one.
    """
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return (0, 0)

    if address.version == 4:
        return (1, _IPV4_MAPPED_PREFIX | int(address))
    return (1, int(address))
