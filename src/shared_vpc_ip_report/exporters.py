#!/usr/bin/env python3
"""
Exporters Module for Shared VPC IP Report

Writes one report per subnet. Supported formats:
- Markdown table (default)
- CSV

All exporters follow a common interface for consistency.
"""

import csv
import io
import os
from abc import ABC, abstractmethod
from typing import Dict, List

from tabulate import tabulate

from .base import REPORT_HEADERS, AddressInfo, ReportWriteError
from .utils import ip_sort_key, logger


class BaseExporter(ABC):
    """Abstract base class for all exporters."""

    @abstractmethod
    def render(self, subnet: str, address_infos: List[AddressInfo]) -> str:
        """Render the report of one subnet. Rows are already sorted."""
        pass

    @abstractmethod
    def get_extension(self) -> str:
        """Get the file extension for this format."""
        pass

    def export(self, subnet: str, address_infos: List[AddressInfo], output_path: str) -> None:
        """Write the rendered report to output_path."""
        content = self.render(subnet, address_infos)
        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            f.write(content)


class MarkdownExporter(BaseExporter):
    """Export a subnet as a heading followed by a GitHub-flavoured table."""

    def render(self, subnet: str, address_infos: List[AddressInfo]) -> str:
        table = tabulate(
            [info.to_row() for info in address_infos],
            headers=REPORT_HEADERS,
            tablefmt="github",
            disable_numparse=True,
        )
        return f"# Reserved IPs for {subnet}\n\n{table}\n"

    def get_extension(self) -> str:
        return ".md"


class CSVExporter(BaseExporter):
    """Export a subnet as CSV with a header row."""

    def render(self, subnet: str, address_infos: List[AddressInfo]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(REPORT_HEADERS)
        writer.writerows(info.to_row() for info in address_infos)
        return buffer.getvalue()

    def get_extension(self) -> str:
        return ".csv"


def get_exporter(format: str) -> BaseExporter:
    """
    Factory function to get the appropriate exporter.

    Args:
        format: Output format ('markdown', 'csv')

    Returns:
        Exporter instance
    """
    exporters = {
        'markdown': MarkdownExporter,
        'csv': CSVExporter,
    }

    if format not in exporters:
        raise ValueError(f"Unsupported format: {format}. Supported: {list(exporters.keys())}")

    return exporters[format]()


def sort_by_ip(address_infos: List[AddressInfo]) -> List[AddressInfo]:
    """Return the records in ascending numeric IP order."""
    return sorted(address_infos, key=lambda info: ip_sort_key(info.ip))


def report_path(subnet: str, output_dir: str, exporter: BaseExporter) -> str:
    """File the report of a subnet is written to."""
    return os.path.join(output_dir, subnet + exporter.get_extension())


def write_subnet_report(
    subnet: str,
    address_infos: List[AddressInfo],
    output_dir: str,
    exporter: BaseExporter
) -> str:
    """
    Sort one subnet's records by IP and write them to <subnet><ext>.

    Raises:
        ValueError: if subnet is empty
        ReportWriteError: if the file cannot be written
    """
    if not subnet:
        raise ValueError("cannot write a report for an empty subnet name")

    output_path = report_path(subnet, output_dir, exporter)
    try:
        exporter.export(subnet, sort_by_ip(address_infos), output_path)
    except OSError as e:
        raise ReportWriteError(output_path, e) from e

    logger.info(f"Writing to {output_path}")
    return output_path


def write_all(
    addresses_by_subnet: Dict[str, List[AddressInfo]],
    output_dir: str,
    exporter: BaseExporter
) -> List[str]:
    """
    Write one report per subnet, skipping records without a subnet.

    Returns:
        Paths of the written reports
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise ReportWriteError(output_dir, e) from e

    skipped = addresses_by_subnet.get("", [])
    if skipped:
        logger.info(f"Skipping {len(skipped)} addresses without a subnet")

    written = []
    for subnet in sorted(addresses_by_subnet):
        if subnet:
            written.append(write_subnet_report(subnet, addresses_by_subnet[subnet], output_dir, exporter))
    return written
