#!/usr/bin/env python3
"""
Shared VPC IP Report

Retrieves the IP addresses used in each subnet of a GCP Shared VPC and
writes one table per subnet.

Usage:
    shared-vpc-ip-report my-host-project
    shared-vpc-ip-report my-host-project --output-dir reports --format csv
    shared-vpc-ip-report my-host-project --key-file sa.json --dry-run
"""

import argparse
import sys
import time

from .base import VERSION, DEFAULT_FORMAT, DEFAULT_OUTPUT_DIR, ExitCode, InventoryError
from .exporters import get_exporter, write_all
from .gcp_client import GCPComputeClient, load_credentials
from .inventory import SharedVPCInventory
from .utils import logger, setup_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Report the IP addresses used by each subnet of a GCP Shared VPC",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Markdown report per subnet in the current directory
  %(prog)s my-host-project

  # CSV reports in ./reports, at most 10 projects scanned at once
  %(prog)s my-host-project --output-dir reports --format csv --parallel 10

  # List the attached service projects without scanning them
  %(prog)s my-host-project --dry-run

Authentication:
  Uses Application Default Credentials (GOOGLE_APPLICATION_CREDENTIALS or
  'gcloud auth application-default login') unless --key-file is given.
"""
    )

    parser.add_argument("host_project", help="Shared VPC host project ID")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--key-file", dest="key_file",
                        help="Path to a service account JSON key file")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help="Directory the subnet reports are written to (default: current directory)")
    parser.add_argument("--format", choices=["markdown", "csv"], default=DEFAULT_FORMAT,
                        help="Report format (default: markdown)")
    parser.add_argument("--parallel", type=int, default=None,
                        help="Max concurrent project scans (default: one per project)")
    parser.add_argument("--dry-run", action="store_true",
                        help="List the service projects and exit without scanning them")
    parser.add_argument("--quiet", action="store_true", help="Suppress the progress bar")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose debug logging")
    parser.add_argument("--log-file", help="Write logs to file")

    args = parser.parse_args(argv)

    if not args.host_project.strip():
        parser.error("host_project must not be empty")
    if args.parallel is not None and args.parallel < 1:
        parser.error("--parallel must be at least 1")

    return args


def run_inventory(args) -> ExitCode:
    """Collect, merge and write the reports for one host project."""
    credentials = load_credentials(args.key_file)
    client = GCPComputeClient(credentials=credentials)

    print(f"Shared VPC IP Report v{VERSION}")
    print(f"Host project: {args.host_project}")

    if args.dry_run:
        projects = client.list_service_projects(args.host_project)
        print(f"\n{len(projects)} service projects attached:")
        for i, project in enumerate(sorted(projects), 1):
            print(f"   {i:3}. {project}")
        return ExitCode.SUCCESS

    # Fail on an unknown format before any API call
    exporter = get_exporter(args.format)

    inventory = SharedVPCInventory(
        host_project=args.host_project,
        client=client,
        max_parallel=args.parallel,
        quiet=args.quiet
    )

    snapshots = inventory.aggregate()
    by_subnet = inventory.addresses_by_subnet(snapshots)
    written = write_all(by_subnet, args.output_dir, exporter)

    summary = inventory.summary(by_subnet, snapshots)
    print(f"\nScanned {summary['total_projects']} projects "
          f"({summary['complete_projects']} complete), "
          f"{summary['total_addresses']} addresses in {summary['total_subnets']} subnets")
    print(f"Wrote {len(written)} reports to {args.output_dir}")

    return ExitCode.SUCCESS


def main(argv=None):
    args = parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    start_time = time.time()
    exit_code = ExitCode.SUCCESS

    try:
        exit_code = run_inventory(args)
    except InventoryError as e:
        logger.error(str(e))
        print(f"\n❌ ERROR: {e}", file=sys.stderr)
        exit_code = ExitCode.ERROR
    except KeyboardInterrupt:
        print("\n\n⚠ Scan interrupted by user", file=sys.stderr)
        exit_code = ExitCode.INTERRUPTED
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"\n❌ ERROR: {e}", file=sys.stderr)
        exit_code = ExitCode.ERROR

    elapsed = time.time() - start_time
    logger.info(f"Took {elapsed:.2f} seconds")

    sys.exit(exit_code.value)


if __name__ == "__main__":
    main()
