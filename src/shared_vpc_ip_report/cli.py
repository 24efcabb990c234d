#!/usr/bin/env python3
"""
Shared VPC IP Report CLI Module

This module provides the command-line interface entry point for the
shared-vpc-ip-report package when installed via pip.
"""

from shared_vpc_ip_report.main import main

if __name__ == "__main__":
    main()
