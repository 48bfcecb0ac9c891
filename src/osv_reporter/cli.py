# osv_reporter/cli.py

import argparse
import os
import logging
from argparse import RawTextHelpFormatter

from .api.depsdev_api import DEFAULT_MAX_WORKERS, DEFAULT_TIMEOUT, DEPSDEV_API_URL
from .exceptions import ValidationError
from .reporter import formats

logger = logging.getLogger(__name__)


# --- Helper functions for common arguments ---
def add_common_input_options(subparser):
    subparser.add_argument("results", help="Results document to read (JSON, as produced by the scanner). Use '-' for stdin.", metavar="RESULTS")
    subparser.add_argument("--output", help="Write the report to this file instead of stdout.", metavar="PATH")


def add_license_options(subparser):
    license_args = subparser.add_argument_group("License Options")
    license_args.add_argument(
        "--licenses",
        help="Look up package licenses.\n"
             "  Without values: show a summary of license counts.\n"
             "  With values:    report licenses outside this allow-list (SPDX ids).",
        nargs="*",
        default=None,
        metavar="LICENSE"
    )
    license_args.add_argument(
        "--license-api-url",
        help="Base URL of the license insight service. Overrides OSV_REPORTER_LICENSE_API env var.",
        default=os.getenv("OSV_REPORTER_LICENSE_API", DEPSDEV_API_URL),
        metavar="URL"
    )
    license_args.add_argument(
        "--license-timeout",
        help=f"Seconds allowed for all license lookups together (Default: {DEFAULT_TIMEOUT}). "
             "Overrides OSV_REPORTER_LICENSE_TIMEOUT env var.",
        type=float,
        default=os.getenv("OSV_REPORTER_LICENSE_TIMEOUT", str(DEFAULT_TIMEOUT)),
        metavar="SECONDS"
    )
    license_args.add_argument("--max-workers", help=f"Concurrent license lookups (Default: {DEFAULT_MAX_WORKERS})", type=int, default=DEFAULT_MAX_WORKERS)


# --- Main Parsing Function ---
def parse_cmdline_args(argv=None):
    """
    Parse command line arguments.

    Args:
        argv: Argument list to parse (Default: sys.argv[1:])

    Returns:
        argparse.Namespace: Parsed command line arguments

    Raises:
        ValidationError: If arguments are invalid
    """
    parser = argparse.ArgumentParser(
        prog="osv-reporter",
        description="OSV Reporter - group, enrich and report vulnerability scan results.",
        formatter_class=RawTextHelpFormatter,
        epilog="""
Environment Variables:
  OSV_REPORTER_LICENSE_API     : License insight service URL (Default: https://api.deps.dev/v3)
  OSV_REPORTER_LICENSE_TIMEOUT : Deadline in seconds for all license lookups (Default: 60)

Exit Codes:
  0   : no vulnerabilities found
  1   : vulnerabilities found
  127 : an error was printed
  128 : no package sources found

Example Usage:
  # Render scan results as a table
  osv-reporter report results.json

  # Markdown report with a license summary
  osv-reporter report results.json --format markdown --licenses

  # Enforce a license allow-list and write SARIF
  osv-reporter report results.json --format sarif --output results.sarif --licenses MIT Apache-2.0

  # One JSON object per vulnerability
  osv-reporter flatten results.json --output flat.json
"""
    )

    # --- Global Arguments (apply to all subcommands) ---
    global_args = parser.add_argument_group("Global Arguments")
    global_args.add_argument(
        "--log",
        help="Logging level (Default: WARNING)",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )

    # --- Subparsers ---
    subparsers = parser.add_subparsers(dest='command', help='Available commands', required=True, metavar='COMMAND')

    # --- 'report' Subcommand ---
    report_parser = subparsers.add_parser(
        'report',
        help='Render scan results as a table, Markdown, JSON or SARIF.',
        description='Group vulnerabilities by alias, resolve severities, optionally look up licenses, and render the report.',
        formatter_class=RawTextHelpFormatter
    )
    add_common_input_options(report_parser)
    report_parser.add_argument(
        "--format",
        help="Output format (Default: table)",
        choices=formats(),
        default="table",
    )
    report_parser.add_argument("--all-packages", help="Keep packages without vulnerabilities in the output.", action="store_true", default=False)
    add_license_options(report_parser)

    # --- 'flatten' Subcommand ---
    flatten_parser = subparsers.add_parser(
        'flatten',
        help='Write one JSON object per vulnerability.',
        description='Flatten the nested results into (source, package, vulnerability, group) rows.',
        formatter_class=RawTextHelpFormatter
    )
    add_common_input_options(flatten_parser)

    # --- Validate args after parsing ---
    args = parser.parse_args(argv)

    if args.command == 'report':
        if args.max_workers < 1:
            raise ValidationError("--max-workers must be at least 1")
        if args.license_timeout <= 0:
            raise ValidationError("--license-timeout must be greater than 0")
    return args
