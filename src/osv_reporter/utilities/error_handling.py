"""
Error handling utilities for the OSV reporter CLI.

This module contains functions for standardized error handling and formatting
across all CLI handlers.
"""

import logging
import argparse
import functools
from typing import Callable, TYPE_CHECKING

from ..exceptions import (
    OsvReporterError,
    ConfigurationError,
    FileSystemError,
    LicenseNotFoundError,
    LicenseServiceError,
    ModelInvariantError,
    NoPackageSourcesError,
    ValidationError,
)

if TYPE_CHECKING:
    from ..reporter import Reporter

logger = logging.getLogger("osv-reporter")


def format_and_print_error(error: Exception, handler_name: str, params: argparse.Namespace,
                           reporter: "Reporter") -> None:
    """
    Formats and prints a standardized error message for CLI users.

    Args:
        error: The exception that occurred
        handler_name: Name of the handler where the error occurred
        params: Command line parameters
        reporter: Reporter whose error stream receives the message
    """
    command = getattr(params, 'command', 'unknown')
    error_message = getattr(error, 'message', str(error))
    error_details = getattr(error, 'details', {}) or {}

    if isinstance(error, NoPackageSourcesError):
        reporter.print_error("No package sources found, --help for usage information.\n")

    elif isinstance(error, LicenseNotFoundError):
        reporter.print_error(f"License lookup incomplete: {error_message}\n")
        reporter.print_error("  → Packages unknown to the license service are reported as UNKNOWN\n")

    elif isinstance(error, LicenseServiceError):
        reporter.print_error(f"License lookup failed: {error_message}\n")
        if error.code == "deadline_exceeded":
            reporter.print_error("  → Consider increasing --license-timeout\n")
        else:
            reporter.print_error(f"  → Check that the license service is reachable: "
                                 f"{getattr(params, 'license_api_url', None) or '<default>'}\n")
        reporter.print_error("  → Vulnerability results are reported without license data\n")

    elif isinstance(error, FileSystemError):
        reporter.print_error(f"File system error: {error_message}\n")
        path = error_details.get("path")
        if path:
            reporter.print_error(f"  → Path: {path}\n")

    elif isinstance(error, ValidationError):
        reporter.print_error(f"Validation error: {error_message}\n")
        if error_details.get("path"):
            reporter.print_error("  → The input must be the JSON output of a scan ({\"results\": [...]})\n")

    elif isinstance(error, ConfigurationError):
        reporter.print_error(f"Invalid configuration: {error_message}\n")

    elif isinstance(error, ModelInvariantError):
        reporter.print_error(f"Internal error while processing results: {error_message}\n")
        reporter.print_error("  → The scan results were built incorrectly; please report this\n")

    else:
        reporter.print_error(f"Error executing '{command}' command: {error_message}\n")

    logger.debug("Error in %s: %s (%s)", handler_name, error_message, type(error).__name__)


def handler_error_wrapper(handler_func: Callable) -> Callable:
    """
    A decorator that wraps handler functions with standardized error handling.

    Expected errors are formatted for the user and re-raised so ``main`` can
    pick the exit code; anything else is wrapped in an OsvReporterError.

    Example:
        @handler_error_wrapper
        def handle_report(params, reporter):
            ...
    """
    @functools.wraps(handler_func)
    def wrapper(params, reporter):
        try:
            command_name = params.command if hasattr(params, 'command') else 'unknown'
            logger.debug(f"Starting {handler_func.__name__} for command '{command_name}'")
            return handler_func(params, reporter)

        except OsvReporterError as e:
            format_and_print_error(e, handler_func.__name__, params, reporter)
            raise

        except Exception as e:
            logger.error(f"Unexpected error in {handler_func.__name__}: {e}", exc_info=True)
            cli_error = OsvReporterError(
                f"Failed to execute {params.command if hasattr(params, 'command') else 'command'}: {str(e)}",
                details={"error": str(e), "handler": handler_func.__name__}
            )
            format_and_print_error(cli_error, handler_func.__name__, params, reporter)
            raise cli_error from e

    return wrapper
