# osv_reporter/main.py

import sys
import shutil
import argparse
import logging
from typing import List, Optional, TextIO

from .cli import parse_cmdline_args
from .exceptions import OsvReporterError, NoPackageSourcesError
from .handlers import handle_flatten, handle_report
from .reporter import Reporter, TableReporter, new_reporter
from .utilities.error_handling import format_and_print_error
from .utilities.results_io import open_output

LOG_FILE = "osv-reporter-log.txt"

EXIT_OK = 0
EXIT_VULNERABILITIES_FOUND = 1
EXIT_PRINTED_ERROR = 127
EXIT_NO_PACKAGE_SOURCES = 128

COMMAND_HANDLERS = {
    "report": handle_report,
    "flatten": handle_flatten,
}


def setup_logging(level_name: str, stderr: TextIO) -> logging.Logger:
    log_level = getattr(logging, level_name.upper(), logging.WARNING)
    # Configure file handler (overwrite mode) and stream handler
    logging.basicConfig(level=log_level,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                        handlers=[logging.FileHandler(LOG_FILE, mode='w')],
                        force=True)

    # Console output goes to stderr; stdout carries the report.
    console_handler = logging.StreamHandler(stderr)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    console_handler.setLevel(log_level)
    logging.getLogger().addHandler(console_handler)
    return logging.getLogger("osv-reporter")


def terminal_width(stream: TextIO) -> int:
    """Width of the terminal behind *stream*, or 0 when it is not a terminal."""
    try:
        if not stream.isatty():
            return 0
    except (AttributeError, ValueError):
        return 0
    return shutil.get_terminal_size().columns


def main(argv: Optional[List[str]] = None, stdout: Optional[TextIO] = None,
         stderr: Optional[TextIO] = None) -> int:
    """
    Parse arguments, set up logging, and dispatch to the command handler.

    Returns an exit code: 0 when no vulnerabilities were found, 1 when some
    were, 128 when the input had no package sources and 127 when any other
    error was printed.
    """
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr
    params: Optional[argparse.Namespace] = None
    reporter: Optional[Reporter] = None
    output_file = None
    logger = None
    exit_code = EXIT_OK

    try:
        params = parse_cmdline_args(argv)
        logger = setup_logging(params.log, stderr)
        logger.debug("Parsed parameters: %s", params)

        if params.output:
            output_file = open_output(params.output)
        out = output_file if output_file is not None else stdout
        width = 0 if output_file is not None else terminal_width(stdout)

        reporter = new_reporter(getattr(params, 'format', 'json'), out, stderr, terminal_width=width)

        # --- Command Dispatch ---
        handler = COMMAND_HANDLERS[params.command]
        results = handler(params, reporter)  # Handlers raise exceptions on failure

        if params.command == 'report' and results.vulnerability_count() > 0:
            exit_code = EXIT_VULNERABILITIES_FOUND

    # --- Unified Exception Handling ---
    except NoPackageSourcesError as e:
        if reporter is None:
            reporter = TableReporter(stdout, stderr)
            format_and_print_error(e, "main", params or argparse.Namespace(command="unknown"), reporter)
        if logger: logger.info("%s: %s", type(e).__name__, e.message)
        return EXIT_NO_PACKAGE_SOURCES
    except OsvReporterError as e:
        if reporter is None or not reporter.has_printed_error():
            reporter = reporter or TableReporter(stdout, stderr)
            format_and_print_error(e, "main", params or argparse.Namespace(command="unknown"), reporter)
        if logger: logger.error("%s: %s", type(e).__name__, e.message, exc_info=True)
        return EXIT_PRINTED_ERROR
    except Exception as e:
        reporter = reporter or TableReporter(stdout, stderr)
        reporter.print_error(f"Unexpected error: {e}\n")
        if logger: logger.critical("Unexpected error occurred", exc_info=True)
        return EXIT_PRINTED_ERROR
    finally:
        if output_file is not None:
            output_file.close()

    # Vulnerabilities take precedence over a printed license lookup error.
    if exit_code == EXIT_OK and reporter.has_printed_error():
        exit_code = EXIT_PRINTED_ERROR
    if logger: logger.info("Finished with exit code %d", exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
