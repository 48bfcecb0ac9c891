"""
Reporters: write a finished VulnerabilityResults in one output format.

All reporters share the row building in ``table_output`` so the content is the
same in every format; only the layout differs.
"""

import json
import logging
from typing import List, TextIO

from ..exceptions import ConfigurationError
from ..models import VulnerabilityResults
from .sarif_output import convert_results_to_sarif
from .table_output import print_table_results

logger = logging.getLogger(__name__)


class Reporter:
    """
    Base reporter.

    Errors always go to *stderr*. Informational text goes to *stdout* for
    human formats and to *stderr* for machine formats, so redirected output
    stays parseable.
    """

    machine_readable = False

    def __init__(self, stdout: TextIO, stderr: TextIO):
        self.stdout = stdout
        self.stderr = stderr
        self._has_printed_error = False

    def print_error(self, msg: str) -> None:
        self.stderr.write(msg)
        self._has_printed_error = True

    def has_printed_error(self) -> bool:
        return self._has_printed_error

    def print_text(self, msg: str) -> None:
        target = self.stderr if self.machine_readable else self.stdout
        target.write(msg)

    def print_result(self, results: VulnerabilityResults) -> None:
        raise NotImplementedError


class TableReporter(Reporter):

    def __init__(self, stdout: TextIO, stderr: TextIO, markdown: bool = False, terminal_width: int = 0):
        super().__init__(stdout, stderr)
        self.markdown = markdown
        self.terminal_width = terminal_width

    def print_result(self, results: VulnerabilityResults) -> None:
        if not results.results:
            self.print_text("No issues found\n")
            return
        if not print_table_results(results, self.stdout, self.terminal_width, self.markdown):
            self.print_text("No issues found\n")


class MarkdownReporter(TableReporter):
    """Table layout as a Markdown table, for pull request comments."""

    def __init__(self, stdout: TextIO, stderr: TextIO, terminal_width: int = 0):
        super().__init__(stdout, stderr, markdown=True, terminal_width=terminal_width)


class JSONReporter(Reporter):
    machine_readable = True

    def print_result(self, results: VulnerabilityResults) -> None:
        json.dump(results.to_dict(), self.stdout, indent=2, ensure_ascii=False)
        self.stdout.write("\n")


class SARIFReporter(Reporter):
    machine_readable = True

    def print_result(self, results: VulnerabilityResults) -> None:
        json.dump(convert_results_to_sarif(results), self.stdout, indent=2, ensure_ascii=False)
        self.stdout.write("\n")


FORMATS = ["table", "json", "markdown", "sarif"]


def formats() -> List[str]:
    return list(FORMATS)


def new_reporter(output_format: str, stdout: TextIO, stderr: TextIO, terminal_width: int = 0) -> Reporter:
    """
    Create the reporter for *output_format*.

    Raises:
        ConfigurationError: If the format is not supported.
    """
    if output_format == "table":
        return TableReporter(stdout, stderr, markdown=False, terminal_width=terminal_width)
    if output_format == "markdown":
        return MarkdownReporter(stdout, stderr, terminal_width=terminal_width)
    if output_format == "json":
        return JSONReporter(stdout, stderr)
    if output_format == "sarif":
        return SARIFReporter(stdout, stderr)
    raise ConfigurationError(
        f'unsupported output format "{output_format}" - must be one of: {", ".join(FORMATS)}',
        details={"format": output_format},
    )
