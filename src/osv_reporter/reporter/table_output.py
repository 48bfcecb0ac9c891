"""
Row building and table rendering shared by the table, Markdown and SARIF reports.

Rows are built in two passes over the results: first every called group, then
every uncalled one. Within a pass the order is source, package, group as
stored, so reports are deterministic for deterministic input.
"""

import io
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Sequence, TextIO

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..models import SourceInfo, VulnerabilityResults
from ..utilities.license_policy import license_summary
from ..utilities.severity import format_severity, max_severity

logger = logging.getLogger(__name__)

BASE_VULNERABILITY_URL = "https://osv.dev/"
VULN_HEADERS = ["OSV URL", "CVSS", "Ecosystem", "Package", "Version", "Source"]
LICENSE_SUMMARY_HEADERS = ["License", "No. of package versions"]
LICENSE_VIOLATION_HEADERS = ["License Violation", "Ecosystem", "Package", "Version", "Source"]
UNCALLED_DIVIDER = "Uncalled vulnerabilities"


@dataclass
class VulnRow:
    """One alias group rendered as a report row."""
    vuln_ids: List[str]
    severity: str
    ecosystem: str
    package: str
    version: str
    source_path: str
    source: SourceInfo
    # Identical adjacent cells in this row may be drawn as one cell.
    should_merge: bool = False

    def cells(self) -> List[str]:
        return [
            "\n".join(BASE_VULNERABILITY_URL + vuln_id for vuln_id in self.vuln_ids),
            self.severity,
            self.ecosystem,
            self.package,
            self.version,
            self.source_path,
        ]


def simplify_path(path: str, working_dir: Optional[str] = None) -> str:
    """Return *path* relative to the working directory, or unchanged when that fails."""
    try:
        base = working_dir if working_dir is not None else os.getcwd()
        return os.path.relpath(path, base)
    except (OSError, ValueError) as e:
        logger.debug("Keeping original path %s: %s", path, e)
        return path


def build_vuln_rows(results: VulnerabilityResults, called: bool,
                    working_dir: Optional[str] = None) -> List[VulnRow]:
    """Build one row per group whose called state equals *called*."""
    rows = []
    for source_result in results.results:
        source = source_result.source
        source_path = simplify_path(source.path, working_dir)
        for pkg in source_result.packages:
            for group in pkg.groups:
                if group.is_called() != called:
                    continue
                severity = format_severity(max_severity(group, pkg))
                if pkg.package.ecosystem == "GIT":
                    row = VulnRow(list(group.ids), severity, "GIT", pkg.package.version, pkg.package.version,
                                  source_path, source, should_merge=True)
                else:
                    row = VulnRow(list(group.ids), severity, pkg.package.ecosystem, pkg.package.name,
                                  pkg.package.version, source_path, source)
                rows.append(row)
    return rows


def build_license_violation_rows(results: VulnerabilityResults,
                                 working_dir: Optional[str] = None) -> List[List[str]]:
    rows = []
    for source, pkg in results.iter_packages():
        if not pkg.license_violations:
            continue
        rows.append([
            ", ".join(pkg.license_violations),
            pkg.package.ecosystem,
            pkg.package.name,
            pkg.package.version,
            simplify_path(source.path, working_dir),
        ])
    return rows


def build_license_rows(results: VulnerabilityResults, working_dir: Optional[str] = None) -> List[List[str]]:
    """
    Rows of the license table: violations when an allow-list is set, otherwise counts.

    Returns an empty list when license checking produced nothing to show.
    """
    if results.experimental_config.licenses.allowlist:
        return build_license_violation_rows(results, working_dir)
    return [[license_id, str(count)] for license_id, count in license_summary(results)]


def license_headers(results: VulnerabilityResults) -> List[str]:
    if results.experimental_config.licenses.allowlist:
        return LICENSE_VIOLATION_HEADERS
    return LICENSE_SUMMARY_HEADERS


class TableRenderer:
    """
    Renders rows with rich.

    ``terminal_width > 0`` means the output is a terminal: rounded borders,
    alternating row shading, bold ids and rows wrapped to the width. Otherwise
    plain ASCII is produced. ``markdown`` switches to a Markdown table.
    """

    def __init__(self, terminal_width: int = 0, markdown: bool = False):
        self.terminal_width = terminal_width
        self.markdown = markdown
        self.styled = terminal_width > 0 and not markdown

    def _new_table(self, headers: Sequence[str]) -> Table:
        if self.markdown:
            table_box = box.MARKDOWN
        elif self.styled:
            table_box = box.ROUNDED
        else:
            table_box = box.ASCII
        table = Table(
            box=table_box,
            show_header=True,
            header_style="bold" if self.styled else "",
            row_styles=["on grey15", "on grey0"] if self.styled else None,
            safe_box=not self.styled,
        )
        for header in headers:
            table.add_column(header, overflow="fold")
        return table

    def _vuln_cell(self, row: VulnRow):
        if self.markdown:
            return "<br/>".join(BASE_VULNERABILITY_URL + vuln_id for vuln_id in row.vuln_ids)
        if self.styled:
            return Text("\n").join(
                Text.assemble(BASE_VULNERABILITY_URL, (vuln_id, "bold")) for vuln_id in row.vuln_ids
            )
        return row.cells()[0]

    def _row_cells(self, row: VulnRow) -> list:
        cells = [self._vuln_cell(row)] + row.cells()[1:]
        if row.should_merge:
            # Horizontal merge: repeated adjacent values are drawn once.
            for i in range(len(cells) - 1, 0, -1):
                if isinstance(cells[i], str) and cells[i] and cells[i] == cells[i - 1]:
                    cells[i] = ""
        return cells

    def vulnerability_table(self, called_rows: List[VulnRow], uncalled_rows: List[VulnRow]) -> Optional[Table]:
        if not called_rows and not uncalled_rows:
            return None
        table = self._new_table(VULN_HEADERS)
        for row in called_rows:
            table.add_row(*self._row_cells(row))
        if uncalled_rows:
            if not self.markdown and called_rows:
                table.add_section()
            table.add_row(UNCALLED_DIVIDER, *([""] * (len(VULN_HEADERS) - 1)),
                          end_section=not self.markdown)
            for row in uncalled_rows:
                table.add_row(*self._row_cells(row))
        return table

    def simple_table(self, headers: Sequence[str], rows: List[List[str]]) -> Optional[Table]:
        if not rows:
            return None
        table = self._new_table(headers)
        for row in rows:
            table.add_row(*row)
        return table

    def render(self, table: Table, output: TextIO) -> None:
        output.write(self.render_to_string(table))

    def render_to_string(self, table: Table) -> str:
        buffer = io.StringIO()
        console = Console(
            file=buffer,
            width=self.terminal_width if self.styled else 10000,
            force_terminal=self.styled,
            color_system="standard" if self.styled else None,
            markup=False,
            emoji=False,
            highlight=False,
            legacy_windows=False,
        )
        console.print(table)
        lines = [line.rstrip() for line in buffer.getvalue().splitlines()]
        return "".join(line + "\n" for line in lines if line.strip())


def print_table_results(results: VulnerabilityResults, output: TextIO, terminal_width: int = 0,
                        markdown: bool = False, working_dir: Optional[str] = None) -> bool:
    """
    Write the vulnerability table followed by the license table.

    Either table is left out entirely when it has no rows.

    Returns:
        bool: True if anything was written.
    """
    renderer = TableRenderer(terminal_width=terminal_width, markdown=markdown)
    wrote = False

    vuln_table = renderer.vulnerability_table(
        build_vuln_rows(results, True, working_dir),
        build_vuln_rows(results, False, working_dir),
    )
    if vuln_table is not None:
        renderer.render(vuln_table, output)
        wrote = True

    license_table = renderer.simple_table(license_headers(results), build_license_rows(results, working_dir))
    if license_table is not None:
        if wrote and markdown:
            output.write("\n")
        renderer.render(license_table, output)
        wrote = True

    return wrote
