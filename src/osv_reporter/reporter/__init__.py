"""
Output formats for scan results: table, Markdown, JSON and SARIF.
"""

from .reporter import (
    JSONReporter,
    MarkdownReporter,
    Reporter,
    SARIFReporter,
    TableReporter,
    formats,
    new_reporter,
)
from .sarif_output import convert_results_to_sarif
from .table_output import print_table_results

__all__ = [
    'JSONReporter',
    'MarkdownReporter',
    'Reporter',
    'SARIFReporter',
    'TableReporter',
    'convert_results_to_sarif',
    'formats',
    'new_reporter',
    'print_table_results',
]
