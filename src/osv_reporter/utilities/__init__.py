"""
Result processing utilities: alias grouping, severity, licenses and error handling.
"""

from .error_handling import format_and_print_error, handler_error_wrapper
from .grouping import group_by_aliases, regroup_package
from .severity import decode_severity, format_severity, max_severity
from .license_policy import apply_license_policy, find_violations, license_summary
from .license_enrichment import enrich_licenses
from .results_io import load_results, open_output

__all__ = [
    # Error handling
    'format_and_print_error',
    'handler_error_wrapper',
    # Grouping
    'group_by_aliases',
    'regroup_package',
    # Severity
    'decode_severity',
    'format_severity',
    'max_severity',
    # Licenses
    'apply_license_policy',
    'find_violations',
    'license_summary',
    'enrich_licenses',
    # Files
    'load_results',
    'open_output',
]
