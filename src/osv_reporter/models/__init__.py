"""
Result model shared by the enrichment stages and the reporters.
"""

from .vulnerability import (
    Affected,
    Event,
    Package,
    Range,
    Severity,
    SeverityType,
    Vulnerability,
)
from .results import (
    UNKNOWN_LICENSE,
    AnalysisInfo,
    ExperimentalConfig,
    GroupInfo,
    LicenseConfig,
    PackageInfo,
    PackageSource,
    PackageVulns,
    ResultsBuilder,
    SourceInfo,
    VulnerabilityFlattened,
    VulnerabilityResults,
)

__all__ = [
    # Advisories
    'Affected',
    'Event',
    'Package',
    'Range',
    'Severity',
    'SeverityType',
    'Vulnerability',
    # Results
    'UNKNOWN_LICENSE',
    'AnalysisInfo',
    'ExperimentalConfig',
    'GroupInfo',
    'LicenseConfig',
    'PackageInfo',
    'PackageSource',
    'PackageVulns',
    'ResultsBuilder',
    'SourceInfo',
    'VulnerabilityFlattened',
    'VulnerabilityResults',
]
