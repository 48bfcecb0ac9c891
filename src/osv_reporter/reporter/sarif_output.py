"""
SARIF 2.1.0 output for code-scanning integrations.

The report holds a single run with one rule, ``vulnerable-packages``. Every
scanned source with called vulnerabilities becomes one warning-level result
whose message is a table of the vulnerable packages in that source, with the
versions that fix them.
"""

import logging
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from .. import __version__
from ..models import GroupInfo, Package, PackageSource, PackageVulns, VulnerabilityResults
from ..utilities.severity import format_severity, max_severity
from .table_output import BASE_VULNERABILITY_URL, TableRenderer, simplify_path

logger = logging.getLogger(__name__)

SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
SARIF_VERSION = "2.1.0"
RULE_ID = "vulnerable-packages"
RESULT_LEVEL = "warning"
FIXED_VERSION_HEADERS = ["PACKAGE", "VULNERABILITY ID", "CVSS", "CURRENT VERSION", "FIXED VERSION"]

TOOL_DRIVER = {
    "name": "osv-scanner",
    "informationUri": "https://github.com/google/osv-scanner",
}

RULE = {
    "id": RULE_ID,
    "shortDescription": {
        "text": "This manifest file contains one or more vulnerable packages.",
    },
    "help": {
        "text": "Update the vulnerable packages to a version with a fix, or remove them.",
        "markdown": "Update the vulnerable packages listed in the result message to a fixed version, "
                    "or remove them. Follow the OSV links for the affected version ranges.",
    },
}


def _artifact_uri(path: str, working_dir: Optional[str]) -> str:
    return PurePath(simplify_path(path, working_dir)).as_posix()


def group_fixed_versions(group: GroupInfo, pkg: PackageVulns) -> List[str]:
    """
    Versions fixing any advisory of *group* in the scanned package.

    Advisories are matched on ``Package(ecosystem, name)``. Duplicates are
    dropped, first occurrence wins. Empty when no fix is known.
    """
    key = Package(ecosystem=pkg.package.ecosystem, name=pkg.package.name)
    group_ids = set(group.ids)
    fixed: List[str] = []
    for vuln in pkg.vulnerabilities:
        if vuln.id not in group_ids:
            continue
        for version in vuln.fixed_versions().get(key, []):
            if version not in fixed:
                fixed.append(version)
    return fixed


def build_fixed_version_rows(source_result: PackageSource) -> List[List[str]]:
    """One row per called group of *source_result*, in stored order."""
    rows = []
    for pkg in source_result.packages:
        # Git commits have no package name; the commit identifies them.
        name = pkg.package.version if pkg.package.ecosystem == "GIT" else pkg.package.name
        for group in pkg.groups:
            if not group.is_called():
                continue
            rows.append([
                name,
                "\n".join(BASE_VULNERABILITY_URL + vuln_id for vuln_id in group.ids),
                format_severity(max_severity(group, pkg)),
                pkg.package.version,
                ", ".join(group_fixed_versions(group, pkg)),
            ])
    return rows


def _create_results(results: VulnerabilityResults, working_dir: Optional[str]) -> List[Dict[str, Any]]:
    renderer = TableRenderer(terminal_width=0)
    seen = set()

    sarif_results = []
    for source_result in results.results:
        # A source may appear only once even if upstream repeated it.
        if source_result.source in seen:
            continue
        table = renderer.simple_table(FIXED_VERSION_HEADERS, build_fixed_version_rows(source_result))
        if table is None:
            continue
        seen.add(source_result.source)
        sarif_results.append({
            "ruleId": RULE_ID,
            "ruleIndex": 0,
            "level": RESULT_LEVEL,
            "message": {
                "text": renderer.render_to_string(table),
            },
            "locations": [{
                "physicalLocation": {
                    "artifactLocation": {
                        "uri": _artifact_uri(source_result.source.path, working_dir),
                    },
                },
            }],
        })
    return sarif_results


def convert_results_to_sarif(results: VulnerabilityResults, working_dir: Optional[str] = None) -> Dict[str, Any]:
    """Build the SARIF document for *results*."""
    artifacts = [
        {
            "location": {"uri": _artifact_uri(source_result.source.path, working_dir)},
            "length": -1,
        }
        for source_result in results.results
    ]
    sarif_results = _create_results(results, working_dir)
    logger.debug("SARIF report: %d artifacts, %d results", len(artifacts), len(sarif_results))

    return {
        "version": SARIF_VERSION,
        "$schema": SARIF_SCHEMA,
        "runs": [{
            "tool": {
                "driver": dict(TOOL_DRIVER, version=__version__, rules=[RULE]),
            },
            "artifacts": artifacts,
            "results": sarif_results,
        }],
    }
