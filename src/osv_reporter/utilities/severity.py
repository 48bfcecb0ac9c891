"""
Numeric severity resolution for alias groups.

Each severity entry of an advisory names its scoring scheme and carries an
opaque vector string. Every supported scheme is bound to one decoder; the
highest base score found across a group is the group's severity.
"""

import logging
from typing import Callable, Dict, Optional

from cvss import CVSS2, CVSS3
from cvss.exceptions import CVSSError

from ..exceptions import SeverityDecodeError
from ..models import GroupInfo, PackageVulns, SeverityType

logger = logging.getLogger(__name__)


def _decode_cvss_v2(vector: str) -> float:
    try:
        return float(CVSS2(vector).base_score)
    except (CVSSError, ValueError, KeyError) as e:
        raise SeverityDecodeError(f"Malformed CVSS v2 vector '{vector}': {e}") from e


def _decode_cvss_v3(vector: str) -> float:
    try:
        return float(CVSS3(vector).base_score)
    except (CVSSError, ValueError, KeyError) as e:
        raise SeverityDecodeError(f"Malformed CVSS v3 vector '{vector}': {e}") from e


# Adding a scheme means adding a SeverityType member and its decoder here.
SEVERITY_DECODERS: Dict[SeverityType, Callable[[str], float]] = {
    SeverityType.CVSS_V2: _decode_cvss_v2,
    SeverityType.CVSS_V3: _decode_cvss_v3,
}


def decode_severity(severity_type: str, vector: str) -> Optional[float]:
    """
    Decode one severity entry into a base score.

    Returns None for schemes without a decoder.

    Raises:
        SeverityDecodeError: If the vector does not parse under its scheme.
    """
    scheme = SeverityType.from_string(severity_type)
    if scheme is None:
        return None
    return SEVERITY_DECODERS[scheme](vector)


def max_severity(group: GroupInfo, pkg: PackageVulns) -> Optional[float]:
    """
    Return the worst base score over every id in *group*.

    Malformed vectors are skipped so one bad entry cannot blank the report.
    Returns None when nothing could be scored; 0.0 is a real score.
    """
    max_score: Optional[float] = None
    for vuln_id in group.ids:
        severities = []
        for vuln in pkg.vulnerabilities:
            if vuln.id == vuln_id:
                severities = vuln.severity
        for severity in severities:
            try:
                score = decode_severity(severity.type, severity.score)
            except SeverityDecodeError as e:
                logger.debug("Skipping severity of %s: %s", vuln_id, e.message)
                continue
            if score is None:
                continue
            max_score = score if max_score is None else max(max_score, score)
    return max_score


def format_severity(score: Optional[float]) -> str:
    """Render a score for a report cell; unscored renders empty, never as zero."""
    if score is None:
        return ""
    return format(score, "g")
