"""
License policy checks over enriched scan results.
"""

import logging
from collections import Counter
from typing import List, Sequence, Tuple

from ..models import UNKNOWN_LICENSE, LicenseConfig, VulnerabilityResults

logger = logging.getLogger(__name__)


def find_violations(licenses: Sequence[str], allowlist: Sequence[str]) -> List[str]:
    """Return the licenses not on *allowlist*, in the order they were resolved."""
    allowed = set(allowlist)
    violations = []
    for license_id in licenses:
        if license_id not in allowed and license_id not in violations:
            violations.append(license_id)
    return violations


def apply_license_policy(results: VulnerabilityResults, config: LicenseConfig) -> int:
    """
    Record license violations on every package of *results*.

    With an empty allow-list nothing is recorded; reports fall back to a
    summary of license counts. Packages without resolved licenses never
    violate the policy.

    Returns:
        int: Number of packages with at least one violation.
    """
    if not config.allowlist:
        return 0

    violating = 0
    for source, pkg in results.iter_packages():
        pkg.license_violations = find_violations(pkg.licenses, config.allowlist)
        if pkg.license_violations:
            violating += 1
            logger.info("%s@%s (%s) uses licenses outside the allow-list: %s",
                        pkg.package.name, pkg.package.version, source, ", ".join(pkg.license_violations))
    return violating


def license_summary(results: VulnerabilityResults) -> List[Tuple[str, int]]:
    """
    Count package versions per license.

    Sorted by descending count, then license name; ``UNKNOWN`` always last.
    """
    counts: Counter = Counter()
    for _, pkg in results.iter_packages():
        counts.update(pkg.licenses)
    return sorted(
        counts.items(),
        key=lambda item: (item[0] == UNKNOWN_LICENSE, -item[1], item[0]),
    )
