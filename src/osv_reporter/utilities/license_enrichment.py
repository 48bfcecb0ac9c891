"""
Attach license data from the insights service to scanned packages.
"""

import logging
from typing import TYPE_CHECKING

from ..api.depsdev_api import query_for_package
from ..exceptions import LicenseNotFoundError
from ..models import VulnerabilityResults

if TYPE_CHECKING:
    from ..api import DepsDevAPI

logger = logging.getLogger(__name__)


def enrich_licenses(results: VulnerabilityResults, client: "DepsDevAPI") -> int:
    """
    Look up the licenses of every package in *results* and store them in place.

    All lookups finish before the model is touched; licenses are then written
    sequentially in report order.

    Returns:
        int: Number of packages that received license data.

    Raises:
        LicenseServiceError: The batch failed; no package was modified.
        LicenseNotFoundError: Raised after the licenses were written, when some
            packages were unknown to the service (their license is ``UNKNOWN``).
    """
    packages = [pkg for _, pkg in results.iter_packages()]
    queries = [query_for_package(pkg.package) for pkg in packages]
    skipped = sum(1 for q in queries if q is None)
    if skipped:
        logger.debug("Skipping license lookup for %d packages outside the supported ecosystems", skipped)

    deferred = None
    try:
        licenses = client.make_version_requests(queries)
    except LicenseNotFoundError as e:
        licenses = e.licenses
        deferred = e

    enriched = 0
    for pkg, package_licenses in zip(packages, licenses):
        if package_licenses:
            pkg.licenses = list(package_licenses)
            enriched += 1

    logger.info("License data attached to %d of %d packages", enriched, len(packages))
    if deferred is not None:
        raise deferred
    return enriched
