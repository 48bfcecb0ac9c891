# osv_reporter/handlers/report.py

import logging
import argparse
from typing import TYPE_CHECKING

from ..api import DepsDevAPI
from ..exceptions import LicenseServiceError, NoPackageSourcesError
from ..models import ExperimentalConfig, LicenseConfig, ResultsBuilder, VulnerabilityResults
from ..utilities.error_handling import format_and_print_error, handler_error_wrapper
from ..utilities.grouping import regroup_package
from ..utilities.license_enrichment import enrich_licenses
from ..utilities.license_policy import apply_license_policy
from ..utilities.results_io import load_results

if TYPE_CHECKING:
    from ..reporter import Reporter

logger = logging.getLogger("osv-reporter")


def _license_config(params: argparse.Namespace) -> ExperimentalConfig:
    licenses = getattr(params, 'licenses', None)
    # The flag without values asks for a summary; values form an allow-list.
    return ExperimentalConfig(licenses=LicenseConfig(
        summary=licenses is not None,
        allowlist=list(licenses or []),
    ))


def build_results(loaded: VulnerabilityResults, params: argparse.Namespace) -> VulnerabilityResults:
    """
    Assemble the results to report from a loaded document.

    Packages whose groups were not provided are grouped by alias here.
    """
    builder = ResultsBuilder(
        all_packages=getattr(params, 'all_packages', False),
        config=_license_config(params),
    )
    for source_result in loaded.results:
        for pkg in source_result.packages:
            if pkg.vulnerabilities and not pkg.groups:
                regroup_package(pkg)
        builder.add_source(source_result)
    return builder.build()


@handler_error_wrapper
def handle_report(params: argparse.Namespace, reporter: "Reporter") -> VulnerabilityResults:
    """
    Handler for the 'report' command. Renders a results document in the chosen format.

    A failed license lookup is reported on stderr but does not stop the report;
    the vulnerability findings are still printed.

    Args:
        params: Command line parameters
        reporter: Reporter for the selected output format

    Returns:
        VulnerabilityResults: The results that were reported
    """
    loaded = load_results(params.results)
    if not loaded.results:
        raise NoPackageSourcesError("No package sources found in the results document",
                                    details={"path": params.results})

    results = build_results(loaded, params)
    logger.info("Reporting %d vulnerabilities across %d sources",
                results.vulnerability_count(), len(results.results))

    license_config = results.experimental_config.licenses
    if license_config.enabled:
        client = DepsDevAPI(
            api_url=getattr(params, 'license_api_url', None),
            timeout=getattr(params, 'license_timeout', None),
            max_workers=params.max_workers,
        )
        try:
            enrich_licenses(results, client)
        except LicenseServiceError as e:
            format_and_print_error(e, handle_report.__name__, params, reporter)
        apply_license_policy(results, license_config)

    reporter.print_result(results)
    return results
