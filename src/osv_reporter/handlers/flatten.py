# osv_reporter/handlers/flatten.py

import json
import logging
import argparse
from typing import TYPE_CHECKING

from ..exceptions import NoPackageSourcesError
from ..models import VulnerabilityResults
from ..utilities.error_handling import handler_error_wrapper
from ..utilities.grouping import regroup_package
from ..utilities.results_io import load_results

if TYPE_CHECKING:
    from ..reporter import Reporter

logger = logging.getLogger("osv-reporter")


@handler_error_wrapper
def handle_flatten(params: argparse.Namespace, reporter: "Reporter") -> VulnerabilityResults:
    """
    Handler for the 'flatten' command. Writes one JSON object per vulnerability.

    Args:
        params: Command line parameters
        reporter: Reporter whose output stream receives the rows

    Returns:
        VulnerabilityResults: The results that were flattened
    """
    results = load_results(params.results)
    if not results.results:
        raise NoPackageSourcesError("No package sources found in the results document",
                                    details={"path": params.results})

    for _, pkg in results.iter_packages():
        if pkg.vulnerabilities and not pkg.groups:
            regroup_package(pkg)

    rows = results.flatten()
    logger.info("Flattened %d vulnerabilities", len(rows))
    json.dump([row.to_dict() for row in rows], reporter.stdout, indent=2, ensure_ascii=False)
    reporter.stdout.write("\n")
    return results
