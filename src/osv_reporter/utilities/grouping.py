"""
Alias grouping for vulnerability records.

Advisories are frequently published under several ids (a GHSA id, the CVE it
describes, an ecosystem specific id...). This module partitions the
vulnerabilities of one package into groups of ids that refer to the same
finding.
"""

import logging
from typing import Dict, List, Optional

from ..models import AnalysisInfo, GroupInfo, PackageVulns, Vulnerability

logger = logging.getLogger(__name__)


def group_by_aliases(vulnerabilities: List[Vulnerability]) -> List[GroupInfo]:
    """
    Group vulnerabilities whose ids or aliases overlap.

    Aliasing is transitive: if A aliases B and B aliases C, all three end up in
    one group. Only ids of vulnerabilities present in *vulnerabilities* are
    kept; aliases that were not matched themselves are not reported. Groups are
    returned in order of their first vulnerability, ids sorted within a group.
    """
    # Union-find over vulnerability indices, joined through shared ids/aliases.
    parent = list(range(len(vulnerabilities)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    owner: Dict[str, int] = {}
    for index, vuln in enumerate(vulnerabilities):
        for name in [vuln.id] + list(vuln.aliases):
            if name in owner:
                root_a, root_b = find(owner[name]), find(index)
                if root_a != root_b:
                    parent[max(root_a, root_b)] = min(root_a, root_b)
            else:
                owner[name] = index

    members: Dict[int, List[str]] = {}
    for index, vuln in enumerate(vulnerabilities):
        ids = members.setdefault(find(index), [])
        if vuln.id not in ids:
            ids.append(vuln.id)

    return [GroupInfo(ids=sorted(ids)) for _, ids in sorted(members.items())]


def regroup_package(pkg: PackageVulns, called: Optional[Dict[str, bool]] = None) -> None:
    """
    Rebuild the groups of *pkg* from its vulnerabilities' aliases.

    *called* optionally maps vulnerability ids to a reachability verdict; ids
    without a verdict get no analysis entry, which keeps their group "called".
    """
    groups = group_by_aliases(pkg.vulnerabilities)
    if called:
        for group in groups:
            group.experimental_analysis = {
                vuln_id: AnalysisInfo(called=called[vuln_id]) for vuln_id in group.ids if vuln_id in called
            }
    logger.debug("Grouped %d vulnerabilities of %s into %d groups",
                 len(pkg.vulnerabilities), pkg.package.name, len(groups))
    pkg.groups = groups
