# osv_reporter/models/results.py

"""
Scan result model: sources -> packages -> vulnerabilities -> alias groups.

The tree is built once per scan by the extractors and the matching client,
annotated in place by the enrichment stages and then handed read-only to a
reporter. No stage may reorder ``results``, ``packages`` or vulnerability
lists; reports depend on that order.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..exceptions import ModelInvariantError, ValidationError
from .vulnerability import Vulnerability

UNKNOWN_LICENSE = "UNKNOWN"


@dataclass(frozen=True)
class SourceInfo:
    """Where a set of packages came from (a lockfile, an SBOM, a git checkout...)."""
    path: str
    type: str

    def __str__(self) -> str:
        return f"{self.type}:{self.path}"

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "type": self.type}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceInfo":
        return cls(path=data.get("path", ""), type=data.get("type", ""))


@dataclass(frozen=True)
class PackageInfo:
    name: str
    version: str
    ecosystem: str
    # Package URLs are not canonical and take no part in package identity.
    purl: str = field(default="", compare=False)

    @property
    def base_ecosystem(self) -> str:
        """Ecosystem without its sub-type suffix (``Go:gomod`` -> ``Go``)."""
        return self.ecosystem.split(":", 1)[0]

    def to_dict(self) -> Dict[str, str]:
        data = {"name": self.name, "version": self.version, "ecosystem": self.ecosystem}
        if self.purl:
            data["purl"] = self.purl
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageInfo":
        return cls(
            name=data.get("name", ""),
            version=data.get("version", ""),
            ecosystem=data.get("ecosystem", ""),
            purl=data.get("purl", ""),
        )


@dataclass
class AnalysisInfo:
    called: bool

    def to_dict(self) -> Dict[str, bool]:
        return {"called": self.called}


@dataclass
class GroupInfo:
    """Vulnerability ids that describe the same finding."""
    # Expected to be sorted in ascending order.
    ids: List[str]
    # Vulnerability id -> reachability analysis result.
    experimental_analysis: Dict[str, AnalysisInfo] = field(default_factory=dict)

    def is_called(self) -> bool:
        """
        True when any analysis found a called id, or when no analysis ran at all.

        A group is only uncalled when analysis data exists and every analysed
        id was found unreachable.
        """
        if not self.experimental_analysis:
            return True
        return any(analysis.called for analysis in self.experimental_analysis.values())

    def index_string(self) -> str:
        """Stable key for the group. Relies on ``ids`` already being sorted."""
        return ",".join(self.ids)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"ids": list(self.ids)}
        if self.experimental_analysis:
            data["experimentalAnalysis"] = {
                vuln_id: analysis.to_dict() for vuln_id, analysis in self.experimental_analysis.items()
            }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroupInfo":
        analysis = data.get("experimentalAnalysis") or {}
        return cls(
            ids=list(data.get("ids") or []),
            experimental_analysis={
                vuln_id: AnalysisInfo(called=bool((info or {}).get("called", False)))
                for vuln_id, info in analysis.items()
            },
        )


@dataclass
class PackageVulns:
    """One package with its advisories, their alias groups and license data."""
    package: PackageInfo
    vulnerabilities: List[Vulnerability] = field(default_factory=list)
    groups: List[GroupInfo] = field(default_factory=list)
    licenses: List[str] = field(default_factory=list)
    license_violations: List[str] = field(default_factory=list)

    def group_for(self, vuln_id: str) -> GroupInfo:
        """Return the group owning *vuln_id*; a missing group is a construction bug upstream."""
        for group in self.groups:
            if vuln_id in group.ids:
                return group
        raise ModelInvariantError(
            f"Vulnerability {vuln_id} of {self.package.name}@{self.package.version} is not in any group",
            details={"package": self.package.to_dict(), "vulnerability": vuln_id},
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "package": self.package.to_dict(),
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
            "groups": [g.to_dict() for g in self.groups],
        }
        if self.licenses:
            data["licenses"] = list(self.licenses)
        if self.license_violations:
            data["licenseViolations"] = list(self.license_violations)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageVulns":
        if "package" not in data:
            raise ValidationError("Package entry is missing its 'package' field", details={"entry": data})
        return cls(
            package=PackageInfo.from_dict(data["package"] or {}),
            vulnerabilities=[Vulnerability.from_dict(v) for v in data.get("vulnerabilities") or []],
            groups=[GroupInfo.from_dict(g) for g in data.get("groups") or []],
            licenses=list(data.get("licenses") or []),
            license_violations=list(data.get("licenseViolations") or []),
        )


@dataclass
class PackageSource:
    source: SourceInfo
    packages: List[PackageVulns] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.to_dict(),
            "packages": [p.to_dict() for p in self.packages],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageSource":
        if "source" not in data:
            raise ValidationError("Result entry is missing its 'source' field", details={"entry": data})
        return cls(
            source=SourceInfo.from_dict(data["source"] or {}),
            packages=[PackageVulns.from_dict(p) for p in data.get("packages") or []],
        )


@dataclass
class LicenseConfig:
    """License checking options: a summary of counts, or an allow-list to enforce."""
    summary: bool = False
    allowlist: List[str] = field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return self.summary or bool(self.allowlist)

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary, "allowlist": list(self.allowlist)}


@dataclass
class ExperimentalConfig:
    """Analyses that were enabled for the scan."""
    licenses: LicenseConfig = field(default_factory=LicenseConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {"licenses": self.licenses.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExperimentalConfig":
        licenses = data.get("licenses") or {}
        return cls(licenses=LicenseConfig(
            summary=bool(licenses.get("summary", False)),
            allowlist=list(licenses.get("allowlist") or []),
        ))


@dataclass(frozen=True)
class VulnerabilityFlattened:
    """One (source, package, vulnerability) row with the vulnerability's group."""
    source: SourceInfo
    package: PackageInfo
    vulnerability: Vulnerability
    group_info: GroupInfo

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.to_dict(),
            "package": self.package.to_dict(),
            "vulnerability": self.vulnerability.to_dict(),
            "groupInfo": self.group_info.to_dict(),
        }


@dataclass
class VulnerabilityResults:
    """Combined vulnerabilities found for the scanned packages."""
    results: List[PackageSource] = field(default_factory=list)
    experimental_config: ExperimentalConfig = field(default_factory=ExperimentalConfig)

    def flatten(self) -> List[VulnerabilityFlattened]:
        """
        Project the nested results into one row per vulnerability.

        Raises:
            ModelInvariantError: If a vulnerability id is missing from its package's groups.
        """
        rows = []
        for source_result in self.results:
            for pkg in source_result.packages:
                for vuln in pkg.vulnerabilities:
                    rows.append(VulnerabilityFlattened(
                        source=source_result.source,
                        package=pkg.package,
                        vulnerability=vuln,
                        group_info=pkg.group_for(vuln.id),
                    ))
        return rows

    def iter_packages(self):
        """Yield ``(source, package_vulns)`` pairs in report order."""
        for source_result in self.results:
            for pkg in source_result.packages:
                yield source_result.source, pkg

    def vulnerability_count(self) -> int:
        return sum(len(pkg.vulnerabilities) for _, pkg in self.iter_packages())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"results": [r.to_dict() for r in self.results]}
        if self.experimental_config.licenses.enabled:
            data["experimental_config"] = self.experimental_config.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VulnerabilityResults":
        if not isinstance(data, dict) or not isinstance(data.get("results", []), list):
            raise ValidationError("Results document must be an object with a 'results' list")
        return cls(
            results=[PackageSource.from_dict(r) for r in data.get("results") or []],
            experimental_config=ExperimentalConfig.from_dict(data.get("experimental_config") or {}),
        )


class ResultsBuilder:
    """
    Assembles an incremental stream of package findings into VulnerabilityResults.

    Sources keep the order in which they were first seen; packages keep the
    order in which they were added to their source.
    """

    def __init__(self, all_packages: bool = False, config: Optional[ExperimentalConfig] = None):
        self.all_packages = all_packages
        self.config = config or ExperimentalConfig()
        self._sources: Dict[SourceInfo, PackageSource] = {}

    def add(self, source: SourceInfo, package_vulns: PackageVulns) -> None:
        keep = (
            package_vulns.vulnerabilities
            or self.all_packages
            or self.config.licenses.enabled
        )
        if not keep:
            return
        if source not in self._sources:
            self._sources[source] = PackageSource(source=source)
        self._sources[source].packages.append(package_vulns)

    def add_source(self, package_source: PackageSource) -> None:
        for pkg in package_source.packages:
            self.add(package_source.source, pkg)

    def build(self) -> VulnerabilityResults:
        return VulnerabilityResults(
            results=[s for s in self._sources.values() if s.packages],
            experimental_config=self.config,
        )
