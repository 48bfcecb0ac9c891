# osv_reporter/models/vulnerability.py

"""
OSV advisory records as delivered by the vulnerability-matching client.

Only the fields the reporter works with are modelled explicitly. Anything else
found in a record is kept in ``extra`` so JSON output round-trips the advisory.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from ..exceptions import ValidationError


class SeverityType(Enum):
    """Severity scoring schemes known to the reporter."""
    CVSS_V2 = "CVSS_V2"
    CVSS_V3 = "CVSS_V3"

    @classmethod
    def from_string(cls, value: str) -> Optional["SeverityType"]:
        """Return the matching scheme, or None for schemes this version cannot score."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class Package:
    """The package an advisory applies to."""
    ecosystem: str
    name: str
    purl: str = ""

    def key(self) -> "Package":
        """Identity used for fix aggregation; package URLs are not canonical so they are dropped."""
        return replace(self, purl="")

    def to_dict(self) -> Dict[str, Any]:
        data = {"ecosystem": self.ecosystem, "name": self.name}
        if self.purl:
            data["purl"] = self.purl
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Package":
        return cls(
            ecosystem=data.get("ecosystem", ""),
            name=data.get("name", ""),
            purl=data.get("purl", ""),
        )


@dataclass
class Event:
    introduced: str = ""
    fixed: str = ""
    last_affected: str = ""
    limit: str = ""

    def to_dict(self) -> Dict[str, str]:
        data = {}
        for key in ("introduced", "fixed", "last_affected", "limit"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(
            introduced=data.get("introduced", ""),
            fixed=data.get("fixed", ""),
            last_affected=data.get("last_affected", ""),
            limit=data.get("limit", ""),
        )


@dataclass
class Range:
    type: str = ""
    repo: str = ""
    events: List[Event] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.repo:
            data["repo"] = self.repo
        data["events"] = [e.to_dict() for e in self.events]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Range":
        return cls(
            type=data.get("type", ""),
            repo=data.get("repo", ""),
            events=[Event.from_dict(e) for e in data.get("events") or []],
        )


@dataclass
class Affected:
    package: Package
    ranges: List[Range] = field(default_factory=list)
    versions: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"package": self.package.to_dict()}
        if self.ranges:
            data["ranges"] = [r.to_dict() for r in self.ranges]
        if self.versions:
            data["versions"] = list(self.versions)
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Affected":
        extra = {k: v for k, v in data.items() if k not in ("package", "ranges", "versions")}
        return cls(
            package=Package.from_dict(data.get("package") or {}),
            ranges=[Range.from_dict(r) for r in data.get("ranges") or []],
            versions=list(data.get("versions") or []),
            extra=extra,
        )


@dataclass
class Severity:
    # Kept as a string: schemes newer than this release must survive a round trip.
    type: str
    score: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "score": self.score}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Severity":
        return cls(type=data.get("type", ""), score=data.get("score", ""))


_KNOWN_FIELDS = ("id", "aliases", "summary", "details", "modified", "published", "affected", "severity")


@dataclass
class Vulnerability:
    """A single OSV advisory."""
    id: str
    aliases: List[str] = field(default_factory=list)
    summary: str = ""
    details: str = ""
    modified: str = ""
    published: str = ""
    affected: List[Affected] = field(default_factory=list)
    severity: List[Severity] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def fixed_versions(self) -> Dict[Package, List[str]]:
        """
        Collect the fix versions of every affected package.

        Each fixed event is recorded twice under the package key. When the
        ecosystem is colon-qualified (``Go:gomod``) it is additionally recorded
        twice under the base ecosystem (``Go``), since consumers may index
        packages under either name. Packages without a fixed event are absent
        from the result.
        """
        output: Dict[Package, List[str]] = {}
        for affected in self.affected:
            package_key = affected.package.key()
            keys = [package_key]
            if ":" in package_key.ecosystem:
                base_key = replace(package_key, ecosystem=package_key.ecosystem.split(":", 1)[0])
                if base_key != package_key:
                    keys.append(base_key)
            for version_range in affected.ranges:
                for event in version_range.events:
                    if not event.fixed:
                        continue
                    for key in keys:
                        output.setdefault(key, []).extend([event.fixed, event.fixed])
        return output

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id}
        if self.aliases:
            data["aliases"] = list(self.aliases)
        for key in ("summary", "details", "modified", "published"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.affected:
            data["affected"] = [a.to_dict() for a in self.affected]
        if self.severity:
            data["severity"] = [s.to_dict() for s in self.severity]
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vulnerability":
        if not isinstance(data, dict) or not data.get("id"):
            raise ValidationError("Vulnerability record is missing its 'id'", details={"record": data})
        extra = {k: v for k, v in data.items() if k not in _KNOWN_FIELDS}
        return cls(
            id=data["id"],
            aliases=list(data.get("aliases") or []),
            summary=data.get("summary", ""),
            details=data.get("details", ""),
            modified=data.get("modified", ""),
            published=data.get("published", ""),
            affected=[Affected.from_dict(a) for a in data.get("affected") or []],
            severity=[Severity.from_dict(s) for s in data.get("severity") or []],
            extra=extra,
        )
