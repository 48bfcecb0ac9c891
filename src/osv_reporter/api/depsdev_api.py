# osv_reporter/api/depsdev_api.py

"""
License lookups against the deps.dev insights service.

One GetVersion request is issued per package, concurrently, over a single
shared ``requests.Session``. The order of the returned license lists always
matches the order of the queries.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import List, Optional, Sequence
from urllib.parse import quote

import requests
from packageurl import PackageURL

from ..exceptions import LicenseNotFoundError, LicenseServiceError
from ..models import UNKNOWN_LICENSE, PackageInfo

logger = logging.getLogger(__name__)

DEPSDEV_API_URL = "https://api.deps.dev/v3"
DEFAULT_TIMEOUT = 60  # seconds, for the whole batch
DEFAULT_MAX_WORKERS = 10

# OSV ecosystem -> deps.dev system
SYSTEMS = {
    "npm": "NPM",
    "NuGet": "NUGET",
    "crates.io": "CARGO",
    "Go": "GO",
    "Maven": "MAVEN",
    "PyPI": "PYPI",
}

# package URL type -> deps.dev system
PURL_SYSTEMS = {
    "npm": "NPM",
    "nuget": "NUGET",
    "cargo": "CARGO",
    "golang": "GO",
    "maven": "MAVEN",
    "pypi": "PYPI",
}


@dataclass(frozen=True)
class VersionQuery:
    """A GetVersion request key."""
    system: str
    name: str
    version: str


def version_query(system: str, name: str, version: str) -> VersionQuery:
    """Build a GetVersion query; deps.dev expects Go versions with their ``v`` prefix."""
    if system == "GO" and not version.startswith("v"):
        version = "v" + version
    return VersionQuery(system=system, name=name, version=version)


def _name_from_purl(purl: PackageURL) -> str:
    if not purl.namespace:
        return purl.name
    if purl.type == "maven":
        return f"{purl.namespace}:{purl.name}"
    return f"{purl.namespace}/{purl.name}"


def query_for_package(pkg: PackageInfo) -> Optional[VersionQuery]:
    """
    Build the license query for *pkg*, or None when the package cannot be looked up.

    The OSV ecosystem decides the system; packages from SBOMs whose ecosystem
    is not mapped fall back to the type of their package URL.
    """
    system = SYSTEMS.get(pkg.base_ecosystem)
    name = pkg.name
    version = pkg.version
    if system is None and pkg.purl:
        try:
            purl = PackageURL.from_string(pkg.purl)
        except ValueError as e:
            logger.debug("Ignoring unparsable package URL %r: %s", pkg.purl, e)
            return None
        system = PURL_SYSTEMS.get(purl.type)
        name = _name_from_purl(purl)
        version = purl.version or version
    if system is None or not name or not version:
        # May be a private package or an ecosystem deps.dev does not index.
        return None
    return version_query(system, name, version)


class _VersionNotFound(Exception):
    """deps.dev has no record of the requested version."""

    def __init__(self, query: VersionQuery, response: requests.Response):
        super().__init__(f"{query.system}/{query.name}@{query.version} not found (HTTP {response.status_code})")
        self.query = query
        self.status_code = response.status_code


class DepsDevAPI:
    """
    Minimal deps.dev client for license lookups.

    The session is created once and shared read-only by every worker thread.
    """

    def __init__(self, api_url: Optional[str] = None, timeout: Optional[float] = None,
                 max_workers: int = DEFAULT_MAX_WORKERS, session: Optional[requests.Session] = None):
        self.api_url = (api_url or os.getenv("OSV_REPORTER_LICENSE_API") or DEPSDEV_API_URL).rstrip("/")
        if timeout is None:
            timeout = float(os.getenv("OSV_REPORTER_LICENSE_TIMEOUT", DEFAULT_TIMEOUT))
        self.timeout = timeout
        self.max_workers = max_workers
        self.session = session or requests.Session()
        self.headers = {"Accept": "application/json", "User-Agent": "osv-reporter"}

    def _version_url(self, query: VersionQuery) -> str:
        return (f"{self.api_url}/systems/{quote(query.system.lower(), safe='')}"
                f"/packages/{quote(query.name, safe='')}"
                f"/versions/{quote(query.version, safe='')}")

    def get_version_licenses(self, query: VersionQuery, timeout: Optional[float] = None) -> List[str]:
        """
        Fetch the licenses of one package version.

        *timeout* bounds this request; it defaults to the client timeout.

        Raises:
            _VersionNotFound: deps.dev does not know the version.
            LicenseServiceError: Network failure or malformed response.
        """
        url = self._version_url(query)
        logger.debug("GetVersion: %s", url)
        try:
            response = self.session.get(url, headers=self.headers,
                                        timeout=self.timeout if timeout is None else timeout)
        except requests.exceptions.Timeout as e:
            raise LicenseServiceError(f"License lookup for {query.name} timed out",
                                      code="deadline_exceeded", details={"error": str(e)}) from e
        except requests.exceptions.RequestException as e:
            raise LicenseServiceError(f"Failed to reach the license service: {e}",
                                      details={"error": str(e)}) from e

        if response.status_code == 404:
            raise _VersionNotFound(query, response)
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise LicenseServiceError(f"License service returned HTTP {response.status_code} for {query.name}",
                                      code=str(response.status_code), details={"error": str(e)}) from e

        try:
            payload = response.json()
        except ValueError as e:
            raise LicenseServiceError(f"Invalid JSON from the license service for {query.name}",
                                      details={"response_text": response.text[:500]}) from e
        licenses = payload.get("licenses") if isinstance(payload, dict) else None
        if licenses is None:
            licenses = []
        if not isinstance(licenses, list):
            raise LicenseServiceError(f"Unexpected 'licenses' field for {query.name}",
                                      details={"licenses": licenses})
        # An empty list means deps.dev knows the version but not its license.
        return [str(license_id) for license_id in licenses] or [UNKNOWN_LICENSE]

    def make_version_requests(self, queries: Sequence[Optional[VersionQuery]]) -> List[List[str]]:
        """
        Look up licenses for every query concurrently.

        ``result[i]`` always belongs to ``queries[i]``. Skipped (None) queries
        yield an empty list. Every request runs to completion, bounded by the batch
        deadline of ``timeout`` seconds, before an error is raised.

        Raises:
            LicenseServiceError: The first transport, response or deadline
                failure observed; partial results are not returned.
            LicenseNotFoundError: Some versions were unknown. Their slots hold
                ``["UNKNOWN"]`` and the complete list is on ``error.licenses``.
        """
        licenses: List[List[str]] = [[] for _ in queries]
        deadline = time.monotonic() + self.timeout

        def fetch(index: int) -> None:
            # Each request gets what is left of the batch deadline.
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LicenseServiceError(f"License lookup for {queries[index].name} timed out",
                                          code="deadline_exceeded")
            try:
                licenses[index] = self.get_version_licenses(queries[index], timeout=min(self.timeout, remaining))
            except _VersionNotFound:
                licenses[index] = [UNKNOWN_LICENSE]
                raise

        pending = [i for i, query in enumerate(queries) if query is not None]
        if not pending:
            return licenses

        logger.info("Fetching licenses for %d packages from %s", len(pending), self.api_url)
        first_error: Optional[BaseException] = None
        first_not_found: Optional[_VersionNotFound] = None
        not_found_count = 0

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = {executor.submit(fetch, i): i for i in pending}
            try:
                for future in as_completed(futures, timeout=self.timeout):
                    error = future.exception()
                    if error is None:
                        continue
                    if isinstance(error, _VersionNotFound):
                        not_found_count += 1
                        logger.warning("No license data: %s", error)
                        if first_not_found is None:
                            first_not_found = error
                    elif first_error is None:
                        first_error = error
            except FuturesTimeoutError as e:
                if first_error is None:
                    first_error = LicenseServiceError(
                        f"License lookups did not finish within {self.timeout} seconds",
                        code="deadline_exceeded",
                    )
                    first_error.__cause__ = e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if first_error is not None:
            logger.error("License lookup batch failed: %s", first_error)
            if isinstance(first_error, LicenseServiceError):
                raise first_error
            raise LicenseServiceError(f"License lookup failed: {first_error}",
                                      details={"error": str(first_error)}) from first_error

        if first_not_found is not None:
            raise LicenseNotFoundError(
                f"{not_found_count} package version(s) not found by the license service",
                licenses=licenses,
                code="not_found",
                details={"status_code": first_not_found.status_code, "query": first_not_found.query},
            ) from first_not_found

        return licenses
