import pytest
from unittest.mock import MagicMock
import requests

from osv_reporter.models import (
    AnalysisInfo,
    GroupInfo,
    PackageInfo,
    PackageSource,
    PackageVulns,
    Severity,
    SourceInfo,
    Vulnerability,
    VulnerabilityResults,
)

CVSS_V3_CRITICAL = "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H"  # 9.8
CVSS_V3_MEDIUM = "CVSS:3.1/AV:N/AC:L/PR:N/UI:R/S:U/C:L/I:L/A:N"  # 5.4
CVSS_V2_HIGH = "AV:N/AC:L/Au:N/C:P/I:P/A:P"  # 7.5


@pytest.fixture
def mock_session(mocker):
    """
    Create a mock requests.Session that can be used in place of the real session.
    """
    mock_session = mocker.MagicMock(spec=requests.Session)
    mock_response = MagicMock(spec=requests.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = {"licenses": ["MIT"]}
    mock_session.get.return_value = mock_response
    return mock_session


def make_response(status_code=200, payload=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.text = str(payload)
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return response


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def sample_results():
    """
    Two sources; the lockfile holds one called group (two aliased ids) and one
    uncalled group, the git source one advisory with no severity.
    """
    lodash = PackageVulns(
        package=PackageInfo(name="lodash", version="4.17.15", ecosystem="npm"),
        vulnerabilities=[
            Vulnerability(id="GHSA-p6mc-m468-83gw", aliases=["CVE-2020-8203"],
                          severity=[Severity(type="CVSS_V3", score=CVSS_V3_MEDIUM)]),
            Vulnerability(id="CVE-2020-8203",
                          severity=[Severity(type="CVSS_V3", score=CVSS_V3_CRITICAL)]),
            Vulnerability(id="GHSA-29mw-wpgm-hmr9",
                          severity=[Severity(type="CVSS_V2", score=CVSS_V2_HIGH)]),
        ],
        groups=[
            GroupInfo(ids=["CVE-2020-8203", "GHSA-p6mc-m468-83gw"]),
            GroupInfo(ids=["GHSA-29mw-wpgm-hmr9"],
                      experimental_analysis={"GHSA-29mw-wpgm-hmr9": AnalysisInfo(called=False)}),
        ],
    )
    git_pkg = PackageVulns(
        package=PackageInfo(name="", version="1a2b3c4d", ecosystem="GIT"),
        vulnerabilities=[Vulnerability(id="OSV-2023-1")],
        groups=[GroupInfo(ids=["OSV-2023-1"])],
    )
    return VulnerabilityResults(results=[
        PackageSource(source=SourceInfo(path="/work/project/package-lock.json", type="lockfile"),
                      packages=[lodash]),
        PackageSource(source=SourceInfo(path="/work/project/vendor/lib", type="git"),
                      packages=[git_pkg]),
    ])


@pytest.fixture
def sample_document():
    """The JSON document a scanner writes for one lockfile with two aliased advisories."""
    return {
        "results": [
            {
                "source": {"path": "/work/project/requirements.txt", "type": "lockfile"},
                "packages": [
                    {
                        "package": {"name": "jinja2", "version": "2.4.1", "ecosystem": "PyPI"},
                        "vulnerabilities": [
                            {
                                "id": "GHSA-462w-v97r-4m45",
                                "aliases": ["CVE-2019-10906"],
                                "severity": [{"type": "CVSS_V3", "score": CVSS_V3_CRITICAL}],
                            },
                            {"id": "PYSEC-2019-217", "aliases": ["CVE-2019-10906"]},
                        ],
                    },
                    {
                        "package": {"name": "six", "version": "1.16.0", "ecosystem": "PyPI"},
                        "vulnerabilities": [],
                    },
                ],
            }
        ]
    }
