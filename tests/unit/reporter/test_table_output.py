import pytest
from io import StringIO

from osv_reporter.models import (
    ExperimentalConfig,
    GroupInfo,
    LicenseConfig,
    PackageInfo,
    PackageSource,
    PackageVulns,
    SourceInfo,
    Vulnerability,
    VulnerabilityResults,
)
from osv_reporter.reporter.table_output import (
    UNCALLED_DIVIDER,
    build_license_rows,
    build_vuln_rows,
    print_table_results,
    simplify_path,
)

WORKING_DIR = "/work/project"


def _render(results, **kwargs):
    output = StringIO()
    wrote = print_table_results(results, output, working_dir=WORKING_DIR, **kwargs)
    return wrote, output.getvalue()


def _line_index(lines, text):
    return next(i for i, line in enumerate(lines) if text in line)


# --- Row building ---
def test_called_rows_in_source_package_group_order(sample_results):
    rows = build_vuln_rows(sample_results, True, WORKING_DIR)

    assert [row.vuln_ids for row in rows] == [["CVE-2020-8203", "GHSA-p6mc-m468-83gw"], ["OSV-2023-1"]]
    assert rows[0].cells() == [
        "https://osv.dev/CVE-2020-8203\nhttps://osv.dev/GHSA-p6mc-m468-83gw",
        "9.8", "npm", "lodash", "4.17.15", "package-lock.json",
    ]


def test_uncalled_rows(sample_results):
    rows = build_vuln_rows(sample_results, False, WORKING_DIR)

    assert [row.vuln_ids for row in rows] == [["GHSA-29mw-wpgm-hmr9"]]
    assert rows[0].severity == "7.5"


def test_git_row_uses_commit_as_package_and_merges(sample_results):
    git_row = build_vuln_rows(sample_results, True, WORKING_DIR)[1]

    assert git_row.cells() == ["https://osv.dev/OSV-2023-1", "", "GIT", "1a2b3c4d", "1a2b3c4d", "vendor/lib"]
    assert git_row.should_merge is True


def test_simplify_path():
    assert simplify_path("/work/project/sub/go.mod", WORKING_DIR) == "sub/go.mod"
    assert simplify_path("/elsewhere/go.mod", WORKING_DIR) == "../../elsewhere/go.mod"


# --- Rendering ---
def test_table_puts_uncalled_rows_after_divider(sample_results):
    wrote, text = _render(sample_results)
    lines = text.splitlines()

    assert wrote is True
    assert "OSV URL" in lines[1]
    first_id = lines[_line_index(lines, "https://osv.dev/CVE-2020-8203")]
    assert "9.8" in first_id and "lodash" in first_id and "package-lock.json" in first_id
    assert _line_index(lines, "https://osv.dev/CVE-2020-8203") < _line_index(lines, "https://osv.dev/GHSA-p6mc")
    assert _line_index(lines, "https://osv.dev/OSV-2023-1") < _line_index(lines, UNCALLED_DIVIDER)
    assert _line_index(lines, UNCALLED_DIVIDER) < _line_index(lines, "https://osv.dev/GHSA-29mw-wpgm-hmr9")
    assert all(line.isascii() for line in lines)


def test_git_row_shows_commit_once(sample_results):
    _, text = _render(sample_results)
    git_line = next(line for line in text.splitlines() if "OSV-2023-1" in line)

    assert git_line.count("1a2b3c4d") == 1
    assert "GIT" in git_line


def test_no_divider_without_uncalled_groups(sample_results):
    lodash = sample_results.results[0].packages[0]
    lodash.groups[1].experimental_analysis = {}

    _, text = _render(sample_results)

    assert UNCALLED_DIVIDER not in text
    assert "GHSA-29mw-wpgm-hmr9" in text


def test_only_uncalled_groups():
    pkg = PackageVulns(
        package=PackageInfo("requests", "2.0.0", "PyPI"),
        vulnerabilities=[Vulnerability(id="PYSEC-1")],
        groups=[GroupInfo.from_dict({"ids": ["PYSEC-1"], "experimentalAnalysis": {"PYSEC-1": {"called": False}}})],
    )
    results = VulnerabilityResults(results=[PackageSource(SourceInfo("/work/project/requirements.txt", "lockfile"),
                                                          [pkg])])

    _, text = _render(results)
    lines = text.splitlines()

    assert _line_index(lines, UNCALLED_DIVIDER) < _line_index(lines, "PYSEC-1")


def test_nothing_to_render():
    wrote, text = _render(VulnerabilityResults())
    assert wrote is False
    assert text == ""


def test_markdown_table(sample_results):
    _, text = _render(sample_results, markdown=True)
    lines = text.splitlines()

    assert all(line.startswith("|") for line in lines)
    assert "OSV URL" in lines[0]
    assert set(lines[1].replace("|", "").strip()) <= {"-", ":", " "}
    assert "https://osv.dev/CVE-2020-8203<br/>https://osv.dev/GHSA-p6mc-m468-83gw" in text
    assert _line_index(lines, UNCALLED_DIVIDER) < _line_index(lines, "GHSA-29mw-wpgm-hmr9")


def test_styled_table_uses_rounded_borders(sample_results):
    _, text = _render(sample_results, terminal_width=200)

    assert "╭" in text
    assert "OSV-2023-1" in text


# --- License tables ---
def _licensed_results(config):
    packages = [
        PackageVulns(package=PackageInfo("a", "1.0.0", "npm"), licenses=["MIT"]),
        PackageVulns(package=PackageInfo("b", "1.0.0", "npm"), licenses=["GPL-3.0"], license_violations=["GPL-3.0"]),
        PackageVulns(package=PackageInfo("c", "1.0.0", "npm"), licenses=["MIT"]),
    ]
    return VulnerabilityResults(
        results=[PackageSource(SourceInfo("/work/project/package-lock.json", "lockfile"), packages)],
        experimental_config=ExperimentalConfig(licenses=config),
    )


def test_license_summary_table():
    results = _licensed_results(LicenseConfig(summary=True))

    assert build_license_rows(results, WORKING_DIR) == [["MIT", "2"], ["GPL-3.0", "1"]]
    wrote, text = _render(results)
    assert wrote is True
    assert "No. of package versions" in text
    assert "OSV URL" not in text


def test_license_violation_table():
    results = _licensed_results(LicenseConfig(allowlist=["MIT"]))

    assert build_license_rows(results, WORKING_DIR) == [["GPL-3.0", "npm", "b", "1.0.0", "package-lock.json"]]
    _, text = _render(results)
    assert "License Violation" in text
    assert "GPL-3.0" in text


def test_vulnerability_and_license_tables_together(sample_results):
    sample_results.experimental_config = ExperimentalConfig(licenses=LicenseConfig(summary=True))
    sample_results.results[0].packages[0].licenses = ["MIT"]

    _, text = _render(sample_results)

    assert text.index("OSV URL") < text.index("No. of package versions")


@pytest.mark.parametrize("markdown", [False, True])
def test_license_table_without_licenses_is_omitted(markdown):
    results = VulnerabilityResults(
        results=[PackageSource(SourceInfo("/work/project/go.mod", "lockfile"),
                               [PackageVulns(package=PackageInfo("x", "1", "Go"))])],
        experimental_config=ExperimentalConfig(licenses=LicenseConfig(summary=True)),
    )

    wrote, text = _render(results, markdown=markdown)

    assert wrote is False
    assert text == ""
