# tests/unit/handlers/test_report.py

import json
import pytest
from io import StringIO

from osv_reporter.handlers import handle_report
from osv_reporter.exceptions import (
    FileSystemError,
    LicenseNotFoundError,
    LicenseServiceError,
    NoPackageSourcesError,
    ValidationError,
)


def _output(reporter):
    return json.loads(reporter.stdout.getvalue())


def test_handle_report_groups_and_drops_clean_packages(mock_params, json_reporter):
    results = handle_report(mock_params, json_reporter)

    assert results.vulnerability_count() == 2
    output = _output(json_reporter)
    assert "experimental_config" not in output
    packages = output["results"][0]["packages"]
    assert [p["package"]["name"] for p in packages] == ["jinja2"]
    assert packages[0]["groups"] == [{"ids": ["GHSA-462w-v97r-4m45", "PYSEC-2019-217"]}]
    assert not json_reporter.has_printed_error()


def test_handle_report_all_packages(mock_params, json_reporter):
    mock_params.all_packages = True

    handle_report(mock_params, json_reporter)

    packages = _output(json_reporter)["results"][0]["packages"]
    assert [p["package"]["name"] for p in packages] == ["jinja2", "six"]


def test_handle_report_keeps_existing_groups(mock_params, json_reporter, results_file, sample_document):
    package = sample_document["results"][0]["packages"][0]
    package["groups"] = [
        {"ids": ["GHSA-462w-v97r-4m45"]},
        {"ids": ["PYSEC-2019-217"], "experimentalAnalysis": {"PYSEC-2019-217": {"called": False}}},
    ]
    with open(results_file, "w", encoding="utf-8") as f:
        json.dump(sample_document, f)

    results = handle_report(mock_params, json_reporter)

    groups = results.results[0].packages[0].groups
    assert [g.ids for g in groups] == [["GHSA-462w-v97r-4m45"], ["PYSEC-2019-217"]]
    assert groups[1].is_called() is False


def test_handle_report_license_summary(mock_params, json_reporter, mock_depsdev, mocker):
    mock_params.licenses = []
    mock_depsdev.make_version_requests.return_value = [["BSD-3-Clause"], ["MIT"]]
    client_class = mocker.patch("osv_reporter.handlers.report.DepsDevAPI", return_value=mock_depsdev)

    handle_report(mock_params, json_reporter)

    client_class.assert_called_once_with(api_url="https://deps.example.com/v3", timeout=5.0, max_workers=2)
    output = _output(json_reporter)
    assert output["experimental_config"] == {"licenses": {"summary": True, "allowlist": []}}
    packages = output["results"][0]["packages"]
    # License checking keeps packages without vulnerabilities.
    assert [(p["package"]["name"], p["licenses"]) for p in packages] == [
        ("jinja2", ["BSD-3-Clause"]), ("six", ["MIT"]),
    ]
    assert all("licenseViolations" not in p for p in packages)


def test_handle_report_license_allowlist(mock_params, json_reporter, mock_depsdev):
    mock_params.licenses = ["MIT"]
    mock_depsdev.make_version_requests.return_value = [["BSD-3-Clause"], ["MIT"]]

    results = handle_report(mock_params, json_reporter)

    packages = results.results[0].packages
    assert packages[0].license_violations == ["BSD-3-Clause"]
    assert packages[1].license_violations == []
    assert _output(json_reporter)["results"][0]["packages"][0]["licenseViolations"] == ["BSD-3-Clause"]


def test_handle_report_license_failure_still_reports(mock_params, json_reporter, mock_depsdev):
    mock_params.licenses = []
    mock_depsdev.make_version_requests.side_effect = LicenseServiceError("connection refused")

    results = handle_report(mock_params, json_reporter)

    assert json_reporter.has_printed_error()
    assert "License lookup failed: connection refused" in json_reporter.stderr.getvalue()
    assert results.vulnerability_count() == 2
    assert all(not p.get("licenses") for p in _output(json_reporter)["results"][0]["packages"])


def test_handle_report_license_not_found(mock_params, json_reporter, mock_depsdev):
    mock_params.licenses = []
    mock_depsdev.make_version_requests.side_effect = LicenseNotFoundError(
        "1 package version(s) not found", licenses=[["BSD-3-Clause"], ["UNKNOWN"]], code="not_found")

    results = handle_report(mock_params, json_reporter)

    assert [p.licenses for p in results.results[0].packages] == [["BSD-3-Clause"], ["UNKNOWN"]]
    assert "License lookup incomplete" in json_reporter.stderr.getvalue()
    assert json_reporter.has_printed_error()


def test_handle_report_no_sources(mock_params, json_reporter, results_file):
    with open(results_file, "w", encoding="utf-8") as f:
        json.dump({"results": []}, f)

    with pytest.raises(NoPackageSourcesError):
        handle_report(mock_params, json_reporter)

    assert json_reporter.stderr.getvalue() == "No package sources found, --help for usage information.\n"
    assert json_reporter.stdout.getvalue() == ""


def test_handle_report_missing_file(mock_params, json_reporter, tmp_path):
    mock_params.results = str(tmp_path / "missing.json")

    with pytest.raises(FileSystemError):
        handle_report(mock_params, json_reporter)
    assert "missing.json" in json_reporter.stderr.getvalue()


def test_handle_report_invalid_json(mock_params, json_reporter, results_file):
    with open(results_file, "w", encoding="utf-8") as f:
        f.write("{not json")

    with pytest.raises(ValidationError):
        handle_report(mock_params, json_reporter)
    assert "Validation error" in json_reporter.stderr.getvalue()


def test_handle_report_reads_stdin(mock_params, json_reporter, mocker, sample_document):
    mock_params.results = "-"
    mocker.patch("sys.stdin", new=StringIO(json.dumps(sample_document)))

    results = handle_report(mock_params, json_reporter)

    assert results.vulnerability_count() == 2
