# tests/unit/handlers/conftest.py

import json
import argparse
import pytest
from io import StringIO

from osv_reporter.api import DepsDevAPI
from osv_reporter.reporter import JSONReporter


@pytest.fixture
def results_file(tmp_path, sample_document):
    path = tmp_path / "results.json"
    path.write_text(json.dumps(sample_document), encoding="utf-8")
    return str(path)


@pytest.fixture
def mock_params(results_file):
    return argparse.Namespace(
        command="report",
        results=results_file,
        format="json",
        output=None,
        all_packages=False,
        licenses=None,
        license_api_url="https://deps.example.com/v3",
        license_timeout=5.0,
        max_workers=2,
    )


@pytest.fixture
def json_reporter():
    return JSONReporter(StringIO(), StringIO())


@pytest.fixture
def mock_depsdev(mocker):
    """Replaces the license client used by the report handler."""
    client = mocker.MagicMock(spec=DepsDevAPI)
    mocker.patch("osv_reporter.handlers.report.DepsDevAPI", return_value=client)
    return client
