"""
Reading scan result documents and writing JSON exports.
"""

import os
import sys
import json
import logging
from typing import Any, TextIO

from ..exceptions import FileSystemError, ValidationError
from ..models import VulnerabilityResults

logger = logging.getLogger("osv-reporter")

STDIN_PATH = "-"


def _read_document(stream: TextIO, path: str) -> Any:
    try:
        return json.load(stream)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Results file {path} is not valid JSON: {e}",
                              details={"path": path, "line": e.lineno, "column": e.colno}) from e


def load_results(path: str) -> VulnerabilityResults:
    """
    Load a results document (``{"results": [...]}``) from *path*.

    ``-`` reads from standard input.

    Raises:
        FileSystemError: The file cannot be read.
        ValidationError: The content is not a results document.
    """
    if path == STDIN_PATH:
        logger.debug("Reading results from stdin")
        data = _read_document(sys.stdin, "<stdin>")
    else:
        if not os.path.isfile(path):
            raise FileSystemError(f"Results file does not exist: {path}", details={"path": path})
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = _read_document(f, path)
        except (IOError, OSError) as e:
            raise FileSystemError(f"Failed to read results file {path}: {e}", details={"path": path}) from e

    results = VulnerabilityResults.from_dict(data)
    logger.info("Loaded %d package sources from %s", len(results.results), path)
    return results


def open_output(path: str) -> TextIO:
    """
    Open *path* for writing a report, creating parent directories.

    Raises:
        FileSystemError: The file cannot be created.
    """
    output_dir = os.path.dirname(path) or "."
    try:
        os.makedirs(output_dir, exist_ok=True)
        return open(path, "w", encoding="utf-8")
    except (IOError, OSError) as e:
        raise FileSystemError(f"Failed to open output file {path}: {e}", details={"path": path}) from e
