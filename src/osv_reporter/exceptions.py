# osv_reporter/exceptions.py

"""
Exception hierarchy for the OSV reporter.

Every error raised on purpose by the package derives from ``OsvReporterError``
so the CLI can map it to an exit code and a readable message.
"""

from typing import Any, Dict, List, Optional


class OsvReporterError(Exception):
    """Base class for all reporter errors."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ModelInvariantError(OsvReporterError):
    """The result model was built incorrectly upstream (e.g. an ungrouped vulnerability id)."""


class SeverityDecodeError(OsvReporterError):
    """A severity vector string could not be decoded."""


class LicenseServiceError(OsvReporterError):
    """The license insight service could not be queried (network, deadline, bad response)."""


class LicenseNotFoundError(LicenseServiceError):
    """
    At least one package was unknown to the license insight service.

    Raised only after every query has finished; ``licenses`` holds the complete,
    index-aligned result list with ``UNKNOWN`` in the not-found slots.
    """

    def __init__(self, message: str, licenses: List[List[str]], code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)
        self.licenses = licenses


class ConfigurationError(OsvReporterError):
    """Invalid command line options or environment."""


class ValidationError(OsvReporterError):
    """A results document does not have the expected structure."""


class FileSystemError(OsvReporterError):
    """Reading the input or writing the report failed."""


class NoPackageSourcesError(OsvReporterError):
    """The input contained no scannable package sources."""
