# osv_reporter/handlers/__init__.py

import logging

# Common logger for all handlers
logger = logging.getLogger("osv-reporter")

# Import handlers
from .report import handle_report
from .flatten import handle_flatten

__all__ = [
    'handle_report',
    'handle_flatten',
]
