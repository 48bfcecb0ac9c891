# osv_reporter/__init__.py
"""
OSV scan result aggregation and reporting.
"""

__version__ = "1.3.6"

__all__ = ['__version__']
