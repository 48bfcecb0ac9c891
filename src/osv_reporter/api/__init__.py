"""
Clients for external services used while enriching scan results.
"""

from .depsdev_api import DepsDevAPI, VersionQuery, query_for_package, version_query

__all__ = ['DepsDevAPI', 'VersionQuery', 'query_for_package', 'version_query']
