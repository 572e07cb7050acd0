"""
Resource scanners for the Unused Resource Finder.

The resource catalog builder and the usage string collector scan a project
independently; the matcher and the analyzer cross-reference their results.
"""

from .resource_files import ResourceFileSearcher
from .resource_strings import ResourceStringSearcher
from .matcher import SimilarNameMatcher
from .analyzer import UnusedResourceFinder

__all__ = [
    'ResourceFileSearcher',
    'ResourceStringSearcher',
    'SimilarNameMatcher',
    'UnusedResourceFinder'
]
