"""
Data models for the Unused Resource Finder.

This module contains all the core data structures used throughout the system.
"""

from .config import ScanConfig, LimitsConfig
from .resources import ResourceEntry, UsageStringSet, ScanSummary, ScanKind, UnusedResourceReport

__all__ = [
    'ScanConfig',
    'LimitsConfig',
    'ResourceEntry',
    'UsageStringSet',
    'ScanSummary',
    'ScanKind',
    'UnusedResourceReport'
]
