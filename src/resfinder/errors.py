"""
Exceptions raised by the Unused Resource Finder.
"""


class ResFinderError(Exception):
    """Base class for all errors raised by this package."""
    pass


class ScanRootError(ResFinderError):
    """Raised when the project root is missing, not a directory or unreadable."""
    pass


class ConfigurationError(ResFinderError):
    """Raised when configuration parsing or validation fails."""
    pass
