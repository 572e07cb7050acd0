"""
Configuration data models for the Unused Resource Finder.

This module defines the scan configuration: the project root, the folders to
exclude from traversal, the resource and source file suffixes, and the
regular expressions used to detect resources referenced through format strings.
"""

from typing import Dict, List, Any, Pattern
from pathlib import Path
import re
from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator


DEFAULT_RESOURCE_SUFFIXES = ["imageset", "jpg", "gif", "png"]

DEFAULT_FILE_SUFFIXES = [
    "h", "m", "mm", "swift", "xib", "storyboard", "strings",
    "c", "cpp", "html", "js", "json", "plist", "css",
]

# A numeric run, optionally led by '-' or '_', as in icon_tag_1 or loading-03.
DEFAULT_SIMILAR_PATTERNS = [
    r"[-_]?(\d+)",
]


def normalize_suffixes(suffixes: List[str]) -> List[str]:
    """
    Normalize a list of suffixes to lowercase without a leading dot.

    Duplicates and blank entries are dropped, first occurrence order is kept.
    """
    normalized = []
    for suffix in suffixes:
        if suffix is None:
            continue
        value = str(suffix).strip().lstrip('.').lower()
        if value and value not in normalized:
            normalized.append(value)
    return normalized


class LimitsConfig(BaseModel):
    """
    Configuration for scan limits.

    Attributes:
        max_bytes_per_file: Largest source file read for usage strings (bytes)
        max_string_length: Longest literal kept as a usage string
    """

    max_bytes_per_file: int = Field(5000000, gt=0, description="Largest source file read for usage strings (bytes)")
    max_string_length: int = Field(256, gt=0, description="Longest literal kept as a usage string")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()


class ScanConfig(BaseModel):
    """
    Main configuration for a resource scan.

    Attributes:
        project_path: Root directory of the project to scan
        exclude_folders: Folder names skipped (with their subtree) wherever they occur
        resource_suffixes: Suffixes of files and bundle directories cataloged as resources
        file_suffixes: Suffixes of files whose content is scanned for usage strings
        similar_patterns: Regular expressions marking the variable part of resource names
        ignore_similar: Whether a similar-name match counts as a usage
        limits: Scan limits
    """

    project_path: str = Field(..., min_length=1, description="Root directory of the project to scan")
    exclude_folders: List[str] = Field(default_factory=list, description="Folder names to exclude")
    resource_suffixes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_RESOURCE_SUFFIXES),
        description="Resource file and bundle suffixes"
    )
    file_suffixes: List[str] = Field(
        default_factory=lambda: list(DEFAULT_FILE_SUFFIXES),
        description="Suffixes of files scanned for usage strings"
    )
    similar_patterns: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SIMILAR_PATTERNS),
        description="Regular expressions for similar-name matching"
    )
    ignore_similar: bool = Field(True, description="Treat similar-name matches as used")
    limits: LimitsConfig = Field(default_factory=LimitsConfig, description="Scan limits")

    _compiled_patterns: List[Pattern] = PrivateAttr(default_factory=list)

    @field_validator('project_path')
    @classmethod
    def validate_project_path(cls, v: str) -> str:
        """Expand the user directory and make the path absolute."""
        if not v.strip():
            raise ValueError("Project path cannot be empty")
        return str(Path(v.strip()).expanduser().absolute())

    @field_validator('exclude_folders', mode='before')
    @classmethod
    def validate_exclude_folders(cls, v) -> List[str]:
        """Accept a single folder name and drop blank entries."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        folders = []
        for folder in v:
            name = str(folder).strip().rstrip('/\\')
            if name and name not in folders:
                folders.append(name)
        return folders

    @field_validator('resource_suffixes', 'file_suffixes', mode='before')
    @classmethod
    def validate_suffixes(cls, v) -> List[str]:
        """Normalize suffixes; '.PNG' and 'png' are the same suffix."""
        if v is None:
            return []
        if isinstance(v, str):
            v = re.split(r'[|,\s]+', v)
        return normalize_suffixes(v)

    @field_validator('similar_patterns', mode='before')
    @classmethod
    def validate_similar_patterns(cls, v) -> List[str]:
        """Ensure every similar-name pattern is a valid regular expression."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        patterns = []
        for pattern in v:
            if not pattern:
                continue
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid similar-name pattern '{pattern}': {e}")
            patterns.append(pattern)
        return patterns

    @model_validator(mode='after')
    def validate_suffix_lists(self):
        """A scan without resource suffixes can never catalog anything."""
        if not self.resource_suffixes:
            raise ValueError("At least one resource suffix must be specified")
        return self

    def model_post_init(self, __context) -> None:
        """Compile similar-name patterns for efficient matching."""
        self._compiled_patterns = [re.compile(p) for p in self.similar_patterns]

    @property
    def compiled_patterns(self) -> List[Pattern]:
        """Similar-name patterns, compiled."""
        return list(self._compiled_patterns)

    def get_project_path(self) -> Path:
        """Get the project root as a Path."""
        return Path(self.project_path)

    def validate_configuration(self) -> List[str]:
        """
        Check the configuration for problems that do not prevent a scan.

        Returns:
            List of warning messages
        """
        warnings = []
        project = self.get_project_path()

        if not project.exists():
            warnings.append(f"Project path does not exist: {project}")
        elif not project.is_dir():
            warnings.append(f"Project path is not a directory: {project}")

        if not self.file_suffixes:
            warnings.append("No file suffixes configured - no usage strings will be collected")

        overlap = set(self.resource_suffixes) & set(self.file_suffixes)
        if overlap:
            warnings.append(
                f"Suffixes configured as both resource and source: {', '.join(sorted(overlap))}"
            )

        if self.ignore_similar and not self.similar_patterns:
            warnings.append("Similar-name matching is enabled but no patterns are configured")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['limits'] = self.limits.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScanConfig':
        """Create configuration from dictionary."""
        return cls(**data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        return (
            f"ScanConfig(project={self.project_path}, "
            f"exclude={len(self.exclude_folders)}, "
            f"resources={','.join(self.resource_suffixes)}, "
            f"files={len(self.file_suffixes)} suffixes)"
        )


def validate_config_dict(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate raw configuration data before building a ScanConfig.

    Args:
        config_data: Raw configuration dictionary (e.g. from YAML)

    Returns:
        The configuration dictionary with unknown keys removed

    Raises:
        ValueError: If the data has the wrong shape
    """
    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(config_data).__name__}")

    known_fields = set(ScanConfig.model_fields)
    unknown = sorted(set(config_data) - known_fields)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

    for key in ('exclude_folders', 'resource_suffixes', 'file_suffixes', 'similar_patterns'):
        value = config_data.get(key)
        if value is not None and not isinstance(value, (list, str)):
            raise ValueError(f"'{key}' must be a list of strings")

    limits = config_data.get('limits')
    if limits is not None and not isinstance(limits, dict):
        raise ValueError("'limits' must be a mapping")

    return dict(config_data)
