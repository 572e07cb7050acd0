"""
Resource data models for the Unused Resource Finder.

This module defines the data structures produced by the scanners: cataloged
resource entries, the set of usage strings collected from source files,
per-scan summaries and the unused resource report.
"""

from typing import Dict, List, Optional, Any, Iterator, Iterable, Pattern
from datetime import datetime
from pathlib import Path
from enum import Enum
import re
from pydantic import BaseModel, Field, field_validator, model_validator


class ScanKind(Enum):
    """The two kinds of scans."""
    RESOURCE_FILES = "resource_files"
    RESOURCE_STRINGS = "resource_strings"


class ResourceEntry(BaseModel):
    """
    A resource file or resource bundle directory found in the project.

    Attributes:
        name: Catalog key (base name with resource suffix and scale qualifiers stripped)
        full_path: Absolute path to the file or directory
        relative_path: Path relative to the project root
        is_directory: Whether the entry is a resource bundle directory
        size_bytes: File size, or the recursive total for a directory
    """

    name: str = Field(..., min_length=1, description="Catalog key")
    full_path: str = Field(..., min_length=1, description="Absolute path")
    relative_path: str = Field(..., description="Path relative to the project root")
    is_directory: bool = Field(False, description="Whether the entry is a directory")
    size_bytes: int = Field(0, ge=0, description="Size in bytes")

    @field_validator('full_path')
    @classmethod
    def validate_full_path(cls, v: str) -> str:
        """Full paths must be absolute."""
        if not Path(v).is_absolute():
            raise ValueError(f"Resource path must be absolute: {v}")
        return v

    @property
    def file_name(self) -> str:
        """The on-disk file or directory name."""
        return Path(self.full_path).name

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary representation."""
        data = self.model_dump()
        data['file_name'] = self.file_name
        return data

    def __str__(self) -> str:
        kind = "dir" if self.is_directory else "file"
        return f"{self.name} ({kind}: {self.relative_path})"


# printf-style specifiers: %d, %02d, %ld, %@, %1$s ...
FORMAT_SPECIFIER_RE = re.compile(
    r"%(?:\d+\$)?[-+ #0]*(?:\d+|\*)?(?:\.(?:\d+|\*))?"
    r"(?:hh|h|ll|l|L|z|j|t|q)?[@dDiuUxXoOfFeEgGcCsSpaA]"
)
# Swift "\(index)", JS/Kotlin "${index}", Python/C# "{}" / "{0}" / "{index}".
INTERPOLATION_RE = re.compile(r"\\\([^()]*(?:\([^()]*\)[^()]*)*\)|\$\{[^{}]*\}|\{\w*\}")
PLACEHOLDER_RE = re.compile(f"(?:{FORMAT_SPECIFIER_RE.pattern})|(?:{INTERPOLATION_RE.pattern})")

MIN_TEMPLATE_LITERAL_CHARS = 2


def template_to_regex(template: str) -> Optional[Pattern]:
    """
    Convert a usage string containing placeholders into a regular expression.

    Literal parts must match verbatim, each placeholder matches one or more
    characters. Returns None when the string has no placeholder or fewer than
    two literal characters (a bare "%d" would match every name).
    """
    parts = []
    cursor = 0
    literal_chars = 0
    placeholders = 0

    for match in PLACEHOLDER_RE.finditer(template):
        start, end = match.span()
        literal = template[cursor:start]
        parts.append(re.escape(literal))
        literal_chars += len(literal)
        parts.append(".+?")
        placeholders += 1
        cursor = end

    if not placeholders:
        return None

    literal = template[cursor:]
    parts.append(re.escape(literal))
    literal_chars += len(literal)

    if literal_chars < MIN_TEMPLATE_LITERAL_CHARS:
        return None

    return re.compile("".join(parts))


class UsageStringSet:
    """
    Set of unique strings collected from source files.

    Membership only: no ordering, no counts. Strings that contain a format
    placeholder are additionally indexed as templates for similar-name matching.
    """

    def __init__(self, strings: Optional[Iterable[str]] = None):
        self._strings = set()
        self._templates: Dict[str, Optional[Pattern]] = {}
        if strings:
            for value in strings:
                self.add(value)

    def add(self, value: str) -> None:
        """Add a string to the set."""
        if value in self._strings:
            return
        self._strings.add(value)
        if PLACEHOLDER_RE.search(value):
            # Compiled on first use by iter_templates
            self._templates[value] = None

    def update(self, values: Iterable[str]) -> None:
        """Add several strings to the set."""
        for value in values:
            self.add(value)

    def clear(self) -> None:
        """Remove all strings."""
        self._strings.clear()
        self._templates.clear()

    def iter_templates(self) -> Iterator[Pattern]:
        """Yield the compiled regular expression of every template usage string."""
        for template in list(self._templates):
            regex = self._templates.get(template)
            if regex is None:
                regex = template_to_regex(template)
                if regex is None:
                    continue
                self._templates[template] = regex
            yield regex

    @property
    def template_count(self) -> int:
        """Number of stored strings that contain a placeholder."""
        return len(self._templates)

    def copy(self) -> 'UsageStringSet':
        """Return an independent copy of the set."""
        return UsageStringSet(self._strings)

    def __contains__(self, value: object) -> bool:
        return value in self._strings

    def __iter__(self) -> Iterator[str]:
        return iter(self._strings)

    def __len__(self) -> int:
        return len(self._strings)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, UsageStringSet):
            return self._strings == other._strings
        if isinstance(other, (set, frozenset)):
            return self._strings == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"UsageStringSet({len(self._strings)} strings)"


class ScanSummary(BaseModel):
    """
    Outcome of one scan invocation.

    Attributes:
        kind: Which scanner produced the summary
        root: Project root that was scanned
        generation: Generation number of the scan within its searcher
        item_count: Resources cataloged or usage strings collected
        files_scanned: Files examined
        directories_traversed: Directories entered
        errors: Entries skipped because they could not be read
        error: Fatal error for the project root, if any
        cancelled: Whether a reset or a newer scan superseded this one
        started_at: Start timestamp
        finished_at: End timestamp
    """

    kind: ScanKind = Field(..., description="Scanner that produced the summary")
    root: str = Field(..., description="Project root that was scanned")
    generation: int = Field(..., ge=0, description="Scan generation number")
    item_count: int = Field(0, ge=0, description="Resources cataloged or strings collected")
    files_scanned: int = Field(0, ge=0, description="Files examined")
    directories_traversed: int = Field(0, ge=0, description="Directories entered")
    errors: int = Field(0, ge=0, description="Entries skipped because they could not be read")
    error: Optional[str] = Field(None, description="Fatal error for the project root")
    cancelled: bool = Field(False, description="Whether the scan was superseded")
    started_at: datetime = Field(default_factory=datetime.now, description="Start timestamp")
    finished_at: Optional[datetime] = Field(None, description="End timestamp")

    @field_validator('kind', mode='before')
    @classmethod
    def validate_kind(cls, v) -> ScanKind:
        """Ensure kind is a ScanKind enum."""
        if isinstance(v, str):
            try:
                return ScanKind(v)
            except ValueError:
                raise ValueError(f"Invalid scan kind: {v}")
        return v

    @model_validator(mode='after')
    def validate_timestamps(self):
        """The end of a scan cannot precede its start."""
        if self.finished_at is not None and self.finished_at < self.started_at:
            raise ValueError("finished_at must be >= started_at")
        return self

    @property
    def completed(self) -> bool:
        """Whether the scan ran to completion and its results were kept."""
        return not self.cancelled and self.finished_at is not None

    @property
    def duration_seconds(self) -> Optional[float]:
        """Wall-clock duration of the scan."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary representation."""
        data = self.model_dump()
        data['kind'] = self.kind.value
        data['started_at'] = self.started_at.isoformat()
        data['finished_at'] = self.finished_at.isoformat() if self.finished_at else None
        data['duration_seconds'] = self.duration_seconds
        return data


class UnusedResourceReport(BaseModel):
    """
    Result of cross-referencing the resource catalog with the usage strings.

    Attributes:
        project_path: Project root that was analysed
        unused: Entries referenced nowhere, sorted by relative path
        total_resources: Number of cataloged resources
        used_exact: Resources whose name appears verbatim
        used_similar: Resources referenced only through a similar-name template
    """

    project_path: str = Field(..., description="Project root that was analysed")
    unused: List[ResourceEntry] = Field(default_factory=list, description="Unreferenced resources")
    total_resources: int = Field(0, ge=0, description="Number of cataloged resources")
    used_exact: int = Field(0, ge=0, description="Resources referenced verbatim")
    used_similar: int = Field(0, ge=0, description="Resources referenced through a template")

    @model_validator(mode='after')
    def validate_counts(self):
        """Every cataloged resource is counted exactly once."""
        if self.used_exact + self.used_similar + len(self.unused) != self.total_resources:
            raise ValueError("Resource counts do not add up to total_resources")
        return self

    @property
    def unused_names(self) -> List[str]:
        """Names of the unused resources."""
        return [entry.name for entry in self.unused]

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary representation."""
        data = self.model_dump()
        data['unused'] = [entry.to_dict() for entry in self.unused]
        return data
