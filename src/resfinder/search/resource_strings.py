"""
Usage string collector.

Reads the source and text files of a project and collects every string that
could name a resource. Files are treated as opaque text: the extraction rule
for each file suffix is a set of regular expressions, no syntax is parsed.
"""

import re
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Pattern, Set, Union
import logging

from ..models.config import DEFAULT_SIMILAR_PATTERNS
from ..models.resources import ScanKind, UsageStringSet
from ..tools.fs_walker import FSWalker, is_binary_content
from ..tools.string_utils import get_suffix, normalize_suffix, remove_resource_suffix
from .base import BackgroundSearcher, ScanCallback
from .matcher import SimilarNameMatcher


logger = logging.getLogger(__name__)


DOUBLE_QUOTED = r'"((?:[^"\\\n]|\\.)*)"'
SINGLE_QUOTED = r"'((?:[^'\\\n]|\\.)*)'"

STRING_PATTERNS: Dict[str, List[str]] = {
    'm': [r'@' + DOUBLE_QUOTED, DOUBLE_QUOTED],
    'mm': [r'@' + DOUBLE_QUOTED, DOUBLE_QUOTED],
    'h': [DOUBLE_QUOTED],
    'c': [DOUBLE_QUOTED],
    'cpp': [DOUBLE_QUOTED],
    'swift': [DOUBLE_QUOTED],
    'strings': [DOUBLE_QUOTED],
    'json': [DOUBLE_QUOTED],
    'java': [DOUBLE_QUOTED],
    'kt': [DOUBLE_QUOTED],
    'xib': [
        r'\b(?:image|highlightedImage|selectedImage|backgroundImage)="([^"]+)"',
        r'<image\s+name="([^"]+)"',
        r'keyPath="\w*[iI]mage\w*"[^>]*?value="([^"]+)"',
    ],
    'storyboard': [
        r'\b(?:image|highlightedImage|selectedImage|backgroundImage)="([^"]+)"',
        r'<image\s+name="([^"]+)"',
        r'keyPath="\w*[iI]mage\w*"[^>]*?value="([^"]+)"',
    ],
    'plist': [r'<string>([^<]*)</string>'],
    'html': [r'<img[^>]*?\ssrc\s*=\s*["\']([^"\']+)["\']', DOUBLE_QUOTED, SINGLE_QUOTED],
    'js': [DOUBLE_QUOTED, SINGLE_QUOTED],
    'css': [r'url\(\s*["\']?([^"\')]+?)["\']?\s*\)'],
}

GENERIC_PATTERNS = [DOUBLE_QUOTED, SINGLE_QUOTED]


def build_token_pattern(resource_suffixes: Iterable[str]) -> Optional[Pattern]:
    """
    Build the pattern for bare resource file names, such as `bg.png` outside quotes.

    Returns:
        Compiled pattern, or None when there are no suffixes
    """
    suffixes = sorted({normalize_suffix(s) for s in resource_suffixes if s}, key=len, reverse=True)
    if not suffixes:
        return None
    alternatives = '|'.join(re.escape(s) for s in suffixes)
    return re.compile(rf'([\w@~%.-]+\.(?:{alternatives}))\b', re.IGNORECASE)


class StringExtractor:
    """
    Extracts candidate resource names from file content.

    Args:
        resource_suffixes: Suffixes stripped from extracted names
        max_string_length: Longer literals are ignored
    """

    def __init__(self, resource_suffixes: Iterable[str], max_string_length: int = 256):
        self.resource_suffixes = [normalize_suffix(s) for s in resource_suffixes]
        self.max_string_length = max_string_length
        self._token_pattern = build_token_pattern(self.resource_suffixes)
        self._compiled: Dict[str, List[Pattern]] = {}

    def patterns_for(self, suffix: str) -> List[Pattern]:
        """Get the compiled extraction patterns for a file suffix."""
        suffix = normalize_suffix(suffix)
        if suffix not in self._compiled:
            sources = STRING_PATTERNS.get(suffix, GENERIC_PATTERNS)
            self._compiled[suffix] = [re.compile(p) for p in sources]
        return self._compiled[suffix]

    def extract(self, content: str, suffix: str) -> Set[str]:
        """
        Extract normalized candidate names from text.

        Args:
            content: File content
            suffix: File suffix selecting the extraction rule

        Returns:
            Set of normalized names
        """
        found: Set[str] = set()
        for pattern in self.patterns_for(suffix):
            for match in pattern.finditer(content):
                self._add_candidate(match.group(1), found)

        if self._token_pattern is not None:
            for match in self._token_pattern.finditer(content):
                self._add_candidate(match.group(1), found)

        return found

    def _add_candidate(self, value: str, found: Set[str]) -> None:
        value = value.strip()
        if not value or len(value) > self.max_string_length:
            return

        found.add(self.normalize(value))
        if '/' in value:
            # "images/icon.png" also counts as "icon"
            basename = value.rstrip('/').rsplit('/', 1)[-1]
            if basename:
                found.add(self.normalize(basename))

    def normalize(self, value: str) -> str:
        """Strip resource suffix and scale qualifiers the way catalog keys are."""
        return remove_resource_suffix(value, self.resource_suffixes)


class ResourceStringSearcher(BackgroundSearcher):
    """
    Collects the set of strings found in a project's source files.

    Resource names are then checked against the set, verbatim with
    `contains_resource_name` or through name templates with
    `contains_similar_resource_name`.
    """

    kind = ScanKind.RESOURCE_STRINGS

    def __init__(self, max_bytes_per_file: int = 5000000, max_string_length: int = 256):
        super().__init__()
        self.max_bytes_per_file = max_bytes_per_file
        self.max_string_length = max_string_length
        self._strings = UsageStringSet()
        self._resource_suffixes: List[str] = []

    def start(self, project_path: str, exclude_folders: Iterable[str] = (),
              resource_suffixes: Iterable[str] = (), file_suffixes: Iterable[str] = (),
              callback: Optional[ScanCallback] = None):
        """
        Start collecting usage strings in the background.

        Args:
            project_path: Project root directory
            exclude_folders: Folder names to skip with their subtree
            resource_suffixes: Suffixes stripped from found strings
            file_suffixes: Suffixes of the files whose content is read
            callback: Called once with the ScanSummary when the set is ready

        Returns:
            Future resolving to the ScanSummary
        """
        return super().start(
            project_path, callback=callback,
            exclude_folders=list(exclude_folders),
            resource_suffixes=[normalize_suffix(s) for s in resource_suffixes],
            file_suffixes=[normalize_suffix(s) for s in file_suffixes],
        )

    def run(self, project_path: str, exclude_folders: Iterable[str] = (),
            resource_suffixes: Iterable[str] = (), file_suffixes: Iterable[str] = (),
            callback: Optional[ScanCallback] = None):
        """Collect usage strings on the calling thread."""
        return super().run(
            project_path, callback=callback,
            exclude_folders=list(exclude_folders),
            resource_suffixes=[normalize_suffix(s) for s in resource_suffixes],
            file_suffixes=[normalize_suffix(s) for s in file_suffixes],
        )

    def _scan(self, job, walker: FSWalker, root: Path, exclude_folders=(),
              resource_suffixes=(), file_suffixes=()):
        strings = UsageStringSet()
        extractor = StringExtractor(resource_suffixes, self.max_string_length)
        if not file_suffixes:
            logger.warning("No file suffixes given, usage set will be empty")
            return strings, resource_suffixes

        for file_path in walker.iter_files(root, file_suffixes):
            job.check()
            content = self._read_text(file_path)
            if content is None:
                walker.record_error()
                continue
            strings.update(extractor.extract(content, get_suffix(file_path.name)))

        return strings, resource_suffixes

    def _read_text(self, file_path: Path) -> Optional[str]:
        """
        Read a file as UTF-8 text.

        Returns:
            The content, or None for unreadable, oversized, binary or undecodable files
        """
        try:
            size = file_path.stat().st_size
            if size > self.max_bytes_per_file:
                logger.debug(f"Skipping large file: {file_path} ({size} bytes)")
                return None
            data = file_path.read_bytes()
        except OSError as e:
            logger.warning(f"Skipping unreadable file {file_path}: {e}")
            return None

        if is_binary_content(data[:1024]):
            logger.debug(f"Skipping binary file: {file_path}")
            return None

        try:
            return data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            logger.debug(f"Skipping undecodable file {file_path}: {e}")
            return None

    def _publish(self, result) -> int:
        if result is None:
            self._strings = UsageStringSet()
        else:
            self._strings, self._resource_suffixes = result
        return len(self._strings)

    def _clear(self) -> None:
        self._strings = UsageStringSet()
        self._resource_suffixes = []

    @property
    def strings(self) -> UsageStringSet:
        """The collected usage strings (do not modify)."""
        with self._lock:
            return self._strings

    def _normalize(self, name: str) -> str:
        return remove_resource_suffix(name, self._resource_suffixes or None)

    def contains_resource_name(self, name: str) -> bool:
        """
        Check whether a resource name appears verbatim in the usage strings.

        The name is normalized first, so `icon@2x.png` and `icon` are equivalent.
        """
        with self._lock:
            return self._normalize(name) in self._strings

    def contains_similar_resource_name(self, name: str,
                                       patterns: Optional[Iterable[Union[str, Pattern]]] = None) -> bool:
        """
        Check whether a resource is referenced through a name template.

        If resource name is `icon_tag_1.png` and the code uses `"icon_tag_%d"`,
        the resource is used with a similar name.

        Args:
            name: Resource name
            patterns: Regular expressions marking the variable part of names;
                defaults to DEFAULT_SIMILAR_PATTERNS

        Returns:
            True if a template or concatenation of the name is among the usage strings
        """
        if patterns is None:
            patterns = DEFAULT_SIMILAR_PATTERNS
        matcher = SimilarNameMatcher(patterns)
        with self._lock:
            strings = self._strings
            key = self._normalize(name)
        return matcher.matches(key, strings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._strings)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.strings))
