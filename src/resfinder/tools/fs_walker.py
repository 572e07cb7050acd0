"""
Filesystem walker for the Unused Resource Finder.

This module provides the directory traversal shared by both scanners. It skips
excluded folders (matched by folder name, wherever they occur), can treat
directories with a bundle suffix as leaf entries, follows symbolic links
without looping on cycles and keeps going when individual entries are unreadable.
"""

import os
import stat
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple
import logging

from ..errors import ScanRootError
from .string_utils import normalize_suffix, get_suffix


logger = logging.getLogger(__name__)


class FSWalker:
    """
    Filesystem walker that yields files and bundle directories below a root.

    This class provides directory traversal with support for:
    - Excluded folder names (the whole subtree is skipped)
    - Bundle directories reported as single entries and not descended into
    - Symbolic-link cycle detection (directories are visited once by device/inode)
    - Cooperative cancellation through a `should_stop` callable
    """

    def __init__(self, exclude_folders: Optional[Iterable[str]] = None,
                 should_stop: Optional[Callable[[], bool]] = None):
        """
        Initialize the filesystem walker.

        Args:
            exclude_folders: Folder names to skip along with their subtree
            should_stop: Called between directories; the walk ends when it returns True
        """
        self.exclude_folders = set(exclude_folders or [])
        self._should_stop = should_stop or (lambda: False)
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'files_scanned': 0,
            'directories_traversed': 0,
            'directories_ignored': 0,
            'errors': 0
        }

    def validate_root(self, root: str) -> Path:
        """
        Resolve and check the project root.

        Args:
            root: Project root directory

        Returns:
            The resolved root path

        Raises:
            ScanRootError: If the root is missing, not a directory or unreadable
        """
        try:
            root_path = Path(root).expanduser().resolve()
        except (OSError, RuntimeError) as e:
            raise ScanRootError(f"Cannot resolve project path {root}: {e}") from e

        if not root_path.exists():
            raise ScanRootError(f"Project path does not exist: {root_path}")
        if not root_path.is_dir():
            raise ScanRootError(f"Project path is not a directory: {root_path}")
        if not os.access(root_path, os.R_OK | os.X_OK):
            raise ScanRootError(f"Project path is not readable: {root_path}")
        return root_path

    def walk(self, root: Path, bundle_suffixes: Iterable[str] = ()) -> Iterator[Tuple[Path, bool]]:
        """
        Walk a directory tree.

        Args:
            root: Resolved root directory
            bundle_suffixes: Directory suffixes treated as leaf entries

        Yields:
            (path, is_directory) for every regular file and every bundle directory
        """
        bundles = {normalize_suffix(s) for s in bundle_suffixes}
        visited: Set[Tuple[int, int]] = set()

        def _on_error(error: OSError) -> None:
            logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")
            self._stats['errors'] += 1

        for current_dir, subdirs, files in os.walk(root, followlinks=True, onerror=_on_error):
            if self._should_stop():
                logger.debug(f"Walk of {root} stopped")
                return

            current_path = Path(current_dir)
            if not self._mark_visited(current_path, visited):
                # Reached again through a symbolic link
                subdirs[:] = []
                continue
            self._stats['directories_traversed'] += 1

            descend = []
            for dirname in sorted(subdirs):
                if self._should_ignore(dirname):
                    self._stats['directories_ignored'] += 1
                    continue
                if bundles and get_suffix(dirname) in bundles:
                    yield current_path / dirname, True
                    continue
                descend.append(dirname)
            subdirs[:] = descend

            for filename in sorted(files):
                file_path = current_path / filename
                try:
                    mode = file_path.stat().st_mode
                except FileNotFoundError:
                    # Broken link
                    continue
                except OSError as e:
                    logger.warning(f"Skipping unreadable file {file_path}: {e}")
                    self._stats['errors'] += 1
                    continue
                if not stat.S_ISREG(mode):
                    # Socket, fifo...
                    continue
                self._stats['files_scanned'] += 1
                yield file_path, False

    def iter_files(self, root: Path, suffixes: Iterable[str]) -> Iterator[Path]:
        """
        Walk a directory tree and yield files with one of the given suffixes.

        Args:
            root: Resolved root directory
            suffixes: Accepted file suffixes (case-insensitive, with or without dot)

        Yields:
            Paths of matching regular files
        """
        accepted = {normalize_suffix(s) for s in suffixes}
        for path, _ in self.walk(root):
            if get_suffix(path.name) in accepted:
                yield path

    def _mark_visited(self, path: Path, visited: Set[Tuple[int, int]]) -> bool:
        """
        Record a directory as visited.

        Returns:
            False if the directory was already visited (or cannot be stat'd)
        """
        try:
            stat_result = os.stat(path)
        except OSError as e:
            logger.warning(f"Cannot stat directory {path}: {e}")
            self._stats['errors'] += 1
            return False

        key = (stat_result.st_dev, stat_result.st_ino)
        if key in visited:
            logger.debug(f"Skipping already visited directory {path}")
            return False
        visited.add(key)
        return True

    def _should_ignore(self, dirname: str) -> bool:
        """Check if a directory name is excluded."""
        return dirname in self.exclude_folders

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the walk.

        Returns:
            Dictionary containing operation statistics
        """
        return self._stats.copy()

    def record_error(self) -> None:
        """Count an entry the caller could not process."""
        self._stats['errors'] += 1


def is_binary_file(file_path: Path) -> bool:
    """
    Check if a file appears to be binary.

    Args:
        file_path: Path to check

    Returns:
        True if the file appears to be binary

    Raises:
        OSError: If the file cannot be read
    """
    with open(file_path, 'rb') as f:
        chunk = f.read(1024)
    return is_binary_content(chunk)


def is_binary_content(chunk: bytes) -> bool:
    """Check the leading bytes of a file for binary content."""
    # Null bytes are common in binary files
    if b'\x00' in chunk:
        return True

    if chunk:
        # Bytes >= 128 count as printable so UTF-8 text is not misjudged
        printable = sum(1 for byte in chunk if 32 <= byte <= 126 or byte >= 128 or byte in (9, 10, 12, 13))
        return printable / len(chunk) < 0.7

    return False
