"""
Resource catalog builder.

Walks a project tree and maps every resource name to the file or bundle
directory that provides it.
"""

from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional
import logging

from pydantic import ValidationError

from ..models.resources import ResourceEntry, ScanKind
from ..tools.file_utils import file_size_at_path
from ..tools.fs_walker import FSWalker
from ..tools.string_utils import get_suffix, normalize_suffix, relative_path, remove_resource_suffix
from .base import BackgroundSearcher, ScanCallback


logger = logging.getLogger(__name__)


class ResourceFileSearcher(BackgroundSearcher):
    """
    Builds the resource catalog: resource name -> ResourceEntry.

    A file is cataloged when its suffix is one of the resource suffixes; a
    directory with a resource suffix (e.g. `icon.imageset`) is cataloged as a
    single bundle entry and not descended into. When two entries normalize to
    the same name the one visited last wins.
    """

    kind = ScanKind.RESOURCE_FILES

    def __init__(self):
        super().__init__()
        self._resources: Dict[str, ResourceEntry] = {}

    def start(self, project_path: str, exclude_folders: Iterable[str] = (),
              resource_suffixes: Iterable[str] = (), callback: Optional[ScanCallback] = None):
        """
        Start building the catalog in the background.

        Args:
            project_path: Project root directory
            exclude_folders: Folder names to skip with their subtree
            resource_suffixes: Suffixes of resource files and bundle directories
            callback: Called once with the ScanSummary when the catalog is ready

        Returns:
            Future resolving to the ScanSummary
        """
        return super().start(
            project_path, callback=callback,
            exclude_folders=list(exclude_folders),
            resource_suffixes=[normalize_suffix(s) for s in resource_suffixes],
        )

    def run(self, project_path: str, exclude_folders: Iterable[str] = (),
            resource_suffixes: Iterable[str] = (), callback: Optional[ScanCallback] = None):
        """Build the catalog on the calling thread."""
        return super().run(
            project_path, callback=callback,
            exclude_folders=list(exclude_folders),
            resource_suffixes=[normalize_suffix(s) for s in resource_suffixes],
        )

    def _scan(self, job, walker: FSWalker, root: Path, exclude_folders=(), resource_suffixes=()):
        resources: Dict[str, ResourceEntry] = {}
        accepted = set(resource_suffixes)
        if not accepted:
            logger.warning("No resource suffixes given, catalog will be empty")
            return resources

        project_path = str(root)
        for path, is_dir in walker.walk(root, bundle_suffixes=accepted):
            job.check()
            if not is_dir and get_suffix(path.name) not in accepted:
                continue

            entry = self._create_entry(path, project_path, accepted)
            if entry is None:
                walker.record_error()
                continue

            previous = resources.get(entry.name)
            if previous is not None:
                logger.debug(f"Resource name '{entry.name}': {entry.relative_path} replaces {previous.relative_path}")
            resources[entry.name] = entry

        return resources

    def _create_entry(self, path: Path, project_path: str, suffixes: Iterable[str]) -> Optional[ResourceEntry]:
        """
        Create a ResourceEntry for a cataloged path.

        Returns:
            The entry, or None if the path cannot be stat'd or its name is not valid UTF-8
        """
        try:
            size, is_dir = file_size_at_path(str(path))
        except OSError as e:
            logger.warning(f"Skipping unreadable resource {path}: {e}")
            return None

        full_path = str(path)
        try:
            return ResourceEntry(
                name=remove_resource_suffix(path.name, suffixes),
                full_path=full_path,
                relative_path=relative_path(full_path, project_path),
                is_directory=is_dir,
                size_bytes=size,
            )
        except (ValidationError, UnicodeError):
            # Names that are not valid UTF-8 decode to lone surrogates
            logger.warning(f"Skipping resource with undecodable name: {full_path!r}")
            return None

    def _publish(self, result: Optional[Dict[str, ResourceEntry]]) -> int:
        self._resources = result or {}
        return len(self._resources)

    def _clear(self) -> None:
        self._resources = {}

    @property
    def resources(self) -> Dict[str, ResourceEntry]:
        """Copy of the catalog: resource name -> ResourceEntry."""
        with self._lock:
            return dict(self._resources)

    def get(self, name: str) -> Optional[ResourceEntry]:
        """Look a resource up by name."""
        with self._lock:
            return self._resources.get(name)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._resources

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)

    def __iter__(self) -> Iterator[ResourceEntry]:
        return iter(self.resources.values())
