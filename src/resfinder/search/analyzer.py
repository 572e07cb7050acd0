"""
Unused resource analysis.

Runs the resource catalog builder and the usage string collector for a
project and reports the resources that no usage string references.
"""

from typing import List, Optional
import logging

from ..models.config import ScanConfig
from ..models.resources import ResourceEntry, ScanSummary, UnusedResourceReport
from .matcher import SimilarNameMatcher
from .resource_files import ResourceFileSearcher
from .resource_strings import ResourceStringSearcher


logger = logging.getLogger(__name__)


class UnusedResourceFinder:
    """
    Cross-references a project's resource catalog with its usage strings.

    The searchers are injected so a caller (a GUI, a test) can observe and
    reuse them; fresh ones are created when none are given.
    """

    def __init__(self, config: ScanConfig,
                 file_searcher: Optional[ResourceFileSearcher] = None,
                 string_searcher: Optional[ResourceStringSearcher] = None):
        """
        Initialize the finder.

        Args:
            config: Scan configuration
            file_searcher: Resource catalog builder
            string_searcher: Usage string collector
        """
        self.config = config
        self.file_searcher = file_searcher or ResourceFileSearcher()
        self.string_searcher = string_searcher or ResourceStringSearcher(
            max_bytes_per_file=config.limits.max_bytes_per_file,
            max_string_length=config.limits.max_string_length,
        )

    def scan(self) -> List[ScanSummary]:
        """
        Run both scans concurrently and wait for them.

        Returns:
            The summaries of the catalog scan and the usage scan
        """
        config = self.config
        files_future = self.file_searcher.start(
            config.project_path,
            exclude_folders=config.exclude_folders,
            resource_suffixes=config.resource_suffixes,
        )
        strings_future = self.string_searcher.start(
            config.project_path,
            exclude_folders=config.exclude_folders,
            resource_suffixes=config.resource_suffixes,
            file_suffixes=config.file_suffixes,
        )
        return [files_future.result(), strings_future.result()]

    def run(self) -> UnusedResourceReport:
        """Scan the project and report unused resources."""
        summaries = self.scan()
        for summary in summaries:
            if summary.error:
                logger.warning(f"{summary.kind.value} scan reported: {summary.error}")
        return self.find_unused()

    def is_used(self, entry: ResourceEntry) -> bool:
        """Check whether a cataloged resource is referenced."""
        strings = self.string_searcher.strings
        if entry.name in strings:
            return True
        if self.config.ignore_similar:
            return SimilarNameMatcher(self.config.compiled_patterns).matches(entry.name, strings)
        return False

    def find_unused(self) -> UnusedResourceReport:
        """
        Classify the cataloged resources using the results of completed scans.

        Returns:
            Report of the unused resources
        """
        resources = self.file_searcher.resources
        strings = self.string_searcher.strings
        matcher = SimilarNameMatcher(self.config.compiled_patterns) if self.config.ignore_similar else None

        unused: List[ResourceEntry] = []
        used_exact = 0
        used_similar = 0
        for name, entry in resources.items():
            if name in strings:
                used_exact += 1
            elif matcher is not None and matcher.matches(name, strings):
                used_similar += 1
            else:
                unused.append(entry)

        unused.sort(key=lambda e: e.relative_path)
        logger.info(
            f"{len(unused)} of {len(resources)} resources unused "
            f"({used_exact} referenced by name, {used_similar} by similar name)"
        )
        return UnusedResourceReport(
            project_path=self.config.project_path,
            unused=unused,
            total_resources=len(resources),
            used_exact=used_exact,
            used_similar=used_similar,
        )

    def close(self) -> None:
        """Shut down the searchers' background threads."""
        self.file_searcher.close()
        self.string_searcher.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
