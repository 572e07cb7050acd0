"""
Background scan machinery shared by the resource searchers.

Each searcher owns a single-worker executor. Starting a scan returns a Future
for its ScanSummary; starting another scan (or calling reset) supersedes the
one in flight: the older job stops at its next check, never publishes its
results and never calls its callback.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Optional
import logging

from ..errors import ScanRootError
from ..models.resources import ScanKind, ScanSummary
from ..tools.fs_walker import FSWalker


logger = logging.getLogger(__name__)

ScanCallback = Callable[[ScanSummary], None]


class ScanCancelled(Exception):
    """Raised inside a scan job when a newer scan or a reset superseded it."""
    pass


class BackgroundSearcher:
    """
    Base class for restartable scanners.

    Subclasses implement `_scan(job, **kwargs)` which fills a fresh result
    object and returns it, and `_publish(result)` / `_clear()` which swap
    it into and out of the searcher's state.
    """

    kind: ScanKind

    def __init__(self):
        self._lock = threading.RLock()
        self._generation = 0
        self._cancel_event = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._last_summary: Optional[ScanSummary] = None

    @property
    def generation(self) -> int:
        """Generation number of the latest scan or reset."""
        with self._lock:
            return self._generation

    @property
    def last_summary(self) -> Optional[ScanSummary]:
        """Summary of the latest completed scan."""
        with self._lock:
            return self._last_summary

    def _next_generation(self) -> '_ScanJob':
        """Supersede any scan in flight and open a new generation."""
        with self._lock:
            self._cancel_event.set()
            self._generation += 1
            self._cancel_event = threading.Event()
            return _ScanJob(self._generation, self._cancel_event)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def start(self, project_path: str, callback: Optional[ScanCallback] = None, **kwargs: Any) -> 'Future[ScanSummary]':
        """
        Start a scan on the searcher's background thread.

        Any scan still in flight is cancelled (last call wins).

        Args:
            project_path: Project root directory
            callback: Called once with the summary when the scan completes;
                not called for scans that get superseded

        Returns:
            Future resolving to the ScanSummary of this invocation
        """
        job = self._next_generation()
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix=f"resfinder-{self.kind.value}"
                )
            executor = self._executor
        logger.debug(f"Queued {self.kind.value} scan #{job.generation} of {project_path}")
        return executor.submit(self._execute, job, project_path, callback, kwargs)

    def run(self, project_path: str, callback: Optional[ScanCallback] = None, **kwargs: Any) -> ScanSummary:
        """
        Run a scan synchronously on the calling thread.

        Same semantics as `start`, including cancellation of a scan in flight.
        """
        job = self._next_generation()
        return self._execute(job, project_path, callback, kwargs)

    def reset(self) -> None:
        """Cancel any scan in flight and clear the results."""
        with self._lock:
            self._next_generation()
            self._clear()
            self._last_summary = None
        logger.debug(f"{self.kind.value} searcher reset")

    def close(self, wait: bool = True) -> None:
        """Cancel any scan in flight and shut the background thread down."""
        with self._lock:
            self._cancel_event.set()
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _execute(self, job: '_ScanJob', project_path: str,
                 callback: Optional[ScanCallback], kwargs: dict) -> ScanSummary:
        summary = ScanSummary(kind=self.kind, root=str(project_path), generation=job.generation)
        walker = FSWalker(kwargs.get('exclude_folders'), should_stop=job.is_cancelled)
        logger.info(f"Starting {self.kind.value} scan #{job.generation} of {project_path}")

        result = None
        try:
            job.check()
            root = walker.validate_root(project_path)
            summary.root = str(root)
            result = self._scan(job, walker, root, **kwargs)
            job.check()
        except ScanCancelled:
            summary.cancelled = True
        except ScanRootError as e:
            logger.error(f"{self.kind.value} scan #{job.generation} failed: {e}")
            summary.error = str(e)
        except Exception as e:
            logger.error(f"{self.kind.value} scan #{job.generation} aborted: {e}", exc_info=True)
            summary.error = f"Scan aborted: {e}"
            result = None

        stats = walker.get_stats()
        summary.files_scanned = stats['files_scanned']
        summary.directories_traversed = stats['directories_traversed']
        summary.errors = stats['errors']
        summary.finished_at = datetime.now()

        with self._lock:
            if summary.cancelled or not self._is_current(job.generation):
                summary.cancelled = True
            else:
                # A failed root publishes an empty result
                summary.item_count = self._publish(result)
                self._last_summary = summary

        if summary.cancelled:
            logger.info(f"{self.kind.value} scan #{job.generation} cancelled")
            return summary

        logger.info(
            f"Finished {self.kind.value} scan #{job.generation}: {summary.item_count} items, "
            f"{summary.files_scanned} files, {summary.errors} errors"
        )
        if callback is not None:
            callback(summary)
        return summary

    def _scan(self, job: '_ScanJob', walker: FSWalker, root, **kwargs: Any) -> Any:
        raise NotImplementedError

    def _publish(self, result: Any) -> int:
        """Replace the current results; returns the number of items. Called under the lock."""
        raise NotImplementedError

    def _clear(self) -> None:
        """Empty the current results. Called under the lock."""
        raise NotImplementedError


class _ScanJob:
    """Cancellation handle of one scan generation."""

    def __init__(self, generation: int, cancel_event: threading.Event):
        self.generation = generation
        self._cancel_event = cancel_event

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def check(self) -> None:
        """Raise ScanCancelled if this job has been superseded."""
        if self._cancel_event.is_set():
            raise ScanCancelled(f"scan #{self.generation} superseded")
