"""
Unit tests for the resource catalog builder.

Tests cataloging of resource files and bundles, folder exclusion, name
collisions, reset and restart behaviour of the ResourceFileSearcher class.
"""

import errno
import os
import tempfile
import shutil
import threading
from pathlib import Path
from unittest.mock import patch
import pytest

from resfinder.models.resources import ScanKind
from resfinder.search.resource_files import ResourceFileSearcher
from resfinder.tools.file_utils import file_size_at_path


class BlockingFileSearcher(ResourceFileSearcher):
    """ResourceFileSearcher that pauses on its first entry until released."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.gate = threading.Event()

    def _create_entry(self, *args):
        self.entered.set()
        self.gate.wait(5)
        return super()._create_entry(*args)


class TestResourceFileSearcher:
    """Test cases for the ResourceFileSearcher class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.test_root = Path(self.temp_dir).resolve()
        self._create_test_structure()
        self.searcher = ResourceFileSearcher()

    def teardown_method(self):
        """Clean up test fixtures."""
        self.searcher.close()
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write(self, relative, content=b"\x89PNG\x00data"):
        path = self.test_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    def _create_test_structure(self):
        self._write("images/icon.png")
        self._write("images/@exclude/unused.png")
        self._write("app.txt", b'"icon"')

    def test_scenario_exclusion(self):
        """Test the excluded folder's resources are not cataloged."""
        summary = self.searcher.run(str(self.test_root), ["@exclude"], [".png"])

        assert summary.completed
        assert summary.kind == ScanKind.RESOURCE_FILES
        assert set(self.searcher.resources) == {"icon"}
        assert summary.item_count == 1

    def test_entry_fields(self):
        """Test the fields of a cataloged file."""
        self.searcher.run(str(self.test_root), [], ["png"])
        entry = self.searcher.get("icon")

        assert entry is not None
        assert entry.full_path == str(self.test_root / "images/icon.png")
        assert entry.relative_path == os.path.join("images", "icon.png")
        assert entry.is_directory is False
        assert entry.size_bytes == len(b"\x89PNG\x00data")
        assert entry.file_name == "icon.png"

    def test_no_entry_under_excluded_folder(self):
        """Test that nothing below an excluded folder name is cataloged, at any depth."""
        self._write("Pods/A/a.png")
        self._write("Sub/Pods/b.png")
        self._write("Sub/keep.png")
        self.searcher.run(str(self.test_root), ["Pods"], ["png"])

        for entry in self.searcher.resources.values():
            assert "Pods" not in Path(entry.relative_path).parts
        assert "keep" in self.searcher

    def test_file_named_like_excluded_folder_is_cataloged(self):
        """Test exclusion applies to folders, not to equally named files."""
        self._write("images/skip.png")
        self._write("skip.png/inner.png")
        self.searcher.run(str(self.test_root), ["skip.png"], ["png"])

        assert "skip" in self.searcher
        assert "inner" not in self.searcher
        assert self.searcher.get("skip").relative_path == os.path.join("images", "skip.png")

    def test_suffix_filter(self):
        """Test only accepted suffixes are cataloged, case-insensitively."""
        self._write("images/photo.JPG")
        self._write("images/anim.gif")
        self.searcher.run(str(self.test_root), [], ["png", ".jpg"])

        assert "photo" in self.searcher
        assert "anim" not in self.searcher
        assert "app" not in self.searcher

    def test_bundle_directory(self):
        """Test an image set is one entry with its recursive size."""
        self._write("Assets.xcassets/logo.imageset/logo@2x.png", b"12345")
        self._write("Assets.xcassets/logo.imageset/Contents.json", b"{}")
        self.searcher.run(str(self.test_root), [], ["imageset", "png"])

        entry = self.searcher.get("logo")
        assert entry.is_directory is True
        assert entry.size_bytes == 7
        assert entry.relative_path == os.path.join("Assets.xcassets", "logo.imageset")
        # Files inside the bundle are not cataloged separately
        assert len([e for e in self.searcher.resources.values() if "logo.imageset" in e.full_path]) == 1

    def test_scale_variants_collapse(self):
        """Test density variants share one name and the last visited wins."""
        self._write("res/icon.png")
        self._write("res/icon@2x.png")
        self._write("res/icon@3x.png")
        shutil.rmtree(self.test_root / "images")
        self.searcher.run(str(self.test_root), [], ["png"])

        assert len(self.searcher) == 1
        assert self.searcher.get("icon").file_name == "icon@3x.png"

    def test_rerun_replaces_catalog(self):
        """Test a second scan replaces the first one's results."""
        other = Path(tempfile.mkdtemp()).resolve()
        try:
            (other / "other.png").write_bytes(b"png")
            self.searcher.run(str(self.test_root), [], ["png"])
            assert "icon" in self.searcher

            self.searcher.run(str(other), [], ["png"])
            assert set(self.searcher.resources) == {"other"}
        finally:
            shutil.rmtree(other)

    def test_reset_clears_catalog(self):
        """Test reset leaves an empty catalog."""
        self.searcher.run(str(self.test_root), [], ["png"])
        assert len(self.searcher) == 2

        self.searcher.reset()
        assert len(self.searcher) == 0
        assert self.searcher.get("icon") is None
        assert self.searcher.last_summary is None

    def test_reset_before_scan(self):
        self.searcher.reset()
        assert self.searcher.resources == {}

    def test_missing_root(self):
        """Test a missing root reports an error and zero entries."""
        self.searcher.run(str(self.test_root), [], ["png"])
        summary = self.searcher.run(str(self.test_root / "missing"), [], ["png"])

        assert summary.error is not None
        assert "does not exist" in summary.error
        assert summary.cancelled is False
        assert len(self.searcher) == 0

    def test_unreadable_entry_skipped(self):
        """Test an entry that cannot be stat'd is skipped and counted."""
        def failing_size(path):
            if path.endswith("icon.png"):
                raise PermissionError(13, "Permission denied", path)
            return file_size_at_path(path)

        with patch("resfinder.search.resource_files.file_size_at_path", side_effect=failing_size):
            summary = self.searcher.run(str(self.test_root), [], ["png"])

        assert "icon" not in self.searcher
        assert "unused" in self.searcher
        assert summary.errors == 1

    def test_undecodable_file_name_skipped(self):
        """Test a file name that is not valid UTF-8 is skipped and the scan completes."""
        images = os.fsencode(str(self.test_root / "images"))
        try:
            with open(os.path.join(images, b"bad\xff.png"), "wb") as f:
                f.write(b"\x89PNG\x00data")
        except OSError:
            pytest.skip("filesystem rejects non UTF-8 names")

        summary = self.searcher.run(str(self.test_root), [], ["png"])

        assert summary.completed
        assert summary.error is None
        assert set(self.searcher.resources) == {"icon", "unused"}
        assert summary.errors == 1

    def test_unstatable_file_skipped(self):
        """Test files in a directory without search permission are skipped and counted."""
        self._write("locked/x.png")
        original_stat = Path.stat

        def failing_stat(path, *args, **kwargs):
            if path.parent.name == "locked":
                raise PermissionError(errno.EACCES, "Permission denied", str(path))
            return original_stat(path, *args, **kwargs)

        with patch.object(Path, "stat", failing_stat):
            summary = self.searcher.run(str(self.test_root), [], ["png"])

        assert summary.completed
        assert "icon" in self.searcher
        assert "x" not in self.searcher
        assert summary.errors == 1

    def test_failed_scan_publishes_empty_catalog(self):
        """Test an unexpected failure replaces the previous catalog with an empty one."""
        self.searcher.run(str(self.test_root), [], ["png"])
        assert len(self.searcher) == 2

        with patch.object(self.searcher, "_create_entry", side_effect=RuntimeError("disk on fire")):
            summary = self.searcher.run(str(self.test_root), [], ["png"])

        assert summary.cancelled is False
        assert "disk on fire" in summary.error
        assert len(self.searcher) == 0
        assert self.searcher.last_summary is summary

    def test_symlink_cycle(self):
        """Test a scan over a self-referential link completes."""
        try:
            os.symlink(self.test_root, self.test_root / "images" / "loop")
        except (OSError, NotImplementedError):
            pytest.skip("symbolic links not supported")

        future = self.searcher.start(str(self.test_root), [], ["png"])
        summary = future.result(timeout=10)

        assert summary.completed
        assert set(self.searcher.resources) == {"icon", "unused"}

    def test_start_callback_called_once(self):
        """Test the completion callback fires exactly once per completed scan."""
        calls = []
        future = self.searcher.start(str(self.test_root), [], ["png"], callback=calls.append)
        summary = future.result(timeout=10)

        assert calls == [summary]
        assert summary.generation == self.searcher.generation

    def test_restart_cancels_scan_in_flight(self):
        """Test a new start supersedes the running scan (last call wins)."""
        searcher = BlockingFileSearcher()
        other = Path(tempfile.mkdtemp()).resolve()
        try:
            (other / "other.png").write_bytes(b"png")
            calls = []

            first = searcher.start(str(self.test_root), [], ["png"], callback=calls.append)
            assert searcher.entered.wait(5)
            second = searcher.start(str(other), [], ["png"], callback=calls.append)
            searcher.gate.set()

            first_summary = first.result(timeout=10)
            second_summary = second.result(timeout=10)

            assert first_summary.cancelled is True
            assert second_summary.completed
            assert calls == [second_summary]
            assert set(searcher.resources) == {"other"}
        finally:
            searcher.close()
            shutil.rmtree(other)

    def test_reset_during_scan(self):
        """Test reset while a scan is running discards its results."""
        searcher = BlockingFileSearcher()
        try:
            calls = []
            future = searcher.start(str(self.test_root), [], ["png"], callback=calls.append)
            assert searcher.entered.wait(5)
            searcher.reset()
            searcher.gate.set()

            summary = future.result(timeout=10)
            assert summary.cancelled is True
            assert calls == []
            assert len(searcher) == 0
        finally:
            searcher.close()
