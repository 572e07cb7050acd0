"""
Unit tests for the unused resource analysis.
"""

import os
import tempfile
import shutil
from pathlib import Path
import pytest

from resfinder.models.config import ScanConfig
from resfinder.models.resources import ScanKind
from resfinder.search.analyzer import UnusedResourceFinder
from resfinder.search.resource_files import ResourceFileSearcher
from resfinder.search.resource_strings import ResourceStringSearcher


class TestUnusedResourceFinder:
    """Test cases for the UnusedResourceFinder class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.test_root = Path(self.temp_dir).resolve()
        self._create_project()

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _write(self, relative, content):
        path = self.test_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')

    def _create_project(self):
        png = b"\x89PNG\r\n\x1a\n\x00\x00"
        self._write("App/Images/icon_home.png", png)
        self._write("App/Images/icon_home@2x.png", png)
        self._write("App/Images/icon_tag_1.png", png)
        self._write("App/Images/icon_tag_2.png", png)
        self._write("App/Images/orphan.png", png)
        self._write("App/Assets.xcassets/banner.imageset/banner.png", png)
        self._write("App/Assets.xcassets/banner.imageset/Contents.json", '{"images": []}')
        self._write("App/Assets.xcassets/stale.imageset/stale.png", png)
        self._write("Pods/Lib/Resources/pod_only.png", png)
        self._write("Pods/Lib/Lib.m", '@"orphan"')
        self._write("App/Home.m", 'self.icon = [UIImage imageNamed:@"icon_home"];')
        self._write(
            "App/Tag.swift",
            'let tag = UIImage(named: String(format: "icon_tag_%d", index))\n'
            'let b = UIImage(named: "banner")'
        )

    def _config(self, **overrides):
        values = {
            'project_path': str(self.test_root),
            'exclude_folders': ['Pods'],
        }
        values.update(overrides)
        return ScanConfig(**values)

    def test_run_reports_unused(self):
        with UnusedResourceFinder(self._config()) as finder:
            report = finder.run()

        assert report.unused_names == ["stale", "orphan"]
        assert report.total_resources == 6
        assert report.used_exact == 2
        assert report.used_similar == 2

    def test_similar_matching_disabled(self):
        with UnusedResourceFinder(self._config(ignore_similar=False)) as finder:
            report = finder.run()

        assert set(report.unused_names) == {"stale", "orphan", "icon_tag_1", "icon_tag_2"}
        assert report.used_similar == 0

    def test_custom_similar_patterns(self):
        """A pattern that never matches leaves templated resources unused."""
        with UnusedResourceFinder(self._config(similar_patterns=[r"^x(\d+)$"])) as finder:
            report = finder.run()

        assert "icon_tag_1" in report.unused_names

    def test_excluded_folder_usage_not_counted(self):
        """Strings inside excluded folders do not mark resources as used."""
        with UnusedResourceFinder(self._config()) as finder:
            report = finder.run()
        assert "orphan" in report.unused_names

        with UnusedResourceFinder(self._config(exclude_folders=[])) as finder:
            report = finder.run()
        assert "orphan" not in report.unused_names
        assert "pod_only" in report.unused_names

    def test_injected_searchers(self):
        """Test that injected searchers hold the scan results."""
        file_searcher = ResourceFileSearcher()
        string_searcher = ResourceStringSearcher()
        finder = UnusedResourceFinder(self._config(), file_searcher, string_searcher)
        try:
            summaries = finder.scan()

            assert [s.kind for s in summaries] == [ScanKind.RESOURCE_FILES, ScanKind.RESOURCE_STRINGS]
            assert "banner" in file_searcher
            assert string_searcher.contains_resource_name("banner")
            assert finder.is_used(file_searcher.get("icon_tag_2")) is True
            assert finder.is_used(file_searcher.get("orphan")) is False
        finally:
            finder.close()

    def test_find_unused_after_reset(self):
        """Reset searchers give an empty report, never stale data."""
        with UnusedResourceFinder(self._config()) as finder:
            finder.scan()
            finder.file_searcher.reset()
            finder.string_searcher.reset()
            report = finder.find_unused()

        assert report.total_resources == 0
        assert report.unused == []

    def test_missing_project(self):
        with UnusedResourceFinder(self._config(project_path=str(self.test_root / "missing"))) as finder:
            report = finder.run()

        assert report.total_resources == 0

    def test_report_to_dict(self):
        with UnusedResourceFinder(self._config()) as finder:
            data = finder.run().to_dict()

        assert data['project_path'] == str(self.test_root)
        assert [entry['file_name'] for entry in data['unused']] == ["stale.imageset", "orphan.png"]
