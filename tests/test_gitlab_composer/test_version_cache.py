"""
Tests for the filesystem version cache
"""

import json
import os
import tempfile
from dataclasses import replace
from pathlib import Path

import pytest

from src.gitlab_composer.data_models import ProjectVersionMap
from src.gitlab_composer.version_cache import VersionCacheManager


class TestVersionCacheManager:
    """Test VersionCacheManager functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.cache_manager = VersionCacheManager(self.temp_dir)
        self.data = ProjectVersionMap(
            name="acme/lib",
            versions={
                "v1.2.0": {
                    "name": "acme/lib",
                    "version": "v1.2.0",
                    "source": {"url": "git@x:acme/lib.git", "type": "git", "reference": "abc"},
                }
            },
        )

    def test_cache_file_path_follows_namespace(self, sample_project):
        cache_file = self.cache_manager.get_cache_file(sample_project)
        assert cache_file == Path(self.temp_dir) / "acme" / "lib.json"

    def test_store_pins_mtime_to_last_activity(self, sample_project):
        self.cache_manager.store(sample_project, self.data)

        cache_file = self.cache_manager.get_cache_file(sample_project)
        assert int(cache_file.stat().st_mtime) == sample_project.last_activity

    def test_store_and_load_round_trip(self, sample_project):
        self.cache_manager.store(sample_project, self.data)

        loaded = self.cache_manager.load(sample_project)

        assert loaded == self.data

    def test_fresh_for_older_or_equal_activity(self, sample_project):
        self.cache_manager.store(sample_project, self.data)

        older = replace(sample_project, last_activity=sample_project.last_activity - 60)
        assert self.cache_manager.load(sample_project) is not None
        assert self.cache_manager.load(older) is not None

    def test_stale_for_newer_activity(self, sample_project):
        self.cache_manager.store(sample_project, self.data)

        newer = replace(sample_project, last_activity=sample_project.last_activity + 1)
        assert self.cache_manager.load(newer) is None

    def test_load_missing_file(self, sample_project):
        assert self.cache_manager.load(sample_project) is None

    def test_load_empty_file(self, sample_project):
        cache_file = self.cache_manager.get_cache_file(sample_project)
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        cache_file.touch()
        os.utime(cache_file, (2000000000, 2000000000))

        assert self.cache_manager.load(sample_project) is None

    def test_load_corrupt_file(self, sample_project):
        cache_file = self.cache_manager.get_cache_file(sample_project)
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        cache_file.write_text("{broken")
        os.utime(cache_file, (2000000000, 2000000000))

        assert self.cache_manager.load(sample_project) is None

    def test_packages_document(self):
        assert self.cache_manager.packages_last_modified() is None
        assert self.cache_manager.load_packages() is None

        document = {"packages": {"acme/lib": {"v1.0": {"name": "acme/lib"}}}}
        self.cache_manager.store_packages(document)

        assert self.cache_manager.load_packages() == document
        assert self.cache_manager.packages_last_modified() is not None
        with open(Path(self.temp_dir) / "packages.json") as f:
            assert json.load(f) == document

    def test_clear_cache(self, sample_project):
        self.cache_manager.store(sample_project, self.data)
        self.cache_manager.store_packages({"packages": {}})

        removed = self.cache_manager.clear_cache()

        assert removed == 2
        assert self.cache_manager.load(sample_project) is None
        assert self.cache_manager.load_packages() is None

    def test_store_replaces_existing_file_without_leftovers(self, sample_project):
        self.cache_manager.store(sample_project, ProjectVersionMap(name="acme/lib"))
        self.cache_manager.store(sample_project, self.data)
        self.cache_manager.store_packages({"packages": {}})
        self.cache_manager.store_packages({"packages": {"acme/lib": {}}})

        assert self.cache_manager.load(sample_project) == self.data
        assert self.cache_manager.load_packages() == {"packages": {"acme/lib": {}}}
        leftovers = [p for p in Path(self.temp_dir).rglob("*") if p.suffix == ".tmp"]
        assert leftovers == []

    def test_failed_write_keeps_previous_file(self, sample_project):
        self.cache_manager.store_packages({"packages": {}})

        with pytest.raises(TypeError):
            self.cache_manager.store_packages({"packages": {"bad": object()}})

        assert self.cache_manager.load_packages() == {"packages": {}}
        leftovers = [p for p in Path(self.temp_dir).rglob("*") if p.suffix == ".tmp"]
        assert leftovers == []
