"""
Filesystem cache for project version maps and the aggregate package document.

A project's cache file carries the project's last activity time as its
modification time, so freshness is a plain mtime comparison and nothing needs
invalidating.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from ..shared_utilities import get_logger, get_logging_manager
from .data_models import Project, ProjectVersionMap

PACKAGES_FILE = "packages.json"


class VersionCacheManager:
    """Manages per-project and aggregate cache files under one directory."""

    def __init__(self, cache_dir: str | Path):
        """Initialize cache manager rooted at ``cache_dir``."""
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger(__name__)

    def get_cache_file(self, project: Project) -> Path:
        """Get cache file path for a project."""
        return self.cache_dir / f"{project.path_with_namespace}.json"

    @property
    def packages_file(self) -> Path:
        return self.cache_dir / PACKAGES_FILE

    def load(self, project: Project) -> ProjectVersionMap | None:
        """Load a project's cached versions if the cache is at least as new as the project."""
        cache_file = self.get_cache_file(project)
        key = project.path_with_namespace

        try:
            stat = cache_file.stat()
        except FileNotFoundError:
            get_logging_manager().log_cache_operation("load", key, hit=False)
            return None

        if stat.st_size == 0 or int(stat.st_mtime) < project.last_activity:
            get_logging_manager().log_cache_operation(
                "load", key, hit=False, stale=stat.st_size > 0
            )
            return None

        try:
            with open(cache_file) as f:
                data = ProjectVersionMap.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            self.logger.warning(f"Ignoring unreadable cache file {cache_file}: {e}")
            return None

        get_logging_manager().log_cache_operation("load", key, hit=True)
        return data

    def store(self, project: Project, data: ProjectVersionMap) -> None:
        """Write a project's versions and pin the file mtime to its last activity."""
        cache_file = self.get_cache_file(project)
        cache_file.parent.mkdir(parents=True, exist_ok=True)

        _write_json_atomic(
            cache_file, data.to_dict(), (project.last_activity, project.last_activity)
        )
        get_logging_manager().log_cache_operation(
            "store", project.path_with_namespace, versions=len(data.versions)
        )

    def packages_last_modified(self) -> int | None:
        """Modification time of the aggregate document, or None if absent."""
        try:
            return int(self.packages_file.stat().st_mtime)
        except FileNotFoundError:
            return None

    def load_packages(self) -> dict[str, Any] | None:
        """Load the aggregate package document."""
        try:
            with open(self.packages_file) as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            self.logger.warning(f"Ignoring unreadable {self.packages_file}: {e}")
            return None

    def store_packages(self, document: dict[str, Any]) -> None:
        """Save the aggregate package document; its mtime is the write time."""
        _write_json_atomic(self.packages_file, document)

    def clear_cache(self) -> int:
        """Remove every cached JSON file. Returns the number of files removed."""
        removed = 0
        for cache_file in self.cache_dir.rglob("*.json"):
            cache_file.unlink()
            removed += 1
        self.logger.info(f"Removed {removed} cache files from {self.cache_dir}")
        return removed


def _write_json_atomic(
    target: Path, data: Any, times: tuple[int, int] | None = None
) -> None:
    """Write JSON next to ``target`` and rename it into place.

    Readers see either the previous file or the complete new one. ``times``
    is applied before the rename, so the published file already carries it.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f)
        if times is not None:
            os.utime(tmp_name, times)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
