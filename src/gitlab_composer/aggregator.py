"""
Aggregate every accessible GitLab project into one Composer package document.
"""

from collections.abc import Iterable
from typing import Any

from ..shared_utilities import get_logger, trace_function, trace_operation
from .data_models import AggregationResult, Project, ProjectVersionMap
from .gitlab_client import RemoteRepositorySource, iter_group_projects
from .version_cache import VersionCacheManager
from .version_resolver import VersionResolver


class PackageAggregator:
    """Walks groups and projects and merges their version maps."""

    def __init__(
        self,
        source: RemoteRepositorySource,
        resolver: VersionResolver,
        cache_manager: VersionCacheManager | None = None,
        per_page: int = 100,
    ):
        """
        Initialize the aggregator.

        Args:
            source: GitLab API capability used for group and project listing
            resolver: Resolves a single project's versions
            cache_manager: Filesystem cache; None disables caching
            per_page: Page size for project listing
        """
        self.source = source
        self.resolver = resolver
        self.cache_manager = cache_manager
        self.per_page = per_page
        self.logger = get_logger(__name__)

    def fetch_all_projects(
        self, group_filter: Iterable[str] = ()
    ) -> tuple[list[Project], int]:
        """
        List projects of every (allowed) group.

        Returns:
            Projects in listing order and the newest last-activity timestamp
        """
        allowed = set(group_filter)
        projects: list[Project] = []
        last_activity = 0

        for group in self.source.list_groups():
            if allowed and group["full_path"] not in allowed:
                continue

            with trace_operation("aggregator.list_group", {"group": group["full_path"]}):
                for project in iter_group_projects(
                    self.source, group["id"], self.per_page
                ):
                    last_activity = max(last_activity, project.last_activity)
                    projects.append(project)

        self.logger.info(
            f"Found {len(projects)} projects, last activity at {last_activity}"
        )
        return projects, last_activity

    def load_project_data(self, project: Project) -> ProjectVersionMap:
        """Cached version map when fresh, otherwise resolved live and cached."""
        if self.cache_manager is not None:
            cached = self.cache_manager.load(project)
            if cached is not None:
                return cached

        data = self.resolver.resolve(project)

        if self.cache_manager is not None:
            self.cache_manager.store(project, data)
        return data

    @trace_function("aggregator.generate")
    def generate(
        self, group_filter: Iterable[str] = (), project_filter: Iterable[str] = ()
    ) -> AggregationResult:
        """
        Build the package document.

        Args:
            group_filter: Group full paths to include; empty means all
            project_filter: Package names to include; empty means all
        """
        projects, last_activity = self.fetch_all_projects(group_filter)

        if self.cache_manager is not None:
            cached_at = self.cache_manager.packages_last_modified()
            if cached_at is not None and cached_at > last_activity:
                document = self.cache_manager.load_packages()
                if document is not None:
                    self.logger.info("Package document unchanged, serving cache")
                    return AggregationResult(document=document, last_modified=cached_at)

        allowed = set(project_filter)
        packages: dict[str, dict[str, Any]] = {}
        for project in projects:
            data = self.load_project_data(project)
            if allowed and data.name not in allowed:
                continue
            packages[data.name] = data.versions

        document = {
            "packages": {name: versions for name, versions in packages.items() if versions}
        }

        if self.cache_manager is not None:
            self.cache_manager.store_packages(document)

        self.logger.info(f"Published {len(document['packages'])} packages")
        return AggregationResult(document=document, last_modified=last_activity)
