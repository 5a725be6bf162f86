"""
GitLab Composer repository.

Republishes the composer.json manifests of GitLab projects as a
Composer-compatible package repository.
"""

from .aggregator import PackageAggregator
from .config import ComposerRepoConfig, ConfigurationError
from .data_models import AggregationResult, Project, ProjectVersionMap, Ref
from .gitlab_client import (
    EmptyRepositoryError,
    GitLabAPIError,
    GitLabClient,
    GitLabError,
    RemoteRepositorySource,
)
from .server import PackagesEndpoint, create_app
from .version_cache import VersionCacheManager
from .version_resolver import VersionResolver, classify_ref

__all__ = [
    "AggregationResult",
    "ComposerRepoConfig",
    "ConfigurationError",
    "EmptyRepositoryError",
    "GitLabAPIError",
    "GitLabClient",
    "GitLabError",
    "PackageAggregator",
    "PackagesEndpoint",
    "Project",
    "ProjectVersionMap",
    "Ref",
    "RemoteRepositorySource",
    "VersionCacheManager",
    "VersionResolver",
    "classify_ref",
    "create_app",
]
