"""
HTTP front for the Composer package repository.
"""

import json
from datetime import timezone
from email.utils import formatdate, parsedate_to_datetime

from fastapi import FastAPI, Header, Response

from ..shared_utilities import get_logger
from .aggregator import PackageAggregator
from .config import ComposerRepoConfig
from .data_models import PackagesResponse
from .gitlab_client import GitLabClient
from .version_cache import VersionCacheManager
from .version_resolver import VersionResolver

logger = get_logger(__name__)


def parse_http_date(value: str | None) -> int | None:
    """Epoch seconds for an HTTP date header; None when absent or invalid."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    # -0000 yields a naive datetime; HTTP dates are always UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


class PackagesEndpoint:
    """Serves the package document with conditional-request support."""

    def __init__(
        self,
        aggregator: PackageAggregator,
        cache_manager: VersionCacheManager | None = None,
        groups: list[str] | None = None,
        projects: list[str] | None = None,
    ):
        self.aggregator = aggregator
        self.cache_manager = cache_manager
        self.groups = groups or []
        self.projects = projects or []

    def is_modified_since(self, if_modified_since: str | None) -> bool:
        """False when the client's copy is at least as new as the cached document."""
        since = parse_http_date(if_modified_since)
        if since is None or self.cache_manager is None:
            return True

        cached_at = self.cache_manager.packages_last_modified()
        if cached_at is None:
            return True
        return since < cached_at

    def handle(self, if_modified_since: str | None = None) -> PackagesResponse:
        """Build the response for a package document request."""
        if not self.is_modified_since(if_modified_since):
            return PackagesResponse(status_code=304)

        result = self.aggregator.generate(self.groups, self.projects)
        return PackagesResponse(
            status_code=200,
            headers={
                "Content-Type": "application/json",
                "Last-Modified": formatdate(result.last_modified, usegmt=True),
                "Cache-Control": "max-age=0",
            },
            body=json.dumps(result.document).encode("utf-8"),
        )


def build_endpoint(config: ComposerRepoConfig) -> PackagesEndpoint:
    """Wire client, cache, resolver and aggregator from configuration."""
    config.validate()
    client = GitLabClient(
        config.endpoint, config.token, per_page=config.per_page, timeout=config.timeout
    )
    cache_manager = VersionCacheManager(config.cache_dir) if config.cache_dir else None
    aggregator = PackageAggregator(
        client,
        VersionResolver(client, config.method),
        cache_manager=cache_manager,
        per_page=config.per_page,
    )
    return PackagesEndpoint(
        aggregator,
        cache_manager=cache_manager,
        groups=config.groups,
        projects=config.projects,
    )


def create_app(
    config: ComposerRepoConfig | None = None,
    endpoint: PackagesEndpoint | None = None,
) -> FastAPI:
    """Create the FastAPI application serving packages.json."""
    if endpoint is None:
        endpoint = build_endpoint(config or ComposerRepoConfig.from_env())

    app = FastAPI(title="GitLab Composer Repository", version="1.0.0")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/")
    @app.get("/packages.json")
    def packages(if_modified_since: str | None = Header(default=None)) -> Response:
        result = endpoint.handle(if_modified_since)
        if result.status_code == 304:
            logger.debug("Package document not modified")
        return Response(
            content=result.body, status_code=result.status_code, headers=result.headers
        )

    return app
