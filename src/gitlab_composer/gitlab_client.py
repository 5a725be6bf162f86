"""
GitLab API client for fetching groups, projects, refs and files
"""

import time
from typing import Any, Protocol
from urllib.parse import quote

import requests

from ..shared_utilities import RateLimitManager, get_logger, get_logging_manager
from .data_models import Project, Ref


class GitLabError(Exception):
    """Base exception for GitLab API operations."""

    pass


class GitLabConnectionError(GitLabError):
    """The GitLab instance could not be reached."""

    pass


class GitLabAuthenticationError(GitLabError):
    """The token was rejected (401/403)."""

    pass


class GitLabAPIError(GitLabError):
    """GitLab answered a request with an error status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"GitLab API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class GitLabNotFoundError(GitLabAPIError):
    """The requested resource does not exist."""

    pass


class EmptyRepositoryError(GitLabError):
    """The project's repository has no commits."""

    pass


class RemoteRepositorySource(Protocol):
    """Capabilities the aggregator needs from a GitLab-compatible host."""

    def list_groups(self) -> list[dict[str, Any]]: ...

    def list_group_projects(
        self, group_id: int, page: int, per_page: int
    ) -> list[dict[str, Any]]: ...

    def list_branches(self, project_id: int) -> list[Ref]: ...

    def list_tags(self, project_id: int) -> list[Ref]: ...

    def get_file(self, project_id: int, file_path: str, ref: str) -> dict[str, Any]: ...


class GitLabClient:
    """Client for the GitLab REST API v4."""

    def __init__(
        self,
        endpoint: str,
        token: str,
        per_page: int = 100,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        rate_limit_manager: RateLimitManager | None = None,
    ):
        """Initialize GitLab client for an instance URL and private token."""
        self.base_url = endpoint.rstrip("/")
        if not self.base_url.endswith("/api/v4"):
            self.base_url = f"{self.base_url}/api/v4"
        self.per_page = per_page
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"PRIVATE-TOKEN": token})
        self.rate_limit_manager = rate_limit_manager or RateLimitManager()
        self.logger = get_logger(__name__)

    def _request(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        Perform a GET request and decode the JSON body.

        Raises:
            GitLabConnectionError: transport failure
            GitLabAuthenticationError: token rejected
            GitLabNotFoundError: 404
            GitLabAPIError: any other error status
        """
        url = f"{self.base_url}/{path}"
        self.rate_limit_manager.wait_if_needed()

        start = time.time()
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise GitLabConnectionError(f"Error contacting GitLab at {url}: {e}") from e

        get_logging_manager().log_api_request(
            "GET", url, response.status_code, time.time() - start
        )
        self.rate_limit_manager.extract_rate_limit_status(response)

        if response.status_code in (401, 403):
            raise GitLabAuthenticationError(
                f"GitLab rejected the token ({response.status_code}) for {path}"
            )
        if response.status_code == 404:
            raise GitLabNotFoundError(404, self._error_message(response))
        if response.status_code >= 400:
            raise GitLabAPIError(response.status_code, self._error_message(response))

        try:
            return response.json()
        except ValueError as e:
            raise GitLabAPIError(
                response.status_code, f"Invalid JSON response from {path}"
            ) from e

    def _error_message(self, response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body)
        return str(body)

    def _paginate(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        """Fetch every page of a listing until a short page is returned."""
        items: list[Any] = []
        page = 1
        while True:
            batch = self._request(
                path, {**(params or {}), "page": page, "per_page": self.per_page}
            )
            items.extend(batch)
            if len(batch) < self.per_page:
                return items
            page += 1

    def list_groups(self) -> list[dict[str, Any]]:
        """List all groups visible to the token."""
        return self._paginate("groups")

    def list_group_projects(
        self, group_id: int, page: int, per_page: int
    ) -> list[dict[str, Any]]:
        """List one page of a group's projects."""
        return self._request(
            f"groups/{group_id}/projects", {"page": page, "per_page": per_page}
        )

    def _list_refs(self, project_id: int, kind: str, endpoint: str) -> list[Ref]:
        try:
            payload = self._paginate(f"projects/{project_id}/repository/{endpoint}")
        except GitLabNotFoundError as e:
            raise EmptyRepositoryError(
                f"Project {project_id} has no repository commits: {e.message}"
            ) from e
        return [Ref.from_api(item, kind) for item in payload]

    def list_branches(self, project_id: int) -> list[Ref]:
        """List a project's branches."""
        return self._list_refs(project_id, "branch", "branches")

    def list_tags(self, project_id: int) -> list[Ref]:
        """List a project's tags."""
        return self._list_refs(project_id, "tag", "tags")

    def get_file(self, project_id: int, file_path: str, ref: str) -> dict[str, Any]:
        """
        Fetch a repository file at a ref.

        Returns:
            GitLab file payload; ``content`` is base64 encoded
        """
        encoded_path = quote(file_path, safe="")
        return self._request(
            f"projects/{project_id}/repository/files/{encoded_path}", {"ref": ref}
        )


def iter_group_projects(
    source: RemoteRepositorySource, group_id: int, per_page: int = 100
):
    """Yield projects of a group page by page, stopping at a short page."""
    page = 1
    while True:
        batch = source.list_group_projects(group_id, page=page, per_page=per_page)
        for item in batch:
            yield Project.from_api(item)
        if len(batch) < per_page:
            return
        page += 1
