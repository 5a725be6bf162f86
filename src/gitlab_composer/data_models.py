"""
Data models for the Composer package repository.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def parse_timestamp(value: str | None) -> int:
    """Convert a GitLab ISO8601 timestamp to whole epoch seconds (0 if unset)."""
    if not value:
        return 0
    # Python < 3.11 does not accept the trailing Z
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())


@dataclass(frozen=True)
class Project:
    """A GitLab project as returned by the groups/projects listing."""

    id: int
    path_with_namespace: str
    last_activity: int  # epoch seconds of last_activity_at
    ssh_url_to_repo: str = ""
    http_url_to_repo: str = ""
    empty_repo: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Project":
        """Build a project from a GitLab API payload."""
        return cls(
            id=data["id"],
            path_with_namespace=data["path_with_namespace"],
            last_activity=parse_timestamp(data.get("last_activity_at")),
            ssh_url_to_repo=data.get("ssh_url_to_repo") or "",
            http_url_to_repo=data.get("http_url_to_repo") or "",
            empty_repo=bool(data.get("empty_repo", False)),
        )

    def clone_url(self, method: str) -> str:
        """Clone URL for the given transport ("ssh" or "http")."""
        return self.http_url_to_repo if method == "http" else self.ssh_url_to_repo


@dataclass(frozen=True)
class Ref:
    """A branch or tag and the commit it points to."""

    name: str
    commit_id: str
    kind: str = "branch"  # branch or tag

    @classmethod
    def from_api(cls, data: dict[str, Any], kind: str) -> "Ref":
        return cls(name=data["name"], commit_id=data["commit"]["id"], kind=kind)


@dataclass
class ProjectVersionMap:
    """All published versions of one project; the unit cached on disk."""

    name: str
    versions: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "versions": self.versions}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectVersionMap":
        return cls(name=data["name"], versions=dict(data.get("versions") or {}))


@dataclass
class AggregationResult:
    """Package document plus the timestamp used for Last-Modified."""

    document: dict[str, Any]
    last_modified: int


@dataclass
class PackagesResponse:
    """Framework-independent HTTP response for the package document."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
