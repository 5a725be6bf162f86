"""
Pytest configuration and shared fixtures.
"""

import base64
import json
from unittest.mock import Mock

import pytest

from src.gitlab_composer.data_models import Project, Ref


def manifest_payload(manifest: dict) -> dict:
    """GitLab file payload wrapping a composer.json document."""
    content = base64.b64encode(json.dumps(manifest).encode("utf-8")).decode("ascii")
    return {"file_name": "composer.json", "encoding": "base64", "content": content}


def project_payload(
    project_id: int = 1,
    path: str = "acme/lib",
    last_activity_at: str = "2024-03-01T12:00:00.000Z",
) -> dict:
    """GitLab project listing entry."""
    return {
        "id": project_id,
        "path_with_namespace": path,
        "last_activity_at": last_activity_at,
        "ssh_url_to_repo": f"git@gitlab.example.com:{path}.git",
        "http_url_to_repo": f"https://gitlab.example.com/{path}.git",
    }


@pytest.fixture
def sample_project():
    """A project last active at 1700000000."""
    return Project(
        id=42,
        path_with_namespace="acme/lib",
        last_activity=1700000000,
        ssh_url_to_repo="git@gitlab.example.com:acme/lib.git",
        http_url_to_repo="https://gitlab.example.com/acme/lib.git",
    )


@pytest.fixture
def mock_source():
    """Mock GitLab source with no groups, refs or files."""
    source = Mock()
    source.list_groups.return_value = []
    source.list_group_projects.return_value = []
    source.list_branches.return_value = []
    source.list_tags.return_value = []
    source.get_file.return_value = None
    return source


@pytest.fixture
def release_ref():
    return Ref(name="v1.2.0", commit_id="abc123", kind="tag")
