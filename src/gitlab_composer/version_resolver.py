"""
Resolve the Composer versions published by a single GitLab project.

Every branch and tag is an independent candidate: one broken ref never blocks
the other versions of the same project.
"""

import base64
import binascii
import json
import re
from typing import Any

from ..shared_utilities import get_logger, trace_function
from .data_models import Project, ProjectVersionMap, Ref
from .gitlab_client import (
    EmptyRepositoryError,
    GitLabAPIError,
    GitLabAuthenticationError,
    RemoteRepositorySource,
)

MANIFEST_FILE = "composer.json"
DEFAULT_BRANCH_VERSION = "dev-master"

RELEASE_PATTERN = re.compile(r"^v?\d+\.\d+(\.\d+)*(-(dev|patch|alpha|beta|RC)\d*)?$")

logger = get_logger(__name__)


def classify_ref(name: str) -> str:
    """Version string for a ref: release names verbatim, anything else as dev-<name>."""
    if RELEASE_PATTERN.match(name):
        return name
    return f"dev-{name}"


def decode_manifest(payload: dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Decode a GitLab file payload holding composer.json.

    Returns:
        The manifest dict, or None when the content is missing, undecodable
        or has no package name
    """
    if not payload or not payload.get("content"):
        return None

    try:
        raw = base64.b64decode(payload["content"])
        manifest = json.loads(raw)
    except (binascii.Error, ValueError):
        return None

    if not isinstance(manifest, dict):
        return None
    name = manifest.get("name")
    if not isinstance(name, str) or not name:
        return None
    return manifest


def build_version_entry(
    project: Project, ref: Ref, manifest: dict[str, Any], method: str
) -> tuple[str, dict[str, Any]]:
    """Attach version and git source information to a decoded manifest."""
    version = classify_ref(ref.name)
    entry = dict(manifest)
    entry["version"] = version
    entry["source"] = {
        "url": project.clone_url(method),
        "type": "git",
        "reference": ref.commit_id,
    }
    return version, entry


class VersionResolver:
    """Builds a project's version map from its branches and tags."""

    def __init__(self, source: RemoteRepositorySource, method: str = "ssh"):
        self.source = source
        self.method = method

    def fetch_manifest(self, project: Project, ref: Ref) -> dict[str, Any] | None:
        """composer.json at the ref's commit, or None if it cannot be used."""
        try:
            payload = self.source.get_file(project.id, MANIFEST_FILE, ref.commit_id)
        except (GitLabAPIError, GitLabAuthenticationError) as e:
            logger.debug(
                f"No usable {MANIFEST_FILE} in {project.path_with_namespace}@{ref.name}: {e}"
            )
            return None
        return decode_manifest(payload)

    @trace_function("version_resolver.resolve")
    def resolve(self, project: Project) -> ProjectVersionMap:
        """Resolve all versions for a project."""
        result = ProjectVersionMap(name=project.path_with_namespace)

        if project.empty_repo:
            logger.info(f"Skipping {project.path_with_namespace}: empty repository")
            return result

        try:
            refs = self.source.list_branches(project.id) + self.source.list_tags(
                project.id
            )
        except EmptyRepositoryError as e:
            logger.info(f"Skipping {project.path_with_namespace}: {e}")
            return result
        except (GitLabAPIError, GitLabAuthenticationError) as e:
            logger.warning(f"Cannot list refs of {project.path_with_namespace}: {e}")
            return result

        for ref in refs:
            manifest = self.fetch_manifest(project, ref)
            if manifest is None:
                continue

            version, entry = build_version_entry(project, ref, manifest, self.method)
            result.versions[version] = entry

            if version == DEFAULT_BRANCH_VERSION:
                result.name = entry["name"]

        logger.debug(
            f"Resolved {len(result.versions)} versions for {project.path_with_namespace}"
        )
        return result
