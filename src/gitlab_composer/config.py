"""
Configuration for the GitLab Composer repository.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..shared_utilities import get_logger

ACCEPTED_METHODS = ("ssh", "http")
DEFAULT_METHOD = "ssh"
DEFAULT_PER_PAGE = 100


class ConfigurationError(ValueError):
    """Raised when required settings are missing or invalid."""

    pass


def _split_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class ComposerRepoConfig:
    """Settings for talking to GitLab and publishing the package document."""

    endpoint: str = ""
    token: str = ""
    method: str = DEFAULT_METHOD  # clone URL transport: ssh or http
    cache_dir: str | None = None  # None disables caching
    groups: list[str] = field(default_factory=list)
    projects: list[str] = field(default_factory=list)
    per_page: int = DEFAULT_PER_PAGE
    timeout: float = 30.0

    def __post_init__(self):
        """Normalize transport method and cache path."""
        if self.method not in ACCEPTED_METHODS:
            get_logger(__name__).warning(
                f"Unsupported clone method '{self.method}', using '{DEFAULT_METHOD}'"
            )
            self.method = DEFAULT_METHOD

        if self.cache_dir:
            self.cache_dir = self.cache_dir.rstrip("/") or "/"
        else:
            self.cache_dir = None

        self.endpoint = self.endpoint.rstrip("/")

    def add_group(self, *groups: str | list[str]) -> "ComposerRepoConfig":
        """Allow one or more groups by full path; accepts a list or varargs."""
        self.groups.extend(_flatten(groups))
        return self

    def add_project(self, *projects: str | list[str]) -> "ComposerRepoConfig":
        """Allow one or more packages by name; accepts a list or varargs."""
        self.projects.extend(_flatten(projects))
        return self

    def validate(self) -> None:
        """Ensure the settings needed to reach GitLab are present."""
        if not self.endpoint:
            raise ConfigurationError("GitLab URL is not configured (GITLAB_URL)")
        if not self.token:
            raise ConfigurationError("GitLab token is not configured (GITLAB_TOKEN)")

    @classmethod
    def from_env(cls) -> "ComposerRepoConfig":
        """Load settings from the environment, reading a .env file first."""
        load_dotenv()
        return cls(
            endpoint=os.getenv("GITLAB_URL", ""),
            token=os.getenv("GITLAB_TOKEN", ""),
            method=os.getenv("GITLAB_COMPOSER_METHOD", DEFAULT_METHOD),
            cache_dir=os.getenv("GITLAB_COMPOSER_CACHE_DIR") or None,
            groups=_split_list(os.getenv("GITLAB_COMPOSER_GROUPS")),
            projects=_split_list(os.getenv("GITLAB_COMPOSER_PROJECTS")),
        )

    @classmethod
    def from_file(cls, config_file: str | Path) -> "ComposerRepoConfig":
        """Load settings from a JSON file using the dataclass field names."""
        path = Path(config_file)
        try:
            with open(path) as f:
                data: dict[str, Any] = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Config file not found: {path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e

        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown config keys in {path}: {', '.join(sorted(unknown))}"
            )
        return cls(**data)


def _flatten(values: tuple[str | list[str], ...]) -> list[str]:
    flat: list[str] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            flat.extend(value)
        else:
            flat.append(value)
    return flat
