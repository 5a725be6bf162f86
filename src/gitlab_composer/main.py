"""
Command-line entry point for the GitLab Composer repository.
"""

import json

import click
import uvicorn
from dotenv import load_dotenv

from ..shared_utilities import configure_logging, get_logger
from .config import ComposerRepoConfig, ConfigurationError
from .gitlab_client import GitLabError
from .server import build_endpoint, create_app
from .version_cache import VersionCacheManager

# Load environment variables from .env file
load_dotenv()


def _build_config(
    config_file: str | None,
    url: str | None,
    token: str | None,
    method: str | None,
    cache_dir: str | None,
    groups: tuple[str, ...],
    projects: tuple[str, ...],
) -> ComposerRepoConfig:
    """Merge file or environment settings with command-line overrides."""
    if config_file:
        config = ComposerRepoConfig.from_file(config_file)
    else:
        config = ComposerRepoConfig.from_env()

    if url:
        config.endpoint = url.rstrip("/")
    if token:
        config.token = token
    if method:
        config.method = method
    if cache_dir:
        config.cache_dir = cache_dir.rstrip("/") or "/"
    config.add_group(list(groups))
    config.add_project(list(projects))
    return config


@click.group()
@click.option("--config", "config_file", type=click.Path(), help="JSON config file")
@click.option("--url", help="GitLab instance URL (or set GITLAB_URL)")
@click.option("--token", help="GitLab private token (or set GITLAB_TOKEN)")
@click.option(
    "--method",
    type=click.Choice(["ssh", "http"]),
    help="Clone URL transport published in package sources",
)
@click.option("--cache-dir", type=click.Path(), help="Cache directory")
@click.option("--group", "groups", multiple=True, help="Only include this group")
@click.option("--project", "projects", multiple=True, help="Only include this package")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    url: str | None,
    token: str | None,
    method: str | None,
    cache_dir: str | None,
    groups: tuple[str, ...],
    projects: tuple[str, ...],
    verbose: bool,
) -> None:
    """
    Publish GitLab projects as a Composer package repository.

    Examples:

        # Serve packages.json on port 8080
        gitlab-composer --cache-dir cache serve --port 8080

        # Write the package document once
        gitlab-composer --group acme build -o packages.json
    """
    configure_logging(level="DEBUG" if verbose else None)
    try:
        ctx.obj = _build_config(
            config_file, url, token, method, cache_dir, groups, projects
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort() from e


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, type=int, show_default=True)
@click.pass_obj
def serve(config: ComposerRepoConfig, host: str, port: int) -> None:
    """Serve packages.json over HTTP."""
    try:
        app = create_app(config)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort() from e

    uvicorn.run(app, host=host, port=port)


@cli.command()
@click.option(
    "-o",
    "--output",
    "output_file",
    type=click.Path(),
    help="Output file (default: stdout)",
)
@click.pass_obj
def build(config: ComposerRepoConfig, output_file: str | None) -> None:
    """Aggregate once and write the package document."""
    logger = get_logger(__name__)

    try:
        endpoint = build_endpoint(config)
        result = endpoint.aggregator.generate(config.groups, config.projects)
    except (ConfigurationError, GitLabError) as e:
        logger.error(f"Build failed: {e}")
        click.echo(f"Error: {e}", err=True)
        raise click.Abort() from e

    output = json.dumps(result.document, indent=2)
    if output_file:
        with open(output_file, "w") as f:
            f.write(output)
        click.echo(f"Output saved to {output_file}")
    else:
        click.echo(output)


@cli.command("clear-cache")
@click.pass_obj
def clear_cache(config: ComposerRepoConfig) -> None:
    """Delete all cached version maps and the cached package document."""
    if not config.cache_dir:
        click.echo("No cache directory configured.")
        return

    removed = VersionCacheManager(config.cache_dir).clear_cache()
    click.echo(f"Removed {removed} cache files from {config.cache_dir}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
