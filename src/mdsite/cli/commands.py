"""CLI command implementations"""

import shutil
from typing import Annotated, Optional

import typer

from mdsite.config import Settings, load_config
from mdsite.core.logging import setup_logging
from mdsite.core.permalink import compute_permalink, output_path_for
from mdsite.core.pipeline import build_site, check_destination, run_load
from mdsite.errors import BuildError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(config: Optional[str] = None, overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(config, overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    setup_logging(settings.log_level)
    return settings


ConfigOpt = Annotated[Optional[str], typer.Option("--config", help="Config file (default: ./config.yaml)")]


def build_cmd(
    source: Annotated[Optional[str], typer.Argument(help="Content root (default: source_dir)")] = None,
    dest: Annotated[Optional[str], typer.Option("--dest-dir", "-d", help="Output root")] = None,
    layouts: Annotated[Optional[str], typer.Option("--layouts-dir", help="Layouts directory")] = None,
    static: Annotated[Optional[str], typer.Option("--static-dir", help="Static assets directory")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Render threads")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR")] = None,
    config: ConfigOpt = None,
    ):
    """Run the full pipeline: load -> render -> assemble -> write."""
    settings = _settings(config, overrides={
        "source_dir": source, "destination_dir": dest, "layouts_dir": layouts,
        "static_dir": static, "workers": workers, "log_level": log_level and log_level.upper(),
    })

    try:
        result = build_site(settings)
    except BuildError as e:
        _fail(str(e))
    except OSError as e:
        _fail("Build failed", e)

    for page in result.site.pages:
        typer.echo(f"  {page.document.rel_path} -> {page.output_path}")
    typer.echo(
        f"Built {len(result.site.pages)} page(s), "
        f"{len(result.site.assets)} asset(s) to {result.destination}/ "
        f"in {result.elapsed:.2f}s"
    )


def list_cmd(
    source: Annotated[Optional[str], typer.Argument(help="Content root (default: source_dir)")] = None,
    config: ConfigOpt = None,
    ):
    """List each document's permalink and source path without rendering."""
    settings = _settings(config, overrides={"source_dir": source})
    try:
        docs = run_load(settings)
        rows = [(compute_permalink(d, settings.permalink), d.rel_path) for d in docs]
    except BuildError as e:
        _fail(str(e))
    if not rows:
        typer.echo("No documents found.")
        raise typer.Exit(1)
    for url, rel_path in rows:
        typer.echo(f"{url}  ({rel_path} -> {output_path_for(url)})")


def clean_cmd(
    dest: Annotated[Optional[str], typer.Option("--dest-dir", "-d", help="Output root")] = None,
    config: ConfigOpt = None,
    ):
    """Remove the generated site directory."""
    settings = _settings(config, overrides={"destination_dir": dest})
    try:
        destination = check_destination(settings)
    except BuildError as e:
        _fail(str(e))
    if not destination.exists():
        typer.echo(f"Nothing to clean at {destination}")
        return
    shutil.rmtree(destination)
    typer.echo(f"Removed {destination}")
