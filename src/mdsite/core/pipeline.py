"""Pipeline step functions: load, render, assemble, and build orchestration"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from mdsite.config import Settings
from mdsite.core.assemble import assemble, discover_assets, write_site
from mdsite.core.feed import render_feed
from mdsite.core.models import Document, RenderedPage, Site
from mdsite.core.parse import load_documents
from mdsite.core.permalink import compute_permalink, output_path_for
from mdsite.core.render import Renderer
from mdsite.errors import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    site:        Site
    destination: Path
    elapsed:     float


def check_destination(settings: Settings) -> Path:
    """Refuse a destination that is, contains, or lies inside one of the build inputs."""
    destination = Path(settings.destination_dir).resolve()
    for name in ("source_dir", "layouts_dir", "static_dir"):
        src = Path(getattr(settings, name)).resolve()
        if src == destination or src.is_relative_to(destination):
            raise ConfigurationError(f"destination {destination} would overwrite {name} {src}")
        if destination.is_relative_to(src):
            raise ConfigurationError(f"destination {destination} lies inside {name} {src}")
    return destination


def run_load(settings: Settings) -> list[Document]:
    """Scan the content root once and return its Documents in path order."""
    source = Path(settings.source_dir)
    if not source.exists():
        raise ConfigurationError(f"content root not found: {source}")
    documents = load_documents(source)
    logger.info("Loaded %d document(s) from %s", len(documents), source)
    return documents


def _post_summary(doc: Document, url: str) -> dict:
    return {
        "title":      doc.title,
        "url":        url,
        "date":       doc.date,
        "summary":    doc.summary or "",
        "categories": list(doc.categories),
    }


def run_render(documents: list[Document], settings: Settings) -> list[RenderedPage]:
    """Render every document; results keep source order regardless of worker count."""
    layouts = Path(settings.layouts_dir)
    if not layouts.is_dir():
        raise ConfigurationError(f"layouts directory not found: {layouts}")

    urls = [compute_permalink(doc, settings.permalink) for doc in documents]
    newest = sorted(zip(documents, urls), key=lambda item: (item[0].timestamp, item[1]), reverse=True)
    posts = [_post_summary(doc, url) for doc, url in newest]
    renderer = Renderer(
        layouts,
        settings.parser_config,
        site={
            "title":    settings.title,
            "base_url": settings.base_url,
            "posts":    posts,
            "feed_url": "/" + settings.feed_path.lstrip("/") if settings.feed else None,
        },
    )

    # Resolve every layout before rendering anything.
    for doc in documents:
        renderer.resolve_layout(doc.layout, doc.path)

    def _render(item: tuple[Document, str]) -> RenderedPage:
        doc, url = item
        return renderer.render_page(doc, url, output_path_for(url))

    items = list(zip(documents, urls))
    if settings.workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=settings.workers) as pool:
            return list(pool.map(_render, items))
    return [_render(item) for item in items]


def run_assemble(pages: list[RenderedPage], settings: Settings) -> Site:
    """Collect assets and generated files and validate output path uniqueness."""
    assets = discover_assets(Path(settings.static_dir), Path(settings.source_dir))
    extra: dict[str, str] = {}
    if settings.feed:
        extra[settings.feed_path.lstrip("/")] = render_feed(
            pages, settings.title, settings.base_url, settings.feed_path, settings.feed_limit,
        )
    return assemble(pages, assets, settings.title, settings.base_url, extra)


def build_site(settings: Settings) -> BuildResult:
    """Run load -> render -> assemble -> write. Nothing is published unless every step succeeds."""
    started = time.perf_counter()
    destination = check_destination(settings)
    documents = run_load(settings)
    pages = run_render(documents, settings)
    site = run_assemble(pages, settings)
    write_site(site, destination, settings.asset_retries, settings.asset_retry_delay)
    elapsed = time.perf_counter() - started
    logger.info("Built %d page(s) and %d asset(s) in %.2fs", len(site.pages), len(site.assets), elapsed)
    return BuildResult(site=site, destination=destination, elapsed=elapsed)
