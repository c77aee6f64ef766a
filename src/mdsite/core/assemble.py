"""Site assembly: asset discovery, collision checks, and atomic output writing"""

import logging
import shutil
import tempfile
import time
from pathlib import Path

from mdsite.core.models import RenderedPage, Site, StaticAsset
from mdsite.core.parse import MD_EXTENSIONS
from mdsite.errors import AssetCopyFailure, PathCollision


logger = logging.getLogger(__name__)


def _iter_files(root: Path):
    """Yield (path, relative POSIX path) for non-hidden files under root, sorted."""
    if not root.is_dir():
        return
    for p in sorted(root.rglob('*')):
        rel = p.relative_to(root)
        if p.is_file() and not any(part.startswith('.') for part in rel.parts):
            yield p, rel.as_posix()


def discover_assets(static_dir: Path, source_dir: Path = None) -> list[StaticAsset]:
    """Every file in static_dir, plus every non-Markdown file in source_dir, at its relative path."""
    assets = [StaticAsset(source=p, output_path=rel) for p, rel in _iter_files(static_dir)]
    if source_dir is not None:
        assets.extend(
            StaticAsset(source=p, output_path=rel)
            for p, rel in _iter_files(source_dir)
            if p.suffix not in MD_EXTENSIONS
        )
    return assets


def assemble(
    pages: list[RenderedPage],
    assets: list[StaticAsset],
    title: str,
    base_url: str,
    extra_files: dict[str, str] = None,
    ) -> Site:
    """Build the Site aggregate; raises PathCollision on the first duplicate output path."""
    seen: dict[str, str] = {}

    def _claim(output_path: str, source: str) -> None:
        key = output_path.lstrip('/')
        if key in seen:
            raise PathCollision(key, (seen[key], source))
        seen[key] = source

    for page in pages:
        _claim(page.output_path, page.document.rel_path)
    for asset in assets:
        _claim(asset.output_path, str(asset.source))
    for name in extra_files or {}:
        _claim(name, f"<generated {name}>")

    return Site(
        title=title,
        base_url=base_url,
        pages=tuple(pages),
        assets=tuple(assets),
        extra_files=dict(extra_files or {}),
    )


def copy_asset(asset: StaticAsset, dest_root: Path, retries: int = 3, delay: float = 0.1) -> Path:
    """Copy one asset byte-for-byte, retrying transient OSErrors up to `retries` extra times."""
    dest = dest_root / asset.output_path
    last_error: OSError | None = None
    for attempt in range(retries + 1):
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(asset.source, dest)
            logger.debug("Copied %s -> %s", asset.source, dest)
            return dest
        except OSError as e:
            last_error = e
            if attempt < retries:
                logger.warning("Copy of %s failed (attempt %d/%d): %s", asset.source, attempt + 1, retries + 1, e)
                time.sleep(delay)
    raise AssetCopyFailure(f"could not copy asset after {retries + 1} attempt(s): {last_error}", asset.source) from last_error


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')


def write_site(site: Site, destination: Path, retries: int = 3, delay: float = 0.1) -> Path:
    """Write the whole site to a scoped temp dir, then swap it into place.

    The existing destination is only replaced once every page and asset has been
    written; on any failure the temp dir is discarded and the destination is untouched.
    """
    destination = destination.resolve()
    destination.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{destination.name}-", dir=destination.parent))
    try:
        for page in site.pages:
            _write_text(staging / page.output_path, page.html)
        for asset in site.assets:
            copy_asset(asset, staging, retries, delay)
        for name, text in site.extra_files.items():
            _write_text(staging / name, text)
        staging.chmod(0o755)

        backup = None
        if destination.exists():
            backup = destination.with_name(f"{staging.name}.old")
            destination.rename(backup)
        try:
            staging.rename(destination)
        except OSError:
            if backup is not None:
                backup.rename(destination)
            raise
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise
    if backup is not None:
        shutil.rmtree(backup, ignore_errors=True)
    return destination
