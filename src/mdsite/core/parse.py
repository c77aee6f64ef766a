"""Content loading: file discovery and front-matter extraction"""

import logging
import re
from datetime import date, datetime, time
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from mdsite.core.models import Document
from mdsite.core.utils.slug import slug_from_filename, slugify
from mdsite.errors import MalformedFrontMatter, MissingRequiredField


logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r'^---[ \t]*\r?\n(.*?)\r?\n?^---[ \t]*(?:\r?\n|$)', re.DOTALL | re.MULTILINE)
MD_EXTENSIONS = {'.md', '.markdown'}
REQUIRED_FIELDS = ('layout', 'title', 'date')


def _strip_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Return (frontmatter_dict, body) with the YAML header removed."""
    text = text.lstrip('\ufeff')
    if not text.startswith('---'):
        raise ValueError("no front-matter block")
    m = FRONTMATTER_RE.match(text)
    if not m:
        raise ValueError("front-matter block is not terminated by '---'")
    try:
        fm = yaml.safe_load(m.group(1)) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"invalid YAML front-matter: {e}") from e
    if not isinstance(fm, dict):
        raise ValueError(f"front-matter must be a mapping, got {type(fm).__name__}")
    return fm, text[m.end():]


def _parse_date(value: Any) -> datetime:
    """Coerce a YAML date, datetime, or ISO-8601 string to a datetime."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValueError(f"date {value!r} is not an ISO-8601 date/time")


def _categories(fm: dict[str, Any]) -> tuple[str, ...]:
    """Categories from a list or space-delimited string; 'category' is a single value."""
    value = fm.get('categories')
    if value is None:
        value = fm.get('category')
        return (str(value).strip(),) if value not in (None, '') else ()
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, (list, tuple)):
        return tuple(str(v).strip() for v in value if str(v).strip())
    return (str(value),)


def discover_files(path: Path) -> list[Path]:
    """Return sorted Markdown files under path, or [path] if a single file. Hidden entries are skipped."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(
        p for p in path.rglob('*')
        if p.is_file()
        and p.suffix in MD_EXTENSIONS
        and not any(part.startswith('.') for part in p.relative_to(path).parts)
    )


def load_document(path: Path, root: Path) -> Document:
    """Read one source file into an immutable Document, validating required fields."""
    try:
        raw = path.read_text(encoding='utf-8')
    except UnicodeDecodeError as e:
        raise MalformedFrontMatter(f"not valid UTF-8: {e}", path) from e
    try:
        frontmatter, body = _strip_frontmatter(raw)
    except ValueError as e:
        raise MalformedFrontMatter(str(e), path) from e

    for name in REQUIRED_FIELDS:
        if frontmatter.get(name) in (None, ''):
            raise MissingRequiredField(name, path)

    try:
        doc_date = _parse_date(frontmatter['date'])
    except ValueError as e:
        raise MalformedFrontMatter(str(e), path) from e

    slug = slugify(str(frontmatter['slug'])) if frontmatter.get('slug') else slug_from_filename(path.stem)
    rel = path.relative_to(root) if root.is_dir() else Path(path.name)
    return Document(
        path=path,
        rel_path=rel.as_posix(),
        frontmatter=MappingProxyType(frontmatter),
        body=body,
        slug=slug or 'index',
        date=doc_date,
        categories=_categories(frontmatter),
    )


def load_documents(root: Path) -> list[Document]:
    """Load every published document under root in stable path order."""
    documents = []
    for p in discover_files(root):
        logger.debug("Loading %s", p)
        doc = load_document(p, root)
        if not doc.published:
            logger.info("Skipping unpublished document %s", doc.rel_path)
            continue
        documents.append(doc)
    return documents
