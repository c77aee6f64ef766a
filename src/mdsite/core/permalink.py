"""Permalink computation: document metadata -> URL -> output path"""

import re
from pathlib import PurePosixPath

from mdsite.core.models import Document
from mdsite.core.utils.slug import slugify
from mdsite.errors import MalformedFrontMatter


PLACEHOLDER_RE = re.compile(r':(categories|year|month|day|hour|minute|second|title|slug)\b')


def _placeholders(doc: Document) -> dict[str, str]:
    d = doc.date
    return {
        'categories': '/'.join(slugify(c) for c in doc.categories),
        'year':   f"{d.year:04d}",
        'month':  f"{d.month:02d}",
        'day':    f"{d.day:02d}",
        'hour':   f"{d.hour:02d}",
        'minute': f"{d.minute:02d}",
        'second': f"{d.second:02d}",
        'title':  doc.slug,
        'slug':   doc.slug,
    }


def compute_permalink(doc: Document, pattern: str) -> str:
    """Expand the permalink pattern (front-matter 'permalink' wins) into a site-absolute URL."""
    template = str(doc.frontmatter.get('permalink') or pattern)
    values = _placeholders(doc)
    expanded = PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], template)

    segments = [s for s in expanded.split('/') if s]
    if any(s in ('.', '..') for s in segments):
        raise MalformedFrontMatter(f"permalink '{expanded}' escapes the site root", doc.path)
    url = '/' + '/'.join(segments)
    if segments and expanded.endswith('/'):
        url += '/'
    return url


def output_path_for(url: str) -> str:
    """Map a URL to a relative file path: 'dir/' -> 'dir/index.html', 'name' -> 'name.html'."""
    if url.endswith('/'):
        return str(PurePosixPath(url.strip('/'), 'index.html')) if url.strip('/') else 'index.html'
    path = PurePosixPath(url.lstrip('/'))
    if path.suffix:
        return str(path)
    return f"{path}.html"
