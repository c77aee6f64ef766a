"""Data models for the load, render, and assemble pipeline"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Document:
    """A source document: front-matter mapping plus raw Markdown body. Never mutated."""
    path:        Path
    rel_path:    str            # POSIX path relative to the content root
    frontmatter: Mapping[str, Any]
    body:        str            # markdown with front-matter stripped
    slug:        str
    date:        datetime       # parsed from frontmatter['date']
    categories:  tuple[str, ...] = ()

    @property
    def layout(self) -> str:
        return str(self.frontmatter['layout'])

    @property
    def title(self) -> str:
        return str(self.frontmatter['title'])

    @property
    def summary(self) -> Optional[str]:
        value = self.frontmatter.get('summary')
        return None if value is None else str(value)

    @property
    def published(self) -> bool:
        return self.frontmatter.get('published', True) is not False

    @property
    def timestamp(self) -> float:
        """Sort key for the date; naive datetimes count as UTC."""
        d = self.date if self.date.tzinfo else self.date.replace(tzinfo=timezone.utc)
        return d.timestamp()


@dataclass(frozen=True)
class RenderedPage:
    """Final HTML for one Document at its computed output path."""
    output_path: str            # e.g. '2024/04/08/how-recursing-works/index.html'
    url:         str            # e.g. '/2024/04/08/how-recursing-works/'
    html:        str
    document:    Document


@dataclass(frozen=True)
class StaticAsset:
    """A file copied byte-for-byte into the site."""
    source:      Path
    output_path: str


@dataclass(frozen=True)
class Site:
    """Everything one build writes; discarded once the output is in place."""
    title:    str
    base_url: str
    pages:    tuple[RenderedPage, ...]
    assets:   tuple[StaticAsset, ...] = ()
    extra_files: dict[str, str] = field(default_factory=dict)   # generated text files, e.g. feed.xml
