"""Shared fixtures for core unit tests"""

from datetime import datetime
from pathlib import Path

import pytest

from mdsite.config import Settings
from mdsite.core.models import Document


POST_LAYOUT = """\
<html><head><title>{{ page.title }}</title></head>
<body>{{ content }}</body></html>
"""

SAMPLE_MD = """\
---
layout: post
title: How recursing works?
date: 2024-04-08
summary: Stack frames and tail calls.
---

A recursive call pushes a frame.

```asm
fact:
    cmp  rdi, 1     ; n <= 1 && "done"
    jbe  .base
```

```
┌──────────┐
│ ret addr │
└──────────┘
```
"""


@pytest.fixture(name="content_dir")
def content_dir_fixture(tmp_path):
    d = tmp_path / "content"
    d.mkdir()
    return d


@pytest.fixture(name="layouts_dir")
def layouts_dir_fixture(tmp_path):
    d = tmp_path / "layouts"
    d.mkdir()
    (d / "post.html").write_text(POST_LAYOUT, encoding="utf-8")
    return d


@pytest.fixture(name="write_post")
def write_post_fixture(content_dir):
    """Write a Markdown file under the content root and return its path."""
    def _write(name: str, text: str) -> Path:
        p = content_dir / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    return _write


@pytest.fixture(name="settings")
def settings_fixture(tmp_path, content_dir, layouts_dir):
    return Settings(
        source_dir=str(content_dir),
        layouts_dir=str(layouts_dir),
        static_dir=str(tmp_path / "static"),
        destination_dir=str(tmp_path / "_site"),
        asset_retry_delay=0,
    )


@pytest.fixture(name="make_doc")
def make_doc_fixture():
    """Build a Document directly, bypassing the loader."""
    def _make(slug="how-recursing-works", date=datetime(2024, 4, 8), categories=(), **frontmatter) -> Document:
        fm = {"layout": "post", "title": "How recursing works?", "date": date.date().isoformat()}
        fm.update(frontmatter)
        return Document(
            path=Path(f"{slug}.md"),
            rel_path=f"{slug}.md",
            frontmatter=fm,
            body="Body text.\n",
            slug=slug,
            date=date,
            categories=tuple(categories),
        )
    return _make


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
