"""Unit tests for core/parse.py"""

import dataclasses
from datetime import datetime, timezone

import pytest

from mdsite.core.parse import _strip_frontmatter, discover_files, load_document, load_documents
from mdsite.errors import MalformedFrontMatter, MissingRequiredField


FM = "---\nlayout: post\ntitle: T\ndate: 2024-04-08\n{extra}---\n{body}"


def test_strip_frontmatter_with_yaml():
    """_strip_frontmatter extracts YAML header and returns body."""
    fm, body = _strip_frontmatter("---\ntitle: Hello\n---\n# Body\n")
    assert fm == {"title": "Hello"}
    assert body == "# Body\n"


def test_strip_frontmatter_empty_block():
    """An empty block yields an empty mapping."""
    fm, body = _strip_frontmatter("---\n---\nBody\n")
    assert fm == {}
    assert body == "Body\n"


@pytest.mark.parametrize("text,match", [
    ("# No frontmatter\n", "no front-matter"),
    ("---\ntitle: Hello\n# Body\n", "not terminated"),
    ("---\ntitle: [unclosed\n---\n", "invalid YAML"),
    ("---\n- a\n- b\n---\n", "must be a mapping"),
])
def test_strip_frontmatter_malformed(text, match):
    """Missing, unterminated, invalid, or non-mapping blocks raise ValueError."""
    with pytest.raises(ValueError, match=match):
        _strip_frontmatter(text)


def test_discover_files_sorted_and_filtered(content_dir):
    """discover_files finds .md/.markdown recursively, sorted, skipping hidden paths and other files."""
    (content_dir / "b.md").write_text("b")
    (content_dir / "a.markdown").write_text("a")
    (content_dir / "notes.txt").write_text("t")
    (content_dir / ".drafts").mkdir()
    (content_dir / ".drafts" / "hidden.md").write_text("h")
    sub = content_dir / "_posts"
    sub.mkdir()
    (sub / "c.md").write_text("c")
    files = discover_files(content_dir)
    assert [p.relative_to(content_dir).as_posix() for p in files] == ["_posts/c.md", "a.markdown", "b.md"]


def test_discover_files_single(content_dir):
    """discover_files returns a list with one file when given a file path."""
    f = content_dir / "doc.md"
    f.write_text("x")
    assert discover_files(f) == [f]


def test_load_document_fields(write_post, content_dir):
    """load_document parses front-matter, body, slug, date, and categories."""
    p = write_post(
        "_posts/2024-04-08-how-recursing-works.md",
        FM.format(extra="categories: asm compilers\nsummary: S\n", body="Body.\n"),
    )
    doc = load_document(p, content_dir)
    assert doc.rel_path == "_posts/2024-04-08-how-recursing-works.md"
    assert doc.slug == "how-recursing-works"
    assert doc.layout == "post"
    assert doc.title == "T"
    assert doc.summary == "S"
    assert doc.date == datetime(2024, 4, 8)
    assert doc.categories == ("asm", "compilers")
    assert doc.body == "Body.\n"


def test_load_document_is_immutable(write_post, content_dir):
    """Documents are frozen, including their front-matter mapping."""
    doc = load_document(write_post("a.md", FM.format(extra="", body="")), content_dir)
    with pytest.raises(dataclasses.FrozenInstanceError):
        doc.slug = "other"
    with pytest.raises(TypeError):
        doc.frontmatter["title"] = "changed"


def test_load_document_category_list_and_single(write_post, content_dir):
    """categories accepts a YAML list; a lone 'category' key becomes one category."""
    a = load_document(write_post("a.md", FM.format(extra="categories: [Low Level, asm]\n", body="")), content_dir)
    b = load_document(write_post("b.md", FM.format(extra="category: asm\n", body="")), content_dir)
    assert a.categories == ("Low Level", "asm")
    assert b.categories == ("asm",)


def test_load_document_datetime_with_offset(write_post, content_dir):
    """ISO-8601 strings with a time and offset are kept as aware datetimes."""
    text = "---\nlayout: post\ntitle: T\ndate: '2024-04-08T10:30:00+02:00'\n---\n"
    doc = load_document(write_post("a.md", text), content_dir)
    assert doc.date.hour == 10
    assert doc.date.utcoffset().total_seconds() == 7200
    assert doc.timestamp == datetime(2024, 4, 8, 8, 30, tzinfo=timezone.utc).timestamp()


def test_load_document_slug_from_frontmatter(write_post, content_dir):
    """A front-matter slug wins over the filename."""
    doc = load_document(write_post("anything.md", FM.format(extra="slug: Custom Slug\n", body="")), content_dir)
    assert doc.slug == "custom-slug"


def test_load_document_missing_layout(write_post, content_dir):
    """A document without layout fails with MissingRequiredField naming the field and file."""
    p = write_post("a.md", "---\ntitle: T\ndate: 2024-04-08\n---\nBody\n")
    with pytest.raises(MissingRequiredField) as exc:
        load_document(p, content_dir)
    assert exc.value.field == "layout"
    assert exc.value.path == p
    assert str(p) in str(exc.value)


@pytest.mark.parametrize("field", ["title", "date"])
def test_load_document_missing_title_or_date(write_post, content_dir, field):
    """title and date are required as well."""
    lines = {"layout": "post", "title": "T", "date": "2024-04-08"}
    del lines[field]
    text = "---\n" + "".join(f"{k}: {v}\n" for k, v in lines.items()) + "---\n"
    with pytest.raises(MissingRequiredField) as exc:
        load_document(write_post("a.md", text), content_dir)
    assert exc.value.field == field


def test_load_document_bad_date(write_post, content_dir):
    """A non-ISO date is malformed front-matter."""
    p = write_post("a.md", "---\nlayout: post\ntitle: T\ndate: April 8th\n---\n")
    with pytest.raises(MalformedFrontMatter, match="ISO-8601"):
        load_document(p, content_dir)


def test_load_document_no_frontmatter(write_post, content_dir):
    """A Markdown file without a metadata block is malformed."""
    p = write_post("plain.md", "# Hello\n")
    with pytest.raises(MalformedFrontMatter):
        load_document(p, content_dir)


def test_load_documents_skips_unpublished(write_post, content_dir):
    """published: false documents are dropped; the rest keep path order."""
    write_post("b.md", FM.format(extra="", body=""))
    write_post("a.md", FM.format(extra="", body=""))
    write_post("c.md", FM.format(extra="published: false\n", body=""))
    docs = load_documents(content_dir)
    assert [d.rel_path for d in docs] == ["a.md", "b.md"]


def test_load_documents_fails_fast(write_post, content_dir):
    """The first bad file aborts loading."""
    write_post("a.md", FM.format(extra="", body=""))
    write_post("b.md", "---\ntitle: T\n")
    with pytest.raises(MalformedFrontMatter):
        load_documents(content_dir)


def test_load_document_invalid_utf8(content_dir):
    """Undecodable bytes are reported as malformed, naming the file."""
    p = content_dir / "bad.md"
    p.write_bytes(b"\xff\xfe---\nlayout: post\n---\n")
    with pytest.raises(MalformedFrontMatter, match="not valid UTF-8") as exc:
        load_document(p, content_dir)
    assert exc.value.path == p
