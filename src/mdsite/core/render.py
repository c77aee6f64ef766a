"""Rendering: Markdown body -> HTML, then HTML -> named Jinja2 layout"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    UndefinedError,
    select_autoescape,
)
from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml, unescapeAll
from markupsafe import Markup

from mdsite.core.models import Document, RenderedPage
from mdsite.core.utils.slug import slugify
from mdsite.errors import TemplateSubstitutionError, UnknownLayout


logger = logging.getLogger(__name__)

LAYOUT_SUFFIX = '.html'
LAYOUT_NAME_RE = re.compile(r'^[\w.-]+$')


def escape_code(text: str) -> str:
    """Escape only what HTML requires inside <pre>: &, <, >. Quotes and whitespace stay verbatim."""
    return text.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;')


def _render_fence(self, tokens, idx, options, env) -> str:
    token = tokens[idx]
    info = unescapeAll(token.info).strip() if token.info else ''
    lang = info.split(maxsplit=1)[0] if info else ''
    cls = f' class="{escapeHtml(options.langPrefix + lang)}"' if lang else ''
    return f'<pre><code{cls}>{escape_code(token.content)}</code></pre>\n'


def _render_code_block(self, tokens, idx, options, env) -> str:
    return f'<pre><code>{escape_code(tokens[idx].content)}</code></pre>\n'


def make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance whose code blocks are reproduced verbatim."""
    md = MarkdownIt(preset, options_update={"linkify": False})
    md.add_render_rule('fence', _render_fence)
    md.add_render_rule('code_block', _render_code_block)
    return md


# --- template filters ---

def xmlschema(value: datetime) -> str:
    """ISO-8601 timestamp; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace('+00:00', 'Z')


def date_format(value: datetime, fmt: str = '%Y-%m-%d') -> str:
    return value.strftime(fmt)


def join_url(base: str, path: str) -> str:
    base = base.rstrip('/')
    path = path.lstrip('/')
    if not path:
        return f"{base}/"
    return f"{base}/{path}"


class Renderer:
    """Renders Documents through named layouts in layouts_dir.

    The markdown parser and template environment are read-only once built, so one
    Renderer may be shared by several render threads.
    """

    def __init__(self, layouts_dir: Path, parser_config: str = 'gfm-like', site: dict[str, Any] = None) -> None:
        self.layouts_dir = layouts_dir
        self.md = make_parser(parser_config)
        self.site = dict(site or {})
        self.env = Environment(
            loader=FileSystemLoader(str(layouts_dir)),
            undefined=StrictUndefined,
            autoescape=select_autoescape(['html', 'htm', 'xml']),
            keep_trailing_newline=True,
        )
        self._register_filters()

    def _register_filters(self) -> None:
        base_url = self.site.get('base_url', '')
        self.env.filters['absolute_url'] = lambda path: join_url(base_url, str(path))
        self.env.filters['date_format'] = date_format
        self.env.filters['xmlschema'] = xmlschema
        self.env.filters['slugify'] = slugify

    def render_markdown(self, body: str) -> str:
        return self.md.render(body)

    def excerpt(self, body: str) -> str:
        """HTML of the first paragraph of body, or '' if there is none."""
        tokens = self.md.parse(body)
        for start, tok in enumerate(tokens):
            if tok.type != 'paragraph_open':
                continue
            for end in range(start, len(tokens)):
                if tokens[end].type == 'paragraph_close' and tokens[end].level == tok.level:
                    return self.md.renderer.render(tokens[start:end + 1], self.md.options, {})
        return ''

    def resolve_layout(self, name: str, source: Path = None) -> Template:
        """Return the compiled '<name>.html' template from layouts_dir."""
        if not LAYOUT_NAME_RE.match(name) or name.startswith('.'):
            raise UnknownLayout(name, source)
        try:
            template = self.env.get_template(f"{name}{LAYOUT_SUFFIX}")
        except TemplateNotFound as e:
            raise UnknownLayout(name, source) from e
        except TemplateSyntaxError as e:
            raise TemplateSubstitutionError(f"layout '{name}' is invalid: {e.message} (line {e.lineno})", source) from e
        logger.debug("Resolved layout %s for %s", name, source)
        return template

    def page_context(self, doc: Document, url: str) -> dict[str, Any]:
        """Front-matter fields plus computed url, slug, date, categories, and excerpt."""
        page = dict(doc.frontmatter)
        page.update({
            'url':        url,
            'slug':       doc.slug,
            'date':       doc.date,
            'categories': list(doc.categories),
            'excerpt':    Markup(self.excerpt(doc.body)),
            'path':       doc.rel_path,
        })
        return page

    def render_page(self, doc: Document, url: str, output_path: str) -> RenderedPage:
        """Render doc into its layout; any missing slot fails with TemplateSubstitutionError."""
        template = self.resolve_layout(doc.layout, doc.path)
        content = Markup(self.render_markdown(doc.body))
        try:
            html = template.render(content=content, page=self.page_context(doc, url), site=self.site)
        except UndefinedError as e:
            raise TemplateSubstitutionError(f"layout '{doc.layout}': {e.message}", doc.path) from e
        except TemplateError as e:
            raise TemplateSubstitutionError(f"layout '{doc.layout}' failed to render: {e}", doc.path) from e
        return RenderedPage(output_path=output_path, url=url, html=html, document=doc)
