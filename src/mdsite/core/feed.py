"""Atom feed of the newest posts, rendered from a built-in template"""

from datetime import datetime, timezone

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape

from mdsite.core.models import RenderedPage
from mdsite.core.render import join_url, xmlschema


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FEED_TEMPLATE_NAME = "feed.xml"
FEED_TEMPLATE = """\
<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>{{ title }}</title>
  <link href="{{ feed_url }}" rel="self"/>
  <link href="{{ home_url }}"/>
  <id>{{ home_url }}</id>
  <updated>{{ updated }}</updated>
{%- for entry in entries %}
  <entry>
    <title>{{ entry.title }}</title>
    <link href="{{ entry.url }}"/>
    <id>{{ entry.url }}</id>
    <updated>{{ entry.updated }}</updated>
    {%- if entry.summary %}
    <summary>{{ entry.summary }}</summary>
    {%- endif %}
  </entry>
{%- endfor %}
</feed>
"""


def _sort_key(page: RenderedPage) -> tuple:
    return page.document.timestamp, page.url


def render_feed(pages: list[RenderedPage], title: str, base_url: str, feed_path: str, limit: int = 20) -> str:
    """Render an Atom 1.0 document; 'updated' is the newest post date so output is reproducible."""
    env = Environment(
        loader=DictLoader({FEED_TEMPLATE_NAME: FEED_TEMPLATE}),
        undefined=StrictUndefined,
        autoescape=select_autoescape(['xml']),
    )
    recent = sorted(pages, key=_sort_key, reverse=True)[:limit]
    entries = [
        {
            "title":   p.document.title,
            "url":     join_url(base_url, p.url),
            "updated": xmlschema(p.document.date),
            "summary": p.document.summary or "",
        }
        for p in recent
    ]
    return env.get_template(FEED_TEMPLATE_NAME).render(
        title=title,
        home_url=join_url(base_url, "/"),
        feed_url=join_url(base_url, feed_path),
        updated=entries[0]["updated"] if entries else xmlschema(EPOCH),
        entries=entries,
    )
