"""Assemble the final HTML: title, formatted body and tag list."""

from __future__ import annotations

import html
import io
from collections.abc import Iterable, Mapping
from typing import Protocol

from markgone.body import BodyFormatter, render_body
from markgone.prepare import prepare

TAG_URL_PREFIX = "/tag/"


class Sink(Protocol):
    def write(self, s: str, /) -> object: ...


def render_title(sink: Sink, title: str) -> None:
    sink.write("<h2>")
    sink.write(html.escape(title, quote=True))
    sink.write("</h2>\n")


def render_tags(sink: Sink, tags: Iterable[str]) -> None:
    """Write the tag container; an empty `tags` still yields the container."""

    sink.write('<div class="taglist">\n')
    sink.write("<strong>Tags:</strong>\n")
    for tag in tags:
        tag = html.escape(tag, quote=True)
        sink.write(f'<a href="{TAG_URL_PREFIX}{tag}" rel="tag">{tag}</a>\n')
    sink.write("</div>\n")


def to_html(
    sink: Sink,
    text: str,
    link_words: Mapping[str, str] | None = None,
    *,
    body_formatter: BodyFormatter = render_body,
) -> None:
    """Convert markgone `text` to HTML, writing it to `sink`.

    The title (if any) is written as ``<h2>``, the body goes through
    `body_formatter` together with `link_words`, and a trailing tag line (if
    any) becomes a ``<div class="taglist">`` of ``rel="tag"`` links. Errors
    raised by ``sink.write`` propagate unchanged.
    """

    doc = prepare(text)
    if doc.title is not None:
        render_title(sink, doc.title)
    sink.write(body_formatter("\n".join(doc.body), link_words))
    if doc.tags is not None:
        render_tags(sink, doc.tags)


def to_html_string(
    text: str,
    link_words: Mapping[str, str] | None = None,
    *,
    body_formatter: BodyFormatter = render_body,
) -> str:
    """Like :func:`to_html`, but return the HTML as a string."""

    buf = io.StringIO()
    to_html(buf, text, link_words, body_formatter=body_formatter)
    return buf.getvalue()
