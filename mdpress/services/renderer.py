from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Sequence

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml
from markdown_it.token import Token
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from mdpress.models.post import Heading


HEADING_LINK_CLASS = "heading-link"

_heading_strip_pattern = re.compile(r"[^\w\s-]")
_whitespace_pattern = re.compile(r"\s+")
_code_formatter = HtmlFormatter(nowrap=True)


@dataclass(slots=True)
class RenderedContent:
    html: str
    headings: List[Heading] = field(default_factory=list)


def heading_id(text: str) -> str:
    """Anchor id for a heading. Shared by the TOC and the rendered HTML."""
    normalized = _heading_strip_pattern.sub("", text.lower())
    normalized = _whitespace_pattern.sub("-", normalized)
    return normalized.strip("-")


def highlight_code(content: str, lang_name: str, lang_attrs: str) -> str:
    # Empty string tells markdown-it to fall back to plain escaping.
    if not lang_name:
        return ""
    try:
        lexer = get_lexer_by_name(lang_name)
    except ClassNotFound:
        return ""
    return highlight(content, lexer, _code_formatter)


def _render_heading_open(self, tokens: Sequence[Token], idx: int, options, env) -> str:
    html = self.renderToken(tokens, idx, options, env)
    anchor = tokens[idx].attrGet("id")
    if anchor:
        html += f'<a class="{HEADING_LINK_CLASS}" href="#{escapeHtml(str(anchor))}">'
    return html


def _render_heading_close(self, tokens: Sequence[Token], idx: int, options, env) -> str:
    opening = tokens[idx - 2]
    prefix = "</a>" if opening.type == "heading_open" and opening.attrGet("id") else ""
    return prefix + self.renderToken(tokens, idx, options, env)


@lru_cache(maxsize=2)
def get_markdown(allow_html: bool = False) -> MarkdownIt:
    """Build the shared parser. Raw HTML is escaped unless ``allow_html``."""
    md = (
        MarkdownIt("commonmark", {"html": allow_html, "highlight": highlight_code})
        .enable("table")
        .enable("strikethrough")
        .enable("fence")
    )
    md.use(tasklists_plugin)
    md.use(anchors_plugin, min_level=1, max_level=6, slug_func=heading_id)
    md.add_render_rule("heading_open", _render_heading_open)
    md.add_render_rule("heading_close", _render_heading_close)
    return md


def _heading_text(inline: Token) -> str:
    children = inline.children or []
    return "".join(child.content for child in children if child.type in ("text", "code_inline")).strip()


def _headings_from_tokens(tokens: Sequence[Token]) -> List[Heading]:
    headings: List[Heading] = []
    for idx, token in enumerate(tokens):
        if token.type != "heading_open":
            continue
        headings.append(
            Heading(
                id=str(token.attrGet("id") or ""),
                text=_heading_text(tokens[idx + 1]),
                level=int(token.tag[1]),
            )
        )
    return headings


def extract_headings(body: str, *, allow_html: bool = False) -> List[Heading]:
    md = get_markdown(allow_html)
    return _headings_from_tokens(md.parse(body))


def render_markdown(body: str, *, allow_html: bool = False) -> RenderedContent:
    """Render a markdown body to HTML and return the heading outline.

    Both come from the same token stream, so every ``Heading.id`` is also
    the ``id`` attribute of the matching ``<hN>`` element.
    """
    md = get_markdown(allow_html)
    env: dict = {}
    tokens = md.parse(body, env)
    headings = _headings_from_tokens(tokens)
    html = md.renderer.render(tokens, md.options, env)
    return RenderedContent(html=html, headings=headings)
