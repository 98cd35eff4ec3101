"""Markdown rendering for thoughts.

Converts Markdown bodies to HTML with mistune, adding anchor ids to headings,
collecting a table of contents and highlighting fenced code with Pygments.

Key classes:
- Heading: A heading collected for the table of contents.
- MarkdownRenderer: Renders Markdown bodies and inline snippets.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from .config import HighlightOptions, SiteConfig
from .html_utils import strip_html

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]

_PARAGRAPH_RE = re.compile(r"^<p>(.*)</p>\s*$", re.DOTALL)


@dataclass(frozen=True)
class Heading:
    """A heading extracted from Markdown for TOC generation.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


def generate_heading_id(text: str) -> str:
    """Generate a URL-friendly anchor ID from heading text.

    Args:
        text: The heading text, possibly containing inline HTML.

    Returns:
        Slug suitable for anchor links.
    """
    slug = strip_html(text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


class _HighlightRenderer(mistune.HTMLRenderer):
    """Mistune renderer with heading anchors and Pygments code blocks.

    Attributes:
        headings: Headings within the TOC levels, in document order.
    """

    def __init__(
        self,
        options: HighlightOptions,
        toc_levels: tuple[int, int],
        highlight_code: bool = True,
    ):
        super().__init__(escape=False)
        self.options = options
        self.toc_levels = toc_levels
        self.highlight_code = highlight_code
        self.headings: list[Heading] = []
        self._issued_ids: set[str] = set()

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = generate_heading_id(text)
        heading_id = base_id
        suffix = 0
        while heading_id in self._issued_ids:
            suffix += 1
            heading_id = f"{base_id}-{suffix}"
        self._issued_ids.add(heading_id)

        start, end = self.toc_levels
        if start <= level <= end:
            self.headings.append(Heading(id=heading_id, text=strip_html(text), level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.split()[0] if info else ""
        lexer = self._lexer(lang, code) if self.highlight_code else None
        if lexer is not None:
            formatter = HtmlFormatter(
                cssclass="highlight",
                linenos="table" if self.options.line_numbers else False,
                noclasses=self.options.no_classes,
            )
            return highlight(code, lexer, formatter)
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"

    def _lexer(self, lang: str, code: str):
        try:
            if lang:
                return get_lexer_by_name(lang, stripall=True)
            if self.options.guess_syntax:
                return guess_lexer(code)
        except ClassNotFound:
            return None
        return None


class MarkdownRenderer:
    """Renders Markdown content to HTML using the site's markup options."""

    def __init__(self, config: SiteConfig):
        self.config = config

    def render(self, text: str) -> tuple[str, list[Heading]]:
        """Render a Markdown body.

        Args:
            text: Markdown source without front matter.

        Returns:
            Tuple of (rendered HTML, headings for the table of contents).
        """
        renderer = _HighlightRenderer(
            self.config.highlight,
            (self.config.toc_start_level, self.config.toc_end_level),
        )
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        return markdown(text), renderer.headings

    def render_inline(self, text: str) -> str:
        """Render a one-line Markdown snippet without the wrapping paragraph."""
        html, _ = self.render(text)
        match = _PARAGRAPH_RE.match(html)
        return match.group(1) if match else html.strip()

    def plain_text(self, text: str) -> str:
        """Render a Markdown body to plain text for word counts and summaries.

        Code blocks are left unhighlighted so line-number gutters do not end
        up in the text.
        """
        renderer = _HighlightRenderer(
            self.config.highlight,
            (self.config.toc_start_level, self.config.toc_end_level),
            highlight_code=False,
        )
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        return strip_html(markdown(text))
