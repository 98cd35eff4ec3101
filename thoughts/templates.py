"""Template rendering engine for thoughts.

This module uses Jinja2 to turn content items and generated listings into
HTML. Templates are looked up in the project's ``layouts/`` directory, then
in the configured theme, then in the default layouts shipped with the package.

Missing values referenced by a template render as empty strings so optional
front matter fields (cover images, descriptions...) need no guards. Each such
reference is recorded as an UndefinedReference warning; with
``strictUndefined: true`` in the site configuration the first one aborts the
build instead.

Key classes:
- TemplateEngine: Selects templates and renders pages.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import ChainableUndefined, ChoiceLoader, Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .assembler import RenderedPage, output_path_for
from .collections import PageCollection, TermIndex, sort_items
from .config import SiteConfig
from .content import ContentItem
from .errors import TemplateNotFound, UndefinedReference
from .html_utils import join_root_url
from .listings import Listing, section_index_files
from .renderers import Heading, MarkdownRenderer
from .utils import go_date_format, titleize

__all__ = ["TemplateEngine", "render_toc"]

logger = logging.getLogger(__name__)

BUILTIN_LAYOUTS = Path(__file__).parent / "layouts"
DEFAULT_DATE_FORMAT = "January 2, 2006"

LISTING_TEMPLATES = {
    "home": ("index.html", "_default/list.html"),
    "section": ("{type}/list.html", "_default/list.html"),
    "taxonomy": ("{type}/terms.html", "_default/terms.html"),
    "term": ("{type}/term.html", "_default/term.html", "_default/list.html"),
    "archive": ("_default/archives.html",),
}


def render_toc(toc: Sequence[Heading]) -> Markup:
    """Render a table of contents as nested HTML lists.

    Args:
        toc: Headings in document order.

    Returns:
        Markup-safe nested ``<ul>`` structure, or empty Markup if no headings.
    """
    if not toc:
        return Markup("")

    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in toc:
        level = heading.level

        # Close nested lists if going to a shallower level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(
            Markup('<li><a href="#{}">{}</a>').format(heading.id, heading.text)
        )

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


class TemplateEngine:
    """Renders content items and listings with Jinja2 templates.

    Attributes:
        config: Site configuration.
        project_root: Project directory containing ``layouts/``.
        pages: Regular items, newest first.
        taxonomies: Taxonomy indexes by plural name.
        env: Jinja2 environment.
        warnings: Undefined references recorded so far.
    """

    def __init__(
        self,
        config: SiteConfig,
        project_root: Path,
        items: Sequence[ContentItem] = (),
        taxonomies: Mapping[str, TermIndex] | None = None,
    ):
        self.config = config
        self.project_root = project_root
        self.pages = PageCollection(sort_items(i for i in items if not i.is_section))
        self.taxonomies = dict(taxonomies or {})
        self.sections = section_index_files(items)
        self.warnings: list[UndefinedReference] = []
        self._current_source: Path | None = None
        self._current_template: str | None = None
        self._markdown = MarkdownRenderer(config)
        self.env = Environment(
            loader=ChoiceLoader([FileSystemLoader(str(p)) for p in self.layout_dirs()]),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=self._make_undefined(),
            keep_trailing_newline=True,
        )
        self._install_globals()

    def layout_dirs(self) -> list[Path]:
        """Template search path, highest priority first."""
        dirs = [self.project_root / self.config.layout_dir]
        if self.config.theme:
            dirs.append(self.project_root / "themes" / self.config.theme / "layouts")
        dirs.append(BUILTIN_LAYOUTS)
        return [d for d in dirs if d.is_dir()]

    def _make_undefined(self) -> type[ChainableUndefined]:
        engine = self

        class RecordingUndefined(ChainableUndefined):
            """Renders as an empty string and reports the missing name."""

            __slots__ = ()

            def __str__(self) -> str:
                engine._record_undefined(self._undefined_name or self._undefined_hint or "?")
                return ""

        return RecordingUndefined

    def _record_undefined(self, name: str) -> None:
        warning = UndefinedReference(name, self._current_template, self._current_source)
        if self.config.strict_undefined:
            raise warning
        if any(
            w.name == name and w.source_path == warning.source_path
            and w.template == warning.template
            for w in self.warnings
        ):
            return
        logger.warning("%s", warning)
        self.warnings.append(warning)

    def _install_globals(self) -> None:
        """Install global variables, functions and filters."""
        self.env.globals.update(
            site=self.config,
            menu=self.config.menu,
            pages=self.pages,
            taxonomies=self.taxonomies,
            url_for=self.url_for,
            abs_url=self.abs_url,
            render_toc=render_toc,
            copyright=Markup(self._markdown.render_inline(self.config.copyright))
            if self.config.copyright
            else Markup(""),
        )
        self.env.filters["date_format"] = self._date_format
        self.env.filters["abs_url"] = self.abs_url
        self.env.filters["markdownify"] = self._markdownify

    def url_for(self, path: str) -> str:
        """Return a site-relative URL for a path, leaving external URLs alone."""
        if path.startswith(("http://", "https://", "//", "mailto:")):
            return path
        return path if path.startswith("/") else f"/{path}"

    def abs_url(self, path: str) -> str:
        """Return an absolute URL under ``baseURL`` (site-relative without one)."""
        if path.startswith(("http://", "https://", "//", "mailto:")):
            return path
        return join_root_url(self.config.base_url, path)

    def _date_format(self, value, layout: str | None = None) -> str:
        if not value:
            return ""
        layout = layout or str(self.config.param("DateFormat") or DEFAULT_DATE_FORMAT)
        return go_date_format(value, layout)

    def _markdownify(self, text: str) -> Markup:
        html, _ = self._markdown.render(str(text or ""))
        return Markup(html)

    def render_item(self, item: ContentItem) -> RenderedPage:
        """Render a regular content item with the template for its layout.

        Template candidates are ``<type>/<layout>.html`` then
        ``_default/<layout>.html``.

        Raises:
            TemplateNotFound: If no candidate template exists.
        """
        candidates = (f"{item.type}/{item.layout}.html", f"_default/{item.layout}.html")
        context = {
            "page": item,
            "content": Markup(item.content),
            "toc": render_toc(item.toc),
            "permalink": self.abs_url(item.url),
            "breadcrumbs": self.breadcrumbs(item),
            "edit_url": self.edit_url(item),
        }
        context.update(self.neighbours(item))
        markup = self._render(item.layout, candidates, context, item.path)
        return RenderedPage(
            url=item.url,
            output_path=output_path_for(item.url),
            markup=markup,
            source=str(item.path),
        )

    def render_listing(self, listing: Listing) -> RenderedPage:
        """Render a generated index page.

        A layout declared by a matching ``_index.md`` is tried before the
        templates for the listing kind.

        Raises:
            TemplateNotFound: If no candidate template exists.
        """
        candidates = tuple(
            name.format(type=listing.type) for name in LISTING_TEMPLATES[listing.kind]
        )
        layout = listing.layout or candidates[0].rsplit("/", 1)[-1].removesuffix(".html")
        if listing.layout and listing.kind != "archive":
            candidates = (
                f"{listing.type}/{listing.layout}.html",
                f"_default/{listing.layout}.html",
            ) + candidates
        context = {
            "page": listing,
            "content": Markup(listing.content),
            "toc": Markup(""),
            "permalink": self.abs_url(listing.url),
            "breadcrumbs": [],
            "edit_url": "",
            "newer_page": None,
            "older_page": None,
        }
        markup = self._render(layout, candidates, context, listing.source)
        return RenderedPage(
            url=listing.url,
            output_path=output_path_for(listing.url),
            markup=markup,
            source=listing.label,
        )

    def _render(
        self,
        layout: str,
        candidates: tuple[str, ...],
        context: dict[str, Any],
        source: Path | None,
    ) -> str:
        try:
            template = self.env.select_template(candidates)
        except jinja2.TemplatesNotFound as exc:
            raise TemplateNotFound(layout, source, candidates) from exc
        self._current_source = source
        self._current_template = template.name
        try:
            return template.render(**context)
        except jinja2.TemplateNotFound as exc:
            # An include or extends inside the selected template is missing.
            raise TemplateNotFound(exc.name, source, (exc.name,)) from exc
        finally:
            self._current_source = None
            self._current_template = None

    def breadcrumbs(self, item: ContentItem) -> list[tuple[str, str]]:
        """Breadcrumb trail (name, url) from the home page to the item's section."""
        if not self.config.param("ShowBreadCrumbs", False):
            return []
        crumbs = [("Home", "/")]
        if item.section:
            index = self.sections.get(item.section)
            name = index.title if index is not None else titleize(item.section)
            crumbs.append((name, f"/{item.section}/"))
        return crumbs

    def neighbours(self, item: ContentItem) -> dict[str, ContentItem | None]:
        """Adjacent items in the same section: ``newer_page`` and ``older_page``."""
        siblings = [p for p in self.pages if p.section == item.section and p.date is not None]
        if not item.section or item not in siblings:
            return {"newer_page": None, "older_page": None}
        position = siblings.index(item)
        newer = siblings[position - 1] if position > 0 else None
        older = siblings[position + 1] if position + 1 < len(siblings) else None
        return {"newer_page": newer, "older_page": older}

    def edit_url(self, item: ContentItem) -> str:
        """Link to the item's source from ``params.editPost``."""
        edit = self.config.param("editPost")
        if not isinstance(edit, Mapping) or not edit.get("URL"):
            return ""
        base = str(edit["URL"])
        if edit.get("appendFilePath"):
            return f"{base.rstrip('/')}/{item.relative_path}"
        return base

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string with the engine's globals."""
        return self.env.from_string(template).render(**context)
