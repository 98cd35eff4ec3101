"""Generated index pages for thoughts.

Besides one page per content item, a site gets synthetic listing pages: the
home page, one list page per section, a term list and per-term pages for each
taxonomy, and an archive. This module plans those pages; the template engine
renders them like any other page.

Key objects:
- Listing: The context of a generated index page.
- plan_listings: Derive every listing from the loaded items.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any

from .collections import PageCollection, TermIndex, sort_items
from .config import SiteConfig
from .content import ContentItem
from .utils import titleize

ARCHIVE_LAYOUT = "archives"


@dataclass(frozen=True, eq=False)
class Listing:
    """A generated index page.

    Attributes:
        kind: "home", "section", "taxonomy", "term" or "archive".
        title: Page title.
        url: Site-relative URL.
        pages: Items listed on the page, newest first.
        content: Rendered HTML from a matching ``_index.md``, if any.
        source: ``_index.md`` path when one exists, else None.
        layout: Layout declared by ``_index.md``, else "".
        type: Template type (the section or taxonomy name).
        taxonomy: Taxonomy plural for taxonomy and term pages.
        term: Term for term pages.
        terms: Term index for taxonomy pages.
    """

    kind: str
    title: str
    url: str
    pages: PageCollection
    content: str = ""
    summary: str = ""
    description: str = ""
    source: Path | None = None
    layout: str = ""
    type: str = ""
    taxonomy: str = ""
    term: str = ""
    terms: TermIndex | None = None
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def label(self) -> str:
        """Identifies the listing in error messages and conflict reports."""
        if self.source is not None:
            return str(self.source)
        return f"<{self.kind} listing {self.url}>"


def section_index_files(items: Sequence[ContentItem]) -> dict[str, ContentItem]:
    """Map section name to its own ``_index.md`` ('' for the home page).

    Only index files directly inside a section directory count; nested ones
    such as ``posts/sub/_index.md`` describe sub-sections and are ignored.
    """
    files: dict[str, ContentItem] = {}
    for item in items:
        if not item.is_section:
            continue
        if PurePosixPath(item.relative_path).parent.as_posix() in (".", item.section):
            files[item.section] = item
    return files


def regular_items(items: Sequence[ContentItem]) -> list[ContentItem]:
    """Regular (non-section) items, newest first."""
    return sort_items(item for item in items if not item.is_section)


def main_section_items(items: Sequence[ContentItem], config: SiteConfig) -> list[ContentItem]:
    """Items shown on the home page.

    Uses ``params.mainSections`` when set; otherwise every item that lives in
    a section, or every item when the site has no sections at all.
    """
    regular = regular_items(items)
    main_sections = config.param("mainSections")
    if main_sections:
        if isinstance(main_sections, str):
            main_sections = [main_sections]
        return [item for item in regular if item.section in main_sections]
    sectioned = [item for item in regular if item.section]
    return sectioned or regular


def plan_listings(
    items: Sequence[ContentItem],
    taxonomies: Mapping[str, TermIndex],
    config: SiteConfig,
) -> list[Listing]:
    """Plan every generated index page.

    Args:
        items: Loaded content items, including section index files.
        taxonomies: Taxonomy indexes built from the items.
        config: Site configuration.

    Returns:
        Listings in a deterministic order: home, sections, taxonomies, archive.
    """
    section_files = section_index_files(items)
    regular = regular_items(items)
    listings = [_home(section_files.get(""), main_section_items(items, config), config)]

    section_names = {item.section for item in regular if item.section}
    section_names.update(name for name in section_files if name)
    for name in sorted(section_names):
        listings.append(
            _with_index(
                Listing(
                    kind="section",
                    title=titleize(name),
                    url=f"/{name}/",
                    pages=PageCollection(item for item in regular if item.section == name),
                    type=name,
                ),
                section_files.get(name),
            )
        )

    for plural, index in taxonomies.items():
        listings.append(
            Listing(
                kind="taxonomy",
                title=titleize(plural),
                url=f"/{plural}/",
                pages=PageCollection(regular),
                type=plural,
                taxonomy=plural,
                terms=index,
            )
        )
        for term, term_items in index.items():
            listings.append(
                Listing(
                    kind="term",
                    title=term,
                    url=index.url(term),
                    pages=term_items,
                    type=plural,
                    taxonomy=plural,
                    term=term,
                )
            )

    if not any(item.layout == ARCHIVE_LAYOUT for item in regular):
        path = str(config.param("archivePath", "archive")).strip("/")
        listings.append(
            Listing(
                kind="archive",
                title="Archive",
                url=f"/{path}/",
                pages=PageCollection(item for item in regular if item.date is not None),
                type="archive",
                layout=ARCHIVE_LAYOUT,
            )
        )
    return listings


def _home(index: ContentItem | None, pages: list[ContentItem], config: SiteConfig) -> Listing:
    home = Listing(kind="home", title=config.title, url="/", pages=PageCollection(pages))
    return _with_index(home, index)


def _with_index(listing: Listing, index: ContentItem | None) -> Listing:
    """Fold the metadata and body of an ``_index.md`` file into a listing."""
    if index is None:
        return listing
    return Listing(
        kind=listing.kind,
        title=index.title or listing.title,
        url=listing.url,
        pages=listing.pages,
        content=index.content,
        summary=index.summary,
        description=index.description,
        source=index.path,
        layout=str(index.params.get("layout") or ""),
        type=listing.type,
        params=index.params,
    )
