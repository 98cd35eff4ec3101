"""Content loading for thoughts.

This module discovers Markdown files under the content directory, extracts
their metadata, renders their bodies and produces immutable ContentItem
objects. Drafts, future-dated and expired items are filtered out according
to the site configuration.

Key classes:
- ContentItem: Frozen dataclass representing one article or page.
- Cover: Cover image reference from front matter.
- FileContentLoader: Discovers content files.
- UrlDeriver: Derives slugs and URLs.
- ItemBuilder: Builds a ContentItem from one file.
- ContentLoader: Lazily yields the items that belong in the build.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .config import SiteConfig, freeze
from .extractors import CompositeMetadataExtractor
from .protocols import ContentSource
from .renderers import Heading, MarkdownRenderer
from .utils import count_words, is_hidden, is_markdown, reading_time, slugify, truncate_words

logger = logging.getLogger(__name__)

SECTION_FILENAME = "_index.md"
MORE_DIVIDER = "<!--more-->"
DEFAULT_LAYOUT = "single"


@dataclass(frozen=True)
class Cover:
    """Cover image declared in front matter."""

    image: str
    alt: str = ""
    caption: str = ""
    hidden: bool = False


@dataclass(frozen=True, eq=False)
class ContentItem:
    """An article, page or section index loaded from the content directory.

    Attributes:
        path: Source file path.
        relative_path: POSIX path relative to the content directory.
        kind: "page" for regular content, "section" for ``_index.md``.
        section: First directory component, "" for root-level files.
        type: Template type, from front matter or the section.
        layout: Layout identifier used to select a template.
        title: Human-readable title.
        date: Publish date (aware) or None when undated.
        terms: Taxonomy plural -> terms, e.g. ``{"tags": ("Testing",)}``.
        slug: URL-safe identifier.
        url: Site-relative URL, e.g. ``/posts/hello/``.
        body: Raw Markdown body.
        content: Rendered HTML body.
        toc: Headings for the table of contents.
        params: Full front matter, read-only.
    """

    path: Path
    relative_path: str
    kind: str
    section: str
    type: str
    layout: str
    title: str
    date: datetime | None
    lastmod: datetime | None
    expiry_date: datetime | None
    draft: bool
    terms: Mapping[str, tuple[str, ...]]
    summary: str
    description: str
    cover: Cover | None
    slug: str
    url: str
    body: str
    content: str
    toc: tuple[Heading, ...] = ()
    word_count: int = 0
    reading_time: int = 0
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def tags(self) -> tuple[str, ...]:
        return self.terms.get("tags", ())

    @property
    def is_section(self) -> bool:
        return self.kind == "section"


class FileContentLoader:
    """Discovers Markdown content files in sorted order.

    Dot-files and dot-directories are ignored.
    """

    def __init__(self, content_dir: Path):
        self.content_dir = content_dir

    def iter_files(self) -> Iterator[Path]:
        """Yield content file paths in a stable, sorted order."""
        if not self.content_dir.exists():
            return
        for path in sorted(self.content_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.content_dir)
            if is_hidden(rel):
                continue
            if is_markdown(path):
                yield path


class UrlDeriver:
    """Derives slugs and URLs for content items."""

    def slug(self, rel: Path, override: str) -> str:
        if override:
            return slugify(override)
        if rel.stem == "index" and rel.parent != Path("."):
            return slugify(rel.parent.name)
        return slugify(rel.stem)

    def derive(self, rel: Path, slug: str, override: str = "") -> str:
        """Derive the URL for an item.

        Args:
            rel: Path relative to the content directory.
            slug: URL-friendly slug.
            override: Explicit ``url`` front matter value.

        Returns:
            Site-relative URL with leading and trailing slash, or a file URL
            such as ``/404.html`` when the override names a file.
        """
        if override:
            return self._normalize(override)
        parents = [p for p in rel.parent.parts if p]
        if rel.name == SECTION_FILENAME:
            segments = parents
        elif rel.stem == "index" and parents:
            segments = parents[:-1] + [slug]
        else:
            segments = parents + [slug]
        path = "/".join(segments)
        return f"/{path}/" if path else "/"

    @staticmethod
    def _normalize(url: str) -> str:
        url = "/" + url.strip().lstrip("/")
        last = url.rsplit("/", 1)[-1]
        if "." in last:
            return url
        return url if url.endswith("/") else f"{url}/"


class ItemBuilder:
    """Builds ContentItem objects from source files.

    Attributes:
        content_dir: Directory containing content.
        metadata_extractor: Composite metadata extractor.
        markdown: Markdown renderer.
        url_deriver: URL deriver instance.
    """

    def __init__(
        self,
        config: SiteConfig,
        content_dir: Path,
        metadata_extractor: CompositeMetadataExtractor | None = None,
        markdown: MarkdownRenderer | None = None,
    ):
        self.config = config
        self.content_dir = content_dir
        self.metadata_extractor = metadata_extractor or CompositeMetadataExtractor(
            config.taxonomies
        )
        self.markdown = markdown or MarkdownRenderer(config)
        self.url_deriver = UrlDeriver()

    def build(self, path: Path) -> ContentItem:
        """Build a ContentItem from a source file.

        Raises:
            MalformedMetadata: If the front matter cannot be parsed.
        """
        rel = path.relative_to(self.content_dir)
        raw = path.read_text(encoding="utf-8")
        metadata = self.metadata_extractor.extract(raw, path)
        body = metadata["body"]

        kind = "section" if rel.name == SECTION_FILENAME else "page"
        section = rel.parts[0] if len(rel.parts) > 1 else ""
        content, toc = self.markdown.render(body)
        plain = self.markdown.plain_text(body)
        words = count_words(plain)
        slug = self.url_deriver.slug(rel, metadata["slug"])

        return ContentItem(
            path=path,
            relative_path=rel.as_posix(),
            kind=kind,
            section=section,
            type=metadata["type"] or section or "page",
            layout=metadata["layout"] or DEFAULT_LAYOUT,
            title=metadata["title"],
            date=metadata["date"],
            lastmod=metadata["lastmod"],
            expiry_date=metadata["expiry_date"],
            draft=metadata["draft"],
            terms=MappingProxyType(metadata["terms"]),
            summary=self._summary(metadata["summary"], body, plain),
            description=metadata["description"],
            cover=self._cover(metadata["cover"]),
            slug=slug,
            url=self.url_deriver.derive(rel, slug, metadata["url"]),
            body=body,
            content=content,
            toc=tuple(toc),
            word_count=words,
            reading_time=reading_time(words),
            params=freeze(metadata["frontmatter"]),
        )

    def _summary(self, explicit: str, body: str, plain: str) -> str:
        """Explicit summary, else text before ``<!--more-->``, else leading words."""
        if explicit:
            return explicit
        if MORE_DIVIDER in body:
            return self.markdown.plain_text(body.split(MORE_DIVIDER, 1)[0])
        return truncate_words(plain, self.config.summary_length)

    @staticmethod
    def _cover(raw: Any) -> Cover | None:
        if not raw:
            return None
        if isinstance(raw, str):
            return Cover(image=raw)
        image = str(raw.get("image") or "")
        if not image:
            return None
        return Cover(
            image=image,
            alt=str(raw.get("alt") or ""),
            caption=str(raw.get("caption") or ""),
            hidden=bool(raw.get("hidden", False)),
        )


class ContentLoader:
    """Lazily loads the content items that belong in a build.

    Drafts, items dated after ``now`` and items whose expiry date has passed
    are skipped unless the configuration's ``build_drafts``, ``build_future``
    or ``build_expired`` flag is set.
    """

    def __init__(
        self,
        config: SiteConfig,
        project_root: Path,
        now: datetime | None = None,
        file_loader: ContentSource | None = None,
        item_builder: ItemBuilder | None = None,
    ):
        self.config = config
        self.content_dir = project_root / config.content_dir
        self.now = now or datetime.now(timezone.utc)
        if self.now.tzinfo is None:
            self.now = self.now.replace(tzinfo=timezone.utc)
        self._file_loader = file_loader or FileContentLoader(self.content_dir)
        self._item_builder = item_builder or ItemBuilder(config, self.content_dir)

    def load(self) -> Iterator[ContentItem]:
        """Yield included content items in sorted path order.

        Raises:
            MalformedMetadata: On the first file whose metadata cannot be parsed.
        """
        for path in self._file_loader.iter_files():
            item = self._item_builder.build(path)
            reason = self.exclusion_reason(item)
            if reason:
                logger.debug("Skipping %s (%s)", item.relative_path, reason)
                continue
            yield item

    def exclusion_reason(self, item: ContentItem) -> str | None:
        """Return why an item is excluded from the build, or None to include it."""
        if item.draft and not self.config.build_drafts:
            return "draft"
        if item.date is not None and item.date > self.now and not self.config.build_future:
            return "future"
        if (
            item.expiry_date is not None
            and item.expiry_date < self.now
            and not self.config.build_expired
        ):
            return "expired"
        return None
