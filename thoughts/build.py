"""Site building functionality for thoughts.

This module runs the whole pipeline in a single pass:

    load content -> index taxonomies -> render pages -> assemble output

The build is fail-fast. The first malformed file, missing template or output
conflict aborts it, and nothing is published because the assembler only
replaces the output directory once every page has been written.

Key functions:
- build_site: Build the entire site.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from jinja2 import TemplateSyntaxError

from .assembler import RenderedPage, SiteAssembler
from .config import SiteConfig, load_config
from .content import ContentItem, ContentLoader
from .errors import BuildError, SiteError, UndefinedReference
from .html_utils import absolutize_html_urls
from .listings import plan_listings
from .taxonomy import build_taxonomies
from .templates import TemplateEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        items: Content items included in the build.
        pages: Every page written, items first, then listings.
        output_dir: Directory the site was published to.
        warnings: Undefined template references that were tolerated.
        config: Configuration the site was built with.
    """

    items: list[ContentItem]
    pages: list[RenderedPage]
    output_dir: Path
    warnings: list[UndefinedReference] = field(default_factory=list)
    config: SiteConfig | None = None


def build_site(
    project_root: Path,
    include_drafts: bool | None = None,
    include_future: bool | None = None,
    include_expired: bool | None = None,
    output_dir: Path | None = None,
    now: datetime | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Override ``buildDrafts`` from the configuration.
        include_future: Override ``buildFuture``.
        include_expired: Override ``buildExpired``.
        output_dir: Publish somewhere other than ``publishDir``.
        now: Reference time for future/expired checks (defaults to now, UTC).

    Returns:
        BuildResult describing what was written.

    Raises:
        SiteError: On the first fatal error, with the offending path.
    """
    config = load_config(project_root).with_overrides(
        build_drafts=include_drafts,
        build_future=include_future,
        build_expired=include_expired,
    )
    target = (output_dir or (project_root / config.publish_dir)).resolve()
    _check_output_dir(target, project_root, config)

    items = list(ContentLoader(config, project_root, now=now).load())
    taxonomies = build_taxonomies(items, config)
    engine = TemplateEngine(config, project_root, items, taxonomies)
    assembler = SiteAssembler(target)

    for item in items:
        if item.is_section:
            continue
        page = _render(engine.render_item, item, item.path)
        assembler.add(_finalize(page, config))
    for listing in plan_listings(items, taxonomies, config):
        page = _render(engine.render_listing, listing, listing.source)
        assembler.add(_finalize(page, config))

    assembler.add_static_dir(project_root / config.static_dir)
    assembler.write()

    logger.debug(
        "Built %d pages from %d content files into %s",
        len(assembler.pages),
        len(items),
        target,
    )
    return BuildResult(
        items=items,
        pages=assembler.pages,
        output_dir=target,
        warnings=list(engine.warnings),
        config=config,
    )


def _render(render: Callable[[T], RenderedPage], subject: T, source: Path | None) -> RenderedPage:
    """Render one page, wrapping unexpected errors with the source path."""
    try:
        return render(subject)
    except SiteError:
        raise
    except TemplateSyntaxError as exc:
        raise BuildError(
            Path(exc.filename) if exc.filename else source,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(source, _format_error_message(exc), exc) from exc


def _check_output_dir(target: Path, project_root: Path, config: SiteConfig) -> None:
    """Refuse an output directory whose replacement would delete project files.

    Raises:
        BuildError: If the output directory is the project directory, contains
            it, or overlaps the content, layout or static directory.
    """
    root = project_root.resolve()
    if root.is_relative_to(target):
        raise BuildError(
            target, "Output directory must not be the project directory or one of its parents"
        )
    for name in (config.content_dir, config.layout_dir, config.static_dir):
        source = (root / name).resolve()
        if source.is_relative_to(target) or target.is_relative_to(source):
            raise BuildError(target, f"Output directory overlaps the '{name}' directory")


def _finalize(page: RenderedPage, config: SiteConfig) -> RenderedPage:
    if config.canonify_urls and config.base_url:
        return replace(page, markup=absolutize_html_urls(page.markup, config.base_url))
    return page


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"
