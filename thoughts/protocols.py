"""Protocol definitions for thoughts.

Interfaces between the pipeline stages, so that extractors, loaders and
renderers can be swapped in tests or extended without touching the build.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .assembler import RenderedPage
    from .content import ContentItem
    from .listings import Listing


@runtime_checkable
class MetadataExtractor(Protocol):
    """Extracts one kind of metadata from parsed front matter and body."""

    @abstractmethod
    def extract(self, frontmatter: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        """Return the extracted fields.

        Raises:
            MalformedMetadata: If a value cannot be interpreted.
        """
        ...


@runtime_checkable
class ContentSource(Protocol):
    """Discovers content files."""

    @abstractmethod
    def iter_files(self) -> Iterator[Path]:
        """Yield content file paths in a stable order."""
        ...


@runtime_checkable
class PageRenderer(Protocol):
    """Turns content items and listings into rendered pages."""

    @abstractmethod
    def render_item(self, item: ContentItem) -> RenderedPage:
        ...

    @abstractmethod
    def render_listing(self, listing: Listing) -> RenderedPage:
        ...
