from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import datetime, timezone

from .content import ContentItem
from .utils import slugify

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def date_sort_key(item: ContentItem) -> tuple[bool, datetime]:
    """Sort key placing dated items before undated ones when reversed."""
    return (item.date is not None, item.date or _UNDATED)


def sort_items(items: Iterable[ContentItem], reverse: bool = True) -> list[ContentItem]:
    """Sort items by publish date, ties broken by source path ascending.

    With ``reverse=True`` (the default) the newest items come first and
    undated items come last. Python's sort is stable in both directions, so
    sorting by path first fixes the order of equal dates.
    """
    by_path = sorted(items, key=lambda item: item.relative_path)
    return sorted(by_path, key=date_sort_key, reverse=reverse)


class PageCollection(Sequence[ContentItem]):
    """Lightweight helper for working with lists of ContentItems in templates and code."""

    def __init__(self, items: Iterable[ContentItem]):
        self._items = list(items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, item):
        return self._items[item]

    def section(self, name: str) -> PageCollection:
        return PageCollection(p for p in self._items if p.section == name)

    def with_term(self, taxonomy: str, term: str) -> PageCollection:
        return PageCollection(p for p in self._items if term in p.terms.get(taxonomy, ()))

    def with_tag(self, tag: str) -> PageCollection:
        return self.with_term("tags", tag)

    def sorted(self, reverse: bool = True) -> PageCollection:
        """Sort by date (newest first by default), then by source path."""
        return PageCollection(sort_items(self._items, reverse=reverse))

    def latest(self, count: int = 5) -> PageCollection:
        return PageCollection(self.sorted()[:count])

    def by_year(self) -> list[tuple[int, PageCollection]]:
        """Group dated items by publish year, newest year and item first.

        Returns:
            List of (year, PageCollection) pairs for archive listings.
        """
        groups: dict[int, list[ContentItem]] = {}
        for item in self.sorted():
            if item.date is None:
                continue
            groups.setdefault(item.date.year, []).append(item)
        return [(year, PageCollection(items)) for year, items in groups.items()]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._items)} items)"


class TermIndex(Mapping[str, PageCollection]):
    """Mapping of taxonomy term to the items using it, newest first.

    Terms iterate in case-insensitive alphabetical order.
    """

    def __init__(self, plural: str, mapping: Mapping[str, Iterable[ContentItem]]):
        self.plural = plural
        ordered = sorted(mapping, key=lambda term: (term.casefold(), term))
        self._mapping = {term: PageCollection(sort_items(mapping[term])) for term in ordered}

    def __getitem__(self, key: str) -> PageCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def slug(self, term: str) -> str:
        return slugify(term)

    def url(self, term: str) -> str:
        return f"/{self.plural}/{self.slug(term)}/"

    def by_count(self) -> list[tuple[str, PageCollection]]:
        """Terms with the most items first, ties in alphabetical order."""
        return sorted(self._mapping.items(), key=lambda entry: -len(entry[1]))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TermIndex({self.plural!r}, {len(self._mapping)} terms)"
