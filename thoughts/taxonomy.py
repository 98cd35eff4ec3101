"""Taxonomy indexing for thoughts.

Builds reverse indexes (term -> items) for every taxonomy configured in the
site configuration. Indexing is a pure function of the loaded items: section
index files are skipped, and each term's items are ordered newest first with
equal dates ordered by source path.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .collections import TermIndex
from .config import SiteConfig
from .content import ContentItem
from .utils import slugify


def build_term_index(items: Iterable[ContentItem], plural: str) -> TermIndex:
    """Build the index for one taxonomy.

    Args:
        items: Loaded content items.
        plural: Taxonomy key as used in front matter, e.g. ``tags``.

    Returns:
        TermIndex containing every term referenced by a regular item.
        Spellings that share a slug (``DevOps`` and ``devops``) are merged
        under the first spelling seen.
    """
    spellings: dict[str, str] = {}
    terms: dict[str, list[ContentItem]] = {}
    for item in items:
        if item.is_section:
            continue
        for term in item.terms.get(plural, ()):
            display = spellings.setdefault(slugify(term), term)
            members = terms.setdefault(display, [])
            if item not in members:
                members.append(item)
    return TermIndex(plural, terms)


def build_tag_index(items: Iterable[ContentItem]) -> TermIndex:
    """Build the tag index (``tags`` taxonomy)."""
    return build_term_index(items, "tags")


def build_taxonomies(
    items: Iterable[ContentItem], config: SiteConfig
) -> Mapping[str, TermIndex]:
    """Build an index for every configured taxonomy.

    Args:
        items: Loaded content items.
        config: Site configuration naming the taxonomies.

    Returns:
        Mapping of taxonomy plural name to its TermIndex.
    """
    items = list(items)
    return {
        plural: build_term_index(items, plural) for plural in config.taxonomies.values()
    }
