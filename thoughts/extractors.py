"""Metadata extractors for thoughts.

Front matter is parsed once and then handed to a chain of small extractors,
each responsible for one kind of metadata. Any value that cannot be
interpreted raises :class:`MalformedMetadata` naming the content file.

Key classes:
- FrontmatterExtractor: Splits the YAML header from the Markdown body.
- TitleExtractor: Title from front matter, first heading, or file name.
- DateExtractor: Publish, lastmod and expiry dates.
- TaxonomyExtractor: Tags and other configured taxonomy terms.
- FieldExtractor: Draft flag, layout, type, slug, URL, cover, summary.
- CompositeMetadataExtractor: Runs the chain and merges results.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .errors import MalformedMetadata
from .protocols import MetadataExtractor
from .utils import extract_date_from_name, parse_date, titleize

FRONTMATTER_OPEN_RE = re.compile(r"\A\ufeff?---[ \t]*\r?\n")
FRONTMATTER_RE = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def extract_frontmatter(text: str, path: Path) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from the body of a content file.

    Args:
        text: Raw file content.
        path: Path of the file, for error reporting.

    Returns:
        Tuple of (front matter mapping, remaining body). Files without a
        header return an empty mapping and the full text.

    Raises:
        MalformedMetadata: If the header is unterminated, not valid YAML,
            or not a mapping.
    """
    if not FRONTMATTER_OPEN_RE.match(text):
        return {}, text
    match = FRONTMATTER_RE.match(text)
    if not match:
        raise MalformedMetadata(path, "Front matter is not closed with '---'")
    try:
        data = yaml.safe_load(match.group(1))
    except (yaml.YAMLError, ValueError) as exc:
        # Out-of-range timestamps such as 2023-13-45 raise ValueError.
        raise MalformedMetadata(path, f"Invalid YAML front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedMetadata(path, "Front matter must be a mapping of fields")
    return data, text[match.end() :]


class FrontmatterExtractor:
    """Parses the YAML header and exposes it with the remaining body."""

    def extract(self, frontmatter: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        parsed, remaining = extract_frontmatter(body, path)
        return {"frontmatter": parsed, "body": remaining}


class TitleExtractor:
    """Extracts the title.

    Uses the ``title`` field, then the first level-1 Markdown heading, then
    the titleized file name.
    """

    def extract(self, frontmatter: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        title = frontmatter.get("title")
        if title not in (None, ""):
            return {"title": str(title)}
        for line in body.splitlines():
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        if path.name == "_index.md":
            return {"title": titleize(path.parent.name) if path.parent.name else ""}
        return {"title": titleize(path.name)}


class DateExtractor:
    """Extracts publish, last-modified and expiry dates.

    The publish date comes from ``date`` (or ``publishDate``), falling back
    to a ``YYYY-MM-DD-`` file name prefix. Undated items get ``None``.
    """

    def extract(self, frontmatter: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        published = self._field(frontmatter, ("date", "publishDate"), path)
        if published is None:
            published = extract_date_from_name(path.stem)
        lastmod = self._field(frontmatter, ("lastmod",), path)
        expiry = self._field(frontmatter, ("expiryDate",), path)
        return {"date": published, "lastmod": lastmod or published, "expiry_date": expiry}

    @staticmethod
    def _field(frontmatter: Mapping[str, Any], keys: tuple[str, ...], path: Path):
        for key in keys:
            if key not in frontmatter:
                continue
            try:
                return parse_date(frontmatter[key])
            except (TypeError, ValueError) as exc:
                raise MalformedMetadata(
                    path, f"Invalid '{key}' value {frontmatter[key]!r}"
                ) from exc
        return None


class TaxonomyExtractor:
    """Extracts taxonomy terms for every configured taxonomy.

    Terms may be given as a YAML list or a comma-separated string, under the
    plural key (``tags``) or the singular one (``tag``). Duplicates are
    dropped, first occurrence wins.
    """

    def __init__(self, taxonomies: Mapping[str, str]):
        self.taxonomies = taxonomies

    def extract(self, frontmatter: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        terms: dict[str, tuple[str, ...]] = {}
        for singular, plural in self.taxonomies.items():
            raw = frontmatter.get(plural, frontmatter.get(singular))
            terms[plural] = self._parse_terms(raw, plural, path)
        return {"terms": terms}

    @staticmethod
    def _parse_terms(raw: Any, key: str, path: Path) -> tuple[str, ...]:
        if raw is None:
            return ()
        if isinstance(raw, str):
            values = [part.strip() for part in raw.split(",")]
        elif isinstance(raw, list):
            values = []
            for value in raw:
                if isinstance(value, (dict, list)):
                    raise MalformedMetadata(path, f"Invalid entry in '{key}': {value!r}")
                values.append(str(value).strip())
        else:
            raise MalformedMetadata(path, f"'{key}' must be a list or a string")
        seen: list[str] = []
        for value in values:
            if value and value not in seen:
                seen.append(value)
        return tuple(seen)


class FieldExtractor:
    """Extracts the remaining typed fields used by the pipeline."""

    def extract(self, frontmatter: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        draft = frontmatter.get("draft", False)
        if not isinstance(draft, bool):
            raise MalformedMetadata(path, f"'draft' must be true or false, got {draft!r}")
        cover = frontmatter.get("cover")
        if cover is not None and not isinstance(cover, (dict, str)):
            raise MalformedMetadata(path, "'cover' must be a mapping or an image path")
        return {
            "draft": draft,
            "layout": self._string(frontmatter, "layout"),
            "type": self._string(frontmatter, "type"),
            "slug": self._string(frontmatter, "slug"),
            "url": self._string(frontmatter, "url"),
            "summary": self._string(frontmatter, "summary"),
            "description": self._string(frontmatter, "description"),
            "cover": cover,
        }

    @staticmethod
    def _string(frontmatter: Mapping[str, Any], key: str) -> str:
        value = frontmatter.get(key)
        return "" if value is None else str(value).strip()


class CompositeMetadataExtractor:
    """Runs the front matter parser followed by each metadata extractor.

    Later extractors can override keys set by earlier ones.
    """

    def __init__(
        self,
        taxonomies: Mapping[str, str],
        extractors: list[MetadataExtractor] | None = None,
    ):
        self._frontmatter = FrontmatterExtractor()
        if extractors is None:
            self._extractors: list[MetadataExtractor] = [
                TitleExtractor(),
                DateExtractor(),
                TaxonomyExtractor(taxonomies),
                FieldExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor: MetadataExtractor) -> None:
        """Append an extractor to the chain."""
        self._extractors.append(extractor)

    def extract(self, text: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from a raw content file.

        Args:
            text: Raw file content including front matter.
            path: Path to the source file.

        Returns:
            Dictionary with ``frontmatter``, ``body`` and every extracted field.
        """
        result = self._frontmatter.extract({}, text, path)
        frontmatter = result["frontmatter"]
        body = result["body"]
        for extractor in self._extractors:
            result.update(extractor.extract(frontmatter, body, path))
        return result
