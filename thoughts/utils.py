"""Utility functions for thoughts.

String, path and date helpers shared by the loader, renderer and assembler.

Key functions:
    slugify: Convert file names and terms to URL slugs.
    titleize: Convert file names to human-readable titles.
    extract_date_from_name: Extract a date from a ``YYYY-MM-DD-`` prefix.
    parse_date: Normalize front matter date values to aware datetimes.
    go_date_format: Format a date with a Go reference layout.
    count_words: Count words in a plain-text string.
    reading_time: Estimate reading time in minutes.
    remove_tree: Delete a directory tree if present.
"""

from __future__ import annotations

import math
import re
import shutil
import unicodedata
from datetime import date, datetime, timezone
from pathlib import Path

WORDS_PER_MINUTE = 213

_DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:-|$)")

_MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Longest tokens first so "2006" wins over "2" and "January" over "Jan".
_GO_LAYOUT_RE = re.compile(
    r"January|Monday|Jan|Mon|2006|-0700|MST|PM|pm|15|01|02|03|04|05|06|_2|1|2|3|4|5"
)


def strip_date_prefix(name: str) -> str:
    """Remove a leading ``YYYY-MM-DD-`` prefix from a file stem."""
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return "-".join(parts[3:])
    return name


def slugify(name: str) -> str:
    """Convert a file stem or taxonomy term to a URL slug.

    Drops a date prefix, folds accents to ASCII and collapses everything that
    is not a letter or digit into single hyphens.

    Args:
        name: File stem, title or term.

    Returns:
        URL-friendly slug, ``index`` when nothing is left.

    Examples:
        >>> slugify("2023-03-01-Testing In Prod")
        'testing-in-prod'
    """
    cleaned = strip_date_prefix(name)
    cleaned = unicodedata.normalize("NFKD", cleaned).encode("ascii", "ignore").decode()
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a file name to a human-readable title.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a UTC date from a file stem with a ``YYYY-MM-DD`` prefix.

    Args:
        name: File stem (without extension).

    Returns:
        Aware datetime at midnight UTC, or None if there is no valid prefix.
    """
    match = _DATE_PREFIX_RE.match(name)
    if not match:
        return None
    try:
        return datetime(
            int(match.group(1)),
            int(match.group(2)),
            int(match.group(3)),
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None


def parse_date(value: object) -> datetime | None:
    """Normalize a front matter date value.

    YAML gives us ``date``, naive or aware ``datetime`` objects, or strings
    when the author quoted the value. Naive values are taken to be UTC.

    Args:
        value: Raw front matter value.

    Returns:
        Aware datetime, or None for empty values.

    Raises:
        ValueError: If the value cannot be interpreted as a date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported date value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def go_date_format(value: datetime | None, layout: str) -> str:
    """Format a datetime using a Go reference layout such as ``January 2, 2006``.

    Themes written for Hugo express date formats against Go's reference time
    (Mon Jan 2 15:04:05 MST 2006). Output is locale independent.

    Args:
        value: Datetime to format; None formats as an empty string.
        layout: Go reference layout.

    Returns:
        Formatted date string.
    """
    if value is None:
        return ""
    hour12 = value.hour % 12 or 12

    def repl(match: re.Match) -> str:
        token = match.group(0)
        return {
            "January": _MONTHS[value.month - 1],
            "Jan": _MONTHS[value.month - 1][:3],
            "Monday": _WEEKDAYS[value.weekday()],
            "Mon": _WEEKDAYS[value.weekday()][:3],
            "2006": f"{value.year:04d}",
            "06": f"{value.year % 100:02d}",
            "01": f"{value.month:02d}",
            "1": str(value.month),
            "02": f"{value.day:02d}",
            "_2": f"{value.day:>2}",
            "2": str(value.day),
            "15": f"{value.hour:02d}",
            "03": f"{hour12:02d}",
            "3": str(hour12),
            "04": f"{value.minute:02d}",
            "4": str(value.minute),
            "05": f"{value.second:02d}",
            "5": str(value.second),
            "PM": "PM" if value.hour >= 12 else "AM",
            "pm": "pm" if value.hour >= 12 else "am",
            "MST": value.tzname() or "UTC",
            "-0700": value.strftime("%z") or "+0000",
        }[token]

    return _GO_LAYOUT_RE.sub(repl, layout)


def count_words(text: str) -> int:
    """Count whitespace-separated words in plain text."""
    return len(text.split())


def reading_time(words: int) -> int:
    """Estimate reading time in whole minutes (at least one for any text)."""
    if words <= 0:
        return 0
    return math.ceil(words / WORDS_PER_MINUTE)


def truncate_words(text: str, limit: int) -> str:
    """Return the first ``limit`` words of ``text``, with an ellipsis if cut."""
    words = text.split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + " …"


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file (case-insensitive ``.md``)."""
    return path.suffix.lower() == ".md"


def is_hidden(path: Path) -> bool:
    """Check if any component of a relative path starts with a dot."""
    return any(part.startswith(".") for part in path.parts)


def remove_tree(path: Path) -> None:
    """Remove a directory tree if it exists."""
    if path.exists():
        shutil.rmtree(path)
