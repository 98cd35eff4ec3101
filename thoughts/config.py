"""Site configuration loading.

The configuration is read once from ``config.yml`` at the start of a build and
frozen into a :class:`SiteConfig`. Every component receives it explicitly;
nothing in the package keeps configuration in module-level state.

Key names follow the Hugo conventions used by existing blogs (``baseURL``,
``buildDrafts``, ``params.socialIcons``, ``menu.main``...) so a site can be
moved over without rewriting its configuration.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("config.yml", "config.yaml")

DEFAULT_CONFIG: dict[str, Any] = {
    "baseURL": "",
    "title": "My Blog",
    "languageCode": "en-us",
    "copyright": "",
    "theme": "",
    "buildDrafts": False,
    "buildFuture": False,
    "buildExpired": False,
    "canonifyURLs": False,
    "contentDir": "content",
    "layoutDir": "layouts",
    "staticDir": "static",
    "publishDir": "public",
    "summaryLength": 70,
    "strictUndefined": False,
    "taxonomies": {"tag": "tags"},
}


@dataclass(frozen=True)
class MenuEntry:
    """A navigation menu entry from ``menu.main``."""

    identifier: str
    name: str
    url: str
    weight: int = 0


@dataclass(frozen=True)
class SocialLink:
    """A social icon link from ``params.socialIcons``."""

    name: str
    title: str
    url: str


@dataclass(frozen=True)
class HighlightOptions:
    """Code highlighting options from ``markup.highlight``."""

    line_numbers: bool = False
    no_classes: bool = True
    guess_syntax: bool = False


@dataclass(frozen=True)
class SiteConfig:
    """Read-only site-wide configuration passed into each build component."""

    base_url: str = ""
    title: str = "My Blog"
    language_code: str = "en-us"
    copyright: str = ""
    theme: str = ""
    build_drafts: bool = False
    build_future: bool = False
    build_expired: bool = False
    canonify_urls: bool = False
    content_dir: str = "content"
    layout_dir: str = "layouts"
    static_dir: str = "static"
    publish_dir: str = "public"
    summary_length: int = 70
    strict_undefined: bool = False
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    menu: tuple[MenuEntry, ...] = ()
    social_icons: tuple[SocialLink, ...] = ()
    taxonomies: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({"tag": "tags"})
    )
    highlight: HighlightOptions = field(default_factory=HighlightOptions)
    toc_start_level: int = 2
    toc_end_level: int = 3
    raw: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def param(self, name: str, default: Any = None) -> Any:
        """Look up a theme parameter, ignoring case like Hugo does.

        Args:
            name: Parameter name, e.g. ``ShowReadingTime``.
            default: Value returned when the parameter is absent.

        Returns:
            The parameter value or ``default``.
        """
        if name in self.params:
            return self.params[name]
        lowered = name.lower()
        for key, value in self.params.items():
            if str(key).lower() == lowered:
                return value
        return default

    def with_overrides(self, **changes: Any) -> SiteConfig:
        """Return a copy with some fields replaced, skipping ``None`` values."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def freeze(value: Any) -> Any:
    """Recursively convert dicts to read-only mappings and lists to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(freeze(v) for v in value)
    return value


def find_config_file(project_root: Path) -> Path | None:
    """Return the first configuration file present in the project root."""
    for name in CONFIG_FILENAMES:
        candidate = project_root / name
        if candidate.exists():
            return candidate
    return None


def load_config(
    project_root: Path, overrides: Mapping[str, Any] | None = None
) -> SiteConfig:
    """Load and freeze the site configuration.

    Args:
        project_root: Root directory of the project.
        overrides: Raw configuration keys applied on top of the file.

    Returns:
        SiteConfig with defaults applied for missing keys.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    raw = dict(DEFAULT_CONFIG)
    config_path = find_config_file(project_root)
    if config_path is None:
        logger.debug("No configuration file in %s, using defaults", project_root)
    else:
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (yaml.YAMLError, ValueError) as exc:
            raise ConfigError(config_path, f"Invalid YAML: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(config_path, "Configuration must be a mapping")
        raw.update(loaded)
    if overrides:
        raw.update(overrides)
    return config_from_mapping(raw, config_path)


def config_from_mapping(raw: Mapping[str, Any], source: Path | None = None) -> SiteConfig:
    """Build a SiteConfig from an already-parsed configuration mapping.

    Args:
        raw: Parsed configuration.
        source: File the mapping came from, for error messages.

    Returns:
        Frozen SiteConfig.

    Raises:
        ConfigError: If a structured section has the wrong shape.
    """
    params = _section(raw, "params", source)
    taxonomies = _section(raw, "taxonomies", source)
    markup = _section(raw, "markup", source)
    highlight = _section(markup, "highlight", source, "markup.")
    toc = _section(markup, "tableOfContents", source, "markup.")

    return SiteConfig(
        base_url=str(raw.get("baseURL") or ""),
        title=str(raw.get("title") or ""),
        language_code=str(raw.get("languageCode") or "en-us"),
        copyright=str(raw.get("copyright") or "").strip(),
        theme=str(raw.get("theme") or ""),
        build_drafts=bool(raw.get("buildDrafts")),
        build_future=bool(raw.get("buildFuture")),
        build_expired=bool(raw.get("buildExpired")),
        canonify_urls=bool(raw.get("canonifyURLs")),
        content_dir=str(raw.get("contentDir") or "content"),
        layout_dir=str(raw.get("layoutDir") or "layouts"),
        static_dir=str(raw.get("staticDir") or "static"),
        publish_dir=str(raw.get("publishDir") or "public"),
        summary_length=_integer(raw.get("summaryLength") or 70, "summaryLength", source),
        strict_undefined=bool(raw.get("strictUndefined")),
        params=freeze(params),
        menu=_parse_menu(raw.get("menu"), source),
        social_icons=_parse_social_icons(params.get("socialIcons"), source),
        taxonomies=MappingProxyType({str(k): str(v) for k, v in taxonomies.items()}),
        highlight=HighlightOptions(
            line_numbers=bool(highlight.get("lineNos", False)),
            no_classes=bool(highlight.get("noClasses", True)),
            guess_syntax=bool(highlight.get("guessSyntax", False)),
        ),
        toc_start_level=_integer(toc.get("startLevel", 2), "tableOfContents.startLevel", source),
        toc_end_level=_integer(toc.get("endLevel", 3), "tableOfContents.endLevel", source),
        raw=freeze(raw),
    )


def _section(
    raw: Mapping[str, Any], key: str, source: Path | None, prefix: str = ""
) -> dict[str, Any]:
    """Return a nested mapping section, empty when absent."""
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(source, f"'{prefix}{key}' must be a mapping")
    return value


def _integer(value: Any, key: str, source: Path | None) -> int:
    if isinstance(value, bool):
        raise ConfigError(source, f"'{key}' must be a whole number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(source, f"'{key}' must be a whole number, got {value!r}") from exc


def _parse_menu(menu: Any, source: Path | None) -> tuple[MenuEntry, ...]:
    """Parse ``menu.main`` into entries sorted by weight, then name."""
    if not menu:
        return ()
    if not isinstance(menu, dict):
        raise ConfigError(source, "'menu' must be a mapping of menu names")
    entries = []
    for item in menu.get("main") or []:
        if not isinstance(item, dict):
            raise ConfigError(source, f"Invalid menu entry: {item!r}")
        name = str(item.get("name") or item.get("identifier") or "")
        entries.append(
            MenuEntry(
                identifier=str(item.get("identifier") or name.lower()),
                name=name,
                url=str(item.get("url") or "/"),
                weight=_integer(item.get("weight") or 0, "menu weight", source),
            )
        )
    return tuple(sorted(entries, key=lambda e: (e.weight, e.name)))


def _parse_social_icons(icons: Any, source: Path | None) -> tuple[SocialLink, ...]:
    if not icons:
        return ()
    links = []
    for item in icons:
        if not isinstance(item, dict):
            raise ConfigError(source, f"Invalid social icon: {item!r}")
        name = str(item.get("name") or "")
        links.append(
            SocialLink(
                name=name,
                title=str(item.get("title") or name),
                url=str(item.get("url") or ""),
            )
        )
    return tuple(links)
