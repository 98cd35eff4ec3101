"""Site assembly for thoughts.

Collects rendered pages and static files, checks that no two of them claim
the same output file, and publishes them to the output directory. Everything
is written to a staging directory first; the previous output is only replaced
once the whole site has been written, so a failed build never leaves a
half-written site behind.

Key objects:
- RenderedPage: Markup plus the output path it is written to.
- output_path_for: Map a site URL to a file path.
- SiteAssembler: Registers outputs, detects conflicts and writes the tree.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from .errors import OutputConflict
from .utils import remove_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPage:
    """A page ready to be written.

    Attributes:
        url: Site-relative URL of the page.
        output_path: POSIX path relative to the output directory.
        markup: Rendered HTML.
        source: Label of what produced the page (source file or listing).
    """

    url: str
    output_path: str
    markup: str
    source: str


def output_path_for(url: str) -> str:
    """Map a site URL to an output file path.

    Examples:
        >>> output_path_for("/posts/hello/")
        'posts/hello/index.html'
        >>> output_path_for("/")
        'index.html'
        >>> output_path_for("/404.html")
        '404.html'
    """
    path = url.split("#", 1)[0].split("?", 1)[0].strip("/")
    if not path:
        return "index.html"
    if "." in path.rsplit("/", 1)[-1] and not url.endswith("/"):
        return path
    return f"{path}/index.html"


class SiteAssembler:
    """Collects site outputs and writes them atomically.

    Attributes:
        output_dir: Directory the finished site is published to.
        pages: Pages registered so far, in registration order.
        static_files: Static source files keyed by output path.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.pages: list[RenderedPage] = []
        self.static_files: dict[str, Path] = {}
        self._claims: dict[str, str] = {}

    def _claim(self, output_path: str, source: str) -> None:
        first = self._claims.get(output_path)
        if first is not None:
            raise OutputConflict(output_path, first, source)
        self._claims[output_path] = source

    def add(self, page: RenderedPage) -> None:
        """Register a rendered page.

        Raises:
            OutputConflict: If another output already claimed the same path.
        """
        self._claim(page.output_path, page.source)
        self.pages.append(page)

    def add_static_dir(self, static_dir: Path) -> None:
        """Register every file under ``static_dir`` for a verbatim copy.

        Raises:
            OutputConflict: If a static file collides with another output.
        """
        if not static_dir.exists():
            return
        for path in sorted(static_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(static_dir).as_posix()
            self._claim(rel, str(path))
            self.static_files[rel] = path

    def write(self) -> Path:
        """Write all registered outputs and publish them to ``output_dir``.

        Returns:
            The output directory.
        """
        staging = self.output_dir.with_name(f".{self.output_dir.name}.staging")
        remove_tree(staging)
        staging.mkdir(parents=True)
        try:
            for page in self.pages:
                target = staging / page.output_path
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(page.markup, encoding="utf-8")
            for rel, source in self.static_files.items():
                target = staging / rel
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, target)
        except Exception:
            remove_tree(staging)
            raise
        remove_tree(self.output_dir)
        staging.rename(self.output_dir)
        logger.debug(
            "Published %d pages and %d static files to %s",
            len(self.pages),
            len(self.static_files),
            self.output_dir,
        )
        return self.output_dir
