"""Error types raised while building a site.

Every error carries the path of the file that caused it so the CLI can point
the author at the offending content, template or configuration file.

Classes:
    SiteError: Base class for all build errors.
    ConfigError: The site configuration file could not be parsed.
    MalformedMetadata: A content file's front matter could not be parsed.
    TemplateNotFound: No template exists for a declared layout.
    UndefinedReference: A template referenced a field the context lacks.
    OutputConflict: Two outputs resolve to the same file.
    BuildError: Any other failure while rendering a page.
"""

from __future__ import annotations

from pathlib import Path


class SiteError(Exception):
    """Base class for errors that abort (or warn during) a build.

    Attributes:
        source_path: File that caused the error, when known.
        message: Human-readable description without the path.
    """

    def __init__(self, source_path: Path | None, message: str):
        self.source_path = source_path
        self.message = message
        if source_path is None:
            super().__init__(message)
        else:
            super().__init__(f"{source_path}: {message}")


class ConfigError(SiteError):
    """The site configuration file is not valid YAML or not a mapping."""


class MalformedMetadata(SiteError):
    """A content file's front matter header cannot be parsed."""


class TemplateNotFound(SiteError):
    """No template matches the layout a page declares.

    Attributes:
        layout: The layout identifier that could not be resolved.
        candidates: Template names that were tried, in order.
    """

    def __init__(
        self,
        layout: str,
        source_path: Path | None,
        candidates: tuple[str, ...] = (),
    ):
        self.layout = layout
        self.candidates = candidates
        tried = ", ".join(candidates) if candidates else layout
        super().__init__(source_path, f"No template for layout '{layout}' (tried {tried})")


class UndefinedReference(SiteError):
    """A template referenced a value that is missing from its context.

    Recorded as a warning and rendered as an empty string, unless the site is
    configured with ``strictUndefined`` in which case it is raised.

    Attributes:
        name: Name of the missing variable or attribute.
        template: Template that made the reference.
    """

    def __init__(self, name: str, template: str | None, source_path: Path | None):
        self.name = name
        self.template = template
        where = f" in template '{template}'" if template else ""
        super().__init__(source_path, f"Undefined reference '{name}'{where}")


class OutputConflict(SiteError):
    """Two rendered pages (or a page and a static file) share an output path.

    Attributes:
        output_path: Output path relative to the publish directory.
        first_source: Source that claimed the path first.
        second_source: Source that tried to claim it again.
    """

    def __init__(self, output_path: str, first_source: str, second_source: str):
        self.output_path = output_path
        self.first_source = first_source
        self.second_source = second_source
        super().__init__(
            Path(second_source),
            f"Output path '{output_path}' is produced by both {first_source} and {second_source}",
        )


class BuildError(SiteError):
    """Error during page rendering, wrapping the original exception.

    Attributes:
        original_error: The exception that was caught.
    """

    def __init__(
        self,
        source_path: Path | None,
        message: str,
        original_error: Exception | None = None,
    ):
        self.original_error = original_error
        super().__init__(source_path, message)
