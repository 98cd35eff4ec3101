"""thoughts static blog generator.

Builds a personal blog from a Hugo-style project: a ``config.yml`` site
configuration, Markdown content with YAML front matter, and Jinja2 layouts.

The pipeline is a single deterministic pass:
content loading, taxonomy indexing, template rendering and site assembly.
The CLI module provides the ``build`` and ``new`` commands.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
