"""Command-line interface for thoughts.

Commands:
- build: Build the site into the publish directory.
- new: Create a new draft article in a content section.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import load_config
from .errors import SiteError
from .utils import slugify, strip_date_prefix


@click.group()
@click.version_option(version=__version__, prog_name="thoughts")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """Build a static blog from Markdown content."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--future", is_flag=True, help="Include content dated in the future")
@click.option("--expired", is_flag=True, help="Include expired content")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    required=False,
    help="Write the site here instead of publishDir",
)
def build(drafts: bool, future: bool, expired: bool, output: Path | None):
    """Build the site into the publish directory."""
    project_root = Path.cwd()
    from .build import build_site

    try:
        result = build_site(
            project_root,
            include_drafts=drafts or None,
            include_future=future or None,
            include_expired=expired or None,
            output_dir=output,
        )
    except SiteError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        if exc.source_path is not None:
            click.echo(click.style(f"  File: {_display_path(exc.source_path, project_root)}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None

    for warning in result.warnings:
        click.echo(click.style(f"Warning: {warning}", fg="yellow"), err=True)
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


@cli.command()
@click.argument("section")
@click.argument("title", required=False)
@click.option("--no-date", is_flag=True, help="Do not prefix the file name with today's date")
def new(section: str, title: str | None, no_date: bool):
    """Create a new draft article in SECTION."""
    project_root = Path.cwd()
    try:
        config = load_config(project_root)
    except SiteError as exc:
        raise click.ClickException(str(exc)) from None

    if not title:
        title = questionary.text(
            "Title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
    title = title.strip()

    now = datetime.now().astimezone()
    slug = slugify(title)
    filename = f"{slug}.md" if no_date else f"{now:%Y-%m-%d}-{slug}.md"
    target_dir = project_root / config.content_dir / section.strip("/")
    target_path = target_dir / filename

    if target_path.exists():
        raise click.ClickException(f"File already exists: {_display_path(target_path, project_root)}")
    existing = _existing_slugs(target_dir)
    if slug in existing:
        raise click.ClickException(f"A file with slug '{slug}' already exists: {existing[slug]}")

    target_dir.mkdir(parents=True, exist_ok=True)
    frontmatter = {
        "title": title,
        "date": now.replace(microsecond=0).isoformat(),
        "draft": True,
        "tags": [],
    }
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    target_path.write_text(f"---\n{header}---\n\n", encoding="utf-8")
    click.echo(f"Created {_display_path(target_path, project_root)}")


def _existing_slugs(folder: Path) -> dict[str, str]:
    """Map slug to file name for Markdown files already in ``folder``."""
    slugs: dict[str, str] = {}
    if folder.exists():
        for f in sorted(folder.iterdir()):
            if f.is_file() and f.suffix == ".md":
                slugs[slugify(strip_date_prefix(f.stem))] = f.name
    return slugs


def _display_path(path: Path, project_root: Path) -> str:
    try:
        return str(path.relative_to(project_root))
    except ValueError:
        return str(path)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
