from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

import pytest

from thoughts.config import load_config
from thoughts.content import ContentLoader, Cover, FileContentLoader, ItemBuilder, UrlDeriver
from thoughts.errors import MalformedMetadata
from thoughts.extractors import (
    CompositeMetadataExtractor,
    DateExtractor,
    FieldExtractor,
    TaxonomyExtractor,
    TitleExtractor,
    extract_frontmatter,
)
from thoughts.protocols import ContentSource, MetadataExtractor

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def create_project(tmp_path: Path) -> Path:
    content = tmp_path / "content"
    write(
        content / "posts" / "2023-03-01-testing-in-prod.md",
        "---\ntitle: Testing in Prod\ndate: 2023-03-01\ntags: [Testing]\n"
        "cover:\n  image: /images/prod.png\n  alt: A server\n---\n\n"
        "Intro paragraph.\n\n<!--more-->\n\n## Details\n\nMore words here.\n",
    )
    write(
        content / "posts" / "devops.md",
        "---\ntitle: DevOps\ndate: 2023-07-05T08:00:00+10:00\ntags: DevOps, CI\n---\n\nBody text.\n",
    )
    write(content / "posts" / "draft.md", "---\ntitle: Draft\ndraft: true\n---\nSoon.\n")
    write(content / "posts" / "future.md", "---\ntitle: Future\ndate: 2030-01-01\n---\nLater.\n")
    write(
        content / "posts" / "expired.md",
        "---\ntitle: Expired\ndate: 2020-01-01\nexpiryDate: 2021-01-01\n---\nGone.\n",
    )
    write(content / "posts" / "_index.md", "---\ntitle: All Posts\n---\nEverything I wrote.\n")
    write(content / "about.md", "# About Me\n\nHello there.\n")
    write(content / ".hidden.md", "ignored")
    write(content / "notes.txt", "ignored")
    return tmp_path


def load(project: Path, **overrides) -> dict:
    config = load_config(project).with_overrides(**overrides)
    return {item.relative_path: item for item in ContentLoader(config, project, now=NOW).load()}


def test_loader_builds_items(tmp_path):
    items = load(create_project(tmp_path))
    assert sorted(items) == [
        "about.md",
        "posts/2023-03-01-testing-in-prod.md",
        "posts/_index.md",
        "posts/devops.md",
    ]

    post = items["posts/2023-03-01-testing-in-prod.md"]
    assert post.kind == "page"
    assert post.section == "posts"
    assert post.type == "posts"
    assert post.layout == "single"
    assert post.slug == "testing-in-prod"
    assert post.url == "/posts/testing-in-prod/"
    assert post.date == datetime(2023, 3, 1, tzinfo=timezone.utc)
    assert post.tags == ("Testing",)
    assert post.summary == "Intro paragraph."
    assert post.cover == Cover(image="/images/prod.png", alt="A server")
    assert '<h2 id="details">Details</h2>' in post.content
    assert [h.id for h in post.toc] == ["details"]
    assert post.word_count == 6
    assert post.reading_time == 1

    devops = items["posts/devops.md"]
    assert devops.tags == ("DevOps", "CI")
    assert devops.date.year == 2023 and devops.date.month == 7

    about = items["about.md"]
    assert about.title == "About Me"
    assert about.section == ""
    assert about.type == "page"
    assert about.url == "/about/"
    assert about.date is None

    index = items["posts/_index.md"]
    assert index.is_section
    assert index.url == "/posts/"
    assert index.title == "All Posts"


def test_load_is_lazy(tmp_path):
    project = create_project(tmp_path)
    write(project / "content" / "zzz-broken.md", "---\ntitle: [oops\n---\n")
    config = load_config(project)
    items = ContentLoader(config, project, now=NOW).load()
    assert isinstance(items, Iterator)
    first = next(items)
    assert first.relative_path == "about.md"
    with pytest.raises(MalformedMetadata):
        list(items)


def test_drafts_future_and_expired_flags(tmp_path):
    project = create_project(tmp_path)
    assert "posts/draft.md" not in load(project)
    assert "posts/draft.md" in load(project, build_drafts=True)
    assert "posts/future.md" in load(project, build_future=True)
    assert "posts/expired.md" in load(project, build_expired=True)

    (project / "config.yml").write_text("buildDrafts: true\n", encoding="utf-8")
    assert load(project)["posts/draft.md"].draft is True


def test_malformed_front_matter_identifies_file(tmp_path):
    path = write(tmp_path / "content" / "bad.md", "---\ntitle: [unclosed\n---\nBody\n")
    with pytest.raises(MalformedMetadata) as excinfo:
        load(tmp_path)
    assert excinfo.value.source_path == path
    assert "Invalid YAML" in excinfo.value.message


@pytest.mark.parametrize(
    "header, message",
    [
        ("---\ntitle: Open\nBody without closing\n", "not closed"),
        ("---\n- a\n- b\n---\n", "mapping"),
        ("---\ndate: not a date\n---\n", "date"),
        ("---\ndate: 2023-13-45\n---\n", "Invalid YAML"),
        ("---\ntags: {a: 1}\n---\n", "tags"),
        ("---\ntags: [[nested]]\n---\n", "tags"),
        ("---\ndraft: maybe\n---\n", "draft"),
        ("---\ncover: 3\n---\n", "cover"),
    ],
)
def test_extract_frontmatter_errors(tmp_path, header, message):
    path = tmp_path / "post.md"
    with pytest.raises(MalformedMetadata) as excinfo:
        CompositeMetadataExtractor({"tag": "tags"}).extract(header, path)
    assert message in excinfo.value.message
    assert excinfo.value.source_path == path


def test_extract_frontmatter_variants(tmp_path):
    path = tmp_path / "post.md"
    assert extract_frontmatter("No header\n", path) == ({}, "No header\n")
    assert extract_frontmatter("---\n---\nBody", path) == ({}, "Body")
    data, body = extract_frontmatter("---\r\ntitle: Hi\r\n---\r\nBody", path)
    assert data == {"title": "Hi"}
    assert body == "Body"
    data, body = extract_frontmatter("---\ntitle: Hi\n---\nText\n---\nMore", path)
    assert data == {"title": "Hi"}
    assert body == "Text\n---\nMore"


def test_individual_extractors(tmp_path):
    path = tmp_path / "2024-02-03-my-post.md"
    assert TitleExtractor().extract({}, "intro\n# Heading\n", path) == {"title": "Heading"}
    assert TitleExtractor().extract({}, "no heading", path) == {"title": "My Post"}
    assert TitleExtractor().extract({"title": 2024}, "", path) == {"title": "2024"}

    dates = DateExtractor().extract({}, "", path)
    assert dates["date"] == datetime(2024, 2, 3, tzinfo=timezone.utc)
    assert dates["lastmod"] == dates["date"]
    assert dates["expiry_date"] is None

    terms = TaxonomyExtractor({"tag": "tags", "category": "categories"}).extract(
        {"tag": ["a", "b", "a", ""], "categories": "x"}, "", path
    )
    assert terms == {"terms": {"tags": ("a", "b"), "categories": ("x",)}}

    fields = FieldExtractor().extract({"layout": "archives", "slug": "Custom Slug"}, "", path)
    assert fields["layout"] == "archives"
    assert fields["slug"] == "Custom Slug"
    assert fields["draft"] is False

    for extractor in (TitleExtractor(), DateExtractor(), FieldExtractor()):
        assert isinstance(extractor, MetadataExtractor)


def test_slug_and_url_overrides(tmp_path):
    content = tmp_path / "content"
    write(content / "posts" / "first.md", "---\nslug: Renamed Post\n---\n")
    write(content / "posts" / "bundle" / "index.md", "# Bundle\n")
    write(content / "search.md", "---\nurl: /find\n---\n")
    write(content / "missing.md", "---\nurl: 404.html\n---\n")
    items = load(tmp_path)
    assert items["posts/first.md"].url == "/posts/renamed-post/"
    assert items["posts/bundle/index.md"].url == "/posts/bundle/"
    assert items["search.md"].url == "/find/"
    assert items["missing.md"].url == "/404.html"


def test_url_deriver_rules():
    deriver = UrlDeriver()
    assert deriver.derive(Path("_index.md"), "index") == "/"
    assert deriver.derive(Path("posts/_index.md"), "index") == "/posts/"
    assert deriver.derive(Path("about.md"), "about") == "/about/"
    assert deriver.derive(Path("a/b/c.md"), "c") == "/a/b/c/"
    assert deriver.slug(Path("2023-01-01-hello.md"), "") == "hello"
    assert deriver.slug(Path("posts/trip/index.md"), "") == "trip"


def test_summary_falls_back_to_leading_words(tmp_path):
    (tmp_path / "config.yml").write_text("summaryLength: 3\n", encoding="utf-8")
    write(tmp_path / "content" / "long.md", "One two three four five.\n")
    write(tmp_path / "content" / "explicit.md", "---\nsummary: Short one\n---\nIgnored body.\n")
    items = load(tmp_path)
    assert items["long.md"].summary == "One two three …"
    assert items["explicit.md"].summary == "Short one"


def test_file_loader_is_sorted_and_skips_hidden(tmp_path):
    content = tmp_path / "content"
    write(content / "b.md", "")
    write(content / "a.md", "")
    write(content / ".git" / "x.md", "")
    write(content / "img.png", "")
    loader = FileContentLoader(content)
    assert isinstance(loader, ContentSource)
    assert [p.name for p in loader.iter_files()] == ["a.md", "b.md"]
    assert list(FileContentLoader(tmp_path / "nope").iter_files()) == []


def test_items_are_immutable(tmp_path):
    items = load(create_project(tmp_path))
    post = items["posts/devops.md"]
    with pytest.raises(AttributeError):
        post.title = "Changed"
    with pytest.raises(TypeError):
        post.params["title"] = "Changed"


def test_item_builder_uses_markdown_options(tmp_path):
    (tmp_path / "config.yml").write_text(
        "markup:\n  highlight:\n    noClasses: false\n", encoding="utf-8"
    )
    path = write(tmp_path / "content" / "code.md", "```python\nprint('hi')\n```\n\n```nolang\nx < y\n```\n")
    config = load_config(tmp_path)
    item = ItemBuilder(config, tmp_path / "content").build(path)
    assert 'class="highlight"' in item.content
    assert "<pre><code class=\"language-nolang\">x &lt; y" in item.content


def test_line_numbers_stay_out_of_word_counts_and_summaries(tmp_path):
    (tmp_path / "config.yml").write_text(
        "markup:\n  highlight:\n    lineNos: true\n    noClasses: false\n", encoding="utf-8"
    )
    path = write(
        tmp_path / "content" / "code.md",
        "Intro.\n\n```python\na = 1\nb = 2\nc = 3\n```\n",
    )
    item = ItemBuilder(load_config(tmp_path), tmp_path / "content").build(path)
    assert 'class="highlight' in item.content
    assert item.summary == "Intro. a = 1 b = 2 c = 3"
    assert item.word_count == 10

    path = write(tmp_path / "content" / "more.md", "```python\nx = 1\n```\n\n<!--more-->\n\nRest.\n")
    item = ItemBuilder(load_config(tmp_path), tmp_path / "content").build(path)
    assert item.summary == "x = 1"


def test_heading_ids_are_unique(tmp_path):
    path = write(tmp_path / "content" / "headings.md", "## Foo\n\n## Foo 1\n\n## Foo\n\n## Foo\n")
    item = ItemBuilder(load_config(tmp_path), tmp_path / "content").build(path)
    assert [h.id for h in item.toc] == ["foo", "foo-1", "foo-2", "foo-3"]
    assert '<h2 id="foo-2">Foo</h2>' in item.content
