from datetime import datetime, timezone
from pathlib import Path

from thoughts.config import load_config
from thoughts.content import ContentLoader
from thoughts.listings import main_section_items, plan_listings
from thoughts.taxonomy import build_taxonomies

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def plan(root: Path, config_text: str = "title: Listings\n"):
    write(root / "config.yml", config_text)
    config = load_config(root)
    items = list(ContentLoader(config, root, now=NOW).load())
    listings = plan_listings(items, build_taxonomies(items, config), config)
    return items, config, listings


def create_content(root: Path) -> None:
    content = root / "content"
    write(content / "posts" / "2023-03-01-testing.md", "---\ntitle: Testing\ntags: [Testing]\n---\n")
    write(content / "posts" / "2023-07-05-devops.md", "---\ntitle: DevOps\ntags: [DevOps]\n---\n")
    write(content / "notes" / "2023-05-01-note.md", "---\ntitle: Note\n---\n")
    write(content / "about.md", "---\ntitle: About\n---\n")


def test_plan_listings_order_and_urls(tmp_path):
    create_content(tmp_path)
    _, _, listings = plan(tmp_path)
    assert [(l.kind, l.url) for l in listings] == [
        ("home", "/"),
        ("section", "/notes/"),
        ("section", "/posts/"),
        ("taxonomy", "/tags/"),
        ("term", "/tags/devops/"),
        ("term", "/tags/testing/"),
        ("archive", "/archive/"),
    ]
    home = listings[0]
    assert home.title == "Listings"
    assert [p.title for p in home.pages] == ["DevOps", "Note", "Testing"]
    assert listings[3].title == "Tags"
    assert listings[3].terms is not None
    assert [p.title for p in listings[-1].pages] == ["DevOps", "Note", "Testing"]
    assert listings[-1].label == "<archive listing /archive/>"


def test_single_tag_pages_each_hold_one_item(tmp_path):
    create_content(tmp_path)
    _, _, listings = plan(tmp_path)
    terms = {l.term: [p.title for p in l.pages] for l in listings if l.kind == "term"}
    assert terms == {"DevOps": ["DevOps"], "Testing": ["Testing"]}


def test_main_sections_and_archive_path(tmp_path):
    create_content(tmp_path)
    items, config, listings = plan(
        tmp_path,
        "title: Listings\nparams:\n  mainSections: posts\n  archivePath: history\n",
    )
    assert [p.title for p in main_section_items(items, config)] == ["DevOps", "Testing"]
    assert [p.title for p in listings[0].pages] == ["DevOps", "Testing"]
    assert listings[-1].url == "/history/"


def test_index_files_feed_listings(tmp_path):
    create_content(tmp_path)
    write(tmp_path / "content" / "_index.md", "---\ntitle: Welcome\n---\nHello reader.\n")
    write(
        tmp_path / "content" / "posts" / "_index.md",
        "---\ntitle: Writing\nlayout: posts-list\ndescription: All of it\n---\nIntro.\n",
    )
    _, _, listings = plan(tmp_path)
    by_url = {l.url: l for l in listings}

    home = by_url["/"]
    assert home.title == "Welcome"
    assert "Hello reader." in home.content
    assert home.source == tmp_path / "content" / "_index.md"

    posts = by_url["/posts/"]
    assert posts.title == "Writing"
    assert posts.layout == "posts-list"
    assert posts.description == "All of it"
    assert posts.type == "posts"
    assert posts.label == str(tmp_path / "content" / "posts" / "_index.md")


def test_archive_page_in_content_replaces_generated_one(tmp_path):
    create_content(tmp_path)
    write(tmp_path / "content" / "archives.md", "---\ntitle: Archive\nlayout: archives\n---\n")
    _, _, listings = plan(tmp_path)
    assert all(l.kind != "archive" for l in listings)


def test_site_without_sections_lists_everything_on_home(tmp_path):
    write(tmp_path / "content" / "one.md", "---\ntitle: One\ndate: 2023-01-01\n---\n")
    write(tmp_path / "content" / "two.md", "---\ntitle: Two\ndate: 2023-02-01\n---\n")
    _, _, listings = plan(tmp_path)
    assert [p.title for p in listings[0].pages] == ["Two", "One"]
    assert [l.kind for l in listings] == ["home", "taxonomy", "archive"]


def test_nested_index_file_does_not_replace_section_metadata(tmp_path):
    create_content(tmp_path)
    write(tmp_path / "content" / "posts" / "_index.md", "---\ntitle: Posts Title\n---\nPosts intro\n")
    write(tmp_path / "content" / "posts" / "sub" / "_index.md", "---\ntitle: Sub Title\n---\nSub intro\n")
    _, _, listings = plan(tmp_path)
    posts = next(l for l in listings if l.url == "/posts/")
    assert posts.title == "Posts Title"
    assert "Posts intro" in posts.content
    assert "Sub intro" not in posts.content
