import dataclasses
from pathlib import Path

import pytest

from thoughts.config import MenuEntry, load_config
from thoughts.errors import ConfigError

SITE_CONFIG = """\
baseURL: https://thoughts.example.dev/
languageCode: en-us
title: these are my thoughts
copyright: >-
  &copy; 2023 [Jacob Marks](https://github.com/jacobjmarks)
theme: PaperMod
buildDrafts: false
buildFuture: false

params:
  DateFormat: "January 2, 2006"
  ShowReadingTime: true
  socialIcons:
    - name: github
      title: GitHub
      url: "https://github.com/jacobjmarks"
    - name: rss
      url: "posts/index.xml"
  editPost:
    URL: "https://github.com/jacobjmarks/thoughts/tree/main/content"
    Text: "suggest an edit"
    appendFilePath: true

taxonomies:
  tag: tags

menu:
  main:
    - identifier: tags
      name: Tags
      url: /tags/
      weight: 2
    - identifier: posts
      name: Posts
      url: /posts/
      weight: 1
    - identifier: about
      name: About
      url: /about/
      weight: 1
    - identifier: archive
      name: Archive
      url: /archive/
      weight: 3

markup:
  highlight:
    lineNos: true
    noClasses: false
  tableOfContents:
    endLevel: 4
"""


def write_config(root: Path, text: str) -> None:
    (root / "config.yml").write_text(text, encoding="utf-8")


def test_defaults_without_config_file(tmp_path):
    config = load_config(tmp_path)
    assert config.title == "My Blog"
    assert config.publish_dir == "public"
    assert config.content_dir == "content"
    assert dict(config.taxonomies) == {"tag": "tags"}
    assert config.menu == ()
    assert config.build_drafts is False
    assert config.strict_undefined is False


def test_loads_site_configuration(tmp_path):
    write_config(tmp_path, SITE_CONFIG)
    config = load_config(tmp_path)

    assert config.base_url == "https://thoughts.example.dev/"
    assert config.title == "these are my thoughts"
    assert config.theme == "PaperMod"
    assert config.copyright.startswith("&copy; 2023")
    assert [entry.identifier for entry in config.menu] == ["about", "posts", "tags", "archive"]
    assert config.menu[0] == MenuEntry(identifier="about", name="About", url="/about/", weight=1)
    assert [link.title for link in config.social_icons] == ["GitHub", "rss"]
    assert config.highlight.line_numbers is True
    assert config.highlight.no_classes is False
    assert config.toc_end_level == 4
    assert config.toc_start_level == 2
    assert config.param("editPost")["Text"] == "suggest an edit"


def test_param_lookup_ignores_case(tmp_path):
    write_config(tmp_path, SITE_CONFIG)
    config = load_config(tmp_path)
    assert config.param("showreadingtime") is True
    assert config.param("dateformat") == "January 2, 2006"
    assert config.param("missing", "fallback") == "fallback"


def test_configuration_is_read_only(tmp_path):
    write_config(tmp_path, SITE_CONFIG)
    config = load_config(tmp_path)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.title = "changed"
    with pytest.raises(TypeError):
        config.params["DateFormat"] = "2006"
    with pytest.raises(TypeError):
        config.params["editPost"]["Text"] = "edit"
    assert isinstance(config.params["socialIcons"], tuple)


def test_overrides_and_with_overrides(tmp_path):
    write_config(tmp_path, SITE_CONFIG)
    config = load_config(tmp_path, overrides={"buildDrafts": True})
    assert config.build_drafts is True

    updated = config.with_overrides(build_future=True, build_expired=None)
    assert updated.build_future is True
    assert updated.build_expired is False
    assert config.build_future is False


def test_invalid_yaml_raises_config_error(tmp_path):
    write_config(tmp_path, "title: [unclosed\n")
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert excinfo.value.source_path == tmp_path / "config.yml"


def test_non_mapping_config_raises(tmp_path):
    write_config(tmp_path, "- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_bad_menu_shape_raises(tmp_path):
    write_config(tmp_path, "menu:\n  main:\n    - just a string\n")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_config_yaml_extension_is_accepted(tmp_path):
    (tmp_path / "config.yaml").write_text("title: Other\n", encoding="utf-8")
    assert load_config(tmp_path).title == "Other"


@pytest.mark.parametrize(
    "text, message",
    [
        ("summaryLength: lots\n", "summaryLength"),
        ("menu:\n  main:\n    - name: Posts\n      weight: heavy\n", "menu weight"),
        ("markup:\n  highlight: true\n", "markup.highlight"),
        ("markup: fancy\n", "markup"),
        ("markup:\n  tableOfContents:\n    endLevel: deep\n", "tableOfContents.endLevel"),
        ("params: [a, b]\n", "params"),
    ],
)
def test_badly_typed_values_raise_config_error(tmp_path, text, message):
    write_config(tmp_path, text)
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert message in excinfo.value.message
    assert excinfo.value.source_path == tmp_path / "config.yml"
