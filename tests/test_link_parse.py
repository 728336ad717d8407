import logging
from pathlib import Path

import pytest

from inkbook.link_parse import (
    Escaped,
    Include,
    LineRange,
    Link,
    PlaygroundLink,
    RustdocInclude,
    Title,
    find_links,
    parse_include_path,
    parse_range_or_anchor,
    parse_rustdoc_include_path,
)


@pytest.mark.parametrize(
    "text",
    [
        "Some random text without link...",
        "Some random text with {{#playground...",
        "Some random text with {{#include...",
        "Some random text with \\{{#include...",
        "Some random text with {{#playground}} and {{#playground   }} {{}} {{#}}...",
        "Some random text with {{#playgroundz ar.rs}} and {{#incn}} {{baz}} {{#bar}}...",
    ],
)
def test_find_links_none(text):
    assert list(find_links(text)) == []


def test_find_links_simple_link():
    s = "Some random text with {{#playground file.rs}} and {{#playground test.rs }}..."
    assert list(find_links(s)) == [
        Link(22, 45, PlaygroundLink(Path("file.rs"), ()), "{{#playground file.rs}}"),
        Link(50, 74, PlaygroundLink(Path("test.rs"), ()), "{{#playground test.rs }}"),
    ]


def test_find_links_with_special_characters():
    s = "Some random text with {{#playground foo-bar\\baz/_c++.rs}}..."
    assert list(find_links(s)) == [
        Link(
            22,
            57,
            PlaygroundLink(Path("foo-bar\\baz/_c++.rs"), ()),
            "{{#playground foo-bar\\baz/_c++.rs}}",
        )
    ]


@pytest.mark.parametrize(
    "arg, end, expected",
    [
        ("file.rs:10:20", 48, LineRange(9, 20)),
        ("file.rs:10", 45, LineRange(9, 10)),
        ("file.rs:10:", 46, LineRange(9, None)),
        ("file.rs::20", 46, LineRange(None, 20)),
        ("file.rs::", 44, LineRange()),
        ("file.rs", 42, LineRange()),
        ("file.rs:anchor", 49, "anchor"),
    ],
)
def test_find_links_with_ranges(arg, end, expected):
    text = "{{#include " + arg + "}}"
    s = "Some random text with " + text + "..."
    assert list(find_links(s)) == [
        Link(22, end, Include(Path("file.rs"), expected), text)
    ]


def test_find_links_escaped_link():
    s = "Some random text with escaped playground \\{{#playground file.rs editable}} ..."
    assert list(find_links(s)) == [
        Link(41, 74, Escaped(), "\\{{#playground file.rs editable}}")
    ]


def test_find_playgrounds_with_properties():
    s = (
        "Some random text with escaped playground {{#playground file.rs editable }} "
        "and some more\n text {{#playground my.rs editable no_run should_panic}} ..."
    )
    assert list(find_links(s)) == [
        Link(
            41,
            74,
            PlaygroundLink(Path("file.rs"), ("editable",)),
            "{{#playground file.rs editable }}",
        ),
        Link(
            95,
            145,
            PlaygroundLink(Path("my.rs"), ("editable", "no_run", "should_panic")),
            "{{#playground my.rs editable no_run should_panic}}",
        ),
    ]


def test_find_all_link_types():
    s = (
        "Some random text with escaped playground {{#include file.rs}} and "
        "\\{{#contents are insignifficant in escaped link}} some more\n text  "
        "{{#playground my.rs editable no_run should_panic}} ..."
    )
    res = list(find_links(s))
    assert len(res) == 3
    assert res[0] == Link(
        41, 61, Include(Path("file.rs"), LineRange()), "{{#include file.rs}}"
    )
    assert res[1] == Link(
        66, 115, Escaped(), "\\{{#contents are insignifficant in escaped link}}"
    )
    assert res[2] == Link(
        133,
        183,
        PlaygroundLink(Path("my.rs"), ("editable", "no_run", "should_panic")),
        "{{#playground my.rs editable no_run should_panic}}",
    )


def test_find_title_link():
    s = "{{#title My Title}}\n# My Chapter\n"
    assert list(find_links(s)) == [Link(0, 19, Title("My Title"), "{{#title My Title}}")]


def test_find_rustdoc_include_link():
    s = "x {{#rustdoc_include file.rs:2:4}}"
    (link,) = find_links(s)
    assert link.link_type == RustdocInclude(Path("file.rs"), LineRange(1, 4))
    assert link.start_index == 2


def test_playpen_is_playground_and_warns(caplog):
    with caplog.at_level(logging.WARNING):
        links = list(find_links("{{#playpen a.rs editable}}"))
    assert links[0].link_type == PlaygroundLink(Path("a.rs"), ("editable",))
    assert "renamed" in caplog.text


@pytest.mark.parametrize(
    "path, expected",
    [
        ("arbitrary", LineRange()),
        ("arbitrary:", LineRange()),
        ("arbitrary::", LineRange()),
        ("arbitrary::NaN", LineRange()),
        ("arbitrary:5", LineRange(4, 5)),
        ("arbitrary:1", LineRange(0, 1)),
        ("arbitrary:0", LineRange(0, 1)),
        ("arbitrary:5:", LineRange(4, None)),
        ("arbitrary:5:NaN", LineRange(4, None)),
        ("arbitrary::5", LineRange(None, 5)),
        ("arbitrary:5:10", LineRange(4, 10)),
        ("arbitrary:-5", "-5"),
        ("arbitrary:-5.7", "-5.7"),
        ("arbitrary:some-anchor:this-gets-ignored", "some-anchor"),
        ("arbitrary:5:10:17:anything:", LineRange(4, 10)),
    ],
)
def test_parse_include_path(path, expected):
    assert parse_include_path(path) == Include(Path("arbitrary"), expected)


def test_parse_rustdoc_include_path():
    assert parse_rustdoc_include_path("lib.rs:anchor") == RustdocInclude(
        Path("lib.rs"), "anchor"
    )


def test_parse_range_or_anchor_none_is_full():
    assert parse_range_or_anchor(None) == LineRange()


def test_parse_range_or_anchor_single_line():
    assert parse_range_or_anchor("3") == LineRange(2, 3)