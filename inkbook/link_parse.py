"""Finding and parsing ``{{#...}}`` helper links in chapter text."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

ESCAPE_CHAR = "\\"
_USIZE_MAX = (1 << 64) - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")

_LINK_RE = re.compile(
    r"""
    \\\{\{\#.*\}\}      # escaped link
    |
    \{\{\s*             # opening braces and whitespace
    \#([a-zA-Z0-9_]+)   # link type
    \s+                 # separating whitespace
    ([^}]+)             # target path and space separated properties
    \}\}                # closing braces
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class LineRange:
    """A zero-based, end-exclusive range of lines; ``None`` means unbounded."""

    start: int | None = None
    end: int | None = None


RangeOrAnchor = Union[LineRange, str]
"""Either a range of lines or the name of an anchor."""


@dataclass(frozen=True)
class Escaped:
    """An escaped link, rendered as its text without the backslash."""


@dataclass(frozen=True)
class Include:
    """Include a file, whole, by line range or between anchors."""

    path: Path
    range_or_anchor: RangeOrAnchor


@dataclass(frozen=True)
class PlaygroundLink:
    """Include a file as a runnable Rust playground with attributes."""

    path: Path
    attrs: tuple[str, ...] = ()


@dataclass(frozen=True)
class RustdocInclude:
    """Include a Rust file, hiding the lines outside the selected part."""

    path: Path
    range_or_anchor: RangeOrAnchor


@dataclass(frozen=True)
class Title:
    """Override the title of the chapter's page."""

    title: str


LinkType = Union[Escaped, Include, PlaygroundLink, RustdocInclude, Title]


@dataclass(frozen=True)
class Link:
    """A helper link found in a text, with its position and raw text."""

    start_index: int
    end_index: int
    link_type: LinkType
    link_text: str


def _parse_usize(text: str) -> int | None:
    if _UNSIGNED.fullmatch(text) is None:
        return None
    value = int(text)
    return value if value <= _USIZE_MAX else None


def parse_range_or_anchor(parts: str | None) -> RangeOrAnchor:
    """Parse the ``start:end`` or ``anchor`` part after an include path.

    Line numbers are one-based in the text and zero-based in the result.
    """
    pieces = (parts or "").split(":", 2)
    first = pieces[0]

    number = _parse_usize(first)
    if number is not None:
        start: int | None = max(number - 1, 0)
    elif first == "":
        start = None
    else:
        return first

    if len(pieces) < 2:
        if start is None:
            return LineRange()
        return LineRange(start, start + 1)

    end = _parse_usize(pieces[1])
    return LineRange(start, end)


def _split_path(path: str) -> tuple[Path, RangeOrAnchor]:
    target, _, rest = path.partition(":")
    return Path(target), parse_range_or_anchor(rest if ":" in path else None)


def parse_include_path(path: str) -> Include:
    """Parse the argument of an ``include`` link."""
    return Include(*_split_path(path))


def parse_rustdoc_include_path(path: str) -> RustdocInclude:
    """Parse the argument of a ``rustdoc_include`` link."""
    return RustdocInclude(*_split_path(path))


def _link_type(match: re.Match[str]) -> LinkType | None:
    kind, rest = match.group(1), match.group(2)
    if kind is None:
        return Escaped() if match.group(0).startswith(ESCAPE_CHAR) else None
    if kind == "title":
        return Title(rest)

    words = rest.split()
    if not words:
        return None
    target, props = words[0], tuple(words[1:])
    if kind == "include":
        return parse_include_path(target)
    if kind == "playground":
        return PlaygroundLink(Path(target), props)
    if kind == "playpen":
        logger.warning(
            "the {{#playpen}} expression has been renamed to {{#playground}}, "
            "please update your book to use the new name"
        )
        return PlaygroundLink(Path(target), props)
    if kind == "rustdoc_include":
        return parse_rustdoc_include_path(target)
    return None


def find_links(contents: str) -> Iterator[Link]:
    """Yield every recognised helper link in ``contents`` in order."""
    for match in _LINK_RE.finditer(contents):
        link_type = _link_type(match)
        if link_type is not None:
            yield Link(match.start(), match.end(), link_type, match.group(0))