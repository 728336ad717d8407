"""Expands ``{{#include}}``, ``{{#rustdoc_include}}``, ``{{#playground}}`` and
``{{#title}}`` helpers in chapter text."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from inkbook.link_parse import (
    Escaped,
    Include,
    LineRange,
    Link,
    PlaygroundLink,
    RangeOrAnchor,
    RustdocInclude,
    Title,
    find_links,
)
from inkbook.preprocessor import PreprocessorError

logger = logging.getLogger(__name__)

MAX_LINK_NESTED_DEPTH = 10

_ANCHOR_START = re.compile(r"ANCHOR:\s*(?P<anchor_name>[\w_-]+)")
_ANCHOR_END = re.compile(r"ANCHOR_END:\s*(?P<anchor_name>[\w_-]+)")


def _lines(text: str) -> list[str]:
    parts = text.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [line[:-1] if line.endswith("\r") else line for line in parts]


def _in_range(line_range: LineRange, index: int) -> bool:
    start = 0 if line_range.start is None else line_range.start
    return index >= start and (line_range.end is None or index < line_range.end)


def _take_lines(text: str, line_range: LineRange) -> str:
    start = line_range.start or 0
    lines = _lines(text)[start:]
    if line_range.end is not None:
        lines = lines[: max(line_range.end - start, 0)]
    return "\n".join(lines)


def _anchor_name(pattern: re.Pattern[str], line: str) -> str | None:
    match = pattern.search(line)
    return match.group("anchor_name") if match else None


def _is_anchor_marker(line: str) -> bool:
    return _ANCHOR_START.search(line) is not None or _ANCHOR_END.search(line) is not None


def _take_anchored_lines(text: str, anchor: str) -> str:
    kept: list[str] = []
    within = False
    for line in _lines(text):
        if within:
            if _anchor_name(_ANCHOR_END, line) == anchor:
                break
            if not _is_anchor_marker(line):
                kept.append(line)
        elif _anchor_name(_ANCHOR_START, line) == anchor:
            within = True
    return "\n".join(kept)


def _take_rustdoc_include_lines(text: str, line_range: LineRange) -> str:
    return "\n".join(
        line if _in_range(line_range, index) else f"# {line}"
        for index, line in enumerate(_lines(text))
    )


def _take_rustdoc_include_anchored_lines(text: str, anchor: str) -> str:
    kept: list[str] = []
    within = False
    for line in _lines(text):
        if within:
            if _anchor_name(_ANCHOR_END, line) == anchor:
                within = False
            elif not _is_anchor_marker(line):
                kept.append(line)
        elif _anchor_name(_ANCHOR_START, line) == anchor:
            within = True
        elif not _is_anchor_marker(line):
            kept.append(f"# {line}")
    return "\n".join(kept)


def _read(link: Link, target: Path) -> str:
    try:
        return target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise PreprocessorError(
            f"Could not read file for link {link.link_text} ({target})"
        ) from exc


def _select(text: str, range_or_anchor: RangeOrAnchor, rustdoc: bool) -> str:
    if isinstance(range_or_anchor, LineRange):
        if rustdoc:
            return _take_rustdoc_include_lines(text, range_or_anchor)
        return _take_lines(text, range_or_anchor)
    if rustdoc:
        return _take_rustdoc_include_anchored_lines(text, range_or_anchor)
    return _take_anchored_lines(text, range_or_anchor)


def render_link(
    link: Link, base: str | os.PathLike[str], chapter_title: str
) -> tuple[str, str]:
    """Render one link relative to ``base``.

    Returns the replacement text and the (possibly overridden) chapter title.
    Raises ``PreprocessorError`` when an included file cannot be read.
    """
    base = Path(base)
    link_type = link.link_type
    if isinstance(link_type, Escaped):
        return link.link_text[1:], chapter_title
    if isinstance(link_type, (Include, RustdocInclude)):
        text = _read(link, base / link_type.path)
        rustdoc = isinstance(link_type, RustdocInclude)
        return _select(text, link_type.range_or_anchor, rustdoc), chapter_title
    if isinstance(link_type, PlaygroundLink):
        contents = _read(link, base / link_type.path)
        ftype = "rust," if link_type.attrs else "rust"
        if not contents.endswith("\n"):
            contents += "\n"
        return f"```{ftype}{','.join(link_type.attrs)}\n{contents}```\n", chapter_title
    if isinstance(link_type, Title):
        return "", link_type.title
    raise PreprocessorError(f"unknown link type {link_type!r}")


def _relative_path(link: Link, base: Path) -> Path | None:
    link_type = link.link_type
    if isinstance(link_type, (Include, PlaygroundLink, RustdocInclude)):
        return (base / link_type.path).parent
    return None


def replace_all(
    s: str,
    path: str | os.PathLike[str],
    source: str | os.PathLike[str],
    depth: int = 0,
    chapter_title: str = "",
) -> tuple[str, str]:
    """Expand every helper link in ``s``, recursing into included files.

    Returns the expanded text and the chapter title. Links that fail to render
    are left in place; nesting deeper than the limit is dropped with an error.
    """
    path = Path(path)
    pieces: list[str] = []
    previous_end = 0

    for link in find_links(s):
        pieces.append(s[previous_end:link.start_index])
        try:
            new_content, chapter_title = render_link(link, path, chapter_title)
        except PreprocessorError as exc:
            logger.error('Error updating "%s", %s', link.link_text, exc)
            if exc.__cause__ is not None:
                logger.warning("Caused By: %s", exc.__cause__)
            previous_end = link.start_index
            continue

        if depth < MAX_LINK_NESTED_DEPTH:
            rel_path = _relative_path(link, path)
            if rel_path is not None:
                new_content, chapter_title = replace_all(
                    new_content, rel_path, source, depth + 1, chapter_title
                )
            pieces.append(new_content)
        else:
            logger.error(
                "Stack depth exceeded in %s. Check for cyclic includes", source
            )
        previous_end = link.end_index

    pieces.append(s[previous_end:])
    return "".join(pieces), chapter_title


class LinkPreprocessor:
    """Expands helper links in chapters relative to the book's source directory."""

    NAME = "links"

    def name(self) -> str:
        return self.NAME

    def expand_chapter(
        self,
        src_dir: str | os.PathLike[str],
        chapter_path: str | os.PathLike[str],
        content: str,
        name: str,
    ) -> tuple[str, str]:
        """Expand a chapter's content; return the new content and its title."""
        chapter_path = Path(chapter_path)
        base = Path(src_dir) / chapter_path.parent
        return replace_all(content, base, chapter_path, 0, name)