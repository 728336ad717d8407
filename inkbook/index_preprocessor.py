"""Turns ``README.md`` chapters into ``index.md`` chapters."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path, PurePath

logger = logging.getLogger(__name__)

_README = re.compile(r"readme", re.IGNORECASE)


def is_readme_file(path: str | os.PathLike[str]) -> bool:
    """Tell whether the file stem is ``readme``, ignoring case."""
    return _README.fullmatch(PurePath(path).stem) is not None


def _warn_readme_name_conflict(readme_path: PurePath, index_path: Path) -> None:
    file_name = readme_path.name
    parent_dir = index_path.parent
    logger.warning(
        'It seems that there are both "%s" and index.md under "%s".',
        file_name,
        parent_dir,
    )
    logger.warning(
        'mdbook converts "%s" into index.html by default. It may cause', file_name
    )
    logger.warning(
        "unexpected behavior if putting both files under the same directory."
    )
    logger.warning(
        "To solve the warning, try to rearrange the book structure or disable"
    )
    logger.warning('"index" preprocessor to stop the conversion.')


class IndexPreprocessor:
    """Renames ``README.md`` chapters to ``index.md``, the conventional index."""

    NAME = "index"

    def name(self) -> str:
        return self.NAME

    def rewrite_path(
        self, source_dir: str | os.PathLike[str], path: str | os.PathLike[str]
    ) -> Path:
        """Return the chapter path with a README file renamed to ``index.md``.

        Warns when an ``index.md`` already exists next to the README in
        ``source_dir``.
        """
        chapter = Path(path)
        if not is_readme_file(chapter):
            return chapter
        renamed = chapter.with_name("index.md")
        index_md = Path(source_dir) / renamed
        if index_md.exists():
            _warn_readme_name_conflict(chapter, index_md)
        return renamed