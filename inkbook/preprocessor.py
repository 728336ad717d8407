"""The preprocessor interface and the context handed to every preprocessor."""

from __future__ import annotations

import abc
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from inkbook.config import Config

VERSION = "0.1.0"
"""Version reported to preprocessors so they can check compatibility."""


class PreprocessorError(Exception):
    """Raised when a preprocessor cannot be started, run or understood."""


@dataclass
class PreprocessorContext:
    """Extra information given to a preprocessor while it processes a book."""

    root: Path
    config: Config
    renderer: str
    mdbook_version: str = VERSION
    chapter_titles: dict[Path, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    def to_dict(self) -> dict[str, Any]:
        """Return the serializable form; chapter titles are not included."""
        return {
            "root": str(self.root),
            "config": self.config.to_dict(),
            "renderer": self.renderer,
            "mdbook_version": self.mdbook_version,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PreprocessorContext:
        """Build a context from its serialized form."""
        if not isinstance(raw, Mapping):
            raise PreprocessorError("the preprocessor context must be an object")
        for key in ("root", "config", "renderer", "mdbook_version"):
            if key not in raw:
                raise PreprocessorError(f"missing field `{key}`")
        for key in ("root", "renderer", "mdbook_version"):
            if not isinstance(raw[key], str):
                raise PreprocessorError(f"field `{key}` must be a string")
        return cls(
            root=Path(raw["root"]),
            config=Config.from_dict(raw["config"]),
            renderer=raw["renderer"],
            mdbook_version=raw["mdbook_version"],
        )


class Preprocessor(abc.ABC):
    """An operation run on a book after loading it and before rendering it."""

    @abc.abstractmethod
    def name(self) -> str:
        """Return the preprocessor's name."""

    @abc.abstractmethod
    def run(self, ctx: PreprocessorContext, book: Any) -> Any:
        """Process ``book`` and return the updated book."""

    def supports_renderer(self, renderer: str) -> bool:
        """Tell whether this preprocessor works with ``renderer``; always true here."""
        return True