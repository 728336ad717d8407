"""Typed tables of the book configuration: book, build, rust and HTML output."""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class ConfigError(ValueError):
    """Raised when configuration data does not have the expected shape."""


class RustEdition(enum.Enum):
    """Rust edition used for code in the book."""

    E2021 = "2021"
    E2018 = "2018"
    E2015 = "2015"


@dataclass
class BookConfig:
    """Metadata about the book."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    description: str | None = None
    src: Path = field(default_factory=lambda: Path("src"))
    multilingual: bool = False
    language: str | None = "en"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> BookConfig:
        """Build from a kebab-case table; missing keys take their defaults."""
        return _build(cls, raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the kebab-case table form, leaving out unset optional values."""
        table: dict[str, Any] = {
            "authors": list(self.authors),
            "multilingual": self.multilingual,
            "src": str(self.src),
        }
        if self.title is not None:
            table["title"] = self.title
        if self.description is not None:
            table["description"] = self.description
        if self.language is not None:
            table["language"] = self.language
        return table


@dataclass
class BuildConfig:
    """Settings for the build procedure."""

    build_dir: Path = field(default_factory=lambda: Path("book"))
    create_missing: bool = True
    use_default_preprocessors: bool = True
    extra_watch_dirs: list[Path] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> BuildConfig:
        """Build from a kebab-case table; missing keys take their defaults."""
        return _build(cls, raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the kebab-case table form."""
        return {
            "build-dir": str(self.build_dir),
            "create-missing": self.create_missing,
            "use-default-preprocessors": self.use_default_preprocessors,
            "extra-watch-dirs": [str(p) for p in self.extra_watch_dirs],
        }


@dataclass
class RustConfig:
    """Settings for the Rust compiler used by the playground."""

    edition: RustEdition | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> RustConfig:
        """Build from a kebab-case table; missing keys take their defaults."""
        return _build(cls, raw)

    def to_dict(self) -> dict[str, Any]:
        """Return the kebab-case table form, leaving out an unset edition."""
        if self.edition is None:
            return {}
        return {"edition": self.edition.value}


@dataclass
class Print:
    """How the print page is rendered."""

    enable: bool = True
    page_break: bool = True


@dataclass
class Fold:
    """How chapters of the sidebar are folded."""

    enable: bool = False
    level: int = 0


@dataclass
class Playground:
    """How the HTML renderer treats playground snippets."""

    editable: bool = False
    copyable: bool = True
    copy_js: bool = True
    line_numbers: bool = False
    runnable: bool = True


@dataclass
class Code:
    """How the HTML renderer treats code blocks."""

    hidelines: dict[str, str] = field(default_factory=dict)


@dataclass
class Search:
    """Settings of the search feature of the HTML renderer."""

    enable: bool = True
    limit_results: int = 30
    teaser_word_count: int = 30
    use_boolean_and: bool = False
    boost_title: int = 2
    boost_hierarchy: int = 1
    boost_paragraph: int = 1
    expand: bool = True
    heading_split_level: int = 3
    copy_js: bool = True


@dataclass
class HtmlConfig:
    """Settings of the HTML renderer."""

    theme: Path | None = None
    default_theme: str | None = None
    preferred_dark_theme: str | None = None
    curly_quotes: bool = False
    mathjax_support: bool = False
    copy_fonts: bool = True
    google_analytics: str | None = None
    additional_css: list[Path] = field(default_factory=list)
    additional_js: list[Path] = field(default_factory=list)
    fold: Fold = field(default_factory=Fold)
    playground: Playground = field(default_factory=Playground)
    code: Code = field(default_factory=Code)
    print: Print = field(default_factory=Print)
    no_section_label: bool = False
    search: Search | None = None
    git_repository_url: str | None = None
    git_repository_icon: str | None = None
    input_404: str | None = None
    site_url: str | None = None
    cname: str | None = None
    edit_url_template: str | None = None
    live_reload_endpoint: str | None = None
    redirect: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> HtmlConfig:
        """Build from a kebab-case table; missing keys take their defaults."""
        return _build(cls, raw)

    def theme_dir(self, root: str | Path) -> Path:
        """Return the theme directory under ``root``, ``theme`` when unset."""
        root = Path(root)
        return root / self.theme if self.theme is not None else root / "theme"


_Converter = Callable[[Any], Any]


def _kind(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "table"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _string(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise ConfigError(f"invalid type: {_kind(value)}, expected a string")


def _boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(f"invalid type: {_kind(value)}, expected a boolean")


def _unsigned(bits: int) -> _Converter:
    limit = (1 << bits) - 1

    def convert(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"invalid type: {_kind(value)}, expected u{bits}")
        if not 0 <= value <= limit:
            raise ConfigError(f"invalid value: {value}, expected u{bits}")
        return value

    return convert


def _path(value: Any) -> Path:
    return Path(_string(value))


def _optional(convert: _Converter) -> _Converter:
    return lambda value: None if value is None else convert(value)


def _list(convert: _Converter) -> _Converter:
    def converted(value: Any) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise ConfigError(f"invalid type: {_kind(value)}, expected a sequence")
        return [convert(item) for item in value]

    return converted


def _str_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"invalid type: {_kind(value)}, expected a map")
    return {str(key): _string(item) for key, item in value.items()}


def _edition(value: Any) -> RustEdition:
    text = _string(value)
    try:
        return RustEdition(text)
    except ValueError:
        names = ", ".join(f"`{e.value}`" for e in RustEdition)
        raise ConfigError(f"unknown variant `{text}`, expected one of {names}") from None


def _table(cls: type) -> _Converter:
    return lambda value: _build(cls, value)


def _build(cls: type, raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"invalid type: {_kind(raw)}, expected struct {cls.__name__}")
    converters = _FIELDS[cls]
    aliases = _ALIASES.get(cls, {})
    values: dict[str, Any] = {}
    for name, convert in converters.items():
        present = [k for k in (name.replace("_", "-"), *aliases.get(name, ())) if k in raw]
        if len(present) > 1:
            raise ConfigError(f"duplicate field `{name.replace('_', '-')}`")
        if present:
            key = present[0]
            try:
                values[name] = convert(raw[key])
            except ConfigError as exc:
                raise ConfigError(f"{key}: {exc}") from None
    return cls(**values)


_opt_str = _optional(_string)

_FIELDS: dict[type, dict[str, _Converter]] = {
    BookConfig: {
        "title": _opt_str,
        "authors": _list(_string),
        "description": _opt_str,
        "src": _path,
        "multilingual": _boolean,
        "language": _opt_str,
    },
    BuildConfig: {
        "build_dir": _path,
        "create_missing": _boolean,
        "use_default_preprocessors": _boolean,
        "extra_watch_dirs": _list(_path),
    },
    RustConfig: {"edition": _optional(_edition)},
    Print: {"enable": _boolean, "page_break": _boolean},
    Fold: {"enable": _boolean, "level": _unsigned(8)},
    Playground: {
        "editable": _boolean,
        "copyable": _boolean,
        "copy_js": _boolean,
        "line_numbers": _boolean,
        "runnable": _boolean,
    },
    Code: {"hidelines": _str_map},
    Search: {
        "enable": _boolean,
        "limit_results": _unsigned(32),
        "teaser_word_count": _unsigned(32),
        "use_boolean_and": _boolean,
        "boost_title": _unsigned(8),
        "boost_hierarchy": _unsigned(8),
        "boost_paragraph": _unsigned(8),
        "expand": _boolean,
        "heading_split_level": _unsigned(8),
        "copy_js": _boolean,
    },
    HtmlConfig: {
        "theme": _optional(_path),
        "default_theme": _opt_str,
        "preferred_dark_theme": _opt_str,
        "curly_quotes": _boolean,
        "mathjax_support": _boolean,
        "copy_fonts": _boolean,
        "google_analytics": _opt_str,
        "additional_css": _list(_path),
        "additional_js": _list(_path),
        "fold": _table(Fold),
        "playground": _table(Playground),
        "code": _table(Code),
        "print": _table(Print),
        "no_section_label": _boolean,
        "search": _optional(_table(Search)),
        "git_repository_url": _opt_str,
        "git_repository_icon": _opt_str,
        "input_404": _opt_str,
        "site_url": _opt_str,
        "cname": _opt_str,
        "edit_url_template": _opt_str,
        "live_reload_endpoint": _opt_str,
        "redirect": _str_map,
    },
}

_ALIASES: dict[type, dict[str, tuple[str, ...]]] = {
    HtmlConfig: {"playground": ("playpen",)},
}