"""The book configuration: typed tables plus free-form data for plugins."""

from __future__ import annotations

import copy
import datetime
import enum
import json
import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any

import tomli_w

from inkbook.config_types import (
    BookConfig,
    BuildConfig,
    ConfigError,
    HtmlConfig,
    RustConfig,
)

logger = logging.getLogger(__name__)

_ENV_PREFIX = "MDBOOK_"
_LEGACY_ITEMS = (
    "title",
    "authors",
    "source",
    "description",
    "output.html.destination",
)


def parse_env(key: str) -> str | None:
    """Turn an environment variable name into a dotted config key.

    Only names starting with ``MDBOOK_`` qualify; the rest is lower-cased,
    ``__`` becomes ``.`` and ``_`` becomes ``-``.
    """
    if not key.startswith(_ENV_PREFIX):
        return None
    return key[len(_ENV_PREFIX):].lower().replace("__", ".").replace("_", "-")


def is_legacy_format(table: Any) -> bool:
    """Tell whether a raw table uses the old top-level metadata layout."""
    return any(_read(table, item) is not None for item in _LEGACY_ITEMS)


def _read(value: Any, key: str) -> Any:
    if not isinstance(value, Mapping):
        return None
    head, dot, tail = key.partition(".")
    if dot:
        return _read(value.get(head), tail)
    return value.get(key)


def _insert(table: dict[str, Any], key: str, value: Any) -> None:
    head, dot, tail = key.partition(".")
    if not dot:
        table[key] = value
        return
    child = table.get(head)
    if not isinstance(child, dict):
        child = {}
        table[head] = child
    _insert(child, tail, value)


def _delete(value: Any, key: str) -> Any:
    if not isinstance(value, dict):
        return None
    head, dot, tail = key.partition(".")
    if dot:
        return _delete(value.get(head), tail)
    return value.pop(key, None)


def _to_toml_value(value: Any) -> Any:
    """Convert ``value`` into something a TOML document can hold."""
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, enum.Enum):
        return _to_toml_value(value.value)
    if isinstance(value, Mapping):
        table: dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, (str, PurePath)):
                raise ConfigError("map key must be a string")
            table[str(key)] = _to_toml_value(item)
        return table
    if isinstance(value, (list, tuple)):
        return [_to_toml_value(item) for item in value]
    if value is None:
        raise ConfigError("unsupported None value")
    raise ConfigError(f"unsupported {type(value).__name__} value")


def _sorted(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _sorted(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted(item) for item in value]
    return value


def _reject_constant(name: str) -> Any:
    raise ValueError(f"not a JSON value: {name}")


def _parse_env_value(text: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text


@dataclass
class Config:
    """In-memory form of ``book.toml``."""

    book: BookConfig = field(default_factory=BookConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    rust: RustConfig = field(default_factory=RustConfig)
    rest: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_str(cls, src: str) -> Config:
        """Load a configuration from TOML text."""
        try:
            return cls.from_dict(tomllib.loads(src))
        except (tomllib.TOMLDecodeError, ConfigError) as exc:
            raise ConfigError(f"Invalid configuration file: {exc}") from exc

    @classmethod
    def from_disk(cls, config_file: str | os.PathLike[str]) -> Config:
        """Load a configuration from a TOML file."""
        try:
            with open(config_file, encoding="utf-8") as handle:
                text = handle.read()
        except OSError as exc:
            raise ConfigError(f"Unable to open the configuration file: {exc}") from exc
        return cls.from_str(text)

    @classmethod
    def from_dict(cls, raw: Any) -> Config:
        """Build a configuration from a parsed TOML table."""
        if is_legacy_format(raw):
            logger.warning("It looks like you are using the legacy book.toml format.")
            logger.warning(
                "Move top level entries like `title`, `authors` and `description` "
                "under a `[book]` table, and `destination` from `[output.html]` "
                "to `build-dir` under a `[build]` table."
            )
            return cls._from_legacy(copy.deepcopy(dict(raw)))

        if not isinstance(raw, Mapping):
            raise ConfigError("A config file should always be a toml table")

        table = copy.deepcopy(dict(raw))
        book = table.pop("book", None)
        build = table.pop("build", None)
        rust = table.pop("rust", None)
        return cls(
            book=BookConfig() if book is None else BookConfig.from_dict(book),
            build=BuildConfig() if build is None else BuildConfig.from_dict(build),
            rust=RustConfig() if rust is None else RustConfig.from_dict(rust),
            rest=table,
        )

    @classmethod
    def _from_legacy(cls, table: dict[str, Any]) -> Config:
        cfg = cls()

        title = table.pop("title", None)
        if isinstance(title, str):
            cfg.book.title = title

        authors = table.pop("authors", None)
        if isinstance(authors, list) and all(isinstance(a, str) for a in authors):
            cfg.book.authors = list(authors)

        source = table.pop("source", None)
        if isinstance(source, str):
            cfg.book.src = Path(source)

        description = table.pop("description", None)
        if isinstance(description, str):
            cfg.book.description = description

        destination = _delete(table, "output.html.destination")
        if isinstance(destination, str):
            cfg.build.build_dir = Path(destination)

        cfg.rest = table
        return cfg

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a TOML-ready table."""
        table = copy.deepcopy(self.rest)
        table["book"] = self.book.to_dict()
        if self.build != BuildConfig():
            table["build"] = self.build.to_dict()
        if self.rust != RustConfig():
            table["rust"] = self.rust.to_dict()
        return table

    def to_toml(self) -> str:
        """Serialize the configuration as TOML text with sorted keys."""
        return tomli_w.dumps(_sorted(self.to_dict()))

    def update_from_env(self, environ: Mapping[str, str] | None = None) -> None:
        """Override settings from ``MDBOOK_*`` environment variables.

        Values are parsed as JSON, falling back to plain strings. An object
        given for ``book`` or ``build`` sets each of its keys and ends the update.
        """
        logger.debug("Updating the config from environment variables")
        env = os.environ if environ is None else environ

        for name, text in list(env.items()):
            key = parse_env(name)
            if key is None:
                continue
            logger.debug("%s => %s", key, text)
            parsed = _parse_env_value(text)

            if key in ("book", "build") and isinstance(parsed, dict):
                for sub_key, sub_value in parsed.items():
                    self.set(f"{key}.{sub_key}", sub_value)
                return

            self.set(key, parsed)

    def get(self, key: str) -> Any:
        """Fetch a free-form item by dotted key, or ``None``."""
        return _read(self.rest, key)

    def set(self, index: str, value: Any) -> None:
        """Set an item by dotted key, replacing whatever was in the way.

        Raises ``ConfigError`` when the value cannot be represented in TOML.
        """
        try:
            converted = _to_toml_value(value)
        except ConfigError as exc:
            raise ConfigError(f"Unable to represent the item as a TOML value: {exc}") from exc

        if index.startswith("book."):
            self.book = _updated(self.book, index.removeprefix("book."), converted)
        elif index.startswith("build."):
            self.build = _updated(self.build, index.removeprefix("build."), converted)
        else:
            _insert(self.rest, index, converted)

    def html_config(self) -> HtmlConfig | None:
        """Return the ``[output.html]`` settings, or ``None`` if absent or invalid."""
        raw = self.get("output.html")
        if raw is None:
            return None
        try:
            return HtmlConfig.from_dict(raw)
        except ConfigError as exc:
            logger.error("Parsing configuration [output.html]: %s", exc)
            return None

    def get_renderer(self, index: str) -> dict[str, Any] | None:
        """Return the table of a renderer, if it is a table."""
        value = self.get(f"output.{index}")
        return value if isinstance(value, dict) else None

    def get_preprocessor(self, index: str) -> dict[str, Any] | None:
        """Return the table of a preprocessor, if it is a table."""
        value = self.get(f"preprocessor.{index}")
        return value if isinstance(value, dict) else None


def _updated(section: Any, key: str, value: Any) -> Any:
    """Return ``section`` with ``key`` replaced, or unchanged if that is invalid."""
    raw = section.to_dict()
    _insert(raw, key, value)
    try:
        return type(section).from_dict(raw)
    except ConfigError:
        return section