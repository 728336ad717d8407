"""Book configuration loading, helper-link expansion and chapter preprocessors for markdown books."""

__version__ = "0.1.0"

__all__ = [
    "config_types",
    "config",
    "preprocessor",
    "cmd_preprocessor",
    "index_preprocessor",
    "link_parse",
    "links",
]