# inkbook

inkbook reads the configuration of a markdown book from `book.toml`. It also
provides the pieces that rewrite chapters before they are rendered: it expands
include directives, renames README chapters, and passes the book to external
preprocessor programs.

## Installation

```
pip install inkbook
```

## Configuration

`inkbook.config.Config` loads a TOML document.

- The `[book]`, `[build]` and `[rust]` tables become typed settings. These are
  `BookConfig`, `BuildConfig` and `RustConfig`, defined in `inkbook.config_types`.
- Every other table is kept as free-form data in `Config.rest`, and you read it
  with dotted keys.

```python
from inkbook.config import Config

cfg = Config.from_str('''
[book]
title = "My Book"
authors = ["Jane Doe"]

[other-table.foo]
bar = 123
''')

cfg.get("other-table.foo.bar")            # 123
cfg.book.title                            # "My Book"
cfg.set("output.html.theme", "./themes")
cfg.html_config().theme                   # PosixPath('themes')
```

Loading and writing:

- `Config.from_disk("book.toml")` reads the same document from a file.
- `Config.to_dict()` returns the configuration as a plain table.
- `Config.to_toml()` writes it as TOML with sorted keys.
- A `[build]` or `[rust]` table that holds only default values is left out of
  the output.

Errors:

- Invalid TOML raises `inkbook.config_types.ConfigError`.
- So does a value of the wrong type, for example `title = 20` or
  `edition = "1999"`.

Settings with a dotted key:

- `Config.set()` with a `book.` or `build.` key updates the typed settings.
- If the new value does not fit the field, the settings are left unchanged.

HTML renderer settings:

- `Config.html_config()` parses `[output.html]` into an `HtmlConfig`, which
  covers fold, playground, code, print, search, redirects and so on.
- It returns `None` if the table is missing or invalid.
- `get_renderer(name)` and `get_preprocessor(name)` return the
  `[output.<name>]` and `[preprocessor.<name>]` tables.

### Legacy layout

An older layout put `title`, `authors`, `source` and `description` at the top
level and `destination` under `[output.html]`. Files in that layout are still
read:

- the top-level entries are moved into `BookConfig`;
- `destination` becomes `BuildConfig.build_dir`;
- a warning is logged.

### Environment overrides

`Config.update_from_env()` applies variables whose names start with `MDBOOK_`.
The rest of the name is turned into a key as follows:

- it is lower-cased;
- `__` separates nested keys;
- a single `_` becomes `-`.

| variable              | key           |
|-----------------------|---------------|
| `MDBOOK_BOOK__TITLE`  | `book.title`  |
| `MDBOOK_FOO_BAR__BAZ` | `foo-bar.baz` |

Each value is parsed as JSON first, and is used as a plain string if that fails.
A JSON object given for `MDBOOK_BOOK` or `MDBOOK_BUILD` sets each of its keys
and ends the update. You can pass a mapping in place of `os.environ`:

```python
cfg.update_from_env({"MDBOOK_BOOK__TITLE": "Another Title"})
```

## Preprocessors

`inkbook.preprocessor.Preprocessor` is the abstract interface. Its methods are
`name()`, `run(ctx, book)` and `supports_renderer(renderer)`.

`PreprocessorContext` holds:

- the book root;
- the `Config`;
- the renderer name;
- the version.

It converts to and from JSON-ready dicts with `to_dict()` and `from_dict()`.

### Link expansion

`inkbook.links` expands these directives in chapter text:

| directive | what it inserts |
|-----------|-----------------|
| `{{#include file}}` | the file, whole or by line range (`file:5:10`, `file:5:`, `file::10`) or between `ANCHOR: name` / `ANCHOR_END: name` comments (`file:name`) |
| `{{#rustdoc_include ...}}` | the same selection, with the other lines kept behind `# ` |
| `{{#playground file attrs...}}` | the file wrapped in a ```` ```rust,attrs ```` code block |
| `{{#title ...}}` | nothing; it overrides the chapter title |

Rules for expansion:

- A directive preceded by a backslash is left as written, with the backslash
  removed.
- Included text is expanded again, relative to the included file, down to a
  depth of 10.
- A directive whose file cannot be read stays in the text, and an error is
  logged.

```python
from inkbook.links import LinkPreprocessor, replace_all

text, title = replace_all("{{#title My Title}}\n# Chapter\n", "docs", "ch.md")
# text == "\n# Chapter\n", title == "My Title"

content, title = LinkPreprocessor().expand_chapter(
    "book/src", "first/chapter.md", "{{#include code.rs:2:4}}", "Chapter"
)
```

`inkbook.link_parse.find_links` yields the directives found in a text as `Link`
values. Each `Link` has a position, its raw text, and a parsed type: `Include`,
`RustdocInclude`, `PlaygroundLink`, `Title` or `Escaped`.

```python
from inkbook.link_parse import find_links

for link in find_links("See {{#include code.rs:2:4}}"):
    print(link.start_index, link.end_index, link.link_type)
```

### README to index

`inkbook.index_preprocessor.IndexPreprocessor.rewrite_path(source_dir, path)`
handles chapter paths whose file stem is `readme`, in any case:

- such a path is returned with the file renamed to `index.md`;
- if an `index.md` already exists beside it, a warning is logged;
- any other path is returned unchanged.

`is_readme_file(path)` makes the stem check on its own.

### External commands

`inkbook.cmd_preprocessor.CmdPreprocessor(name, cmd)` runs a program as a
preprocessor. The command string is split with shell-style quoting.

- `run(ctx, book)` writes `[context, book]` as JSON to the program's standard
  input and returns the JSON the program prints on standard output.
- It raises `PreprocessorError` in these cases:
  - the program cannot be started;
  - it exits with a non-zero status;
  - its output is not JSON.
- `supports_renderer(renderer)` runs `<cmd> supports <renderer>` and returns
  `True` only when that exits with status 0.
- A program can call `CmdPreprocessor.parse_input(sys.stdin)` to read its input.

## What this package does not do

This package has no book model, no `SUMMARY.md` parser, no renderers and no
command-line program.

- `LinkPreprocessor` and `IndexPreprocessor` work on a single chapter's text or
  path, which you supply. They do not subclass `Preprocessor` and do not walk a
  whole book.
- `CmdPreprocessor` passes the book through as any JSON-serializable value.
- Building, serving or testing a book has to be done by the code that uses this
  package.

## Running the tests

```
pip install -e ".[test]"
pytest
```