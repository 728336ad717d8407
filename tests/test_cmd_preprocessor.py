import io
import shlex
import sys
from pathlib import Path

import pytest

from inkbook.cmd_preprocessor import CmdPreprocessor
from inkbook.config import Config
from inkbook.preprocessor import PreprocessorContext, PreprocessorError

_NOP = """
import json, sys
if len(sys.argv) > 1 and sys.argv[1] == "supports":
    sys.exit(1 if sys.argv[2] == "not-supported" else 0)
ctx, book = json.load(sys.stdin)
settings = ctx["config"].get("preprocessor", {}).get("nop-preprocessor", {})
if settings.get("blow-up"):
    sys.stderr.write("Boom!")
    sys.exit(1)
book["touched"] = ctx["renderer"]
json.dump(book, sys.stdout)
"""


def _python(code):
    return shlex.join([sys.executable, "-c", code])


def _example():
    return CmdPreprocessor("nop-preprocessor", _python(_NOP))


def _context(cfg=None):
    return PreprocessorContext(Path("/books/demo"), cfg or Config(), "some-renderer")


def _book():
    return {"sections": [{"Chapter": {"name": "Intro", "content": "# Intro\n"}}]}


def test_round_trip_write_and_parse_input():
    cmd = CmdPreprocessor("test", "test")
    ctx = _context(Config.from_str('[book]\ntitle = "Guide"\n'))
    book = _book()
    buffer = io.StringIO()
    cmd.write_input(buffer, book, ctx)
    buffer.seek(0)
    got_ctx, got_book = CmdPreprocessor.parse_input(buffer)
    assert got_book == book
    assert got_ctx == ctx


def test_parse_input_rejects_garbage():
    with pytest.raises(PreprocessorError, match="Unable to parse the input"):
        CmdPreprocessor.parse_input(io.StringIO("not json"))


def test_parse_input_rejects_wrong_shape():
    with pytest.raises(PreprocessorError):
        CmdPreprocessor.parse_input(io.StringIO("[1, 2, 3]"))


def test_example_supports_whatever():
    assert _example().supports_renderer("whatever") is True


def test_example_doesnt_support_not_supported():
    assert _example().supports_renderer("not-supported") is False


def test_missing_command_is_not_supported():
    cmd = CmdPreprocessor("missing", "trduyvbhijnorgevfuhn")
    assert cmd.supports_renderer("html") is False


def test_empty_command():
    cmd = CmdPreprocessor("empty", "   ")
    with pytest.raises(PreprocessorError, match="Command string was empty"):
        cmd.command()
    assert cmd.supports_renderer("html") is False


def test_command_splits_words():
    cmd = CmdPreprocessor("x", 'tool --flag "two words"')
    assert cmd.command() == ["tool", "--flag", "two words"]


def test_process_the_book():
    got = _example().run(_context(), _book())
    expected = _book()
    expected["touched"] = "some-renderer"
    assert got == expected


def test_ask_the_preprocessor_to_blow_up():
    cfg = Config()
    cfg.set("preprocessor.nop-preprocessor.blow-up", True)
    with pytest.raises(PreprocessorError, match="exited unsuccessfully"):
        _example().run(_context(cfg), _book())


def test_missing_program_fails_to_start():
    cmd = CmdPreprocessor("missing", "trduyvbhijnorgevfuhn")
    with pytest.raises(PreprocessorError, match="Is it installed"):
        cmd.run(_context(), _book())


def test_unparsable_output():
    cmd = CmdPreprocessor("noisy", _python("import sys; sys.stdin.read(); print('nope')"))
    with pytest.raises(PreprocessorError, match="Unable to parse the preprocessed book"):
        cmd.run(_context(), _book())


def test_equality_and_name():
    a = CmdPreprocessor("a", "cmd")
    assert a == CmdPreprocessor("a", "cmd")
    assert a != CmdPreprocessor("b", "cmd")
    assert a.name() == "a"
    assert a.cmd == "cmd"