"""A preprocessor that hands the book to an external program."""

from __future__ import annotations

import datetime
import json
import logging
import shlex
import subprocess
from typing import IO, Any

from inkbook.preprocessor import Preprocessor, PreprocessorContext, PreprocessorError

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


class CmdPreprocessor(Preprocessor):
    """Runs a third-party program as a preprocessor.

    ``supports_renderer`` runs ``<cmd> supports <renderer>``; exit code 0 means
    supported. ``run`` writes ``[context, book]`` as JSON to the program's
    stdin and reads the processed book as JSON from its stdout.
    """

    def __init__(self, name: str, cmd: str) -> None:
        self._name = name
        self.cmd = cmd

    def __repr__(self) -> str:
        return f"CmdPreprocessor(name={self._name!r}, cmd={self.cmd!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CmdPreprocessor):
            return NotImplemented
        return (self._name, self.cmd) == (other._name, other.cmd)

    def __hash__(self) -> int:
        return hash((self._name, self.cmd))

    def name(self) -> str:
        return self._name

    @classmethod
    def parse_input(cls, reader: IO[Any]) -> tuple[PreprocessorContext, Any]:
        """Parse the ``[context, book]`` JSON written to a preprocessor's stdin."""
        try:
            raw = json.load(reader)
            if not isinstance(raw, list) or len(raw) != 2:
                raise PreprocessorError("expected a [context, book] pair")
            return PreprocessorContext.from_dict(raw[0]), raw[1]
        except (ValueError, TypeError, PreprocessorError) as exc:
            raise PreprocessorError(f"Unable to parse the input: {exc}") from exc

    def _encode_input(self, book: Any, ctx: PreprocessorContext) -> str:
        return json.dumps([ctx.to_dict(), book], default=_json_default)

    def write_input(self, writer: IO[str], book: Any, ctx: PreprocessorContext) -> None:
        """Write ``[context, book]`` as JSON to a text stream."""
        writer.write(self._encode_input(book, ctx))

    def command(self) -> list[str]:
        """Split the command string into the program and its arguments."""
        try:
            words = shlex.split(self.cmd)
        except ValueError as exc:
            raise PreprocessorError(f"Unable to parse the command: {exc}") from exc
        if not words:
            raise PreprocessorError("Command string was empty")
        return words

    def run(self, ctx: PreprocessorContext, book: Any) -> Any:
        args = self.command()
        try:
            process = subprocess.Popen(
                args, stdin=subprocess.PIPE, stdout=subprocess.PIPE
            )
        except OSError as exc:
            raise PreprocessorError(
                f'Unable to start the "{self._name}" preprocessor. Is it installed?'
            ) from exc

        data = self._encode_input(book, ctx).encode("utf-8")
        try:
            stdout, _ = process.communicate(input=data)
        except OSError as exc:
            process.kill()
            raise PreprocessorError(
                f'Error waiting for the "{self._name}" preprocessor to complete'
            ) from exc

        logger.debug("%s exited with status %s", self.cmd, process.returncode)
        if process.returncode != 0:
            raise PreprocessorError(
                f'The "{self._name}" preprocessor exited unsuccessfully with '
                f"exit status: {process.returncode} status"
            )

        try:
            return json.loads(stdout)
        except ValueError as exc:
            raise PreprocessorError(
                f'Unable to parse the preprocessed book from "{self._name}" processor'
            ) from exc

    def supports_renderer(self, renderer: str) -> bool:
        logger.debug(
            'Checking if the "%s" preprocessor supports "%s"', self._name, renderer
        )
        try:
            args = self.command()
        except PreprocessorError as exc:
            logger.warning(
                'Unable to create the command for the "%s" preprocessor, %s',
                self._name,
                exc,
            )
            return False

        try:
            completed = subprocess.run(
                [*args, "supports", renderer], stdin=subprocess.DEVNULL, check=False
            )
        except FileNotFoundError:
            logger.warning(
                'The command wasn\'t found, is the "%s" preprocessor installed?',
                self._name,
            )
            logger.warning("\tCommand: %s", self.cmd)
            return False
        except OSError:
            return False
        return completed.returncode == 0