"""Diagnostics and the error manager used across the pipeline."""

from __future__ import annotations

import sys
from typing import TextIO

INTERNAL_ERROR = "INTERNAL_ERROR"
PARSE_ERROR = "PARSE_ERROR"
UNKNOWN_NAMESPACE = "UNKNOWN_NAMESPACE"


class ParseError(Exception):
    """Parse error with location info."""

    def __init__(self, msg: str, lineno: int, col: int):
        self.msg: str = msg
        self.lineno: int = lineno
        self.col: int = col
        super().__init__(msg)


class WriteError(Exception):
    """An output file could not be written."""

    def __init__(self, filename: str, cause: OSError):
        self.filename: str = filename
        self.cause: OSError = cause
        super().__init__("Unable to write to file " + filename)


class Diagnostic:
    """A diagnostic attributed to a file. Line and column -1 mean unknown."""

    def __init__(
        self,
        filename: str,
        lineno: int,
        col: int,
        category: str,
        message: str,
        is_warning: bool = False,
    ):
        self.filename: str = filename
        self.lineno: int = lineno
        self.col: int = col
        self.category: str = category
        self.message: str = message
        self.is_warning: bool = is_warning

    def __repr__(self) -> str:
        prefix = "warning" if self.is_warning else "error"
        return (
            prefix
            + ":"
            + self.filename
            + ":"
            + str(self.lineno)
            + ":"
            + str(self.col)
            + ": ["
            + self.category
            + "] "
            + self.message
        )

    __str__ = __repr__


class ErrorManager:
    """Collects diagnostics for a run and echoes them to a stream."""

    def __init__(self, stream: TextIO | None = None, debug: bool = False) -> None:
        self.stream: TextIO = stream if stream is not None else sys.stderr
        self.debug: bool = debug
        self.diagnostics: list[Diagnostic] = []

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        print(str(diagnostic), file=self.stream)

    def error(self, filename: str, category: str, message: str, lineno: int = -1, col: int = -1) -> None:
        self.report(Diagnostic(filename, lineno, col, category, message))

    def warning(self, filename: str, category: str, message: str, lineno: int = -1, col: int = -1) -> None:
        self.report(Diagnostic(filename, lineno, col, category, message, True))

    def trace(self, message: str) -> None:
        """Print a progress line, only in debug mode."""
        if self.debug:
            print("debug: " + message, file=self.stream)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_warning]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_warning]

    def generate_report(self) -> None:
        n_err = len(self.errors())
        n_warn = len(self.warnings())
        if n_err == 0 and n_warn == 0:
            return
        print(
            str(n_err) + " error(s), " + str(n_warn) + " warning(s)",
            file=self.stream,
        )
