"""flake8 entry point.

flake8 hands each checker a parsed module, its filename and its physical
lines; the checker yields ``(line, col, message, type)`` tuples. This adapter
turns those into a ``PythonSourceFile`` and a ``Reporter`` and lets
``Analyzer`` do the rest.

Options are read from the usual llmci config file and environment variables,
the same way the CLI reads them.
"""

from __future__ import annotations

import ast
from typing import Iterator

from llmci.analyzer import Analyzer
from llmci.config import load_config
from llmci.schemas import Position
from llmci.sources import PythonSourceFile

CODE = "LLM001"


class _TupleReporter:
    def __init__(self) -> None:
        self.results: list[tuple[int, int, str, type]] = []

    def report(self, position: Position, message: str) -> None:
        self.results.append((position.line, position.column, f"{CODE} {message}", LLMCIChecker))


class LLMCIChecker:
    name = "llmci"
    version = "0.1.0"

    def __init__(self, tree: ast.AST, filename: str, lines: list[str]) -> None:
        self.tree = tree
        self.filename = filename
        self.lines = lines

    def run(self) -> Iterator[tuple[int, int, str, type]]:
        config = load_config()
        reporter = _TupleReporter()
        source = PythonSourceFile(self.filename, text="".join(self.lines), tree=self.tree)
        Analyzer(config).run([source], reporter)
        yield from reporter.results
