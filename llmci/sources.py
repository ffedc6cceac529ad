"""Candidate files: discovery on disk and rendering to the text sent for review."""

from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

PYTHON_SUFFIXES = frozenset({".py", ".pyi"})

SKIP_DIRS = frozenset({
    ".git",
    ".hg",
    ".tox",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    "build",
    "dist",
})


class SourceRenderError(Exception):
    """The file's source could not be turned into text."""


@runtime_checkable
class SourceFile(Protocol):
    filename: str

    def render(self) -> str:
        ...


class PythonSourceFile:
    """A Python module, sent as written once it is known to parse.

    ``text`` is sent verbatim, comments included. When a host linter only
    hands over a ``tree``, the text is rebuilt from it with ``ast.unparse``.
    With neither, the file is read from disk on ``render()``.
    """

    def __init__(self, filename: str, text: str | None = None, tree: ast.AST | None = None) -> None:
        self.filename = filename
        self._text = text
        self._tree = tree

    def render(self) -> str:
        if self._text is None and self._tree is not None:
            try:
                return ast.unparse(self._tree)
            except (ValueError, TypeError, RecursionError) as e:
                raise SourceRenderError(f"{self.filename}: cannot render syntax tree: {e}") from e

        text = self._text if self._text is not None else _read_text(self.filename)
        if self._tree is None:
            try:
                ast.parse(text, filename=self.filename)
            except (SyntaxError, ValueError) as e:
                lineno = getattr(e, "lineno", None)
                msg = getattr(e, "msg", str(e))
                raise SourceRenderError(f"{self.filename}: syntax error at line {lineno}: {msg}") from e
        return text

    def __repr__(self) -> str:
        return f"PythonSourceFile({self.filename!r})"


class TextSourceFile:
    """Any other file, sent as it is on disk."""

    def __init__(self, filename: str, text: str | None = None) -> None:
        self.filename = filename
        self._text = text

    def render(self) -> str:
        if self._text is not None:
            return self._text
        return _read_text(self.filename)

    def __repr__(self) -> str:
        return f"TextSourceFile({self.filename!r})"


def _read_text(filename: str) -> str:
    try:
        return Path(filename).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceRenderError(f"{filename}: {e}") from e


def load_source(path: str | Path) -> SourceFile:
    path = Path(path)
    if path.suffix in PYTHON_SUFFIXES:
        return PythonSourceFile(str(path))
    return TextSourceFile(str(path))


def discover_files(paths: Iterable[str | Path]) -> list[SourceFile]:
    """Expand paths into source files, keeping argument order.

    Directories are walked recursively in sorted order, skipping VCS,
    virtualenv and build directories. Paths that don't exist are logged and
    skipped.
    """
    seen: set[Path] = set()
    files: list[SourceFile] = []

    def _add(p: Path) -> None:
        key = p.resolve()
        if key in seen:
            return
        seen.add(key)
        files.append(load_source(p))

    for raw in paths:
        root = Path(raw)
        if root.is_file():
            _add(root)
        elif root.is_dir():
            for p in sorted(root.rglob("*")):
                rel_parts = p.relative_to(root).parts
                if any(part in SKIP_DIRS for part in rel_parts[:-1]):
                    continue
                if p.is_file():
                    _add(p)
        else:
            logger.warning("Path not found, skipping: %s", raw)

    return files
