"""Glob pattern matching: decide which files get sent for review."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from llmci.config import ConfigurationError

logger = logging.getLogger(__name__)


class PatternError(ConfigurationError):
    """A file pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid file pattern {pattern!r}: {reason}")
        self.pattern = pattern


def glob_to_regex(glob: str) -> str:
    """Translate a shell-style glob into an anchored regular expression.

    Every character is escaped first, then the escaped wildcards are turned
    back into their regex equivalents: ``*`` becomes ``.*`` and ``?``
    becomes ``.``.
    """
    regex = re.escape(glob)
    regex = regex.replace(r"\*", ".*")
    regex = regex.replace(r"\?", ".")
    return f"^{regex}$"


def compile_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(glob_to_regex(pattern))
    except re.error as e:
        raise PatternError(pattern, str(e)) from e


def basename(filename: str) -> str:
    # Accept both separators so "src\\pkg\\mod.py" behaves on POSIX too.
    return re.split(r"[\\/]", filename)[-1]


class FileMatcher:
    """A compiled, non-empty set of glob patterns.

    A file matches when any pattern fully matches either its base name or
    its full path.
    """

    def __init__(self, compiled: list[tuple[str, re.Pattern[str]]]) -> None:
        if not compiled:
            raise ConfigurationError("no valid file patterns specified")
        self._compiled = compiled

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> FileMatcher:
        compiled: list[tuple[str, re.Pattern[str]]] = []
        for pattern in patterns:
            pattern = pattern.strip()
            if not pattern:
                continue
            compiled.append((pattern, compile_pattern(pattern)))
        matcher = cls(compiled)
        logger.debug("Compiled %d file pattern(s): %s", len(compiled), ", ".join(matcher.raw_patterns))
        return matcher

    @property
    def raw_patterns(self) -> list[str]:
        return [raw for raw, _ in self._compiled]

    def matches(self, filename: str) -> bool:
        name = basename(filename)
        return any(
            regex.fullmatch(name) or regex.fullmatch(filename)
            for _, regex in self._compiled
        )
