"""Analysis run: match files, review them, and report one message per file."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Protocol

from llmci.client import ReviewClient, ReviewError
from llmci.config import ConfigurationError, LLMCIConfig
from llmci.patterns import FileMatcher, basename
from llmci.schemas import Diagnostic, Position
from llmci.sources import SourceFile, SourceRenderError

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    """Where diagnostics go. Supplied by whichever host runs the analysis."""

    def report(self, position: Position, message: str) -> None:
        ...


class CollectingReporter:
    """Keeps every reported diagnostic in order."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def report(self, position: Position, message: str) -> None:
        self.diagnostics.append(Diagnostic(position=position, message=message))


@dataclass
class RunStats:
    files_seen: int = 0
    files_matched: int = 0
    reviewed: int = 0
    empty_reviews: int = 0
    content_errors: int = 0
    review_errors: int = 0

    @property
    def failures(self) -> int:
        return self.content_errors + self.review_errors

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class Analyzer:
    """Runs the review over a host-supplied, ordered list of files.

    Configuration problems (no token, bad or missing patterns) raise
    ``ConfigurationError`` before any file is looked at. Everything that goes
    wrong with a single file is reported on that file and the run moves on.
    """

    def __init__(self, config: LLMCIConfig, client: ReviewClient | None = None) -> None:
        self.config = config
        self._client = client

    def run(self, files: Iterable[SourceFile], reporter: Reporter) -> RunStats:
        stats = RunStats()
        if not self.config.enabled:
            logger.info("LLM analysis disabled; nothing to do")
            return stats

        if not self.config.api_token.get_secret_value():
            raise ConfigurationError("API token is required")
        matcher = FileMatcher.from_patterns(self.config.file_patterns)
        client = self._client or ReviewClient(self.config)

        try:
            for source in files:
                stats.files_seen += 1
                if not matcher.matches(source.filename):
                    logger.debug("Skipping %s: no pattern matched", source.filename)
                    continue
                stats.files_matched += 1
                self._review_one(client, source, reporter, stats)
        finally:
            if self._client is None:
                client.close()

        return stats

    def _review_one(
        self,
        client: ReviewClient,
        source: SourceFile,
        reporter: Reporter,
        stats: RunStats,
    ) -> None:
        filename = source.filename
        position = Position(filename=filename)

        try:
            content = source.render()
        except SourceRenderError as e:
            stats.content_errors += 1
            reporter.report(position, f"failed to get file content: {e}")
            return

        logger.info("Reviewing %s", filename)
        try:
            commentary = client.review(content, filename)
        except ReviewError as e:
            stats.review_errors += 1
            logger.warning("Review of %s failed: %s", filename, e)
            reporter.report(position, f"LLM analysis failed: {e}")
            return

        stats.reviewed += 1
        if not commentary:
            stats.empty_reviews += 1
            return
        reporter.report(position, f"LLM analysis for {basename(filename)}:\n{commentary}")
