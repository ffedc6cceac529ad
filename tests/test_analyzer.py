"""Tests for the analysis run: filtering, per-file isolation, and reporting."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from pytest_httpserver import HTTPServer

from llmci.analyzer import Analyzer, CollectingReporter, RunStats
from llmci.client import MalformedResponseError, RemoteAPIError, ReviewClient, TransportError
from llmci.config import ConfigurationError
from llmci.schemas import Position
from llmci.sources import PythonSourceFile, SourceRenderError, TextSourceFile


class _BrokenSource:
    filename = "pkg/broken.py"

    def render(self) -> str:
        raise SourceRenderError("pkg/broken.py: syntax error at line 1: invalid syntax")


def _mock_client(*results) -> MagicMock:
    client = MagicMock(spec=ReviewClient)
    client.review.side_effect = list(results)
    return client


class TestDisabled:
    def test_nothing_happens(self, make_config) -> None:
        cfg = make_config(enabled=False, api_token="", file_patterns=[])
        client = _mock_client()
        reporter = MagicMock()
        stats = Analyzer(cfg, client=client).run([TextSourceFile("a.py", text="x")], reporter)
        assert stats == RunStats()
        client.review.assert_not_called()
        reporter.report.assert_not_called()


class TestConfigurationErrors:
    def test_missing_token_before_any_file(self, make_config) -> None:
        cfg = make_config(api_token="")
        client = _mock_client()
        source = MagicMock()
        with pytest.raises(ConfigurationError, match="API token is required"):
            Analyzer(cfg, client=client).run([source], MagicMock())
        client.review.assert_not_called()
        source.render.assert_not_called()

    def test_no_valid_patterns(self, make_config) -> None:
        cfg = make_config(file_patterns=[" ", ""])
        reporter = MagicMock()
        with pytest.raises(ConfigurationError, match="no valid file patterns"):
            Analyzer(cfg, client=_mock_client()).run([TextSourceFile("a.py", text="x")], reporter)
        reporter.report.assert_not_called()

    def test_missing_token_makes_no_network_call(self, make_config, httpserver: HTTPServer) -> None:
        cfg = make_config(api_token="", api_url=httpserver.url_for("/v1/chat/completions"))
        with pytest.raises(ConfigurationError):
            Analyzer(cfg).run([TextSourceFile("a.py", text="x")], CollectingReporter())
        assert len(httpserver.log) == 0


class TestRun:
    def test_only_matching_files_reviewed(self, make_config) -> None:
        cfg = make_config(file_patterns=["*.py"])
        client = _mock_client("comment on a")
        reporter = CollectingReporter()
        files = [
            TextSourceFile("src/a.py", text="a = 1"),
            TextSourceFile("src/b.go", text="package b"),
        ]
        stats = Analyzer(cfg, client=client).run(files, reporter)

        client.review.assert_called_once_with("a = 1", "src/a.py")
        assert stats.files_seen == 2
        assert stats.files_matched == 1
        assert len(reporter.diagnostics) == 1
        diag = reporter.diagnostics[0]
        assert diag.position == Position(filename="src/a.py", line=1, column=0)
        assert diag.message == "LLM analysis for a.py:\ncomment on a"

    def test_sends_python_source_as_written(self, make_config) -> None:
        cfg = make_config()
        client = _mock_client("ok")
        text = "x=( 1 )  # TODO: tidy\n"
        Analyzer(cfg, client=client).run(
            [PythonSourceFile("m.py", text=text)], CollectingReporter()
        )
        client.review.assert_called_once_with(text, "m.py")

    def test_empty_commentary_reports_nothing(self, make_config) -> None:
        cfg = make_config()
        reporter = CollectingReporter()
        stats = Analyzer(cfg, client=_mock_client("")).run(
            [TextSourceFile("a.py", text="x")], reporter
        )
        assert reporter.diagnostics == []
        assert stats.reviewed == 1
        assert stats.empty_reviews == 1
        assert stats.failures == 0

    def test_failures_isolated_per_file(self, make_config) -> None:
        cfg = make_config()
        client = _mock_client(
            TransportError("failed to send request: timed out"),
            RemoteAPIError("Invalid API key", "invalid_request_error", 401),
            MalformedResponseError('{"choices": []}'),
            "fine",
        )
        files = [
            TextSourceFile("one.py", text="1"),
            _BrokenSource(),
            TextSourceFile("two.py", text="2"),
            TextSourceFile("three.py", text="3"),
            TextSourceFile("four.py", text="4"),
        ]
        reporter = CollectingReporter()
        stats = Analyzer(cfg, client=client).run(files, reporter)

        messages = [(d.position.filename, d.message) for d in reporter.diagnostics]
        assert messages == [
            ("one.py", "LLM analysis failed: failed to send request: timed out"),
            ("pkg/broken.py", "failed to get file content: pkg/broken.py: syntax error at line 1: invalid syntax"),
            ("two.py", "LLM analysis failed: API error: Invalid API key"),
            ("three.py", 'LLM analysis failed: no choices in response, response: {"choices": []}'),
            ("four.py", "LLM analysis for four.py:\nfine"),
        ]
        assert stats.content_errors == 1
        assert stats.review_errors == 3
        assert stats.reviewed == 1
        assert stats.failures == 4

    def test_order_preserved(self, make_config) -> None:
        cfg = make_config()
        client = _mock_client("c", "a", "b")
        files = [TextSourceFile(n, text=n) for n in ("c.py", "a.py", "b.py")]
        reporter = CollectingReporter()
        Analyzer(cfg, client=client).run(files, reporter)
        assert [d.position.filename for d in reporter.diagnostics] == ["c.py", "a.py", "b.py"]


class TestEndToEnd:
    def test_against_mock_endpoint(self, make_config, httpserver: HTTPServer) -> None:
        httpserver.expect_request("/v1/chat/completions", method="POST").respond_with_json(
            {"choices": [{"message": {"role": "assistant", "content": "looks fine"}}]}
        )
        cfg = make_config(api_url=httpserver.url_for("/v1/chat/completions"), file_patterns="*.py")
        reporter = CollectingReporter()
        stats = Analyzer(cfg).run(
            [TextSourceFile("x.py", text="x = 1\n"), TextSourceFile("x.txt", text="skip")],
            reporter,
        )
        assert len(httpserver.log) == 1
        assert [d.message for d in reporter.diagnostics] == ["LLM analysis for x.py:\nlooks fine"]
        assert stats.reviewed == 1

    def test_comment_reaches_request_body(self, make_config, httpserver: HTTPServer) -> None:
        httpserver.expect_request("/v1/chat/completions", method="POST").respond_with_json(
            {"choices": [{"message": {"role": "assistant", "content": ""}}]}
        )
        cfg = make_config(api_url=httpserver.url_for("/v1/chat/completions"))
        text = "# TODO: remove hardcoded password\npassword = 'hunter2'  # noqa\n"
        Analyzer(cfg).run([PythonSourceFile("secrets.py", text=text)], CollectingReporter())

        request, _ = httpserver.log[0]
        user_message = json.loads(request.get_data())["messages"][1]["content"]
        assert user_message == f"Filename: secrets.py\n\nCode:\n{text}"
