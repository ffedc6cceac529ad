"""Shared fixtures: keep tests independent of the developer's environment."""

from __future__ import annotations

from pathlib import Path

import pytest

from llmci import config as config_module
from llmci.config import LLMCIConfig


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("LLMCI_API_TOKEN", "OPENAI_API_KEY", "LLMCI_API_URL", "LLMCI_MODEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", [tmp_path / "no-such-llmci.yaml"])


@pytest.fixture
def make_config():
    def _make(**kwargs) -> LLMCIConfig:
        kwargs.setdefault("api_token", "sk-test")
        return LLMCIConfig(**kwargs)
    return _make
