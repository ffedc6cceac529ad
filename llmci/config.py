"""Configuration loading from YAML, env vars, and CLI defaults."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

DEFAULT_CONFIG_PATHS = [
    Path("llmci.yaml"),
    Path.home() / ".llmci" / "config.yaml",
]

DEFAULT_PROMPT = (
    "Please review this source file. Point out potential problems, "
    "suggest improvements, and note any deviations from best practices."
)
DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"


class ConfigurationError(Exception):
    """Fatal for the whole run: nothing should be reviewed."""


class LLMCIConfig(BaseModel):
    """Immutable run configuration. Built once, then passed everywhere."""

    model_config = ConfigDict(frozen=True)

    file_patterns: list[str] = Field(default_factory=lambda: ["*.py"])
    prompt: str = DEFAULT_PROMPT
    api_url: str = DEFAULT_API_URL
    api_token: SecretStr = SecretStr("")
    timeout: float = Field(default=30, ge=0, description="Seconds; 0 disables the timeout.")
    enabled: bool = True
    model: str = DEFAULT_MODEL
    stream: bool = False

    @field_validator("file_patterns", mode="before")
    @classmethod
    def _split_patterns(cls, value: Any) -> Any:
        # "*.py, test_*.py" as passed on the command line
        if isinstance(value, str):
            return value.split(",")
        return value

    @property
    def request_timeout(self) -> float | None:
        return self.timeout or None


def load_config(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> LLMCIConfig:
    """Load config from YAML file, env vars, and caller overrides (in that priority)."""
    raw: dict[str, Any] = {}

    # 1. Load from YAML file
    paths_to_try = [Path(config_path)] if config_path else DEFAULT_CONFIG_PATHS
    for p in paths_to_try:
        if p.exists():
            with open(p) as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ConfigurationError(f"config file {p} must contain a mapping")
            raw = {str(k).replace("-", "_"): v for k, v in loaded.items()}
            break

    # 2. Env var overrides
    if tok := os.environ.get("LLMCI_API_TOKEN") or os.environ.get("OPENAI_API_KEY"):
        raw.setdefault("api_token", tok)
    if url := os.environ.get("LLMCI_API_URL"):
        raw["api_url"] = url
    if model := os.environ.get("LLMCI_MODEL"):
        raw["model"] = model

    # 3. Caller overrides (CLI flags)
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return LLMCIConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e
