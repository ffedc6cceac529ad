"""Data models for llmci."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Chat-completion wire format
# ---------------------------------------------------------------------------

class ChatMessage(BaseModel):
    role: str = ""
    content: str = ""

    @field_validator("role", "content", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ChatRequest(BaseModel):
    model: str
    messages: list[ChatMessage]
    stream: bool = False


class Choice(BaseModel):
    message: ChatMessage


class APIErrorDetail(BaseModel):
    message: str = ""
    type: str = ""

    @field_validator("message", "type", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ChatResponse(BaseModel):
    """Either shape the endpoint may send back.

    ``error`` wins over ``choices`` whenever it is present, whatever the
    HTTP status was.
    """

    choices: list[Choice] = Field(default_factory=list)
    error: APIErrorDetail | None = None

    @field_validator("choices", mode="before")
    @classmethod
    def _null_choices(cls, value: Any) -> Any:
        return [] if value is None else value


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

class Position(BaseModel):
    filename: str
    line: int = 1
    column: int = 0

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


class Diagnostic(BaseModel):
    position: Position
    message: str
