"""Chat-completion client that sends one file per request for review."""

from __future__ import annotations

import logging

import requests
from pydantic import ValidationError

from llmci.config import ConfigurationError, LLMCIConfig
from llmci.schemas import ChatMessage, ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

USER_PROMPT_TEMPLATE = """\
Filename: {filename}

Code:
{content}"""


class ReviewError(Exception):
    """A single review failed. Only that file is affected."""


class TransportError(ReviewError):
    pass


class ResponseDecodeError(ReviewError):
    pass


class RemoteAPIError(ReviewError):
    """The endpoint answered with an ``error`` object."""

    def __init__(self, message: str, error_type: str = "", status_code: int | None = None) -> None:
        super().__init__(f"API error: {message}")
        self.message = message
        self.error_type = error_type
        self.status_code = status_code


class MalformedResponseError(ReviewError):
    """No error was reported but there was nothing to use either."""

    def __init__(self, raw_body: str) -> None:
        super().__init__(f"no choices in response, response: {raw_body}")
        self.raw_body = raw_body


class ReviewClient:
    """Sends files to an OpenAI-compatible chat-completion endpoint.

    One POST per call, no retries: a failed call is a failed review.
    """

    def __init__(self, config: LLMCIConfig, session: requests.Session | None = None) -> None:
        token = config.api_token.get_secret_value()
        if not token:
            raise ConfigurationError(
                "API token is required. Set LLMCI_API_TOKEN env var or config api_token."
            )
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {token}",
            }
        )

    def build_request(self, content: str, filename: str) -> ChatRequest:
        return ChatRequest(
            model=self.config.model,
            messages=[
                ChatMessage(role="system", content=self.config.prompt),
                ChatMessage(
                    role="user",
                    content=USER_PROMPT_TEMPLATE.format(filename=filename, content=content),
                ),
            ],
            stream=self.config.stream,
        )

    def review(self, content: str, filename: str) -> str:
        """Return the commentary for one file.

        The returned string is the first choice's message content exactly as
        sent; it may be empty, which means there is nothing to report.

        Raises:
            TransportError: the request could not be sent or read.
            ResponseDecodeError: the body is not a chat-completion response.
            RemoteAPIError: the body carries an ``error`` object.
            MalformedResponseError: no error and no choices.
        """
        body = self.build_request(content, filename).model_dump_json()
        logger.debug("Requesting review of %s from %s (model %s)", filename, self.config.api_url, self.config.model)

        try:
            with self.session.post(
                self.config.api_url,
                data=body.encode("utf-8"),
                timeout=self.config.request_timeout,
            ) as resp:
                status = resp.status_code
                raw = resp.content
        except requests.RequestException as e:
            raise TransportError(f"failed to send request: {e}") from e

        try:
            parsed = ChatResponse.model_validate_json(raw)
        except ValidationError as e:
            raise ResponseDecodeError(
                f"failed to decode response (HTTP {status}): {e.error_count()} error(s), "
                f"body: {raw[:500].decode('utf-8', errors='replace')}"
            ) from e

        if parsed.error is not None:
            logger.debug("Endpoint returned error for %s: %s (%s)", filename, parsed.error.message, parsed.error.type)
            raise RemoteAPIError(parsed.error.message, parsed.error.type, status)

        if not parsed.choices:
            raise MalformedResponseError(raw.decode("utf-8", errors="replace"))

        return parsed.choices[0].message.content

    def close(self) -> None:
        self.session.close()


def review(content: str, filename: str, config: LLMCIConfig) -> str:
    """One-shot review using a fresh client."""
    client = ReviewClient(config)
    try:
        return client.review(content, filename)
    finally:
        client.close()
