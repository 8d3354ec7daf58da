"""Chat-completion calls against an OpenAI-compatible endpoint."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import openai
from openai import OpenAI

from .config import config
from .errors import CompletionError, CompletionTimeoutError

if TYPE_CHECKING:
    import httpx

    from .models import PromptMessage

logger = config.get_logger(__name__)


class CompletionClient:
    """Sends assembled prompts to the chat-completion endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the CompletionClient.

        Retries are disabled: a failed call is terminal for the turn.

        Args:
            api_key: Bearer token. If None, reads LLM_API_KEY.
            base_url: Endpoint base URL. If None, uses config.LLM_BASE_URL.
            model: Default model name. If None, uses config.CHAT_MODEL.
            http_client: Optional httpx client passed to the OpenAI SDK.
        """
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key or config.get_llm_api_key(),
            base_url=base_url or config.LLM_BASE_URL or None,
            default_headers=default_headers or None,
            max_retries=0,
            http_client=http_client,
        )
        self.model = model or config.CHAT_MODEL

    def complete(
        self,
        messages: Sequence[PromptMessage],
        model: str | None = None,
        max_tokens: int | None = None,
        timeout_ms: int | None = None,
    ) -> str:
        """Get a completion for the given messages.

        The request is aborted by the transport once ``timeout_ms`` elapses.

        Args:
            messages: Full prompt, system message first.
            model: Model override. If None, uses the client default.
            max_tokens: Response cap. If None, uses config.CHAT_MAX_TOKENS.
            timeout_ms: Timeout in milliseconds. If None, uses
                config.CHAT_TIMEOUT_MS.

        Returns:
            The assistant message content, or an empty string if none.

        Raises:
            CompletionTimeoutError: If the call did not finish in time.
            CompletionError: On a non-success status or connection failure.
        """
        model = model or self.model
        max_tokens = max_tokens or config.CHAT_MAX_TOKENS
        timeout_ms = timeout_ms or config.CHAT_TIMEOUT_MS

        logger.info(
            "Sending %d messages to %s (max_tokens=%d)",
            len(messages),
            model,
            max_tokens,
        )
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=list(messages),
                max_tokens=max_tokens,
                timeout=timeout_ms / 1000,
            )
        except openai.APITimeoutError as e:
            logger.exception("Completion timed out after %d ms", timeout_ms)
            msg = f"Completion timed out after {timeout_ms} ms"
            raise CompletionTimeoutError(msg) from e
        except openai.APIStatusError as e:
            body = e.response.text
            logger.exception("Completion API error: %s", e.status_code)
            msg = f"Completion API error: {e.status_code} - {body}"
            raise CompletionError(msg, status_code=e.status_code, body=body) from e
        except openai.APIConnectionError as e:
            logger.exception("Completion API unreachable")
            msg = f"Completion API unreachable: {e}"
            raise CompletionError(msg) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
