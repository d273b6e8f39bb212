"""OpenAI chat-completions wrapper.

Every provider failure (timeout, connection error, non-2xx status, empty
completion) is raised as ProviderError. The SDK's automatic retries are
turned off; retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Protocol, Sequence

from openai import OpenAI, OpenAIError

from config import OPENAI_API_KEY, OPENAI_TIMEOUT_SECONDS

from .errors import ProviderError

logger = logging.getLogger(__name__)

Message = dict[str, str]


class Completer(Protocol):
    """Anything that turns an ordered message list into completion text."""

    def complete(
        self,
        messages: Sequence[Message],
        *,
        model: str,
        temperature: float,
        json_mode: bool = False,
    ) -> str: ...


class LLMService:
    def __init__(
        self,
        *,
        api_key: str | None = None,
        timeout_s: float | None = None,
        client: Any = None,
    ) -> None:
        self._api_key = OPENAI_API_KEY if api_key is None else api_key
        self._timeout_s = OPENAI_TIMEOUT_SECONDS if timeout_s is None else float(timeout_s)
        self._client = client
        self._client_lock = threading.Lock()

    def _get_client(self) -> Any:
        # Built lazily so the app can start without an API key.
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    if not self._api_key:
                        raise ProviderError("OpenAI API key not configured. Set OPENAI_API_KEY.")
                    self._client = OpenAI(
                        api_key=self._api_key,
                        timeout=self._timeout_s,
                        max_retries=0,
                    )
        return self._client

    def complete(
        self,
        messages: Sequence[Message],
        *,
        model: str,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        client = self._get_client()
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [dict(m) for m in messages],
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        logger.info("LLM call model=%s messages=%d json_mode=%s", model, len(messages), json_mode)
        try:
            completion = client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.warning("LLM call failed (model=%s): %s", model, e)
            raise ProviderError(str(e) or e.__class__.__name__) from e

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise ProviderError("LLM returned an empty completion")
        return content
