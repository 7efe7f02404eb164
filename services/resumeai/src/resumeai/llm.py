from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from openai import OpenAI, OpenAIError

from resumeai.errors import UpstreamError

ChatMessage = dict[str, str]


class LLMClient(ABC):
    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        *,
        model: str,
        temperature: float,
    ) -> str:
        """Send one chat request and return the raw completion text.

        Raises UpstreamError for transport failures, non-success responses and
        empty completions. Implementations never retry.
        """


class OpenAIChatClient(LLMClient):
    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._client: OpenAI | None = None
        self._lock = threading.Lock()

    @property
    def client(self) -> OpenAI:
        with self._lock:
            if self._client is None:
                try:
                    self._client = OpenAI(
                        api_key=self.api_key,
                        base_url=self.base_url,
                        timeout=self.timeout_seconds,
                        max_retries=0,
                    )
                except OpenAIError as exc:
                    raise UpstreamError(f"LLM client is not configured: {exc}") from exc
            return self._client

    def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        *,
        model: str,
        temperature: float,
    ) -> str:
        payload = [{"role": "system", "content": system_prompt}, *messages]
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=payload,
                temperature=temperature,
            )
        except OpenAIError as exc:
            raise UpstreamError(f"LLM request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise UpstreamError("LLM returned an empty completion")
        return content
