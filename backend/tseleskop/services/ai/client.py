"""Chat-completion client for the DeepSeek-compatible endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import List, Optional, Sequence

import httpx
import openai

from tseleskop.core.config import Settings
from tseleskop.observability.metrics import log_metric
from tseleskop.observability.tracing import trace
from tseleskop.services.ai.errors import ConfigurationError, TransportError, UpstreamError
from tseleskop.services.ai.types import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_MODEL = "deepseek-chat"
DEFAULT_TEMPERATURE = 0.3


@dataclass(frozen=True)
class AIConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("DEEPSEEK_API_KEY is not set")

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIConfig":
        return cls(
            api_key=settings.deepseek_api_key or "",
            base_url=settings.deepseek_api_base or DEFAULT_BASE_URL,
            model=settings.deepseek_model or DEFAULT_MODEL,
        )


class CompletionClient:
    """One request, one response. No retries, caching or rate limiting."""

    def __init__(self, config: AIConfig, *, http_client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._client = openai.OpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=0,
            http_client=http_client,
        )

    def complete(self, messages: Sequence[ChatMessage], system_prompt: Optional[str] = None) -> str:
        """Return the first choice's content, or "" when the response has an unexpected shape."""
        payload: List[dict] = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})
        payload.extend({"role": message.role, "content": message.content} for message in messages)

        last_user = next((m["content"] for m in reversed(payload) if m["role"] == "user"), "")
        metadata = {
            "model": self.config.model,
            "message_count": len(payload),
            "llm_input_text": last_user[:500],
        }
        start = perf_counter()
        with trace("ai.completion", metadata=metadata) as completion_trace:
            try:
                completion = self._client.chat.completions.create(
                    model=self.config.model,
                    messages=payload,
                    temperature=self.config.temperature,
                )
            except openai.APIStatusError as exc:
                body = _response_text(exc)
                logger.warning("Completion endpoint returned %s: %s", exc.status_code, body[:300])
                log_metric("ai.completion.upstream_error", 1, metadata={"status": exc.status_code})
                raise UpstreamError(exc.status_code, body) from exc
            except openai.APIConnectionError as exc:
                logger.warning("Completion endpoint unreachable: %s", exc)
                log_metric("ai.completion.transport_error", 1)
                raise TransportError(str(exc)) from exc

            content = _first_choice_content(completion)
            if completion_trace:
                completion_trace.update(output={"llm_output_text": content[:500]})

        duration_ms = (perf_counter() - start) * 1000
        logger.info("Completion finished in %.0f ms (%d chars)", duration_ms, len(content))
        log_metric("ai.completion.duration_ms", duration_ms, metadata={"model": self.config.model})
        return content


def _first_choice_content(completion: object) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content if isinstance(content, str) else ""


def _response_text(exc: openai.APIStatusError) -> str:
    try:
        return exc.response.text
    except Exception:  # pragma: no cover - streamed or closed bodies
        return str(exc.body or "")
