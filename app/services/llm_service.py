"""LLM text generation with provider fallback and cost tracking."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx
from loguru import logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from app.config import settings


@dataclass
class LLMResult:
    """Structured response returned by the :class:`LLMService`."""

    provider: str
    model: str
    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost: float
    raw_response: Dict[str, Any]


class LLMProviderError(RuntimeError):
    """Raised when a provider returns an error response."""


class BaseLLMProvider(Protocol):
    """Protocol shared by provider implementations."""

    name: str

    def generate(self, messages: Sequence[Dict[str, str]], **kwargs: Any) -> LLMResult:  # pragma: no cover - interface definition
        """Generate a chat completion."""


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    logger.warning(
        "LLM request failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(outcome.exception()) if outcome else None,
    )


def _retrying(max_attempts: int, total_timeout: float) -> Retrying:
    return Retrying(
        stop=stop_after_attempt(max(1, max_attempts)) | stop_after_delay(total_timeout),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((httpx.TransportError, LLMProviderError)),
        before_sleep=_log_retry,
        reraise=True,
    )


@dataclass
class _HTTPChatProvider:
    """One chat endpoint called over httpx with bounded retries.

    ``request_timeout`` applies to each HTTP call; ``total_timeout`` stops
    further attempts once that much time has passed since the first one.
    """

    api_key: str
    model: str
    base_url: str = ""
    request_timeout: float = 15.0
    total_timeout: float = 30.0
    max_retries: int = 2
    transport: Optional[httpx.BaseTransport] = field(default=None, repr=False)

    name: ClassVar[str] = "http"
    label: ClassVar[str] = "LLM"
    COST_PER_1K_TOKENS: ClassVar[Dict[str, Dict[str, float]]] = {}

    def generate(self, messages: Sequence[Dict[str, str]], **kwargs: Any) -> LLMResult:
        for attempt in _retrying(self.max_retries, self.total_timeout):
            with attempt:
                return self._generate_once(messages, **kwargs)
        raise LLMProviderError(f"{self.label} retry loop exited without a result")  # pragma: no cover

    def _generate_once(self, messages: Sequence[Dict[str, str]], **kwargs: Any) -> LLMResult:
        path, payload, headers = self._build_request(messages, kwargs)
        with httpx.Client(
            base_url=self.base_url, timeout=self.request_timeout, transport=self.transport
        ) as client:
            response = client.post(path, json=payload, headers=headers)

        if response.status_code >= 400:
            logger.error(f"{self.label} returned error", status=response.status_code, body=response.text)
            raise LLMProviderError(f"{self.label} error {response.status_code}: {response.text}")

        data = response.json()
        content, prompt_tokens, completion_tokens, total_tokens = self._parse(data)
        if not content:
            raise LLMProviderError(f"{self.label} response did not include content")

        result = LLMResult(
            provider=self.name,
            model=payload["model"],
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            cost=self._estimate_cost(payload["model"], prompt_tokens, completion_tokens),
            raw_response=data,
        )
        logger.info(
            f"{self.label} completion success",
            model=result.model,
            tokens=result.total_tokens,
            cost=result.cost,
        )
        return result

    def _estimate_cost(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        rates = self.COST_PER_1K_TOKENS.get(model, {"prompt": 0.0, "completion": 0.0})
        return round(
            (prompt_tokens / 1000) * rates["prompt"] + (completion_tokens / 1000) * rates["completion"],
            6,
        )

    def _build_request(
        self, messages: Sequence[Dict[str, str]], kwargs: Dict[str, Any]
    ) -> Tuple[str, Dict[str, Any], Dict[str, str]]:  # pragma: no cover - overridden
        raise NotImplementedError

    def _parse(self, data: Dict[str, Any]) -> Tuple[str, int, int, int]:  # pragma: no cover - overridden
        raise NotImplementedError


@dataclass
class OpenAIProvider(_HTTPChatProvider):
    """Generate chat completions using the OpenAI API."""

    base_url: str = "https://api.openai.com/v1"

    name: ClassVar[str] = "openai"
    label: ClassVar[str] = "OpenAI"
    COST_PER_1K_TOKENS: ClassVar[Dict[str, Dict[str, float]]] = {
        "gpt-4o-mini": {"prompt": 0.0006, "completion": 0.0024},
        "gpt-4o": {"prompt": 0.01, "completion": 0.03},
        "gpt-3.5-turbo": {"prompt": 0.0005, "completion": 0.0015},
    }

    def _build_request(self, messages, kwargs):
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": list(messages),
            "temperature": kwargs.get("temperature", 0.7),
        }
        if "max_tokens" in kwargs:
            payload["max_tokens"] = kwargs["max_tokens"]
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if settings.OPENAI_ORG_ID:
            headers["OpenAI-Organization"] = settings.OPENAI_ORG_ID
        return "/chat/completions", payload, headers

    def _parse(self, data):
        choice = (data.get("choices") or [{}])[0]
        content = ((choice.get("message") or {}).get("content") or "").strip()
        usage = data.get("usage") or {}
        prompt_tokens = usage.get("prompt_tokens", 0)
        completion_tokens = usage.get("completion_tokens", 0)
        return content, prompt_tokens, completion_tokens, usage.get("total_tokens", prompt_tokens + completion_tokens)


@dataclass
class AnthropicProvider(_HTTPChatProvider):
    """Generate chat completions using the Anthropic Messages API."""

    base_url: str = "https://api.anthropic.com/v1"

    name: ClassVar[str] = "anthropic"
    label: ClassVar[str] = "Anthropic"
    COST_PER_1K_TOKENS: ClassVar[Dict[str, Dict[str, float]]] = {
        "claude-3-5-sonnet": {"prompt": 0.003, "completion": 0.015},
        "claude-3-haiku": {"prompt": 0.00025, "completion": 0.00125},
    }

    def _build_request(self, messages, kwargs):
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "max_tokens": kwargs.get("max_tokens", 512),
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "temperature": kwargs.get("temperature", 0.7),
        }
        if "system" in kwargs:
            payload["system"] = kwargs["system"]
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }
        return "/messages", payload, headers

    def _parse(self, data):
        chunks = [chunk.get("text", "") for chunk in data.get("content", []) if chunk.get("type") == "text"]
        usage = data.get("usage") or {}
        prompt_tokens = usage.get("input_tokens", 0)
        completion_tokens = usage.get("output_tokens", 0)
        return "\n".join(filter(None, chunks)).strip(), prompt_tokens, completion_tokens, prompt_tokens + completion_tokens


def _default_providers() -> List[BaseLLMProvider]:
    """Providers for every API key present in settings."""

    limits = {
        "request_timeout": settings.LLM_REQUEST_TIMEOUT_SECONDS,
        "total_timeout": settings.LLM_TOTAL_TIMEOUT_SECONDS,
        "max_retries": settings.LLM_MAX_RETRIES,
    }
    providers: List[BaseLLMProvider] = []
    if settings.OPENAI_API_KEY:
        providers.append(
            OpenAIProvider(
                api_key=settings.OPENAI_API_KEY.strip().strip("\"'"),
                model=settings.OPENAI_MODEL,
                base_url=str(settings.OPENAI_API_BASE or OpenAIProvider.base_url),
                **limits,
            )
        )
    if settings.ANTHROPIC_API_KEY:
        providers.append(
            AnthropicProvider(
                api_key=settings.ANTHROPIC_API_KEY.strip().strip("\"'"),
                model=settings.ANTHROPIC_MODEL,
                base_url=str(settings.ANTHROPIC_API_BASE or AnthropicProvider.base_url),
                **limits,
            )
        )
    return providers


class LLMService:
    """Coordinate completion requests across providers in priority order."""

    def __init__(
        self,
        providers: Optional[Sequence[BaseLLMProvider]] = None,
        primary: Optional[str] = None,
        secondary: Optional[str] = None,
    ) -> None:
        available = list(providers) if providers is not None else _default_providers()
        if not available:
            raise ValueError("LLMService requires at least one provider")

        preferred = [primary or settings.PRIMARY_LLM_PROVIDER, secondary or settings.SECONDARY_LLM_PROVIDER]
        rank = {name: index for index, name in enumerate(preferred) if name}
        # Stable sort: preferred names first, everything else in given order.
        self._provider_order = sorted(available, key=lambda p: rank.get(p.name, len(rank)))

    @property
    def provider_names(self) -> List[str]:
        return [provider.name for provider in self._provider_order]

    def generate_chat_completion(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        temperature: float = 0.7,
        max_tokens: int = 512,
        system_prompt: Optional[str] = None,
    ) -> LLMResult:
        """Try each provider in order; raise LLMProviderError if all fail."""

        errors: List[str] = []
        for provider in self._provider_order:
            options: Dict[str, Any] = {"temperature": temperature, "max_tokens": max_tokens}
            provider_messages = list(messages)
            if system_prompt and provider.name == "anthropic":
                options["system"] = system_prompt
            elif system_prompt:
                provider_messages.insert(0, {"role": "system", "content": system_prompt})
            try:
                result = provider.generate(provider_messages, **options)
            except Exception as exc:
                logger.warning("LLM provider failure", provider=provider.name, error=str(exc))
                errors.append(f"{provider.name}: {exc}")
                continue
            logger.debug("LLM provider success", provider=provider.name, tokens=result.total_tokens)
            return result
        raise LLMProviderError("; ".join(errors))

    def generate_text(
        self,
        prompt: str,
        *,
        max_tokens: int,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
    ) -> LLMResult:
        """Single-turn completion for a plain user prompt."""

        return self.generate_chat_completion(
            [{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            system_prompt=system_prompt,
        )


__all__ = [
    "AnthropicProvider",
    "LLMProviderError",
    "LLMResult",
    "LLMService",
    "OpenAIProvider",
]
