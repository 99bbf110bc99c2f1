# src/momentum/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import openai
from openai import OpenAI

from ..config import Settings
from ..core.ports import ChatMessage

logger = logging.getLogger(__name__)

_BAD_MODEL_PARK_SECONDS = 3600.0


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, httpx.TimeoutException)):
        return True
    return exc.__class__.__name__ in {"Timeout", "ConnectTimeout", "ReadTimeout", "WriteTimeout"}


def _is_not_found_error(exc: Exception) -> bool:
    # OpenAI-compatible SDK uses NotFoundError for HTTP 404 (unknown model)
    return isinstance(exc, openai.NotFoundError)


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return "LLM is not configured (missing API key). Set MOMENTUM_OPENROUTER_API_KEY in .env."
    if "LLM model list is empty" in msg:
        return "LLM is not configured (no models). Set MOMENTUM_LLM_MODELS in .env."
    if "LLM base URL is not set" in msg:
        return "LLM is not configured (missing base URL). Set MOMENTUM_OPENROUTER_BASE_URL in .env."
    return msg


class OpenRouterLLMClient:
    """
    OpenAI-compatible chat completion client with ordered model fallback.

    Behavior:
    - Tries models in the order from settings (MOMENTUM_LLM_MODELS).
    - 404 (model not available) -> park the model for an hour, try next.
    - Rate limit / network issues -> try next.
    - Auth issues -> fail fast (no retries across models).
    """

    def __init__(self, settings: Settings, *, client: OpenAI | None = None) -> None:
        api_key = (settings.openrouter_api_key or "").strip()
        base_url = (settings.openrouter_base_url or "").strip()

        if not api_key:
            raise RuntimeError("LLM API key is not set. Set MOMENTUM_OPENROUTER_API_KEY in your .env.")
        if not base_url:
            raise RuntimeError("LLM base URL is not set. Set MOMENTUM_OPENROUTER_BASE_URL in your .env.")

        self._models = [m.strip() for m in settings.llm_models if m and m.strip()]
        self._headers = dict(settings.extra_headers)
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

        if client is None:
            # Automatic retries are disabled to allow quick fallback across models.
            client = OpenAI(
                base_url=base_url,
                api_key=api_key,
                timeout=httpx.Timeout(
                    connect=settings.llm_connect_timeout,
                    read=settings.llm_read_timeout,
                    write=10.0,
                    pool=settings.llm_connect_timeout,
                ),
                max_retries=0,
            )
        self._client = client

    def _create(self, model: str, messages: list[ChatMessage]) -> Any:
        return self._client.chat.completions.create(
            model=model,
            extra_headers=self._headers or None,
            messages=messages,  # type: ignore[arg-type]
        )

    def complete(self, messages: list[ChatMessage], system_prompt: str) -> str:
        if not self._models:
            raise RuntimeError("LLM model list is empty. Set MOMENTUM_LLM_MODELS in your .env.")

        full_messages: list[ChatMessage] = [{"role": "system", "content": system_prompt}, *messages]
        last_error: Exception | None = None
        now = time.monotonic()

        for model in self._models:
            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", model)
            t0 = time.monotonic()
            try:
                response = self._create(model, full_messages)
            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise RuntimeError(
                        "LLM authentication failed. Check your API key (MOMENTUM_OPENROUTER_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + _BAD_MODEL_PARK_SECONDS
                    logger.info("LLM: model not available (404): %s", model)
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

            try:
                content = response.choices[0].message.content
            except (AttributeError, IndexError):
                content = None

            if content and content.strip():
                logger.info("LLM: reply from model=%s (%.2fs)", model, time.monotonic() - t0)
                return content

            last_error = RuntimeError(f"Model returned no content: {model}")
            logger.info("LLM: empty reply from model=%s, trying next", model)

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error

        raise RuntimeError("All LLM models failed.")
