# src/tasks_ai/llm/client.py

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from .parsing import parse_subtask_list

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are a planning assistant inside a personal to-do app.

Break the user's task into 3 to 5 concrete, actionable subtasks.

Rules:
- Keep each subtask concise (a short imperative phrase).
- Keep them in a sensible order.
- Reply with a JSON array of strings only. No prose, no markdown, no numbering.
""".strip()


def _build_user_prompt(task_text: str) -> str:
    return (
        "Break down the following task into 3 to 5 concrete, actionable subtasks. "
        f'Keep them concise. Task: "{task_text}"'
    )


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {
        "AuthenticationError",
        "PermissionDeniedError",
        "UnauthorizedError",
    }


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"RateLimitError", "TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, httpx.TimeoutException)):
        return True
    return exc.__class__.__name__ in {
        "APIConnectionError",
        "APITimeoutError",
        "Timeout",
        "ConnectTimeout",
        "ReadTimeout",
        "WriteTimeout",
    }


def _is_not_found_error(exc: Exception) -> bool:
    # OpenAI-compatible SDK uses NotFoundError for HTTP 404 (unknown / retired model)
    if isinstance(exc, openai.NotFoundError):
        return True
    return exc.__class__.__name__ in {"NotFoundError"}


def friendly_llm_error_message(err: Exception) -> str:
    msg = str(err).strip() or "LLM error."
    if "LLM API key is not set" in msg:
        return "LLM is not configured (missing API key). Set TASKS_AI_OPENROUTER_API_KEY in .env."
    if "LLM model list is empty" in msg:
        return "LLM is not configured (no models). Set TASKS_AI_LLM_MODELS in .env."
    if "LLM base URL is not set" in msg:
        return "LLM is not configured (missing base URL). Set TASKS_AI_OPENROUTER_BASE_URL in .env."
    return msg


def _message_content(resp: Any) -> str:
    try:
        return resp.choices[0].message.content or ""
    except (AttributeError, IndexError, TypeError):
        return ""


class OpenRouterDecomposer:
    """
    Decomposer backed by an OpenAI-compatible chat completion API (OpenRouter by default).

    Behavior:
    - Tries models in the order from settings (TASKS_AI_LLM_MODELS).
    - 404 (model not available) -> bench the model for an hour, try next.
    - Rate limit / network / timeout / unusable output -> try next.
    - Auth issues -> fail fast (no retries across models).
    - Missing API key is reported when decompose() is called, not at construction,
      so the app starts fine and a "break down" simply fails with a notice.
    """

    def __init__(self, settings: Any, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

    def _get_client(self) -> AsyncOpenAI:
        """
        Lazily create and cache the client.

        Automatic retries are disabled to allow quick fallback across models.
        """
        if self._client is not None:
            return self._client

        s = self._settings
        api_key = getattr(s, "openrouter_api_key", None)
        base_url = getattr(s, "openrouter_base_url", "") or ""

        if not api_key or not str(api_key).strip():
            raise RuntimeError("LLM API key is not set. Set TASKS_AI_OPENROUTER_API_KEY in your .env.")
        if not base_url.strip():
            raise RuntimeError("LLM base URL is not set. Set TASKS_AI_OPENROUTER_BASE_URL in your .env.")

        self._client = AsyncOpenAI(
            base_url=str(base_url),
            api_key=str(api_key),
            timeout=self._timeout(),
            max_retries=0,
        )
        return self._client

    def _timeout(self) -> httpx.Timeout:
        connect_s = float(getattr(self._settings, "llm_connect_timeout", 5.0))
        read_s = float(getattr(self._settings, "llm_read_timeout", 30.0))
        return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)

    async def decompose(self, task_text: str) -> list[str]:
        models: List[str] = list(getattr(self._settings, "llm_models", []) or [])
        headers: Dict[str, str] = dict(getattr(self._settings, "extra_headers", {}) or {})
        max_items = int(getattr(self._settings, "subtasks_max", 5))

        if not models:
            raise RuntimeError("LLM model list is empty. Set TASKS_AI_LLM_MODELS in your .env.")

        client = self._get_client()
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": _build_user_prompt(task_text)},
        ]

        last_error: Optional[Exception] = None
        now = time.monotonic()

        for model in models:
            model = (model or "").strip()
            if not model:
                continue

            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", model)
            t0 = time.monotonic()

            try:
                resp = await client.chat.completions.create(
                    model=model,
                    messages=messages,
                    extra_headers=headers or None,
                )
                items = parse_subtask_list(_message_content(resp), max_items=max_items)
                logger.info("LLM: %d subtasks from model=%s (%.2fs)", len(items), model, time.monotonic() - t0)
                return items

            except ValueError as e:
                last_error = e
                logger.info("LLM: unusable output from model=%s (%s), trying next", model, e)
                continue

            except Exception as e:
                last_error = e

                if _is_auth_error(e):
                    raise RuntimeError(
                        "LLM authentication failed. Check your API key (TASKS_AI_OPENROUTER_API_KEY)."
                    ) from e

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + 3600.0  # 1 hour
                    logger.info("LLM: model not available (404): %s", model)
                    continue

                if _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    continue

                if _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    continue

                logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                continue

        if last_error is not None:
            if _is_rate_limit_error(last_error):
                raise RuntimeError("LLM is rate-limited. Try again later.") from last_error
            if _is_connection_error(last_error):
                raise RuntimeError("LLM network/timeout error. Try again later or change models.") from last_error
            raise RuntimeError("All LLM models failed.") from last_error

        raise RuntimeError("All LLM models failed.")
