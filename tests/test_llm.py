# tests/test_llm.py

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from tasks_ai.llm.client import OpenRouterDecomposer, friendly_llm_error_message
from tasks_ai.llm.offline import OfflineDecomposer
from tasks_ai.llm.parsing import parse_subtask_list


def test_parse_plain_array() -> None:
    assert parse_subtask_list('["Book flights", " Reserve hotel ", "Pack bags"]') == [
        "Book flights",
        "Reserve hotel",
        "Pack bags",
    ]


def test_parse_fenced_object_and_truncation() -> None:
    raw = '```json\n{"subtasks": ["a", "", 3, "b", "c", "d", "e", "f"]}\n```'
    assert parse_subtask_list(raw, max_items=5) == ["a", "b", "c", "d", "e"]


def test_parse_array_inside_prose() -> None:
    assert parse_subtask_list('Sure! Here you go: ["a", "b"] Hope it helps.') == ["a", "b"]


@pytest.mark.parametrize("raw", [None, "", "no json here", "[]", '["", "  "]', '{"steps": ["a"]}', "42"])
def test_parse_rejects_unusable_output(raw) -> None:
    with pytest.raises(ValueError):
        parse_subtask_list(raw)


def _resp(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class _FakeCompletions:
    """Scripted stand-in for client.chat.completions (async create)."""

    def __init__(self, script: dict[str, object]) -> None:
        self.script = script
        self.models: list[str] = []

    async def create(self, *, model: str, messages, extra_headers=None):
        self.models.append(model)
        result = self.script[model]
        if isinstance(result, Exception):
            raise result
        return result


def _client(script: dict[str, object]) -> tuple[SimpleNamespace, _FakeCompletions]:
    completions = _FakeCompletions(script)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


_REQ = httpx.Request("POST", "https://llm.invalid/api/v1/chat/completions")


def _status_error(cls, status: int):
    return cls("err", response=httpx.Response(status, request=_REQ), body=None)


@pytest.mark.asyncio
async def test_decomposer_falls_back_across_models(settings) -> None:
    settings.llm_models = ["gone", "limited", "chatty", "good"]
    client, completions = _client(
        {
            "gone": _status_error(openai.NotFoundError, 404),
            "limited": _status_error(openai.RateLimitError, 429),
            "chatty": _resp("I can't do JSON today"),
            "good": _resp('["a", "b", "c"]'),
        }
    )
    dec = OpenRouterDecomposer(settings, client=client)  # type: ignore[arg-type]

    assert await dec.decompose("Plan trip") == ["a", "b", "c"]
    assert completions.models == ["gone", "limited", "chatty", "good"]

    # the 404 model is benched on the next call
    completions.models.clear()
    assert await dec.decompose("Plan trip") == ["a", "b", "c"]
    assert "gone" not in completions.models


@pytest.mark.asyncio
async def test_decomposer_fails_fast_on_auth(settings) -> None:
    client, completions = _client(
        {
            "model-a": _status_error(openai.AuthenticationError, 401),
            "model-b": _resp('["a"]'),
        }
    )
    dec = OpenRouterDecomposer(settings, client=client)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError, match="authentication"):
        await dec.decompose("x")
    assert completions.models == ["model-a"]


@pytest.mark.asyncio
async def test_decomposer_all_models_fail(settings) -> None:
    client, _ = _client(
        {
            "model-a": openai.APIConnectionError(request=_REQ),
            "model-b": openai.APIConnectionError(request=_REQ),
        }
    )
    dec = OpenRouterDecomposer(settings, client=client)  # type: ignore[arg-type]

    with pytest.raises(RuntimeError, match="network"):
        await dec.decompose("x")


@pytest.mark.asyncio
async def test_decomposer_without_api_key(settings) -> None:
    settings.openrouter_api_key = None
    dec = OpenRouterDecomposer(settings)

    with pytest.raises(RuntimeError) as exc:
        await dec.decompose("x")
    assert "missing API key" in friendly_llm_error_message(exc.value)


@pytest.mark.asyncio
async def test_offline_decomposer_is_deterministic() -> None:
    dec = OfflineDecomposer(delay_seconds=0)
    assert await dec.decompose("taxes") == [
        "Research taxes",
        "Draft outline for taxes",
        "Review and finalize taxes",
    ]
