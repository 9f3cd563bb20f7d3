# src/tasks_ai/llm/parsing.py

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _strip_fence(raw: str) -> str:
    s = raw.strip()
    m = _FENCE_RE.match(s)
    return m.group(1).strip() if m else s


def parse_subtask_list(raw: str | None, *, max_items: int = 5) -> list[str]:
    """
    Parse model output into subtask texts.

    Accepted shapes:
    - a JSON array of strings: ["a", "b"]
    - the same wrapped in a ```json fence
    - an object with a "subtasks" array: {"subtasks": [...]}

    Items are stripped; blanks and non-strings are dropped; the result is
    truncated to max_items. Raises ValueError if nothing usable is left.
    """
    if not raw or not raw.strip():
        raise ValueError("empty model output")

    text = _strip_fence(raw)
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError:
        # Some models add a sentence around the array; take the outermost [...] span.
        start, end = text.find("["), text.rfind("]")
        if start == -1 or end <= start:
            raise ValueError("model output is not JSON") from None
        try:
            data = json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            raise ValueError("model output is not JSON") from e

    if isinstance(data, dict):
        data = data.get("subtasks")
    if not isinstance(data, list):
        raise ValueError("model output is not a JSON array")

    items = [item.strip() for item in data if isinstance(item, str) and item.strip()]
    if not items:
        raise ValueError("model returned no subtasks")
    return items[: max(1, int(max_items))]
