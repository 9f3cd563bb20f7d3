# src/tasks_ai/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Bad values never crash startup; they fall back to defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

ENV_PREFIX = "TASKS_AI"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    snapshot_path: Path
    autosave: bool

    # ---- LLM / OpenRouter ----
    openrouter_api_key: Optional[str]
    openrouter_base_url: str
    llm_models: List[str]
    extra_headers: Dict[str, str]
    llm_connect_timeout: float
    llm_read_timeout: float

    # ---- Decomposition ----
    subtasks_max: int
    offline_demo: bool
    offline_delay_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="tasks.ai") or "tasks.ai"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasks_ai"))
        snapshot_path = _env_path(_k("SNAPSHOT_PATH"), data_dir / "tasks.json")
        autosave = _env_bool(_k("AUTOSAVE"), True)

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        title = _env(_k("APP_TITLE"), app_name)

        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": title,
        }

        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "google/gemini-2.0-flash-exp:free",
                "qwen/qwen-2.5-72b-instruct:free",
                "deepseek/deepseek-chat-v3-0324:free",
            ],
        )

        # keep read >= connect as a sane baseline
        llm_connect_timeout = max(0.5, _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0))
        llm_read_timeout = max(llm_connect_timeout, _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 30.0))

        subtasks_max = max(1, _env_int(_k("SUBTASKS_MAX"), 5))
        offline_demo = _env_bool(_k("OFFLINE_DEMO"), True)
        offline_delay_seconds = max(0.0, _env_float(_k("OFFLINE_DELAY_SECONDS"), 1.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            snapshot_path=snapshot_path,
            autosave=autosave,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            llm_connect_timeout=llm_connect_timeout,
            llm_read_timeout=llm_read_timeout,
            subtasks_max=subtasks_max,
            offline_demo=offline_demo,
            offline_delay_seconds=offline_delay_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
