# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKS_AI_APP_NAME": "App display name (default: tasks.ai).",
    "TASKS_AI_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "TASKS_AI_DATA_DIR": "Local data directory (default: .local/tasks_ai).",
    "TASKS_AI_SNAPSHOT_PATH": "Task snapshot JSON path (default: <data_dir>/tasks.json).",
    "TASKS_AI_AUTOSAVE": "Save the snapshot after every change (default: true).",
    # LLM / OpenRouter
    "TASKS_AI_OPENROUTER_API_KEY": "OpenRouter API key (OPENROUTER_API_KEY is accepted too).",
    "TASKS_AI_OPENROUTER_BASE_URL": "OpenAI-compatible base URL (default: https://openrouter.ai/api/v1).",
    "TASKS_AI_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "TASKS_AI_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "TASKS_AI_APP_TITLE": "Optional OpenRouter metadata header title.",
    "TASKS_AI_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "TASKS_AI_LLM_READ_TIMEOUT_SECONDS": "Read timeout (default: 30).",
    # Decomposition
    "TASKS_AI_SUBTASKS_MAX": "Keep at most this many subtasks from a model reply (default: 5).",
    "TASKS_AI_OFFLINE_DEMO": "Without an API key, use canned demo subtasks (default: true).",
    "TASKS_AI_OFFLINE_DELAY_SECONDS": "Artificial delay of the demo decomposer (default: 1).",
}
