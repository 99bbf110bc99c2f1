# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "MOMENTUM_APP_NAME": "App display name (default: momentum).",
    "MOMENTUM_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # LLM / OpenRouter
    "MOMENTUM_OFFLINE": "Force the offline demo LLM client (true/false).",
    "MOMENTUM_OPENROUTER_API_KEY": "OpenRouter API key (OPENROUTER_API_KEY is accepted too). Without it the app runs offline.",
    "MOMENTUM_OPENROUTER_BASE_URL": "OpenAI-compatible base URL (default: https://openrouter.ai/api/v1).",
    "MOMENTUM_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "MOMENTUM_LLM_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "MOMENTUM_LLM_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 30).",
    "MOMENTUM_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "MOMENTUM_APP_TITLE": "Optional OpenRouter metadata header title.",
    # Paths (gitignored)
    "MOMENTUM_DATA_DIR": "Local data directory for the task file and logs (default: .local/momentum).",
    "MOMENTUM_TASKS_PATH": "JSON task store path (default: <data_dir>/tasks.json).",
}
