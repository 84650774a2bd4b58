"""Configuration helpers for environment variables."""

from __future__ import annotations

import os
import logging

from dotenv import load_dotenv


logger = logging.getLogger(__name__)


_TRUE_VALUES = {"1", "true", "yes"}
_DEFAULT_POOL_MIN_SIZE = 1
_DEFAULT_POOL_MAX_SIZE = 10
_DEFAULT_COMMAND_TIMEOUT_SECONDS = 10.0


def _should_load_dotenv() -> bool:
    """Return whether local dotenv loading should run."""
    app_env = os.getenv("APP_ENV", "dev").strip().lower()
    return app_env in {"dev", "local"}


if _should_load_dotenv():
    load_dotenv()


def get_env(name: str, default: str | None = None) -> str | None:
    """Return a raw environment value or default."""
    return os.getenv(name, default)


def _get_positive_int(name: str, default: int) -> int:
    raw_value = (get_env(name, "") or "").strip()
    if not raw_value:
        return default
    try:
        value = int(raw_value)
    except ValueError:
        logger.warning("config_invalid_int name=%s value=%r default=%s", name, raw_value, default)
        return default
    if value < 1:
        logger.warning("config_invalid_int name=%s value=%r default=%s", name, raw_value, default)
        return default
    return value


def app_env() -> str:
    """Return the current application environment."""
    return (get_env("APP_ENV", "dev") or "dev").strip() or "dev"


def is_dev_env() -> bool:
    """Return whether the app runs in a local or test-like environment."""
    return app_env().strip().lower() in {"dev", "local", "test", "ci"}


def cors_allow_origins() -> list[str]:
    """Return CORS allowed origins from env with safe environment defaults."""
    raw_origins = get_env("CORS_ALLOW_ORIGINS", "") or ""
    parsed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]

    if parsed_origins:
        return parsed_origins

    if app_env().strip().lower() in {"dev", "local"}:
        return ["http://localhost:8080", "http://127.0.0.1:8080"]

    ui_origin = (get_env("UI_ORIGIN", "") or "").strip()
    if ui_origin:
        return [ui_origin]

    logger.warning(
        "cors_allow_origins_empty_in_prod app_env=%s; define CORS_ALLOW_ORIGINS or UI_ORIGIN",
        app_env(),
    )

    return []


def supabase_url() -> str | None:
    """Return Supabase URL when configured."""
    return get_env("SUPABASE_URL")


def supabase_anon_key() -> str | None:
    """Return Supabase anon key when configured."""
    return get_env("SUPABASE_ANON_KEY")


def database_url() -> str | None:
    """Return the PostgreSQL DSN when configured."""
    value = (get_env("DATABASE_URL", "") or "").strip()
    return value or None


def database_pool_min_size() -> int:
    return _get_positive_int("DATABASE_POOL_MIN_SIZE", _DEFAULT_POOL_MIN_SIZE)


def database_pool_max_size() -> int:
    return _get_positive_int("DATABASE_POOL_MAX_SIZE", _DEFAULT_POOL_MAX_SIZE)


def database_command_timeout() -> float:
    """Return the per-statement timeout in seconds."""
    raw_value = (get_env("DATABASE_COMMAND_TIMEOUT", "") or "").strip()
    if not raw_value:
        return _DEFAULT_COMMAND_TIMEOUT_SECONDS
    try:
        value = float(raw_value)
    except ValueError:
        value = 0.0
    if value <= 0:
        logger.warning(
            "config_invalid_timeout value=%r default=%s",
            raw_value,
            _DEFAULT_COMMAND_TIMEOUT_SECONDS,
        )
        return _DEFAULT_COMMAND_TIMEOUT_SECONDS
    return value


def database_auto_create_schema() -> bool:
    """Return whether the transactions table is created on startup."""
    raw_value = get_env("DATABASE_AUTO_CREATE_SCHEMA", "") or ""
    return raw_value.strip().lower() in _TRUE_VALUES


def log_level() -> str:
    """Return the root log level name, defaulting to INFO."""
    value = (get_env("LOG_LEVEL", "INFO") or "INFO").strip().upper()
    if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return "INFO"
    return value


def server_host() -> str:
    return (get_env("HOST", "0.0.0.0") or "0.0.0.0").strip() or "0.0.0.0"  # nosec B104


def server_port() -> int:
    """Return the HTTP port, defaulting to 8080."""
    return _get_positive_int("PORT", 8080)
