import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()
LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "o4-mini"
DEFAULT_PORT = 5002
DEFAULT_TIMEOUT_SECONDS = 45.0
DEFAULT_MAX_COMPLETION_TOKENS = 1500
DEFAULT_SESSION_RETENTION_SECONDS = 60 * 60
DEFAULT_SESSION_SWEEP_INTERVAL_SECONDS = 10 * 60
DEFAULT_ALLOWED_ORIGINS = ("http://localhost:3000",)

# Any local or LAN origin is accepted while developing against the UI.
DEVELOPMENT_ORIGIN_REGEX = r"^http://(localhost|127\.0\.0\.1|192\.168\.\d+\.\d+):\d+$"


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None = None
    openai_model: str = DEFAULT_MODEL
    openai_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    openai_max_completion_tokens: int = DEFAULT_MAX_COMPLETION_TOKENS
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    app_env: str = "development"
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    session_retention_seconds: float = DEFAULT_SESSION_RETENTION_SECONDS
    session_sweep_interval_seconds: float = DEFAULT_SESSION_SWEEP_INTERVAL_SECONDS
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.app_env in {"development", "dev", "local"}

    @property
    def api_key_configured(self) -> bool:
        return bool(self.openai_api_key)


def load_settings() -> Settings:
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip() or None,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
        openai_timeout_seconds=_env_float("OPENAI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        openai_max_completion_tokens=_env_int("OPENAI_MAX_COMPLETION_TOKENS", DEFAULT_MAX_COMPLETION_TOKENS),
        host=os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0",
        port=_env_int("PORT", DEFAULT_PORT),
        app_env=os.getenv("APP_ENV", "development").strip().lower() or "development",
        allowed_origins=_env_origins("CORS_ALLOWED_ORIGINS"),
        session_retention_seconds=_env_float("SESSION_RETENTION_SECONDS", DEFAULT_SESSION_RETENTION_SECONDS),
        session_sweep_interval_seconds=_env_float(
            "SESSION_SWEEP_INTERVAL_SECONDS",
            DEFAULT_SESSION_SWEEP_INTERVAL_SECONDS,
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        LOGGER.warning("Ignoring non-positive %s=%r, using %s", name, raw, default)
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return float(default)
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return float(default)
    if value <= 0:
        LOGGER.warning("Ignoring non-positive %s=%r, using %s", name, raw, default)
        return float(default)
    return value


def _env_origins(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    origins = tuple(item.strip().rstrip("/") for item in raw.split(",") if item.strip())
    return origins or DEFAULT_ALLOWED_ORIGINS
