"""Configuration and shared state."""

__version__ = "0.1.0"

import os
import sys
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, float(default)))


SUPPORTED_AI_PROVIDERS = ("openai", "claude")
AI_PROVIDER = os.getenv("AI_PROVIDER", "openai").strip().lower()
if AI_PROVIDER not in SUPPORTED_AI_PROVIDERS:
    _stderr_print(f"Unsupported AI_PROVIDER={AI_PROVIDER!r}, falling back to 'openai'")
    AI_PROVIDER = "openai"

CONFIG = {
    "port": _env_int("PORT", 3001),
    "storage_dir": os.getenv("STORAGE_DIR", "memory"),
    "ai_provider": AI_PROVIDER,
    # Engine
    "trigger_cooldown_seconds": _env_float("TRIGGER_COOLDOWN_SECONDS", 60.0),
    "event_lookback_seconds": _env_float("EVENT_LOOKBACK_SECONDS", 30.0),
    "level_pause_seconds": _env_float("LEVEL_PAUSE_SECONDS", 0.5),
    "dispatch_timeout_seconds": _env_float("DISPATCH_TIMEOUT_SECONDS", 30.0),
    "dispatch_retries": _env_int("DISPATCH_RETRIES", 1),
    "event_history_limit": _env_int("EVENT_HISTORY_LIMIT", 100),
    "event_queue_size": _env_int("EVENT_QUEUE_SIZE", 100),
    # Semantic oracle
    "openai_api_key": os.getenv("OPENAI_API_KEY", ""),
    "oracle_model": os.getenv("ORACLE_MODEL", "gpt-4o-mini"),
    "oracle_timeout_seconds": _env_float("ORACLE_TIMEOUT_SECONDS", 15.0),
    "oracle_limits": {
        "max_calls_per_minute": _env_int("ORACLE_MAX_CALLS_PER_MINUTE", 12),
        "min_call_interval_seconds": _env_float("ORACLE_MIN_CALL_INTERVAL_SECONDS", 0.0),
        "paused": False,
    },
    # Gmail (OAuth handled by the email backend)
    "email_backend_url": os.getenv("EMAIL_BACKEND_URL", "http://localhost:3001"),
    # Slack
    "slack_webhook_url": os.getenv("SLACK_WEBHOOK_URL", ""),
    # Twilio
    "twilio_account_sid": os.getenv("TWILIO_ACCOUNT_SID", ""),
    "twilio_auth_token": os.getenv("TWILIO_AUTH_TOKEN", ""),
    "twilio_phone_number": os.getenv("TWILIO_PHONE_NUMBER", ""),
    # VAPI voice calls
    "vapi_private_key": os.getenv("VAPI_PRIVATE_KEY", ""),
    "vapi_phone_number_id": os.getenv("VAPI_PHONE_NUMBER_ID", ""),
    "vapi_assistant_id": os.getenv("VAPI_ASSISTANT_ID", ""),
    # Screenshots
    "screenshot_dir": os.getenv("SCREENSHOT_DIR", "memory/screenshots"),
    # Posted to when the coordination machinery itself fails
    "failure_alert_webhook_url": os.getenv("FAILURE_ALERT_WEBHOOK_URL", ""),
}


# ── Typed config ──────────────────────────────────────


@dataclass
class EngineConfig:
    trigger_cooldown_seconds: float = 60.0
    event_lookback_seconds: float = 30.0
    level_pause_seconds: float = 0.5
    dispatch_timeout_seconds: float = 30.0
    dispatch_retries: int = 1
    event_history_limit: int = 100
    event_queue_size: int = 100


@dataclass
class OracleConfig:
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    timeout_seconds: float = 15.0
    max_calls_per_minute: int = 12
    min_call_interval_seconds: float = 0.0


@dataclass
class AppConfig:
    """Typed view of the CONFIG dict, used to wire the runtime."""

    port: int = 3001
    storage_dir: str = "memory"
    engine: EngineConfig = field(default_factory=EngineConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            port=CONFIG["port"],
            storage_dir=CONFIG["storage_dir"],
            engine=EngineConfig(
                trigger_cooldown_seconds=CONFIG["trigger_cooldown_seconds"],
                event_lookback_seconds=CONFIG["event_lookback_seconds"],
                level_pause_seconds=CONFIG["level_pause_seconds"],
                dispatch_timeout_seconds=CONFIG["dispatch_timeout_seconds"],
                dispatch_retries=CONFIG["dispatch_retries"],
                event_history_limit=CONFIG["event_history_limit"],
                event_queue_size=CONFIG["event_queue_size"],
            ),
            oracle=OracleConfig(
                provider=AI_PROVIDER,
                model=CONFIG["oracle_model"],
                timeout_seconds=CONFIG["oracle_timeout_seconds"],
                max_calls_per_minute=CONFIG["oracle_limits"]["max_calls_per_minute"],
                min_call_interval_seconds=CONFIG["oracle_limits"]["min_call_interval_seconds"],
            ),
        )
