"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No behavioural constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    HISTORY_CAPACITY_DEFAULT,
    HISTORY_SUMMARIZE_DEFAULT,
    MAX_RETRIES_DEFAULT,
    RECENT_HISTORY_COUNT,
    REQUEST_TIMEOUT_S_DEFAULT,
    RETRY_DELAY_S_DEFAULT,
    TARGET_LANGUAGE_DEFAULT,
    TTS_SPEED_DEFAULT,
)


_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the server, session factory and backend builders.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"
    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # LLM configuration
    # ------------------------------------------------------------------

    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"
    openai_api_key: str | None = None
    groq_api_key: str | None = None
    llm_temperature: float = 0.7
    llm_max_tokens: int = 512

    # ------------------------------------------------------------------
    # STT
    # ------------------------------------------------------------------

    stt_provider: str = "openai"
    stt_model: str = "whisper-1"
    stt_language: str | None = None

    # ------------------------------------------------------------------
    # TTS
    # ------------------------------------------------------------------

    tts_provider: str = "openai"
    tts_model: str = "gpt-4o-mini-tts"
    tts_voice: str = "alloy"
    tts_speed: float = TTS_SPEED_DEFAULT
    elevenlabs_api_key: str | None = None
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    elevenlabs_model_id: str = "eleven_turbo_v2"

    request_timeout_s: float = REQUEST_TIMEOUT_S_DEFAULT

    # ------------------------------------------------------------------
    # Retry policy (generation step)
    # ------------------------------------------------------------------

    max_retries: int = MAX_RETRIES_DEFAULT
    retry_delay_s: float = RETRY_DELAY_S_DEFAULT

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    history_capacity: int = HISTORY_CAPACITY_DEFAULT
    history_summarize: bool = HISTORY_SUMMARIZE_DEFAULT
    recent_history_count: int = RECENT_HISTORY_COUNT

    target_language: str = TARGET_LANGUAGE_DEFAULT
    proficiency_level: str | None = None
    default_behavior: str = "chat"
    vocabulary_progress_path: str = "vocabulary_progress.json"

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric or boolean variable is malformed.
        """
        env = os.environ
        return AppConfig(
            env=env.get("ENV", "dev"),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            enable_json_logs=_env_bool("ENABLE_JSON_LOGS", True),

            llm_provider=env.get("LLM_PROVIDER", "openai").lower(),
            llm_model=env.get("LLM_MODEL", "gpt-4o-mini"),
            openai_api_key=env.get("OPENAI_API_KEY"),
            groq_api_key=env.get("GROQ_API_KEY"),
            llm_temperature=_env_float("LLM_TEMPERATURE", 0.7),
            llm_max_tokens=_env_int("LLM_MAX_TOKENS", 512),

            stt_provider=env.get("STT_PROVIDER", "openai").lower(),
            stt_model=env.get("STT_MODEL", "whisper-1"),
            stt_language=env.get("STT_LANGUAGE") or None,

            tts_provider=env.get("TTS_PROVIDER", "openai").lower(),
            tts_model=env.get("TTS_MODEL", "gpt-4o-mini-tts"),
            tts_voice=env.get("TTS_VOICE", "alloy"),
            tts_speed=_env_float("TTS_SPEED", TTS_SPEED_DEFAULT),
            elevenlabs_api_key=env.get("ELEVENLABS_API_KEY"),
            elevenlabs_voice_id=env.get("ELEVENLABS_VOICE_ID", "21m00Tcm4TlvDq8ikWAM"),
            elevenlabs_model_id=env.get("ELEVENLABS_MODEL_ID", "eleven_turbo_v2"),

            request_timeout_s=_env_float("REQUEST_TIMEOUT_S", REQUEST_TIMEOUT_S_DEFAULT),

            max_retries=_env_int("MAX_RETRIES", MAX_RETRIES_DEFAULT),
            retry_delay_s=_env_float("RETRY_DELAY_S", RETRY_DELAY_S_DEFAULT),

            history_capacity=_env_int("HISTORY_CAPACITY", HISTORY_CAPACITY_DEFAULT),
            history_summarize=_env_bool("HISTORY_SUMMARIZE", HISTORY_SUMMARIZE_DEFAULT),
            recent_history_count=_env_int("RECENT_HISTORY_COUNT", RECENT_HISTORY_COUNT),

            target_language=env.get("TARGET_LANGUAGE", TARGET_LANGUAGE_DEFAULT),
            proficiency_level=env.get("PROFICIENCY_LEVEL") or None,
            default_behavior=env.get("DEFAULT_BEHAVIOR", "chat").lower(),
            vocabulary_progress_path=env.get(
                "VOCABULARY_PROGRESS_PATH", "vocabulary_progress.json"
            ),
        )


# ------------------------------------------------------------------
# Parsing helpers
# ------------------------------------------------------------------

def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")
