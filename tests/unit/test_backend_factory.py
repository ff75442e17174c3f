# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from adapters.asr.openai_transcription import OpenAITranscriptionBackend
from adapters.asr.whisper_local import LocalWhisperBackend
from adapters.llm.openai_chat import OpenAIChatBackend
from adapters.tts.elevenlabs_tts import ElevenLabsSynthesisBackend
from adapters.tts.openai_speech import OpenAISpeechBackend
from config import AppConfig
from session.backends import GROQ_BASE_URL, BackendFactory, build_llm_client


def test_openai_defaults() -> None:
    factory = BackendFactory(AppConfig(openai_api_key="sk-test", llm_model="gpt-x", tts_speed=1.4))

    generation = factory.generation()
    assert isinstance(generation, OpenAIChatBackend)
    assert generation.model_name == "gpt-x"
    assert factory.generation() is generation

    assert isinstance(factory.transcription(), OpenAITranscriptionBackend)

    speech = factory.synthesis()
    assert isinstance(speech, OpenAISpeechBackend)
    assert speech.speed == 1.4
    assert factory.synthesis() is not speech


def test_groq_client_uses_compatible_endpoint() -> None:
    client = build_llm_client(AppConfig(llm_provider="groq", groq_api_key="gsk-test"))
    assert str(client.base_url).rstrip("/") == GROQ_BASE_URL


def test_missing_keys_raise() -> None:
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        build_llm_client(AppConfig())
    with pytest.raises(RuntimeError, match="GROQ_API_KEY"):
        build_llm_client(AppConfig(llm_provider="groq"))
    with pytest.raises(RuntimeError, match="ELEVENLABS_API_KEY"):
        BackendFactory(AppConfig(tts_provider="elevenlabs")).synthesis()


def test_alternative_providers() -> None:
    factory = BackendFactory(
        AppConfig(stt_provider="whisper_local", stt_model="tiny", tts_provider="elevenlabs",
                  elevenlabs_api_key="el-test")
    )

    assert isinstance(factory.transcription(), LocalWhisperBackend)
    assert isinstance(factory.synthesis(), ElevenLabsSynthesisBackend)


def test_unknown_providers_raise() -> None:
    with pytest.raises(RuntimeError, match="STT_PROVIDER"):
        BackendFactory(AppConfig(stt_provider="carrier-pigeon")).transcription()
    with pytest.raises(RuntimeError, match="TTS_PROVIDER"):
        BackendFactory(AppConfig(openai_api_key="sk", tts_provider="kazoo")).synthesis()
