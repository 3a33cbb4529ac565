from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from venture_brief.domain.analysis import Voice
from venture_brief.settings import ELEVENLABS_API_KEY_ENV, MissingCredentialError, SpeechSettings
from venture_brief.speech_client import (
    VOICE_IDS,
    AudioAsset,
    AudioReleasedError,
    ElevenLabsClient,
    SpeechSynthesisError,
    resolve_voice_id,
)


def _settings() -> SpeechSettings:
    return SpeechSettings(base_url="https://eleven.test")


def test_synthesize_posts_text_with_voice_settings() -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=b"ID3-audio", headers={"content-type": "audio/mpeg"})

    client = ElevenLabsClient(_settings(), api_key="xi-test", transport=httpx.MockTransport(handler))
    asset = asyncio.run(client.synthesize("Hello there", voice=Voice.drew))

    assert asset.read() == b"ID3-audio"
    assert asset.content_type == "audio/mpeg"
    assert seen["url"] == "https://eleven.test/v1/text-to-speech/29vD33N1CtxCmqQRPOHJ"
    assert seen["headers"]["xi-api-key"] == "xi-test"
    assert seen["headers"]["accept"] == "audio/mpeg"
    assert seen["body"] == {
        "text": "Hello there",
        "model_id": "eleven_multilingual_v2",
        "voice_settings": {
            "stability": 0.5,
            "similarity_boost": 0.5,
            "style": 0.5,
            "use_speaker_boost": True,
        },
    }


def test_synthesize_honours_model_override() -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["model"] = json.loads(request.content)["model_id"]
        return httpx.Response(200, content=b"audio")

    client = ElevenLabsClient(_settings(), api_key="xi-test", transport=httpx.MockTransport(handler))
    asyncio.run(client.synthesize("Hi", voice=Voice.rachel, model="eleven_turbo_v2"))

    assert seen["model"] == "eleven_turbo_v2"


def test_synthesize_error_payload_becomes_error_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            401,
            json={
                "detail": {
                    "status": "missing_permissions",
                    "message": "The API key you used is missing the permission text_to_speech",
                },
            },
        )

    client = ElevenLabsClient(_settings(), api_key="xi-test", transport=httpx.MockTransport(handler))

    with pytest.raises(SpeechSynthesisError) as excinfo:
        asyncio.run(client.synthesize("Hi", voice=Voice.rachel))

    assert excinfo.value.code == "missing_permissions"
    assert excinfo.value.status_code == 401
    assert str(excinfo.value).startswith("ElevenLabs API error: 401 (missing_permissions): The API key")


def test_synthesize_plain_text_error_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, content=b"upstream exploded")

    client = ElevenLabsClient(_settings(), api_key="xi-test", transport=httpx.MockTransport(handler))

    with pytest.raises(SpeechSynthesisError, match="ElevenLabs API error: 500: upstream exploded"):
        asyncio.run(client.synthesize("Hi", voice=Voice.rachel))


def test_synthesize_rejects_empty_text() -> None:
    client = ElevenLabsClient(_settings(), api_key="xi-test", transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    with pytest.raises(SpeechSynthesisError) as excinfo:
        asyncio.run(client.synthesize("   ", voice=Voice.rachel))

    assert excinfo.value.code == "empty_text"
    assert excinfo.value.status_code == 400


def test_synthesize_rejects_empty_audio() -> None:
    client = ElevenLabsClient(_settings(), api_key="xi-test", transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    with pytest.raises(SpeechSynthesisError) as excinfo:
        asyncio.run(client.synthesize("Hi", voice=Voice.rachel))

    assert excinfo.value.code == "empty_audio"


def test_synthesize_requires_credential(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ELEVENLABS_API_KEY_ENV, raising=False)
    client = ElevenLabsClient(_settings(), transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    with pytest.raises(MissingCredentialError, match="ElevenLabs API key not configured"):
        asyncio.run(client.synthesize("Hi", voice=Voice.rachel))


def test_resolve_voice_id_falls_back_to_rachel() -> None:
    assert resolve_voice_id("Bella") == "EXAVITQu4vr4xnSDxMaL"
    assert resolve_voice_id("Nobody") == VOICE_IDS[Voice.rachel]


def test_released_audio_cannot_be_read() -> None:
    asset = AudioAsset(data=b"abc")
    assert asset.size == 3

    asset.release()

    assert asset.released
    assert asset.size == 0
    with pytest.raises(AudioReleasedError):
        asset.read()
