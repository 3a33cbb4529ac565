from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx

from venture_brief.domain.analysis import Voice
from venture_brief.settings import ELEVENLABS_API_KEY_ENV, SpeechSettings, require_credential

VOICE_IDS: dict[Voice, str] = {
    Voice.rachel: "21m00Tcm4TlvDq8ikWAM",
    Voice.drew: "29vD33N1CtxCmqQRPOHJ",
    Voice.clyde: "2EiwWnXFnvU5JabPnv8n",
    Voice.bella: "EXAVITQu4vr4xnSDxMaL",
}

_VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.5,
    "style": 0.5,
    "use_speaker_boost": True,
}

AUDIO_MPEG = "audio/mpeg"


class SpeechSynthesisError(RuntimeError):
    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class AudioReleasedError(RuntimeError):
    pass


@dataclass
class AudioAsset:
    """Synthesized audio owned by a single session until released."""

    data: bytes
    content_type: str = AUDIO_MPEG
    _released: bool = field(default=False, repr=False)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def size(self) -> int:
        return len(self.data)

    def read(self) -> bytes:
        if self._released:
            raise AudioReleasedError("Audio asset has been released")
        return self.data

    def release(self) -> None:
        self.data = b""
        self._released = True


@runtime_checkable
class SpeechSynthesisClient(Protocol):
    async def synthesize(self, text: str, *, voice: Voice, model: str | None = None) -> AudioAsset: ...


def resolve_voice_id(voice: Voice | str) -> str:
    try:
        return VOICE_IDS[Voice(voice)]
    except ValueError:
        return VOICE_IDS[Voice.rachel]


class ElevenLabsClient:
    def __init__(
        self,
        settings: SpeechSettings,
        *,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = api_key
        self._transport = transport

    @property
    def default_model(self) -> str:
        return self._settings.model

    async def synthesize(self, text: str, *, voice: Voice, model: str | None = None) -> AudioAsset:
        api_key = self._api_key or require_credential(ELEVENLABS_API_KEY_ENV, provider="ElevenLabs")
        if not text.strip():
            raise SpeechSynthesisError("Text content is required", code="empty_text", status_code=400)

        url = f"{self._settings.base_url.rstrip('/')}/v1/text-to-speech/{resolve_voice_id(voice)}"
        payload = {
            "text": text,
            "model_id": model or self._settings.model,
            "voice_settings": dict(_VOICE_SETTINGS),
        }
        headers = {
            "Accept": AUDIO_MPEG,
            "Content-Type": "application/json",
            "xi-api-key": api_key,
        }

        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
            try:
                response = await client.post(url, json=payload, headers=headers)
            except httpx.RequestError as exc:
                raise SpeechSynthesisError(f"ElevenLabs API request failed: {exc}", code="transport") from exc

        if response.status_code >= 400:
            code, detail = _parse_error_payload(response.content)
            message = f"ElevenLabs API error: {response.status_code}"
            if code:
                message = f"{message} ({code})"
            if detail:
                message = f"{message}: {detail}"
            raise SpeechSynthesisError(message, code=code, status_code=response.status_code)

        if not response.content:
            raise SpeechSynthesisError("ElevenLabs API returned no audio", code="empty_audio")
        content_type = response.headers.get("content-type", AUDIO_MPEG).split(";")[0].strip() or AUDIO_MPEG
        return AudioAsset(data=response.content, content_type=content_type)


def _parse_error_payload(raw: bytes) -> tuple[str | None, str | None]:
    try:
        payload: Any = json.loads(raw)
    except ValueError:
        text = raw.decode("utf-8", errors="replace").strip()
        return None, text or None

    if not isinstance(payload, Mapping):
        return None, None
    detail = payload.get("detail", payload)
    if isinstance(detail, str):
        return None, detail.strip() or None
    if isinstance(detail, Sequence) and detail and isinstance(detail[0], Mapping):
        detail = detail[0]
    if not isinstance(detail, Mapping):
        return None, None

    code = None
    for key in ("status", "code", "type"):
        value = detail.get(key)
        if isinstance(value, str) and value.strip():
            code = value.strip()
            break
    message = None
    for key in ("message", "msg", "error"):
        value = detail.get(key)
        if isinstance(value, str) and value.strip():
            message = value.strip()
            break
    return code, message
