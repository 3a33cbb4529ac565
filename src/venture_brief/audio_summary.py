from __future__ import annotations

import os
import re
import tempfile
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from types import TracebackType

from pydantic import BaseModel, ConfigDict

from venture_brief.completion_client import CompletionError
from venture_brief.domain.analysis import AnalysisResult, SummaryScript, SummaryType, Voice
from venture_brief.narration import ScriptGenerationError, ScriptGenerator
from venture_brief.speech_client import AudioAsset, SpeechSynthesisClient, SpeechSynthesisError


class OrchestratorState(StrEnum):
    idle = "idle"
    generating_script = "generating_script"
    synthesizing_audio = "synthesizing_audio"
    ready = "ready"
    playing = "playing"
    paused = "paused"
    stopped = "stopped"
    failed = "failed"


_S = OrchestratorState

ALLOWED_TRANSITIONS: dict[OrchestratorState, frozenset[OrchestratorState]] = {
    _S.idle: frozenset({_S.generating_script}),
    _S.generating_script: frozenset({_S.synthesizing_audio, _S.failed, _S.idle}),
    _S.synthesizing_audio: frozenset({_S.ready, _S.failed, _S.idle}),
    _S.ready: frozenset({_S.playing, _S.generating_script, _S.idle}),
    _S.playing: frozenset({_S.paused, _S.stopped, _S.generating_script, _S.idle}),
    _S.paused: frozenset({_S.playing, _S.stopped, _S.generating_script, _S.idle}),
    _S.stopped: frozenset({_S.playing, _S.generating_script, _S.idle}),
    _S.failed: frozenset({_S.generating_script, _S.idle}),
}

_IN_FLIGHT = frozenset({_S.generating_script, _S.synthesizing_audio})
_AUDIO_LOADED = frozenset({_S.ready, _S.playing, _S.paused, _S.stopped})

SPEECH_PERMISSION_HINT = (
    "Generate a new ElevenLabs API key with Text-to-Speech permissions enabled at elevenlabs.io/app/settings."
)


class InvalidTransitionError(RuntimeError):
    pass


@dataclass(frozen=True)
class SpeechDiagnostic:
    message: str
    hint: str | None = None

    @property
    def is_permission_issue(self) -> bool:
        return self.hint is not None


def diagnose_speech_error(message: str) -> SpeechDiagnostic:
    if "missing_permissions" in message or "API key" in message:
        return SpeechDiagnostic(
            message=(
                f"ElevenLabs API Issue: {message}. "
                "Please check your API key permissions at elevenlabs.io/app/settings"
            ),
            hint=SPEECH_PERMISSION_HINT,
        )
    return SpeechDiagnostic(message="ElevenLabs TTS failed - check API key permissions")


def download_filename(title: str) -> str:
    stem = re.sub(r"[\s/\\]+", "_", title.strip()) or "summary"
    return f"{stem}_analysis_summary.mp3"


class OrchestratorSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    state: OrchestratorState
    failure_reason: str | None = None
    hint: str | None = None
    title: str | None = None
    summary_type: SummaryType | None = None
    voice: Voice | None = None
    script: SummaryScript | None = None
    audio_bytes: int = 0
    position_seconds: float = 0.0
    muted: bool = False


class AudioSummaryOrchestrator:
    """Turns an analysis into a narrated audio summary and tracks its playback.

    One orchestrator owns at most one audio asset at a time. Starting a new
    generation, ``reset()`` and ``close()`` all release the current asset, and
    responses that belong to a superseded generation are dropped on arrival.
    """

    def __init__(
        self,
        script_generator: ScriptGenerator,
        speech_client: SpeechSynthesisClient,
        *,
        speech_model: str | None = None,
    ) -> None:
        self._script_generator = script_generator
        self._speech_client = speech_client
        self._speech_model = speech_model
        self._state = OrchestratorState.idle
        self._generation = 0
        self._closed = False
        self._failure_reason: str | None = None
        self._hint: str | None = None
        self._title: str | None = None
        self._summary_type: SummaryType | None = None
        self._voice: Voice | None = None
        self._script: SummaryScript | None = None
        self._audio: AudioAsset | None = None
        self._position = 0.0
        self._muted = False

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def failure_reason(self) -> str | None:
        return self._failure_reason

    @property
    def script(self) -> SummaryScript | None:
        return self._script

    @property
    def audio(self) -> AudioAsset | None:
        return self._audio

    @property
    def position_seconds(self) -> float:
        return self._position

    @property
    def muted(self) -> bool:
        return self._muted

    async def generate(
        self,
        analysis: AnalysisResult,
        title: str,
        summary_type: SummaryType = SummaryType.executive,
        voice: Voice = Voice.rachel,
    ) -> OrchestratorSnapshot:
        if self._closed:
            raise InvalidTransitionError("Orchestrator is closed")
        if self._state in _IN_FLIGHT:
            raise InvalidTransitionError(f"A summary is already being generated (state: {self._state})")

        self._transition(OrchestratorState.generating_script)
        self._release_audio()
        self._script = None
        self._position = 0.0
        self._failure_reason = None
        self._hint = None
        self._title = title
        self._summary_type = summary_type
        self._voice = voice
        self._generation += 1
        generation = self._generation

        try:
            script = await self._script_generator.generate(analysis, title, summary_type)
        except (CompletionError, ScriptGenerationError) as exc:
            if generation == self._generation:
                self._fail(f"Failed to generate summary: {exc}")
            return self.snapshot()
        except Exception as exc:
            if generation == self._generation:
                self._fail(f"Failed to generate summary: {exc}")
            raise
        if generation != self._generation:
            return self.snapshot()

        self._script = script
        self._transition(OrchestratorState.synthesizing_audio)

        try:
            audio = await self._speech_client.synthesize(script.text, voice=voice, model=self._speech_model)
        except SpeechSynthesisError as exc:
            if generation == self._generation:
                diagnostic = diagnose_speech_error(str(exc))
                self._fail(diagnostic.message, hint=diagnostic.hint)
            return self.snapshot()
        except Exception as exc:
            if generation == self._generation:
                diagnostic = diagnose_speech_error(str(exc))
                self._fail(diagnostic.message, hint=diagnostic.hint)
            raise
        if generation != self._generation:
            audio.release()
            return self.snapshot()

        self._audio = audio
        self._transition(OrchestratorState.ready)
        return self.snapshot()

    def play(self) -> None:
        if self._state in (OrchestratorState.ready, OrchestratorState.stopped):
            self._require(OrchestratorState.playing)
            self._position = 0.0
        self._transition(OrchestratorState.playing)

    def pause(self) -> None:
        self._transition(OrchestratorState.paused)

    def stop(self) -> None:
        self._transition(OrchestratorState.stopped)
        self._position = 0.0

    def mark_ended(self) -> None:
        if self._state is not OrchestratorState.playing:
            raise InvalidTransitionError(f"Playback can only end while playing (state: {self._state})")
        self._transition(OrchestratorState.stopped)

    def toggle_mute(self) -> bool:
        self._muted = not self._muted
        return self._muted

    def update_position(self, seconds: float) -> None:
        if self._state not in _AUDIO_LOADED:
            raise InvalidTransitionError(f"No audio loaded (state: {self._state})")
        if seconds < 0:
            raise ValueError("position must be >= 0")
        self._position = float(seconds)

    def download(self, dest_dir: Path) -> Path:
        if self._state not in _AUDIO_LOADED or self._audio is None:
            raise InvalidTransitionError(f"No audio available to download (state: {self._state})")
        dest = dest_dir / download_filename(self._title or "")
        _atomic_write_bytes(dest, self._audio.read())
        return dest

    def reset(self) -> None:
        self._generation += 1
        self._release_audio()
        self._script = None
        self._position = 0.0
        self._failure_reason = None
        self._hint = None
        self._title = None
        self._summary_type = None
        self._voice = None
        if self._state is not OrchestratorState.idle:
            self._transition(OrchestratorState.idle)

    def close(self) -> None:
        self.reset()
        self._closed = True

    def __enter__(self) -> AudioSummaryOrchestrator:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def snapshot(self) -> OrchestratorSnapshot:
        return OrchestratorSnapshot(
            state=self._state,
            failure_reason=self._failure_reason,
            hint=self._hint,
            title=self._title,
            summary_type=self._summary_type,
            voice=self._voice,
            script=self._script,
            audio_bytes=0 if self._audio is None else self._audio.size,
            position_seconds=self._position,
            muted=self._muted,
        )

    def _require(self, target: OrchestratorState) -> None:
        if target not in ALLOWED_TRANSITIONS[self._state]:
            raise InvalidTransitionError(f"Cannot move from {self._state} to {target}")

    def _transition(self, target: OrchestratorState) -> None:
        self._require(target)
        self._state = target

    def _fail(self, reason: str, *, hint: str | None = None) -> None:
        self._transition(OrchestratorState.failed)
        self._failure_reason = reason
        self._hint = hint

    def _release_audio(self) -> None:
        if self._audio is not None:
            self._audio.release()
            self._audio = None


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="wb",
        delete=False,
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)
    try:
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)
