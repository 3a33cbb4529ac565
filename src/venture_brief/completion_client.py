from __future__ import annotations

import asyncio
import os
import subprocess
from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

import httpx

from venture_brief.settings import (
    ANTHROPIC_API_KEY_ENV,
    CompletionSettings,
    require_credential,
)

_ANTHROPIC_VERSION = "2023-06-01"


class CompletionError(RuntimeError):
    pass


@runtime_checkable
class TextCompletionClient(Protocol):
    """Anything that turns a prompt into one block of free-form text."""

    async def complete(self, prompt_text: str, *, model: str | None = None) -> str: ...


class AnthropicCompletionClient:
    """Text completions over the Anthropic Messages API.

    The API key is resolved on every call so that a missing credential is
    reported as a configuration error at the moment it matters.
    """

    def __init__(
        self,
        settings: CompletionSettings,
        *,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = api_key
        self._transport = transport

    async def complete(self, prompt_text: str, *, model: str | None = None) -> str:
        api_key = self._api_key or require_credential(ANTHROPIC_API_KEY_ENV, provider="Anthropic")
        payload = {
            "model": model or self._settings.model,
            "max_tokens": self._settings.max_tokens,
            "messages": [{"role": "user", "content": prompt_text}],
        }
        headers = {
            "x-api-key": api_key,
            "anthropic-version": _ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        url = f"{self._settings.base_url.rstrip('/')}/v1/messages"

        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds, transport=self._transport) as client:
            try:
                response = await client.post(url, json=payload, headers=headers)
            except httpx.RequestError as exc:
                raise CompletionError(f"Anthropic API request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise CompletionError(f"Anthropic API returned invalid JSON (status {response.status_code}).") from exc

        if response.status_code >= 400:
            message = _extract_error_message(body) or f"HTTP {response.status_code}"
            raise CompletionError(f"Anthropic API error ({response.status_code}): {message}")

        text = _extract_text(body)
        if not text.strip():
            raise CompletionError("Anthropic API returned an empty completion")
        return text


class CliCompletionClient:
    """One-shot CLI completion: pipes the prompt to a command and returns stdout."""

    def __init__(
        self,
        *,
        command: str,
        args: Sequence[str] = (),
        timeout_seconds: float | None = None,
        cwd: str | None = None,
    ) -> None:
        self._command = command
        self._args = tuple(args)
        self._timeout_seconds = timeout_seconds
        self._cwd = cwd

    async def complete(self, prompt_text: str, *, model: str | None = None) -> str:
        return await asyncio.to_thread(self._run_cli, prompt_text, model)

    def _run_cli(self, prompt_text: str, model: str | None) -> str:
        command = [self._command, *self._args]
        if model:
            command.extend(["--model", model])
        try:
            result = subprocess.run(
                command,
                input=prompt_text,
                text=True,
                capture_output=True,
                check=False,
                cwd=self._cwd,
                timeout=self._timeout_seconds,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise CompletionError(f"Completion CLI `{self._command}` could not run: {exc}") from exc
        if result.returncode != 0:
            detail = (result.stderr or "").strip()
            if detail:
                detail = f" {detail}"
            raise CompletionError(f"Completion CLI failed with exit code {result.returncode}.{detail}")
        if not (result.stdout or "").strip():
            raise CompletionError("Completion CLI returned empty output")
        return result.stdout or ""


def build_completion_client(settings: CompletionSettings) -> TextCompletionClient:
    if settings.backend == "cli":
        return CliCompletionClient(
            command=settings.command,
            args=settings.args,
            timeout_seconds=settings.timeout_seconds,
            cwd=os.getcwd(),
        )
    return AnthropicCompletionClient(settings)


def _extract_text(body: object) -> str:
    if not isinstance(body, Mapping):
        raise CompletionError("Unexpected Anthropic response shape")
    content = body.get("content")
    if not isinstance(content, list):
        raise CompletionError("Anthropic response missing content blocks")
    parts: list[str] = []
    for block in content:
        if isinstance(block, Mapping) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str):
                parts.append(text)
    return "".join(parts)


def _extract_error_message(payload: Any) -> str | None:
    if not isinstance(payload, Mapping):
        return None
    error = payload.get("error")
    if isinstance(error, Mapping):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    for key in ("message", "detail"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
