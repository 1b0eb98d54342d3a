"""
Speech-to-text client for audio-response answers.

    POST {base_url}/transcribe   (multipart "audio" file, or JSON {"url": ...})
    -> {"text": "..."}
"""

from __future__ import annotations

from typing import Any

import httpx

from quizcore.errors import TranscriptionError

from .base import ServiceClient, ServiceUnavailableError


class HttpAudioTranscriber(ServiceClient):
    """AudioTranscriber over HTTP."""

    service_name = "Transcription service"

    def transcribe(self, audio: Any) -> str:
        """
        Transcribe raw audio bytes or an audio URL.

        Raises:
            TranscriptionError: When the service fails or returns no text
        """
        if isinstance(audio, (bytes, bytearray)):
            kwargs: dict[str, Any] = {"files": {"audio": ("response.wav", bytes(audio))}}
        elif isinstance(audio, str):
            kwargs = {"json": {"url": audio}}
        elif isinstance(audio, dict) and "url" in audio:
            kwargs = {"json": {"url": audio["url"]}}
        else:
            raise TranscriptionError(f"Unsupported audio payload: {type(audio).__name__}")

        try:
            response = self.request("POST", "/transcribe", **kwargs)
        except (httpx.HTTPStatusError, ServiceUnavailableError) as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        text = response.json().get("text")
        if not isinstance(text, str):
            raise TranscriptionError("Transcription service returned no text")
        return text
