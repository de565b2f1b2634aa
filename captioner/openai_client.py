"""Thin HTTP client for the OpenAI-compatible transcription and chat endpoints."""

import json
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from .exceptions import TerminalServiceError, TransientServiceError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


def is_transient_status(status_code: int) -> bool:
    """429 and any 5xx are worth retrying; everything else is not."""
    return status_code == 429 or 500 <= status_code <= 599


class OpenAIClient:
    """
    Sends requests with bearer authentication and turns HTTP failures into
    TransientServiceError or TerminalServiceError.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 300.0,
        session: Optional[requests.Session] = None
    ):
        if not api_key:
            raise ValueError("An API key is required.")
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _post(self, path: str, label: str, **kwargs: Any) -> Dict[str, Any]:
        url = self._url(path)
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransientServiceError(f"{label} request failed: {e}") from e

        if response.status_code >= 400:
            body = str(response.text or "").strip()
            message = f"{label} error {response.status_code}: {body[:500]}"
            if is_transient_status(response.status_code):
                raise TransientServiceError(message, status_code=response.status_code, body=body)
            raise TerminalServiceError(message, status_code=response.status_code, body=body)

        try:
            payload = response.json()
        except ValueError as e:
            raise TerminalServiceError(
                f"{label} returned a non-JSON body: {e}", status_code=response.status_code, body=response.text
            ) from e
        if not isinstance(payload, dict):
            raise TerminalServiceError(f"{label} returned unexpected JSON: {str(payload)[:200]}")
        return payload

    def transcribe(self, audio_path: str, model: str, language: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Uploads one audio file and returns its segments (times local to the file).

        Raises:
            FileNotFoundError: If the audio file doesn't exist.
            TransientServiceError, TerminalServiceError: On request failure.
        """
        if not os.path.exists(audio_path):
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        data = [
            ("model", model),
            ("response_format", "verbose_json"),
            ("timestamp_granularities[]", "segment"),
        ]
        if language:
            data.append(("language", language))

        with open(audio_path, "rb") as stream:
            files = {"file": (os.path.basename(audio_path) or "audio.wav", stream, "audio/wav")}
            payload = self._post("audio/transcriptions", "Transcription", data=data, files=files)

        segments = payload.get("segments")
        if segments is None:
            logger.warning(f"Transcription reply for {audio_path} has no 'segments' field.")
            return []
        if not isinstance(segments, list):
            raise TerminalServiceError(f"Transcription reply has malformed 'segments': {str(segments)[:200]}")
        return segments

    def chat(
        self,
        model: str,
        messages: List[Dict[str, str]],
        response_format: Optional[Dict[str, str]] = None
    ) -> str:
        """Returns the content of the first choice of a chat completion."""
        body: Dict[str, Any] = {"model": model, "messages": messages}
        if response_format:
            body["response_format"] = response_format

        payload = self._post(
            "chat/completions",
            "Chat completion",
            data=json.dumps(body, ensure_ascii=False).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise TerminalServiceError(f"Unexpected chat response structure: {str(payload)[:200]}") from e
        return content or ""
