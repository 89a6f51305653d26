"""
Google Cloud Speech-to-Text client.

Posts base64 audio to the v1 ``speech:recognize`` REST endpoint and hands the
raw JSON result back to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from stt_relay.logging import get_logger

DEFAULT_SPEECH_API_URL = "https://speech.googleapis.com/v1/speech:recognize"
FALLBACK_TRANSCRIPT = "No transcription available"

logger = get_logger("speech")


class SpeechTransportError(Exception):
    """The speech API could not be reached."""


class SpeechAPIError(Exception):
    """The speech API answered with a non-success status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Speech API returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class RecognitionConfig:
    """Fixed recognition settings sent with every request."""

    encoding: str = "MP3"
    sample_rate_hertz: int = 16000
    language_code: str = "en-US"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "encoding": self.encoding,
            "sampleRateHertz": self.sample_rate_hertz,
            "languageCode": self.language_code,
        }


class SpeechRecognizer:
    """Abstract capability: turn base64 audio into a recognition result."""

    async def recognize(self, audio_content: str, token: str) -> Dict[str, Any]:
        raise NotImplementedError


class GoogleSpeechClient(SpeechRecognizer):
    """SpeechRecognizer calling the Google Cloud Speech REST API with httpx."""

    def __init__(
        self,
        api_url: str = DEFAULT_SPEECH_API_URL,
        recognition_config: Optional[RecognitionConfig] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.recognition_config = recognition_config or RecognitionConfig()
        self.timeout = timeout
        self._transport = transport

    def build_payload(self, audio_content: str) -> Dict[str, Any]:
        return {
            "config": self.recognition_config.to_payload(),
            "audio": {"content": audio_content},
        }

    async def recognize(self, audio_content: str, token: str) -> Dict[str, Any]:
        """
        Send one recognize request.

        Raises:
            SpeechTransportError: On connection, timeout or protocol failures.
            SpeechAPIError: When the API answers with a non-2xx status.
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.api_url,
                    json=self.build_payload(audio_content),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise SpeechTransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise SpeechAPIError(response.status_code, response.text)

        try:
            result = response.json()
        except ValueError:
            logger.warning("Speech API returned a non-JSON success body")
            return {}
        return result if isinstance(result, dict) else {}


def extract_transcript(result: Any) -> str:
    """Return the first alternative of the first result, or the fallback text."""
    try:
        transcript = result["results"][0]["alternatives"][0]["transcript"]
    except (KeyError, IndexError, TypeError):
        return FALLBACK_TRANSCRIPT
    if isinstance(transcript, str) and transcript:
        return transcript
    return FALLBACK_TRANSCRIPT
