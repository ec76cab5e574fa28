"""
Voice service: speech-to-text and text-to-speech over the OpenAI audio API.

Chat, vision and reasoning go through the OpenRouter gateway; audio does not
exist there, so this client talks to OpenAI directly. Failures surface as
GatewayError and reach clients as the same generic 500.
"""

import logging
from dataclasses import dataclass

from openai import APIStatusError, AsyncOpenAI, OpenAIError

from eduvoice.config import Settings
from eduvoice.errors import GatewayError

logger = logging.getLogger(__name__)


@dataclass
class Transcription:
    text: str
    duration: float


class VoiceClient:
    """Wraps AsyncOpenAI audio.transcriptions and audio.speech. No retries."""

    def __init__(self, settings: Settings, client: AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use so the API starts without an OpenAI key
        if self._client is None:
            if not self.settings.openai_api_key:
                raise GatewayError("Voice features require OPENAI_API_KEY")
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.settings.gateway_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def transcribe(self, filename: str, data: bytes, content_type: str) -> Transcription:
        """Transcribe an audio clip with Whisper."""
        try:
            result = await self.client.audio.transcriptions.create(
                model=self.settings.voice_transcription_model,
                file=(filename, data, content_type),
                response_format="verbose_json",
            )
        except APIStatusError as e:
            raise GatewayError(
                f"Transcription failed: {e.status_code} - {e.response.text}",
                status_code=e.status_code,
                body=e.response.text,
            ) from e
        except OpenAIError as e:
            raise GatewayError(f"Transcription failed: {e}") from e

        duration = float(getattr(result, "duration", None) or 0.0)
        logger.debug("Transcribed %s (%.1fs, %d chars)", filename, duration, len(result.text))
        return Transcription(text=result.text, duration=duration)

    async def speak(self, text: str) -> bytes:
        """Synthesize speech; returns MP3 bytes."""
        try:
            response = await self.client.audio.speech.create(
                model=self.settings.voice_speech_model,
                voice=self.settings.voice_speech_voice,
                input=text,
                response_format="mp3",
            )
        except APIStatusError as e:
            raise GatewayError(
                f"Text-to-speech failed: {e.status_code} - {e.response.text}",
                status_code=e.status_code,
                body=e.response.text,
            ) from e
        except OpenAIError as e:
            raise GatewayError(f"Text-to-speech failed: {e}") from e

        return response.content
