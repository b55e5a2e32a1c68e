"""
OpenAI text-to-speech engine.

Each narration line is one POST to the speech endpoint; the mp3 response body
is written straight to the requested file. Rate limiting and 5xx responses
are retried a few times with a short backoff, anything else is reported as a
failed result so the step falls back to its default on-screen time.

API Docs: https://platform.openai.com/docs/guides/text-to-speech
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from ..base import AudioProvider, AudioProviderConfig, AudioGenerationResult

logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}


class OpenAITTSProvider(AudioProvider):
    """OpenAI speech engine (tts-1 / tts-1-hd)"""

    VOICES = ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]
    DEFAULT_VOICE = "alloy"
    API_URL = "https://api.openai.com/v1/audio/speech"

    def __init__(self, config: AudioProviderConfig, model: str = "tts-1", retry_delay: float = 1.0):
        super().__init__(config)
        if not self.config.api_key:
            raise ValueError("OpenAI API key required")
        self.model = model
        self.retry_delay = retry_delay

    @property
    def name(self) -> str:
        return "openai_tts"

    def _validate(self, text: str, voice: str, speed: float) -> Optional[str]:
        if voice not in self.VOICES:
            return f"Unknown OpenAI voice '{voice}' (choose from {', '.join(self.VOICES)})"
        if not 0.25 <= speed <= 4.0:
            return f"OpenAI speed must be within 0.25-4.0, got {speed}"
        if not text.strip():
            return "Empty narration text"
        return None

    async def _post(self, session: aiohttp.ClientSession, payload: Dict[str, Any]) -> Tuple[int, bytes]:
        """POST the request, retrying rate limits and server errors. Returns (status, body)."""
        url = self.config.base_url or self.API_URL
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        attempt = 0
        while True:
            async with session.post(url, headers=headers, json=payload) as response:
                status = response.status
                body = await response.read()
            if status not in RETRY_STATUSES or attempt >= self.config.max_retries:
                return status, body
            attempt += 1
            logger.warning("OpenAI TTS returned %s, retrying (%d/%d)", status, attempt, self.config.max_retries)
            await asyncio.sleep(self.retry_delay * attempt)

    async def generate_speech(
        self,
        text: str,
        output_path: str,
        voice_id: Optional[str] = None,
        speed: float = 1.0,
        **kwargs
    ) -> AudioGenerationResult:
        voice = voice_id or self.DEFAULT_VOICE
        problem = self._validate(text, voice, speed)
        if problem:
            return AudioGenerationResult(success=False, error_message=problem)

        payload = {
            "model": self.model,
            "input": text,
            "voice": voice,
            "speed": speed,
            "response_format": self.file_extension,
        }
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                status, audio = await self._post(session, payload)
        except aiohttp.ClientError as e:
            return AudioGenerationResult(success=False, error_message=f"OpenAI TTS request failed: {e}")
        except asyncio.TimeoutError:
            return AudioGenerationResult(
                success=False,
                error_message=f"OpenAI TTS timed out after {self.config.timeout}s"
            )

        if status != 200:
            return AudioGenerationResult(
                success=False,
                error_message=f"OpenAI TTS API error ({status}): {audio.decode(errors='replace')[:200]}"
            )
        if not audio:
            return AudioGenerationResult(success=False, error_message="OpenAI TTS returned no audio")

        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(audio)

        return AudioGenerationResult(
            success=True,
            audio_path=str(output),
            format=self.file_extension,
            provider_metadata={"model": self.model, "voice": voice, "speed": speed},
        )

    async def list_voices(self) -> List[Dict[str, Any]]:
        return [
            {"id": voice, "name": voice.title(), "language": "en"}
            for voice in self.VOICES
        ]
