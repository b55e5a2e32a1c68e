"""
Microsoft Edge neural voices via the edge-tts package.

No API key required. Audio is streamed and written as mp3.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp
import edge_tts
from edge_tts.exceptions import (
    NoAudioReceived,
    UnexpectedResponse,
    UnknownResponse,
    WebSocketError,
)

from ..base import AudioProvider, AudioProviderConfig, AudioGenerationResult

logger = logging.getLogger(__name__)


class EdgeTTSProvider(AudioProvider):
    """Edge neural TTS provider"""

    DEFAULT_VOICE = "en-US-AriaNeural"

    def __init__(self, config: Optional[AudioProviderConfig] = None):
        super().__init__(config or AudioProviderConfig())

    @property
    def name(self) -> str:
        return "edge_tts"

    @staticmethod
    def _rate(speed: float) -> str:
        """Convert a speed multiplier into edge-tts's signed percentage."""
        percent = int(round((speed - 1.0) * 100))
        return f"{percent:+d}%"

    async def generate_speech(
        self,
        text: str,
        output_path: str,
        voice_id: Optional[str] = None,
        speed: float = 1.0,
        **kwargs
    ) -> AudioGenerationResult:
        if not text.strip():
            return AudioGenerationResult(success=False, error_message="Empty narration text")

        voice = voice_id or self.DEFAULT_VOICE
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        communicate = edge_tts.Communicate(text, voice, rate=self._rate(speed))
        audio_data = bytearray()
        try:
            async for chunk in communicate.stream():
                if chunk["type"] == "audio":
                    audio_data.extend(chunk["data"])
        except (NoAudioReceived, UnexpectedResponse, UnknownResponse, WebSocketError, aiohttp.ClientError) as e:
            return AudioGenerationResult(
                success=False,
                error_message=f"Edge TTS generation failed: {e}"
            )

        if not audio_data:
            return AudioGenerationResult(success=False, error_message="Edge TTS returned no audio")

        output.write_bytes(bytes(audio_data))
        return AudioGenerationResult(
            success=True,
            audio_path=str(output),
            format="mp3",
            sample_rate=24000,
            channels=1,
            provider_metadata={"voice": voice, "rate": self._rate(speed)},
        )

    async def list_voices(self) -> List[Dict[str, Any]]:
        voices = await edge_tts.list_voices()
        return [
            {"id": v["ShortName"], "name": v.get("FriendlyName", v["ShortName"]), "language": v.get("Locale", "")}
            for v in voices
        ]
