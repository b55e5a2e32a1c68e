"""Mock speech engine for testing without API keys or network access"""

import asyncio
import wave
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..base import AudioProvider, AudioProviderConfig, AudioGenerationResult


class MockAudioProvider(AudioProvider):
    """
    Mock speech engine that writes silent WAV files.

    The length of each file follows a ~150 words-per-minute speaking rate so
    that downstream timing behaves like real narration.

    Used for:
    - Testing without API keys
    - Rendering preview videos offline
    """

    file_extension = "wav"

    WORDS_PER_MINUTE = 150.0
    SAMPLE_RATE = 24000

    def __init__(
        self,
        config: Optional[AudioProviderConfig] = None,
        delay: float = 0.0,
        min_duration: float = 0.5,
    ):
        super().__init__(config or AudioProviderConfig())
        self.delay = delay
        self.min_duration = min_duration
        self.generation_count = 0
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return "mock"

    def estimate_duration(self, text: str, speed: float = 1.0) -> float:
        word_count = len(text.split())
        return max(self.min_duration, (word_count / self.WORDS_PER_MINUTE) * 60.0 / speed)

    async def generate_speech(
        self,
        text: str,
        output_path: str,
        voice_id: Optional[str] = None,
        speed: float = 1.0,
        **kwargs
    ) -> AudioGenerationResult:
        """Simulate speech synthesis with an optional delay."""
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)

        if not text.strip():
            return AudioGenerationResult(success=False, error_message="Empty narration text")

        duration = self.estimate_duration(text, speed)
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        frames = int(round(duration * self.SAMPLE_RATE))
        with wave.open(str(output), "wb") as wav:
            wav.setnchannels(1)
            wav.setsampwidth(2)
            wav.setframerate(self.SAMPLE_RATE)
            wav.writeframes(b"\x00\x00" * frames)

        self.generation_count += 1
        return AudioGenerationResult(
            success=True,
            audio_path=str(output),
            duration=duration,
            format="wav",
            sample_rate=self.SAMPLE_RATE,
            channels=1,
            provider_metadata={"provider": "mock", "voice": voice_id or "mock"},
        )

    async def list_voices(self) -> List[Dict[str, Any]]:
        return [{"id": "mock", "name": "Mock", "language": "en"}]
