"""Speech engine interface shared by every narration provider"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _mask_secret(value: Optional[str]) -> str:
    """Render a secret so that logs never show it in full."""
    if value is None:
        return "None"
    if len(value) <= 8:
        return "'***'"
    return f"'{value[:4]}...{value[-4:]}'"


@dataclass
class AudioProviderConfig:
    """Connection settings for a speech engine"""
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: int = 60  # seconds per utterance
    max_retries: int = 2  # extra attempts on transient HTTP failures
    extra_params: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"AudioProviderConfig(api_key={_mask_secret(self.api_key)}, "
            f"base_url={self.base_url!r}, timeout={self.timeout}, "
            f"max_retries={self.max_retries})"
        )


@dataclass
class AudioGenerationResult:
    """
    Outcome of one utterance.

    A successful result has the audio either on disk (audio_path) or in
    memory (audio_data); the synthesizer writes in-memory audio to disk itself.
    """
    success: bool
    audio_path: Optional[str] = None
    audio_data: Optional[bytes] = None
    duration: Optional[float] = None  # engine-reported, informational only
    format: str = "mp3"
    sample_rate: int = 24000
    channels: int = 1
    error_message: Optional[str] = None
    provider_metadata: Dict[str, Any] = field(default_factory=dict)


class AudioProvider(ABC):
    """
    Abstract base class for speech engines.

    An engine is a stateful resource: callers must not issue a second
    generate_speech() before the previous one has completed. The
    NarrationSynthesizer is the only component that talks to a provider
    and enforces this.
    """

    # Container extension written by generate_speech()
    file_extension = "mp3"

    def __init__(self, config: AudioProviderConfig):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Short engine identifier used in logs"""

    @abstractmethod
    async def generate_speech(
        self,
        text: str,
        output_path: str,
        voice_id: Optional[str] = None,
        speed: float = 1.0,
        **kwargs
    ) -> AudioGenerationResult:
        """
        Speak one narration line into output_path.

        Engine problems (bad input, HTTP errors, empty audio) are reported as
        AudioGenerationResult(success=False) rather than raised.

        Args:
            text: Narration line
            output_path: File the audio is written to
            voice_id: Engine-specific voice (engine default when None)
            speed: Speaking rate multiplier (1.0 = normal)
        """

    @abstractmethod
    async def list_voices(self) -> List[Dict[str, Any]]:
        """Voices as dicts with at least "id", "name" and "language"."""

    async def close(self) -> None:
        """Release any resources held by the engine."""
        return None
