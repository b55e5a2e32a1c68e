"""Provider interfaces for external services (speech synthesis)"""

from .base import (
    AudioProvider,
    AudioProviderConfig,
    AudioGenerationResult,
)
from .audio import (
    OpenAITTSProvider,
    EdgeTTSProvider,
    MockAudioProvider,
)

__all__ = [
    # Base interfaces
    "AudioProvider",
    "AudioProviderConfig",
    "AudioGenerationResult",
    # Speech engines
    "OpenAITTSProvider",
    "EdgeTTSProvider",
    "MockAudioProvider",
]
