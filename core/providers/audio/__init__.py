"""Audio provider implementations"""

from .openai_tts import OpenAITTSProvider
from .edge_tts import EdgeTTSProvider
from .mock import MockAudioProvider

__all__ = [
    "OpenAITTSProvider",
    "EdgeTTSProvider",
    "MockAudioProvider",
]
