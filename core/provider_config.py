"""Speech provider configuration and factory"""

import logging
import os
from typing import Optional

from .config import Settings
from .providers import (
    AudioProvider,
    AudioProviderConfig,
    EdgeTTSProvider,
    MockAudioProvider,
    OpenAITTSProvider,
)

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("mock", "openai", "edge")


class ProviderFactory:
    """Factory for creating speech engines from configuration"""

    @staticmethod
    def create(provider_name: Optional[str] = None, settings: Optional[Settings] = None) -> AudioProvider:
        """
        Create a speech engine.

        Environment variables:
        - TRACE_VIDEO_PROVIDER: "mock", "openai", "edge" (defaults to "mock")
        - TRACE_VIDEO_OPENAI_API_KEY or OPENAI_API_KEY: API key for OpenAI TTS

        Args:
            provider_name: Override provider (defaults to settings.provider)
            settings: Settings to read from (loaded from env when omitted)

        Returns:
            Configured AudioProvider instance
        """
        settings = settings or Settings()
        name = (provider_name or settings.provider).lower()

        if name not in PROVIDER_NAMES:
            logger.warning("Invalid provider '%s', falling back to mock", name)
            return MockAudioProvider()

        if name == "mock":
            return MockAudioProvider()

        if name == "openai":
            api_key = settings.openai_api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                logger.warning("OPENAI_API_KEY not set, falling back to mock provider")
                return MockAudioProvider()
            return OpenAITTSProvider(AudioProviderConfig(api_key=api_key))

        return EdgeTTSProvider()

    @staticmethod
    def create_mock() -> AudioProvider:
        """Create mock provider (for testing)"""
        return MockAudioProvider()
