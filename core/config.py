"""Pipeline configuration using pydantic-settings"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables (TRACE_VIDEO_*) or .env"""

    # Video profile
    fps: int = 30
    width: int = 1920
    height: int = 1080
    video_codec: str = "libx264"
    pixel_format: str = "yuv420p"
    preset: str = "medium"
    crf: int = 23

    # Audio profile
    audio_codec: str = "aac"
    audio_bitrate: str = "192k"
    audio_sample_rate: int = 48000

    # Step timing
    buffer_seconds: float = 1.0
    fallback_duration: float = 4.0

    # Letterbox fill, as a hex RGB string
    background_color: str = "#000000"

    # Parallel frame composition
    compose_workers: int = 4

    # Narration
    provider: Literal["mock", "openai", "edge"] = "mock"
    voice_id: Optional[str] = None
    openai_api_key: str = ""

    # Where finished videos are written (None = system temp dir)
    output_dir: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="TRACE_VIDEO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_settings() -> Settings:
    """Build settings fresh from the current environment."""
    return Settings()
