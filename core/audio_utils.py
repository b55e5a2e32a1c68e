"""
Shared audio utilities.

Probing narration assets for their playable length. Used by the narration
synthesizer (raw step durations) and the muxer (deciding which assets can be
placed on the timeline).
"""

import logging
from pathlib import Path
from typing import Optional, Union

import mutagen

from core.ffmpeg import probe_duration

logger = logging.getLogger(__name__)


def _mutagen_duration(audio_path: Path) -> Optional[float]:
    try:
        audio_info = mutagen.File(str(audio_path))
    except (mutagen.MutagenError, OSError) as e:
        logger.debug("mutagen could not read %s: %s", audio_path, e)
        return None
    if audio_info is None or audio_info.info is None:
        return None
    return getattr(audio_info.info, "length", None)


async def get_audio_duration(audio_path: Union[str, Path], ffmpeg_path: Optional[str] = None) -> float:
    """
    Get duration of an audio file in seconds.

    Tries mutagen first (fast, pure-Python), falls back to ffprobe.
    Returns 0.0 if the file is missing, empty or neither works.
    """
    audio_path = Path(audio_path)
    if not audio_path.exists() or audio_path.stat().st_size == 0:
        return 0.0

    duration = _mutagen_duration(audio_path)
    if duration:
        return float(duration)

    duration = await probe_duration(str(audio_path), ffmpeg_path)
    return duration if duration else 0.0
