"""
FFmpeg discovery and probing helpers.

Shared by the encoder, the muxer and the audio duration probe so that every
stage resolves the same ffmpeg/ffprobe binaries.
"""

import asyncio
import glob
import logging
import os
import shutil
from typing import Any, Dict, Optional

from core.errors import FFmpegNotFoundError

logger = logging.getLogger(__name__)


def find_ffmpeg() -> str:
    """Find FFmpeg executable."""
    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg:
        return ffmpeg

    # Check common locations on Windows and Homebrew
    common_paths = [
        r"C:\ffmpeg\bin\ffmpeg.exe",
        r"C:\Program Files\ffmpeg\bin\ffmpeg.exe",
        r"C:\Program Files (x86)\ffmpeg\bin\ffmpeg.exe",
        "/opt/homebrew/bin/ffmpeg",
        "/usr/local/bin/ffmpeg",
    ]
    for path in common_paths:
        if os.path.exists(path):
            return path

    # Check WinGet installation location
    winget_base = os.path.expandvars(r"%LOCALAPPDATA%\Microsoft\WinGet\Packages")
    if os.path.exists(winget_base):
        patterns = [
            os.path.join(winget_base, "Gyan.FFmpeg*", "ffmpeg-*", "bin", "ffmpeg.exe"),
            os.path.join(winget_base, "*FFmpeg*", "*", "bin", "ffmpeg.exe"),
        ]
        for pattern in patterns:
            matches = glob.glob(pattern)
            if matches:
                return matches[0]

    # Not found - callers raise when the process fails to spawn
    return "ffmpeg"


def find_ffprobe(ffmpeg_path: Optional[str] = None) -> Optional[str]:
    """Find ffprobe, either on PATH or next to the ffmpeg binary."""
    ffprobe = shutil.which("ffprobe")
    if ffprobe:
        return ffprobe

    ffmpeg_dir = os.path.dirname(ffmpeg_path or find_ffmpeg())
    for name in ("ffprobe", "ffprobe.exe"):
        candidate = os.path.join(ffmpeg_dir, name)
        if os.path.exists(candidate):
            return candidate

    return None


async def probe_duration(media_path: str, ffmpeg_path: Optional[str] = None) -> Optional[float]:
    """Get duration of a media file using FFprobe. Returns None when unknown."""
    if not os.path.exists(media_path):
        return None

    ffprobe = find_ffprobe(ffmpeg_path)
    if not ffprobe:
        return None

    cmd = [
        ffprobe,
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        media_path
    ]

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        stdout, _ = await process.communicate()

        if process.returncode == 0:
            return float(stdout.decode().strip())
    except (OSError, ValueError) as e:
        logger.debug("ffprobe failed for %s: %s", media_path, e)

    return None


async def check_ffmpeg_installed(ffmpeg_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Check if FFmpeg is properly installed.

    Returns:
        Dict with installation status and version info
    """
    ffmpeg_path = ffmpeg_path or find_ffmpeg()
    try:
        process = await asyncio.create_subprocess_exec(
            ffmpeg_path, "-version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        stdout, _ = await process.communicate()

        if process.returncode == 0:
            version_line = stdout.decode().split('\n')[0]
            return {
                "installed": True,
                "path": ffmpeg_path,
                "ffprobe": find_ffprobe(ffmpeg_path),
                "version": version_line
            }
    except (FileNotFoundError, PermissionError):
        pass

    return {
        "installed": False,
        "path": None,
        "ffprobe": None,
        "version": None,
        "error": "FFmpeg not found. Please install FFmpeg and add it to your PATH."
    }


async def require_ffmpeg(ffmpeg_path: Optional[str] = None) -> str:
    """
    Resolve a working ffmpeg binary.

    Raises:
        FFmpegNotFoundError: If ffmpeg cannot be run
    """
    status = await check_ffmpeg_installed(ffmpeg_path)
    if not status["installed"]:
        raise FFmpegNotFoundError(status["error"])
    return status["path"]
