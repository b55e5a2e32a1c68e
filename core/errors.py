"""Exceptions raised by the video synthesis pipeline"""


class VideoSynthesisError(Exception):
    """Base class for all pipeline errors."""
    pass


class FFmpegNotFoundError(VideoSynthesisError):
    """Raised when FFmpeg is not installed or not in PATH."""
    pass


class SynthesisUnavailableError(VideoSynthesisError):
    """Raised when the speech engine produced no usable audio for a step."""
    pass


class EncoderInitError(VideoSynthesisError):
    """Raised when the video encoder process cannot be started."""
    pass


class EncoderWriteError(VideoSynthesisError):
    """Raised when the encoder fails while frames are being written or flushed."""
    pass


class EncoderStateError(VideoSynthesisError):
    """Raised when the encoder is driven out of order (e.g. finished twice)."""
    pass


class MuxExportError(VideoSynthesisError):
    """Raised when combining the narration track with the video fails."""
    pass
