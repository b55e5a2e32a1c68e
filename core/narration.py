"""
Narration synthesis through a single speech engine.

A speech engine can only speak one utterance at a time, so the synthesizer
owns it through one worker task that serves requests from a FIFO queue.
Callers get a future per request and suspend on it until the utterance and
its duration probe have completed.

Every request produces a SynthesizedStep for its index, even when the engine
returns nothing usable; in that case raw_duration is None and the step later
falls back to the default on-screen time.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from core.audio_utils import get_audio_duration
from core.errors import SynthesisUnavailableError
from core.models.render import SynthesizedStep
from core.providers.base import AudioProvider

logger = logging.getLogger(__name__)


@dataclass
class _SpeechRequest:
    index: int
    text: str
    future: asyncio.Future


class NarrationSynthesizer:
    """
    Single-flight narration queue around one AudioProvider.

    Usage:
        async with NarrationSynthesizer(provider, tmp_dir) as synth:
            steps = await synth.synthesize_all(["Click File", "Choose Export"])
    """

    def __init__(
        self,
        provider: AudioProvider,
        output_dir: Path,
        voice_id: Optional[str] = None,
        speed: float = 1.0,
    ):
        self.provider = provider
        self.output_dir = Path(output_dir)
        self.voice_id = voice_id
        self.speed = speed
        self._queue: Optional[asyncio.Queue] = None
        self._worker_task: Optional[asyncio.Task] = None
        self._closed = False

    async def __aenter__(self) -> "NarrationSynthesizer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    async def start(self) -> None:
        if self._closed:
            raise RuntimeError("NarrationSynthesizer is closed")
        if self.running:
            return
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._queue = asyncio.Queue()
        self._worker_task = asyncio.create_task(self._worker(), name="narration-worker")

    async def close(self) -> None:
        """
        Stop the worker and release the engine.

        An in-flight utterance is cancelled and every queued request's future
        is cancelled, so no caller is left waiting.
        """
        if self._closed:
            return
        self._closed = True

        if self._worker_task is not None:
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass

        if self._queue is not None:
            while not self._queue.empty():
                request = self._queue.get_nowait()
                if not request.future.done():
                    request.future.cancel()

        await self.provider.close()

    async def _worker(self) -> None:
        assert self._queue is not None
        while True:
            request: _SpeechRequest = await self._queue.get()
            try:
                if request.future.cancelled():
                    continue
                try:
                    result = await self._speak(request.index, request.text)
                except asyncio.CancelledError:
                    if not request.future.done():
                        request.future.cancel()
                    raise
                except Exception as e:
                    logger.warning("Step %d: narration failed: %s", request.index, e)
                    result = SynthesizedStep(index=request.index, error_message=str(e))
                if request.future.done():
                    # Caller gave up while the engine was speaking
                    self._discard(result)
                else:
                    request.future.set_result(result)
            finally:
                self._queue.task_done()

    def _discard(self, result: SynthesizedStep) -> None:
        if result.audio_path is not None:
            result.audio_path.unlink(missing_ok=True)

    async def _generate(self, text: str, audio_path: Path) -> Path:
        """Ask the engine for one utterance. Raises SynthesisUnavailableError."""
        try:
            result = await self.provider.generate_speech(
                text=text,
                output_path=str(audio_path),
                voice_id=self.voice_id,
                speed=self.speed,
            )
        except asyncio.CancelledError:
            audio_path.unlink(missing_ok=True)
            raise
        except Exception as e:
            raise SynthesisUnavailableError(f"speech engine failed: {e}") from e

        if not result.success:
            raise SynthesisUnavailableError(result.error_message or "speech engine returned no audio")

        if result.audio_data and not audio_path.exists():
            audio_path.write_bytes(result.audio_data)
        if result.audio_path:
            return Path(result.audio_path)
        return audio_path

    async def _speak(self, index: int, text: str) -> SynthesizedStep:
        """Run one utterance on the engine and probe its length."""
        audio_path = self.output_dir / (
            f"narration_{index:03d}_{uuid.uuid4().hex[:8]}.{self.provider.file_extension}"
        )

        try:
            audio_path = await self._generate(text, audio_path)
        except SynthesisUnavailableError as e:
            logger.warning("Step %d: no usable narration: %s", index, e)
            audio_path.unlink(missing_ok=True)
            return SynthesizedStep(index=index, error_message=str(e))

        try:
            raw_duration = await get_audio_duration(audio_path)
        except Exception:
            audio_path.unlink(missing_ok=True)
            raise
        if raw_duration <= 0:
            logger.warning("Step %d: narration %s is unreadable or empty", index, audio_path)
            return SynthesizedStep(
                index=index,
                audio_path=audio_path if audio_path.exists() else None,
                raw_duration=None,
                error_message="Could not determine narration duration",
            )

        logger.info("Step %d: narration %.2fs", index, raw_duration)
        return SynthesizedStep(index=index, audio_path=audio_path, raw_duration=raw_duration)

    async def synthesize(self, index: int, text: str) -> SynthesizedStep:
        """Queue one utterance and wait for its completion."""
        if not self.running:
            await self.start()
        assert self._queue is not None

        future = asyncio.get_running_loop().create_future()
        await self._queue.put(_SpeechRequest(index=index, text=text, future=future))
        return await future

    async def synthesize_all(self, texts: Sequence[str]) -> List[SynthesizedStep]:
        """
        Synthesize every text in order, one at a time.

        The returned list always has one entry per input text, in input order.
        """
        results = []
        for index, text in enumerate(texts):
            results.append(await self.synthesize(index, text))
        return results
