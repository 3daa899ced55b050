"""Microphone recorder adapter."""

from __future__ import annotations

import io
import logging
import threading
import time
import wave
from typing import Any, Callable, Optional

from errors import PermissionDenied
from models import Recording

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger("voice_translator.recorder")


def pcm_to_wav_bytes(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> bytes:
    """Wrap raw PCM bytes in a WAV container."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return buf.getvalue()


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        tick_s: float = 1.0,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.tick_s = tick_s
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self._chunks: list[bytes] = []
        self._started_at = 0.0
        self._ticker: Optional[threading.Thread] = None
        self._ticker_stop = threading.Event()
        self._on_elapsed: Optional[Callable[[int], None]] = None
        self._on_abort: Optional[Callable[[str], None]] = None

    @property
    def is_recording(self) -> bool:
        return self._running

    def start(
        self,
        on_elapsed: Optional[Callable[[int], None]] = None,
        on_abort: Optional[Callable[[str], None]] = None,
    ) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise PermissionDenied("sounddevice is not installed")
            self._chunks = []
            self._on_elapsed = on_elapsed
            self._on_abort = on_abort
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            try:
                self._stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                    finished_callback=self._on_finished,
                )
                self._stream.start()
            except Exception as exc:
                self._stream = None
                raise PermissionDenied(f"Could not access microphone: {exc}", exc) from exc
            self._started_at = time.time()
            self._running = True
            self._start_ticker()
        logger.info("Recording started")

    def stop(self) -> Optional[Recording]:
        with self._lock:
            if not self._running:
                return None
            self._running = False
            self._halt_ticker()
            stream = self._stream
            self._stream = None
            chunks = self._chunks
            self._chunks = []
        if stream is not None:
            stream.stop()
            stream.close()
        payload = pcm_to_wav_bytes(b"".join(chunks), self.sample_rate, self.channels)
        logger.info("Recording stopped after %.1fs", time.time() - self._started_at)
        return Recording(payload=payload, started_at=self._started_at)

    def elapsed_s(self) -> int:
        if not self._running:
            return 0
        return int(time.time() - self._started_at)

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        self._chunks.append(payload)

    def _on_finished(self) -> None:
        # Fires on normal stop too; only an unexpected end while running counts.
        if not self._running:
            return
        self._halt_ticker()
        logger.warning("Input stream ended unexpectedly")
        if self._on_abort is not None:
            self._on_abort("input device disconnected")

    def _start_ticker(self) -> None:
        self._ticker_stop.clear()
        self._ticker = threading.Thread(target=self._tick, daemon=True)
        self._ticker.start()

    def _tick(self) -> None:
        while not self._ticker_stop.wait(self.tick_s):
            callback = self._on_elapsed
            if callback is not None:
                callback(int(time.time() - self._started_at))

    def _halt_ticker(self) -> None:
        self._ticker_stop.set()
        ticker = self._ticker
        self._ticker = None
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join(timeout=self.tick_s + 0.5)
