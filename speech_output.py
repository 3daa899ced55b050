"""Speak translated text with an Edge TTS voice matching the target language."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Any, Optional, Sequence

import edge_tts
import soundfile as sf

from errors import SpeechOutputError
from interfaces import AudioPlayer, SpeechStatusCallback, SpeechSynthesizer
from models import Language, SpeechStatus

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger("voice_translator.speech_output")


def _percent(value: float) -> str:
    return f"{int(round((value - 1.0) * 100)):+d}%"


class EdgeTTSSynthesizer:
    async def list_voices(self) -> Sequence[dict[str, Any]]:
        return await edge_tts.list_voices()

    async def synthesize(
        self,
        text: str,
        voice: Optional[str],
        rate: float,
        volume: float,
        pitch: float,
    ) -> bytes:
        kwargs: dict[str, str] = {
            "rate": _percent(rate),
            "volume": _percent(volume),
            "pitch": f"{int(round((pitch - 1.0) * 100)):+d}Hz",
        }
        if voice:
            kwargs["voice"] = voice
        communicate = edge_tts.Communicate(text, **kwargs)
        audio = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                audio.extend(chunk["data"])
        if not audio:
            raise SpeechOutputError("Empty TTS result")
        return bytes(audio)


class SoundDevicePlayer:
    def play(self, payload: bytes) -> None:
        if sd is None:
            raise SpeechOutputError("sounddevice is not installed")
        data, sample_rate = sf.read(io.BytesIO(payload), dtype="float32")
        sd.play(data, samplerate=sample_rate)
        sd.wait()

    def stop(self) -> None:
        if sd is not None:
            sd.stop()


class SpeechOutput:
    def __init__(
        self,
        synthesizer: SpeechSynthesizer | None = None,
        player: AudioPlayer | None = None,
        on_status: Optional[SpeechStatusCallback] = None,
        rate: float = 0.9,
        volume: float = 1.0,
        pitch: float = 1.0,
        voice_wait_s: float = 1.0,
    ) -> None:
        self._synthesizer = synthesizer or EdgeTTSSynthesizer()
        self._player = player or SoundDevicePlayer()
        self.on_status = on_status
        self.rate = rate
        self.volume = volume
        self.pitch = pitch
        self.voice_wait_s = voice_wait_s
        self._voices: Optional[list[dict[str, Any]]] = None
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def speaking(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            self._player.stop()

    async def speak(self, language: Language, text: str) -> bool:
        self.cancel()
        task = asyncio.ensure_future(self._speak(language, text))
        self._task = task
        try:
            await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and (current is None or not current.cancelling()):
                return False
            raise
        return True

    @staticmethod
    def select_voice(voices: Sequence[dict[str, Any]], language: Language) -> Optional[str]:
        prefix = language.value.lower()
        for voice in voices:
            if str(voice.get("Locale", "")).lower().startswith(prefix):
                return str(voice.get("ShortName") or voice.get("Name"))
        return None

    async def _available_voices(self) -> list[dict[str, Any]]:
        if self._voices is not None:
            return self._voices
        try:
            voices = await asyncio.wait_for(self._synthesizer.list_voices(), timeout=self.voice_wait_s)
        except asyncio.TimeoutError:
            logger.warning("Voice list not ready after %.1fs, using default voice", self.voice_wait_s)
            return []
        except Exception as exc:
            logger.warning("Could not list voices (%s), using default voice", exc)
            return []
        self._voices = list(voices)
        return self._voices

    async def _speak(self, language: Language, text: str) -> None:
        voices = await self._available_voices()
        voice = self.select_voice(voices, language)
        if voice is None:
            logger.warning("No %s voice found, using default", language.value)
        else:
            logger.info("Using voice %s", voice)

        try:
            audio = await self._synthesizer.synthesize(text, voice, self.rate, self.volume, self.pitch)
            self._emit(SpeechStatus.STARTED, "🔊 Speaking...")
            await asyncio.to_thread(self._player.play, audio)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Speech error: %s", exc)
            self._emit(SpeechStatus.ERROR, f"Speech error: {exc}")
            raise SpeechOutputError(f"Speech error: {exc}", exc) from exc
        self._emit(SpeechStatus.FINISHED, "Translation complete!")

    def _emit(self, status: SpeechStatus, message: str) -> None:
        if self.on_status is not None:
            self.on_status(status, message)
