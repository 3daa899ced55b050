"""Protocol interfaces used by PipelineOrchestrator."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence

from models import (
    LoadProgress,
    Recording,
    RecognitionOutput,
    SampleBuffer,
    SpeechStatus,
)

ProgressCallback = Callable[[LoadProgress], None]


class AudioCapture(Protocol):
    def start(
        self,
        on_elapsed: Optional[Callable[[int], None]] = None,
        on_abort: Optional[Callable[[str], None]] = None,
    ) -> None: ...

    def stop(self) -> Optional[Recording]: ...

    @property
    def is_recording(self) -> bool: ...


class RecognitionEngine(Protocol):
    def __call__(
        self,
        samples: SampleBuffer,
        language: Optional[str] = None,
        task: str = "transcribe",
    ) -> RecognitionOutput: ...


class TranslationEngine(Protocol):
    def __call__(
        self,
        text: str,
        src_lang: Optional[str] = None,
        tgt_lang: Optional[str] = None,
    ) -> list[dict[str, Any]]: ...


class EngineProvider(Protocol):
    async def load(self, model_id: str, on_progress: ProgressCallback) -> Any: ...


class LanguageDetector(Protocol):
    def detect(self, output: RecognitionOutput) -> str: ...


class SpeechSynthesizer(Protocol):
    async def list_voices(self) -> Sequence[dict[str, Any]]: ...

    async def synthesize(
        self,
        text: str,
        voice: Optional[str],
        rate: float,
        volume: float,
        pitch: float,
    ) -> bytes: ...


class AudioPlayer(Protocol):
    def play(self, payload: bytes) -> None: ...

    def stop(self) -> None: ...


SpeechStatusCallback = Callable[[SpeechStatus, str], None]
